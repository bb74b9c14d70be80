import asyncio
import json
import os
import sys
from decimal import Decimal

import aiohttp
import pytest


TESTS_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(TESTS_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from cvd_indicator.continuous.data_types import Trade  # noqa: E402
from cvd_indicator.utils.retry import FixedDelay  # noqa: E402


def trade(price, quantity, ts=0, sell=False) -> Trade:
    """Trade from string/number literals without validation."""
    return Trade(
        price=Decimal(str(price)),
        quantity=Decimal(str(quantity)),
        occurred_at_ms=ts,
        is_sell_initiated=sell,
    )


def trade_message(price="50000.00", quantity="0.002", ts=0, buyer_maker=False) -> str:
    return json.dumps(
        {
            "e": "trade",
            "E": ts + 5,
            "T": ts,
            "s": "BTCUSDT",
            "p": price,
            "q": quantity,
            "m": buyer_maker,
        }
    )


def mark_price_message(price="50000.00", ts=0) -> str:
    return json.dumps({"e": "markPriceUpdate", "E": ts, "s": "BTCUSDT", "p": price})


class FakeMessage:
    def __init__(self, data=None, type=aiohttp.WSMsgType.TEXT):
        self.type = type
        self.data = data


class FakeWebSocket:
    """Async-iterable stand-in for aiohttp.ClientWebSocketResponse."""

    def __init__(self, messages, error=None):
        self._messages = list(messages)
        self._error = error
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    def __aiter__(self):
        return self

    async def __anext__(self):
        await asyncio.sleep(0)
        if self.closed or not self._messages:
            raise StopAsyncIteration
        item = self._messages.pop(0)
        if isinstance(item, str):
            return FakeMessage(item)
        return item

    def exception(self):
        return self._error

    async def close(self):
        self.closed = True


class FailingConnect:
    def __init__(self, error):
        self._error = error

    async def __aenter__(self):
        raise self._error

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession.

    Each ws_connect call consumes the next script: a list of messages to
    deliver before the server closes, or an exception to fail the
    handshake with. Once scripts run out, connections close immediately.
    """

    def __init__(self, scripts=None):
        self.scripts = list(scripts or [])
        self.connect_urls = []
        self.connect_kwargs = []
        self.closed = False
        self.sockets = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    def ws_connect(self, url, **kwargs):
        self.connect_urls.append(url)
        self.connect_kwargs.append(kwargs)
        script = self.scripts.pop(0) if self.scripts else []
        if isinstance(script, Exception):
            return FailingConnect(script)
        ws = FakeWebSocket(script)
        self.sockets.append(ws)
        return ws


class RecordingDelay(FixedDelay):
    """Zero-length reconnect delay that records every wait."""

    def __init__(self, delay=5.0):
        super().__init__(delay)
        self.waits = []

    async def wait(self, attempt):
        self.waits.append((attempt, self.calculate(attempt)))
        await asyncio.sleep(0)


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def mixed_size_trades():
    """Two trades in one minute: notional 100 bought, notional 1000 sold."""
    return [
        trade("50000", "0.002", ts=0, sell=False),
        trade("50000", "0.02", ts=0, sell=True),
    ]
