"""
Data Ingestion Layer - WebSocket streams for live CVD.

Handles:
- trade stream (continuous, feeds the bucket aggregator)
- mark price stream (continuous, feeds a price-only window)

Each stream owns its own state and connection. They share nothing, so
running both concurrently needs no locking.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from ..exceptions import InvalidTrade, ParseFailure, TransportFailure
from ..logging_config import log_exception
from ..utils.retry import FixedDelay
from .data_types import CumulativePoint, IngestionConfig, PriceTick, Trade, to_decimal
from .live_series import LiveCVDSeries
from .ring_buffer import RingBuffer

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], aiohttp.ClientSession]


class StreamState(Enum):
    """State of a data stream."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


@dataclass
class StreamStats:
    """Statistics for a data stream."""

    messages_received: int = 0
    bytes_received: int = 0
    last_message_time: Optional[int] = None
    parse_errors: int = 0
    rejected_trades: int = 0
    reconnect_count: int = 0
    error_count: int = 0


class BaseStream(ABC):
    """
    Base class for live streams.

    Lifecycle:
        DISCONNECTED -> CONNECTING on start
        CONNECTING -> CONNECTED on handshake
        CONNECTED -> RECONNECTING on transport error or unexpected close
        RECONNECTING -> CONNECTING after a fixed delay

    There is no terminal state while running; the loop retries until
    stopped or cancelled. The HTTP session is scoped to the run loop and
    closed on every exit path.
    """

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        session_factory: Optional[SessionFactory] = None,
        reconnect_policy: Optional[FixedDelay] = None,
    ):
        self.config = config or IngestionConfig()
        self.symbol = self.config.symbol.upper().replace("/", "").replace("-", "")
        self._state = StreamState.DISCONNECTED
        self._stats = StreamStats()
        self._callbacks: List[Callable[[Any], Any]] = []
        self._running = False

        self._session_factory: SessionFactory = session_factory or aiohttp.ClientSession
        self._reconnect = reconnect_policy or FixedDelay(self.config.reconnect_delay_s)
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def stats(self) -> StreamStats:
        return self._stats

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    @abstractmethod
    def stream_name(self) -> str:
        """Binance stream name, e.g. btcusdt@trade."""

    @property
    def url(self) -> str:
        return f"{self.config.ws_base}/{self.stream_name}"

    def add_callback(self, callback: Callable[[Any], Any]) -> None:
        """Add callback to be called with each parsed item."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[Any], Any]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self, item: Any) -> None:
        for callback in self._callbacks:
            try:
                callback(item)
            except Exception as e:
                log_exception(logger, e, f"Callback error on {self.stream_name}")

    @abstractmethod
    def _parse(self, data: Any) -> Any:
        """Decode one JSON payload. Raises ParseFailure or InvalidTrade."""

    @abstractmethod
    def _apply(self, item: Any) -> None:
        """Hand a parsed item to this stream's owned state."""

    def _handle_message(self, raw: str) -> None:
        """Parse and process one message. Bad messages are logged, counted and dropped."""
        self._stats.messages_received += 1
        self._stats.bytes_received += len(raw)
        self._stats.last_message_time = int(time.time() * 1000)

        try:
            try:
                data = json.loads(raw)
            except ValueError as e:
                raise ParseFailure(raw, f"invalid JSON: {e}", e) from e
            item = self._parse(data)
        except ParseFailure as e:
            self._stats.parse_errors += 1
            logger.warning(f"Dropping message on {self.stream_name}: {e}")
            return
        except InvalidTrade as e:
            self._stats.rejected_trades += 1
            logger.warning(f"Rejected trade on {self.stream_name}: {e}")
            return

        self._apply(item)
        self._notify_callbacks(item)

    async def start(self) -> None:
        """Start the run loop in a background task."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the stream and wait for the connection to be released."""
        self._running = False

        if self._ws is not None:
            await self._ws.close()

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._state = StreamState.DISCONNECTED

    async def run(self) -> None:
        """
        Main stream loop with reconnection.

        Runs until stop() is called or the awaiting task is cancelled.
        """
        self._running = True
        self._state = StreamState.CONNECTING
        try:
            async with self._session_factory() as session:
                while self._running:
                    try:
                        await self._consume(session)
                    except TransportFailure as e:
                        self._stats.error_count += 1
                        logger.error(f"Stream error: {e}")

                    if not self._running:
                        break

                    self._state = StreamState.RECONNECTING
                    self._stats.reconnect_count += 1
                    await self._reconnect.wait(self._stats.reconnect_count)
                    self._state = StreamState.CONNECTING
        finally:
            self._running = False
            self._ws = None
            self._state = StreamState.DISCONNECTED
            logger.info(f"Stream {self.stream_name} stopped")

    async def _consume(self, session: aiohttp.ClientSession) -> None:
        """Hold one connection open and process messages in arrival order."""
        logger.info(f"Connecting to {self.url}")
        try:
            async with session.ws_connect(
                self.url,
                heartbeat=self.config.heartbeat_s,
                receive_timeout=self.config.receive_timeout_s,
            ) as ws:
                self._ws = ws
                self._state = StreamState.CONNECTED
                logger.info(f"Connected to {self.stream_name}")

                async for msg in ws:
                    if not self._running:
                        break

                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self._handle_message(msg.data)
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        raise TransportFailure(self.stream_name, ws.exception())
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise TransportFailure(self.stream_name, e) from e
        finally:
            self._ws = None

        if self._running:
            raise TransportFailure(self.stream_name)


class TradeStream(BaseStream):
    """
    WebSocket stream of individual trades feeding a windowed CVD series.

    Each Binance trade message contains:
    - p: price, q: quantity (strings)
    - T: trade time in ms
    - m: buyer is maker (True -> sell-initiated)
    """

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        series: Optional[LiveCVDSeries] = None,
        session_factory: Optional[SessionFactory] = None,
        reconnect_policy: Optional[FixedDelay] = None,
    ):
        super().__init__(config, session_factory, reconnect_policy)
        self.series = series or LiveCVDSeries(self.config.series)

    @property
    def stream_name(self) -> str:
        return f"{self.symbol.lower()}@trade"

    def _parse(self, data: Any) -> Trade:
        try:
            is_buyer_maker = data["m"]
            if not isinstance(is_buyer_maker, bool):
                raise ValueError(f"m must be a boolean, got {is_buyer_maker!r}")
            return Trade.from_values(data["p"], data["q"], data["T"], is_buyer_maker)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseFailure(data, f"malformed trade message: {e}", e) from e

    def _apply(self, item: Trade) -> None:
        if self.series.on_trade(item) is None:
            self._stats.rejected_trades += 1


class MarkPriceStream(BaseStream):
    """
    WebSocket stream of mark price updates.

    Keeps only the most recent ticks; it does not touch the aggregator.
    """

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        session_factory: Optional[SessionFactory] = None,
        reconnect_policy: Optional[FixedDelay] = None,
    ):
        super().__init__(config, session_factory, reconnect_policy)
        self._prices = RingBuffer[PriceTick](self.config.price_window_size)

    @property
    def stream_name(self) -> str:
        return f"{self.symbol.lower()}@markPrice"

    def _parse(self, data: Any) -> PriceTick:
        try:
            return PriceTick(timestamp_ms=int(data["E"]), price=to_decimal(data["p"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ParseFailure(data, f"malformed mark price message: {e}", e) from e

    def _apply(self, item: PriceTick) -> None:
        self._prices.push(item)

    def prices(self) -> List[PriceTick]:
        """Recent mark prices, oldest first."""
        return self._prices.to_list()


class LiveCVDManager:
    """
    Runs the trade and mark price streams for one symbol.

    Example:
        async with LiveCVDManager(IngestionConfig(symbol="BTCUSDT")) as manager:
            await asyncio.sleep(60)
            points = manager.series()
    """

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.config = config or IngestionConfig()
        self.trade_stream = TradeStream(self.config, session_factory=session_factory)
        self.price_stream = MarkPriceStream(self.config, session_factory=session_factory)

    def series(self) -> List[CumulativePoint]:
        """Window-relative CVD series."""
        return self.trade_stream.series.series()

    def prices(self) -> List[PriceTick]:
        return self.price_stream.prices()

    async def start(self) -> None:
        logger.info(f"Starting live CVD ingestion for {self.config.symbol}")
        await asyncio.gather(self.trade_stream.start(), self.price_stream.start())

    async def stop(self) -> None:
        logger.info(f"Stopping live CVD ingestion for {self.config.symbol}")
        await asyncio.gather(self.trade_stream.stop(), self.price_stream.stop())

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    def get_stats(self) -> Dict[str, StreamStats]:
        return {
            "trades": self.trade_stream.stats,
            "mark_price": self.price_stream.stats,
        }

    def get_state(self) -> Dict[str, StreamState]:
        return {
            "trades": self.trade_stream.state,
            "mark_price": self.price_stream.state,
        }
