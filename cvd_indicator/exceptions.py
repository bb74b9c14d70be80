"""
Error taxonomy for CVD ingestion.

None of these are fatal to a batch or a live stream: callers skip and
count trades/rows that raise them, and the stream loop converts transport
failures into a reconnect.
"""

from typing import Any, Optional


class CVDError(Exception):
    """Base exception for the CVD core."""


class InvalidTrade(CVDError):
    """Raised when a trade violates price > 0 and quantity > 0."""

    def __init__(self, price: Any, quantity: Any, reason: str = ""):
        self.price = price
        self.quantity = quantity
        self.reason = reason or "price and quantity must be positive"
        super().__init__(f"Invalid trade (price={price}, quantity={quantity}): {self.reason}")


class ParseFailure(CVDError):
    """Raised when a single feed message or log row cannot be decoded."""

    def __init__(self, raw: Any, reason: str, original_error: Optional[Exception] = None):
        self.raw = raw
        self.reason = reason
        self.original_error = original_error
        super().__init__(f"Parse failure: {reason}")


class TransportFailure(CVDError):
    """Raised inside the stream loop when the live connection drops."""

    def __init__(self, stream_name: str, original_error: Optional[Exception] = None):
        self.stream_name = stream_name
        self.original_error = original_error
        detail = f": {original_error}" if original_error else ""
        super().__init__(f"Transport failure on {stream_name}{detail}")
