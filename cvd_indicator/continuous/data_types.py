"""
Core data types for CVD computation.

These are the atomic units flowing through the system.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..exceptions import InvalidTrade

NumberLike = Union[Decimal, str, int, float]

ZERO = Decimal(0)


def to_decimal(value: NumberLike) -> Decimal:
    """
    Convert a feed value to Decimal.

    Strings are parsed exactly; floats go through ``str`` so that 0.002
    becomes Decimal("0.002") rather than its binary expansion.

    Raises:
        ValueError: if the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"not a finite number: {value!r}")
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


# =============================================================================
# RAW DATA EVENTS
# =============================================================================


@dataclass(slots=True)
class Trade:
    """
    Single trade execution.

    From the Binance trade stream:
    - is_buyer_maker=True  -> seller aggressed (hit bid) -> sell-initiated
    - is_buyer_maker=False -> buyer aggressed (lifted ask) -> buy-initiated
    """

    price: Decimal
    quantity: Decimal
    occurred_at_ms: int
    is_sell_initiated: bool

    @classmethod
    def from_values(
        cls,
        price: NumberLike,
        quantity: NumberLike,
        occurred_at_ms: int,
        is_sell_initiated: bool,
    ) -> "Trade":
        """Build a trade from loosely typed values and validate it."""
        trade = cls(
            price=to_decimal(price),
            quantity=to_decimal(quantity),
            occurred_at_ms=int(occurred_at_ms),
            is_sell_initiated=bool(is_sell_initiated),
        )
        trade.validate()
        return trade

    def validate(self) -> None:
        """Raise InvalidTrade unless price > 0, quantity > 0 and the notional fits a Decimal."""
        if not (self.price.is_finite() and self.quantity.is_finite()):
            raise InvalidTrade(self.price, self.quantity, "price and quantity must be finite")
        if self.price <= 0 and self.quantity <= 0:
            raise InvalidTrade(self.price, self.quantity, "price and quantity must be positive")
        if self.price <= 0:
            raise InvalidTrade(self.price, self.quantity, "price must be positive")
        if self.quantity <= 0:
            raise InvalidTrade(self.price, self.quantity, "quantity must be positive")
        try:
            self.price * self.quantity
        except ArithmeticError as e:
            raise InvalidTrade(
                self.price, self.quantity, f"notional out of range: {e!r}"
            ) from e

    @property
    def notional(self) -> Decimal:
        """Trade value in quote currency."""
        return self.price * self.quantity

    @property
    def delta(self) -> Decimal:
        """Signed notional: negative for sell-initiated trades."""
        notional = self.notional
        return -notional if self.is_sell_initiated else notional


@dataclass(slots=True)
class PriceTick:
    """Mark price update."""

    timestamp_ms: int
    price: Decimal


# =============================================================================
# VOLUME TIERS
# =============================================================================


class VolumeTier(Enum):
    """
    Notional-value tiers, ordered smallest first.

    Ranges are half-open: [low, high). The top tier has no upper bound.
    """

    SMALL = ("100-1k", Decimal(100), Decimal(1_000))
    MEDIUM = ("1k-10k", Decimal(1_000), Decimal(10_000))
    LARGE = ("10k-100k", Decimal(10_000), Decimal(100_000))
    WHALE = ("100k+", Decimal(100_000), None)

    def __init__(self, label: str, low: Decimal, high: Optional[Decimal]):
        self.label = label
        self.low = low
        self.high = high

    def contains(self, notional: Decimal) -> bool:
        if notional < self.low:
            return False
        return self.high is None or notional < self.high


def empty_tier_map() -> Dict[VolumeTier, Decimal]:
    """Zeroed accumulator for every tier."""
    return {tier: ZERO for tier in VolumeTier}


# =============================================================================
# AGGREGATES
# =============================================================================


@dataclass
class Bucket:
    """Per-interval signed deltas, mutated in place while trades arrive."""

    bucket_start: int
    delta_total: Decimal = ZERO
    delta_by_tier: Dict[VolumeTier, Decimal] = field(default_factory=empty_tier_map)
    last_price: Decimal = ZERO
    trade_count: int = 0


@dataclass(frozen=True)
class CumulativePoint:
    """A bucket reinterpreted as running totals up to and including itself."""

    bucket_start: int
    total_cvd: Decimal
    cvd_by_tier: Dict[VolumeTier, Decimal]
    last_price: Decimal
    trade_count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            "bucket_start": self.bucket_start,
            "total_cvd": self.total_cvd,
        }
        for tier in VolumeTier:
            data[tier.label] = self.cvd_by_tier.get(tier, ZERO)
        data["last_price"] = self.last_price
        data["trade_count"] = self.trade_count
        return data


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class SeriesConfig:
    """How trades are bucketed and how much history is retained."""

    bucket_width_ms: int
    windowed: bool = False
    window_size: Optional[int] = None

    def __post_init__(self):
        if self.bucket_width_ms <= 0:
            raise ValueError("bucket_width_ms must be positive")
        if self.windowed and (self.window_size is None or self.window_size <= 0):
            raise ValueError("windowed series need a positive window_size")


LIVE_SERIES = SeriesConfig(bucket_width_ms=60_000, windowed=True, window_size=60)  # last hour
DAILY_SERIES = SeriesConfig(bucket_width_ms=300_000)  # 5-minute buckets
MONTHLY_SERIES = SeriesConfig(bucket_width_ms=3_600_000)  # hourly buckets


@dataclass
class IngestionConfig:
    """Configuration for the live streams."""

    symbol: str = "BTCUSDT"
    ws_base: str = "wss://fstream.binance.com/ws"

    # Fixed delay between a disconnect and the next connection attempt
    reconnect_delay_s: float = 5.0

    heartbeat_s: float = 30.0
    receive_timeout_s: float = 60.0

    series: SeriesConfig = LIVE_SERIES
    price_window_size: int = 60

    def __post_init__(self):
        if self.reconnect_delay_s < 0:
            raise ValueError("reconnect_delay_s must not be negative")
        if self.price_window_size <= 0:
            raise ValueError("price_window_size must be positive")
