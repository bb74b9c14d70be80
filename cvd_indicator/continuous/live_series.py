"""
Live CVD state owned by a single trade stream.

Wires a BucketAggregator to a RingBuffer retention window. Only a new
bucket key is pushed into the window; trades for the active bucket
mutate it in place. The cumulative series is computed over the retained
window only.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from ..exceptions import InvalidTrade
from .aggregator import BucketAggregator
from .cumulative import build_cumulative_series
from .data_types import (
    LIVE_SERIES,
    Bucket,
    CumulativePoint,
    SeriesConfig,
    Trade,
    VolumeTier,
    empty_tier_map,
)
from .ring_buffer import RingBuffer
from .tiers import classify

logger = logging.getLogger(__name__)


class LiveCVDSeries:
    """
    Windowed CVD for a live feed.

    Not thread-safe: a single consumer must feed trades in arrival order.

    Example:
        series = LiveCVDSeries()
        series.on_trade(trade)
        points = series.series()  # window-relative running totals
        totals = series.running_tier_totals  # all-time, never windowed
    """

    def __init__(self, config: SeriesConfig = LIVE_SERIES):
        if not config.windowed or config.window_size is None:
            raise ValueError("live series require a windowed SeriesConfig")

        self.config = config
        self._window = RingBuffer[Bucket](config.window_size)
        self._aggregator = BucketAggregator(
            config.bucket_width_ms, on_new_bucket=self._on_new_bucket
        )

        self._running_tier_totals = empty_tier_map()
        self._trade_count = 0
        self._rejected_count = 0
        self._late_count = 0
        self._evicted_through: Optional[int] = None
        self._late_key: Optional[int] = None
        self._last_price: Optional[Decimal] = None

    @property
    def trade_count(self) -> int:
        """Accepted trades since start, including late ones."""
        return self._trade_count

    @property
    def rejected_count(self) -> int:
        return self._rejected_count

    @property
    def late_count(self) -> int:
        """Trades that mapped to a bucket already evicted from the window."""
        return self._late_count

    @property
    def last_price(self) -> Optional[Decimal]:
        return self._last_price

    @property
    def running_tier_totals(self) -> Dict[VolumeTier, Decimal]:
        """Per-tier CVD over every accepted trade since start."""
        return dict(self._running_tier_totals)

    def buckets(self) -> List[Bucket]:
        """Retained buckets in push order (oldest first)."""
        return self._window.to_list()

    def _is_retired(self, key: int) -> bool:
        """A key at or below the newest evicted key never re-enters the window."""
        return self._evicted_through is not None and key <= self._evicted_through

    def _on_new_bucket(self, bucket: Bucket) -> None:
        if self._is_retired(bucket.bucket_start):
            self._late_key = bucket.bucket_start
            return

        evicted = self._window.push(bucket)
        if evicted is not None:
            self._aggregator.discard(evicted.bucket_start)
            if self._evicted_through is None or evicted.bucket_start > self._evicted_through:
                self._evicted_through = evicted.bucket_start
            logger.debug(f"Evicted bucket {evicted.bucket_start} from live window")

    def on_trade(self, trade: Trade) -> Optional[int]:
        """
        Feed one trade.

        Returns:
            The bucket key, or None if the trade was rejected
        """
        try:
            key = self._aggregator.ingest(trade)
        except InvalidTrade as e:
            self._rejected_count += 1
            logger.warning(f"Rejected trade: {e}")
            return None

        if self._late_key == key:
            # Bucket was re-created for a late trade; it never entered the window
            self._late_key = None
            self._aggregator.discard(key)
            self._late_count += 1
            logger.debug(f"Late trade for retired bucket {key} omitted from live series")

        tier = classify(trade.notional)
        if tier is not None:
            self._running_tier_totals[tier] += trade.delta

        self._trade_count += 1
        self._last_price = trade.price
        return key

    def series(self) -> List[CumulativePoint]:
        """Window-relative cumulative series, oldest first."""
        return build_cumulative_series(self._window)

    def clear(self) -> None:
        self._window.clear()
        self._aggregator.clear()
        self._running_tier_totals = empty_tier_map()
        self._trade_count = 0
        self._rejected_count = 0
        self._late_count = 0
        self._evicted_through = None
        self._late_key = None
        self._last_price = None
