"""
Bucket Aggregator - per-interval, per-tier signed notional.

One instance per ingestion path. Live and batch use the same algorithm
and differ only in the bucket width they are constructed with.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..exceptions import InvalidTrade
from .data_types import ZERO, Bucket, Trade
from .tiers import classify

logger = logging.getLogger(__name__)


class BucketAggregator:
    """
    Accumulates trades into fixed-width time buckets.

    Buckets are created lazily on the first trade that maps to them and
    mutated in place afterwards. Late or out-of-order trades are accepted
    into whatever bucket they map to, including one that a caller has
    already retired; a series built before the late trade arrived does
    not reflect it.

    Example:
        agg = BucketAggregator(bucket_width_ms=60_000)
        key = agg.ingest(trade)
        bucket = agg.get(key)
    """

    def __init__(
        self,
        bucket_width_ms: int,
        on_new_bucket: Optional[Callable[[Bucket], None]] = None,
    ):
        """
        Args:
            bucket_width_ms: Interval width in milliseconds (must be > 0)
            on_new_bucket: Called once with each bucket right after the
                trade that created it has been applied
        """
        if bucket_width_ms <= 0:
            raise ValueError("bucket_width_ms must be positive")
        self._width = bucket_width_ms
        self._buckets: Dict[int, Bucket] = {}
        self._gross_notional = ZERO
        self._on_new_bucket = on_new_bucket

    @property
    def bucket_width_ms(self) -> int:
        return self._width

    def bucket_key(self, timestamp_ms: int) -> int:
        """Start of the bucket containing timestamp_ms."""
        return (timestamp_ms // self._width) * self._width

    def ingest(self, trade: Trade) -> int:
        """
        Apply one trade to its bucket.

        Returns:
            The bucket key the trade landed in

        Raises:
            InvalidTrade: if price or quantity is not positive, or the gross
                notional would leave the Decimal range. Nothing is
                mutated in that case.
        """
        trade.validate()

        delta = trade.delta
        tier = classify(trade.notional)
        key = self.bucket_key(trade.occurred_at_ms)

        # Gross notional bounds every bucket total and every running sum built from them
        try:
            gross = self._gross_notional + trade.notional
        except ArithmeticError as e:
            raise InvalidTrade(
                trade.price, trade.quantity, f"cumulative notional out of range: {e!r}"
            ) from e
        self._gross_notional = gross

        bucket = self._buckets.get(key)
        created = bucket is None
        if bucket is None:
            bucket = Bucket(bucket_start=key)
            self._buckets[key] = bucket

        bucket.delta_total += delta
        if tier is not None:
            bucket.delta_by_tier[tier] += delta
        bucket.last_price = trade.price
        bucket.trade_count += 1

        if created and self._on_new_bucket is not None:
            self._on_new_bucket(bucket)

        return key

    def get(self, key: int) -> Optional[Bucket]:
        return self._buckets.get(key)

    def discard(self, key: int) -> None:
        """Forget a bucket. A later trade for the same key starts it afresh."""
        self._buckets.pop(key, None)

    def buckets(self) -> List[Bucket]:
        """All buckets, oldest first."""
        return [self._buckets[key] for key in sorted(self._buckets)]

    def clear(self) -> None:
        self._buckets.clear()
        self._gross_notional = ZERO

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: object) -> bool:
        return key in self._buckets
