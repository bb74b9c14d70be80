"""
Continuous CVD Architecture

Two ingestion paths, one algorithm:
1. LIVE - trade + mark price WebSocket streams, windowed series
2. BATCH - finite trade log, full-history series

"Bucket once, accumulate once."

Architecture:
```
INGESTION
├─ trade stream (live)      ─┐
└─ trade log rows (batch)   ─┤
                             ↓
TIER CLASSIFIER  (100-1k, 1k-10k, 10k-100k, 100k+)
                             ↓
BUCKET AGGREGATOR (60s live, 5m daily, 1h monthly)
                             ↓
RETENTION WINDOW (live only, last 60 buckets)
                             ↓
CUMULATIVE SERIES BUILDER
```

Usage:
    from cvd_indicator.continuous import LiveCVDManager, IngestionConfig

    async def main():
        async with LiveCVDManager(IngestionConfig(symbol="BTCUSDT")) as manager:
            await asyncio.sleep(300)
            for point in manager.series():
                print(point.bucket_start, point.total_cvd)

    asyncio.run(main())
"""

from .aggregator import BucketAggregator
from .batch import (
    AGG_TRADES_LAYOUT,
    TRADES_LAYOUT,
    BatchIngestionController,
    BatchResult,
    ColumnLayout,
    parse_bool_flag,
    parse_trade_row,
    read_trade_log,
    run_trade_log,
)
from .cumulative import build_cumulative_series, series_to_frame, tier_totals
from .data_types import (
    DAILY_SERIES,
    LIVE_SERIES,
    MONTHLY_SERIES,
    Bucket,
    CumulativePoint,
    IngestionConfig,
    PriceTick,
    SeriesConfig,
    Trade,
    VolumeTier,
    to_decimal,
)
from .ingestion import (
    BaseStream,
    LiveCVDManager,
    MarkPriceStream,
    StreamState,
    StreamStats,
    TradeStream,
)
from .live_series import LiveCVDSeries
from .ring_buffer import RingBuffer
from .series_join import JoinedPoint, SeriesPoint, join_series, merge_reserve_with_price
from .tiers import classify

__all__ = [
    # Data types
    "Trade",
    "PriceTick",
    "VolumeTier",
    "Bucket",
    "CumulativePoint",
    "SeriesConfig",
    "IngestionConfig",
    "LIVE_SERIES",
    "DAILY_SERIES",
    "MONTHLY_SERIES",
    "to_decimal",
    # Core algorithm
    "classify",
    "BucketAggregator",
    "build_cumulative_series",
    "tier_totals",
    "series_to_frame",
    "RingBuffer",
    "LiveCVDSeries",
    # Live ingestion
    "BaseStream",
    "TradeStream",
    "MarkPriceStream",
    "LiveCVDManager",
    "StreamState",
    "StreamStats",
    # Batch ingestion
    "BatchIngestionController",
    "BatchResult",
    "ColumnLayout",
    "TRADES_LAYOUT",
    "AGG_TRADES_LAYOUT",
    "parse_bool_flag",
    "parse_trade_row",
    "read_trade_log",
    "run_trade_log",
    # Series join
    "SeriesPoint",
    "JoinedPoint",
    "join_series",
    "merge_reserve_with_price",
]
