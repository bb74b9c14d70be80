"""Cumulative Volume Delta (CVD) by trade-size tier.

Public symbols are exposed lazily so importing `cvd_indicator` alone (for
example to reach `cvd_indicator.logging_config`) does not pull in pandas
or aiohttp.
"""

from __future__ import annotations

import importlib
from typing import Dict, Tuple


__all__ = [
    # Exceptions
    "CVDError",
    "InvalidTrade",
    "ParseFailure",
    "TransportFailure",
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
    # Core algorithm
    "classify",
    "BucketAggregator",
    "build_cumulative_series",
    "tier_totals",
    "series_to_frame",
    "RingBuffer",
    "LiveCVDSeries",
    # Live ingestion
    "TradeStream",
    "MarkPriceStream",
    "LiveCVDManager",
    "StreamState",
    # Batch ingestion
    "BatchIngestionController",
    "BatchResult",
    "read_trade_log",
    "run_trade_log",
    # Series join
    "SeriesPoint",
    "JoinedPoint",
    "join_series",
    "merge_reserve_with_price",
]


_EXPORT_TO_SOURCE: Dict[str, Tuple[str, str]] = {}


def _register(module: str, names: list[str]) -> None:
    for name in names:
        _EXPORT_TO_SOURCE[name] = (module, name)


_register(
    ".exceptions",
    ["CVDError", "InvalidTrade", "ParseFailure", "TransportFailure"],
)

_register(
    ".continuous.data_types",
    [
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
    ],
)

_register(".continuous.tiers", ["classify"])
_register(".continuous.aggregator", ["BucketAggregator"])
_register(
    ".continuous.cumulative",
    ["build_cumulative_series", "tier_totals", "series_to_frame"],
)
_register(".continuous.ring_buffer", ["RingBuffer"])
_register(".continuous.live_series", ["LiveCVDSeries"])

_register(
    ".continuous.ingestion",
    ["TradeStream", "MarkPriceStream", "LiveCVDManager", "StreamState"],
)

_register(
    ".continuous.batch",
    ["BatchIngestionController", "BatchResult", "read_trade_log", "run_trade_log"],
)

_register(
    ".continuous.series_join",
    ["SeriesPoint", "JoinedPoint", "join_series", "merge_reserve_with_price"],
)


_missing_exports = [name for name in __all__ if name not in _EXPORT_TO_SOURCE]
if _missing_exports:
    raise RuntimeError(f"Lazy export map incomplete: {_missing_exports}")


def __getattr__(name: str):
    if name not in _EXPORT_TO_SOURCE:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, symbol_name = _EXPORT_TO_SOURCE[name]
    module = importlib.import_module(module_name, __name__)
    value = getattr(module, symbol_name)

    # Cache resolved symbol on module globals for subsequent fast access.
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))
