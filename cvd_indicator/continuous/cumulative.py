"""
Cumulative Series Builder.

Turns per-bucket deltas into running totals, in aggregate and per tier.
Batch mode runs it once over every bucket; live mode runs it over the
retained window only, so the live series restarts from zero at whatever
bucket is currently the oldest.
"""

from decimal import Decimal
from typing import Dict, Iterable, List

import pandas as pd

from .data_types import ZERO, Bucket, CumulativePoint, VolumeTier, empty_tier_map


def build_cumulative_series(buckets: Iterable[Bucket]) -> List[CumulativePoint]:
    """
    Build the running-total series for a set of buckets.

    Input order is not assumed; output is sorted by bucket_start with
    exactly one point per bucket. Empty intervals have no bucket and get
    no point.

    Args:
        buckets: Buckets in any order

    Returns:
        Cumulative points, oldest first
    """
    ordered = sorted(buckets, key=lambda b: b.bucket_start)

    running_total = ZERO
    running_by_tier = empty_tier_map()
    points: List[CumulativePoint] = []

    for bucket in ordered:
        running_total += bucket.delta_total
        for tier in VolumeTier:
            running_by_tier[tier] += bucket.delta_by_tier.get(tier, ZERO)

        points.append(
            CumulativePoint(
                bucket_start=bucket.bucket_start,
                total_cvd=running_total,
                cvd_by_tier=dict(running_by_tier),
                last_price=bucket.last_price,
                trade_count=bucket.trade_count,
            )
        )

    return points


def tier_totals(points: List[CumulativePoint]) -> Dict[VolumeTier, Decimal]:
    """Final cumulative value per tier (all zero for an empty series)."""
    if not points:
        return empty_tier_map()
    return dict(points[-1].cvd_by_tier)


def series_to_frame(points: List[CumulativePoint]) -> pd.DataFrame:
    """
    Export a cumulative series as a DataFrame for charting.

    Columns: bucket_start, total_cvd, one column per tier label,
    last_price, trade_count. Decimal values are converted to float.
    """
    columns = ["bucket_start", "total_cvd"] + [t.label for t in VolumeTier] + [
        "last_price",
        "trade_count",
    ]
    rows = []
    for point in points:
        row = point.to_dict()
        for key, value in row.items():
            if isinstance(value, Decimal):
                row[key] = float(value)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)
