"""
Series Join - left join of two date-keyed series.

Used to line up an exchange-reserve series with a price series whose
date coverage may differ.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesPoint:
    """One dated observation."""

    date: str
    value: Any


@dataclass(frozen=True)
class JoinedPoint:
    """A primary observation with its matching secondary value, if any."""

    date: str
    primary_value: Any
    secondary_value: Optional[Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "primary_value": self.primary_value,
            "secondary_value": self.secondary_value,
        }


def join_series(
    primary: Sequence[SeriesPoint],
    secondary: Iterable[SeriesPoint],
) -> List[JoinedPoint]:
    """
    Left join on exact date-string equality.

    The primary series drives output length and order. Secondary entries
    with no primary match are dropped; primary entries with no secondary
    match get secondary_value=None. For duplicate secondary dates the
    first occurrence wins.
    """
    lookup: Dict[str, Any] = {}
    for point in secondary:
        lookup.setdefault(point.date, point.value)

    joined = [
        JoinedPoint(
            date=point.date,
            primary_value=point.value,
            secondary_value=lookup.get(point.date),
        )
        for point in primary
    ]

    unmatched = sum(1 for point in joined if point.secondary_value is None)
    if unmatched:
        logger.debug(f"{unmatched} of {len(joined)} primary dates have no secondary value")
    return joined


def merge_reserve_with_price(
    reserve_rows: Sequence[Mapping[str, Any]],
    price_rows: Sequence[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Join reserve rows ({"date", "reserve"}) with OHLCV rows ({"date", "close"}).

    Returns:
        [{"date", "reserve", "price"}, ...] in reserve order, price None
        where the price series has no entry for that date
    """
    reserve = [SeriesPoint(str(row["date"]), row.get("reserve")) for row in reserve_rows]
    prices = [SeriesPoint(str(row["date"]), row.get("close")) for row in price_rows]

    return [
        {"date": point.date, "reserve": point.primary_value, "price": point.secondary_value}
        for point in join_series(reserve, prices)
    ]
