"""
Batch Ingestion - CVD over a finite trade log.

Parses every row, feeds the bucket aggregator in one pass, then builds
the cumulative series once over the complete bucket set. No retention
window: batch mode keeps full history.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from ..exceptions import InvalidTrade, ParseFailure
from .aggregator import BucketAggregator
from .cumulative import build_cumulative_series, tier_totals
from .data_types import (
    DAILY_SERIES,
    ZERO,
    CumulativePoint,
    SeriesConfig,
    Trade,
    VolumeTier,
    empty_tier_map,
)

logger = logging.getLogger(__name__)

Row = Union[str, Sequence[str]]

# Header names recognized for each consumed column; everything else is ignored
PRICE_COLUMNS = ("price",)
QUANTITY_COLUMNS = ("qty", "quantity")
TIME_COLUMNS = ("time", "transact_time", "timestamp")
FLAG_COLUMNS = ("is_buyer_maker",)


@dataclass(frozen=True)
class ColumnLayout:
    """Positions of the consumed columns within a row."""

    price: int
    quantity: int
    timestamp: int
    is_buyer_maker: int

    @classmethod
    def from_header(cls, header: Sequence[str]) -> "ColumnLayout":
        """
        Resolve column positions from a header row.

        Raises:
            ParseFailure: if a required column is missing
        """
        names = [str(name).strip().lower() for name in header]

        def find(candidates: Sequence[str]) -> int:
            for candidate in candidates:
                if candidate in names:
                    return names.index(candidate)
            raise ParseFailure(header, f"header has none of the columns {list(candidates)}")

        return cls(
            price=find(PRICE_COLUMNS),
            quantity=find(QUANTITY_COLUMNS),
            timestamp=find(TIME_COLUMNS),
            is_buyer_maker=find(FLAG_COLUMNS),
        )


# id,price,qty,quote_qty,time,is_buyer_maker
TRADES_LAYOUT = ColumnLayout(price=1, quantity=2, timestamp=4, is_buyer_maker=5)
# agg_trade_id,price,quantity,first_trade_id,last_trade_id,transact_time,is_buyer_maker
AGG_TRADES_LAYOUT = ColumnLayout(price=1, quantity=2, timestamp=5, is_buyer_maker=6)


def parse_bool_flag(value: object) -> bool:
    """Parse a boolean-like log field ("true"/"false", any case)."""
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise ValueError(f"not a boolean flag: {value!r}")
    text = value.strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    raise ValueError(f"not a boolean flag: {value!r}")


def _split(row: Row, delimiter: str) -> Sequence[str]:
    if isinstance(row, str):
        return row.rstrip("\r\n").split(delimiter)
    return row


def _is_blank(row: Row) -> bool:
    if isinstance(row, str):
        return not row.strip()
    return all(not str(cell).strip() for cell in row)


def parse_trade_row(row: Row, layout: ColumnLayout, delimiter: str = ",") -> Trade:
    """
    Parse one log row into a validated Trade.

    Raises:
        ParseFailure: malformed or non-numeric fields
        InvalidTrade: non-positive price or quantity, or a notional out of range
    """
    cells = _split(row, delimiter)
    try:
        is_buyer_maker = parse_bool_flag(cells[layout.is_buyer_maker])
        return Trade.from_values(
            cells[layout.price],
            cells[layout.quantity],
            str(cells[layout.timestamp]).strip(),
            is_buyer_maker,
        )
    except (IndexError, TypeError, ValueError) as e:
        raise ParseFailure(row, f"malformed trade row: {e}", e) from e


@dataclass
class BatchResult:
    """Output of one batch run."""

    points: List[CumulativePoint] = field(default_factory=list)
    tier_totals: Dict[VolumeTier, Decimal] = field(default_factory=empty_tier_map)
    rows_processed: int = 0
    rows_skipped: int = 0

    @property
    def total_cvd(self) -> Decimal:
        return self.points[-1].total_cvd if self.points else ZERO


class BatchIngestionController:
    """
    One-shot CVD computation over a trade log.

    Example:
        controller = BatchIngestionController(DAILY_SERIES)
        result = controller.run(lines)  # first line is the header
        result.tier_totals[VolumeTier.MEDIUM]
    """

    def __init__(
        self,
        config: SeriesConfig = DAILY_SERIES,
        layout: Optional[ColumnLayout] = None,
        delimiter: str = ",",
    ):
        """
        Args:
            config: Bucket width; windowing settings are ignored in batch mode
            layout: Fixed column positions. If None, resolved from the header
            delimiter: Field separator for raw string rows
        """
        if config.windowed:
            logger.info("Batch mode keeps full history; ignoring window settings")
        self.config = config
        self.layout = layout
        self.delimiter = delimiter

    def run(self, records: Iterable[Row], has_header: bool = True) -> BatchResult:
        """
        Compute the cumulative series for a complete log.

        Args:
            records: Header row (if has_header) followed by data rows
            has_header: Whether the first non-blank record is a header

        Returns:
            BatchResult with the series and per-tier totals

        Raises:
            ParseFailure: if no layout was given and the header lacks a
                required column
        """
        aggregator = BucketAggregator(self.config.bucket_width_ms)
        layout = self.layout
        header_pending = has_header
        width: Optional[int] = None
        processed = 0
        skipped = 0

        for row in records:
            if _is_blank(row):
                continue

            cells = _split(row, self.delimiter)
            if header_pending:
                header_pending = False
                width = len(cells)
                if layout is None:
                    layout = ColumnLayout.from_header(cells)
                continue

            if layout is None:
                raise ValueError("a column layout is required when the log has no header")

            if width is not None and len(cells) != width:
                skipped += 1
                logger.debug(f"Skipping row with {len(cells)} fields, header has {width}")
                continue

            try:
                trade = parse_trade_row(cells, layout)
                aggregator.ingest(trade)
            except (ParseFailure, InvalidTrade) as e:
                skipped += 1
                logger.debug(f"Skipping row: {e}")
                continue
            processed += 1

        if skipped:
            logger.warning(f"Skipped {skipped} unparseable rows out of {processed + skipped}")

        points = build_cumulative_series(aggregator.buckets())
        logger.info(
            f"Batch CVD: {processed} trades in {len(points)} buckets "
            f"({self.config.bucket_width_ms} ms)"
        )

        return BatchResult(
            points=points,
            tier_totals=tier_totals(points),
            rows_processed=processed,
            rows_skipped=skipped,
        )


def read_trade_log(path: Union[str, Path], delimiter: str = ",") -> List[Sequence[str]]:
    """
    Load a delimited trade log.

    Returns:
        Header row followed by data rows, every cell as a string. Rows with
        missing trailing fields come back padded and fail to parse later;
        rows with extra fields are appended as read, so that run() counts
        them as skipped.
    """
    overlong: List[List[str]] = []
    frame = pd.read_csv(
        path,
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        on_bad_lines=overlong.append,
    )
    logger.info(f"Loaded {len(frame)} rows from {path}")
    if overlong:
        logger.warning(f"{len(overlong)} rows in {path} have more fields than the header")

    rows: List[Sequence[str]] = [list(frame.columns)]
    rows.extend(frame.itertuples(index=False, name=None))
    rows.extend(overlong)
    return rows


def run_trade_log(
    path: Union[str, Path],
    config: SeriesConfig = DAILY_SERIES,
    delimiter: str = ",",
) -> BatchResult:
    """Read a trade log from disk and compute its CVD series."""
    controller = BatchIngestionController(config, delimiter=delimiter)
    return controller.run(read_trade_log(path, delimiter))
