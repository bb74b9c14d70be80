#!/usr/bin/env python3
"""
CVD Runner

Live or historical Cumulative Volume Delta by trade-size tier.

Usage:
    cvd-runner live                              # BTCUSDT, refresh every 5s
    cvd-runner live ETHUSDT --refresh 10
    cvd-runner batch trades-2025-10-24.csv       # 5-minute buckets
    cvd-runner batch aggTrades-2025-09.csv --preset monthly
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from cvd_indicator.continuous import (
    DAILY_SERIES,
    LIVE_SERIES,
    MONTHLY_SERIES,
    CumulativePoint,
    IngestionConfig,
    LiveCVDManager,
    VolumeTier,
    run_trade_log,
)
from cvd_indicator.logging_config import configure_default_logging

logger = logging.getLogger(__name__)

PRESETS = {
    "live": LIVE_SERIES,
    "daily": DAILY_SERIES,
    "monthly": MONTHLY_SERIES,
}


def _format_ts(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M"
    )


def format_tier_totals(totals: Dict[VolumeTier, Decimal]) -> List[str]:
    return [f"  {tier.label:>9}: {totals[tier]:>18,.2f}" for tier in VolumeTier]


def format_point(point: CumulativePoint) -> str:
    return (
        f"{_format_ts(point.bucket_start)}  CVD {point.total_cvd:>16,.2f}  "
        f"price {point.last_price:>12,.2f}  trades {point.trade_count}"
    )


def run_batch(path: str, preset: str, delimiter: str, tail: int) -> int:
    config = PRESETS[preset]
    result = run_trade_log(path, config, delimiter=delimiter)

    print(f"Trades: {result.rows_processed:,}  skipped rows: {result.rows_skipped:,}")
    print(f"Buckets: {len(result.points):,} ({config.bucket_width_ms // 1000}s)")
    for point in result.points[-tail:] if tail else []:
        print(format_point(point))
    print(f"Total CVD: {result.total_cvd:,.2f}")
    print("CVD by trade size:")
    for line in format_tier_totals(result.tier_totals):
        print(line)
    return 0


async def run_live(symbol: str, refresh: float, duration: Optional[float]) -> None:
    config = IngestionConfig(symbol=symbol)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + duration if duration else None

    async with LiveCVDManager(config) as manager:
        while deadline is None or loop.time() < deadline:
            await asyncio.sleep(refresh)

            series = manager.trade_stream.series
            points = manager.series()
            states = {name: state.value for name, state in manager.get_state().items()}
            print(f"\n{symbol}  streams: {states}  trades: {series.trade_count:,}")
            if points:
                print(format_point(points[-1]))
            prices = manager.prices()
            if prices:
                print(f"Mark price: {prices[-1].price:,.2f}")
            print("CVD by trade size (since start):")
            for line in format_tier_totals(series.running_tier_totals):
                print(line)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Cumulative Volume Delta by trade size")
    sub = parser.add_subparsers(dest="command", required=True)

    live = sub.add_parser("live", help="Stream trades and print the rolling 60-minute CVD")
    live.add_argument(
        "symbol", nargs="?", default="BTCUSDT", help="Trading pair symbol (default: BTCUSDT)"
    )
    live.add_argument(
        "--refresh", type=float, default=5.0, help="Print interval in seconds (default: 5)"
    )
    live.add_argument(
        "--duration", type=float, default=None, help="Stop after N seconds (default: run forever)"
    )

    batch = sub.add_parser("batch", help="Compute CVD over a trade log file")
    batch.add_argument("path", help="Delimited trade log with a header row")
    batch.add_argument(
        "--preset",
        choices=["daily", "monthly"],
        default="daily",
        help="daily = 5-minute buckets, monthly = 1-hour buckets (default: daily)",
    )
    batch.add_argument("--delimiter", default=",", help="Field separator (default: ,)")
    batch.add_argument("--tail", type=int, default=10, help="Buckets to print (default: 10)")

    args = parser.parse_args(argv)
    configure_default_logging()

    if args.command == "batch":
        return run_batch(args.path, args.preset, args.delimiter, max(0, args.tail))

    symbol = args.symbol.upper().replace("/", "").replace("-", "")
    try:
        asyncio.run(run_live(symbol, max(1.0, args.refresh), args.duration))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
