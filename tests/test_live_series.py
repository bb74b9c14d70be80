"""
Tests for the windowed live CVD series.
"""

from decimal import Decimal

import pytest

from conftest import trade
from cvd_indicator.continuous.data_types import DAILY_SERIES, SeriesConfig, VolumeTier
from cvd_indicator.continuous.live_series import LiveCVDSeries

MINUTE = 60_000


@pytest.fixture
def series():
    return LiveCVDSeries(SeriesConfig(bucket_width_ms=MINUTE, windowed=True, window_size=3))


class TestLiveCVDSeries:
    """Tests for LiveCVDSeries"""

    def test_active_bucket_updated_in_place(self, series):
        """Trades in the current minute do not push a new bucket"""
        series.on_trade(trade("100", "2", ts=1_000))
        series.on_trade(trade("100", "1", ts=59_000, sell=True))

        buckets = series.buckets()
        assert len(buckets) == 1
        assert buckets[0].delta_total == Decimal("100")
        assert buckets[0].trade_count == 2

    def test_window_evicts_oldest(self, series):
        """Only the newest window_size buckets are kept"""
        for minute in range(5):
            series.on_trade(trade("100", "1", ts=minute * MINUTE))

        assert [b.bucket_start for b in series.buckets()] == [2 * MINUTE, 3 * MINUTE, 4 * MINUTE]

    def test_cumulative_is_window_relative(self, series):
        """The running total restarts at the oldest retained bucket"""
        for minute in range(5):
            series.on_trade(trade("100", "1", ts=minute * MINUTE))

        points = series.series()
        assert [p.total_cvd for p in points] == [Decimal(100), Decimal(200), Decimal(300)]

    def test_running_tier_totals_are_all_time(self, series):
        """Per-tier summary keeps counting after buckets are evicted"""
        for minute in range(5):
            series.on_trade(trade("1000", "1", ts=minute * MINUTE))

        assert series.running_tier_totals[VolumeTier.MEDIUM] == Decimal(5000)
        assert series.series()[-1].cvd_by_tier[VolumeTier.MEDIUM] == Decimal(3000)
        assert series.trade_count == 5

    def test_rejected_trade_is_counted_not_applied(self, series):
        series.on_trade(trade("100", "1", ts=0))
        assert series.on_trade(trade("100", "0", ts=0)) is None

        assert series.rejected_count == 1
        assert series.trade_count == 1
        assert series.series()[-1].total_cvd == Decimal(100)

    def test_late_trade_for_retired_bucket_is_omitted(self, series):
        """A trade for an evicted minute does not re-enter the window"""
        for minute in range(4):
            series.on_trade(trade("100", "1", ts=minute * MINUTE))

        key = series.on_trade(trade("100", "1", ts=10_000))

        assert key == 0
        assert series.late_count == 1
        assert [b.bucket_start for b in series.buckets()] == [MINUTE, 2 * MINUTE, 3 * MINUTE]
        assert series.series()[-1].total_cvd == Decimal(300)

    def test_late_trade_inside_window_is_applied(self, series):
        """Out-of-order trades for a retained bucket update it"""
        series.on_trade(trade("100", "1", ts=0))
        series.on_trade(trade("100", "1", ts=MINUTE))
        series.on_trade(trade("100", "1", ts=5_000, sell=True))

        assert series.buckets()[0].delta_total == 0
        assert series.series()[-1].total_cvd == Decimal(100)
        assert series.late_count == 0

    def test_evicted_key_stays_retired_after_gap_fill(self, series):
        """Once a key is evicted, a later trade for it never re-enters the window"""
        for minute in (0, 2, 1, 3, 4):
            series.on_trade(trade("100", "1", ts=minute * MINUTE))
        assert [b.bucket_start for b in series.buckets()] == [MINUTE, 3 * MINUTE, 4 * MINUTE]

        series.on_trade(trade("100", "1", ts=2 * MINUTE + 1))

        assert series.late_count == 1
        assert [b.bucket_start for b in series.buckets()] == [MINUTE, 3 * MINUTE, 4 * MINUTE]
        assert series.series()[-1].total_cvd == Decimal(300)

    def test_out_of_range_trade_is_rejected(self, series):
        """Exponent overflow counts as a rejected trade and leaves the series intact"""
        series.on_trade(trade("100", "1", ts=0))

        assert series.on_trade(trade("1e1000000", "1", ts=MINUTE)) is None

        assert series.rejected_count == 1
        assert [b.bucket_start for b in series.buckets()] == [0]
        assert series.running_tier_totals[VolumeTier.SMALL] == Decimal(100)

    def test_last_price(self, series):
        series.on_trade(trade("101", "1", ts=0))
        series.on_trade(trade("102", "1", ts=1))
        assert series.last_price == Decimal("102")

    def test_clear(self, series):
        series.on_trade(trade("1000", "1", ts=0))
        series.clear()
        assert series.series() == []
        assert series.trade_count == 0
        assert series.running_tier_totals[VolumeTier.MEDIUM] == 0

    def test_requires_windowed_config(self):
        with pytest.raises(ValueError):
            LiveCVDSeries(DAILY_SERIES)
