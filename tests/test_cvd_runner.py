"""
Tests for the command line runner.
"""

import logging
from decimal import Decimal

import pytest

from cvd_indicator.apps.cvd_runner import format_tier_totals, main
from cvd_indicator.continuous.data_types import VolumeTier, empty_tier_map


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("cvd_indicator")
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def trade_log(tmp_path):
    path = tmp_path / "trades.csv"
    path.write_text(
        "id,price,qty,quote_qty,time,is_buyer_maker\n"
        "1,50000,0.002,100,0,false\n"
        "2,50000,0.02,1000,60000,true\n"
        "3,bad,1,1,120000,true\n"
    )
    return path


class TestBatchCommand:
    def test_prints_totals(self, trade_log, capsys, monkeypatch):
        monkeypatch.setenv("LOG_CONSOLE", "false")

        assert main(["batch", str(trade_log)]) == 0

        out = capsys.readouterr().out
        assert "Trades: 2  skipped rows: 1" in out
        assert "Buckets: 1 (300s)" in out
        assert "Total CVD: -900.00" in out
        assert "100-1k" in out

    def test_tail_zero_prints_no_buckets(self, trade_log, capsys, monkeypatch):
        monkeypatch.setenv("LOG_CONSOLE", "false")

        main(["batch", str(trade_log), "--tail", "0", "--preset", "monthly"])

        out = capsys.readouterr().out
        assert "Buckets: 1 (3600s)" in out
        assert " CVD " not in out

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            main(["replay"])


def test_format_tier_totals():
    totals = empty_tier_map()
    totals[VolumeTier.WHALE] = Decimal("-123456.789")

    lines = format_tier_totals(totals)

    assert len(lines) == 4
    assert lines[-1].split() == ["100k+:", "-123,456.79"]
    assert lines[0].split() == ["100-1k:", "0.00"]
