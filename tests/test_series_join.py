"""
Tests for joining date-keyed series.
"""

from cvd_indicator.continuous.series_join import (
    JoinedPoint,
    SeriesPoint,
    join_series,
    merge_reserve_with_price,
)


def points(*pairs):
    return [SeriesPoint(date, value) for date, value in pairs]


class TestJoinSeries:
    """Tests for join_series()"""

    def test_primary_drives_length_and_order(self):
        primary = points(("2024-01-03", 3), ("2024-01-01", 1), ("2024-01-02", 2))
        secondary = points(("2024-01-01", "a"), ("2024-01-03", "c"))

        joined = join_series(primary, secondary)

        assert [p.date for p in joined] == ["2024-01-03", "2024-01-01", "2024-01-02"]
        assert [p.primary_value for p in joined] == [3, 1, 2]
        assert [p.secondary_value for p in joined] == ["c", "a", None]

    def test_unmatched_secondary_dropped(self):
        joined = join_series(
            points(("2024-01-01", 1)),
            points(("2023-12-31", "x"), ("2024-01-01", "y"), ("2024-01-02", "z")),
        )
        assert joined == [JoinedPoint("2024-01-01", 1, "y")]

    def test_first_duplicate_wins(self):
        joined = join_series(
            points(("2024-01-01", 1)),
            points(("2024-01-01", "first"), ("2024-01-01", "second")),
        )
        assert joined[0].secondary_value == "first"

    def test_exact_string_match(self):
        """Dates are compared as strings, not parsed"""
        joined = join_series(points(("2024-01-01", 1)), points(("2024-1-1", "x")))
        assert joined[0].secondary_value is None

    def test_empty_secondary(self):
        joined = join_series(points(("a", 1), ("b", 2)), [])
        assert all(p.secondary_value is None for p in joined)
        assert len(joined) == 2

    def test_empty_primary(self):
        assert join_series([], points(("a", 1))) == []

    def test_to_dict(self):
        point = JoinedPoint("2024-01-01", 10, None)
        assert point.to_dict() == {
            "date": "2024-01-01",
            "primary_value": 10,
            "secondary_value": None,
        }


class TestMergeReserveWithPrice:
    """Tests for merge_reserve_with_price()"""

    def test_merge(self):
        reserve = [
            {"date": "2024-01-01", "reserve": 2_100_000.5},
            {"date": "2024-01-02", "reserve": 2_099_000.0},
        ]
        prices = [
            {"date": "2024-01-02", "open": 1, "high": 2, "low": 0.5, "close": 42_500.0},
            {"date": "2024-01-05", "close": 43_000.0},
        ]

        merged = merge_reserve_with_price(reserve, prices)

        assert merged == [
            {"date": "2024-01-01", "reserve": 2_100_000.5, "price": None},
            {"date": "2024-01-02", "reserve": 2_099_000.0, "price": 42_500.0},
        ]
