from datetime import date

import pytest

from src.calendar_api.utils import (
    canonical_date_iso,
    day_key,
    month_grid,
    month_start_iso,
    parse_day,
    shift_month,
)


class TestDayKeys:
    def test_day_key_ignores_time(self):
        assert day_key("2024-03-01") == "2024-03-01"
        assert day_key("2024-03-01T00:00:00.000Z") == "2024-03-01"
        assert day_key("2024-03-01T23:59:59+05:00") == "2024-03-01"

    def test_parse_day(self):
        assert parse_day(" 2024-02-29T10:00:00Z ") == date(2024, 2, 29)
        with pytest.raises(ValueError):
            parse_day("2023-02-29")

    def test_parse_day_rejects_trailing_garbage(self):
        assert parse_day("2024-03-01T00:00:00.000Z") == date(2024, 3, 1)
        assert parse_day("2024-03-01T23:59:59+05:00") == date(2024, 3, 1)
        for bad in ("2024-03-01garbage", "2024-03-01 xyz", "2024-03-01ZZ"):
            with pytest.raises(ValueError):
                parse_day(bad)

    def test_canonical_forms(self):
        assert canonical_date_iso(date(2024, 3, 1)) == "2024-03-01T00:00:00.000Z"
        assert month_start_iso(date(2024, 3, 17)) == "2024-03-01T00:00:00.000Z"


class TestMonthArithmetic:
    def test_shift_month_wraps_years(self):
        assert shift_month("2024-12-01T00:00:00.000Z", 1) == "2025-01-01T00:00:00.000Z"
        assert shift_month("2024-01-01T00:00:00.000Z", -1) == "2023-12-01T00:00:00.000Z"
        assert shift_month("2024-03-15", 0) == "2024-03-01T00:00:00.000Z"
        assert shift_month("2024-03-01", 14) == "2025-05-01T00:00:00.000Z"

    def test_grid_starting_on_sunday(self):
        # February 2026 starts on a Sunday and has exactly four weeks
        weeks = month_grid("2026-02-01T00:00:00.000Z")
        assert len(weeks) == 4
        assert weeks[0][0] == date(2026, 2, 1)
        assert weeks[-1][-1] == date(2026, 2, 28)

    def test_grid_padding(self):
        weeks = month_grid("2024-02-01")
        cells = [c for w in weeks for c in w]
        assert all(len(w) == 7 for w in weeks)
        # February 2024 starts on a Thursday
        assert cells[:4] == [None] * 4
        assert cells[4] == date(2024, 2, 1)
        days = [c for c in cells if c is not None]
        assert len(days) == 29
        assert cells[-1] is None
