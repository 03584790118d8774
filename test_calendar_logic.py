"""Tests for grid building and promotion coverage."""

import calendar
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from calendar_logic import (
    FILLER,
    CalendarDay,
    DisplayState,
    PromotionRange,
    annotate,
    build_grid,
    calendar_days,
    is_covered,
    rows,
    today_in_zone,
    week_start,
)

TAIPEI = ZoneInfo("Asia/Taipei")


class TestWeekGrid:
    def test_week_starts_on_monday(self):
        cells = build_grid(date(2024, 3, 15), expanded=False)  # Friday
        assert [c.date for c in cells] == [date(2024, 3, d) for d in range(11, 18)]
        assert [c.day_number for c in cells] == list(range(11, 18))

    def test_sunday_belongs_to_the_preceding_monday(self):
        assert week_start(date(2024, 3, 17)) == date(2024, 3, 11)
        assert week_start(date(2024, 3, 11)) == date(2024, 3, 11)

    def test_week_crossing_year_end(self):
        cells = build_grid(date(2024, 12, 31), expanded=False)
        assert [c.day_number for c in cells] == [30, 31, 1, 2, 3, 4, 5]
        assert cells[2].date == date(2025, 1, 1)

    @pytest.mark.parametrize("ref", [date(2024, 2, 29), date(2023, 1, 1), date(2025, 6, 30)])
    def test_week_always_has_seven_real_cells(self, ref):
        cells = build_grid(ref, expanded=False)
        assert len(cells) == 7
        assert not any(c.is_filler for c in cells)


class TestMonthGrid:
    def test_leading_fillers_for_march_2024(self):
        # 2024-03-01 is a Friday
        cells = build_grid(date(2024, 3, 15), expanded=True)
        assert [c.day_number for c in cells[:5]] == [0, 0, 0, 0, 1]
        assert len(cells) == 35
        assert cells[-1].day_number == 31

    def test_month_starting_monday_has_no_fillers(self):
        cells = build_grid(date(2021, 2, 10), expanded=True)
        assert len(cells) == 28
        assert [c.day_number for c in cells] == list(range(1, 29))

    def test_trailing_fillers_complete_last_row(self):
        # 2024-09-01 is a Sunday: 6 leading fillers + 30 days -> 42 cells
        cells = build_grid(date(2024, 9, 1), expanded=True)
        assert len(cells) == 42
        assert [c.day_number for c in cells[-6:]] == [0, 0, 0, 0, 0, 0]

    @pytest.mark.parametrize("year,month", [(2024, m) for m in range(1, 13)] + [(2023, 2)])
    def test_length_is_smallest_multiple_of_seven(self, year, month):
        cells = build_grid(date(year, month, 1), expanded=True)
        days_in_month = calendar.monthrange(year, month)[1]
        leading = date(year, month, 1).weekday()
        assert len(cells) % 7 == 0
        assert len(cells) >= days_in_month
        assert len(cells) - 7 < days_in_month + leading
        assert [c.day_number for c in cells if not c.is_filler] == list(range(1, days_in_month + 1))

    def test_fillers_carry_no_date(self):
        cells = build_grid(date(2024, 9, 1), expanded=True)
        assert all(c.date is None for c in cells if c.is_filler)


class TestCoverage:
    RANGES = [PromotionRange("2024-01-10", "2024-01-15")]

    def test_boundaries_are_inclusive(self):
        assert is_covered(date(2024, 1, 10), self.RANGES)
        assert is_covered(date(2024, 1, 15), self.RANGES)
        assert not is_covered(date(2024, 1, 9), self.RANGES)
        assert not is_covered(date(2024, 1, 16), self.RANGES)

    def test_inverted_range_covers_nothing(self):
        ranges = [PromotionRange("2024-01-15", "2024-01-10")]
        assert not any(is_covered(date(2024, 1, d), ranges) for d in range(1, 32))

    def test_overlapping_ranges(self):
        ranges = [PromotionRange("2024-01-01", "2024-01-05"),
                  PromotionRange("2024-01-04", "2024-01-08")]
        assert is_covered(date(2024, 1, 4), ranges)
        assert is_covered(date(2024, 1, 8), ranges)

    def test_display_states_relative_to_today(self):
        cells = annotate(build_grid(date(2024, 1, 12), expanded=False),
                         self.RANGES, today=date(2024, 1, 12))
        by_date = {c.date: c for c in cells}
        assert by_date[date(2024, 1, 11)].display_state is DisplayState.COVERED_EXPIRED
        assert by_date[date(2024, 1, 12)].display_state is DisplayState.COVERED_ACTIVE
        assert by_date[date(2024, 1, 14)].display_state is DisplayState.COVERED_ACTIVE
        assert by_date[date(2024, 1, 8)].display_state is DisplayState.UNCOVERED
        assert by_date[date(2024, 1, 9)].is_covered is False

    def test_no_ranges_means_uncovered(self):
        cells = calendar_days(date(2024, 1, 12), True, [], today=date(2024, 1, 12))
        assert all(c.display_state is DisplayState.UNCOVERED for c in cells)

    def test_fillers_never_covered(self):
        ranges = [PromotionRange("2000-01-01", "2099-12-31")]
        cells = calendar_days(date(2024, 9, 1), True, ranges, today=date(2024, 9, 1))
        fillers = [c for c in cells if c.is_filler]
        assert fillers
        assert all(c == FILLER and not c.is_covered for c in fillers)


class TestToday:
    def test_today_in_zone_crosses_midnight(self):
        now = datetime(2024, 3, 14, 17, 0, tzinfo=timezone.utc)
        assert today_in_zone(now, TAIPEI) == date(2024, 3, 15)
        assert today_in_zone(now, ZoneInfo("UTC")) == date(2024, 3, 14)

    def test_naive_timestamp_is_utc(self):
        assert today_in_zone(datetime(2024, 3, 14, 17, 0), TAIPEI) == date(2024, 3, 15)

    @pytest.mark.parametrize("expanded", [False, True])
    def test_exactly_one_today_cell(self, expanded):
        today = date(2024, 3, 15)
        cells = calendar_days(today, expanded, [], today)
        todays = [c for c in cells if c.is_today]
        assert len(todays) == 1
        assert todays[0].date == today
        assert todays[0].day_number == 15

    def test_today_outside_grid_marks_nothing(self):
        cells = calendar_days(date(2024, 3, 15), False, [], today=date(2024, 4, 15))
        assert not any(c.is_today for c in cells)


def test_example_week_all_active():
    ranges = [PromotionRange("2024-03-01", "2024-03-20")]
    cells = calendar_days(date(2024, 3, 15), False, ranges, today=date(2024, 3, 1))
    assert [c.date for c in cells] == [date(2024, 3, d) for d in range(11, 18)]
    assert all(c.display_state is DisplayState.COVERED_ACTIVE for c in cells)


def test_rows_splits_into_weeks():
    cells = build_grid(date(2024, 3, 15), expanded=True)
    grid = rows(cells)
    assert len(grid) == 5
    assert all(len(r) == 7 for r in grid)
    assert isinstance(grid[0][0], CalendarDay)
