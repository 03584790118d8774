"""Pure calendar calculations — grid building and promotion coverage, no UI dependencies."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo

DAY_ABBR = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]


class DisplayState(Enum):
    COVERED_ACTIVE = "covered_active"
    COVERED_EXPIRED = "covered_expired"
    UNCOVERED = "uncovered"


@dataclass(frozen=True)
class PromotionRange:
    """Inclusive ISO date range (``YYYY-MM-DD``) of a single promotion."""

    start: str
    end: str

    def covers(self, iso_day: str) -> bool:
        # An inverted range (start > end) never matches.
        return self.start <= iso_day <= self.end


@dataclass(frozen=True)
class CalendarDay:
    """One cell of the day grid.

    Filler cells have ``day_number == 0`` and ``date is None``; they are
    never selectable and never covered.
    """

    day_number: int
    date: date | None = None
    is_today: bool = False
    is_covered: bool = False
    display_state: DisplayState = DisplayState.UNCOVERED

    @property
    def is_filler(self) -> bool:
        return self.day_number == 0


FILLER = CalendarDay(day_number=0)


def today_in_zone(now: datetime, zone: ZoneInfo) -> date:
    """Return the calendar date of ``now`` as seen in ``zone``.

    Naive timestamps are taken to be UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(zone).date()


def week_start(d: date) -> date:
    """Return the Monday of the week containing ``d``."""
    return d - timedelta(days=d.weekday())


def build_grid(reference: date, expanded: bool) -> list[CalendarDay]:
    """Return the unannotated cells for the week or month around ``reference``.

    Week mode yields exactly 7 cells starting on Monday. Month mode yields
    leading fillers, every day of the month, then trailing fillers up to the
    next multiple of 7.
    """
    if not expanded:
        monday = week_start(reference)
        cells = []
        for i in range(7):
            d = monday + timedelta(days=i)
            cells.append(CalendarDay(day_number=d.day, date=d))
        return cells

    cal = calendar.Calendar(firstweekday=0)  # Monday
    cells = []
    for d in cal.itermonthdays(reference.year, reference.month):
        if d == 0:
            cells.append(FILLER)
        else:
            cells.append(CalendarDay(
                day_number=d, date=date(reference.year, reference.month, d)))
    return cells


def is_covered(d: date, ranges: list[PromotionRange]) -> bool:
    iso_day = d.isoformat()
    return any(r.covers(iso_day) for r in ranges)


def display_state(d: date, covered: bool, today: date) -> DisplayState:
    if not covered:
        return DisplayState.UNCOVERED
    if d < today:
        return DisplayState.COVERED_EXPIRED
    return DisplayState.COVERED_ACTIVE


def annotate(cells: list[CalendarDay], ranges: list[PromotionRange],
             today: date) -> list[CalendarDay]:
    """Return new cells carrying today/coverage state. Fillers pass through."""
    result: list[CalendarDay] = []
    for cell in cells:
        if cell.date is None:
            result.append(FILLER)
            continue
        covered = is_covered(cell.date, ranges)
        result.append(CalendarDay(
            day_number=cell.day_number,
            date=cell.date,
            is_today=cell.date == today,
            is_covered=covered,
            display_state=display_state(cell.date, covered, today),
        ))
    return result


def calendar_days(reference: date, expanded: bool,
                  ranges: list[PromotionRange], today: date) -> list[CalendarDay]:
    """Build and annotate the grid in one step."""
    return annotate(build_grid(reference, expanded), ranges, today)


def rows(cells: list[CalendarDay]) -> list[list[CalendarDay]]:
    """Split a flat cell list into 7-column rows."""
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]
