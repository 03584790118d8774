"""Selection and view state behind the date picker."""

from datetime import date
from typing import Callable

from loguru import logger

from calendar_logic import CalendarDay, PromotionRange, calendar_days


class SelectionCoordinator:
    """Holds the single selected date and notifies a listener on change.

    UNSET until the first grid is computed, then always SET. Only a
    non-filler cell can move the selection.
    """

    def __init__(self, on_change: Callable[[date], None] | None = None) -> None:
        self.selected: date | None = None
        self._on_change = on_change

    @property
    def is_set(self) -> bool:
        return self.selected is not None

    def grid_computed(self, today: date) -> None:
        if self.selected is None:
            self._set(today)

    def select(self, cell: CalendarDay) -> bool:
        """Select ``cell``; returns False (and does nothing) for fillers."""
        if cell.is_filler or cell.date is None:
            return False
        self._set(cell.date)
        return True

    def _set(self, d: date) -> None:
        self.selected = d
        logger.debug(f"[SELECTION] Selected {d.isoformat()}")
        if self._on_change is not None:
            self._on_change(d)


class CalendarModel:
    """Reference date, expansion flag and promotion ranges, with derived cells.

    ``cells`` is rebuilt wholesale whenever an input changes.
    """

    def __init__(self, today: date,
                 on_select: Callable[[date], None] | None = None) -> None:
        self.today = today
        self.reference = today
        self.expanded = False
        self.ranges: list[PromotionRange] = []
        self.selection = SelectionCoordinator(on_select)
        self.cells: list[CalendarDay] = []

    def recompute(self) -> list[CalendarDay]:
        self.cells = calendar_days(self.reference, self.expanded, self.ranges, self.today)
        self.selection.grid_computed(self.today)
        return self.cells

    def toggle_expanded(self) -> bool:
        self.expanded = not self.expanded
        self.recompute()
        return self.expanded

    def set_ranges(self, ranges: list[PromotionRange]) -> None:
        self.ranges = list(ranges)
        self.recompute()

    def set_today(self, today: date) -> None:
        """Move the clock forward (e.g. past midnight); selection is kept."""
        self.today = today
        self.reference = today
        self.recompute()

    def select(self, cell: CalendarDay) -> bool:
        return self.selection.select(cell)

    def select_index(self, index: int) -> bool:
        if not 0 <= index < len(self.cells):
            return False
        return self.select(self.cells[index])

    @property
    def selected(self) -> date | None:
        return self.selection.selected
