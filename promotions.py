"""Promotion records, the per-day promotion list and the LINE share link."""

import webbrowser
from dataclasses import dataclass
from datetime import date
from typing import Any
from urllib.parse import quote

from loguru import logger

from calendar_logic import PromotionRange
from strings import SHARE_PERIOD

LINE_SHARE_URL = "https://line.me/R/msg/text/?"

# Characters encodeURIComponent leaves alone besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class Promotion:
    id: str
    title: str
    description: str
    icon_url: str
    source_url: str
    start_date: str
    end_date: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Promotion":
        """Build a Promotion from a ``promotions`` table row.

        Raises KeyError when ``id``, ``start_date`` or ``end_date`` is missing
        and ValueError when a date is null.
        """
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            description=row.get("description") or "",
            icon_url=row.get("brand_icon_url") or "",
            source_url=row.get("source_url") or "",
            start_date=normalize_date(row["start_date"]),
            end_date=normalize_date(row["end_date"]),
        )

    @property
    def range(self) -> PromotionRange:
        return PromotionRange(self.start_date, self.end_date)

    def covers(self, day: date) -> bool:
        return self.range.covers(day.isoformat())

    @property
    def period(self) -> str:
        return f"{self.start_date} ~ {self.end_date}"


def normalize_date(value: str) -> str:
    """Cut a date or timestamp string down to ``YYYY-MM-DD``.

    Raises ValueError for a null or non-string date.
    """
    if not isinstance(value, str) or len(value) < 10:
        raise ValueError(f"Expected an ISO date, got {value!r}")
    return value[:10]


def promotions_on(promotions: list[Promotion], day: date) -> list[Promotion]:
    """Return the promotions covering ``day``, in their original order."""
    return [p for p in promotions if p.covers(day)]


class ItemMarks:
    """On/off flags keyed by promotion id (likes, reminders)."""

    def __init__(self) -> None:
        self._marks: dict[str, bool] = {}

    def toggle(self, promo_id: str) -> bool:
        value = not self._marks.get(promo_id, False)
        self._marks[promo_id] = value
        return value

    def is_set(self, promo_id: str) -> bool:
        return self._marks.get(promo_id, False)

    def __len__(self) -> int:
        return sum(1 for v in self._marks.values() if v)


class PromotionList:
    """State behind the promotion list card: loading, error or items.

    Like/reminder marks survive reloads for as long as the list exists.
    """

    def __init__(self) -> None:
        self.day: date | None = None
        self.items: list[Promotion] = []
        self.loading = False
        self.error: str | None = None
        self.likes = ItemMarks()
        self.reminders = ItemMarks()

    def begin(self, day: date) -> None:
        self.day = day
        self.loading = True
        self.error = None

    def load(self, promotions: list[Promotion]) -> None:
        if self.day is None:
            self.items = list(promotions)
        else:
            self.items = promotions_on(promotions, self.day)
        self.loading = False
        self.error = None

    def fail(self, message: str) -> None:
        self.items = []
        self.loading = False
        self.error = message

    @property
    def is_empty(self) -> bool:
        return not self.loading and self.error is None and not self.items


# ------------------------------------------------------------------
# Outbound links
# ------------------------------------------------------------------
def share_text(promo: Promotion) -> str:
    return f"{promo.title}\n{SHARE_PERIOD}{promo.period}\n{promo.description}"


def share_url(promo: Promotion, fallback_url: str = "") -> str:
    """Return the LINE deep link that shares ``promo`` as a text message."""
    target = promo.source_url or fallback_url
    text = quote(share_text(promo), safe=_URI_COMPONENT_SAFE)
    return f"{LINE_SHARE_URL}{text}%0A{quote(target, safe=_URI_COMPONENT_SAFE)}"


def open_url(url: str) -> None:
    """Open ``url`` in a new browser tab; failures are logged and ignored."""
    if not url:
        return
    try:
        if not webbrowser.open(url, new=2):
            logger.warning(f"[SHARE] No browser accepted {url}")
    except webbrowser.Error as e:
        logger.warning(f"[SHARE] Could not open {url}: {e}")


def open_share(promo: Promotion, fallback_url: str = "") -> None:
    open_url(share_url(promo, fallback_url))
