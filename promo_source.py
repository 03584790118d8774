"""Supabase (PostgREST) client for the promotions table, plus a sequenced async feed.

Thin read-only client:
- all promotion date ranges (for calendar coverage)
- promotions active on one day (for the list)
- brand icon bytes
"""

import itertools
import threading
from datetime import date
from typing import Any, Callable

import httpx
from loguru import logger

from calendar_logic import PromotionRange
from promotions import Promotion, normalize_date


class PromotionSourceError(Exception):
    """Any failure reading promotions from the remote store."""


class PromotionSource:
    """Read-only access to the promotions table over the PostgREST API."""

    def __init__(self, base_url: str, api_key: str, table: str = "promotions",
                 timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._table = table
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: dict) -> "PromotionSource":
        return cls(
            settings["supabase_url"],
            settings["supabase_key"],
            table=settings["table"],
            timeout=settings["request_timeout"],
        )

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

    def _select(self, params: dict[str, str]) -> list[dict[str, Any]]:
        if not self.configured:
            raise PromotionSourceError("Supabase URL or key is not configured")
        url = f"{self._base_url}/rest/v1/{self._table}"
        try:
            resp = self._client.get(url, headers=self._headers(), params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PromotionSourceError(
                f"{self._table} query failed with HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise PromotionSourceError(f"{self._table} query failed: {e}") from e
        except (httpx.InvalidURL, ValueError) as e:
            raise PromotionSourceError(f"Invalid Supabase URL {self._base_url!r}: {e}") from e
        try:
            rows = resp.json()
        except ValueError as e:
            raise PromotionSourceError(f"{self._table} returned invalid JSON") from e
        if not isinstance(rows, list):
            raise PromotionSourceError(f"{self._table} returned {type(rows).__name__}, expected list")
        return rows

    def fetch_ranges(self) -> list[PromotionRange]:
        """Return the date range of every promotion."""
        rows = self._select({"select": "start_date,end_date"})
        try:
            ranges = [PromotionRange(normalize_date(r["start_date"]), normalize_date(r["end_date"]))
                      for r in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise PromotionSourceError(f"Malformed promotion row: {e}") from e
        logger.info(f"[PROMO_SOURCE] Fetched {len(ranges)} promotion ranges")
        return ranges

    def fetch_active_on(self, day: date) -> list[Promotion]:
        """Return promotions with ``start_date <= day <= end_date``."""
        iso_day = day.isoformat()
        logger.debug(f"[PROMO_SOURCE] Fetching promotions for {iso_day}")
        rows = self._select({
            "select": "*",
            "start_date": f"lte.{iso_day}",
            "end_date": f"gte.{iso_day}",
        })
        try:
            promos = [Promotion.from_row(r) for r in rows]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PromotionSourceError(f"Malformed promotion row: {e}") from e
        logger.info(f"[PROMO_SOURCE] Fetched {len(promos)} promotions for {iso_day}")
        return promos

    def fetch_icon(self, url: str) -> bytes:
        try:
            resp = self._client.get(url, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise PromotionSourceError(f"Icon download failed: {e}") from e
        except (httpx.InvalidURL, ValueError) as e:
            raise PromotionSourceError(f"Invalid icon URL {url!r}: {e}") from e
        return resp.content

    def close(self) -> None:
        self._client.close()


def _spawn_thread(target: Callable[[], None]) -> None:
    threading.Thread(target=target, daemon=True).start()


class PromotionFeed:
    """Runs one kind of query off the UI thread and keeps only the newest answer.

    Every request gets a sequence token. When a response arrives whose token
    is no longer the latest it is dropped, so a slow early response cannot
    overwrite a faster later one.

    ``dispatch`` moves a callable onto the UI thread (``root.after(0, fn)``);
    ``spawn`` runs the fetch in the background (a daemon thread by default).
    """

    def __init__(self, name: str, dispatch: Callable[[Callable[[], None]], Any],
                 spawn: Callable[[Callable[[], None]], None] = _spawn_thread) -> None:
        self.name = name
        self._dispatch = dispatch
        self._spawn = spawn
        self._counter = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    @property
    def latest(self) -> int:
        return self._latest

    def request(self, fetch: Callable[[], Any],
                on_result: Callable[[Any], None],
                on_error: Callable[[PromotionSourceError], None]) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest = token

        def work() -> None:
            try:
                result = fetch()
            except PromotionSourceError as e:
                logger.warning(f"[PROMO_FEED] {self.name} request #{token} failed: {e}")
                self._dispatch(lambda err=e: self._deliver(token, on_error, err))
            else:
                self._dispatch(lambda: self._deliver(token, on_result, result))

        self._spawn(work)
        return token

    def _deliver(self, token: int, callback: Callable[[Any], None], value: Any) -> None:
        if token != self._latest:
            logger.debug(f"[PROMO_FEED] Dropping stale {self.name} response #{token} "
                         f"(latest #{self._latest})")
            return
        callback(value)
