"""Promo calendar window (tkinter): date picker card + promotion list, above the taskbar."""

import sys
import threading
import tkinter as tk
from datetime import date, datetime, timezone
from tkinter import font as tkfont
from typing import Callable

from loguru import logger
from PIL import ImageTk

from calendar_logic import (
    DAY_ABBR,
    CalendarDay,
    DisplayState,
    PromotionRange,
    rows,
    today_in_zone,
)
from calendar_state import CalendarModel
from icon_gen import placeholder_icon, round_icon
from promo_source import PromotionFeed, PromotionSource, PromotionSourceError
from promotions import Promotion, PromotionList, open_share, open_url
from settings import get_zone, load_settings, save_settings
from strings import APP_TITLE, EMPTY_DAY, LOADING, LOAD_ERROR

# Colours
APP_BG = "#FFE45C"
CARD_BG = "white"
PROMO_ORANGE = "#FFAB35"
TODAY_BG = "black"
TEXT_FG = "black"
MUTED_FG = "#6B7280"
ERROR_FG = "#EF4444"
LIKE_FG = "#EF4444"
SEPARATOR = "#E5E7EB"

STATE_FG = {
    DisplayState.COVERED_ACTIVE: PROMO_ORANGE,
    DisplayState.COVERED_EXPIRED: "#666666",
    DisplayState.UNCOVERED: "#999999",
}

WINDOW_WIDTH = 402
LIST_HEIGHT = 420


class CalendarWindow:
    """Date picker + promotion list that appears above the taskbar."""

    def __init__(self, source: PromotionSource,
                 clock: Callable[[], datetime] | None = None) -> None:
        self.root = tk.Tk()
        self.root.title(APP_TITLE)
        self.root.resizable(False, True)
        self.root.configure(bg=APP_BG)
        self.root.attributes("-topmost", True)

        self._setup_fonts()

        settings = load_settings()
        self._zone = get_zone(settings)
        self._share_fallback: str = settings["share_fallback_url"]
        self._saved_width: int | None = settings["window_width"]
        self._saved_height: int | None = settings["window_height"]
        self._source = source
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._ranges_feed = PromotionFeed("ranges", self._dispatch)
        self._list_feed = PromotionFeed("list", self._dispatch)

        self.promo_list = PromotionList()
        self.model = CalendarModel(self._today(), on_select=self._on_day_selected)

        # Brand icons (PhotoImage must stay referenced while shown)
        self._icons: dict[str, ImageTk.PhotoImage] = {}
        self._icon_labels: dict[str, list[tk.Label]] = {}
        self._icons_pending: set[str] = set()
        self._placeholder = ImageTk.PhotoImage(placeholder_icon())

        self._cells: list[tk.Label] = []
        self._build_shell()

        self.model.recompute()
        self._render_grid()
        self.refresh_ranges()

        self.root.bind("<Escape>", lambda _e: self.hide())
        self.root.protocol("WM_DELETE_WINDOW", self.hide)
        self.root.withdraw()

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------
    def _setup_fonts(self) -> None:
        families = tkfont.families(self.root)
        base = "Microsoft JhengHei UI" if "Microsoft JhengHei UI" in families else "TkDefaultFont"
        self.font_title = tkfont.Font(family=base, size=15, weight="bold")
        self.font_date = tkfont.Font(family=base, size=14, weight="bold")
        self.font_weekday = tkfont.Font(family=base, size=10, weight="bold")
        self.font_day = tkfont.Font(family=base, size=13)
        self.font_promo_title = tkfont.Font(family=base, size=11, weight="bold")
        self.font_small = tkfont.Font(family=base, size=9)
        self.font_icon = tkfont.Font(family=base, size=13)

    # ------------------------------------------------------------------
    # Threading helpers
    # ------------------------------------------------------------------
    def _dispatch(self, fn: Callable[[], None]) -> None:
        """Run ``fn`` on the tkinter main thread."""
        self.root.after(0, fn)

    def _today(self) -> date:
        return today_in_zone(self._clock(), self._zone)

    # ------------------------------------------------------------------
    # Build shell (once) — header, calendar card, list area
    # ------------------------------------------------------------------
    def _build_shell(self) -> None:
        outer = tk.Frame(self.root, bg=APP_BG)
        outer.pack(fill="both", expand=True, padx=20, pady=12)

        tk.Label(outer, text=APP_TITLE, font=self.font_title, bg=APP_BG,
                 fg=TEXT_FG).pack(pady=(0, 12))

        card = tk.Frame(outer, bg=CARD_BG, padx=16, pady=16)
        card.pack(fill="x")

        head = tk.Frame(card, bg=CARD_BG)
        head.pack(fill="x", pady=(0, 16))
        self._date_label = tk.Label(head, font=self.font_date, bg=CARD_BG, fg=TEXT_FG)
        self._date_label.pack(side="left")
        self._toggle_btn = tk.Label(head, text="▼", font=self.font_icon,
                                    bg=CARD_BG, cursor="hand2")
        self._toggle_btn.pack(side="right")
        self._toggle_btn.bind("<Button-1>", lambda _e: self.toggle_expanded())

        weekdays = tk.Frame(card, bg=CARD_BG)
        weekdays.pack(fill="x", pady=(0, 6))
        for col, abbr in enumerate(DAY_ABBR):
            weekdays.grid_columnconfigure(col, weight=1, uniform="day")
            tk.Label(weekdays, text=abbr, font=self.font_weekday, bg=CARD_BG,
                     fg=TEXT_FG).grid(row=0, column=col)

        self._grid_frame = tk.Frame(card, bg=CARD_BG)
        self._grid_frame.pack(fill="x")
        for col in range(7):
            self._grid_frame.grid_columnconfigure(col, weight=1, uniform="day")

        # Scrollable promotion list
        list_wrap = tk.Frame(outer, bg=APP_BG)
        list_wrap.pack(fill="both", expand=True, pady=(20, 0))
        self._list_canvas = tk.Canvas(list_wrap, bg=APP_BG, highlightthickness=0,
                                      height=LIST_HEIGHT)
        scrollbar = tk.Scrollbar(list_wrap, orient="vertical",
                                 command=self._list_canvas.yview)
        self._list_canvas.configure(yscrollcommand=scrollbar.set)
        scrollbar.pack(side="right", fill="y")
        self._list_canvas.pack(side="left", fill="both", expand=True)

        self._list_frame = tk.Frame(self._list_canvas, bg=APP_BG)
        window_id = self._list_canvas.create_window((0, 0), window=self._list_frame,
                                                    anchor="nw")
        self._list_frame.bind(
            "<Configure>",
            lambda _e: self._list_canvas.configure(
                scrollregion=self._list_canvas.bbox("all")))
        self._list_canvas.bind(
            "<Configure>",
            lambda e: self._list_canvas.itemconfigure(window_id, width=e.width))
        self._list_canvas.bind_all("<MouseWheel>", self._on_mousewheel)

    def _on_mousewheel(self, event: tk.Event) -> None:
        self._list_canvas.yview_scroll(int(-event.delta / 120), "units")

    # ------------------------------------------------------------------
    # Day grid (pooled labels, reconfigured on every recompute)
    # ------------------------------------------------------------------
    def _render_grid(self) -> None:
        today = self.model.today
        self._date_label.configure(text=f"{today.year}/{today.month}/{today.day}")
        self._toggle_btn.configure(text="▲" if self.model.expanded else "▼")

        cells = self.model.cells
        while len(self._cells) < len(cells):
            index = len(self._cells)
            lbl = tk.Label(self._grid_frame, font=self.font_day, bg=CARD_BG,
                           width=3, height=1, pady=6)
            lbl.bind("<Button-1>", lambda _e, i=index: self._on_cell_click(i))
            self._cells.append(lbl)

        selected = self.model.selected
        for index, row in enumerate(rows(cells)):
            for col, cell in enumerate(row):
                lbl = self._cells[index * 7 + col]
                lbl.grid(row=index, column=col, pady=2)
                bg, fg = self._day_colors(cell, selected)
                lbl.configure(
                    text=str(cell.day_number) if not cell.is_filler else "",
                    bg=bg, fg=fg, cursor="" if cell.is_filler else "hand2",
                )

        # Hide excess cells (month view → week view)
        for lbl in self._cells[len(cells):]:
            lbl.grid_forget()

    @staticmethod
    def _day_colors(cell: CalendarDay, selected: date | None) -> tuple[str, str]:
        if cell.is_filler:
            return CARD_BG, CARD_BG
        if cell.is_today:
            return TODAY_BG, "white"
        if cell.date == selected:
            return PROMO_ORANGE, "white"
        return CARD_BG, STATE_FG[cell.display_state]

    def _on_cell_click(self, index: int) -> None:
        if self.model.select_index(index):
            self._render_grid()

    def toggle_expanded(self) -> None:
        self.model.toggle_expanded()
        self._render_grid()

    # ------------------------------------------------------------------
    # Remote data
    # ------------------------------------------------------------------
    def refresh_ranges(self) -> None:
        self._ranges_feed.request(self._source.fetch_ranges,
                                  self._on_ranges, self._on_ranges_error)

    def _on_ranges(self, ranges: list[PromotionRange]) -> None:
        self.model.set_ranges(ranges)
        self._render_grid()

    def _on_ranges_error(self, error: PromotionSourceError) -> None:
        # Grid keeps rendering with the ranges it already has
        logger.error(f"[CALENDAR] Could not load promotion ranges: {error}")

    def _on_day_selected(self, day: date) -> None:
        self.promo_list.begin(day)
        self._render_list()
        self._list_feed.request(lambda: self._source.fetch_active_on(day),
                                self._on_promotions, self._on_list_error)

    def _on_promotions(self, promotions: list[Promotion]) -> None:
        self.promo_list.load(promotions)
        self._render_list()

    def _on_list_error(self, error: PromotionSourceError) -> None:
        logger.error(f"[CALENDAR] Could not load promotions: {error}")
        self.promo_list.fail(LOAD_ERROR)
        self._render_list()

    def refresh(self) -> None:
        """Re-read today's date and reload ranges and the selected day's list."""
        today = self._today()
        if today != self.model.today:
            logger.info(f"[CALENDAR] Date changed to {today.isoformat()}")
            self.model.set_today(today)
        self._render_grid()
        self.refresh_ranges()
        if self.model.selected is not None:
            self._on_day_selected(self.model.selected)

    # ------------------------------------------------------------------
    # Promotion list
    # ------------------------------------------------------------------
    def _render_list(self) -> None:
        for child in self._list_frame.winfo_children():
            child.destroy()
        self._icon_labels.clear()

        state = self.promo_list
        if state.loading:
            self._status_card(LOADING, MUTED_FG)
        elif state.error is not None:
            self._status_card(state.error, ERROR_FG)
        elif state.is_empty:
            self._status_card(EMPTY_DAY, MUTED_FG)
        else:
            for promo in state.items:
                self._promo_card(promo)
        self._list_canvas.yview_moveto(0)

    def _status_card(self, text: str, fg: str) -> None:
        card = tk.Frame(self._list_frame, bg=CARD_BG, pady=32)
        card.pack(fill="x")
        tk.Label(card, text=text, font=self.font_small, bg=CARD_BG, fg=fg).pack()

    def _promo_card(self, promo: Promotion) -> None:
        card = tk.Frame(self._list_frame, bg=CARD_BG, padx=16, pady=16)
        card.pack(fill="x", pady=(0, 8))

        icon = tk.Label(card, image=self._icon_for(promo), bg=CARD_BG)
        icon.pack(side="left", anchor="n", padx=(0, 16))
        if promo.icon_url and promo.icon_url not in self._icons:
            self._icon_labels.setdefault(promo.icon_url, []).append(icon)

        body = tk.Frame(card, bg=CARD_BG)
        body.pack(side="left", fill="x", expand=True)
        tk.Label(body, text=promo.title, font=self.font_promo_title, bg=CARD_BG,
                 fg=TEXT_FG, anchor="w", justify="left", wraplength=260).pack(fill="x")
        tk.Label(body, text=promo.description, font=self.font_small, bg=CARD_BG,
                 fg=TEXT_FG, anchor="w", justify="left", wraplength=260).pack(fill="x", pady=(4, 0))
        tk.Label(body, text=f"\U0001F552 {promo.period}", font=self.font_small,
                 bg=CARD_BG, fg=TEXT_FG, anchor="w").pack(fill="x", pady=(4, 0))
        tk.Frame(body, bg=SEPARATOR, height=1).pack(fill="x", pady=8)

        actions = tk.Frame(body, bg=CARD_BG)
        actions.pack(fill="x")
        for col in range(4):
            actions.grid_columnconfigure(col, weight=1)

        self._action(actions, 0, "\U0001F517", TEXT_FG,
                     lambda _b: open_url(promo.source_url))
        self._action(actions, 1, "↗", TEXT_FG,
                     lambda _b: open_share(promo, self._share_fallback))

        liked = self.promo_list.likes.is_set(promo.id)
        self._action(actions, 2, "♥" if liked else "♡",
                     LIKE_FG if liked else TEXT_FG,
                     lambda b: self._toggle_like(promo.id, b))

        reminded = self.promo_list.reminders.is_set(promo.id)
        self._action(actions, 3, "\U0001F514", PROMO_ORANGE if reminded else MUTED_FG,
                     lambda b: self._toggle_reminder(promo.id, b))

    def _action(self, parent: tk.Frame, col: int, text: str, fg: str,
                command: Callable[[tk.Label], None]) -> None:
        btn = tk.Label(parent, text=text, font=self.font_icon, bg=CARD_BG, fg=fg,
                       cursor="hand2")
        btn.grid(row=0, column=col)
        btn.bind("<Button-1>", lambda _e: command(btn))

    def _toggle_like(self, promo_id: str, btn: tk.Label) -> None:
        liked = self.promo_list.likes.toggle(promo_id)
        btn.configure(text="♥" if liked else "♡",
                      fg=LIKE_FG if liked else TEXT_FG)

    def _toggle_reminder(self, promo_id: str, btn: tk.Label) -> None:
        reminded = self.promo_list.reminders.toggle(promo_id)
        btn.configure(fg=PROMO_ORANGE if reminded else MUTED_FG)

    # ------------------------------------------------------------------
    # Brand icons — downloaded off the UI thread, cached by URL
    # ------------------------------------------------------------------
    def _icon_for(self, promo: Promotion) -> ImageTk.PhotoImage:
        url = promo.icon_url
        if not url:
            return self._placeholder
        if url in self._icons:
            return self._icons[url]
        if url not in self._icons_pending:
            self._icons_pending.add(url)
            threading.Thread(target=self._load_icon, args=(url,), daemon=True).start()
        return self._placeholder

    def _load_icon(self, url: str) -> None:
        try:
            image = round_icon(self._source.fetch_icon(url))
        except (PromotionSourceError, ValueError) as e:
            logger.debug(f"[CALENDAR] Using placeholder icon for {url}: {e}")
            self._dispatch(lambda: self._icons_pending.discard(url))
            return
        self._dispatch(lambda: self._set_icon(url, image))

    def _set_icon(self, url: str, image) -> None:
        self._icons_pending.discard(url)
        photo = ImageTk.PhotoImage(image)
        self._icons[url] = photo
        for lbl in self._icon_labels.pop(url, []):
            if lbl.winfo_exists():
                lbl.configure(image=photo)

    # ------------------------------------------------------------------
    # Persist window size
    # ------------------------------------------------------------------
    def _persist_size(self) -> None:
        settings = load_settings()
        settings["window_width"] = self._saved_width
        settings["window_height"] = self._saved_height
        save_settings(settings)

    # ------------------------------------------------------------------
    # Show / Hide / Toggle
    # ------------------------------------------------------------------
    def toggle(self) -> None:
        if self.root.state() == "withdrawn" or not self.root.winfo_viewable():
            self.show()
        else:
            self.hide()

    def show(self) -> None:
        self.refresh()
        self.root.deiconify()
        self.root.update_idletasks()
        self._position_window()
        self.root.lift()
        self.root.focus_force()

    def hide(self) -> None:
        if self.root.winfo_viewable():
            self._saved_width = self.root.winfo_width()
            self._saved_height = self.root.winfo_height()
            self._persist_size()
        self.root.withdraw()

    # ------------------------------------------------------------------
    # Position bottom-right above taskbar
    # ------------------------------------------------------------------
    def _work_area(self) -> tuple[int, int]:
        if sys.platform == "win32":
            import ctypes
            import ctypes.wintypes

            rect = ctypes.wintypes.RECT()
            ctypes.windll.user32.SystemParametersInfoW(0x0030, 0, ctypes.byref(rect), 0)
            return rect.right, rect.bottom
        return self.root.winfo_screenwidth(), self.root.winfo_screenheight()

    def _position_window(self) -> None:
        self.root.update_idletasks()
        work_right, work_bottom = self._work_area()

        win_w = self._saved_width or max(WINDOW_WIDTH, self.root.winfo_reqwidth())
        win_h = self._saved_height or self.root.winfo_reqheight()
        win_h = min(win_h, work_bottom - 24)

        x = work_right - win_w - 12
        y = work_bottom - win_h - 12
        self.root.geometry(f"{win_w}x{win_h}+{x}+{y}")
