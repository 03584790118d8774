"""Entry point — glues pystray (daemon thread) with tkinter (main thread)."""

import ctypes
import threading
from datetime import datetime, timezone

from loguru import logger

from calendar_logic import today_in_zone
from calendar_window import CalendarWindow
from icon_gen import create_icon_image
from log_config import setup_logger
from promo_source import PromotionSource
from settings import get_zone, load_settings
from tray_icon import create_tray


def main() -> None:
    settings = load_settings()
    setup_logger(level=settings["log_level"], log_file=settings["log_file"])

    # DPI awareness so positions / fonts are crisp on Hi-DPI monitors
    windll = getattr(ctypes, "windll", None)
    if windll is not None:
        try:
            windll.shcore.SetProcessDpiAwareness(1)
        except OSError as e:
            logger.debug(f"DPI awareness not available: {e}")

    source = PromotionSource.from_settings(settings)
    if not source.configured:
        logger.warning("Supabase URL/key missing; promotions will not load")

    cal_win = CalendarWindow(source)

    # Callbacks marshalled onto the tkinter main thread
    def on_show() -> None:
        cal_win.root.after(0, cal_win.toggle)

    def on_refresh() -> None:
        cal_win.root.after(0, cal_win.refresh)

    def on_exit() -> None:
        def _quit() -> None:
            tray.stop()
            source.close()
            cal_win.root.destroy()
        cal_win.root.after(0, _quit)

    today = today_in_zone(datetime.now(timezone.utc), get_zone(settings))
    tray = create_tray(create_icon_image(today), today, on_show, on_exit,
                       on_refresh=on_refresh)

    # Run pystray in a daemon thread so it doesn't block tkinter
    tray_thread = threading.Thread(target=tray.run, daemon=True)
    tray_thread.start()

    # tkinter main loop on the main thread
    cal_win.root.mainloop()


if __name__ == "__main__":
    main()
