"""System-tray icon setup via pystray."""

from datetime import date
from typing import Callable

import pystray
from PIL import Image
from pystray import MenuItem, Menu

from strings import APP_TITLE, MENU_EXIT, MENU_REFRESH, MENU_SHOW


def tray_title(today: date) -> str:
    return f"{APP_TITLE} – {today.year}/{today.month}/{today.day}"


def create_tray(
    icon_image: Image.Image,
    today: date,
    on_show: Callable[[], None],
    on_exit: Callable[[], None],
    on_refresh: Callable[[], None] | None = None,
) -> pystray.Icon:
    """Build and return a pystray Icon (not yet started)."""
    items: list[MenuItem | Menu] = [
        MenuItem(MENU_SHOW, lambda _icon, _item: on_show(), default=True),
    ]
    if on_refresh is not None:
        items.append(MenuItem(MENU_REFRESH, lambda _icon, _item: on_refresh()))
    items.append(Menu.SEPARATOR)
    items.append(MenuItem(MENU_EXIT, lambda _icon, _item: on_exit()))
    return pystray.Icon("promo-calendar", icon_image, tray_title(today), Menu(*items))
