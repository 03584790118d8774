"""User-visible strings (Traditional Chinese)."""

APP_TITLE = "優惠日曆"
LOADING = "載入中..."
EMPTY_DAY = "今日無優惠活動"
LOAD_ERROR = "無法載入優惠活動"
SHARE_PERIOD = "活動期間："

# Tray menu
MENU_SHOW = "顯示日曆"
MENU_REFRESH = "重新整理"
MENU_EXIT = "結束"
