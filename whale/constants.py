import os

# Project root: parent of the whale/ package directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.ini")
WATCHLIST_PATH = os.path.join(PROJECT_ROOT, "watchlist.txt")
ENV_PATH = os.path.join(PROJECT_ROOT, ".env")
DEFAULT_LOG_FILE = "whale.log"

DEFAULT_PRICE_INTERVAL = 10
DEFAULT_TREND_INTERVAL = 60

RESIZE_DEBOUNCE = 0.36
MAX_TREND_POINTS = 60

ICON = "\U0001f433"

DISPLAY_NAMES = {
    "I:SPX": "S&P 500",
    "I:DJI": "Dow Jones",
    "I:NDX": "Nasdaq 100",
    "I:VIX": "VIX",
    "X:BTCUSD": "BTC/USD",
    "X:ETHUSD": "ETH/USD",
    "X:SOLUSD": "SOL/USD",
    "X:XRPUSD": "XRP/USD",
    "X:LTCUSD": "LTC/USD",
    "X:DOGEUSD": "DOGE/USD",
}

# Period label -> (multiplier, timespan, lookback in seconds)
PERIODS = {
    "1m":  (1, "minute", 2 * 3600),
    "5m":  (5, "minute", 8 * 3600),
    "15m": (15, "minute", 24 * 3600),
    "30m": (30, "minute", 2 * 86400),
    "1h":  (1, "hour", 4 * 86400),
    "4h":  (4, "hour", 14 * 86400),
    "1d":  (1, "day", 90 * 86400),
    "1w":  (1, "week", 2 * 365 * 86400),
}

# Exchange key -> (display name, periods, default period)
EXCHANGES = {
    "crypto":  ("Crypto", ("1m", "5m", "15m", "1h", "4h", "1d"), "1h"),
    "stocks":  ("Stocks", ("5m", "15m", "1h", "1d", "1w"), "1d"),
    "indices": ("Indices", ("15m", "1h", "1d", "1w"), "1d"),
}

DEFAULT_EXCHANGE = "crypto"

DEFAULT_COLORS = {
    "border": "grey70",
    "table_fg": "white",
    "table_selected_fg": "black",
    "table_selected_bg": "cyan",
    "chart_baseline": "gray",
    "chart_text": "white",
    "chart_line": "cyan",
    "log_fg": "green",
    "log_border": "green",
}
