from datetime import datetime
from typing import List, Optional, Sequence

from rich.text import Text

from whale.constants import DISPLAY_NAMES, PERIODS
from whale.models import PriceEntry


def fmt_price(val: Optional[float], large: bool = False, style: str = "cyan") -> Text:
    if val is None:
        return Text("—", style="dim")
    if large:
        return Text(f"{val:,.2f}", style=style)
    return Text(f"{val:.2f}", style=style)


def fmt_change(val: Optional[float], large: bool = False) -> Text:
    if val is None:
        return Text("—", style="dim")
    sign = "+" if val >= 0 else ""
    s = f"{sign}{val:,.2f}" if large else f"{sign}{val:.2f}"
    style = "green" if val >= 0 else "red"
    return Text(s, style=style)


def fmt_pct(val: Optional[float]) -> Text:
    if val is None:
        return Text("—", style="dim")
    sign = "+" if val >= 0 else ""
    style = "green" if val >= 0 else "red"
    return Text(f"{sign}{val:.2f}%", style=style)


def display_name(ticker: str) -> str:
    return DISPLAY_NAMES.get(ticker, ticker)


def format_period(period: str) -> str:
    """'1h' -> '1 hour', '15m' -> '15 minutes'. Unknown labels pass through."""
    entry = PERIODS.get(period)
    if entry is None:
        return period
    multiplier, timespan, _ = entry
    return f"{multiplier} {timespan}" if multiplier == 1 else f"{multiplier} {timespan}s"


def format_current_time(ts: Optional[float]) -> str:
    if ts is None:
        return "No Data"
    return datetime.fromtimestamp(ts).strftime("%H:%M:%S")


def trend_label(ts_ms: int, period: str) -> str:
    """Axis label for an aggregate bar: time of day for intraday periods, date otherwise."""
    dt = datetime.fromtimestamp(ts_ms / 1000)
    timespan = PERIODS[period][1] if period in PERIODS else "day"
    if timespan in ("minute", "hour"):
        return dt.strftime("%H:%M")
    return dt.strftime("%m-%d")


def price_rows(entries: Sequence[PriceEntry], large: bool = True) -> List[List[Text]]:
    """Convert price entries into table rows of [market, price, change]."""
    rows = []
    for entry in entries:
        chg = entry.change
        style = "green" if chg is not None and chg >= 0 else "red" if chg is not None else "cyan"
        change = fmt_change(chg, large=large)
        if entry.change_pct is not None:
            change.append(" ")
            change.append_text(fmt_pct(entry.change_pct))
        rows.append([
            Text(display_name(entry.market), style="bold white"),
            fmt_price(entry.price, large=large, style=style),
            change,
        ])
    return rows
