from datetime import datetime

from whale.formatting import (
    display_name, fmt_change, fmt_pct, fmt_price, format_current_time, format_period,
    price_rows, trend_label,
)
from whale.models import PriceEntry


class TestFormatting:

    def test_format_period(self):
        assert format_period("1h") == "1 hour"
        assert format_period("15m") == "15 minutes"
        assert format_period("1d") == "1 day"
        assert format_period("4h") == "4 hours"
        assert format_period("7y") == "7y"

    def test_format_current_time(self):
        ts = datetime(2024, 1, 2, 13, 4, 5).timestamp()
        assert format_current_time(ts) == "13:04:05"
        assert format_current_time(None) == "No Data"

    def test_trend_label(self):
        ts_ms = int(datetime(2024, 3, 9, 8, 30).timestamp() * 1000)
        assert trend_label(ts_ms, "1h") == "08:30"
        assert trend_label(ts_ms, "1d") == "03-09"

    def test_price_and_change_styles(self):
        assert fmt_price(1234.5, large=True).plain == "1,234.50"
        assert fmt_price(None).plain == "—"
        up = fmt_change(2.0)
        assert up.plain == "+2.00" and up.style == "green"
        assert fmt_change(-1.25).style == "red"
        assert fmt_pct(-0.5).plain == "-0.50%"

    def test_display_name(self):
        assert display_name("X:BTCUSD") == "BTC/USD"
        assert display_name("AAPL") == "AAPL"

    def test_price_rows(self):
        rows = price_rows([PriceEntry("X:ETHUSD", 2500.0, -10.0, -0.4), PriceEntry("AAPL", None)])
        assert [r[0].plain for r in rows] == ["ETH/USD", "AAPL"]
        assert rows[0][1].plain == "2,500.00"
        assert rows[0][2].plain == "-10.00 -0.40%"
        assert rows[1][1].plain == "—"
