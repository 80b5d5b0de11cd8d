import os

import pytest

from whale.config import (
    Config, build_exchange, load_env, load_markets, parse_bool, parse_config, parse_interval,
    parse_watchlist,
)
from whale.constants import DEFAULT_COLORS
from whale.errors import ConfigError


class TestParseInterval:

    def test_units(self):
        assert parse_interval("10s", 5) == 10
        assert parse_interval("2m", 5) == 120
        assert parse_interval(" 1H ", 5) == 3600
        assert parse_interval("1d", 5) == 86400

    def test_invalid_falls_back(self, capsys):
        assert parse_interval("soon", 7) == 7
        assert "[warning]" in capsys.readouterr().out

    def test_zero_falls_back(self):
        assert parse_interval("0s", 7) == 7


class TestParseConfig:

    def test_missing_file_uses_defaults(self, tmp_path, capsys):
        cfg = parse_config(str(tmp_path / "config.ini"))
        assert cfg == Config()
        assert "[notice]" in capsys.readouterr().out

    def test_reads_dashboard_and_colors(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text(
            "[dashboard]\n"
            "exchange = stocks\n"
            "price_interval = 30s\n"
            "trend_interval = 5m\n"
            "table_headers = no\n"
            "show_legend = yes\n"
            "default_period = 1h\n"
            "log_level = debug\n"
            "[colors]\n"
            "chart_line = magenta\n"
            "unknown = blue\n"
        )
        cfg = parse_config(str(path))
        assert cfg.exchange == "stocks"
        assert cfg.price_interval == 30 and cfg.trend_interval == 300
        assert cfg.table_headers is False and cfg.show_legend is True
        assert cfg.default_period == "1h"
        assert cfg.log_level == "DEBUG"
        assert cfg.colors["chart_line"] == "magenta"
        assert cfg.colors["border"] == DEFAULT_COLORS["border"]
        assert "unknown" not in cfg.colors

    def test_unknown_exchange(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[dashboard]\nexchange = bittrex\n")
        with pytest.raises(ConfigError):
            parse_config(str(path))

    def test_parse_bool(self):
        assert parse_bool("On", False) is True
        assert parse_bool("0", True) is False
        assert parse_bool("maybe", True) is True


class TestExchange:

    def test_default_period(self):
        exchange = build_exchange(Config(exchange="crypto"))
        assert exchange.initial_period == "1h"
        assert exchange.periods[0] == "1m"

    def test_default_period_override(self):
        exchange = build_exchange(Config(exchange="crypto", default_period="1d"))
        assert exchange.initial_period == "1d"

    def test_default_period_must_be_supported(self):
        with pytest.raises(ConfigError):
            build_exchange(Config(exchange="indices", default_period="1m"))


class TestWatchlist:

    def test_sections(self, tmp_path):
        path = tmp_path / "watchlist.txt"
        path.write_text("# markets\n[crypto]\nX:BTCUSD\nX:ETHUSD\nX:BTCUSD\n[other]\nFOO\n[stocks]\nAAPL\n")
        parsed = parse_watchlist(str(path))
        assert parsed["crypto"] == ["X:BTCUSD", "X:ETHUSD"]
        assert parsed["stocks"] == ["AAPL"]
        assert parsed["indices"] == []

    def test_load_markets_requires_section(self, tmp_path):
        path = tmp_path / "watchlist.txt"
        path.write_text("[stocks]\nAAPL\n")
        with pytest.raises(ConfigError):
            load_markets(build_exchange(Config()), str(path))

    def test_missing_watchlist(self, tmp_path):
        with pytest.raises(ConfigError):
            parse_watchlist(str(tmp_path / "nope.txt"))


class TestEnv:

    def test_load_env_does_not_override(self, tmp_path, monkeypatch):
        path = tmp_path / ".env"
        path.write_text("# comment\nWHALE_TEST_A=one\nWHALE_TEST_B = two\n")
        monkeypatch.setenv("WHALE_TEST_A", "kept")
        monkeypatch.delenv("WHALE_TEST_B", raising=False)
        load_env(str(path))
        assert os.environ["WHALE_TEST_A"] == "kept"
        assert os.environ["WHALE_TEST_B"] == "two"
        monkeypatch.delenv("WHALE_TEST_B")
