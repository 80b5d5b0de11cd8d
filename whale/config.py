import configparser
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from whale.constants import (
    CONFIG_PATH, WATCHLIST_PATH, ENV_PATH, DEFAULT_LOG_FILE,
    DEFAULT_PRICE_INTERVAL, DEFAULT_TREND_INTERVAL,
    EXCHANGES, DEFAULT_EXCHANGE, DEFAULT_COLORS, PERIODS,
)
from whale.errors import ConfigError
from whale.models import Exchange


def parse_interval(value: str, default: int) -> int:
    """Convert interval string like '10s', '1m', '5m', '1h', '1d' to seconds."""
    value = value.strip().lower()
    m = re.match(r"^(\d+)\s*(s|m|h|d)$", value)
    if not m:
        print(f"[warning] Invalid interval '{value}', using {default}s")
        return default
    num, unit = int(m.group(1)), m.group(2)
    if num == 0:
        print(f"[warning] Interval '{value}' must be positive, using {default}s")
        return default
    multipliers = {"s": 1, "m": 60, "h": 3600, "d": 86400}
    return num * multipliers[unit]


def parse_bool(value: str, default: bool) -> bool:
    value = value.strip().lower()
    if value in ("1", "yes", "true", "on"):
        return True
    if value in ("0", "no", "false", "off"):
        return False
    print(f"[warning] Invalid boolean '{value}', using {default}")
    return default


@dataclass(frozen=True)
class Config:
    exchange: str = DEFAULT_EXCHANGE
    price_interval: int = DEFAULT_PRICE_INTERVAL
    trend_interval: int = DEFAULT_TREND_INTERVAL
    table_headers: bool = True
    show_legend: bool = False
    default_period: Optional[str] = None
    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))
    log_level: str = "INFO"
    log_file: str = DEFAULT_LOG_FILE


def parse_config(path: str = CONFIG_PATH) -> Config:
    """Read config.ini and return a Config object."""
    if not os.path.exists(path):
        print("[notice] config.ini not found, using defaults")
        return Config()

    cfg = configparser.RawConfigParser()
    cfg.read(path)
    sect = cfg["dashboard"] if "dashboard" in cfg else {}

    exchange = sect.get("exchange", DEFAULT_EXCHANGE).strip().lower()
    if exchange not in EXCHANGES:
        raise ConfigError(f"unknown exchange '{exchange}' (choose from {', '.join(EXCHANGES)})")

    colors = dict(DEFAULT_COLORS)
    if "colors" in cfg:
        for key, val in cfg["colors"].items():
            if key in colors and val.strip():
                colors[key] = val.strip()

    default_period = sect.get("default_period", "").strip() or None

    return Config(
        exchange=exchange,
        price_interval=parse_interval(sect.get("price_interval", "10s"), DEFAULT_PRICE_INTERVAL),
        trend_interval=parse_interval(sect.get("trend_interval", "1m"), DEFAULT_TREND_INTERVAL),
        table_headers=parse_bool(sect.get("table_headers", "true"), True),
        show_legend=parse_bool(sect.get("show_legend", "false"), False),
        default_period=default_period,
        colors=colors,
        log_level=sect.get("log_level", "INFO").strip().upper(),
        log_file=sect.get("log_file", DEFAULT_LOG_FILE).strip() or DEFAULT_LOG_FILE,
    )


def build_exchange(config: Config) -> Exchange:
    """Resolve the configured exchange, applying a default_period override."""
    name, periods, default = EXCHANGES[config.exchange]
    unsupported = [p for p in periods if p not in PERIODS]
    if unsupported:
        raise ConfigError(f"{name}: unsupported periods {unsupported}")
    if config.default_period is not None:
        if config.default_period not in periods:
            raise ConfigError(f"{name}: default_period '{config.default_period}' "
                              f"not in {', '.join(periods)}")
        default = config.default_period
    return Exchange(key=config.exchange, name=name, periods=tuple(periods), default_period=default)


def parse_watchlist(path: str = WATCHLIST_PATH) -> Dict[str, List[str]]:
    """Parse a watchlist file into {section: [tickers]} for every known exchange."""
    result: Dict[str, List[str]] = {key: [] for key in EXCHANGES}
    if not os.path.exists(path):
        raise ConfigError(f"{path} not found")

    current_section = None
    with open(path, "r") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("[") and line.endswith("]"):
                section = line[1:-1].lower()
                current_section = section if section in result else None
                continue
            if current_section and line not in result[current_section]:
                result[current_section].append(line)
    return result


def load_markets(exchange: Exchange, path: str = WATCHLIST_PATH) -> List[str]:
    markets = parse_watchlist(path)[exchange.key]
    if not markets:
        raise ConfigError(f"watchlist has no [{exchange.key}] markets")
    return markets


def load_env(path: str = ENV_PATH):
    """Load KEY=VALUE lines from a .env file without overriding the environment."""
    if not os.path.exists(path):
        return
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, val = line.partition("=")
                os.environ.setdefault(key.strip(), val.strip())
