import asyncio

import pytest

from whale import data
from whale.app import DashboardController
from whale.config import Config
from whale.errors import TransportError
from whale.models import Exchange, PriceEntry, TrendSeries
from whale.ui import Screen

MARKETS = ["X:BTCUSD", "X:ETHUSD"]
EXCHANGE = Exchange(key="crypto", name="Crypto", periods=("1h", "1d"), default_period="1h")


class FakeSource:
    """Stands in for whale.data; records calls and fails or stalls on demand."""

    def __init__(self):
        self.calls = []
        self.fail_prices = 0
        self.fail_trends = 0
        self.gates = {}

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)

    async def fetch_current_prices(self, provider, exchange, markets):
        self.calls.append(("price",))
        if self.fail_prices:
            self.fail_prices -= 1
            raise TransportError("prices unavailable", status=503)
        return [PriceEntry(m, 100.0 + i, 1.5, 0.75) for i, m in enumerate(markets)]

    async def fetch_trend(self, provider, exchange, market, period):
        self.calls.append(("trend", market, period))
        gate = self.gates.get(market)
        if gate is not None:
            await gate.wait()
        if self.fail_trends:
            self.fail_trends -= 1
            raise TransportError("trend unavailable")
        return TrendSeries(market, period, [("10:00", 1.0), ("11:00", 2.0), ("12:00", 1.5)])


@pytest.fixture
def source(monkeypatch):
    fake = FakeSource()
    monkeypatch.setattr(data, "fetch_current_prices", fake.fetch_current_prices)
    monkeypatch.setattr(data, "fetch_trend", fake.fetch_trend)
    return fake


def make_controller(price_interval=60, trend_interval=60, screen=None, **config):
    cfg = Config(price_interval=price_interval, trend_interval=trend_interval, **config)
    return DashboardController(cfg, EXCHANGE, MARKETS, provider=None, screen=screen or Screen("test"))


async def started(controller):
    """Start ``controller`` and let the cold fetch settle."""
    controller.start()
    await controller.scheduler.drain()
    return controller


async def settle(controller):
    await asyncio.sleep(0)
    await controller.scheduler.drain()
