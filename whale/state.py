import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from whale.errors import InternalError
from whale.models import Exchange, Overlay, PriceEntry, TrendSeries

log = logging.getLogger(__name__)


@dataclass
class ViewState:
    """Everything the dashboard shows, owned by the controller.

    Mutators enforce the selection invariants and raise ``InternalError`` when
    asked to select something outside the configured markets or periods.
    """

    exchange: Exchange
    markets: Sequence[str]
    current_market: str = ""
    current_period: str = ""

    prices: List[PriceEntry] = field(default_factory=list)
    trend: Optional[TrendSeries] = None
    last_update: Optional[float] = None
    running: bool = False

    overlay: Overlay = Overlay.NONE
    log_message: str = ""
    error_message: str = ""
    on_error_dismiss: Optional[Callable[[], None]] = None

    table_dirty: bool = False
    chart_dirty: bool = False

    def __post_init__(self):
        if not self.markets:
            raise InternalError("at least one market is required")
        self.markets = tuple(self.markets)
        if not self.current_market:
            self.current_market = self.markets[0]
        if not self.current_period:
            self.current_period = self.exchange.initial_period
        self._check_market(self.current_market)
        self._check_period(self.current_period)

    def _check_market(self, name: str):
        if name not in self.markets:
            raise InternalError(f"unknown market {name!r}")

    def _check_period(self, period: str):
        if period not in self.exchange.periods:
            raise InternalError(f"unsupported period {period!r} for {self.exchange.name}")

    # -- Data ------------------------------------------------------------

    def set_price_snapshot(self, entries: Sequence[PriceEntry], timestamp: float):
        self.prices = list(entries)
        self.last_update = timestamp
        self.table_dirty = True

    def set_trend_snapshot(self, series: TrendSeries) -> bool:
        """Store ``series`` unless it describes a market/period no longer selected."""
        if series.market != self.current_market or series.period != self.current_period:
            log.info("discarding stale trend for %s (%s); showing %s (%s)",
                     series.market, series.period, self.current_market, self.current_period)
            return False
        self.trend = series
        self.chart_dirty = True
        return True

    # -- Selection -------------------------------------------------------

    def select_market(self, name: str):
        self._check_market(name)
        self.current_market = name

    def select_period(self, period: str):
        self._check_period(period)
        self.current_period = period

    def market_at(self, idx: int) -> Optional[str]:
        """Market shown on table row ``idx``, if any."""
        if 0 <= idx < len(self.prices):
            name = self.prices[idx].market
            if name in self.markets:
                return name
        return None

    def mark_running(self):
        if not self.running:
            log.info("dashboard running")
        self.running = True

    # -- Overlays (raw; precedence lives in OverlayArbiter) --------------

    @property
    def active_overlay(self) -> Overlay:
        return self.overlay

    def show_overlay(self, kind: Overlay):
        self.overlay = kind

    def hide_overlay(self, kind: Overlay):
        if self.overlay == kind:
            self.overlay = Overlay.NONE
