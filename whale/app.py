import asyncio
import logging
import os
import signal
import sys
import warnings
from typing import Callable, Optional, Sequence

from rich.console import Console

from whale.config import Config, build_exchange, load_env, load_markets, parse_config
from whale.constants import ICON, RESIZE_DEBOUNCE
from whale.errors import ConfigError
from whale.formatting import format_current_time, format_period, price_rows
from whale.keys import InputRouter, KeyReader
from whale.logs import configure_logging
from whale.models import Exchange, FetchKind, FetchResult, Overlay
from whale.overlay import OverlayArbiter
from whale.provider import MassiveProvider
from whale.scheduler import Debouncer, RefreshScheduler
from whale.state import ViewState
from whale.ui import BoxWidget, LineWidget, Screen, TableWidget

log = logging.getLogger(__name__)


class DashboardController:
    """Wires state, scheduler, overlays and input to the screen.

    Every handler runs to completion on the event loop and renders at most one
    frame; while the error overlay is up, refresh results update the state but
    are not drawn until the error is acknowledged.
    """

    def __init__(self, config: Config, exchange: Exchange, markets: Sequence[str],
                 provider, screen: Optional[Screen] = None):
        self.config = config
        self.exchange = exchange
        self.markets = tuple(markets)
        self.state = ViewState(exchange=exchange, markets=self.markets)
        self.arbiter = OverlayArbiter(self.state)
        self.router = InputRouter(self)
        self.screen = screen or Screen(f"{ICON} {exchange.name}")
        self.scheduler = RefreshScheduler(
            provider, exchange, self.markets,
            config.price_interval, config.trend_interval,
            selection=lambda: (self.state.current_market, self.state.current_period),
            is_running=lambda: self.state.running,
            on_started=self._on_fetch_started,
            on_result=self._on_fetch_result,
            on_fatal=self._on_fatal,
        )
        self.resize = Debouncer(RESIZE_DEBOUNCE, self._guard(self.rebuild))
        self.exit_code: Optional[int] = None
        self._exit: Optional[asyncio.Future] = None
        self._reader: Optional[KeyReader] = None

        self.table: TableWidget
        self.line: LineWidget
        self.log_box: BoxWidget
        self.error_box: BoxWidget
        self.help_box: BoxWidget

    # -- Setup -----------------------------------------------------------

    def build_widgets(self):
        colors = self.config.colors
        previous = getattr(self, "table", None)
        grid = self.screen.reset(12, 12)

        self.table = grid.set(0, 0, 4, 12, TableWidget(
            label=f" {ICON}  {self.exchange.name} -- Current Price -- (No Data) ",
            border=colors["border"],
            fg=colors["table_fg"],
            selected_fg=colors["table_selected_fg"],
            selected_bg=colors["table_selected_bg"],
        ))
        if previous is not None:
            self.table.selected = previous.selected
        self.table.on_select(self._guard(self.router.on_row_selected))

        self.line = grid.set(4, 0, 8, 12, LineWidget(
            label=f" {self.state.current_market} -- Price Trend -- (No Data) ",
            border=colors["border"],
            text_color=colors["chart_text"],
            baseline_color=colors["chart_baseline"],
            show_legend=self.config.show_legend,
        ))

        self.log_box = self.screen.append(BoxWidget(
            label=" Log ", border=colors["log_border"], fg=colors["log_fg"],
            position="bottom", width=0.5, height=0.2))
        self.error_box = self.screen.append(BoxWidget(
            label=" Error -- Press Enter to close ", border="red", fg="red",
            position="center", width=0.5, height=0.5, align="center"))
        self.help_box = self.screen.append(BoxWidget(
            label=" Help ", border=colors["border"], position="center", width=0.8, height=0.5))
        self.draw_help()

        self.state.table_dirty = self.state.chart_dirty = True
        self.sync_widgets()
        self.sync_overlays()

    def draw_help(self):
        text = "PriceTrend interval: [key] interval\n"
        text += " ".join(f"[{i}] {p}" for i, p in enumerate(self.exchange.periods, start=1))
        text += "\n\n[↑/↓] move  [enter] show trend  [?] help  [q] quit"
        self.help_box.set_content(text)

    def start(self):
        """Build the view, bind input, start timers and the cold fetch."""
        self.build_widgets()
        self.router.bind(self.screen)
        self.screen.on_resize(self.resize.trigger)
        self.scheduler.start()
        self.scheduler.cold_start()

    # -- Drawing ---------------------------------------------------------

    def render(self):
        if self.scheduler.closed:
            return
        self.screen.render()

    def sync_widgets(self):
        if self.state.table_dirty:
            self.update_table()
        if self.state.chart_dirty:
            self.update_line()

    def update_table(self):
        self.state.table_dirty = False
        if not self.state.running:
            return
        self.table.set_data({
            "headers": ["Market", "Price", "Change"] if self.config.table_headers else [],
            "data": price_rows(self.state.prices),
        })
        last_update = format_current_time(self.state.last_update)
        self.table.set_label(f" {ICON}  {self.exchange.name} -- Current Price -- ({last_update}) ")
        if not self.arbiter.blocking:
            self.table.focus()

    def update_line(self):
        self.state.chart_dirty = False
        trend = self.state.trend
        if not self.state.running or trend is None:
            return
        self.line.set_data({
            "title": trend.market,
            "x": trend.labels,
            "y": trend.closes,
            "style": {"line": self.config.colors["chart_line"]},
        })
        self.line.set_label(f" {trend.market} -- Price Trend -- {format_period(trend.period)} ")

    def sync_overlays(self):
        active = self.arbiter.active
        self.log_box.set_content(self.state.log_message)
        self.error_box.set_content(self.state.error_message)
        for box, kind in ((self.log_box, Overlay.LOG), (self.error_box, Overlay.ERROR),
                          (self.help_box, Overlay.HELP)):
            if active == kind:
                box.show()
            else:
                box.hide()
        if active == Overlay.ERROR:
            self.table.blur()
            self.error_box.focus()
        else:
            self.error_box.blur()

    # -- Fetch results ---------------------------------------------------

    def _on_fetch_started(self, kind: FetchKind, message: str):
        log.debug("%s fetch issued: %s", kind.value, message)
        if self.arbiter.fetch_started(message) or self.arbiter.active == Overlay.LOG:
            self.sync_overlays()
            self.render()

    def _on_fetch_result(self, result: FetchResult):
        was_blocking = self.arbiter.blocking
        self.arbiter.fetch_finished()

        if not result.ok:
            self._on_fetch_error(result)
        elif result.kind == FetchKind.COLD:
            self.state.set_price_snapshot(result.prices, result.timestamp)
            self.state.set_trend_snapshot(result.trend)
            self.state.mark_running()
        elif result.kind == FetchKind.PRICE:
            self.state.set_price_snapshot(result.prices, result.timestamp)
        else:
            self.state.set_trend_snapshot(result.trend)

        self.sync_widgets()
        self.sync_overlays()
        if was_blocking and result.ok:
            log.debug("%s result held back by error overlay", result.kind.value)
            return
        self.render()

    def _on_fetch_error(self, result: FetchResult):
        message = result.error.describe()
        log.warning("%s fetch failed: %s", result.kind.value, result.error)
        retry = self.scheduler.cold_start if result.kind == FetchKind.COLD else None
        self.arbiter.raise_error(message, on_dismiss=retry)

    # -- Input actions ---------------------------------------------------

    def handle_key(self, key: str):
        self._guard(self.screen.dispatch_key)(key)

    def acknowledge_error(self):
        callback = self.arbiter.acknowledge()
        self.table.focus()
        frames = self.screen.frames
        if callback is not None:
            log.info("running error callback %s", getattr(callback, "__name__", callback))
            callback()
        # the callback may already have drawn the log overlay
        if self.screen.frames == frames:
            self.sync_overlays()
            self.render()

    def toggle_help(self):
        if self.arbiter.toggle_help():
            self.sync_overlays()
            self.render()

    def close_help(self):
        self.arbiter.close_help()
        self.sync_overlays()
        self.render()

    def move_cursor(self, delta: int):
        self.table.move(delta)
        self.render()

    def select_period(self, period: str):
        self.state.select_period(period)
        self.scheduler.fetch_trend()

    def select_market(self, market: str):
        self.state.select_market(market)
        self.scheduler.fetch_trend()

    def rebuild(self):
        """Recreate timers and widgets from the current state, without refetching."""
        log.info("rebuilding dashboard (%s, %s)", self.state.current_market, self.state.current_period)
        self.scheduler.reschedule(self.config.price_interval, self.config.trend_interval)
        self.build_widgets()
        self.render()

    # -- Lifecycle -------------------------------------------------------

    def quit(self, code: int = 0):
        self.scheduler.close()
        self.resize.cancel()
        if self.exit_code is None:
            self.exit_code = code
        if self._exit is not None and not self._exit.done():
            self._exit.set_result(self.exit_code)

    def _on_fatal(self, exc: BaseException):
        log.error("fatal error, exiting", exc_info=(type(exc), exc, exc.__traceback__))
        self.quit(1)

    def _guard(self, fn: Callable) -> Callable:
        """Wrap an event-loop callback so that unexpected errors end the process."""
        def guarded(*args):
            try:
                return fn(*args)
            except Exception as e:
                self._on_fatal(e)
        return guarded

    async def run(self) -> int:
        loop = asyncio.get_running_loop()
        self._exit = loop.create_future()
        self._reader = KeyReader(self.handle_key)
        self.screen.start()
        try:
            self._reader.start()
            loop.add_signal_handler(signal.SIGWINCH, self._guard(self.screen.notify_resize))
            loop.add_signal_handler(signal.SIGINT, self._guard(lambda: self.handle_key("C-c")))
            self.start()
            return await self._exit
        finally:
            self.scheduler.close()
            self.resize.cancel()
            loop.remove_signal_handler(signal.SIGWINCH)
            loop.remove_signal_handler(signal.SIGINT)
            self._reader.stop()
            self.screen.stop()


def main():
    load_env()

    try:
        config = parse_config()
        exchange = build_exchange(config)
        markets = load_markets(exchange)
    except ConfigError as e:
        print(f"[error] {e}")
        sys.exit(1)

    api_key = os.environ.get("MASSIVE_API_KEY")
    if not api_key:
        print("[error] MASSIVE_API_KEY environment variable not set.")
        print("  export MASSIVE_API_KEY='your_key'")
        sys.exit(1)

    log_path = configure_logging(config.log_level, config.log_file)
    print(f"[whale] Refresh: {config.price_interval}s prices, {config.trend_interval}s trend")
    print(f"[whale] Watching {len(markets)} {exchange.name} markets, logging to {log_path}")

    # Suppress urllib3 SSL warning for LibreSSL
    warnings.filterwarnings("ignore", message=".*urllib3.*OpenSSL.*")

    controller = DashboardController(config, exchange, markets, MassiveProvider(api_key))
    code = asyncio.run(controller.run())

    Console().clear()
    print("[whale] Goodbye." if code == 0 else f"[whale] Exited with errors, see {log_path}")
    sys.exit(code)
