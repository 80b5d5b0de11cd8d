import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Set, Tuple

from whale import data
from whale.errors import TransportError
from whale.formatting import format_period
from whale.models import Exchange, FetchKind, FetchResult

log = logging.getLogger(__name__)


class PeriodicTimer:
    """Calls ``callback`` every ``interval`` seconds from an asyncio task."""

    def __init__(self, name: str, interval: float, callback: Callable[[], None],
                 on_error: Optional[Callable[[BaseException], None]] = None):
        self.name = name
        self.interval = interval
        self._callback = callback
        self._on_error = on_error
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=f"timer:{self.name}")
        self._task.add_done_callback(self._done)

    def cancel(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval)
            self._callback()

    def _done(self, task: asyncio.Task):
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and self._on_error is not None:
            self._on_error(exc)


class Debouncer:
    """Coalesces bursts of ``trigger()`` calls into one trailing call of ``fn``."""

    def __init__(self, delay: float, fn: Callable[[], None]):
        self.delay = delay
        self._fn = fn
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self):
        self.cancel()
        self._handle = asyncio.get_running_loop().call_later(self.delay, self._fire)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        self._handle = None
        self._fn()


class RefreshScheduler:
    """Owns the price/trend timers and issues every data-source request.

    Each request reports ``on_started(kind, message)`` before suspending and
    delivers a ``FetchResult`` to ``on_result`` when it finishes. Transport
    failures become failed results; any other exception escapes to
    ``on_fatal``.
    """

    def __init__(self, provider, exchange: Exchange, markets,
                 price_interval: float, trend_interval: float,
                 selection: Callable[[], Tuple[str, str]],
                 is_running: Callable[[], bool],
                 on_started: Callable[[FetchKind, str], None],
                 on_result: Callable[[FetchResult], None],
                 on_fatal: Callable[[BaseException], None]):
        self.provider = provider
        self.exchange = exchange
        self.markets = tuple(markets)
        self._selection = selection
        self._is_running = is_running
        self._on_started = on_started
        self._on_result = on_result
        self._on_fatal = on_fatal
        self.timers = {
            FetchKind.PRICE: PeriodicTimer("price", price_interval,
                                           lambda: self.tick(FetchKind.PRICE), on_fatal),
            FetchKind.TREND: PeriodicTimer("trend", trend_interval,
                                           lambda: self.tick(FetchKind.TREND), on_fatal),
        }
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    # -- Timers ----------------------------------------------------------

    def start(self):
        for timer in self.timers.values():
            timer.start()

    def cancel(self):
        for timer in self.timers.values():
            timer.cancel()

    def reschedule(self, price_interval: float, trend_interval: float):
        self.cancel()
        self.timers[FetchKind.PRICE].interval = price_interval
        self.timers[FetchKind.TREND].interval = trend_interval
        if not self._closed:
            self.start()

    def close(self):
        """Stop timers; results of requests still in flight are dropped."""
        self._closed = True
        self.cancel()

    @property
    def closed(self) -> bool:
        return self._closed

    # -- Requests --------------------------------------------------------

    def cold_start(self):
        market, period = self._selection()
        self._issue(FetchKind.COLD, "Fetching initial data...",
                    self._cold(market, period))

    def tick(self, kind: FetchKind):
        if not self._is_running():
            return
        if kind == FetchKind.PRICE:
            self._issue(kind, "Fetching current prices...", self._prices())
        else:
            self.fetch_trend()

    def fetch_trend(self):
        """Trend request for the current selection, outside the timer cadence."""
        if not self._is_running():
            return
        market, period = self._selection()
        self._issue(FetchKind.TREND,
                    f"Fetching {market} price trend... (i:{format_period(period)})",
                    self._trend(market, period))

    def _issue(self, kind: FetchKind, message: str, coro: Awaitable[FetchResult]):
        if self._closed:
            coro.close()
            return
        self._on_started(kind, message)
        task = asyncio.get_running_loop().create_task(self._run(kind, coro), name=f"fetch:{kind.value}")
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    async def _run(self, kind: FetchKind, coro: Awaitable[FetchResult]) -> Optional[FetchResult]:
        try:
            result = await coro
        except TransportError as e:
            result = FetchResult(kind=kind, error=e)
        if self._closed:
            log.debug("dropping %s result after close", kind.value)
            return None
        self._on_result(result)
        return result

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._on_fatal(exc)

    async def _cold(self, market: str, period: str) -> FetchResult:
        prices, trend = await data.fetch_all(self.provider, self.exchange, self.markets, market, period)
        return FetchResult(kind=FetchKind.COLD, prices=prices, trend=trend, timestamp=time.time())

    async def _prices(self) -> FetchResult:
        prices = await data.fetch_current_prices(self.provider, self.exchange, self.markets)
        return FetchResult(kind=FetchKind.PRICE, prices=prices, timestamp=time.time())

    async def _trend(self, market: str, period: str) -> FetchResult:
        trend = await data.fetch_trend(self.provider, self.exchange, market, period)
        return FetchResult(kind=FetchKind.TREND, trend=trend, timestamp=time.time())

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def drain(self):
        """Wait for every outstanding request to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
