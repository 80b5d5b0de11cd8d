import asyncio
import logging
import os
import sys
from typing import Callable, List, Optional

from whale.models import Overlay

log = logging.getLogger(__name__)

_ESCAPES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
}

_SINGLE = {
    "\r": "enter",
    "\n": "enter",
    "\x03": "C-c",
    "\x1b": "escape",
}


def _sequence_end(chunk: str, start: int) -> int:
    """Index just past the CSI/SS3 sequence beginning at ``start``."""
    i = start + 2
    while i < len(chunk):
        if "@" <= chunk[i] <= "~":
            return i + 1
        i += 1
    return i


def parse_keys(chunk: str) -> List[str]:
    """Split raw terminal input into key names ('q', 'enter', 'up', 'escape', ...).

    CSI and SS3 sequences are consumed whole; ones without a name (Home,
    PgUp, F-keys, ...) are dropped rather than read as escape.
    """
    keys = []
    i = 0
    while i < len(chunk):
        if chunk[i] == "\x1b" and chunk[i + 1:i + 2] in ("[", "O"):
            end = _sequence_end(chunk, i)
            seq = chunk[i:end]
            if seq in _ESCAPES:
                keys.append(_ESCAPES[seq])
            else:
                log.debug("ignoring escape sequence %r", seq)
            i = end
            continue
        ch = chunk[i]
        keys.append(_SINGLE.get(ch, ch))
        i += 1
    return keys


class KeyReader:
    """Feeds stdin keystrokes to ``on_key`` from the event loop (cbreak mode)."""

    def __init__(self, on_key: Callable[[str], None], stream=None):
        self._on_key = on_key
        self._stream = stream or sys.stdin
        self._fd: Optional[int] = None
        self._old_settings = None

    def start(self):
        import termios
        import tty

        fd = self._stream.fileno()
        self._old_settings = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        asyncio.get_running_loop().add_reader(fd, self._readable)
        self._fd = fd

    def stop(self):
        if self._fd is None:
            return
        import termios

        asyncio.get_running_loop().remove_reader(self._fd)
        termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)
        self._fd = None

    def _readable(self):
        chunk = os.read(self._fd, 64).decode("utf-8", errors="ignore")
        for key in parse_keys(chunk):
            self._on_key(key)


class InputRouter:
    """Binds keys on the screen and decides which of them may act right now.

    Quit and error acknowledgement are always live; everything else waits for
    the dashboard to be running and for the error overlay to be dismissed.
    """

    QUIT_KEYS = ("escape", "q", "C-c")
    HELP_KEYS = ("?",)
    ENTER_KEYS = ("enter",)
    UP_KEYS = ("up", "k")
    DOWN_KEYS = ("down", "j")

    def __init__(self, controller):
        self.controller = controller

    @property
    def period_keys(self) -> List[str]:
        return [str(i + 1) for i in range(len(self.controller.exchange.periods))]

    def bind(self, screen):
        screen.on_key(self.QUIT_KEYS, self.on_quit)
        screen.on_key(self.HELP_KEYS, self.on_help)
        screen.on_key(self.ENTER_KEYS, self.on_enter)
        screen.on_key(self.UP_KEYS, lambda key: self.on_move(-1))
        screen.on_key(self.DOWN_KEYS, lambda key: self.on_move(1))
        screen.on_key(self.period_keys, self.on_period_key)

    def _live(self) -> bool:
        c = self.controller
        return c.state.running and c.arbiter.active != Overlay.ERROR

    def on_quit(self, key: str = "q"):
        c = self.controller
        if c.arbiter.active == Overlay.HELP:
            c.close_help()
            return
        c.quit(0)

    def on_help(self, key: str = "?"):
        self.controller.toggle_help()

    def on_enter(self, key: str = "enter"):
        c = self.controller
        if c.arbiter.active == Overlay.ERROR:
            c.acknowledge_error()
        elif self._live():
            c.table.select()

    def on_move(self, delta: int):
        if self._live():
            self.controller.move_cursor(delta)

    def on_period_key(self, key: str):
        if not self._live():
            return
        periods = self.controller.exchange.periods
        idx = int(key) - 1
        if 0 <= idx < len(periods):
            self.controller.select_period(periods[idx])

    def on_row_selected(self, idx: int):
        if not self._live():
            return
        market = self.controller.state.market_at(idx)
        if market is None:
            log.debug("row %d does not map to a market", idx)
            return
        self.controller.select_market(market)
