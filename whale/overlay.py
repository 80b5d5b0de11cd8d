import logging
from typing import Callable, Optional

from whale.models import Overlay
from whale.state import ViewState

log = logging.getLogger(__name__)


class OverlayArbiter:
    """Decides which overlay is active and whether input may reach the view.

    Precedence is error > help > log > none. The log overlay tracks the number
    of outstanding fetches and clears when the last one completes.
    """

    def __init__(self, state: ViewState):
        self.state = state
        self._pending_fetches = 0

    @property
    def active(self) -> Overlay:
        return self.state.active_overlay

    @property
    def blocking(self) -> bool:
        """True while the error overlay holds input and refresh rendering."""
        return self.active == Overlay.ERROR

    # -- Log -------------------------------------------------------------

    def fetch_started(self, message: str) -> bool:
        """Record an issued fetch. Returns True if the log overlay became visible."""
        self._pending_fetches += 1
        self.state.log_message = message
        if self.active in (Overlay.NONE, Overlay.LOG):
            self.state.show_overlay(Overlay.LOG)
            return True
        return False

    def fetch_finished(self) -> bool:
        """Record a completed fetch. Returns True if the log overlay was hidden."""
        self._pending_fetches = max(0, self._pending_fetches - 1)
        if self._pending_fetches == 0:
            self.state.log_message = ""
            if self.active == Overlay.LOG:
                self.state.hide_overlay(Overlay.LOG)
                return True
        return False

    # -- Error -----------------------------------------------------------

    def raise_error(self, message: str, on_dismiss: Optional[Callable[[], None]] = None):
        """Show the error overlay, replacing whatever is visible."""
        if self.active == Overlay.ERROR:
            log.debug("error overlay already visible; replacing message")
        self.state.error_message = message
        if on_dismiss is not None:
            self.state.on_error_dismiss = on_dismiss
        self.state.show_overlay(Overlay.ERROR)
        log.warning("error overlay: %s", message)

    def acknowledge(self) -> Optional[Callable[[], None]]:
        """Close the error overlay and hand back its pending callback, if any."""
        if self.active != Overlay.ERROR:
            return None
        callback = self.state.on_error_dismiss
        self.state.on_error_dismiss = None
        self.state.error_message = ""
        self.state.hide_overlay(Overlay.ERROR)
        if self._pending_fetches:
            self.state.show_overlay(Overlay.LOG)
        return callback

    # -- Help ------------------------------------------------------------

    def toggle_help(self) -> bool:
        """Toggle help unless an error is showing. Returns True if anything changed."""
        if self.blocking:
            return False
        if self.active == Overlay.HELP:
            self.close_help()
        else:
            self.state.show_overlay(Overlay.HELP)
        return True

    def close_help(self):
        self.state.hide_overlay(Overlay.HELP)
        if self._pending_fetches:
            self.state.show_overlay(Overlay.LOG)
