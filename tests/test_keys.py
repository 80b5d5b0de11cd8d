from unittest.mock import MagicMock

from whale.keys import InputRouter, parse_keys
from whale.models import Overlay


class TestParseKeys:

    def test_plain_characters(self):
        assert parse_keys("q?1") == ["q", "?", "1"]

    def test_control_keys(self):
        assert parse_keys("\r\n\x03") == ["enter", "enter", "C-c"]

    def test_arrow_sequences(self):
        assert parse_keys("\x1b[A\x1b[Bj") == ["up", "down", "j"]

    def test_lone_escape(self):
        assert parse_keys("\x1b") == ["escape"]

    def test_home_and_page_up_are_dropped(self):
        assert parse_keys("\x1b[H") == []
        assert parse_keys("\x1b[5~") == []

    def test_unknown_sequences_keep_neighbours(self):
        assert parse_keys("j\x1b[1;5A\x1bOPk\x1bOB") == ["j", "k", "down"]


def make_router(running=True, overlay=Overlay.NONE):
    controller = MagicMock()
    controller.exchange.periods = ("1h", "1d")
    controller.state.running = running
    controller.state.market_at.side_effect = lambda idx: ["A", "B"][idx] if idx < 2 else None
    controller.arbiter.active = overlay
    return InputRouter(controller), controller


class TestInputRouter:

    def test_binds_period_keys_positionally(self):
        router, _ = make_router()
        assert router.period_keys == ["1", "2"]

    def test_period_key(self):
        router, controller = make_router()
        router.on_period_key("2")
        controller.select_period.assert_called_once_with("1d")

    def test_period_key_before_running(self):
        router, controller = make_router(running=False)
        router.on_period_key("1")
        controller.select_period.assert_not_called()

    def test_enter_acknowledges_error(self):
        router, controller = make_router(overlay=Overlay.ERROR)
        router.on_enter()
        controller.acknowledge_error.assert_called_once_with()
        controller.table.select.assert_not_called()

    def test_enter_selects_row(self):
        router, controller = make_router()
        router.on_enter()
        controller.table.select.assert_called_once_with()

    def test_row_selected_unknown_index(self):
        router, controller = make_router()
        router.on_row_selected(5)
        controller.select_market.assert_not_called()
        router.on_row_selected(1)
        controller.select_market.assert_called_once_with("B")

    def test_quit_with_help_closes_help(self):
        router, controller = make_router(overlay=Overlay.HELP)
        router.on_quit()
        controller.close_help.assert_called_once_with()
        controller.quit.assert_not_called()

    def test_quit(self):
        router, controller = make_router(running=False, overlay=Overlay.ERROR)
        router.on_quit()
        controller.quit.assert_called_once_with(0)

    def test_help_delegates(self):
        router, controller = make_router(overlay=Overlay.ERROR)
        router.on_help()
        controller.toggle_help.assert_called_once_with()

    def test_move_blocked_by_error(self):
        router, controller = make_router(overlay=Overlay.ERROR)
        router.on_move(1)
        controller.move_cursor.assert_not_called()
