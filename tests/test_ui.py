from rich.console import Console

from whale.ui import BoxWidget, Grid, LineWidget, Screen, TableWidget

import pytest


def render_text(renderable, width=80, height=24):
    console = Console(width=width, height=height, record=True, color_system=None)
    console.print(renderable, height=height)
    return console.export_text()


class TestTableWidget:

    def test_cursor_and_select(self):
        table = TableWidget(label="prices")
        picked = []
        table.on_select(picked.append)
        table.select()
        assert picked == []
        table.set_data({"headers": ["A"], "data": [["x"], ["y"], ["z"]]})
        table.move(5)
        assert table.selected == 2
        table.move(-10)
        assert table.selected == 0
        table.move(1)
        table.select()
        assert picked == [1]

    def test_shrinking_data_clamps_cursor(self):
        table = TableWidget()
        table.set_data({"data": [["x"], ["y"]]})
        table.move(1)
        table.set_data({"data": [["x"]]})
        assert table.selected == 0

    def test_renders_rows(self):
        table = TableWidget(label="Current Price")
        table.set_data({"headers": ["Market", "Price"], "data": [["BTC/USD", "60000"]]})
        out = render_text(table)
        assert "Current Price" in out and "BTC/USD" in out and "Market" in out


class TestGrid:

    def test_rejects_out_of_bounds(self):
        with pytest.raises(ValueError):
            Grid(12, 12).set(10, 0, 4, 12, TableWidget())

    def test_layout_renders_all_widgets(self):
        grid = Grid()
        grid.set(0, 0, 4, 12, TableWidget(label="top"))
        grid.set(4, 0, 8, 6, LineWidget(label="left"))
        grid.set(4, 6, 8, 6, LineWidget(label="right"))
        out = render_text(grid.layout())
        assert "top" in out and "left" in out and "right" in out
        assert "No Data" in out


class TestScreen:

    def make_screen(self):
        return Screen("test", console=Console(width=80, height=24, record=True, color_system=None))

    def test_key_dispatch(self):
        screen = self.make_screen()
        seen = []
        screen.on_key(["a", "b"], seen.append)
        assert screen.dispatch_key("a") is True
        assert screen.dispatch_key("c") is False
        assert seen == ["a"]

    def test_center_box_takes_over(self):
        screen = self.make_screen()
        screen.grid.set(0, 0, 12, 12, TableWidget(label="table"))
        box = screen.append(BoxWidget(label="Error", position="center"))
        box.set_content("HTTP Error 500")
        assert "table" in render_text(screen.compose())
        box.show()
        out = render_text(screen.compose())
        assert "HTTP Error 500" in out and "table" not in out

    def test_bottom_box_shares_screen(self):
        screen = self.make_screen()
        screen.grid.set(0, 0, 12, 12, TableWidget(label="table"))
        box = screen.append(BoxWidget(label="Log", position="bottom"))
        box.set_content("Fetching...")
        box.show()
        out = render_text(screen.compose())
        assert "Fetching..." in out and "table" in out

    def test_render_counts_frames_without_live(self):
        screen = self.make_screen()
        screen.render()
        screen.render()
        assert screen.frames == 2

    def test_reset_keeps_handlers(self):
        screen = self.make_screen()
        screen.on_resize(lambda: None)
        screen.append(BoxWidget())
        screen.reset()
        assert screen.boxes == [] and screen.grid.placements == []
        assert len(screen._resize_handlers) == 1


class TestLineWidget:

    def test_chart_renders_series(self):
        line = LineWidget(label="BTC trend")
        line.set_data({"title": "X:BTCUSD", "x": ["a", "b", "c"], "y": [1.0, 3.0, 2.0],
                       "style": {"line": "cyan"}})
        out = render_text(line, width=60, height=15)
        assert "BTC trend" in out
        assert "No Data" not in out
