"""Terminal widgets on top of rich.

A small retained-mode surface: widgets keep their data and visibility, and
``Screen.render()`` composes them into one frame and pushes it to the Live
display. Nothing here redraws on its own.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import plotext as plt
from rich.align import Align
from rich.console import Console, ConsoleOptions, RenderResult
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

log = logging.getLogger(__name__)


class Widget:
    def __init__(self, label: str = "", border: str = "grey70"):
        self.label = label
        self.border = border
        self.visible = True
        self.focused = False

    def set_label(self, label: str):
        self.label = label

    def show(self):
        self.visible = True

    def hide(self):
        self.visible = False

    def focus(self):
        self.focused = True

    def blur(self):
        self.focused = False

    def body(self) -> Any:
        raise NotImplementedError

    def __rich__(self) -> Panel:
        return Panel(self.body(), title=self.label, border_style=self.border)


class TableWidget(Widget):
    """Row table with a movable cursor; ``select()`` reports the cursor row."""

    def __init__(self, label: str = "", border: str = "grey70", fg: str = "white",
                 selected_fg: str = "black", selected_bg: str = "cyan",
                 column_widths: Sequence[int] = (10, 10, 10)):
        super().__init__(label, border)
        self.fg = fg
        self.selected_style = f"{selected_fg} on {selected_bg}"
        self.column_widths = list(column_widths)
        self.headers: List[str] = []
        self.rows: List[List[Any]] = []
        self.selected = 0
        self._select_handlers: List[Callable[[int], None]] = []

    def set_data(self, data: Dict[str, Any]):
        self.headers = list(data.get("headers") or [])
        self.rows = list(data.get("data") or [])
        if self.selected >= len(self.rows):
            self.selected = max(0, len(self.rows) - 1)

    def on_select(self, handler: Callable[[int], None]):
        self._select_handlers.append(handler)

    def move(self, delta: int):
        if self.rows:
            self.selected = max(0, min(len(self.rows) - 1, self.selected + delta))

    def select(self):
        if not self.rows:
            return
        for handler in self._select_handlers:
            handler(self.selected)

    def body(self) -> Table:
        table = Table(expand=True, box=None, padding=(0, 1), show_header=bool(self.headers),
                      style=self.fg)
        ncols = max([len(self.headers)] + [len(r) for r in self.rows] + [1])
        for i in range(ncols):
            header = self.headers[i] if i < len(self.headers) else ""
            width = self.column_widths[i] if i < len(self.column_widths) else None
            table.add_column(header, min_width=width, justify="left" if i == 0 else "right")
        for i, row in enumerate(self.rows):
            style = self.selected_style if self.focused and i == self.selected else None
            table.add_row(*row, style=style)
        return table


class _Chart:
    """Renders a plotext figure sized to the region rich gives it."""

    def __init__(self, widget: "LineWidget"):
        self.widget = widget

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        w = self.widget
        series = w.series
        if not series or not series.get("y"):
            yield Text("No Data", style="dim")
            return
        width = max(20, options.max_width)
        height = max(5, options.height or 15)
        xs = list(range(len(series["y"])))
        labels = list(series.get("x") or [])

        plt.clf()
        plt.plotsize(width, height)
        plt.theme("clear")
        plt.ticks_color(w.text_color)
        plt.hline(series["y"][0], color=w.baseline_color)
        style = series.get("style") or {}
        label = series.get("title") if w.show_legend else None
        plt.plot(xs, series["y"], label=label, color=style.get("line", "cyan"), marker="braille")
        if labels:
            step = max(1, len(labels) // 6)
            ticks = xs[::step]
            plt.xticks(ticks, [labels[i] for i in ticks])
        yield Text.from_ansi(plt.build())


class LineWidget(Widget):
    def __init__(self, label: str = "", border: str = "grey70", text_color: str = "white",
                 baseline_color: str = "gray", show_legend: bool = False):
        super().__init__(label, border)
        self.text_color = text_color
        self.baseline_color = baseline_color
        self.show_legend = show_legend
        self.series: Optional[Dict[str, Any]] = None

    def set_data(self, series: Dict[str, Any]):
        self.series = series

    def body(self) -> _Chart:
        return _Chart(self)


class BoxWidget(Widget):
    """Text box drawn either centered over the grid or along its bottom edge."""

    def __init__(self, label: str = "", border: str = "grey70", fg: str = "white",
                 position: str = "center", width: float = 0.5, height: float = 0.5,
                 align: str = "left"):
        super().__init__(label, border)
        self.fg = fg
        self.position = position
        self.width = width
        self.height = height
        self.align = align
        self.content = ""
        self.visible = False

    def set_content(self, content: str):
        self.content = content

    def body(self) -> Text:
        return Text(self.content, style=self.fg, justify=self.align)

    def __rich__(self) -> Panel:
        return Panel(self.body(), title=self.label, border_style=self.border, padding=(1, 2))


class Grid:
    """Places widgets on a rows x cols grid, like a spreadsheet of regions."""

    def __init__(self, rows: int = 12, cols: int = 12):
        self.rows = rows
        self.cols = cols
        self.placements: List[tuple] = []

    def set(self, row: int, col: int, row_span: int, col_span: int, widget: Widget) -> Widget:
        if row < 0 or col < 0 or row + row_span > self.rows or col + col_span > self.cols:
            raise ValueError(f"region ({row}, {col}, {row_span}, {col_span}) outside "
                             f"{self.rows}x{self.cols} grid")
        self.placements.append((row, col, row_span, col_span, widget))
        return widget

    def layout(self) -> Layout:
        bands: Dict[int, List[tuple]] = {}
        for placement in self.placements:
            bands.setdefault(placement[0], []).append(placement)

        root = Layout()
        children = []
        for row in sorted(bands):
            cells = sorted(bands[row], key=lambda p: p[1])
            band = Layout(ratio=max(p[2] for p in cells))
            if len(cells) == 1:
                band.update(cells[0][4])
            else:
                band.split_row(*[Layout(p[4], ratio=p[3]) for p in cells])
            children.append(band)
        if children:
            root.split_column(*children)
        return root


class Screen:
    """Owns the Live display, the widget tree and key/resize handler registries."""

    def __init__(self, title: str, console: Optional[Console] = None):
        self.title = title
        self.console = console or Console()
        self.grid = Grid()
        self.boxes: List[BoxWidget] = []
        self._live: Optional[Live] = None
        self._key_handlers: Dict[str, List[Callable[[str], None]]] = {}
        self._resize_handlers: List[Callable[[], None]] = []
        self.frames = 0

    # -- Lifecycle -------------------------------------------------------

    def start(self):
        self.console.set_window_title(self.title)
        self._live = Live(self.compose(), console=self.console, screen=True, auto_refresh=False)
        self._live.start()

    def stop(self):
        if self._live is not None:
            self._live.stop()
            self._live = None

    def reset(self, rows: int = 12, cols: int = 12) -> Grid:
        """Drop every widget and start a fresh grid; handlers stay registered."""
        self.grid = Grid(rows, cols)
        self.boxes = []
        return self.grid

    def append(self, box: BoxWidget) -> BoxWidget:
        self.boxes.append(box)
        return box

    # -- Input -----------------------------------------------------------

    def on_key(self, keys: Sequence[str], handler: Callable[[str], None]):
        for key in keys:
            self._key_handlers.setdefault(key, []).append(handler)

    def on_resize(self, handler: Callable[[], None]):
        self._resize_handlers.append(handler)

    def dispatch_key(self, key: str) -> bool:
        handlers = self._key_handlers.get(key)
        if not handlers:
            return False
        for handler in list(handlers):
            handler(key)
        return True

    def notify_resize(self):
        for handler in list(self._resize_handlers):
            handler()

    # -- Drawing ---------------------------------------------------------

    def compose(self) -> Any:
        base = self.grid.layout()
        visible = [b for b in self.boxes if b.visible]
        for box in reversed(visible):
            if box.position == "center":
                width = max(20, int(self.console.width * box.width))
                height = max(5, int(self.console.height * box.height))
                return Align.center(Panel(box.body(), title=box.label, border_style=box.border,
                                          padding=(1, 2), width=width, height=height),
                                    vertical="middle")
        bottom = [b for b in visible if b.position == "bottom"]
        if not bottom:
            return base
        frame = Layout()
        footer = Layout(ratio=1)
        footer.split_row(Layout(Text(""), ratio=1), Layout(bottom[-1], ratio=1))
        frame.split_column(Layout(base, ratio=4), footer)
        return frame

    def render(self):
        self.frames += 1
        if self._live is not None:
            self._live.update(self.compose(), refresh=True)
