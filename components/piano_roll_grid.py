"""ABOUTME: Piano roll grid widget - renders the note x step matrix and routes mouse/keyboard edits.
ABOUTME: One gesture router maps (row, col) presses and drags onto GridState toggle/set."""

from typing import Callable, Optional, Tuple

from rich.style import Style
from rich.text import Text
from textual import events
from textual.binding import Binding
from textual.geometry import Size
from textual.widget import Widget

from music.grid_state import GridState
from music.note_names import is_black_key, note_label


class CellGestureRouter:
    """
    Turns press / drag / release gestures on cells into grid edits.

    A press toggles the cell under the pointer. While the button stays
    down, every other cell the pointer enters is set to that first cell's
    new value (paint on, or erase). Release ends the gesture.
    """

    def __init__(self, grid_state: GridState, on_cell_enabled: Optional[Callable[[int, int], None]] = None):
        """
        Args:
            grid_state: Grid to edit
            on_cell_enabled: Called with (row, col) whenever a cell is switched on
        """
        self.grid_state = grid_state
        self.on_cell_enabled = on_cell_enabled
        self._drag_value: Optional[bool] = None
        self._last_cell: Optional[Tuple[int, int]] = None

    @property
    def is_dragging(self) -> bool:
        return self._drag_value is not None

    def press(self, row: int, col: int) -> bool:
        """Toggle a cell and start a drag gesture. Returns the cell's new value."""
        value = self.grid_state.toggle(row, col)
        self._drag_value = value
        self._last_cell = (row, col)
        if value:
            self._cell_enabled(row, col)
        return value

    def enter(self, row: int, col: int) -> bool:
        """
        Pointer moved onto a cell with the button held.

        Returns:
            True if the cell changed
        """
        if self._drag_value is None or (row, col) == self._last_cell:
            return False

        self._last_cell = (row, col)
        if self.grid_state.get(row, col) == self._drag_value:
            return False

        self.grid_state.set(row, col, self._drag_value)
        if self._drag_value:
            self._cell_enabled(row, col)
        return True

    def release(self):
        self._drag_value = None
        self._last_cell = None

    def toggle(self, row: int, col: int) -> bool:
        """Single toggle outside a drag (keyboard)."""
        value = self.grid_state.toggle(row, col)
        if value:
            self._cell_enabled(row, col)
        return value

    def _cell_enabled(self, row: int, col: int):
        if self.on_cell_enabled:
            self.on_cell_enabled(row, col)


class PianoRollGrid(Widget):
    """
    Draws the whole grid as rich Text, lowest note at the bottom.

    Each cell is CELL_WIDTH characters wide, preceded by a note label
    column. Black-key rows are shaded dark, the playhead column gets a blue
    overlay and the keyboard cursor is drawn in yellow.
    """

    can_focus = True

    BINDINGS = [
        Binding("up", "move_cursor(1, 0)", "Up", show=False),
        Binding("down", "move_cursor(-1, 0)", "Down", show=False),
        Binding("left", "move_cursor(0, -1)", "Left", show=False),
        Binding("right", "move_cursor(0, 1)", "Right", show=False),
        Binding("enter", "toggle_cursor_cell", "Toggle", show=False),
    ]

    DEFAULT_CSS = """
    PianoRollGrid {
        width: auto;
        height: auto;
        padding: 0;
        margin: 0;
    }
    """

    LABEL_WIDTH = 5
    CELL_WIDTH = 2
    HEADER_LINES = 1

    ACTIVE = "#2c63ad"
    WHITE_KEY = "#e6e6e6"
    BLACK_KEY = "#1e1e1e"
    WHITE_KEY_PLAYHEAD = "#b8c8e4"
    BLACK_KEY_PLAYHEAD = "#24344f"
    ACTIVE_PLAYHEAD = "#5b8fd8"
    CURSOR = "#FFFF00"
    GRID_LINE = "#808080"

    def __init__(self, grid_state: GridState, router: CellGestureRouter, **kwargs):
        super().__init__(**kwargs)
        self.grid_state = grid_state
        self.router = router
        self.cursor_row = 0
        self.cursor_col = 0
        self.playhead_col: Optional[int] = None

    # ── Layout ───────────────────────────────────────────────────

    def get_content_width(self, container: Size, viewport: Size) -> int:
        return self.LABEL_WIDTH + self.grid_state.columns * self.CELL_WIDTH

    def get_content_height(self, container: Size, viewport: Size, width: int) -> int:
        return self.HEADER_LINES + self.grid_state.rows

    def cell_at(self, x: int, y: int) -> Optional[Tuple[int, int]]:
        """Map a widget-relative offset to (row, col), or None outside the cells."""
        col = (x - self.LABEL_WIDTH) // self.CELL_WIDTH
        line = y - self.HEADER_LINES
        if x < self.LABEL_WIDTH or not (0 <= col < self.grid_state.columns):
            return None
        if not (0 <= line < self.grid_state.rows):
            return None
        return self.grid_state.rows - 1 - line, col

    # ── Rendering ────────────────────────────────────────────────

    def set_playhead(self, col: Optional[int]):
        if col != self.playhead_col:
            self.playhead_col = col
            self.refresh()

    def render(self) -> Text:
        cells = self.grid_state.snapshot()
        text = Text(no_wrap=True, overflow="crop")
        text.append(self._header_line() + "\n", style="dim")

        for line in range(self.grid_state.rows):
            row = self.grid_state.rows - 1 - line
            black = is_black_key(row)
            label_style = Style(color="#ffffff" if black else "#000000",
                                bgcolor=self.BLACK_KEY if black else self.WHITE_KEY, bold=True)
            text.append(note_label(row).ljust(self.LABEL_WIDTH - 1) + " ", style=label_style)

            for col in range(self.grid_state.columns):
                text.append(" ", style=self._cell_style(row, col, bool(cells[row, col]), black))
                text.append("▕", style=Style(color=self.GRID_LINE,
                                             bgcolor=self._cell_background(row, col, bool(cells[row, col]), black)))
            if line < self.grid_state.rows - 1:
                text.append("\n")
        return text

    def _header_line(self) -> str:
        chars = [" "] * (self.grid_state.columns * self.CELL_WIDTH)
        for col in range(0, self.grid_state.columns, 4):
            number = str(col + 1)
            start = col * self.CELL_WIDTH
            for offset, char in enumerate(number):
                if start + offset < len(chars):
                    chars[start + offset] = char
        return " " * self.LABEL_WIDTH + "".join(chars)

    def _cell_background(self, row: int, col: int, active: bool, black: bool) -> str:
        on_playhead = col == self.playhead_col
        if active:
            return self.ACTIVE_PLAYHEAD if on_playhead else self.ACTIVE
        if on_playhead:
            return self.BLACK_KEY_PLAYHEAD if black else self.WHITE_KEY_PLAYHEAD
        return self.BLACK_KEY if black else self.WHITE_KEY

    def _cell_style(self, row: int, col: int, active: bool, black: bool) -> Style:
        if self.has_focus and (row, col) == (self.cursor_row, self.cursor_col):
            return Style(bgcolor=self.CURSOR)
        return Style(bgcolor=self._cell_background(row, col, active, black))

    # ── Mouse ────────────────────────────────────────────────────

    def on_mouse_down(self, event: events.MouseDown):
        cell = self.cell_at(event.x, event.y)
        if cell is None:
            return
        self.capture_mouse()
        self.cursor_row, self.cursor_col = cell
        self.router.press(*cell)
        self.refresh()
        event.stop()

    def on_mouse_move(self, event: events.MouseMove):
        if not self.router.is_dragging:
            return
        cell = self.cell_at(event.x, event.y)
        if cell is not None and self.router.enter(*cell):
            self.refresh()

    def on_mouse_up(self, event: events.MouseUp):
        if self.router.is_dragging:
            self.router.release()
            self.release_mouse()
            event.stop()

    # ── Keyboard ─────────────────────────────────────────────────

    def action_move_cursor(self, d_row: int, d_col: int):
        self.cursor_row = max(0, min(self.grid_state.rows - 1, self.cursor_row + d_row))
        self.cursor_col = max(0, min(self.grid_state.columns - 1, self.cursor_col + d_col))
        self.refresh()

    def action_toggle_cursor_cell(self):
        self.router.toggle(self.cursor_row, self.cursor_col)
        self.refresh()

    def on_focus(self, event: events.Focus):
        self.refresh()

    def on_blur(self, event: events.Blur):
        self.refresh()
