"""ABOUTME: Grid state store - the boolean matrix of active cells (rows = notes, columns = steps).
ABOUTME: Thread-safe get/set/toggle/clear plus the per-column read used by the sequencer clock."""

import threading
from typing import List

import numpy as np

from .errors import OutOfRange


class GridState:
    """
    Fixed-size boolean matrix backing the piano roll.

    Row index is the note identity (row 0 = lowest note), column index is
    the time step. Dimensions never change after construction. Every access
    is bounds-checked; negative indices are rejected rather than wrapping
    the way numpy would.

    A single lock serializes all reads and writes, so a column read from
    the clock always sees a consistent copy even while the UI is toggling
    cells.
    """

    def __init__(self, rows: int = 24, columns: int = 32):
        """
        Create an empty grid.

        Args:
            rows: Number of note lanes (must be >= 1)
            columns: Number of time steps (must be >= 1)
        """
        if rows < 1 or columns < 1:
            raise ValueError(f"grid needs at least one row and one column, got {rows}x{columns}")

        self._rows = int(rows)
        self._columns = int(columns)
        self._cells = np.zeros((self._rows, self._columns), dtype=bool)
        self._lock = threading.Lock()

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    def _check(self, row: int, col: int):
        if not (0 <= row < self._rows) or not (0 <= col < self._columns):
            raise OutOfRange(row, col, self._rows, self._columns)

    def get(self, row: int, col: int) -> bool:
        """Return whether the cell is active."""
        self._check(row, col)
        with self._lock:
            return bool(self._cells[row, col])

    def set(self, row: int, col: int, active: bool):
        """Set a cell on or off."""
        self._check(row, col)
        with self._lock:
            self._cells[row, col] = bool(active)

    def toggle(self, row: int, col: int) -> bool:
        """
        Flip a cell.

        Returns:
            The cell's new value
        """
        self._check(row, col)
        with self._lock:
            new_value = not self._cells[row, col]
            self._cells[row, col] = new_value
            return bool(new_value)

    def clear(self):
        """Turn every cell off."""
        with self._lock:
            self._cells.fill(False)

    def active_rows_in_column(self, col: int) -> List[int]:
        """
        List the active rows of one column.

        Args:
            col: Step index

        Returns:
            Row indices in ascending order (no duplicates)
        """
        if not (0 <= col < self._columns):
            raise OutOfRange(None, col, self._rows, self._columns)
        with self._lock:
            column = self._cells[:, col].copy()
        return [int(row) for row in np.flatnonzero(column)]

    def snapshot(self) -> np.ndarray:
        """Return an independent copy of the whole matrix (for rendering)."""
        with self._lock:
            return self._cells.copy()

    def active_count(self) -> int:
        """Number of active cells in the grid."""
        with self._lock:
            return int(np.count_nonzero(self._cells))
