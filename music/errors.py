"""ABOUTME: Error types shared by the grid, the sample dispatcher and the UI.
ABOUTME: Trigger errors are reported (not raised) so playback never stops on them."""

from typing import Optional


class SequencerError(Exception):
    """Base class for all piano roll errors."""


class OutOfRange(SequencerError, IndexError):
    """Raised on a grid access outside the matrix bounds."""

    def __init__(self, row: Optional[int], col: Optional[int], rows: int, columns: int):
        self.row = row
        self.col = col
        self.rows = rows
        self.columns = columns
        if row is None:
            where = f"column {col}"
        else:
            where = f"cell ({row}, {col})"
        super().__init__(f"{where} is outside the {rows}x{columns} grid")


class ResourceNotFound(SequencerError):
    """The sample resolved for a note does not exist."""

    def __init__(self, note_index: int, resource: str):
        self.note_index = note_index
        self.resource = resource
        super().__init__(f"Sound file not found:\n{resource}")


class PlaybackError(SequencerError):
    """The audio subsystem failed to open, start or release a sample."""

    def __init__(self, note_index: int, resource: str, cause: BaseException):
        self.note_index = note_index
        self.resource = resource
        self.cause = cause
        super().__init__(f"Error playing {resource}:\n{cause}")
