"""ABOUTME: Maps a note (row) index to the sample file that plays it.
ABOUTME: Notes are numbered 1-based and zero-padded in file names (note 0 -> key01.wav)."""

from pathlib import Path
from typing import Union


DEFAULT_NAME_FORMAT = "key{number:02d}.wav"


class SampleResolver:
    """Resolve sample locations inside one directory using a naming scheme."""

    def __init__(self, sample_dir: Union[str, Path], name_format: str = DEFAULT_NAME_FORMAT):
        """
        Args:
            sample_dir: Directory holding the samples
            name_format: str.format pattern; receives ``number`` (1-based)
                and ``note`` (0-based)
        """
        self.sample_dir = Path(sample_dir)
        self.name_format = name_format

    def file_name(self, note_index: int) -> str:
        return self.name_format.format(number=note_index + 1, note=note_index)

    def __call__(self, note_index: int) -> str:
        """Return the sample path for a note as a string."""
        return str(self.sample_dir / self.file_name(note_index))

    def missing(self, note_count: int) -> list:
        """List the note indices in [0, note_count) whose sample file is absent."""
        return [note for note in range(note_count) if not Path(self(note)).is_file()]
