"""Note naming helpers for the piano roll row labels."""

NOTE_NAMES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']

# Pitch classes of the black keys: C#, D#, F#, G#, A#
BLACK_KEYS = {1, 3, 6, 8, 10}

# Row 0 is C4 (MIDI note 60)
BASE_MIDI_NOTE = 60


def is_black_key(row: int) -> bool:
    return row % 12 in BLACK_KEYS


def row_to_midi(row: int) -> int:
    return BASE_MIDI_NOTE + row


def note_label(row: int) -> str:
    """Return a label like 'C4' or 'F#5' for a row."""
    midi_note = row_to_midi(row)
    octave = midi_note // 12 - 1
    return f"{NOTE_NAMES[midi_note % 12]}{octave}"


def midi_to_frequency(midi_note: int) -> float:
    return 440.0 * (2.0 ** ((midi_note - 69) / 12.0))
