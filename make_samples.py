#!/usr/bin/env python3
"""ABOUTME: Sample kit generator - synthesizes one piano-like tone per piano roll row.
ABOUTME: Writes key01.wav .. keyNN.wav so the app runs without a bundled sample pack."""

import argparse
from pathlib import Path

import numpy as np
import soundfile as sf

from config_manager import ConfigManager
from music.note_names import midi_to_frequency, note_label, row_to_midi
from music.sample_resolver import SampleResolver


SAMPLE_RATE = 44100

# Relative strengths of the first partials (bright attack, soft body)
PARTIALS = [1.0, 0.55, 0.3, 0.18, 0.1, 0.06]


def synthesize_tone(frequency: float, duration: float = 1.2, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """
    Additive piano-ish tone: decaying harmonics with a short attack.

    Args:
        frequency: Fundamental in Hz
        duration: Length in seconds
        sample_rate: Output sample rate

    Returns:
        float32 mono signal peaking at 0.9
    """
    n = int(sample_rate * duration)
    t = np.arange(n) / sample_rate
    signal = np.zeros(n, dtype=np.float64)

    for harmonic, amplitude in enumerate(PARTIALS, start=1):
        partial_freq = frequency * harmonic
        if partial_freq >= sample_rate / 2:
            break
        # Higher partials die away faster
        decay = np.exp(-t * (2.5 + 1.5 * harmonic))
        signal += amplitude * decay * np.sin(2 * np.pi * partial_freq * t)

    attack = min(n, int(0.005 * sample_rate))
    if attack > 0:
        signal[:attack] *= np.linspace(0.0, 1.0, attack)

    release = min(n, int(0.05 * sample_rate))
    if release > 0:
        signal[-release:] *= np.linspace(1.0, 0.0, release)

    peak = float(np.max(np.abs(signal))) or 1.0
    return (signal * (0.9 / peak)).astype(np.float32)


def write_kit(resolver: SampleResolver, rows: int, duration: float, overwrite: bool = False) -> int:
    """Write one sample per row. Returns the number of files written."""
    resolver.sample_dir.mkdir(parents=True, exist_ok=True)
    written = 0
    for row in range(rows):
        path = Path(resolver(row))
        if path.exists() and not overwrite:
            continue
        tone = synthesize_tone(midi_to_frequency(row_to_midi(row)), duration)
        sf.write(str(path), tone, SAMPLE_RATE, subtype="PCM_16")
        print(f"  {path.name}  {note_label(row)}")
        written += 1
    return written


def main():
    config = ConfigManager()
    parser = argparse.ArgumentParser(description="Generate the piano roll sample kit")
    parser.add_argument("--out", type=Path, default=config.get_sample_dir(),
                        help="output directory (default: sample_dir from config.json)")
    parser.add_argument("--rows", type=int, default=config.get_rows(), help="number of notes")
    parser.add_argument("--duration", type=float, default=1.2, help="seconds per sample")
    parser.add_argument("--overwrite", action="store_true", help="replace existing files")
    args = parser.parse_args()

    resolver = SampleResolver(args.out, config.get_sample_name_format())
    print(f"Writing samples to {resolver.sample_dir}")
    written = write_kit(resolver, args.rows, args.duration, overwrite=args.overwrite)
    print(f"{written} file(s) written")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
