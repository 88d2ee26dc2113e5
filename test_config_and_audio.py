#!/usr/bin/env python3
"""ABOUTME: Tests for configuration loading, the pygame backend's completion polling and the sample kit.
ABOUTME: pygame's mixer is never opened; channel behaviour is faked."""

import json
import sys
from pathlib import Path

import numpy as np
import pygame
import pytest
import soundfile as sf

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config_manager import ConfigManager
from make_samples import synthesize_tone, write_kit
from music.audio_backend import PygameAudioBackend
from music.sample_resolver import SampleResolver


# ── Configuration ────────────────────────────────────────────────

def test_defaults_written_on_first_run(tmp_path):
    config_file = tmp_path / "config.json"
    config = ConfigManager(config_file)

    assert config_file.exists()
    assert config.get_rows() == 24
    assert config.get_columns() == 32
    assert config.get_tick_interval_ms() == 250
    assert config.get_tick_interval() == pytest.approx(0.25)
    assert config.get_sample_dir() == tmp_path / "sounds" / "piano_keys_wav"
    assert config.get_sample_name_format() == "key{number:02d}.wav"
    assert config.get_preview_on_toggle() is True
    assert config.get_trigger_on_start() is True


def test_values_are_merged_and_clamped(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "columns": 16,
        "tick_interval_ms": 1,
        "volume": 3,
        "mixer_channels": "lots",
        "sample_dir": str(tmp_path / "kit"),
    }))
    config = ConfigManager(config_file)

    assert config.get_rows() == 24
    assert config.get_columns() == 16
    assert config.get_tick_interval_ms() == ConfigManager.MIN_INTERVAL_MS
    assert config.get_volume() == 1.0
    assert config.get_mixer_channels() == 64
    assert config.get_sample_dir() == tmp_path / "kit"


def test_malformed_sample_name_format_falls_back_to_default(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"sample_name_format": "key{num}.wav"}))
    config = ConfigManager(config_file)
    assert config.get_sample_name_format() == "key{number:02d}.wav"


def test_unreadable_config_falls_back_to_defaults(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json")
    config = ConfigManager(config_file)
    assert config.get_columns() == 32


# ── pygame backend ───────────────────────────────────────────────

class FakeChannel:
    def __init__(self, sound):
        self.sound = sound
        self.busy = True

    def get_busy(self):
        return self.busy

    def get_sound(self):
        return self.sound


class FakeSound:
    def __init__(self):
        self.channel = FakeChannel(self)
        self.stopped = False

    def play(self):
        return self.channel

    def stop(self):
        self.stopped = True


@pytest.fixture
def backend(monkeypatch):
    def no_mixer(*args, **kwargs):
        raise pygame.error("no audio device")

    monkeypatch.setattr(pygame.mixer, "init", no_mixer)
    return PygameAudioBackend(channels=4)


def test_backend_without_mixer_refuses_to_open(backend):
    assert not backend.is_ready()
    with pytest.raises(RuntimeError):
        backend.open("key01.wav")


def test_poll_fires_completion_when_channel_goes_idle(backend):
    done = []
    first, second = FakeSound(), FakeSound()
    backend.play(first, lambda: done.append("first"))
    backend.play(second, lambda: done.append("second"))

    assert backend.poll() == 0
    second.channel.busy = False
    assert backend.poll() == 1
    assert done == ["second"]
    assert backend.pending_count() == 1


def test_poll_detects_channel_reused_by_another_sound(backend):
    done = []
    sound = FakeSound()
    backend.play(sound, lambda: done.append(1))
    sound.channel.sound = FakeSound()

    backend.poll()
    assert done == [1]


def test_play_without_free_channel_raises(backend):
    sound = FakeSound()
    sound.play = lambda: None
    with pytest.raises(RuntimeError):
        backend.play(sound, lambda: None)
    assert backend.pending_count() == 0


def test_close_stops_the_sound(backend):
    sound = FakeSound()
    backend.close(sound)
    assert sound.stopped


# ── Sample kit ───────────────────────────────────────────────────

def test_synthesized_tone_shape():
    tone = synthesize_tone(261.63, duration=0.5, sample_rate=8000)
    assert tone.dtype == np.float32
    assert len(tone) == 4000
    assert np.max(np.abs(tone)) == pytest.approx(0.9, abs=1e-3)
    assert tone[0] == 0.0
    assert abs(tone[-1]) < 1e-3


def test_write_kit_creates_one_file_per_row(tmp_path):
    resolver = SampleResolver(tmp_path / "kit")
    assert write_kit(resolver, 3, duration=0.1) == 3
    assert resolver.missing(3) == []

    data, rate = sf.read(resolver(2))
    assert rate == 44100
    assert len(data) == 4410

    # Existing files are kept unless overwrite is requested
    assert write_kit(resolver, 3, duration=0.1) == 0
    assert write_kit(resolver, 3, duration=0.1, overwrite=True) == 3
