"""Configuration file management."""
import json
from pathlib import Path
from typing import Optional


class ConfigManager:
    """Manages piano roll configuration (grid size, tempo, samples, audio)."""

    MIN_INTERVAL_MS = 20
    MAX_INTERVAL_MS = 5000

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else Path(__file__).parent / "config.json"
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file, filling gaps with defaults."""
        config = self._default_config()
        if not self.config_file.exists():
            # First run: write the defaults so there is a file to edit
            self.config = config
            self.save_config()
            return config

        try:
            with open(self.config_file, 'r') as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[ConfigManager] could not read {self.config_file}: {e}; using defaults")
            return config

        if isinstance(loaded, dict):
            config.update(loaded)
        return config

    def _default_config(self) -> dict:
        """Return default configuration."""
        return {
            "rows": 24,
            "columns": 32,
            "tick_interval_ms": 250,
            "sample_dir": "sounds/piano_keys_wav",
            "sample_name_format": "key{number:02d}.wav",
            "mixer_channels": 64,
            "volume": 1.0,
            "preview_on_toggle": True,
            "trigger_on_start": True,
        }

    def save_config(self):
        """Save configuration to file."""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            print(f"[ConfigManager] error saving config: {e}")

    def _int(self, key: str, low: int, high: int) -> int:
        default = self._default_config()[key]
        try:
            value = int(self.config.get(key, default))
        except (TypeError, ValueError):
            value = default
        return max(low, min(high, value))

    # ── Grid ─────────────────────────────────────────────────────

    def get_rows(self) -> int:
        return self._int("rows", 1, 128)

    def get_columns(self) -> int:
        return self._int("columns", 1, 256)

    # ── Timing ───────────────────────────────────────────────────

    def get_tick_interval_ms(self) -> int:
        """Milliseconds per step, clamped to [20, 5000]."""
        return self._int("tick_interval_ms", self.MIN_INTERVAL_MS, self.MAX_INTERVAL_MS)

    def get_tick_interval(self) -> float:
        """Seconds per step."""
        return self.get_tick_interval_ms() / 1000.0

    def get_trigger_on_start(self) -> bool:
        return bool(self.config.get("trigger_on_start", True))

    # ── Samples ──────────────────────────────────────────────────

    def get_sample_dir(self) -> Path:
        """Sample directory; relative paths are taken from the config file's folder."""
        sample_dir = Path(str(self.config.get("sample_dir", "sounds/piano_keys_wav")))
        if not sample_dir.is_absolute():
            sample_dir = self.config_file.parent / sample_dir
        return sample_dir

    def get_sample_name_format(self) -> str:
        name_format = str(self.config.get("sample_name_format", "key{number:02d}.wav"))
        try:
            name_format.format(number=1, note=0)
        except (KeyError, IndexError, ValueError) as e:
            print(f"[ConfigManager] bad sample_name_format {name_format!r} ({e!r}); using default")
            return "key{number:02d}.wav"
        return name_format

    # ── Audio ────────────────────────────────────────────────────

    def get_mixer_channels(self) -> int:
        return self._int("mixer_channels", 1, 512)

    def get_volume(self) -> float:
        try:
            volume = float(self.config.get("volume", 1.0))
        except (TypeError, ValueError):
            volume = 1.0
        return max(0.0, min(1.0, volume))

    def get_preview_on_toggle(self) -> bool:
        return bool(self.config.get("preview_on_toggle", True))
