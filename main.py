#!/usr/bin/env python3
"""Piano Roll TUI Application - Main Entry Point."""
import os

# Suppress the Pygame "hello" message
os.environ['PYGAME_HIDE_SUPPORT_PROMPT'] = "1"

from textual.app import App
from textual.binding import Binding
from textual.widgets import Footer, Header, Static

from config_manager import ConfigManager
from music.audio_backend import PygameAudioBackend
from modes.piano_roll_mode import PianoRollMode


class PianoRollHelpBar(Static):
    """Help bar displaying the piano roll keybinds on two lines."""

    def render(self) -> str:
        line1 = "SPACE: Play/Stop | C: Clear | ↑↓←→: Move cursor | ENTER: Toggle cell"
        line2 = "Mouse: click to toggle, hold and drag to paint or erase | Q: Quit"
        return f"{line1}\n{line2}"


class PianoRollApp(App):
    """Grid step sequencer playing one sample per row."""

    VERSION = "1.0.0"
    CSS = """
    #content-area {
        height: 1fr;
        width: 100%;
    }

    #piano-roll-help-bar {
        width: 100%;
        height: auto;
        text-align: center;
        color: $text-muted;
        padding: 0;
        margin: 0;
        border-top: solid $accent;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("escape", "quit", "Quit", show=False),
    ]

    def __init__(self, config_manager: ConfigManager = None, audio=None):
        super().__init__()
        self.title = f"Piano Roll v{self.VERSION}"
        self.config_manager = config_manager or ConfigManager()
        self.audio = audio or PygameAudioBackend(
            channels=self.config_manager.get_mixer_channels(),
            volume=self.config_manager.get_volume(),
        )

    def compose(self):
        yield Header()
        yield PianoRollMode(self.config_manager, self.audio)
        yield PianoRollHelpBar(id="piano-roll-help-bar")
        yield Footer()

    def on_mount(self):
        rows = self.config_manager.get_rows()
        columns = self.config_manager.get_columns()
        self.sub_title = f"{rows} notes x {columns} steps"
        if hasattr(self.audio, "is_ready") and not self.audio.is_ready():
            self.notify("Audio output unavailable - playback is silent", severity="warning")

    def on_unmount(self):
        """Clean up on exit."""
        if hasattr(self.audio, "shutdown"):
            self.audio.shutdown()


def main():
    """Main entry point."""
    app = PianoRollApp()
    app.run()


if __name__ == "__main__":
    main()
