"""Transport panel: play state, current step, tempo and voice count."""
from textual.css.query import NoMatches
from textual.widgets import Label, Static


class TransportPanel(Static):
    """Status strip above the piano roll."""

    DEFAULT_CSS = """
    TransportPanel {
        layout: horizontal;
        width: 100%;
        height: auto;
        background: $boost;
        color: $text;
        padding: 0 2;
        border: round $accent;
    }

    TransportPanel Label {
        width: auto;
        height: auto;
        margin-right: 4;
    }

    TransportPanel #play-label {
        text-style: bold;
        color: $accent;
    }
    """

    def __init__(self, columns: int, interval_ms: int):
        super().__init__()
        self.columns = columns
        self.interval_ms = interval_ms
        self.state = "STOPPED"
        self.button_label = "Play"
        self.current_step = 0
        self.voices = 0

    def compose(self):
        yield Label(f"SPACE: {self.button_label}", id="play-label")
        yield Label(f"State: {self.state}", id="state-label")
        yield Label(self._step_text(), id="step-label")
        yield Label(f"Tempo: {self.interval_ms} ms/step", id="tempo-label")
        yield Label(f"Voices: {self.voices}", id="voices-label")

    def _step_text(self) -> str:
        return f"Step: {self.current_step + 1:02d}/{self.columns}"

    def _set(self, selector: str, text: str):
        try:
            self.query_one(selector, Label).update(text)
        except NoMatches:
            # Not composed yet; compose() picks up the stored value
            pass

    def update_state(self, state: str, button_label: str):
        self.state = state
        self.button_label = button_label
        self._set("#state-label", f"State: {self.state}")
        self._set("#play-label", f"SPACE: {self.button_label}")

    def update_step(self, step: int):
        self.current_step = step
        self._set("#step-label", self._step_text())

    def update_voices(self, voices: int):
        if voices == self.voices:
            return
        self.voices = voices
        self._set("#voices-label", f"Voices: {self.voices}")
