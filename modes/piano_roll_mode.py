"""ABOUTME: Piano roll mode - wires grid state, dispatcher, clock and transport into the Textual UI.
ABOUTME: Handles key bindings, playhead rendering, audio polling and error notifications."""

from typing import Any, Callable, Optional, Set

from textual.binding import Binding
from textual.containers import Vertical

from components.piano_roll_grid import CellGestureRouter, PianoRollGrid
from components.transport_panel import TransportPanel
from music.errors import PlaybackError, SequencerError
from music.grid_state import GridState
from music.sample_dispatcher import SampleDispatcher
from music.sample_resolver import SampleResolver
from music.schedulers import TextualScheduler
from music.sequencer_clock import SequencerClock
from music.transport import TransportController, TransportState


class ErrorNotifier:
    """
    Shows each playback problem once per run.

    A missing sample is one problem per file. A PlaybackError with the same
    cause on every note (no audio device, mixer out of channels) is one
    problem no matter how many notes hit it.
    """

    def __init__(self, notify: Callable[..., None]):
        self.notify = notify
        self._reported: Set[str] = set()

    def report(self, error: SequencerError) -> bool:
        """Print and show the error unless it was already shown. Returns True if shown."""
        message = str(error)
        if isinstance(error, PlaybackError):
            key = f"{type(error).__name__}: {error.cause!r}"
        else:
            key = message
        if key in self._reported:
            return False

        self._reported.add(key)
        print(f"[PianoRoll] {type(error).__name__}: {message}")
        self.notify(message, title=type(error).__name__, severity="error")
        return True

    def reset(self):
        self._reported.clear()


class PianoRollMode(Vertical):
    """Piano roll: note x step grid with play/stop transport."""

    BINDINGS = [
        Binding("space", "toggle_playback", "Play/Stop", show=True),
        Binding("p", "toggle_playback", "Play/Stop", show=False),
        Binding("c", "clear_grid", "Clear", show=True),
    ]

    DEFAULT_CSS = """
    PianoRollMode {
        width: 100%;
        height: auto;
        background: $surface;
        align: center top;
    }

    PianoRollMode > TransportPanel {
        margin-bottom: 1;
    }

    PianoRollMode > PianoRollGrid {
        margin: 0 2;
    }
    """

    AUDIO_POLL_INTERVAL = 0.01

    def __init__(self, config_manager: Any, audio: Any):
        """
        Initialize the piano roll.

        Args:
            config_manager: ConfigManager with grid, tempo and sample settings
            audio: Audio subsystem (open/play/close, optionally poll)
        """
        super().__init__()
        self.config_manager = config_manager
        self.audio = audio

        self.grid_state = GridState(config_manager.get_rows(), config_manager.get_columns())
        self.resolver = SampleResolver(
            config_manager.get_sample_dir(),
            config_manager.get_sample_name_format(),
        )
        self.dispatcher = SampleDispatcher(audio, self.resolver, on_error=self._report_error)

        self.clock = SequencerClock(
            self.grid_state,
            self.dispatcher,
            TextualScheduler(self),
            interval=config_manager.get_tick_interval(),
            trigger_on_start=config_manager.get_trigger_on_start(),
        )
        self.clock.set_step_callback(self._on_sequencer_step)

        self.transport = TransportController(self.clock)
        self.transport.on_state_change = self._on_transport_state

        preview = self._preview_note if config_manager.get_preview_on_toggle() else None
        self.router = CellGestureRouter(self.grid_state, on_cell_enabled=preview)

        self.transport_panel = TransportPanel(self.grid_state.columns, config_manager.get_tick_interval_ms())
        self.grid_view = PianoRollGrid(self.grid_state, self.router, id="piano-roll-grid")

        self.error_notifier = ErrorNotifier(lambda *args, **kwargs: self.app.notify(*args, **kwargs))
        self._poll_timer: Optional[object] = None

    def compose(self):
        yield self.transport_panel
        yield self.grid_view

    def on_mount(self):
        self.grid_view.focus()
        if callable(getattr(self.audio, "poll", None)):
            self._poll_timer = self.set_interval(self.AUDIO_POLL_INTERVAL, self._poll_audio)
        self._warn_missing_samples()

    def on_unmount(self):
        # In-flight samples keep playing; the app's audio shutdown releases them
        self.transport.stop()
        if self._poll_timer is not None:
            self._poll_timer.stop()
            self._poll_timer = None

    def _warn_missing_samples(self):
        missing = self.resolver.missing(self.grid_state.rows)
        if not missing:
            return
        message = (f"{len(missing)} of {self.grid_state.rows} samples missing in "
                   f"{self.resolver.sample_dir} (run make_samples.py)")
        print(f"[PianoRoll] {message}")
        self.app.notify(message, title="Samples", severity="warning")

    def _poll_audio(self):
        self.audio.poll()
        self.transport_panel.update_voices(self.dispatcher.active_count())

    def _preview_note(self, row: int, col: int):
        self.dispatcher.trigger(row)

    def _report_error(self, error: SequencerError):
        self.error_notifier.report(error)

    def _on_sequencer_step(self, step: int):
        self.transport_panel.update_step(step)
        self.grid_view.set_playhead(step)

    def _on_transport_state(self, state: TransportState):
        self.transport_panel.update_state(state.name, self.transport.label)

    def action_toggle_playback(self):
        """Toggle play/stop (space bar). Start always begins at column 0."""
        if not self.transport.is_running:
            self.error_notifier.reset()
        self.transport.toggle_transport()

    def action_clear_grid(self):
        self.grid_state.clear()
        self.grid_view.refresh()
        self.app.notify("Grid cleared")
