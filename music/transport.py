"""ABOUTME: Transport controller - the user-facing play/stop toggle around the sequencer clock.
ABOUTME: Exposes the current state and the Play/Stop label for the UI."""

from enum import Enum
from typing import Callable, Optional

from .sequencer_clock import SequencerClock


class TransportState(Enum):
    """Playback state shown on the transport panel."""
    STOPPED = "stopped"
    RUNNING = "running"


class TransportController:
    """Start/stop state machine wrapping a SequencerClock."""

    def __init__(self, clock: SequencerClock):
        self.clock = clock
        self.on_state_change: Optional[Callable[[TransportState], None]] = None

    @property
    def state(self) -> TransportState:
        return TransportState.RUNNING if self.clock.is_ticking else TransportState.STOPPED

    @property
    def is_running(self) -> bool:
        return self.clock.is_ticking

    @property
    def label(self) -> str:
        """Caption for the play button: the action a press would take."""
        return "Stop" if self.is_running else "Play"

    def toggle_transport(self) -> TransportState:
        """
        Stop if running, start (from column 0) if stopped.

        Returns:
            The new state
        """
        if self.clock.is_ticking:
            self.stop()
        else:
            self.start()
        return self.state

    def start(self):
        if self.clock.is_ticking:
            return
        self.clock.start()
        self._notify()

    def stop(self):
        if not self.clock.is_ticking:
            return
        self.clock.stop()
        self._notify()

    def _notify(self):
        if self.on_state_change:
            self.on_state_change(self.state)
