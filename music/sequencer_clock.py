"""ABOUTME: Sequencer clock - advances the column cursor on a fixed interval.
ABOUTME: Each tick reads the active rows of the new column and triggers them on the dispatcher."""

import threading
from typing import Callable, Optional

from .grid_state import GridState


DEFAULT_TICK_INTERVAL = 0.25  # seconds per step


class SequencerClock:
    """
    Scans the grid one column per tick.

    The clock does not own a timer. It asks an injected scheduler for a
    repeating callback (``scheduler.schedule_repeating(interval, fn)``
    returning a handle with ``cancel()``), which keeps it usable on the
    Textual event loop, on a thread, or under a fake scheduler in tests.

    Triggers are fire-and-forget: a tick never waits for playback. Ticks and
    stop() share a lock, so once stop() returns no tick is still triggering.
    """

    def __init__(
        self,
        grid: GridState,
        dispatcher,
        scheduler,
        interval: float = DEFAULT_TICK_INTERVAL,
        trigger_on_start: bool = True,
    ):
        """
        Initialize the clock (idle, cursor at 0).

        Args:
            grid: Grid state to scan
            dispatcher: Anything with trigger(note_index)
            scheduler: Repeating-timer port
            interval: Seconds between ticks
            trigger_on_start: Play column 0 immediately when started
                (otherwise it is first heard after a full loop)
        """
        if interval <= 0:
            raise ValueError(f"tick interval must be positive, got {interval}")

        self.grid = grid
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.interval = interval
        self.trigger_on_start = trigger_on_start

        self.cursor = 0
        self._ticking = False
        self._handle = None
        # Reentrant: a scheduler may fire the first tick from inside schedule_repeating()
        self._lock = threading.RLock()

        # Called with the cursor after each step is dispatched (UI playhead)
        self.on_step: Optional[Callable[[int], None]] = None

    @property
    def is_ticking(self) -> bool:
        return self._ticking

    def set_step_callback(self, callback: Optional[Callable[[int], None]]):
        self.on_step = callback

    def start(self):
        """Reset the cursor to column 0 and start ticking. No-op if already ticking."""
        with self._lock:
            if self._ticking:
                return

            self.cursor = 0
            self._ticking = True
            if self.trigger_on_start:
                self._dispatch_column(self.cursor)
            self._handle = self.scheduler.schedule_repeating(self.interval, self._tick)

    def stop(self):
        """Stop ticking and keep the cursor on the last played column. No-op if idle."""
        with self._lock:
            if not self._ticking:
                return
            self._ticking = False
            handle = self._handle
            self._handle = None

        # Outside the lock: a threaded handle joins its thread, which may be waiting on it
        if handle is not None:
            handle.cancel()

    def _tick(self):
        with self._lock:
            # A scheduler may deliver one already-queued callback after cancel()
            if not self._ticking:
                return

            self.cursor = (self.cursor + 1) % self.grid.columns
            self._dispatch_column(self.cursor)

    def _dispatch_column(self, col: int):
        for row in self.grid.active_rows_in_column(col):
            self.dispatcher.trigger(row)

        if self.on_step:
            self.on_step(col)
