"""ABOUTME: Repeating-timer implementations used to drive the sequencer clock.
ABOUTME: TextualScheduler runs on the UI event loop; ThreadScheduler runs on a daemon thread."""

import threading
import time
import traceback
from typing import Callable


class TextualScheduler:
    """Schedule repeating callbacks with Textual's set_interval on a widget or app."""

    def __init__(self, host):
        """
        Args:
            host: Any Textual MessagePump (App, Screen or Widget)
        """
        self.host = host

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> "TextualTimerHandle":
        timer = self.host.set_interval(interval, callback)
        return TextualTimerHandle(timer)


class TextualTimerHandle:
    def __init__(self, timer):
        self._timer = timer

    def cancel(self):
        # set_interval() returns a Timer object, so we call .stop() on it
        if self._timer is not None:
            self._timer.stop()
            self._timer = None


class ThreadScheduler:
    """Schedule repeating callbacks on a daemon thread (for use without a UI loop)."""

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> "RepeatingThread":
        handle = RepeatingThread(interval, callback)
        handle.start()
        return handle


class RepeatingThread(threading.Thread):
    """
    Calls a function every ``interval`` seconds until cancelled.

    Deadlines are computed from the start time so ticks don't drift. If the
    thread falls more than one interval behind (host overloaded), the missed
    ticks are dropped and the schedule restarts from now.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        super().__init__(daemon=True, name="sequencer-clock")
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()

    def run(self):
        next_time = time.monotonic() + self.interval
        while not self._cancelled.wait(max(0.0, next_time - time.monotonic())):
            try:
                self.callback()
            except Exception as e:
                print(f"[ThreadScheduler] tick failed: {e}")
                traceback.print_exc()

            next_time += self.interval
            now = time.monotonic()
            if now - next_time > self.interval:
                next_time = now + self.interval

    def cancel(self):
        """Stop the loop and wait for a running callback to return."""
        self._cancelled.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join()
