#!/usr/bin/env python3
"""ABOUTME: Tests for the sequencer clock and transport - cursor arithmetic, trigger order, stop/start.
ABOUTME: A fake scheduler fires ticks on demand so no wall-clock waits are needed."""

import sys
import threading
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from music.grid_state import GridState
from music.sample_dispatcher import SampleDispatcher
from music.sample_resolver import SampleResolver
from music.schedulers import ThreadScheduler
from music.sequencer_clock import SequencerClock
from music.transport import TransportController, TransportState
from test_sample_dispatcher import FakeAudio


class FakeHandle:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Hands out handles and fires their callbacks when the test says so."""

    def __init__(self, fire_on_schedule=0):
        self.fire_on_schedule = fire_on_schedule
        self.handles = []

    def schedule_repeating(self, interval, callback):
        handle = FakeHandle(interval, callback)
        self.handles.append(handle)
        for _ in range(self.fire_on_schedule):
            callback()
        return handle

    @property
    def live_handles(self):
        return [h for h in self.handles if not h.cancelled]

    def fire(self, times=1):
        for _ in range(times):
            for handle in self.live_handles:
                handle.callback()


class RecordingDispatcher:
    def __init__(self):
        self.triggered = []

    def trigger(self, note_index):
        self.triggered.append(note_index)


def make_clock(rows=4, columns=4, trigger_on_start=True, fire_on_schedule=0):
    grid = GridState(rows, columns)
    dispatcher = RecordingDispatcher()
    scheduler = FakeScheduler(fire_on_schedule)
    clock = SequencerClock(grid, dispatcher, scheduler, interval=0.25, trigger_on_start=trigger_on_start)
    return clock, grid, dispatcher, scheduler


def test_start_resets_cursor_and_one_tick_advances_to_one():
    clock, _, _, scheduler = make_clock(columns=8)
    clock.cursor = 5

    clock.start()
    assert clock.cursor == 0
    assert clock.is_ticking
    assert scheduler.handles[0].interval == 0.25

    scheduler.fire()
    assert clock.cursor == 1


def test_single_column_grid_wraps_to_zero():
    clock, _, _, scheduler = make_clock(columns=1)
    clock.start()
    scheduler.fire()
    assert clock.cursor == 0


def test_cursor_returns_to_zero_after_columns_ticks():
    clock, _, _, scheduler = make_clock(columns=32)
    clock.start()
    scheduler.fire(31)
    assert clock.cursor == 31
    scheduler.fire()
    assert clock.cursor == 0


def test_start_plays_column_zero_in_ascending_order():
    clock, grid, dispatcher, _ = make_clock(fire_on_schedule=1)
    grid.set(3, 0, True)
    grid.set(0, 0, True)

    clock.start()

    assert dispatcher.triggered == [0, 3]
    assert clock.cursor == 1


def test_ticks_fired_while_scheduling_are_not_dropped():
    clock, grid, dispatcher, _ = make_clock(trigger_on_start=False, fire_on_schedule=2)
    grid.set(1, 1, True)
    grid.set(2, 2, True)

    clock.start()

    assert clock.is_ticking
    assert clock.cursor == 2
    assert dispatcher.triggered == [1, 2]


def test_without_trigger_on_start_column_zero_waits_for_wrap():
    clock, grid, dispatcher, scheduler = make_clock(trigger_on_start=False)
    grid.set(0, 0, True)
    grid.set(3, 0, True)
    grid.set(2, 1, True)

    clock.start()
    assert dispatcher.triggered == []

    scheduler.fire()
    assert dispatcher.triggered == [2]

    scheduler.fire(3)
    assert clock.cursor == 0
    assert dispatcher.triggered == [2, 0, 3]


def test_active_cells_retrigger_every_loop():
    clock, grid, dispatcher, scheduler = make_clock(columns=2, trigger_on_start=False)
    grid.set(1, 1, True)
    clock.start()
    scheduler.fire(6)
    assert dispatcher.triggered == [1, 1, 1]


def test_grid_edits_apply_on_the_next_visit():
    clock, grid, dispatcher, scheduler = make_clock(trigger_on_start=False)
    clock.start()
    scheduler.fire()
    grid.set(2, 2, True)
    scheduler.fire()
    assert dispatcher.triggered == [2]


def test_step_callback_sees_each_column():
    clock, _, _, scheduler = make_clock()
    steps = []
    clock.set_step_callback(steps.append)
    clock.start()
    scheduler.fire(4)
    assert steps == [0, 1, 2, 3, 0]


def test_start_while_ticking_is_a_noop():
    clock, _, _, scheduler = make_clock()
    clock.start()
    scheduler.fire(2)
    clock.start()
    assert clock.cursor == 2
    assert len(scheduler.handles) == 1


def test_stop_keeps_cursor_and_halts_ticks():
    clock, grid, dispatcher, scheduler = make_clock(trigger_on_start=False)
    grid.set(0, 3, True)
    clock.start()
    scheduler.fire(2)

    clock.stop()
    assert not clock.is_ticking
    assert clock.cursor == 2
    assert scheduler.handles[0].cancelled

    scheduler.fire(5)
    assert clock.cursor == 2
    assert dispatcher.triggered == []

    clock.stop()
    assert clock.cursor == 2


def test_tick_delivered_after_stop_is_ignored():
    clock, grid, dispatcher, scheduler = make_clock()
    grid.set(1, 1, True)
    clock.start()
    callback = scheduler.handles[0].callback
    clock.stop()

    callback()

    assert clock.cursor == 0
    assert dispatcher.triggered == []


def test_invalid_interval():
    with pytest.raises(ValueError):
        SequencerClock(GridState(2, 2), RecordingDispatcher(), FakeScheduler(), interval=0)


def test_transport_toggle_and_label():
    clock, _, _, scheduler = make_clock()
    transport = TransportController(clock)
    states = []
    transport.on_state_change = states.append

    assert transport.state is TransportState.STOPPED
    assert transport.label == "Play"

    assert transport.toggle_transport() is TransportState.RUNNING
    assert transport.label == "Stop"
    scheduler.fire(3)

    assert transport.toggle_transport() is TransportState.STOPPED
    assert transport.label == "Play"
    assert clock.cursor == 3

    transport.toggle_transport()
    assert clock.cursor == 0
    assert states == [TransportState.RUNNING, TransportState.STOPPED, TransportState.RUNNING]


def test_transport_explicit_start_stop_are_idempotent():
    clock, _, _, scheduler = make_clock()
    transport = TransportController(clock)
    states = []
    transport.on_state_change = states.append

    transport.stop()
    transport.start()
    transport.start()
    transport.stop()
    transport.stop()

    assert states == [TransportState.RUNNING, TransportState.STOPPED]
    assert len(scheduler.handles) == 1


def test_stop_lets_in_flight_samples_finish():
    grid = GridState(4, 4)
    grid.set(0, 0, True)
    grid.set(3, 0, True)
    audio = FakeAudio()
    dispatcher = SampleDispatcher(audio, SampleResolver("/samples"), resource_exists=lambda r: True)
    scheduler = FakeScheduler()
    clock = SequencerClock(grid, dispatcher, scheduler)
    transport = TransportController(clock)

    transport.toggle_transport()
    assert dispatcher.active_count() == 2
    transport.toggle_transport()

    audio.finish_all()
    assert dispatcher.active_count() == 0
    assert len(audio.closed) == 2

    scheduler.fire(4)
    assert len(audio.opened) == 2


def test_bad_sample_names_do_not_stop_the_clock():
    grid = GridState(4, 4)
    grid.set(0, 0, True)
    grid.set(1, 1, True)
    errors = []
    dispatcher = SampleDispatcher(FakeAudio(), SampleResolver("/samples", "key{num}.wav"),
                                  resource_exists=lambda r: True, on_error=errors.append)
    scheduler = FakeScheduler()
    clock = SequencerClock(grid, dispatcher, scheduler)

    clock.start()
    scheduler.fire(2)

    assert clock.is_ticking
    assert clock.cursor == 2
    assert len(errors) == 2


def test_thread_scheduler_ticks_until_cancelled():
    ticks = []
    enough = threading.Event()

    def tick():
        ticks.append(1)
        if len(ticks) >= 3:
            enough.set()

    handle = ThreadScheduler().schedule_repeating(0.01, tick)
    try:
        assert enough.wait(timeout=5)
    finally:
        handle.cancel()
    handle.join(timeout=2)
    count = len(ticks)
    assert not handle.is_alive()
    assert len(ticks) == count


class BlockingDispatcher:
    """First trigger blocks until released; later ones are just recorded."""

    def __init__(self):
        self.triggered = []
        self.entered = threading.Event()
        self.release = threading.Event()

    def trigger(self, note_index):
        self.triggered.append(note_index)
        if len(self.triggered) == 1:
            self.entered.set()
            self.release.wait(timeout=5)


def test_stop_waits_for_a_running_threaded_tick():
    grid = GridState(2, 4)
    for col in range(4):
        grid.set(1, col, True)
    dispatcher = BlockingDispatcher()
    clock = SequencerClock(grid, dispatcher, ThreadScheduler(), interval=0.01, trigger_on_start=False)

    clock.start()
    assert dispatcher.entered.wait(timeout=5)

    stopper = threading.Thread(target=clock.stop)
    stopper.start()
    stopper.join(timeout=0.1)
    # Tick is still inside trigger(), so stop() cannot return yet
    assert stopper.is_alive()

    dispatcher.release.set()
    stopper.join(timeout=5)
    assert not stopper.is_alive()
    assert not clock.is_ticking

    count = len(dispatcher.triggered)
    threading.Event().wait(0.05)
    assert len(dispatcher.triggered) == count


def test_thread_scheduler_survives_a_failing_tick():
    calls = []
    second = threading.Event()

    def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        second.set()

    handle = ThreadScheduler().schedule_repeating(0.01, tick)
    try:
        assert second.wait(timeout=5)
    finally:
        handle.cancel()
        handle.join(timeout=2)
