"""ABOUTME: Sample trigger dispatcher - starts one playback instance per note trigger.
ABOUTME: Owns the registry of in-flight instances and releases each when its sample finishes."""

import itertools
import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .errors import PlaybackError, ResourceNotFound, SequencerError


@dataclass(frozen=True)
class PlaybackInstance:
    """One sample that is currently sounding."""

    instance_id: int
    note_index: int
    resource: str
    playable: Any


def _print_error(error: SequencerError):
    print(f"[SampleDispatcher] {error}")


class SampleDispatcher:
    """
    Triggers samples by note index and tracks every playing instance.

    Retriggering a note that is still sounding starts a second instance; the
    first one is never interrupted. Instances leave the registry only when
    the audio subsystem reports that they finished playing.

    The audio subsystem must provide:
        open(resource) -> playable
        play(playable, on_complete)  (on_complete() is called once, later)
        close(playable)
    """

    def __init__(
        self,
        audio,
        resolver: Callable[[int], str],
        resource_exists: Callable[[str], bool] = os.path.isfile,
        on_error: Optional[Callable[[SequencerError], None]] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            audio: Audio subsystem (see class docstring)
            resolver: Maps a note index to a sample locator
            resource_exists: Existence check for a resolved locator
            on_error: Receives ResourceNotFound / PlaybackError reports
                (defaults to printing them)
        """
        self.audio = audio
        self.resolver = resolver
        self.resource_exists = resource_exists
        self.on_error = on_error or _print_error

        self._instances: Dict[int, PlaybackInstance] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def trigger(self, note_index: int) -> Optional[int]:
        """
        Start playing the sample for a note.

        Errors are reported through ``on_error`` and never raised.

        Args:
            note_index: Row / note number

        Returns:
            The new instance id, or None if nothing started playing
        """
        try:
            resource = self.resolver(note_index)
        except Exception as e:
            self._report(PlaybackError(note_index, f"note {note_index}", e))
            return None

        try:
            exists = self.resource_exists(resource)
        except Exception as e:
            self._report(PlaybackError(note_index, resource, e))
            return None
        if not exists:
            self._report(ResourceNotFound(note_index, resource))
            return None

        instance_id = next(self._ids)
        playable = None
        try:
            playable = self.audio.open(resource)
            instance = PlaybackInstance(instance_id, note_index, resource, playable)

            # Register before play() so an immediate completion finds the instance
            with self._lock:
                self._instances[instance_id] = instance

            self.audio.play(playable, lambda: self._on_complete(instance_id))
        except Exception as e:
            with self._lock:
                self._instances.pop(instance_id, None)
            if playable is not None:
                self._close_quietly(playable)
            self._report(PlaybackError(note_index, resource, e))
            return None

        return instance_id

    def _on_complete(self, instance_id: int):
        """Completion signal from the audio subsystem: release and forget the instance."""
        with self._lock:
            instance = self._instances.pop(instance_id, None)
        if instance is None:
            return

        try:
            self.audio.close(instance.playable)
        except Exception as e:
            self._report(PlaybackError(instance.note_index, instance.resource, e))

    def _close_quietly(self, playable):
        try:
            self.audio.close(playable)
        except Exception as e:
            print(f"[SampleDispatcher] close after failed start also failed: {e}")

    def _report(self, error: SequencerError):
        try:
            self.on_error(error)
        except Exception as e:
            # A broken reporter must not take the clock down with it
            print(f"[SampleDispatcher] error reporter failed: {e} (while reporting: {error})")

    def active_count(self) -> int:
        """Number of instances still playing."""
        with self._lock:
            return len(self._instances)

    def active_instances(self) -> List[PlaybackInstance]:
        """Copy of the playing instances, oldest first."""
        with self._lock:
            return [self._instances[key] for key in sorted(self._instances)]

    def active_notes(self) -> List[int]:
        """Distinct notes with at least one playing instance, ascending."""
        with self._lock:
            return sorted({instance.note_index for instance in self._instances.values()})
