"""ABOUTME: pygame mixer audio subsystem for the sample dispatcher (open / play / close).
ABOUTME: Finished channels are detected by poll(), which fires each sample's completion callback."""

import threading
from typing import Callable, List, Tuple

import pygame


class PygameAudioBackend:
    """
    Plays sample files through pygame.mixer.

    Every open() loads a fresh Sound object, so two instances of the same
    note are independent and never cut each other off. pygame has no
    per-sound completion callback that works without a display, so poll()
    must be called regularly (the UI does it from a Textual interval); it
    compares each channel's current sound with the one we started on it.
    """

    def __init__(self, channels: int = 64, volume: float = 1.0, frequency: int = 44100):
        """
        Initialize the mixer.

        Args:
            channels: Number of mixer channels (max simultaneous samples)
            volume: Per-sample volume 0.0-1.0
            frequency: Mixer sample rate in Hz
        """
        self.channels = max(1, int(channels))
        self.volume = max(0.0, min(1.0, float(volume)))
        self._ready = False
        self._lock = threading.Lock()
        self._playing: List[Tuple[object, object, Callable[[], None]]] = []
        self._init_pygame(frequency)

    def _init_pygame(self, frequency: int):
        try:
            pygame.mixer.pre_init(frequency, -16, 2, 512)
            pygame.mixer.init()
            pygame.mixer.set_num_channels(self.channels)
            self._ready = True
        except pygame.error as e:
            print(f"[PygameAudioBackend] mixer init failed: {e}")
            self._ready = False

    def is_ready(self) -> bool:
        """Return True if audio output is available."""
        return self._ready

    def open(self, resource: str):
        """Load a sample file into a new Sound."""
        if not self._ready:
            raise RuntimeError("audio output unavailable")
        sound = pygame.mixer.Sound(resource)
        sound.set_volume(self.volume)
        return sound

    def play(self, sound, on_complete: Callable[[], None]):
        """Start a Sound; on_complete fires from poll() once it has finished."""
        channel = sound.play()
        if channel is None:
            raise RuntimeError(f"no free mixer channel ({self.channels} in use)")
        with self._lock:
            self._playing.append((channel, sound, on_complete))

    def close(self, sound):
        sound.stop()

    def poll(self) -> int:
        """
        Fire completion callbacks for every sample that stopped playing.

        Returns:
            Number of completions delivered
        """
        finished = []
        with self._lock:
            still_playing = []
            for entry in self._playing:
                channel, sound, _ = entry
                if channel.get_busy() and channel.get_sound() is sound:
                    still_playing.append(entry)
                else:
                    finished.append(entry)
            self._playing = still_playing

        for _, _, on_complete in finished:
            on_complete()
        return len(finished)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._playing)

    def shutdown(self):
        """Stop all sound, deliver outstanding completions and close the mixer."""
        if not self._ready:
            return
        pygame.mixer.stop()
        self.poll()
        pygame.mixer.quit()
        self._ready = False
