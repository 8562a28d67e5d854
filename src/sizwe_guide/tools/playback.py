"""Narration playback controller.

The controller mirrors an audio element's state into PlaybackState. It
issues play/pause/mute commands to the element and otherwise only reacts
to the element's own events; it never polls.
"""

import logging
import math
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from ..models.playback import PlaybackState


logger = logging.getLogger(__name__)

Listener = Callable[["MediaElement"], None]

LOADED_METADATA = "loadedmetadata"
TIME_UPDATE = "timeupdate"
ENDED = "ended"
ERROR = "error"


class MediaElement:
    """Minimal event-emitting model of an audio element."""

    def __init__(self, src: Optional[str] = None):
        self.src = src
        self.paused = True
        self.muted = False
        self.current_time = 0.0
        self.duration = 0.0
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def add_event_listener(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def remove_event_listener(self, event: str, listener: Listener) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    def dispatch(self, event: str) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(self)

    def play(self) -> None:
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    # Helpers for whatever drives the element (browser bridge or tests)

    def load_metadata(self, duration: float) -> None:
        self.duration = max(0.0, float(duration))
        self.dispatch(LOADED_METADATA)

    def advance_to(self, position: float) -> None:
        self.current_time = max(0.0, float(position))
        self.dispatch(TIME_UPDATE)

    def finish(self) -> None:
        self.paused = True
        self.current_time = self.duration
        self.dispatch(ENDED)

    def fail(self) -> None:
        self.dispatch(ERROR)


class PlaybackController:
    """Paused/Playing state machine with an orthogonal mute flag."""

    def __init__(self, element: MediaElement):
        self.element = element
        self.state = PlaybackState()
        self._handlers = {
            LOADED_METADATA: self._on_loaded_metadata,
            TIME_UPDATE: self._on_time_update,
            ENDED: self._on_ended,
            ERROR: self._on_error,
        }
        for event, handler in self._handlers.items():
            element.add_event_listener(event, handler)
        self._attached = True

    @property
    def is_attached(self) -> bool:
        return self._attached

    @property
    def progress(self) -> float:
        return self.state.progress

    def toggle(self) -> PlaybackState:
        """Paused -> Playing issues play(); Playing -> Paused issues pause()."""
        if self.state.is_playing:
            self.element.pause()
        else:
            self.element.play()
        self.state.is_playing = not self.state.is_playing
        return self.state

    def toggle_mute(self) -> PlaybackState:
        self.state.is_muted = not self.state.is_muted
        self.element.muted = self.state.is_muted
        return self.state

    def detach(self) -> None:
        """Deregister listeners when the owning view is torn down."""
        if not self._attached:
            return
        for event, handler in self._handlers.items():
            self.element.remove_event_listener(event, handler)
        self._attached = False

    def _on_loaded_metadata(self, element: MediaElement) -> None:
        duration = element.duration
        # NaN/inf durations (streams, failed loads) are treated as unknown
        if not math.isfinite(duration) or duration < 0:
            duration = 0.0
        self.state.total_duration = duration
        self._clamp_position()

    def _on_time_update(self, element: MediaElement) -> None:
        self.state.current_position = max(0.0, element.current_time)
        self._clamp_position()

    def _on_ended(self, element: MediaElement) -> None:
        self.state.is_playing = False
        self.state.current_position = self.state.total_duration

    def _on_error(self, element: MediaElement) -> None:
        logger.debug(f"Narration failed to load: {element.src!r}")
        self.state.total_duration = 0.0

    def _clamp_position(self) -> None:
        if self.state.total_duration > 0:
            self.state.current_position = min(self.state.current_position, self.state.total_duration)


def format_time(seconds: float) -> str:
    """Format seconds as m:ss."""
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
