"""
Display surface events for VoiceClip.

The controller reports everything it does through a DisplaySurface.
Notifications are one-way: surfaces never return anything to the controller.
"""

import logging
from enum import Enum
from typing import Any, Iterable, List, Protocol


logger = logging.getLogger(__name__)


class Event(Enum):
    """Events sent to the display surface."""
    RECORDING_STATUS = "recording-status"  # payload: bool
    RECORDING_ERROR = "recording-error"  # payload: str
    TRANSCRIPTION_RESULT = "transcription-result"  # payload: str
    TRANSCRIPTION_ERROR = "transcription-error"  # payload: str


class DisplaySurface(Protocol):
    def notify(self, event: Event, payload: Any) -> None:
        ...


class LogSurface:
    """Writes every event to the log."""

    def notify(self, event: Event, payload: Any) -> None:
        if event is Event.RECORDING_STATUS:
            logger.info("Recording %s", "started" if payload else "stopped")
        elif event is Event.TRANSCRIPTION_RESULT:
            logger.info("Transcribed %d characters", len(payload))
        else:
            logger.error("%s: %s", event.value, payload)


class SurfaceGroup:
    """
    Fans events out to several surfaces.

    A surface that raises is logged and skipped so the others still
    receive the event.
    """

    def __init__(self, surfaces: Iterable[DisplaySurface] = ()):
        self._surfaces: List[DisplaySurface] = list(surfaces)

    def add(self, surface: DisplaySurface) -> None:
        self._surfaces.append(surface)

    def notify(self, event: Event, payload: Any) -> None:
        for surface in self._surfaces:
            try:
                surface.notify(event, payload)
            except Exception:
                logger.exception("Display surface %r failed on %s", surface, event.value)

    def __len__(self) -> int:
        return len(self._surfaces)
