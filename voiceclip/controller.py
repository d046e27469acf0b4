"""
Recording controller for VoiceClip.

Owns the recording lifecycle:
toggle → capture audio → stop → write WAV → transcribe → clipboard

Every outcome is reported to the display surface as an Event. Nothing is
raised to the caller, so the controller is always ready for the next toggle.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol, Union

import numpy as np

from voiceclip.clipboard import ClipboardError
from voiceclip.credentials import CredentialError, CredentialPrompt, NoPrompt
from voiceclip.events import DisplaySurface, Event, LogSurface
from voiceclip.groq_client import AuthenticationFailed, TranscriptionError, TranscriptionResult
from voiceclip.wav import concat_chunks, is_silent, trim_silence, write_payload


logger = logging.getLogger(__name__)

CREDENTIAL_REQUIRED = "API key is required for transcription"


class ControllerState(Enum):
    """State of the recording controller."""
    IDLE = "idle"
    STARTING = "starting"  # waiting for the capture device
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class CaptureHandle(Protocol):
    def stop(self) -> None:
        ...


class Transcriber(Protocol):
    def transcribe_file(self, path: Union[str, Path]) -> TranscriptionResult:
        ...


class ClipboardSink(Protocol):
    def copy(self, text: str) -> None:
        ...


# Opens a started capture stream that calls the given function per block
StreamFactory = Callable[[Callable[[np.ndarray], None]], CaptureHandle]
ClientFactory = Callable[[str], Transcriber]


@dataclass
class RecordingController:
    """
    Two-state recording toggle with a transcription hand-off.

    Usage:
        controller = RecordingController(
            open_stream=lambda on_data: open_capture_stream(on_data),
            client_factory=lambda key: GroqClient(api_key=key),
            clipboard=ClipboardWriter(),
        )
        controller.toggle()  # start
        controller.toggle()  # stop, transcribe, copy
    """

    open_stream: StreamFactory
    client_factory: ClientFactory
    clipboard: ClipboardSink
    surface: DisplaySurface = field(default_factory=LogSurface)
    credential: Optional[str] = None
    prompt: CredentialPrompt = field(default_factory=NoPrompt)
    on_credential: Optional[Callable[[str], None]] = None
    sample_rate: int = 16000
    trim_silence: bool = False
    temp_dir: Optional[Path] = None

    # Internal state
    _state: ControllerState = field(default=ControllerState.IDLE, init=False)
    _chunks: List[np.ndarray] = field(default_factory=list, init=False)
    _stream: Optional[CaptureHandle] = field(default=None, init=False)
    _client: Optional[Transcriber] = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _chunks_lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _client_lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def toggle(self) -> None:
        """Start recording when idle, otherwise stop and transcribe."""
        with self._lock:
            if self._state is ControllerState.IDLE:
                self._begin()
                return
            if self._state is not ControllerState.RECORDING:
                logger.debug("Toggle ignored while %s", self._state.value)
                return
            audio = self._end()

        self._finish(audio)

    def start(self) -> None:
        """Start recording. Does nothing unless idle."""
        with self._lock:
            self._begin()

    def stop(self) -> None:
        """Stop recording and transcribe. Does nothing unless recording."""
        with self._lock:
            if self._state is not ControllerState.RECORDING:
                logger.debug("Stop ignored while %s", self._state.value)
                return
            audio = self._end()

        self._finish(audio)

    def shutdown(self) -> None:
        """Discard any recording in progress and release the device."""
        with self._lock:
            if self._state is not ControllerState.RECORDING:
                return
            self._end()
            with self._chunks_lock:
                self._chunks = []
            self._state = ControllerState.IDLE
        logger.info("Recording discarded on shutdown")

    def set_credential(self, credential: Optional[str]) -> None:
        """Replace the credential; the client is rebuilt on next use."""
        with self._client_lock:
            self.credential = credential or None
            self._client = None

    # ------------------------------------------------------------------
    # Transitions (called with self._lock held)
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        if self._state is not ControllerState.IDLE:
            logger.debug("Start ignored while %s", self._state.value)
            return

        self._state = ControllerState.STARTING
        with self._chunks_lock:
            self._chunks = []

        try:
            self._stream = self.open_stream(self._on_chunk)
        except Exception as e:
            self._state = ControllerState.IDLE
            message = str(e) or e.__class__.__name__
            logger.error("Could not start recording: %s", message)
            self._emit(Event.RECORDING_ERROR, message)
            return

        self._state = ControllerState.RECORDING
        self._emit(Event.RECORDING_STATUS, True)

    def _end(self) -> np.ndarray:
        self._state = ControllerState.TRANSCRIBING

        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
            except Exception as e:
                logger.warning("Error releasing capture stream: %s", e)

        with self._chunks_lock:
            chunks, self._chunks = self._chunks, []

        self._emit(Event.RECORDING_STATUS, False)
        return concat_chunks(chunks)

    def _on_chunk(self, data: np.ndarray) -> None:
        with self._chunks_lock:
            if self._state in (ControllerState.STARTING, ControllerState.RECORDING):
                self._chunks.append(data)

    # ------------------------------------------------------------------
    # Finalizing (runs without self._lock)
    # ------------------------------------------------------------------

    def _finish(self, audio: np.ndarray) -> None:
        path = None
        try:
            if len(audio) == 0:
                self._emit(Event.TRANSCRIPTION_ERROR, "No audio was captured")
                return

            if self.trim_silence:
                audio = trim_silence(audio, sample_rate=self.sample_rate)
                if is_silent(audio, sample_rate=self.sample_rate):
                    self._emit(Event.TRANSCRIPTION_ERROR, "No speech detected")
                    return

            try:
                path = write_payload(audio, self.sample_rate, self.temp_dir)
            except OSError as e:
                self._emit(Event.TRANSCRIPTION_ERROR, f"Could not save recording: {e}")
                return

            self._transcribe(path)
        finally:
            if path is not None:
                try:
                    path.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Could not delete %s: %s", path, e)
            with self._lock:
                self._state = ControllerState.IDLE

    def _transcribe(self, path: Path) -> None:
        try:
            client = self._ensure_client()
            result = client.transcribe_file(path)
        except CredentialError as e:
            self._emit(Event.TRANSCRIPTION_ERROR, str(e))
            return
        except AuthenticationFailed as e:
            # Ask again next time instead of reusing a rejected key
            self.set_credential(None)
            self._emit(Event.TRANSCRIPTION_ERROR, str(e))
            return
        except TranscriptionError as e:
            self._emit(Event.TRANSCRIPTION_ERROR, str(e))
            return
        except Exception as e:
            logger.exception("Unexpected transcription failure")
            self._emit(Event.TRANSCRIPTION_ERROR, f"Transcription failed: {e}")
            return

        text = result.text
        if not text:
            self._emit(Event.TRANSCRIPTION_ERROR, "No speech detected")
            return

        clipboard_error = None
        try:
            self.clipboard.copy(text)
        except ClipboardError as e:
            clipboard_error = e

        self._emit(Event.TRANSCRIPTION_RESULT, text)

        if clipboard_error is not None:
            self._emit(Event.TRANSCRIPTION_ERROR, f"Could not copy to clipboard: {clipboard_error}")

    def _ensure_client(self) -> Transcriber:
        """
        Return the transcription client, creating it on first use.

        Raises:
            CredentialError: If no key is configured and the prompt is declined
            TranscriptionError: If the client cannot be created
        """
        with self._client_lock:
            if self._client is not None:
                return self._client

            credential = self.credential
            if not credential:
                credential = (self.prompt() or "").strip()
                if not credential:
                    raise CredentialError(CREDENTIAL_REQUIRED)
                self.credential = credential
                if self.on_credential:
                    try:
                        self.on_credential(credential)
                    except Exception as e:
                        logger.warning("Could not store API key: %s", e)

            try:
                self._client = self.client_factory(credential)
            except TranscriptionError:
                raise
            except Exception as e:
                raise TranscriptionError(f"Could not create transcription client: {e}") from e

            return self._client

    def _emit(self, event: Event, payload: Any) -> None:
        try:
            self.surface.notify(event, payload)
        except Exception:
            # Surface errors must not break the recording lifecycle
            logger.exception("Display surface failed on %s", event.value)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_recording(self) -> bool:
        """Check if currently recording."""
        return self._state is ControllerState.RECORDING

    @property
    def chunk_count(self) -> int:
        with self._chunks_lock:
            return len(self._chunks)
