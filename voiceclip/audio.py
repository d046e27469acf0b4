"""
Audio capture module for VoiceClip.

Captures audio from the input device using sounddevice.
"""

import logging
import threading
from typing import Callable, Optional

import numpy as np
import sounddevice as sd


logger = logging.getLogger(__name__)


class AudioError(Exception):
    """Exception raised for audio-related errors."""
    pass


class CaptureStream:
    """
    An open input stream that hands each audio block to a callback.

    Usage:
        stream = open_capture_stream(on_data=chunks.append)
        # ... user speaks ...
        stream.stop()
    """

    def __init__(
        self,
        on_data: Callable[[np.ndarray], None],
        sample_rate: int = 16000,
        channels: int = 1,
        device: Optional[str] = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self._on_data = on_data
        self._stream: Optional[sd.InputStream] = None
        self._lock = threading.Lock()

    def _audio_callback(self, indata: np.ndarray, frames: int,
                        time_info, status: sd.CallbackFlags) -> None:
        """Callback function called for each audio block."""
        if status:
            logger.debug("Audio status: %s", status)

        # sounddevice reuses indata, so hand out a copy
        self._on_data(indata.copy())

    def start(self) -> None:
        """
        Open the device and start delivering blocks.

        Raises:
            AudioError: If no audio device is available or capture fails.
        """
        with self._lock:
            if self._stream is not None:
                return

            try:
                stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    device=self.device,
                    dtype=np.float32,
                    callback=self._audio_callback,
                )
                stream.start()
            except sd.PortAudioError as e:
                raise AudioError(f"Failed to start recording: {e}") from e
            except Exception as e:
                raise AudioError(f"Audio error: {e}") from e

            self._stream = stream

    def stop(self) -> None:
        """Stop the stream and release the device. Safe to call twice."""
        with self._lock:
            stream, self._stream = self._stream, None

        if stream is None:
            return

        try:
            stream.stop()
        finally:
            stream.close()


def open_capture_stream(
    on_data: Callable[[np.ndarray], None],
    sample_rate: int = 16000,
    channels: int = 1,
    device: Optional[str] = None,
) -> CaptureStream:
    """
    Open and start a capture stream.

    Raises:
        AudioError: If the device cannot be opened.
    """
    stream = CaptureStream(on_data, sample_rate=sample_rate, channels=channels, device=device)
    stream.start()
    return stream


def list_devices() -> list[dict]:
    """List available audio input devices."""
    devices = []
    for i, dev in enumerate(sd.query_devices()):
        if dev['max_input_channels'] > 0:
            devices.append({
                'index': i,
                'name': dev['name'],
                'channels': dev['max_input_channels'],
                'sample_rate': dev['default_samplerate'],
            })
    return devices


def get_default_device() -> Optional[dict]:
    """Get the default input device info."""
    try:
        device_id = sd.default.device[0]  # Input device
        if device_id is None or device_id < 0:
            return None
        dev = sd.query_devices(device_id)
    except sd.PortAudioError as e:
        logger.debug("No default input device: %s", e)
        return None

    return {
        'index': device_id,
        'name': dev['name'],
        'channels': dev['max_input_channels'],
        'sample_rate': dev['default_samplerate'],
    }
