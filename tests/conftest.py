"""Pytest configuration and fixtures for VoiceClip tests."""

import logging
import threading
from pathlib import Path

import numpy as np
import pytest

from voiceclip.controller import RecordingController
from voiceclip.groq_client import TranscriptionResult


# Configure logging for tests
logging.basicConfig(level=logging.INFO)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and PID files out of the real home directory."""
    import voiceclip.config
    import voiceclip.process

    config_dir = tmp_path / "config"
    run_dir = tmp_path / "run"
    monkeypatch.setattr(voiceclip.config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(voiceclip.config, "CONFIG_FILE", config_dir / "config.yaml")
    monkeypatch.setattr(voiceclip.process, "PID_DIR", run_dir)
    monkeypatch.setattr(voiceclip.process, "PID_FILE", run_dir / "voiceclip.pid")
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    return tmp_path


@pytest.fixture
def payload_dir(tmp_path):
    """Directory the controller writes WAV payloads into."""
    path = tmp_path / "payloads"
    path.mkdir()
    return path


def make_tone(frames: int = 8000, amplitude: float = 0.5, sample_rate: int = 16000) -> np.ndarray:
    """A 440Hz sine block shaped like sounddevice input (frames, 1)."""
    t = np.arange(frames) / sample_rate
    wave_data = amplitude * np.sin(2 * np.pi * 440 * t)
    return wave_data.astype(np.float32).reshape(-1, 1)


@pytest.fixture
def tone():
    return make_tone


class FakeStream:
    """Capture stream that delivers blocks on demand."""

    def __init__(self, on_data):
        self.on_data = on_data
        self.stopped = False

    def feed(self, block: np.ndarray) -> None:
        self.on_data(block)

    def stop(self) -> None:
        self.stopped = True


class StreamFactory:
    """Records every stream it opens; can be told to fail or to block."""

    def __init__(self):
        self.streams = []
        self.error = None
        self.entered = threading.Event()
        self.gate = threading.Event()
        self.gate.set()

    def __call__(self, on_data):
        self.entered.set()
        self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        stream = FakeStream(on_data)
        self.streams.append(stream)
        return stream

    @property
    def last(self) -> FakeStream:
        return self.streams[-1]


class FakeTranscriber:
    """Transcription client returning a fixed text or raising."""

    def __init__(self, text: str = "hello world"):
        self.text = text
        self.error = None
        self.calls = []  # (path, existed, bytes)
        self.entered = threading.Event()
        self.gate = threading.Event()
        self.gate.set()

    def transcribe_file(self, path):
        path = Path(path)
        self.calls.append((path, path.exists(), path.read_bytes() if path.exists() else b""))
        self.entered.set()
        self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return TranscriptionResult(text=self.text)


class ClientFactory:
    def __init__(self, transcriber: FakeTranscriber):
        self.transcriber = transcriber
        self.keys = []

    def __call__(self, api_key: str) -> FakeTranscriber:
        self.keys.append(api_key)
        return self.transcriber


class FakeClipboard:
    def __init__(self):
        self.contents = None
        self.error = None

    def copy(self, text: str) -> None:
        if self.error is not None:
            raise self.error
        self.contents = text


class RecordingSurface:
    """Display surface that keeps every event it receives."""

    def __init__(self):
        self.events = []

    def notify(self, event, payload):
        self.events.append((event, payload))

    def of(self, event):
        return [payload for e, payload in self.events if e is event]


@pytest.fixture
def stream_factory():
    return StreamFactory()


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def client_factory(transcriber):
    return ClientFactory(transcriber)


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def make_controller(stream_factory, client_factory, clipboard, surface, payload_dir):
    """Build a RecordingController wired to the fakes."""
    def _make(**overrides):
        options = dict(
            open_stream=stream_factory,
            client_factory=client_factory,
            clipboard=clipboard,
            surface=surface,
            credential="gsk_test_key",
            temp_dir=payload_dir,
        )
        options.update(overrides)
        return RecordingController(**options)

    return _make
