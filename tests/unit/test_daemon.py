"""Unit tests for daemon wiring."""

import signal
from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("evdev")

from voiceclip.config import Config
from voiceclip.controller import ControllerState
from voiceclip.credentials import NoPrompt, TerminalPrompt
from voiceclip.daemon import DaemonProcess
from voiceclip.groq_client import GroqClient
from voiceclip.process import COMMAND_SIGNALS


@pytest.fixture
def config():
    config = Config()
    config.ui.widget = False
    config.api.api_key = "gsk_file"
    config.api.timeout = 9.0
    return config


@pytest.fixture
def clipboard_writer():
    with patch("voiceclip.daemon.ClipboardWriter") as writer:
        yield writer


@pytest.mark.unit
class TestDaemonProcess:

    def test_builds_controller_from_config(self, config, clipboard_writer):
        daemon = DaemonProcess(config=config)

        controller = daemon._build_controller()

        assert controller.credential == "gsk_file"
        assert controller.clipboard is clipboard_writer.return_value
        assert isinstance(controller.prompt, NoPrompt)
        assert controller.state is ControllerState.IDLE

    def test_interactive_uses_terminal_prompt(self, config, clipboard_writer):
        controller = DaemonProcess(config=config, interactive=True)._build_controller()

        assert isinstance(controller.prompt, TerminalPrompt)

    def test_environment_key_wins(self, config, clipboard_writer, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "gsk_env")

        controller = DaemonProcess(config=config)._build_controller()

        assert controller.credential == "gsk_env"

    def test_client_uses_api_settings(self, config):
        with patch("voiceclip.groq_client.Groq"):
            client = DaemonProcess(config=config)._make_client("gsk_key")

        assert isinstance(client, GroqClient)
        assert client.timeout == 9.0
        assert client.whisper_model == config.api.whisper_model

    def test_prompted_key_is_saved(self, config):
        daemon = DaemonProcess(config=config)

        daemon._store_credential("gsk_new")

        assert Config.load().api.api_key == "gsk_new"

    def test_invalid_config_refuses_to_run(self, config):
        config.audio.sample_rate = 1
        daemon = DaemonProcess(config=config)

        with pytest.raises(RuntimeError, match="Invalid configuration"):
            daemon.run()
        assert daemon.is_running is False

    def test_cleanup_releases_everything(self, config, clipboard_writer):
        daemon = DaemonProcess(config=config)
        daemon._controller = MagicMock()
        daemon._hotkey_listener = MagicMock()

        daemon._cleanup()

        daemon._hotkey_listener.stop.assert_called_once()
        daemon._controller.shutdown.assert_called_once()


@pytest.fixture
def saved_handlers():
    """Restore every signal handler the daemon installs."""
    signums = [signal.SIGINT, signal.SIGTERM, *COMMAND_SIGNALS.values()]
    previous = {signum: signal.getsignal(signum) for signum in signums}
    yield
    for signum, handler in previous.items():
        signal.signal(signum, handler)


@pytest.mark.unit
class TestSignalHandlers:

    @pytest.fixture
    def daemon(self, config, saved_handlers):
        daemon = DaemonProcess(config=config)
        daemon._controller = MagicMock()
        # Run commands inline instead of on a worker thread
        daemon._dispatch = lambda action: action()
        daemon._setup_signal_handlers()
        return daemon

    @pytest.mark.parametrize("command, method", [
        ("toggle", "toggle"),
        ("start-recording", "start"),
        ("stop-recording", "stop"),
    ])
    def test_command_signal_reaches_controller(self, daemon, command, method):
        signum = COMMAND_SIGNALS[command]

        signal.getsignal(signum)(signum, None)

        controller = daemon._controller
        getattr(controller, method).assert_called_once_with()
        for other in {"toggle", "start", "stop"} - {method}:
            getattr(controller, other).assert_not_called()

    def test_terminate_stops_daemon(self, daemon):
        daemon._running = True

        signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)

        assert daemon.is_running is False
        daemon._controller.toggle.assert_not_called()
