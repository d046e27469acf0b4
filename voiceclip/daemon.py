"""
Core daemon process for VoiceClip.

Wires the pieces together:
hotkey / command signal → RecordingController → display surface + clipboard
"""

import logging
import signal
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from voiceclip.config import Config
from voiceclip.controller import RecordingController, ControllerState
from voiceclip.credentials import NoPrompt, TerminalPrompt
from voiceclip.events import LogSurface, SurfaceGroup
from voiceclip.groq_client import GroqClient
from voiceclip.hotkey import HotkeyListener, HotkeyError
from voiceclip.clipboard import ClipboardWriter
from voiceclip.process import COMMAND_SIGNALS


logger = logging.getLogger(__name__)


@dataclass
class DaemonProcess:
    """
    Main daemon process for VoiceClip.

    1. Hotkey (or `voiceclip toggle`) → start recording
    2. Hotkey again → stop recording
    3. Send audio to Groq Whisper for transcription
    4. Copy text to the clipboard and show it in the widget

    Usage:
        daemon = DaemonProcess()
        daemon.run()  # Blocks until stopped
    """

    config: Config = field(default_factory=Config.load)
    interactive: bool = False  # Foreground run attached to a terminal

    # Internal state
    _running: bool = field(default=False, init=False)
    _controller: Optional[RecordingController] = field(default=None, init=False)
    _hotkey_listener: Optional[HotkeyListener] = field(default=None, init=False)
    _widget_thread: Optional[Any] = field(default=None, init=False)
    _stop_event: threading.Event = field(default_factory=threading.Event, init=False)

    def _make_client(self, api_key: str) -> GroqClient:
        return GroqClient(
            api_key=api_key,
            whisper_model=self.config.api.whisper_model,
            timeout=self.config.api.timeout,
            max_retries=self.config.api.max_retries,
            language=self.config.api.language,
        )

    def _open_stream(self, on_data):
        from voiceclip.audio import open_capture_stream

        return open_capture_stream(
            on_data,
            sample_rate=self.config.audio.sample_rate,
            channels=self.config.audio.channels,
            device=self.config.audio.device,
        )

    def _store_credential(self, api_key: str) -> None:
        self.config.api.api_key = api_key
        self.config.save()
        logger.info("API key saved to %s", Config.get_config_path())

    def _build_controller(self) -> RecordingController:
        clipboard = ClipboardWriter()
        surface = SurfaceGroup([LogSurface()])
        prompt = TerminalPrompt() if self.interactive else NoPrompt()

        if self.config.ui.widget:
            try:
                from voiceclip.widget import WidgetThread, WidgetSurface, GtkCredentialPrompt

                self._widget_thread = WidgetThread()
                surface.add(WidgetSurface(self._widget_thread.start()))
                prompt = GtkCredentialPrompt()
            except (ImportError, ValueError) as e:
                # PyGObject missing or no GTK 3 typelib
                logger.warning("Widget disabled: %s", e)

        return RecordingController(
            open_stream=self._open_stream,
            client_factory=self._make_client,
            clipboard=clipboard,
            surface=surface,
            credential=self.config.resolve_api_key() or None,
            prompt=prompt,
            on_credential=self._store_credential,
            sample_rate=self.config.audio.sample_rate,
            trim_silence=self.config.audio.trim_silence,
        )

    def _dispatch(self, action: Callable[[], None]) -> None:
        """Run a controller command off the calling thread."""
        threading.Thread(target=action, daemon=True).start()

    def _setup_signal_handlers(self) -> None:
        """Set up graceful shutdown and command signals."""
        def handle_shutdown(signum, frame):
            logger.info("Shutting down...")
            self.stop()

        signal.signal(signal.SIGINT, handle_shutdown)
        signal.signal(signal.SIGTERM, handle_shutdown)

        actions = {
            "toggle": self._controller.toggle,
            "start-recording": self._controller.start,
            "stop-recording": self._controller.stop,
        }
        for name, signum in COMMAND_SIGNALS.items():
            action = actions[name]
            signal.signal(signum, lambda s, f, action=action: self._dispatch(action))

    def run(self) -> None:
        """
        Run the daemon. Blocks until stop() is called.

        Raises:
            RuntimeError: If configuration is invalid
            ClipboardError: If no clipboard tool is installed
        """
        errors = self.config.validate()
        if errors:
            raise RuntimeError(f"Invalid configuration: {'; '.join(errors)}")

        self._controller = self._build_controller()

        self._hotkey_listener = HotkeyListener(
            combo=self.config.hotkey.combo,
            on_trigger=self._controller.toggle,
        )

        self._setup_signal_handlers()

        self._running = True
        try:
            try:
                self._hotkey_listener.start()
                logger.info("Ready! Press %s to start and stop recording.", self.config.hotkey.combo.upper())
            except HotkeyError as e:
                # Desktop shortcuts can still call `voiceclip toggle`
                logger.warning("Hotkey unavailable: %s", e)
                logger.info("Ready! Run 'voiceclip toggle' to start and stop recording.")

            while self._running and not self._stop_event.is_set():
                self._stop_event.wait(timeout=0.5)
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Stop the daemon gracefully."""
        self._running = False
        self._stop_event.set()

    def _cleanup(self) -> None:
        """Clean up resources."""
        if self._hotkey_listener:
            self._hotkey_listener.stop()

        if self._controller:
            self._controller.shutdown()

        if self._widget_thread:
            self._widget_thread.stop()

        self._running = False
        logger.info("Stopped.")

    @property
    def state(self) -> ControllerState:
        """Get current recording state."""
        if self._controller is None:
            return ControllerState.IDLE
        return self._controller.state

    @property
    def is_running(self) -> bool:
        """Check if daemon is running."""
        return self._running

