"""
Floating widget for VoiceClip.

Shows recording and transcription progress in a small always-on-top window,
and asks for the API key when none is configured.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('Gdk', '3.0')
from gi.repository import Gtk, Gdk, GLib

from voiceclip.events import Event


logger = logging.getLogger(__name__)


class WidgetState(Enum):
    """Visual states for the widget."""
    HIDDEN = "hidden"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    DONE = "done"
    ERROR = "error"


# State-specific colors and messages
STATE_STYLES = {
    WidgetState.RECORDING: {
        "message": "🎤 Recording",
        "bg_color": "#e74c3c",  # Red
    },
    WidgetState.TRANSCRIBING: {
        "message": "⏳ Transcribing...",
        "bg_color": "#3498db",  # Blue
    },
    WidgetState.DONE: {
        "message": "📋 Copied",
        "bg_color": "#27ae60",  # Green
    },
    WidgetState.ERROR: {
        "message": "❌ Error",
        "bg_color": "#e67e22",  # Orange
    },
}

# Milliseconds before DONE / ERROR hide themselves
AUTO_HIDE_MS = {
    WidgetState.DONE: 1500,
    WidgetState.ERROR: 4000,
}

PREVIEW_LENGTH = 60


def preview(text: str, limit: int = PREVIEW_LENGTH) -> str:
    """Shorten text to one line for display."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit - 1] + "…"


@dataclass
class RecordingWidget:
    """
    Floating widget that shows recording status.

    All public methods may be called from any thread; GTK work is
    scheduled on the GTK main loop.

    Usage:
        widget = RecordingWidget()
        widget.set_state(WidgetState.RECORDING)
        widget.set_state(WidgetState.HIDDEN)
    """

    text_color: str = "#ffffff"  # White
    padding: int = 12
    margin_top: int = 60  # Pixels below the top of the monitor

    # Internal state
    _window: Optional[Gtk.Window] = field(default=None, init=False)
    _label: Optional[Gtk.Label] = field(default=None, init=False)
    _style_provider: Optional[Gtk.CssProvider] = field(default=None, init=False)
    _initialized: bool = field(default=False, init=False)
    _current_state: WidgetState = field(default=WidgetState.HIDDEN, init=False)
    _timer_running: bool = field(default=False, init=False)
    _timer_start: float = field(default=0.0, init=False)

    def _css(self, bg_color: str) -> bytes:
        return f"""
            window {{
                background-color: {bg_color};
                border-radius: 8px;
            }}
            label {{
                color: {self.text_color};
                font-size: 14px;
                font-weight: bold;
                padding: {self.padding}px {self.padding + 8}px;
            }}
        """.encode()

    def _ensure_initialized(self) -> bool:
        """Initialize GTK window if needed (must be called from main thread)."""
        if self._initialized:
            return False

        self._window = Gtk.Window(type=Gtk.WindowType.POPUP)
        self._window.set_decorated(False)
        self._window.set_keep_above(True)
        self._window.set_skip_taskbar_hint(True)
        self._window.set_skip_pager_hint(True)
        self._window.set_accept_focus(False)
        self._window.set_resizable(False)

        screen = self._window.get_screen()
        visual = screen.get_rgba_visual()
        if visual:
            self._window.set_visual(visual)
        self._window.set_app_paintable(True)

        self._style_provider = Gtk.CssProvider()
        self._style_provider.load_from_data(self._css(STATE_STYLES[WidgetState.RECORDING]["bg_color"]))
        Gtk.StyleContext.add_provider_for_screen(
            screen,
            self._style_provider,
            Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION
        )

        self._label = Gtk.Label(label="")
        self._window.add(self._label)

        self._initialized = True
        return False

    def _position_window(self) -> None:
        """Center the window near the top of the primary monitor."""
        self._window.show_all()
        widget_width = self._window.get_allocated_width()

        display = Gdk.Display.get_default()
        monitor = display.get_primary_monitor() or display.get_monitor(0)
        if monitor:
            rect = monitor.get_geometry()
            x = rect.x + (rect.width - widget_width) // 2
            y = rect.y + self.margin_top
        else:
            x, y = 100, 100

        self._window.move(x, y)

    def show(self, message: str, bg_color: str) -> None:
        def _show_in_main_thread():
            self._ensure_initialized()
            self._style_provider.load_from_data(self._css(bg_color))
            self._label.set_text(message)
            self._position_window()
            return False

        GLib.idle_add(_show_in_main_thread)

    def hide(self) -> None:
        """Hide the widget."""
        def _hide_in_main_thread():
            if self._window:
                self._window.hide()
            return False

        GLib.idle_add(_hide_in_main_thread)

    def update_message(self, message: str) -> None:
        """Update the displayed message."""
        def _update_in_main_thread():
            if self._label:
                self._label.set_text(message)
            return False

        GLib.idle_add(_update_in_main_thread)

    def set_state(self, state: WidgetState, detail: Optional[str] = None) -> None:
        """
        Set widget to a specific state with appropriate styling.

        Args:
            state: New state
            detail: Optional text shown after the state message
        """
        self._current_state = state

        if state == WidgetState.HIDDEN:
            self._stop_timer()
            self.hide()
            return

        style = STATE_STYLES[state]
        message = style["message"]
        if detail:
            message = f"{message}: {preview(detail)}"

        self._stop_timer()
        self.show(message, style["bg_color"])

        if state == WidgetState.RECORDING:
            self._start_timer()

        delay = AUTO_HIDE_MS.get(state)
        if delay:
            GLib.timeout_add(delay, self._auto_hide, state)

    def _auto_hide(self, state: WidgetState) -> bool:
        """Hide unless the state has moved on."""
        if self._current_state == state:
            self._current_state = WidgetState.HIDDEN
            self.hide()
        return False  # Don't repeat

    def _start_timer(self) -> None:
        """Start recording duration timer."""
        self._timer_running = True
        self._timer_start = time.time()
        GLib.timeout_add(500, self._tick)

    def _stop_timer(self) -> None:
        """Stop recording duration timer."""
        self._timer_running = False

    def _tick(self) -> bool:
        if not self._timer_running:
            return False
        secs = int(time.time() - self._timer_start)
        self.update_message(f"{STATE_STYLES[WidgetState.RECORDING]['message']} {secs}s")
        return True

    def destroy(self) -> None:
        """Destroy the widget and clean up resources."""
        self._stop_timer()

        def _destroy_in_main_thread():
            if self._window:
                self._window.destroy()
                self._window = None
                self._label = None
                self._initialized = False
            return False

        GLib.idle_add(_destroy_in_main_thread)


class WidgetSurface:
    """Display surface that drives a RecordingWidget from controller events."""

    def __init__(self, widget: RecordingWidget):
        self.widget = widget

    def notify(self, event: Event, payload: Any) -> None:
        if event is Event.RECORDING_STATUS:
            self.widget.set_state(WidgetState.RECORDING if payload else WidgetState.TRANSCRIBING)
        elif event is Event.TRANSCRIPTION_RESULT:
            self.widget.set_state(WidgetState.DONE, payload)
        elif event in (Event.RECORDING_ERROR, Event.TRANSCRIPTION_ERROR):
            self.widget.set_state(WidgetState.ERROR, payload)


class GtkCredentialPrompt:
    """
    Modal dialog asking for the API key.

    Called from a worker thread: the dialog runs on the GTK main loop and the
    caller blocks until it is closed.
    """

    timeout = 300.0  # Seconds to wait for an answer
    title = "Groq API Key Required"
    message = "Please enter your Groq API key:"
    detail = "Your API key is required for voice transcription. It will be stored locally and not shared."

    def _run_dialog(self) -> Optional[str]:
        dialog = Gtk.Dialog(title=self.title, modal=True)
        dialog.add_buttons(
            "_Cancel", Gtk.ResponseType.CANCEL,
            "_OK", Gtk.ResponseType.OK,
        )
        dialog.set_default_response(Gtk.ResponseType.OK)
        dialog.set_keep_above(True)

        box = dialog.get_content_area()
        box.set_spacing(8)
        box.set_border_width(12)
        box.add(Gtk.Label(label=self.message, xalign=0))
        hint = Gtk.Label(label=self.detail, xalign=0)
        hint.set_line_wrap(True)
        box.add(hint)

        entry = Gtk.Entry()
        entry.set_visibility(False)
        entry.set_activates_default(True)
        box.add(entry)

        dialog.show_all()
        try:
            response = dialog.run()
            value = entry.get_text().strip()
        finally:
            dialog.destroy()

        if response == Gtk.ResponseType.OK and value:
            return value
        return None

    def __call__(self) -> Optional[str]:
        done = threading.Event()
        result = {}

        def _ask():
            try:
                result["value"] = self._run_dialog()
            except Exception:
                logger.exception("Credential dialog failed")
            finally:
                done.set()
            return False

        GLib.idle_add(_ask)
        if not done.wait(timeout=self.timeout):
            logger.warning("Credential dialog did not answer within %.0fs", self.timeout)
            return None
        return result.get("value")


class WidgetThread:
    """
    Runs GTK main loop in a separate thread.

    This allows the widget to be used from non-GTK applications.
    """

    def __init__(self):
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._widget: Optional[RecordingWidget] = None

    def start(self) -> RecordingWidget:
        """Start the widget thread and return the widget instance."""
        if self._running:
            return self._widget

        self._widget = RecordingWidget()
        self._running = True

        def run_gtk():
            GLib.idle_add(self._widget._ensure_initialized)
            Gtk.main()

        self._thread = threading.Thread(target=run_gtk, daemon=True)
        self._thread.start()

        return self._widget

    def stop(self) -> None:
        """Stop the widget thread."""
        if not self._running:
            return

        self._running = False

        def quit_gtk():
            if self._widget:
                self._widget.destroy()
            Gtk.main_quit()
            return False

        GLib.idle_add(quit_gtk)

        if self._thread:
            self._thread.join(timeout=1)
            self._thread = None