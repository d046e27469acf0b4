"""Unit tests for the clipboard writer."""

import subprocess
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from voiceclip.clipboard import ClipboardError, ClipboardWriter, DisplayServer, detect_display_server


def which_only(*tools):
    return lambda name: f"/usr/bin/{name}" if name in tools else None


@pytest.fixture
def x11(monkeypatch):
    monkeypatch.setenv("XDG_SESSION_TYPE", "x11")


@pytest.fixture
def wayland(monkeypatch):
    monkeypatch.setenv("XDG_SESSION_TYPE", "wayland")


@pytest.mark.unit
class TestDisplayServer:

    def test_session_type(self, monkeypatch):
        monkeypatch.setenv("XDG_SESSION_TYPE", "wayland")
        assert detect_display_server() is DisplayServer.WAYLAND

    def test_fallback_to_display(self, monkeypatch):
        monkeypatch.delenv("XDG_SESSION_TYPE", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        monkeypatch.setenv("DISPLAY", ":0")
        assert detect_display_server() is DisplayServer.X11

    def test_unknown(self, monkeypatch):
        for name in ("XDG_SESSION_TYPE", "WAYLAND_DISPLAY", "DISPLAY"):
            monkeypatch.delenv(name, raising=False)
        assert detect_display_server() is DisplayServer.UNKNOWN


@pytest.mark.unit
class TestClipboardWriter:

    def test_prefers_wl_copy_on_wayland(self, wayland):
        with patch("voiceclip.clipboard.shutil.which", which_only("wl-copy", "xclip")):
            assert ClipboardWriter().tool_name == "wl-copy"

    def test_prefers_xclip_on_x11(self, x11):
        with patch("voiceclip.clipboard.shutil.which", which_only("wl-copy", "xclip")):
            assert ClipboardWriter().tool_name == "xclip"

    def test_no_tool(self, x11):
        with patch("voiceclip.clipboard.shutil.which", which_only()):
            with pytest.raises(ClipboardError, match="No clipboard tool found"):
                ClipboardWriter()

    def test_copy_pipes_text(self, x11):
        with patch("voiceclip.clipboard.shutil.which", which_only("xclip")), \
                patch("voiceclip.clipboard.subprocess.run") as run:
            run.return_value = SimpleNamespace(returncode=0)

            ClipboardWriter().copy("hello world")

        args, kwargs = run.call_args
        assert args[0] == ["xclip", "-selection", "clipboard", "-in"]
        assert kwargs["input"] == "hello world"

    def test_copy_failure(self, wayland):
        with patch("voiceclip.clipboard.shutil.which", which_only("wl-copy")), \
                patch("voiceclip.clipboard.subprocess.run") as run:
            run.return_value = SimpleNamespace(returncode=1)

            with pytest.raises(ClipboardError, match="wl-copy failed"):
                ClipboardWriter().copy("hello")

    def test_copy_timeout(self, x11):
        with patch("voiceclip.clipboard.shutil.which", which_only("xsel")), \
                patch("voiceclip.clipboard.subprocess.run") as run:
            run.side_effect = subprocess.TimeoutExpired(cmd="xsel", timeout=5)

            with pytest.raises(ClipboardError, match="timed out"):
                ClipboardWriter().copy("hello")
