"""Unit tests for the GTK credential prompt."""

from unittest.mock import patch

import pytest

try:
    from voiceclip.widget import GtkCredentialPrompt
except (ImportError, ValueError):
    # PyGObject missing or no GTK 3 typelib
    pytest.skip("GTK 3 not available", allow_module_level=True)


@pytest.mark.unit
class TestGtkCredentialPrompt:

    def test_returns_dialog_answer(self):
        prompt = GtkCredentialPrompt()

        with patch("voiceclip.widget.GLib.idle_add", side_effect=lambda fn: fn()), \
                patch.object(GtkCredentialPrompt, "_run_dialog", return_value="gsk_typed"):
            assert prompt() == "gsk_typed"

    def test_gives_up_when_gtk_loop_is_gone(self, caplog):
        prompt = GtkCredentialPrompt()
        prompt.timeout = 0.05

        # Nothing runs the scheduled dialog
        with patch("voiceclip.widget.GLib.idle_add"):
            assert prompt() is None

        assert "did not answer" in caplog.text

    def test_dialog_failure_declines(self):
        prompt = GtkCredentialPrompt()

        with patch("voiceclip.widget.GLib.idle_add", side_effect=lambda fn: fn()), \
                patch.object(GtkCredentialPrompt, "_run_dialog", side_effect=RuntimeError("no display")):
            assert prompt() is None
