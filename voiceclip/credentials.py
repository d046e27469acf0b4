"""
Credential prompts for VoiceClip.

A prompt is called synchronously when a transcription needs an API key and
none is configured. It returns the key, or None when the user declines.
"""

import sys
from typing import Optional, Protocol

import click


class CredentialError(Exception):
    """Exception raised when no credential is available."""
    pass


class CredentialPrompt(Protocol):
    def __call__(self) -> Optional[str]:
        ...


class NoPrompt:
    """Declines every request (background runs without a UI)."""

    def __call__(self) -> Optional[str]:
        return None


class TerminalPrompt:
    """Asks on the controlling terminal with a hidden input."""

    def __call__(self) -> Optional[str]:
        if not sys.stdin.isatty():
            return None

        try:
            value = click.prompt(
                "Groq API Key (leave empty to cancel)",
                default="",
                show_default=False,
                hide_input=True,
            )
        except click.Abort:
            return None

        return value.strip() or None
