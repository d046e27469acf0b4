"""
Clipboard module for VoiceClip.

Places transcribed text on the system clipboard.
Supports Wayland (wl-copy) and X11 (xclip, xsel).
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


logger = logging.getLogger(__name__)


class ClipboardError(Exception):
    """Exception raised for clipboard errors."""
    pass


class DisplayServer(Enum):
    """Display server type."""
    X11 = "x11"
    WAYLAND = "wayland"
    UNKNOWN = "unknown"


def detect_display_server() -> DisplayServer:
    """Detect which display server is running."""
    xdg_session = os.environ.get("XDG_SESSION_TYPE", "").lower()
    if xdg_session == "wayland":
        return DisplayServer.WAYLAND
    elif xdg_session == "x11":
        return DisplayServer.X11

    # Fallback: check for WAYLAND_DISPLAY
    if os.environ.get("WAYLAND_DISPLAY"):
        return DisplayServer.WAYLAND

    # Fallback: check for DISPLAY (X11)
    if os.environ.get("DISPLAY"):
        return DisplayServer.X11

    return DisplayServer.UNKNOWN


# Command line for each supported tool; text is written to stdin
TOOL_COMMANDS = {
    "wl-copy": ["wl-copy"],
    "xclip": ["xclip", "-selection", "clipboard", "-in"],
    "xsel": ["xsel", "--clipboard", "--input"],
}


@dataclass
class ClipboardWriter:
    """
    Writes text to the system clipboard.

    Uses wl-copy for Wayland and xclip or xsel for X11.

    Usage:
        clipboard = ClipboardWriter()
        clipboard.copy("Hello, world!")
    """

    timeout: float = 5.0

    def __post_init__(self):
        """Initialize and detect available tools."""
        self._display_server = detect_display_server()
        self._tool = self._detect_tool()

    def _candidates(self) -> List[str]:
        if self._display_server == DisplayServer.WAYLAND:
            # XWayland clients still read the X clipboard, so X tools are a fallback
            return ["wl-copy", "xclip", "xsel"]
        return ["xclip", "xsel", "wl-copy"]

    def _detect_tool(self) -> str:
        """Detect which clipboard tool is available."""
        for tool in self._candidates():
            if shutil.which(tool):
                return tool

        raise ClipboardError(
            "No clipboard tool found. Please install wl-clipboard (for Wayland) "
            "or xclip (for X11):\n"
            "  sudo apt install wl-clipboard  # For Wayland\n"
            "  sudo apt install xclip         # For X11"
        )

    def copy(self, text: str) -> None:
        """
        Put text on the clipboard.

        Args:
            text: Text to copy

        Raises:
            ClipboardError: If the tool fails
        """
        cmd = TOOL_COMMANDS[self._tool]

        # The tools fork to keep serving the selection; their output is not
        # captured or run() would wait on the child.
        try:
            result = subprocess.run(
                cmd,
                input=text,
                text=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ClipboardError(f"{self._tool} timed out")
        except FileNotFoundError:
            raise ClipboardError(f"{self._tool} not found")

        if result.returncode != 0:
            raise ClipboardError(f"{self._tool} failed with exit code {result.returncode}")

        logger.debug("Copied %d characters with %s", len(text), self._tool)

    @property
    def tool_name(self) -> str:
        """Get the name of the tool being used."""
        return self._tool


def find_tool() -> Optional[str]:
    """Return the clipboard tool that would be used, or None."""
    try:
        return ClipboardWriter().tool_name
    except ClipboardError:
        return None
