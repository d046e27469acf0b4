"""
Daemon process management for VoiceClip.

Handles PID file management, single instance enforcement, lifecycle control,
and sending recording commands to the running daemon.
"""

import logging
import os
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)

# PID file location
PID_DIR = Path.home() / ".local" / "run" / "voiceclip"
PID_FILE = PID_DIR / "voiceclip.pid"

# Log file for background runs
LOG_FILE = Path.home() / ".local" / "state" / "voiceclip" / "voiceclip.log"

# Commands the running daemon accepts, delivered as signals
COMMAND_SIGNALS = {
    "toggle": signal.SIGUSR1,
    "start-recording": signal.SIGRTMIN,
    "stop-recording": signal.SIGRTMIN + 1,
}

# Detached child: double fork, then run the daemon
_BACKGROUND_SCRIPT = """
import os
import sys

# Detach from terminal
if os.fork() > 0:
    sys.exit(0)

os.setsid()

if os.fork() > 0:
    sys.exit(0)

from voiceclip.process import run_daemon
run_daemon(background=True)
"""


def _ensure_pid_dir() -> None:
    """Ensure PID directory exists."""
    PID_DIR.mkdir(parents=True, exist_ok=True)


def get_pid() -> Optional[int]:
    """
    Get the PID of the running daemon.

    Returns:
        PID if daemon is running, None otherwise
    """
    if not PID_FILE.exists():
        return None

    try:
        pid = int(PID_FILE.read_text().strip())

        # Check if process is actually running
        os.kill(pid, 0)  # Signal 0 = check existence
        return pid
    except (ValueError, ProcessLookupError):
        # Invalid PID or process not running
        _remove_pid_file()
        return None
    except PermissionError:
        # Running under another user
        return None


def _write_pid_file(pid: int) -> None:
    """Write PID to file."""
    _ensure_pid_dir()
    PID_FILE.write_text(str(pid))


def _remove_pid_file() -> None:
    """Remove PID file if it exists."""
    try:
        PID_FILE.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Could not remove %s: %s", PID_FILE, e)


def is_running() -> bool:
    """Check if daemon is currently running."""
    return get_pid() is not None


def run_daemon(background: bool = False) -> None:
    """Run the daemon in this process, holding the PID file while it runs."""
    from voiceclip.config import Config
    from voiceclip.daemon import DaemonProcess
    from voiceclip.logs import setup_logging

    config = Config.load()
    setup_logging(config.logging.level, log_file=LOG_FILE if background else None)

    _write_pid_file(os.getpid())
    try:
        daemon = DaemonProcess(config=config, interactive=not background and sys.stdin.isatty())
        daemon.run()
    finally:
        _remove_pid_file()


def start_daemon(foreground: bool = False) -> bool:
    """
    Start the daemon.

    Args:
        foreground: If True, run in foreground (blocking).
                   If False, fork to background.

    Returns:
        True if started successfully, False otherwise
    """
    pid = get_pid()
    if pid:
        logger.warning("Already running (PID %s)", pid)
        return False

    if foreground:
        run_daemon(background=False)
        return True

    try:
        subprocess.Popen(
            [sys.executable, "-c", _BACKGROUND_SCRIPT],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
            env=os.environ.copy(),
        )
    except OSError as e:
        logger.error("Failed to start: %s", e)
        return False

    # Wait for daemon to start and write PID file
    for _ in range(20):  # Wait up to 2 seconds
        time.sleep(0.1)
        pid = get_pid()
        if pid:
            logger.info("Started (PID %s)", pid)
            return True

    logger.error("Failed to start, see %s", LOG_FILE)
    return False


def stop_daemon() -> bool:
    """
    Stop the daemon.

    Returns:
        True if stopped successfully, False otherwise
    """
    pid = get_pid()
    if not pid:
        logger.info("Not running")
        return False

    try:
        # Send SIGTERM for graceful shutdown
        os.kill(pid, signal.SIGTERM)

        for _ in range(10):  # Wait up to 5 seconds
            time.sleep(0.5)
            try:
                os.kill(pid, 0)
            except ProcessLookupError:
                _remove_pid_file()
                logger.info("Stopped")
                return True

        # Force kill if still running
        os.kill(pid, signal.SIGKILL)
        _remove_pid_file()
        logger.warning("Killed")
        return True

    except ProcessLookupError:
        _remove_pid_file()
        logger.info("Not running")
        return False
    except PermissionError:
        logger.error("Permission denied to stop PID %s", pid)
        return False


def restart_daemon() -> bool:
    """
    Restart the daemon.

    Returns:
        True if restarted successfully, False otherwise
    """
    if is_running():
        stop_daemon()
        time.sleep(0.5)

    return start_daemon(foreground=False)


def send_command(command: str) -> bool:
    """
    Send a recording command to the running daemon.

    Args:
        command: One of COMMAND_SIGNALS

    Returns:
        True if the command was delivered, False if no daemon is running
    """
    if command not in COMMAND_SIGNALS:
        raise ValueError(f"Unknown command: {command}")

    pid = get_pid()
    if not pid:
        return False

    try:
        os.kill(pid, COMMAND_SIGNALS[command])
    except ProcessLookupError:
        _remove_pid_file()
        return False

    return True


def get_status() -> dict:
    """
    Get daemon status information.

    Returns:
        Dict with status info: running, pid, etc.
    """
    pid = get_pid()
    return {
        "running": pid is not None,
        "pid": pid,
        "pid_file": str(PID_FILE),
        "log_file": str(LOG_FILE),
    }
