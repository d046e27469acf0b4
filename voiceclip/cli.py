"""
CLI entry point for VoiceClip.

Commands:
  voiceclip setup           - Configure VoiceClip (API key)
  voiceclip status          - Show current status and configuration
  voiceclip start           - Start the daemon
  voiceclip stop            - Stop the daemon
  voiceclip restart         - Restart the daemon
  voiceclip toggle          - Start or stop recording in the running daemon
  voiceclip start-recording - Start recording in the running daemon
  voiceclip stop-recording  - Stop recording and transcribe
  voiceclip devices         - List audio input devices
"""

import click

from voiceclip import __version__
from voiceclip.config import Config
from voiceclip.logs import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="voiceclip")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """VoiceClip - Hotkey voice transcription to the clipboard.

    Press Ctrl+Shift+R to record, press again to transcribe.
    Uses Groq Cloud (Whisper) and copies the text to your clipboard.
    """
    setup_logging("DEBUG" if verbose else "INFO")


@main.command()
@click.option("--api-key", prompt="Groq API Key", hide_input=True,
              help="Your Groq API key (get one at console.groq.com)")
def setup(api_key: str):
    """Configure VoiceClip with your API key."""
    config = Config.load()
    config.api.api_key = api_key.strip()
    config.save()

    click.echo(click.style("✓ ", fg="green") + "Configuration saved!")
    click.echo(f"  Config file: {Config.get_config_path()}")
    click.echo()
    click.echo("You can now start VoiceClip with: " + click.style("voiceclip start", bold=True))


def mask_key(api_key: str) -> str:
    """Show only the ends of a key."""
    if len(api_key) <= 12:
        return "*" * len(api_key)
    return api_key[:8] + "..." + api_key[-4:]


@main.command()
def status():
    """Show current status and configuration."""
    from voiceclip.clipboard import find_tool
    from voiceclip.process import get_status

    config = Config.load()
    errors = config.validate()
    daemon_status = get_status()

    click.echo(click.style("VoiceClip Status", bold=True))
    click.echo("─" * 30)

    click.echo(f"Config: {Config.get_config_path()}")

    api_key = config.resolve_api_key()
    if api_key:
        click.echo(f"API Key: {mask_key(api_key)}")
    else:
        click.echo(click.style("API Key: Not set (you will be asked on first use)", fg="yellow"))

    click.echo(f"Whisper Model: {config.api.whisper_model}")
    click.echo(f"Timeout: {config.api.timeout:g}s")
    click.echo()

    click.echo(f"Audio: {config.audio.sample_rate}Hz, {config.audio.channels}ch")
    click.echo(f"Hotkey: {config.hotkey.combo}")

    tool = find_tool()
    if tool:
        click.echo(f"Clipboard: {tool}")
    else:
        click.echo(click.style("Clipboard: no tool found (install wl-clipboard or xclip)", fg="yellow"))
    click.echo()

    if errors:
        click.echo(click.style("Issues:", fg="yellow"))
        for error in errors:
            click.echo(f"  ⚠ {error}")
    else:
        click.echo(click.style("✓ Ready to use", fg="green"))

    click.echo()
    if daemon_status["running"]:
        click.echo("Daemon: " + click.style(f"Running (PID {daemon_status['pid']})", fg="green"))
    else:
        click.echo("Daemon: " + click.style("Not running", fg="yellow"))


@main.command()
@click.option("--foreground", "-f", is_flag=True, help="Run in foreground (don't daemonize)")
def start(foreground: bool):
    """Start the daemon."""
    from voiceclip.process import start_daemon, is_running

    config = Config.load()
    errors = config.validate()

    if errors:
        click.echo(click.style("Cannot start - configuration issues:", fg="red"))
        for error in errors:
            click.echo(f"  ⚠ {error}")
        raise SystemExit(1)

    if is_running():
        click.echo(click.style("VoiceClip is already running", fg="yellow"))
        click.echo("Use 'voiceclip stop' to stop, or 'voiceclip restart' to restart")
        raise SystemExit(1)

    if foreground:
        click.echo(click.style("Starting VoiceClip in foreground...", fg="green"))
        click.echo("Press Ctrl+C to stop")
        click.echo()

    try:
        started = start_daemon(foreground=foreground)
    except Exception as e:
        click.echo(click.style(f"✗ {e}", fg="red"))
        raise SystemExit(1)

    if not started:
        raise SystemExit(1)


@main.command()
def stop():
    """Stop the daemon."""
    from voiceclip.process import stop_daemon
    stop_daemon()


@main.command()
def restart():
    """Restart the daemon."""
    from voiceclip.process import restart_daemon
    if not restart_daemon():
        raise SystemExit(1)


def _send(command: str) -> None:
    from voiceclip.process import send_command

    if not send_command(command):
        click.echo(click.style("VoiceClip is not running", fg="yellow"))
        click.echo("Start it with: " + click.style("voiceclip start", bold=True))
        raise SystemExit(1)


@main.command()
def toggle():
    """Start or stop recording (bind this to a desktop shortcut)."""
    _send("toggle")


@main.command("start-recording")
def start_recording():
    """Start recording in the running daemon."""
    _send("start-recording")


@main.command("stop-recording")
def stop_recording():
    """Stop recording and transcribe to the clipboard."""
    _send("stop-recording")


@main.command()
def devices():
    """List audio input devices."""
    from voiceclip.audio import list_devices, get_default_device

    default = get_default_device()
    default_index = default["index"] if default else None

    inputs = list_devices()
    if not inputs:
        click.echo(click.style("No input devices found", fg="yellow"))
        raise SystemExit(1)

    for dev in inputs:
        marker = "*" if dev["index"] == default_index else " "
        click.echo(f"{marker} {dev['index']:>3}  {dev['name']}  "
                   f"({dev['channels']}ch, {dev['sample_rate']:.0f}Hz)")


if __name__ == "__main__":
    main()
