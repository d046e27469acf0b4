"""
Configuration management for VoiceClip.

Handles loading, saving, and validating configuration from ~/.config/voiceclip/config.yaml
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml

from voiceclip.hotkey_combo import parse_combo, HotkeyComboError


logger = logging.getLogger(__name__)

# Default config directory
CONFIG_DIR = Path.home() / ".config" / "voiceclip"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Environment variable that overrides the stored API key
API_KEY_ENV = "GROQ_API_KEY"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AudioConfig:
    """Audio recording settings."""
    sample_rate: int = 16000  # 16kHz for Whisper
    channels: int = 1  # Mono
    device: Optional[str] = None  # Default audio device
    trim_silence: bool = True


@dataclass
class ApiConfig:
    """Groq API settings."""
    api_key: str = ""
    whisper_model: str = "whisper-large-v3-turbo"
    language: Optional[str] = None  # ISO-639-1 hint, None = auto-detect
    timeout: float = 30.0
    max_retries: int = 3


@dataclass
class HotkeyConfig:
    """Global hotkey settings."""
    combo: str = "ctrl+shift+r"


@dataclass
class UiConfig:
    """Floating widget settings."""
    widget: bool = True


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    """Main configuration for VoiceClip."""
    audio: AudioConfig = field(default_factory=AudioConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    hotkey: HotkeyConfig = field(default_factory=HotkeyConfig)
    ui: UiConfig = field(default_factory=UiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def get_config_path(cls) -> Path:
        """Return the path to the config file."""
        return CONFIG_FILE

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Load configuration from file.
        Creates default config if file doesn't exist.
        """
        path = path or CONFIG_FILE
        if not path.exists():
            config = cls()
            config.save(path)
            return config

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        audio_data = data.get("audio") or {}
        api_data = data.get("api") or {}
        hotkey_data = data.get("hotkey") or {}
        ui_data = data.get("ui") or {}
        logging_data = data.get("logging") or {}

        return cls(
            audio=AudioConfig(
                sample_rate=audio_data.get("sample_rate", 16000),
                channels=audio_data.get("channels", 1),
                device=audio_data.get("device"),
                trim_silence=audio_data.get("trim_silence", True),
            ),
            api=ApiConfig(
                api_key=api_data.get("api_key") or "",
                whisper_model=api_data.get("whisper_model", "whisper-large-v3-turbo"),
                language=api_data.get("language"),
                timeout=float(api_data.get("timeout", 30.0)),
                max_retries=api_data.get("max_retries", 3),
            ),
            hotkey=HotkeyConfig(
                combo=hotkey_data.get("combo", "ctrl+shift+r"),
            ),
            ui=UiConfig(
                widget=ui_data.get("widget", True),
            ),
            logging=LoggingConfig(
                level=str(logging_data.get("level", "INFO")).upper(),
            ),
        )

    def to_dict(self) -> dict:
        return {
            "audio": {
                "sample_rate": self.audio.sample_rate,
                "channels": self.audio.channels,
                "device": self.audio.device,
                "trim_silence": self.audio.trim_silence,
            },
            "api": {
                "api_key": self.api.api_key,
                "whisper_model": self.api.whisper_model,
                "language": self.api.language,
                "timeout": self.api.timeout,
                "max_retries": self.api.max_retries,
            },
            "hotkey": {
                "combo": self.hotkey.combo,
            },
            "ui": {
                "widget": self.ui.widget,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        path = path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

        # The file holds a secret
        try:
            path.chmod(0o600)
        except OSError as e:
            logger.warning("Could not restrict permissions on %s: %s", path, e)

    def resolve_api_key(self) -> str:
        """Return the API key, preferring the environment over the file."""
        return os.environ.get(API_KEY_ENV) or self.api.api_key

    def validate(self) -> list[str]:
        """
        Validate the configuration.
        Returns a list of error messages (empty if valid).

        A missing API key is not an error: it is requested on first use.
        """
        errors = []

        # Validate audio settings
        if self.audio.sample_rate not in [8000, 16000, 22050, 44100, 48000]:
            errors.append(f"Invalid sample_rate: {self.audio.sample_rate}")
        if self.audio.channels not in [1, 2]:
            errors.append(f"Invalid channels: {self.audio.channels}")

        # Validate API settings
        if self.api.timeout <= 0:
            errors.append(f"Invalid timeout: {self.api.timeout}")
        if self.api.max_retries < 1:
            errors.append(f"Invalid max_retries: {self.api.max_retries}")

        try:
            parse_combo(self.hotkey.combo)
        except HotkeyComboError as e:
            errors.append(str(e))

        if self.logging.level not in LOG_LEVELS:
            errors.append(f"Invalid logging level: {self.logging.level}")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0
