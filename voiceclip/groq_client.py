"""
Groq API client for VoiceClip.

Handles speech-to-text transcription using Groq's Whisper API.
"""

import io
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from groq import (
    Groq,
    APIError,
    APIConnectionError,
    APIStatusError,
    AuthenticationError,
    RateLimitError,
)


logger = logging.getLogger(__name__)


class TranscriptionError(Exception):
    """Exception raised for transcription failures."""
    pass


class AuthenticationFailed(TranscriptionError):
    """The API rejected the credential."""
    pass


@dataclass
class TranscriptionResult:
    """Result from audio transcription."""
    text: str
    duration: Optional[float] = None  # Audio duration in seconds
    language: Optional[str] = None


class GroqClient:
    """
    Client for Groq API (Whisper STT).

    Usage:
        client = GroqClient(api_key="your-key")
        result = client.transcribe_file(Path("recording.wav"))
        print(result.text)
    """

    def __init__(
        self,
        api_key: str,
        whisper_model: str = "whisper-large-v3-turbo",
        timeout: float = 30.0,
        max_retries: int = 3,
        language: Optional[str] = None,
    ):
        """
        Initialize the Groq client.

        Args:
            api_key: Groq API key
            whisper_model: Model to use for transcription
            timeout: Request timeout in seconds
            max_retries: Number of attempts for transient failures
            language: Optional default language hint (ISO-639-1)
        """
        if not api_key:
            raise AuthenticationFailed("API key is required for transcription")

        self.api_key = api_key
        self.whisper_model = whisper_model
        self.timeout = timeout
        self.max_retries = max_retries
        self.language = language

        # Retries are handled here, not by the SDK
        self._client = Groq(api_key=api_key, timeout=timeout, max_retries=0)

    def transcribe_file(self, path: Union[str, Path], prompt: Optional[str] = None) -> TranscriptionResult:
        """
        Transcribe an audio file.

        Raises:
            TranscriptionError: If the file cannot be read or transcription fails
        """
        path = Path(path)
        try:
            audio_data = path.read_bytes()
        except OSError as e:
            raise TranscriptionError(f"Cannot read audio file {path}: {e}") from e

        return self.transcribe_audio(audio_data, filename=path.name, prompt=prompt)

    def transcribe_audio(
        self,
        audio_data: bytes,
        filename: str = "audio.wav",
        language: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> TranscriptionResult:
        """
        Transcribe audio data to text.

        Args:
            audio_data: Audio as WAV bytes (16kHz mono recommended)
            filename: Name sent with the upload; its extension tells the API the format
            language: Optional language hint, overrides the client default
            prompt: Optional prompt for context/spelling guidance

        Returns:
            TranscriptionResult with text and metadata

        Raises:
            AuthenticationFailed: If the API key is rejected
            TranscriptionError: If transcription fails after retries
        """
        if not audio_data:
            return TranscriptionResult(text="")

        # Create a file-like object from bytes
        audio_file = io.BytesIO(audio_data)
        audio_file.name = filename  # Groq needs a filename

        language = language or self.language
        last_error = None

        for attempt in range(self.max_retries):
            try:
                # Reset file position for retry
                audio_file.seek(0)

                params = {
                    "file": audio_file,
                    "model": self.whisper_model,
                    "response_format": "verbose_json",
                    "temperature": 0.0,
                }

                if language:
                    params["language"] = language
                if prompt:
                    params["prompt"] = prompt

                response = self._client.audio.transcriptions.create(**params)

                text = getattr(response, "text", None)
                if text is None:
                    raise TranscriptionError("Malformed response: no text")

                return TranscriptionResult(
                    text=text.strip(),
                    duration=getattr(response, 'duration', None),
                    language=getattr(response, 'language', language),
                )

            except AuthenticationError as e:
                raise AuthenticationFailed(f"Authentication failed: {e.message}") from e

            except RateLimitError as e:
                # Rate limited - wait and retry
                last_error = e
                wait_time = min(2 ** attempt, 10)  # Exponential backoff, max 10s
                logger.warning("Rate limited, retrying in %ss", wait_time)
                if attempt < self.max_retries - 1:
                    time.sleep(wait_time)

            except APIConnectionError as e:
                # Network error or timeout - retry
                last_error = e
                logger.warning("Connection error (attempt %d/%d): %s", attempt + 1, self.max_retries, e)
                if attempt < self.max_retries - 1:
                    time.sleep(1)

            except APIStatusError as e:
                # Don't retry client errors (4xx)
                if 400 <= e.status_code < 500:
                    raise TranscriptionError(f"API error: {e.message}") from e
                last_error = e
                if attempt < self.max_retries - 1:
                    time.sleep(1)

            except APIError as e:
                raise TranscriptionError(f"API error: {e.message}") from e

        # All retries exhausted
        raise TranscriptionError(f"Transcription failed after {self.max_retries} attempts: {last_error}")
