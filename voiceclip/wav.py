"""
Audio payload helpers for VoiceClip.

Turns captured blocks into a WAV file on disk for upload.
"""

import io
import os
import tempfile
import wave
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np


def concat_chunks(chunks: Sequence[np.ndarray]) -> np.ndarray:
    """Join captured blocks in capture order (empty array if none)."""
    if not chunks:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(chunks, axis=0)


def to_wav_bytes(audio_data: np.ndarray, sample_rate: int = 16000) -> bytes:
    """
    Convert numpy audio array to WAV bytes (mono, 16-bit PCM).

    Args:
        audio_data: Audio as numpy float32 array (values in -1.0 to 1.0)
        sample_rate: Sample rate in Hz (default 16000 for Whisper)

    Returns:
        WAV file as bytes
    """
    # Ensure mono
    if audio_data.ndim > 1:
        audio_data = audio_data.mean(axis=1)

    # Convert float32 (-1.0 to 1.0) to int16
    audio_int16 = (np.clip(audio_data, -1.0, 1.0) * 32767).astype(np.int16)

    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav_file:
        wav_file.setnchannels(1)  # Mono
        wav_file.setsampwidth(2)  # 16-bit
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(audio_int16.tobytes())

    return buffer.getvalue()


def write_payload(
    audio_data: np.ndarray,
    sample_rate: int = 16000,
    directory: Optional[Union[str, Path]] = None,
) -> Path:
    """
    Write audio to a temporary WAV file.

    The caller owns the file and must delete it.

    Args:
        audio_data: Audio as numpy float32 array
        sample_rate: Sample rate in Hz
        directory: Where to create the file (system temp dir if None)

    Returns:
        Path of the written file
    """
    fd, name = tempfile.mkstemp(prefix="voiceclip-", suffix=".wav", dir=directory)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(to_wav_bytes(audio_data, sample_rate))
    except BaseException:
        Path(name).unlink(missing_ok=True)
        raise
    return Path(name)


def trim_silence(
    audio_data: np.ndarray,
    threshold: float = 0.01,
    sample_rate: int = 16000,
) -> np.ndarray:
    """
    Trim silence from the beginning and end of audio.

    Args:
        audio_data: Audio as numpy array
        threshold: Amplitude threshold below which is considered silence
        sample_rate: Sample rate in Hz

    Returns:
        Trimmed audio array
    """
    if len(audio_data) == 0:
        return audio_data

    # Per-frame peak so stereo blocks keep their frame alignment
    if audio_data.ndim > 1:
        level = np.abs(audio_data).max(axis=1)
    else:
        level = np.abs(audio_data)

    above_threshold = level > threshold

    if not np.any(above_threshold):
        # All silence - keep 100ms
        return audio_data[:int(sample_rate * 0.1)]

    non_silent_indices = np.where(above_threshold)[0]
    padding = int(sample_rate * 0.05)  # 50ms
    start_idx = max(0, non_silent_indices[0] - padding)
    end_idx = min(len(audio_data), non_silent_indices[-1] + padding)

    return audio_data[start_idx:end_idx]


def is_silent(
    audio_data: np.ndarray,
    threshold: float = 0.01,
    min_speech_duration: float = 0.3,
    sample_rate: int = 16000,
) -> bool:
    """
    Check if audio is mostly silence (no meaningful speech).

    Args:
        audio_data: Audio as numpy array
        threshold: Amplitude threshold for detecting speech
        min_speech_duration: Minimum duration of speech required (seconds)
        sample_rate: Sample rate in Hz

    Returns:
        True if audio is considered silent/empty
    """
    if len(audio_data) == 0:
        return True

    if audio_data.ndim > 1:
        level = np.abs(audio_data).max(axis=1)
    else:
        level = np.abs(audio_data)

    speech_samples = np.sum(level > threshold)
    speech_duration = speech_samples / sample_rate

    return speech_duration < min_speech_duration
