"""Unit tests for WAV payload helpers."""

import io
import wave

import numpy as np
import pytest

from voiceclip.wav import concat_chunks, is_silent, to_wav_bytes, trim_silence, write_payload


@pytest.mark.unit
class TestToWavBytes:

    def test_header(self, tone):
        data = to_wav_bytes(tone(1600), sample_rate=16000)

        with wave.open(io.BytesIO(data), "rb") as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 16000
            assert wf.getnframes() == 1600

    def test_stereo_is_mixed_to_mono(self):
        stereo = np.column_stack([np.full(100, 0.5), np.full(100, -0.5)]).astype(np.float32)

        data = to_wav_bytes(stereo)

        with wave.open(io.BytesIO(data), "rb") as wf:
            assert wf.getnchannels() == 1
            samples = np.frombuffer(wf.readframes(100), dtype=np.int16)
        assert np.all(samples == 0)

    def test_clipping(self):
        loud = np.array([2.0, -2.0], dtype=np.float32)

        data = to_wav_bytes(loud)

        with wave.open(io.BytesIO(data), "rb") as wf:
            samples = np.frombuffer(wf.readframes(2), dtype=np.int16)
        assert samples.tolist() == [32767, -32767]


@pytest.mark.unit
class TestPayload:

    def test_concat_in_order(self):
        a = np.ones((2, 1), dtype=np.float32)
        b = np.zeros((3, 1), dtype=np.float32)

        joined = concat_chunks([a, b])

        assert joined.shape == (5, 1)
        assert joined[:2].tolist() == [[1.0], [1.0]]

    def test_concat_empty(self):
        assert len(concat_chunks([])) == 0

    def test_write_payload(self, tmp_path, tone):
        path = write_payload(tone(800), 16000, tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("voiceclip-")
        assert path.suffix == ".wav"
        with wave.open(str(path), "rb") as wf:
            assert wf.getnframes() == 800

    def test_write_payload_missing_directory(self, tmp_path, tone):
        with pytest.raises(OSError):
            write_payload(tone(800), 16000, tmp_path / "missing")


@pytest.mark.unit
class TestSilence:

    def test_trim_keeps_speech_with_padding(self, tone):
        silence = np.zeros((8000, 1), dtype=np.float32)
        audio = np.concatenate([silence, tone(8000), silence])

        trimmed = trim_silence(audio, sample_rate=16000)

        # 50ms padding on each side
        assert 8000 - 100 <= len(trimmed) <= 8000 + 2 * 800
        assert is_silent(trimmed) is False

    def test_trim_all_silence(self):
        audio = np.zeros(32000, dtype=np.float32)

        assert len(trim_silence(audio, sample_rate=16000)) == 1600

    def test_is_silent(self, tone):
        assert is_silent(np.zeros(16000, dtype=np.float32)) is True
        assert is_silent(np.array([], dtype=np.float32)) is True
        assert is_silent(tone(16000)) is False

    def test_short_blip_is_silent(self, tone):
        # 0.1s of sound is below the 0.3s minimum
        assert is_silent(tone(1600)) is True
