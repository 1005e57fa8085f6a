"""Audio decoding helpers that feed the analysis core.

Uses soundfile for decoding and librosa for resampling. Waveforms are
returned as float32 arrays in range [-1.0, 1.0]. Multi-channel audio is
reduced to its first channel; nothing is down-mixed.
"""

from __future__ import annotations

import io
from typing import Tuple

import librosa
import numpy as np
import soundfile as sf


ANALYSIS_SAMPLE_RATE = 44_100


def read_audio(path: str) -> Tuple[np.ndarray, int]:
    """Read an audio file and return (audio, sample_rate).

    Audio is returned as float32 np.ndarray with shape (samples, channels).
    """
    audio, sr = sf.read(path, dtype="float32", always_2d=True)
    return audio, sr


def read_audio_bytes(data: bytes) -> Tuple[np.ndarray, int]:
    """Decode audio from bytes and return (audio, sample_rate).

    Raises:
        ValueError: if the payload is empty or not a format soundfile decodes.
    """
    if not data:
        raise ValueError("Empty audio payload")
    try:
        with io.BytesIO(data) as buf:
            audio, sr = sf.read(buf, dtype="float32", always_2d=True)
    except RuntimeError as e:
        raise ValueError(f"Could not decode audio: {e}") from e
    return audio, sr


def first_channel(audio: np.ndarray) -> np.ndarray:
    """Return the first channel of (samples, channels) audio. Mono is returned as-is."""
    if audio.ndim == 1:
        return audio
    return np.ascontiguousarray(audio[:, 0])


def resample(audio: np.ndarray, sample_rate: int, target_rate: int = ANALYSIS_SAMPLE_RATE) -> np.ndarray:
    """Resample mono audio to ``target_rate``; a matching rate is a no-op."""
    if sample_rate == target_rate:
        return audio
    return librosa.resample(audio, orig_sr=sample_rate, target_sr=target_rate)


def duration_seconds(audio: np.ndarray, sample_rate: int) -> float:
    return audio.shape[0] / float(sample_rate)


__all__ = [
    "ANALYSIS_SAMPLE_RATE",
    "read_audio",
    "read_audio_bytes",
    "first_channel",
    "resample",
    "duration_seconds",
]
