"""Synthetic test signals for tempo and key analysis.

All generators are deterministic: noise is drawn from a seeded generator.
"""

from typing import Iterable

import librosa
import numpy as np

from ktfeatures.pitch import midi_to_freq


SR = 44100


def click_track(bpm: float, duration: float = 8.0, sr: int = SR, click=None) -> np.ndarray:
    """librosa click track at ``bpm`` (default click: short decaying 1 kHz blip)."""
    times = np.arange(0.0, duration, 60.0 / bpm)
    return librosa.clicks(times=times, sr=sr, length=int(sr * duration), click=click)


def impulse_train(bpm: float, duration: float = 8.0, sr: int = SR) -> np.ndarray:
    """Single-sample unit impulses every 60/bpm seconds."""
    return click_track(bpm, duration, sr, click=np.array([1.0]))


def chord(midi_notes: Iterable[int], duration: float = 4.0, sr: int = SR, amplitude: float = 0.3) -> np.ndarray:
    """Sum of pure tones at the given MIDI pitches."""
    n = int(sr * duration)
    audio = np.zeros(n)
    for note in midi_notes:
        audio += amplitude * librosa.tone(float(midi_to_freq(note)), sr=sr, length=n)
    return audio


def noise(duration: float = 16.0, sr: int = SR, seed: int = 1234) -> np.ndarray:
    """Uniform white noise in [-1, 1]."""
    rng = np.random.default_rng(seed)
    return rng.uniform(-1.0, 1.0, int(sr * duration))


def silence(duration: float = 4.0, sr: int = SR) -> np.ndarray:
    return np.zeros(int(sr * duration))


# MIDI pitches
C_MAJOR_TRIAD = (60, 64, 67)   # C4 E4 G4
A_MINOR_TRIAD = (57, 60, 64)   # A3 C4 E4
D_MAJOR_TRIAD = (62, 66, 69)   # D4 F#4 A4
