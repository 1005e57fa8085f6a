"""Pitch and key-name helpers.

Frequency/MIDI conversion uses standard tuning: A4 (MIDI 69) = 440 Hz.
Key names are reported with sharp spellings (C, C#, D, ... B).
"""

from __future__ import annotations

from typing import Dict, Tuple, Union

import numpy as np


PITCH_CLASSES: Tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

_NATURALS: Dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

ArrayLike = Union[float, np.ndarray]


def midi_to_freq(midi_pitch: ArrayLike) -> ArrayLike:
    """Convert MIDI pitch (scalar or array) to frequency in Hz."""
    return 440.0 * (2.0 ** ((np.asarray(midi_pitch, dtype=float) - 69.0) / 12.0))


def freq_to_midi(freq: ArrayLike) -> ArrayLike:
    """Convert frequency in Hz (scalar or array) to fractional MIDI pitch."""
    f = np.asarray(freq, dtype=float)
    if np.any(f <= 0):
        raise ValueError(f"Frequency must be positive: {freq}")
    return 69.0 + 12.0 * np.log2(f / 440.0)


def round_half_up(x: ArrayLike) -> ArrayLike:
    """Round to nearest integer with .5 going up (not banker's rounding)."""
    return np.floor(np.asarray(x, dtype=float) + 0.5)


def normalize_key_name(name: str) -> str:
    """Map a key spelling onto the sharp-based name used in results.

    'Db' -> 'C#', 'Cb' -> 'B', 'E#' -> 'F'. A trailing 'm' (minor shorthand)
    is not accepted here; pass the tonic only.
    """
    key = name.strip()
    if not key or key[0].upper() not in _NATURALS:
        raise ValueError(f"Invalid key: {name!r}")

    accidental = key[1:]
    if accidental.strip("#b"):
        raise ValueError(f"Invalid key: {name!r}")

    pc = _NATURALS[key[0].upper()] + accidental.count("#") - accidental.count("b")
    return PITCH_CLASSES[pc % 12]


def pitch_class_index(name: str) -> int:
    """Index (0=C ... 11=B) of a key name in any supported spelling."""
    return PITCH_CLASSES.index(normalize_key_name(name))


__all__ = [
    "PITCH_CLASSES",
    "midi_to_freq",
    "freq_to_midi",
    "round_half_up",
    "normalize_key_name",
    "pitch_class_index",
]
