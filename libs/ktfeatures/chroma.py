"""Chroma accumulation: spectral energy folded onto 12 pitch classes.

Bins between 60 Hz and 2000 Hz are mapped to the nearest equal-tempered
semitone; squared magnitudes are summed per pitch class over every frame
and the result is divided by its maximum once at the end.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from .fft import magnitude_spectrum
from .framing import Framer
from .pitch import freq_to_midi, round_half_up


logger = logging.getLogger(__name__)

MIN_FREQ = 60.0
MAX_FREQ = 2000.0


def pitch_class_map(frame_size: int, sample_rate: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return (bin indices, pitch classes) for bins inside the analysis band.

    The DC bin is skipped. freq = k * sample_rate / frame_size.
    """
    bins = np.arange(1, frame_size // 2)
    freqs = bins * sample_rate / frame_size
    keep = (freqs >= MIN_FREQ) & (freqs <= MAX_FREQ)
    bins = bins[keep]
    if bins.size == 0:
        return bins, bins.copy()
    midi = round_half_up(freq_to_midi(freqs[keep])).astype(int)
    return bins, midi % 12


def accumulate_chroma(
    spectra: np.ndarray,
    bins: np.ndarray,
    pitch_classes: np.ndarray,
    chroma: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Add the squared magnitudes of one spectrum (or a 2-D batch) to chroma."""
    if chroma is None:
        chroma = np.zeros(12)
    if bins.size == 0:
        return chroma
    energy = np.square(np.asarray(spectra)[..., bins])
    if energy.ndim == 2:
        energy = energy.sum(axis=0)
    chroma += np.bincount(pitch_classes, weights=energy, minlength=12)
    return chroma


def normalize_chroma(chroma: np.ndarray) -> np.ndarray:
    """Divide by the maximum bin; all-zero chroma is left as is."""
    peak = chroma.max() if chroma.size else 0.0
    if peak > 0:
        chroma /= peak
    return chroma


def chroma_from_audio(
    samples: np.ndarray,
    sample_rate: int,
    frame_size: int = 8192,
    hop_size: int = 4096,
) -> np.ndarray:
    """Normalized 12-bin chroma vector (0=C ... 11=B) of a mono buffer."""
    framer = Framer(samples, frame_size, hop_size)
    bins, pcs = pitch_class_map(frame_size, sample_rate)

    chroma = np.zeros(12)
    for batch in framer.batches():
        accumulate_chroma(magnitude_spectrum(batch), bins, pcs, chroma)

    logger.debug(f"chroma: frames={len(framer)} band_bins={bins.size} energy={chroma.sum():.4g}")
    return normalize_chroma(chroma)


__all__ = [
    "MIN_FREQ",
    "MAX_FREQ",
    "pitch_class_map",
    "accumulate_chroma",
    "normalize_chroma",
    "chroma_from_audio",
]
