"""Onset strength via half-wave rectified spectral flux."""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from .fft import magnitude_spectrum
from .framing import Framer


logger = logging.getLogger(__name__)

MIN_ONSET_FRAMES = 100


def spectral_flux(spectra: Iterable[np.ndarray]) -> np.ndarray:
    """Sum of rising magnitude between consecutive spectra.

    ``spectra`` yields 2-D batches (one spectrum per row) in frame order.
    The first spectrum has no predecessor and produces no value, so N
    spectra give N - 1 flux values.
    """
    values = []
    prev = None
    for batch in spectra:
        batch = np.atleast_2d(batch)
        if batch.shape[0] == 0:
            continue
        stacked = batch if prev is None else np.vstack((prev[np.newaxis, :], batch))
        if stacked.shape[0] > 1:
            rising = np.maximum(np.diff(stacked, axis=0), 0.0)
            values.append(rising.sum(axis=1))
        prev = batch[-1]
    if not values:
        return np.zeros(0)
    return np.concatenate(values)


def normalize_onsets(signal: np.ndarray) -> np.ndarray:
    """Divide in place by the maximum; an all-zero signal is left as is."""
    peak = signal.max() if signal.size else 0.0
    if peak > 0:
        signal /= peak
    return signal


def onset_strength(
    audio: np.ndarray,
    sr: int,
    frame_size: int = 2048,
    hop_size: int = 512,
) -> np.ndarray:
    """Normalized onset-strength signal, one value per consecutive frame pair.

    ``sr`` is accepted for symmetry with the other passes; the flux itself
    is expressed in frames.
    """
    framer = Framer(audio, frame_size, hop_size)
    flux = spectral_flux(magnitude_spectrum(batch) for batch in framer.batches())
    logger.debug(f"onset: frames={len(framer)} flux_values={flux.size} sr={sr}")
    return normalize_onsets(flux)


__all__ = ["MIN_ONSET_FRAMES", "spectral_flux", "normalize_onsets", "onset_strength"]
