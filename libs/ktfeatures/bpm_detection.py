"""Tempo (BPM) estimation by autocorrelation of the onset-strength signal.

Lags covering 60-180 BPM are scored, strict local maxima become tempo
candidates, and the strongest candidate is folded by at most one octave
toward 80-140 BPM. Thresholds here are behavioral contracts; tests are
written against the exact values.
"""

from __future__ import annotations

import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from .onset import MIN_ONSET_FRAMES, onset_strength
from .pitch import round_half_up
from .types import BPMResult, TempoPeak, TempoStatus


logger = logging.getLogger(__name__)

MIN_BPM = 60
MAX_BPM = 180
FOLD_LOW = 80
FOLD_HIGH = 140
ALT_MIN_BPM = 50
ALT_MAX_BPM = 200
ALT_MIN_DISTANCE = 5
MAX_ALTERNATIVES = 3
CONFIDENCE_EPSILON = 1e-3


def _round_bpm(x: float) -> int:
    return int(round_half_up(x))


def lag_range(frames_per_second: float, signal_length: int) -> Tuple[int, int]:
    """Inclusive (min_lag, max_lag) in frames for the 60-180 BPM search.

    max_lag is further bounded to half the signal length.
    """
    min_lag = max(1, math.floor(frames_per_second * 60.0 / MAX_BPM))
    max_lag = math.floor(frames_per_second * 60.0 / MIN_BPM)
    max_lag = min(max_lag, signal_length // 2)
    return min_lag, max_lag


def autocorrelate(signal: np.ndarray, min_lag: int, max_lag: int) -> np.ndarray:
    """corr[lag - min_lag] = mean of signal[i] * signal[i + lag], lag in [min_lag, max_lag]."""
    signal = np.asarray(signal, dtype=float)
    length = signal.shape[0]
    lags = range(min_lag, max_lag + 1)
    return np.array(
        [np.dot(signal[: length - lag], signal[lag:]) / (length - lag) for lag in lags],
        dtype=float,
    )


def pick_peaks(corr: np.ndarray, min_lag: int, frames_per_second: float) -> List[TempoPeak]:
    """Strict local maxima of ``corr``, strongest first."""
    peaks = []
    for i in range(1, len(corr) - 1):
        if corr[i] > corr[i - 1] and corr[i] > corr[i + 1]:
            lag = min_lag + i
            bpm = _round_bpm(60.0 * frames_per_second / lag)
            peaks.append(TempoPeak(lag=lag, strength=float(corr[i]), bpm=bpm))
    # Stable: equal strengths keep lag order.
    peaks.sort(key=lambda p: -p.strength)
    return peaks


def tempo_confidence(best: float, corr: np.ndarray) -> float:
    """How far the best peak stands above the mean correlation floor, in [0, 1]."""
    mean = float(np.mean(corr))
    top = float(np.max(corr))
    value = (best - mean) / (top - mean + CONFIDENCE_EPSILON)
    return min(1.0, max(0.0, value))


def fold_bpm(bpm: int) -> int:
    """Fold once toward 80-140 BPM: halve above 140, double below 80."""
    if bpm > FOLD_HIGH and bpm / 2 >= MIN_BPM:
        return _round_bpm(bpm / 2)
    if bpm < FOLD_LOW and bpm * 2 <= MAX_BPM:
        return bpm * 2
    return bpm


def bpm_alternatives(bpm: int, others: Sequence[TempoPeak]) -> Tuple[int, ...]:
    """Up to three alternative tempi, ascending.

    Candidates in priority order: the double and half of ``bpm`` (within
    50-200), then the folded BPM of the next three strongest peaks. A
    candidate is kept only if it is more than 5 BPM from ``bpm`` and from
    every candidate already kept.
    """
    candidates: List[int] = []
    if bpm * 2 <= ALT_MAX_BPM:
        candidates.append(bpm * 2)
    half = _round_bpm(bpm / 2)
    if half >= ALT_MIN_BPM:
        candidates.append(half)
    candidates.extend(fold_bpm(p.bpm) for p in others[:MAX_ALTERNATIVES])

    kept: List[int] = []
    for c in candidates:
        if abs(c - bpm) <= ALT_MIN_DISTANCE:
            continue
        if any(abs(c - k) <= ALT_MIN_DISTANCE for k in kept):
            continue
        kept.append(c)
    return tuple(sorted(kept)[:MAX_ALTERNATIVES])


def estimate_tempo(onsets: np.ndarray, frames_per_second: float) -> BPMResult:
    """Estimate tempo from a normalized onset-strength signal."""
    onsets = np.asarray(onsets, dtype=float)
    if onsets.size < MIN_ONSET_FRAMES:
        logger.info(f"tempo: insufficient signal ({onsets.size} onset frames), using fallback")
        return BPMResult.fallback(TempoStatus.INSUFFICIENT_SIGNAL)

    min_lag, max_lag = lag_range(frames_per_second, onsets.size)
    corr = autocorrelate(onsets, min_lag, max_lag)
    peaks = pick_peaks(corr, min_lag, frames_per_second) if corr.size >= 3 else []
    logger.debug(f"tempo: lags=[{min_lag}, {max_lag}] peaks={len(peaks)}")
    if not peaks:
        logger.info("tempo: no autocorrelation peak, using fallback")
        return BPMResult.fallback(TempoStatus.NO_PEAK)

    best = peaks[0]
    confidence = tempo_confidence(best.strength, corr)
    bpm = fold_bpm(best.bpm)
    alternatives = bpm_alternatives(bpm, peaks[1:])
    logger.debug(f"tempo: lag={best.lag} raw_bpm={best.bpm} bpm={bpm} confidence={confidence:.3f}")
    return BPMResult(bpm=bpm, confidence=confidence, alternatives=alternatives)


def detect_bpm(
    audio: np.ndarray,
    sr: int,
    frame_size: int = 2048,
    hop_size: int = 512,
) -> BPMResult:
    """Estimate BPM, confidence and alternatives from a mono buffer."""
    onsets = onset_strength(audio, sr, frame_size, hop_size)
    return estimate_tempo(onsets, sr / hop_size)


__all__ = [
    "MIN_BPM",
    "MAX_BPM",
    "lag_range",
    "autocorrelate",
    "pick_peaks",
    "tempo_confidence",
    "fold_bpm",
    "bpm_alternatives",
    "estimate_tempo",
    "detect_bpm",
]
