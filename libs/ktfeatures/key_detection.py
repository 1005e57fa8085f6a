"""Musical key detection using chroma features.

The normalized chroma vector is rotated through all 12 tonics and compared
against the Krumhansl-Kessler major and minor profiles with Pearson
correlation. The 24 (tonic, mode) scores are ranked and the top six are
returned with min-max rescaled confidences.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np

from .chroma import chroma_from_audio
from .pitch import PITCH_CLASSES
from .types import KeyCandidate, Mode


logger = logging.getLogger(__name__)

MAJOR_PROFILE = np.array([6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88])
MINOR_PROFILE = np.array([6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17])
MAJOR_PROFILE.setflags(write=False)
MINOR_PROFILE.setflags(write=False)

MAX_CANDIDATES = 6


def pearson(a: np.ndarray, b: np.ndarray) -> float:
    """Pearson correlation; 0.0 when either input has zero variance."""
    da = np.asarray(a, dtype=float) - np.mean(a)
    db = np.asarray(b, dtype=float) - np.mean(b)
    denom = np.sqrt(np.sum(da * da) * np.sum(db * db))
    if denom == 0:
        return 0.0
    return float(np.sum(da * db) / denom)


def score_keys(chroma: np.ndarray) -> List[Tuple[int, Mode, float]]:
    """Correlation of every rotation against both profiles.

    Rotation r treats pitch class r as the tonic: shifted[i] = chroma[(i + r) % 12].
    Returned in rotation order, major before minor.
    """
    scores = []
    for shift in range(12):
        rot = np.roll(chroma, -shift)
        scores.append((shift, Mode.MAJOR, pearson(rot, MAJOR_PROFILE)))
        scores.append((shift, Mode.MINOR, pearson(rot, MINOR_PROFILE)))
    return scores


def rank_keys(
    scores: List[Tuple[int, Mode, float]], limit: int = MAX_CANDIDATES
) -> List[KeyCandidate]:
    """Sort by correlation (descending, stable) and rescale the top ``limit``.

    confidence = (corr - min) / max(max - min, 1) over the retained scores.
    """
    # Stable sort: ties keep rotation order, so silence still ranks deterministically.
    ranked = sorted(scores, key=lambda s: -s[2])[:limit]
    if not ranked:
        return []
    top = ranked[0][2]
    bottom = ranked[-1][2]
    spread = max(top - bottom, 1.0)

    candidates: List[KeyCandidate] = []
    seen = set()
    for shift, mode, corr in ranked:
        if (shift, mode) in seen:
            continue
        seen.add((shift, mode))
        confidence = min(1.0, max(0.0, (corr - bottom) / spread))
        candidates.append(KeyCandidate(PITCH_CLASSES[shift], mode, confidence))
    return candidates


def estimate_key(chroma: np.ndarray, limit: int = MAX_CANDIDATES) -> List[KeyCandidate]:
    """Ranked key candidates for a normalized chroma vector."""
    return rank_keys(score_keys(np.asarray(chroma, dtype=float)), limit)


def detect_key(
    audio: np.ndarray,
    sr: int,
    frame_size: int = 8192,
    hop_size: int = 4096,
) -> List[KeyCandidate]:
    """Detect key candidates (most confident first) from a mono buffer."""
    chroma = chroma_from_audio(audio, sr, frame_size, hop_size)
    candidates = estimate_key(chroma)
    logger.debug(f"key: top={candidates[0].label} chroma={np.round(chroma, 3).tolist()}")
    return candidates


__all__ = [
    "MAJOR_PROFILE",
    "MINOR_PROFILE",
    "MAX_CANDIDATES",
    "pearson",
    "score_keys",
    "rank_keys",
    "estimate_key",
    "detect_key",
]
