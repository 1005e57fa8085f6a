"""Frozen value types produced by the analysis core.

All result types are immutable so that a finished analysis can be handed to
callers, cached, or compared field-by-field (two analyses of the same buffer
compare equal).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .pitch import PITCH_CLASSES, pitch_class_index


DEFAULT_BPM = 120


class Mode(str, Enum):
    """Tonal mode of a key candidate."""
    MAJOR = "major"
    MINOR = "minor"


class TempoStatus(str, Enum):
    """Outcome of the tempo pass.

    Both fallback variants carry the same default values; the status keeps
    the reason inspectable.
    """
    OK = "ok"
    INSUFFICIENT_SIGNAL = "insufficient_signal"
    NO_PEAK = "no_peak"


@dataclass(frozen=True)
class KeyCandidate:
    """A ranked key guess.

    Invariants:
        key in PITCH_CLASSES (sharp spelling)
        0.0 <= confidence <= 1.0
    """

    key: str
    mode: Mode
    confidence: float

    @property
    def label(self) -> str:
        """Human-readable key label, e.g. 'A minor'."""
        return f"{self.key} {self.mode.value}"

    def relative(self) -> "KeyCandidate":
        """Relative major/minor sharing the same key signature."""
        idx = pitch_class_index(self.key)
        if self.mode is Mode.MINOR:
            return KeyCandidate(PITCH_CLASSES[(idx + 3) % 12], Mode.MAJOR, self.confidence)
        return KeyCandidate(PITCH_CLASSES[(idx + 9) % 12], Mode.MINOR, self.confidence)

    def parallel(self) -> "KeyCandidate":
        """Same tonic in the opposite mode."""
        other = Mode.MAJOR if self.mode is Mode.MINOR else Mode.MINOR
        return KeyCandidate(self.key, other, self.confidence)

    def to_dict(self) -> Dict[str, object]:
        return {"key": self.key, "mode": self.mode.value, "confidence": float(self.confidence)}


@dataclass(frozen=True)
class TempoPeak:
    """Local maximum of the onset autocorrelation."""

    lag: int  # frames
    strength: float
    bpm: int


@dataclass(frozen=True)
class BPMResult:
    """Tempo estimate with confidence and up to three alternatives.

    Invariants:
        bpm not in alternatives
        len(alternatives) <= 3, strictly ascending
        0.0 <= confidence <= 1.0
    """

    bpm: int
    confidence: float
    alternatives: Tuple[int, ...] = ()
    status: TempoStatus = TempoStatus.OK

    @classmethod
    def fallback(cls, status: TempoStatus) -> "BPMResult":
        return cls(bpm=DEFAULT_BPM, confidence=0.0, alternatives=(), status=status)

    @property
    def is_fallback(self) -> bool:
        return self.status is not TempoStatus.OK


@dataclass(frozen=True)
class AnalysisResult:
    """Complete tempo and key analysis of one sample buffer."""

    bpm: int
    bpm_confidence: float
    bpm_alternatives: Tuple[int, ...]
    key_candidates: Tuple[KeyCandidate, ...]
    tempo_status: TempoStatus = TempoStatus.OK

    @classmethod
    def from_parts(cls, tempo: BPMResult, keys: List[KeyCandidate]) -> "AnalysisResult":
        return cls(
            bpm=tempo.bpm,
            bpm_confidence=tempo.confidence,
            bpm_alternatives=tuple(tempo.alternatives),
            key_candidates=tuple(keys),
            tempo_status=tempo.status,
        )

    @property
    def top_key(self) -> KeyCandidate:
        return self.key_candidates[0]

    def to_dict(self) -> Dict[str, object]:
        return {
            "bpm": int(self.bpm),
            "bpm_confidence": float(self.bpm_confidence),
            "bpm_alternatives": [int(b) for b in self.bpm_alternatives],
            "key_candidates": [k.to_dict() for k in self.key_candidates],
            "tempo_status": self.tempo_status.value,
        }


__all__ = [
    "DEFAULT_BPM",
    "Mode",
    "TempoStatus",
    "KeyCandidate",
    "TempoPeak",
    "BPMResult",
    "AnalysisResult",
]
