"""Frame and hop configuration for one analysis call."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidInputError
from .fft import is_power_of_two


@dataclass(frozen=True)
class AnalysisParams:
    """Frame/hop sizes for the key (chroma) and tempo (onset) passes.

    The chroma pass uses long frames for frequency resolution, the onset
    pass short frames for time resolution.
    """

    chroma_frame_size: int = 8192
    chroma_hop_size: int = 4096
    onset_frame_size: int = 2048
    onset_hop_size: int = 512
    parallel: bool = False

    def __post_init__(self) -> None:
        for name, frame, hop in (
            ("chroma", self.chroma_frame_size, self.chroma_hop_size),
            ("onset", self.onset_frame_size, self.onset_hop_size),
        ):
            if frame < 2 or not is_power_of_two(frame):
                raise InvalidInputError(f"{name}_frame_size must be a power of two >= 2, got {frame}")
            if not 1 <= hop <= frame:
                raise InvalidInputError(f"{name}_hop_size must be in [1, {frame}], got {hop}")

    @classmethod
    def from_settings(cls, settings) -> "AnalysisParams":
        """Build from a ``ktcore.config.Settings`` instance."""
        return cls(
            chroma_frame_size=settings.KT_CHROMA_FRAME_SIZE,
            chroma_hop_size=settings.KT_CHROMA_HOP_SIZE,
            onset_frame_size=settings.KT_ONSET_FRAME_SIZE,
            onset_hop_size=settings.KT_ONSET_HOP_SIZE,
            parallel=settings.KT_PARALLEL,
        )


__all__ = ["AnalysisParams"]
