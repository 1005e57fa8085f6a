"""Tempo and key analysis of a decoded sample buffer.

The key pass (frames -> FFT -> chroma -> profiles) and the tempo pass
(frames -> FFT -> flux -> autocorrelation) share no mutable state and can
run on separate threads; either way the result is identical.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

import numpy as np

from .bpm_detection import detect_bpm
from .errors import InvalidInputError
from .key_detection import detect_key
from .params import AnalysisParams
from .types import AnalysisResult, BPMResult, KeyCandidate


logger = logging.getLogger(__name__)

Samples = Union[np.ndarray, Sequence[float]]


def prepare_samples(samples: Samples, sample_rate: int) -> np.ndarray:
    """Validate a buffer and return it as a 1-D float array (first channel of 2-D input)."""
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, (int, np.integer)):
        raise InvalidInputError(f"sample_rate must be an integer, got {sample_rate!r}")
    if sample_rate <= 0:
        raise InvalidInputError(f"sample_rate must be positive, got {sample_rate}")

    audio = np.asarray(samples, dtype=float)
    if audio.ndim == 2:
        # (samples, channels): first channel only, no down-mix.
        audio = audio[:, 0]
    if audio.ndim != 1:
        raise InvalidInputError(f"Expected a 1-D or (samples, channels) buffer, got shape {audio.shape}")
    if audio.size == 0:
        raise InvalidInputError("Sample buffer is empty")
    if not np.all(np.isfinite(audio)):
        raise InvalidInputError("Sample buffer contains NaN or infinite values")
    return audio


def _key_pass(audio: np.ndarray, sample_rate: int, params: AnalysisParams) -> List[KeyCandidate]:
    return detect_key(audio, sample_rate, params.chroma_frame_size, params.chroma_hop_size)


def _tempo_pass(audio: np.ndarray, sample_rate: int, params: AnalysisParams) -> BPMResult:
    return detect_bpm(audio, sample_rate, params.onset_frame_size, params.onset_hop_size)


def analyze(
    samples: Samples,
    sample_rate: int,
    params: Optional[AnalysisParams] = None,
) -> AnalysisResult:
    """Estimate tempo and key of a mono buffer.

    Args:
        samples: Mono samples, nominally in [-1, 1]. A 2-D (samples, channels)
            array is reduced to its first channel.
        sample_rate: Sample rate in Hz.
        params: Frame/hop configuration; defaults to ``AnalysisParams()``.

    Returns:
        AnalysisResult with bpm, confidence, alternatives and up to six key
        candidates. Too little signal yields the 120 BPM fallback with
        ``tempo_status`` set, not an exception.

    Raises:
        InvalidInputError: empty buffer, non-positive sample rate, or
            non-finite samples. Rejecting NaN and infinity is a
            deliberate extension of the input contract; a non-finite sample
            would otherwise turn every frame and the chroma maximum into NaN.
    """
    params = params or AnalysisParams()
    audio = prepare_samples(samples, sample_rate)

    if params.parallel:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="keytempo") as pool:
            tempo_future = pool.submit(_tempo_pass, audio, sample_rate, params)
            key_future = pool.submit(_key_pass, audio, sample_rate, params)
            tempo = tempo_future.result()
            keys = key_future.result()
    else:
        tempo = _tempo_pass(audio, sample_rate, params)
        keys = _key_pass(audio, sample_rate, params)

    result = AnalysisResult.from_parts(tempo, keys)
    logger.info(
        f"Analysis complete: bpm={result.bpm} confidence={result.bpm_confidence:.3f} "
        f"key={result.top_key.label} status={result.tempo_status.value} "
        f"duration={audio.size / sample_rate:.2f}s"
    )
    return result


async def analyze_async(
    samples: Samples,
    sample_rate: int,
    params: Optional[AnalysisParams] = None,
) -> AnalysisResult:
    """Run ``analyze`` on a worker thread so the event loop stays responsive."""
    return await asyncio.to_thread(analyze, samples, sample_rate, params)


__all__ = ["prepare_samples", "analyze", "analyze_async"]
