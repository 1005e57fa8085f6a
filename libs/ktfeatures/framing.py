"""Overlapping, Hann-windowed analysis frames over a sample buffer."""

from __future__ import annotations

from typing import Iterator

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .errors import InvalidInputError
from .fft import is_power_of_two


DEFAULT_BATCH_SIZE = 256


def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window: 0.5 * (1 - cos(2*pi*j / (size - 1)))."""
    if size == 1:
        return np.ones(1)
    j = np.arange(size)
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * j / (size - 1)))


class Framer:
    """Lazy, restartable sequence of windowed frames.

    Frame i starts at sample i * hop_size and exists only while
    start + frame_size <= len(samples); a short tail is dropped, never
    padded. Iterating twice yields the same frames. The caller's buffer is
    read, never written.
    """

    def __init__(self, samples: np.ndarray, frame_size: int, hop_size: int):
        if not is_power_of_two(frame_size) or frame_size < 2:
            raise InvalidInputError(f"frame_size must be a power of two >= 2, got {frame_size}")
        if not 1 <= hop_size <= frame_size:
            raise InvalidInputError(
                f"hop_size must be in [1, {frame_size}], got {hop_size}"
            )
        self.samples = np.asarray(samples, dtype=float)
        if self.samples.ndim != 1:
            raise InvalidInputError("Framer expects a 1-D sample buffer")
        self.frame_size = frame_size
        self.hop_size = hop_size
        self.window = hann_window(frame_size)

    def __len__(self) -> int:
        n = self.samples.shape[0]
        if n < self.frame_size:
            return 0
        return (n - self.frame_size) // self.hop_size + 1

    def frame_start(self, index: int) -> int:
        return index * self.hop_size

    def __iter__(self) -> Iterator[np.ndarray]:
        for i in range(len(self)):
            start = self.frame_start(i)
            yield self.samples[start : start + self.frame_size] * self.window

    def batches(self, batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[np.ndarray]:
        """Yield windowed frames in frame order, stacked as 2-D batches."""
        count = len(self)
        if count == 0:
            return
        # Read-only strided view: (count, frame_size) without copying the buffer.
        view = sliding_window_view(self.samples, self.frame_size)[:: self.hop_size][:count]
        for begin in range(0, count, batch_size):
            yield view[begin : begin + batch_size] * self.window


__all__ = ["DEFAULT_BATCH_SIZE", "hann_window", "Framer"]
