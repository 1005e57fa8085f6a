"""Radix-2 FFT over power-of-two frames.

Iterative Cooley-Tukey: a bit-reversal permutation followed by log2(N)
butterfly stages with twiddle factors exp(-2*pi*i*k/len). The transform
runs along the last axis, so a 2-D array of frames (one frame per row) is
transformed in a single pass; every row owns its own slice of the working
buffer.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np

from .errors import InvalidInputError


def is_power_of_two(n: int) -> bool:
    return n >= 1 and (n & (n - 1)) == 0


@lru_cache(maxsize=16)
def bit_reverse_indices(n: int) -> np.ndarray:
    """Permutation taking index i to the bit-reversal of i over log2(n) bits."""
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.intp)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    rev.setflags(write=False)
    return rev


def fft(x: np.ndarray) -> np.ndarray:
    """Complex FFT of real or complex input along the last axis.

    Length 0 or 1 is returned unchanged. Any other length must be a power
    of two; the engine does not pad.
    """
    x = np.asarray(x)
    n = x.shape[-1] if x.ndim else 0
    if n <= 1:
        return x
    if not is_power_of_two(n):
        raise InvalidInputError(f"FFT length must be a power of two, got {n}")

    # Fancy indexing copies, so the butterflies below never touch the input.
    # A contiguous buffer keeps each stage's reshape a writable view.
    data = np.ascontiguousarray(np.asarray(x, dtype=np.complex128)[..., bit_reverse_indices(n)])

    size = 2
    while size <= n:
        half = size // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
        blocks = data.reshape(data.shape[:-1] + (n // size, size))
        even = blocks[..., :half]
        odd = blocks[..., half:]
        t = odd * twiddle
        odd[...] = even - t
        even += t
        size *= 2
    return data


def magnitude_spectrum(frames: np.ndarray) -> np.ndarray:
    """Magnitudes of the first N/2 bins of each frame (last axis).

    The upper half mirrors the lower half for real input and is dropped.
    """
    frames = np.asarray(frames, dtype=float)
    n = frames.shape[-1]
    if n <= 1:
        return np.zeros(frames.shape[:-1] + (0,))
    return np.abs(fft(frames)[..., : n // 2])


__all__ = ["is_power_of_two", "bit_reverse_indices", "fft", "magnitude_spectrum"]
