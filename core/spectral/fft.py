"""
core/spectral/fft.py — Radix-2 Cooley-Tukey FFT.

Any input length L is zero-padded to the next power of two P >= L, so the
output is the DFT of the *padded* sequence. Callers that label bins in Hz
must therefore use ``sample_rate / P`` as the bin spacing
(see ``fft_frequencies()``).

Design:
    - Iterative, vectorised: one bit-reversal gather followed by log2(P)
      butterfly stages, each a single numpy expression over all blocks.
    - Works on the last axis, so a (frames, L) matrix is transformed in one
      call — the STFT and Welch estimators rely on this.
    - Bit-reversal indices and twiddle factors are cached per size.
    - ``direct_dft()`` is the O(N²) reference used to cross-check results;
      nothing in the pipeline calls it.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import numpy as np

from core.spectral.errors import InvalidInputError
from core.spectral.types import readonly


def next_pow2(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


@lru_cache(maxsize=32)
def _bit_reverse_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.intp)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return readonly(rev)


@lru_cache(maxsize=64)
def _twiddles(size: int) -> np.ndarray:
    half = size // 2
    return readonly(np.exp(-2j * np.pi * np.arange(half) / size))


def _radix2(values: np.ndarray) -> np.ndarray:
    """In-order FFT along the last axis; length must be a power of two."""
    n = values.shape[-1]
    lead = values.shape[:-1]
    out = values[..., _bit_reverse_indices(n)]
    size = 2
    while size <= n:
        half = size // 2
        blocks = out.reshape(lead + (n // size, size))
        even = blocks[..., :half]
        odd = blocks[..., half:] * _twiddles(size)
        out = np.concatenate((even + odd, even - odd), axis=-1).reshape(lead + (n,))
        size *= 2
    return out


def fft(values: Any) -> np.ndarray:
    """Complex DFT of the zero-padded input, along the last axis.

    Args:
        values: Real or complex array-like. 1-D for a single sequence, or
            N-D to transform every row of the last axis independently.

    Returns:
        Complex128 array whose last axis has length ``next_pow2(L)``.

    Raises:
        InvalidInputError: If the input is scalar or its last axis is empty.
    """
    data = np.asarray(values, dtype=np.complex128)
    if data.ndim == 0 or data.shape[-1] == 0:
        raise InvalidInputError("FFT input must contain at least one sample")
    length = data.shape[-1]
    padded = next_pow2(length)
    if padded != length:
        pad = [(0, 0)] * (data.ndim - 1) + [(0, padded - length)]
        data = np.pad(data, pad)
    return _radix2(data)


def rfft(values: Any) -> np.ndarray:
    """Non-negative-frequency half of ``fft()`` for real input.

    Keeps bins 0 .. P/2 inclusive (P = padded length); the mirrored upper
    half is redundant for real signals. A length-1 input yields one bin.
    """
    spectrum = fft(np.asarray(values, dtype=np.float64))
    return spectrum[..., : spectrum.shape[-1] // 2 + 1]


def fft_frequencies(padded_length: int, sample_rate: float) -> np.ndarray:
    """Bin frequencies in Hz for ``rfft()`` output of a padded length."""
    return np.arange(padded_length // 2 + 1, dtype=np.float64) * (sample_rate / padded_length)


def direct_dft(values: Any) -> np.ndarray:
    """O(N²) DFT of the zero-padded input — reference implementation only."""
    data = np.asarray(values, dtype=np.complex128)
    if data.ndim != 1 or data.size == 0:
        raise InvalidInputError("direct_dft expects a non-empty 1-D sequence")
    n = next_pow2(data.size)
    data = np.pad(data, (0, n - data.size))
    k = np.arange(n)
    basis = np.exp(-2j * np.pi * np.outer(k, k) / n)
    return basis @ data
