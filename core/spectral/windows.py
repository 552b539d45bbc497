"""
core/spectral/windows.py — Analysis window weights.

Window kinds form a closed set (``WindowKind``) dispatched by one pure
function, ``window_weights()``. All windows are the *symmetric* variants:

    Hann:        w[i] = 0.5 · (1 − cos(2π·i / (L − 1)))
    Hamming:     w[i] = 0.54 − 0.46 · cos(2π·i / (L − 1))
    Rectangular: w[i] = 1

A length-1 window is ``[1.0]`` for every kind (no division by zero).
Weights are generated by ``scipy.signal.windows`` and cached per (kind,
length); the cached arrays are read-only so callers can share them.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np
from scipy.signal import windows as scipy_windows

from core.spectral.errors import InvalidInputError
from core.spectral.types import WindowKind, WindowSpec, readonly

_GENERATORS = {
    WindowKind.HANN: lambda n: scipy_windows.hann(n, sym=True),
    WindowKind.HAMMING: lambda n: scipy_windows.hamming(n, sym=True),
    WindowKind.RECTANGULAR: lambda n: np.ones(n),
}


@lru_cache(maxsize=64)
def _cached_weights(kind: WindowKind, length: int) -> np.ndarray:
    if length == 1:
        return readonly(np.ones(1))
    weights = np.asarray(_GENERATORS[kind](length), dtype=np.float64)
    # Weights are non-negative by contract.
    return readonly(np.clip(weights, 0.0, None))


def window_weights(kind: WindowKind | str, length: int) -> np.ndarray:
    """Return ``length`` non-negative window weights.

    Args:
        kind: Window shape (``WindowKind`` or its string value).
        length: Number of weights, >= 1.

    Returns:
        Read-only float64 array of shape (length,).

    Raises:
        InvalidInputError: Unknown kind or length < 1.
    """
    try:
        kind = WindowKind(kind)
    except ValueError:
        raise InvalidInputError(
            f"Unknown window kind {kind!r}. Valid: {[k.value for k in WindowKind]}"
        ) from None
    if isinstance(length, bool) or not isinstance(length, (int, np.integer)) or length < 1:
        raise InvalidInputError(f"Window length must be a positive integer, got {length!r}")
    return _cached_weights(kind, int(length))


def weights_for(spec: WindowSpec) -> np.ndarray:
    """Window weights for a validated ``WindowSpec``."""
    return _cached_weights(spec.kind, spec.length)
