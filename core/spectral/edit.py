"""
core/spectral/edit.py — Time-range trimming and channel mixing.

Every function returns a NEW ``SampleBuffer``; the source buffer is never
touched, including when validation fails.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from core.spectral.buffer import SampleBuffer
from core.spectral.errors import InvalidInputError, RangeError
from core.spectral.types import MixMode


def sample_range(buffer: SampleBuffer, start: float, end: float) -> tuple[int, int]:
    """Half-open sample index range [round(start·sr), round(end·sr)).

    Raises:
        RangeError: start < 0, end > duration, or start >= end.
    """
    if start < 0 or end > buffer.duration or start >= end:
        raise RangeError(start, end, buffer.duration)
    lo = int(round(start * buffer.sample_rate))
    hi = int(round(end * buffer.sample_rate))
    return lo, min(hi, buffer.sample_count)


def trim(buffer: SampleBuffer, start: float, end: float) -> SampleBuffer:
    """Samples in [start, end) seconds of every channel.

    ``trim(b, 0, b.duration)`` reproduces ``b``.

    Raises:
        RangeError: start < 0, end > duration, or start >= end.
    """
    lo, hi = sample_range(buffer, start, end)
    return SampleBuffer(data=buffer.data[:, lo:hi], sample_rate=buffer.sample_rate)


def mix(
    buffer: SampleBuffer,
    mode: MixMode | str = MixMode.MONO,
    *,
    weights: Sequence[float] | None = None,
) -> SampleBuffer:
    """Downmix all channels into a single channel.

    Args:
        buffer: Source buffer.
        mode: Mix target; only ``"mono"`` is defined.
        weights: Optional per-channel weights. The result is the weighted
            mean (weights are normalised to sum to 1). Without weights every
            channel counts equally (arithmetic mean).

    Raises:
        InvalidInputError: Unknown mode, wrong number of weights, negative
            weights or weights summing to zero.
    """
    try:
        MixMode(mode)
    except ValueError:
        raise InvalidInputError(
            f"Unknown mix mode {mode!r}. Valid: {[m.value for m in MixMode]}"
        ) from None

    if weights is None:
        mono = buffer.data.mean(axis=0)
    else:
        w = np.asarray(weights, dtype=np.float64)
        if w.shape != (buffer.channel_count,):
            raise InvalidInputError(
                f"Expected {buffer.channel_count} weight(s), got shape {w.shape}"
            )
        if np.any(w < 0) or not np.isfinite(w).all() or w.sum() <= 0:
            raise InvalidInputError(f"Weights must be finite, non-negative and non-zero: {w}")
        mono = (w / w.sum()) @ buffer.data
    return SampleBuffer(data=mono[np.newaxis, :], sample_rate=buffer.sample_rate)


def select_channel(buffer: SampleBuffer, index: int) -> SampleBuffer:
    """Single-channel buffer holding channel ``index``.

    Raises:
        InvalidInputError: If index is out of range.
    """
    return SampleBuffer(data=buffer.channel(index)[np.newaxis, :], sample_rate=buffer.sample_rate)
