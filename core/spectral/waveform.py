"""
core/spectral/waveform.py — Time-domain view.

Without ``max_points`` the samples pass through untouched. With it, every
channel is split into ``max_points`` equal buckets and each bucket keeps its
largest-magnitude sample, so transients survive the reduction a renderer
needs for long clips.
"""

from __future__ import annotations

import numpy as np

from core.spectral.buffer import SampleBuffer
from core.spectral.errors import InvalidInputError
from core.spectral.types import WaveformResult, readonly


def waveform(buffer: SampleBuffer, max_points: int | None = None) -> WaveformResult:
    """Times and amplitudes of ``buffer``, optionally peak-decimated.

    Raises:
        InvalidInputError: If ``max_points`` < 1.
    """
    if max_points is not None and max_points < 1:
        raise InvalidInputError(f"max_points must be >= 1, got {max_points}")

    n = buffer.sample_count
    if max_points is None or n <= max_points:
        return WaveformResult(
            times=readonly(buffer.times()),
            samples=buffer.data,
            sample_rate=buffer.sample_rate,
        )

    edges = np.linspace(0, n, max_points + 1).astype(np.int64)
    starts = edges[:-1]
    magnitude = np.abs(np.nan_to_num(buffer.data))
    # Index of the loudest sample inside each bucket, per channel.
    peak_offsets = np.stack(
        [np.argmax(magnitude[:, lo:hi], axis=1) for lo, hi in zip(starts, edges[1:])],
        axis=1,
    )
    picks = starts[np.newaxis, :] + peak_offsets
    samples = np.take_along_axis(buffer.data, picks, axis=1)

    return WaveformResult(
        times=readonly(starts / buffer.sample_rate),
        samples=readonly(np.ascontiguousarray(samples)),
        sample_rate=buffer.sample_rate,
        decimated=True,
    )
