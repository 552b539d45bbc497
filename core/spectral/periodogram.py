"""
core/spectral/periodogram.py — Welch-averaged power spectrum.

Splits a channel into windowed, overlapping segments (same framing as the
STFT), takes |FFT|² of each and averages bin-wise. More segments mean less
variance but coarser frequency resolution; with one segment covering the
whole signal the estimate is exactly one windowed FFT power spectrum.

Scaling:
    Values are raw averaged |X|² (no density normalisation), so they are
    directly comparable with a spectrogram frame of the same window.
    ``power_db = 10·log10(max(power, floor))`` keeps silent bins finite.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import numpy as np

from core.spectral.buffer import SampleBuffer, as_samples, finite_samples
from core.spectral.errors import InvalidInputError
from core.spectral.fft import fft_frequencies, next_pow2
from core.spectral.frames import frame_power_spectra, slice_frames
from core.spectral.types import DEFAULT_DB_FLOOR, PeriodogramResult, WindowKind, readonly
from core.spectral.windows import window_weights

logger = logging.getLogger(__name__)

MAX_SEGMENT_LENGTH = 8192
"""Default cap on the segment length, bounding the FFT size."""


def power_to_db(power: Any, floor: float = DEFAULT_DB_FLOOR) -> np.ndarray:
    """10·log10(power) with values below ``floor`` clamped to it."""
    return 10.0 * np.log10(np.maximum(np.asarray(power, dtype=np.float64), floor))


def effective_segment_length(
    sample_count: int,
    segment_length: int | None,
    max_segment_length: int = MAX_SEGMENT_LENGTH,
) -> int:
    """Segment length actually used.

    The default (whole signal) is capped at ``max_segment_length``; an
    explicit request is only clamped to the signal length.
    """
    if segment_length is None:
        return max(1, min(sample_count, max_segment_length))
    return max(1, min(segment_length, sample_count))


def periodogram(
    samples: Any,
    sample_rate: int,
    *,
    segment_length: int | None = None,
    overlap: float = 0.5,
    window_kind: WindowKind | str = WindowKind.HANN,
    max_segment_length: int = MAX_SEGMENT_LENGTH,
    db_floor: float = DEFAULT_DB_FLOOR,
    max_workers: int = 1,
    frames_per_batch: int = 256,
    cancel_event: threading.Event | None = None,
) -> PeriodogramResult:
    """Welch power spectrum of one channel.

    Args:
        samples: 1-D array-like of amplitudes.
        sample_rate: Sample rate in Hz.
        segment_length: Samples per segment, clamped to the signal length.
            Defaults to the whole signal capped at ``max_segment_length``.
        overlap: Fraction of each segment shared with the next, in [0, 1).
        window_kind: Window applied to every segment.
        max_segment_length: Cap on the default segment length.
        db_floor: Power floor for the dB conversion.
        max_workers: Threads used to transform segment batches.
        frames_per_batch: Segments per FFT batch.
        cancel_event: Cooperative cancellation flag.

    Returns:
        PeriodogramResult aligned with ``freq_bins`` (P/2 + 1 bins).

    Raises:
        InvalidInputError: Empty input, bad rate, overlap or segment length.
        ComputationCancelled: ``cancel_event`` was set mid-computation.
    """
    if sample_rate <= 0:
        raise InvalidInputError(f"Sample rate must be positive, got {sample_rate}")
    if not 0.0 <= overlap < 1.0:
        raise InvalidInputError(f"overlap must be in [0, 1), got {overlap}")
    if segment_length is not None and segment_length < 1:
        raise InvalidInputError(f"segment_length must be >= 1, got {segment_length}")
    if max_segment_length < 1:
        raise InvalidInputError(f"max_segment_length must be >= 1, got {max_segment_length}")
    values = as_samples(samples)
    if values.size == 0:
        raise InvalidInputError("Cannot compute a periodogram of an empty buffer")
    values, degenerate = finite_samples(values)

    seg = effective_segment_length(values.size, segment_length, max_segment_length)
    hop = max(1, seg - int(round(seg * overlap)))
    frames, _ = slice_frames(values, seg, hop)
    spectra = frame_power_spectra(
        frames,
        window_weights(window_kind, seg),
        max_workers=max_workers,
        frames_per_batch=frames_per_batch,
        cancel_event=cancel_event,
    )
    power = spectra.mean(axis=0)
    padded = next_pow2(seg)
    logger.debug(
        "periodogram: %d samples, segment=%d, hop=%d, %d segment(s)",
        values.size,
        seg,
        hop,
        spectra.shape[0],
    )

    return PeriodogramResult(
        freq_bins=readonly(fft_frequencies(padded, sample_rate)),
        power=readonly(power),
        power_db=readonly(power_to_db(power, db_floor)),
        sample_rate=int(sample_rate),
        segment_length=seg,
        segment_count=int(spectra.shape[0]),
        fft_length=padded,
        degenerate=degenerate or not np.any(values),
    )


def periodogram_channels(
    buffer: SampleBuffer, **kwargs: Any
) -> tuple[PeriodogramResult, ...]:
    """One periodogram per channel of ``buffer`` (keyword args as ``periodogram``)."""
    return tuple(
        periodogram(buffer.channel(i), buffer.sample_rate, **kwargs)
        for i in range(buffer.channel_count)
    )
