"""
core/spectral/stft.py — Short-time Fourier transform → spectrogram.

Algorithm:
    1. Slice the channel into frames of ``window.length`` samples advancing
       by ``window.hop_size`` (final partial frame zero-padded, see
       ``core.spectral.frames``).
    2. Multiply each frame by the window weights and FFT it (padded to the
       next power of two P).
    3. Keep bins 0 .. P/2 (real-input symmetry) as power |X|² or, on
       request, linear magnitude |X|.

Frame centre time = (frame_start + length / 2) / sample_rate.

Time-frequency trade-off:
    Doubling the window length (with the hop kept at the same fraction)
    halves the number of frames and doubles the number of frequency bins.
    This is a property of the transform, not a defect.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import numpy as np

from core.spectral.buffer import as_samples, finite_samples
from core.spectral.errors import InvalidInputError
from core.spectral.fft import fft_frequencies, next_pow2
from core.spectral.frames import frame_power_spectra, slice_frames
from core.spectral.types import SpectrogramResult, SpectrumScale, WindowSpec, readonly
from core.spectral.windows import weights_for

logger = logging.getLogger(__name__)


def spectrogram(
    samples: Any,
    sample_rate: int,
    window: WindowSpec | None = None,
    *,
    scale: SpectrumScale | str = SpectrumScale.POWER,
    max_workers: int = 1,
    frames_per_batch: int = 256,
    cancel_event: threading.Event | None = None,
) -> SpectrogramResult:
    """Compute the spectrogram of one channel.

    Args:
        samples: 1-D array-like of amplitudes.
        sample_rate: Sample rate in Hz.
        window: Window shape/length/hop. Defaults to Hann, 1024, hop 256.
        scale: ``"power"`` (default) or ``"magnitude"``.
        max_workers: Threads used to transform frame batches.
        frames_per_batch: Frames per FFT batch.
        cancel_event: Cooperative cancellation flag, checked between batches.

    Returns:
        SpectrogramResult with ``magnitude`` shaped (frames, P/2 + 1).

    Raises:
        InvalidInputError: Empty input, bad sample rate or unknown scale.
        ComputationCancelled: ``cancel_event`` was set mid-computation.
    """
    window = window or WindowSpec()
    try:
        scale = SpectrumScale(scale)
    except ValueError:
        raise InvalidInputError(f"Unknown spectrum scale {scale!r}") from None
    if sample_rate <= 0:
        raise InvalidInputError(f"Sample rate must be positive, got {sample_rate}")
    values = as_samples(samples)
    if values.size == 0:
        raise InvalidInputError("Cannot compute a spectrogram of an empty buffer")
    values, degenerate = finite_samples(values)

    frames, starts = slice_frames(values, window.length, window.hop_size)
    power = frame_power_spectra(
        frames,
        weights_for(window),
        max_workers=max_workers,
        frames_per_batch=frames_per_batch,
        cancel_event=cancel_event,
    )
    matrix = np.sqrt(power) if scale is SpectrumScale.MAGNITUDE else power
    padded = next_pow2(window.length)
    logger.debug(
        "spectrogram: %d samples → %d frames × %d bins (window=%s/%d, hop=%d)",
        values.size,
        matrix.shape[0],
        matrix.shape[1],
        window.kind.value,
        window.length,
        window.hop_size,
    )

    return SpectrogramResult(
        time_bins=readonly((starts + window.length / 2.0) / sample_rate),
        freq_bins=readonly(fft_frequencies(padded, sample_rate)),
        magnitude=readonly(matrix),
        window=window,
        sample_rate=int(sample_rate),
        fft_length=padded,
        scale=scale,
        degenerate=degenerate or not np.any(values),
    )
