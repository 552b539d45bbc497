"""
core/spectral/frames.py — Frame slicing and batched frame transforms.

Shared by the STFT pipeline and the Welch estimator.

Framing rule:
    Frames start at 0, hop, 2·hop, … and stop after the first frame that
    reaches the end of the signal. That last frame is zero-padded, so the
    frames always cover the whole input; a signal shorter than one frame
    yields exactly one zero-padded frame.

Concurrency:
    Frames are independent. ``frame_power_spectra()`` splits them into
    batches and, with ``max_workers > 1``, transforms the batches on a
    thread pool. Each batch reads the immutable frame matrix and writes a
    disjoint slice of a freshly allocated output array. A ``cancel_event``
    is checked between batches; once set, ``ComputationCancelled`` is
    raised and the partial output is dropped.
"""

from __future__ import annotations

import math
import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from core.spectral.errors import ComputationCancelled, InvalidInputError
from core.spectral.fft import next_pow2, rfft


def frame_count(sample_count: int, length: int, hop: int) -> int:
    """Number of frames produced for a signal of ``sample_count`` samples."""
    if sample_count <= length:
        return 1
    return 1 + math.ceil((sample_count - length) / hop)


def frame_starts(sample_count: int, length: int, hop: int) -> np.ndarray:
    """Start index of every frame."""
    return np.arange(frame_count(sample_count, length, hop), dtype=np.int64) * hop


def slice_frames(samples: np.ndarray, length: int, hop: int) -> tuple[np.ndarray, np.ndarray]:
    """Cut ``samples`` into overlapping frames.

    Args:
        samples: 1-D float array.
        length: Frame length in samples (>= 1).
        hop: Advance between frame starts (1 <= hop <= length).

    Returns:
        (frames, starts) — frames has shape (count, length), zero-padded
        past the end of the signal; starts holds each frame's first index.
    """
    if length < 1 or not 1 <= hop <= length:
        raise InvalidInputError(f"Invalid framing: length={length}, hop={hop}")
    starts = frame_starts(samples.size, length, hop)
    needed = int(starts[-1]) + length
    padded = np.zeros(max(needed, samples.size), dtype=np.float64)
    padded[: samples.size] = samples
    # View into the padded copy; rows overlap in memory.
    frames = np.lib.stride_tricks.sliding_window_view(padded, length)[::hop][: starts.size]
    return frames, starts


def _transform_batch(frames: np.ndarray, window: np.ndarray) -> np.ndarray:
    spectrum = rfft(frames * window)
    return spectrum.real**2 + spectrum.imag**2


def frame_power_spectra(
    frames: np.ndarray,
    window: np.ndarray,
    *,
    max_workers: int = 1,
    frames_per_batch: int = 256,
    cancel_event: threading.Event | None = None,
) -> np.ndarray:
    """Windowed power spectrum |FFT(frame · window)|² of every frame.

    Args:
        frames: Shape (count, length).
        window: Shape (length,).
        max_workers: Threads used for the batches (1 = run inline).
        frames_per_batch: Frames transformed per FFT call.
        cancel_event: When set, stop between batches.

    Returns:
        Array of shape (count, next_pow2(length) // 2 + 1).

    Raises:
        ComputationCancelled: If ``cancel_event`` was set before all batches ran.
    """
    count, length = frames.shape
    bins = next_pow2(length) // 2 + 1
    out = np.empty((count, bins), dtype=np.float64)
    step = max(1, frames_per_batch)
    bounds = [(lo, min(lo + step, count)) for lo in range(0, count, step)]

    def run(lo: int, hi: int) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ComputationCancelled("frame transform superseded")
        out[lo:hi] = _transform_batch(frames[lo:hi], window)

    if max_workers <= 1 or len(bounds) <= 1:
        for lo, hi in bounds:
            run(lo, hi)
        return out

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="spectral-frames") as pool:
        futures = [pool.submit(run, lo, hi) for lo, hi in bounds]
        try:
            for future in futures:
                future.result()
        except ComputationCancelled:
            for future in futures:
                future.cancel()
            raise
    return out
