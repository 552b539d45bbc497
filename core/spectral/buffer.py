"""
core/spectral/buffer.py — Immutable multichannel sample container.

A ``SampleBuffer`` is produced once by an external decoder or capture layer
and owned read-only by the engine from then on. Trim and Mix build new
buffers instead of mutating, so every derived result can be cached and read
concurrently.

Design:
    - Samples are stored as a float64 array of shape (channels, samples),
      copied on construction and marked read-only.
    - Out-of-range amplitudes (|x| > 1) are valid and kept as-is.
    - Non-finite samples are accepted here; spectral functions replace them
      with 0.0 through ``finite_samples()`` and flag the result degenerate.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cached_property
from typing import Any

import numpy as np

from core.spectral.errors import InvalidInputError
from core.spectral.types import readonly

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Multichannel sample data plus sample rate.

    Prefer ``SampleBuffer.from_channels()`` over the raw constructor; it
    accepts mono arrays, (channels, samples) arrays and nested sequences.

    Invariants:
        sample_rate > 0
        data.ndim == 2 and data.shape[0] >= 1
        data is read-only
    """

    data: np.ndarray
    """Samples, shape (channels, samples), float64, read-only."""

    sample_rate: int
    """Sample rate in Hz."""

    def __post_init__(self) -> None:
        """Validate shape and rate, then freeze a private copy of the data."""
        rate = self.sample_rate
        if isinstance(rate, bool) or not isinstance(rate, (int, np.integer)) or rate <= 0:
            raise InvalidInputError(f"Sample rate must be a positive integer, got {rate!r}")
        data = np.array(self.data, dtype=np.float64, copy=True)
        if data.ndim != 2:
            raise InvalidInputError(
                f"Sample data must have shape (channels, samples), got ndim={data.ndim}"
            )
        if data.shape[0] < 1:
            raise InvalidInputError("A SampleBuffer needs at least one channel")
        object.__setattr__(self, "data", readonly(data))
        object.__setattr__(self, "sample_rate", int(rate))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_channels(cls, channels: Any, sample_rate: int) -> SampleBuffer:
        """Build a buffer from mono samples, a 2-D array or per-channel lists.

        Args:
            channels: 1-D array-like (mono), 2-D array-like shaped
                (channels, samples), or a sequence of equal-length channel
                sequences.
            sample_rate: Sample rate in Hz.

        Raises:
            InvalidInputError: Ragged channels, no channels, rank > 2 or an
                invalid sample rate.
        """
        if isinstance(channels, np.ndarray):
            data = channels
        else:
            if isinstance(channels, Sequence) and channels and _is_sequence(channels[0]):
                lengths = {len(ch) for ch in channels}
                if len(lengths) > 1:
                    raise InvalidInputError(
                        f"All channels must have equal length, got lengths {sorted(lengths)}"
                    )
            try:
                data = np.asarray(channels, dtype=np.float64)
            except (TypeError, ValueError) as exc:
                raise InvalidInputError(f"Cannot interpret channel data: {exc}") from exc

        if data.ndim == 1:
            data = data[np.newaxis, :]
        elif data.ndim == 0 or data.ndim > 2:
            raise InvalidInputError(
                f"Expected 1-D (mono) or 2-D (channels, samples) data, got ndim={data.ndim}"
            )
        return cls(data=data, sample_rate=sample_rate)

    @classmethod
    def silence(cls, duration: float, sample_rate: int, channels: int = 1) -> SampleBuffer:
        """An all-zero buffer of the given duration (seconds)."""
        n = int(round(duration * sample_rate))
        return cls(data=np.zeros((channels, n)), sample_rate=sample_rate)

    # ------------------------------------------------------------------
    # Shape and timing
    # ------------------------------------------------------------------

    @property
    def channel_count(self) -> int:
        return int(self.data.shape[0])

    @property
    def sample_count(self) -> int:
        """Samples per channel."""
        return int(self.data.shape[1])

    @property
    def duration(self) -> float:
        """Duration in seconds (sample_count / sample_rate)."""
        return self.sample_count / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return self.sample_count == 0

    def channel(self, index: int) -> np.ndarray:
        """Read-only view of one channel.

        Raises:
            InvalidInputError: If index is out of range.
        """
        if not -self.channel_count <= index < self.channel_count:
            raise InvalidInputError(
                f"Channel index {index} out of range for {self.channel_count} channel(s)"
            )
        return self.data[index]

    def times(self) -> np.ndarray:
        """Time in seconds of every sample index."""
        return np.arange(self.sample_count, dtype=np.float64) / self.sample_rate

    @cached_property
    def fingerprint(self) -> str:
        """SHA-256 of rate, shape and raw samples — identifies this buffer version."""
        digest = hashlib.sha256()
        digest.update(f"{self.sample_rate}|{self.data.shape}".encode())
        digest.update(np.ascontiguousarray(self.data).tobytes())
        return digest.hexdigest()

    def equals(self, other: SampleBuffer) -> bool:
        """True when both buffers hold the same rate and samples (NaN == NaN)."""
        return (
            self.sample_rate == other.sample_rate
            and self.data.shape == other.data.shape
            and bool(np.array_equal(self.data, other.data, equal_nan=True))
        )

    def __repr__(self) -> str:
        return (
            f"SampleBuffer(channels={self.channel_count}, samples={self.sample_count}, "
            f"sample_rate={self.sample_rate})"
        )


# ---------------------------------------------------------------------------
# Helpers shared by the spectral functions
# ---------------------------------------------------------------------------


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (Sequence, np.ndarray)) and not isinstance(value, (str, bytes))


def as_samples(samples: Any) -> np.ndarray:
    """Coerce one channel of samples to a 1-D float64 array.

    Raises:
        InvalidInputError: If the input is not one-dimensional.
    """
    values = np.asarray(samples, dtype=np.float64)
    if values.ndim != 1:
        raise InvalidInputError(f"Expected a single channel (1-D), got ndim={values.ndim}")
    return values


def finite_samples(samples: np.ndarray) -> tuple[np.ndarray, bool]:
    """Replace NaN / ±inf with 0.0.

    Returns:
        (samples, degenerate) — the original array when everything is finite,
        otherwise a cleaned copy and ``degenerate=True``.
    """
    mask = np.isfinite(samples)
    if mask.all():
        return samples, False
    bad = int(samples.size - np.count_nonzero(mask))
    logger.warning("Replacing %d non-finite sample(s) with 0.0", bad)
    return np.where(mask, samples, 0.0), True
