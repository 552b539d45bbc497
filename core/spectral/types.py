"""
core/spectral/types.py — Frozen data types for spectral analysis.

All types are frozen dataclasses — immutable value objects that are safe
to pass between threads, cache, and hand to an external renderer.

Design:
    - No I/O, no side effects, no state.
    - Array fields hold read-only numpy arrays (``flags.writeable = False``);
      a new computation always builds new arrays instead of mutating old ones.
    - ``WindowSpec`` validates itself at construction time, because window
      parameters arrive straight from interactive controls.
    - Equality on array-carrying results is identity-based (``eq=False``);
      compare their arrays with numpy instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from core.spectral.errors import InvalidInputError

DEFAULT_DB_FLOOR = 1e-12
"""Smallest power value fed to log10 — keeps silent bins finite."""


def readonly(values: np.ndarray) -> np.ndarray:
    """Return *values* marked read-only (the array itself, not a copy)."""
    values.flags.writeable = False
    return values


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class WindowKind(str, Enum):
    """Closed set of analysis window shapes."""

    HANN = "hann"
    HAMMING = "hamming"
    RECTANGULAR = "rectangular"


class SpectrumScale(str, Enum):
    """Value scale stored in a spectrogram matrix."""

    POWER = "power"
    """Squared magnitude |X|²."""

    MAGNITUDE = "magnitude"
    """Linear magnitude |X|."""


class MixMode(str, Enum):
    """Channel mixing targets supported by ``mix()``."""

    MONO = "mono"


# ---------------------------------------------------------------------------
# Window specification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WindowSpec:
    """Analysis window shape, length and hop.

    ``hop_size`` defaults to ``length // 4`` (75% overlap, minimum 1).

    Invariants:
        length >= 1
        1 <= hop_size <= length
    """

    kind: WindowKind = WindowKind.HANN
    length: int = 1024
    hop_size: int | None = None

    def __post_init__(self) -> None:
        """Coerce the kind, fill the default hop and validate."""
        try:
            object.__setattr__(self, "kind", WindowKind(self.kind))
        except ValueError:
            raise InvalidInputError(
                f"Unknown window kind {self.kind!r}. "
                f"Valid: {[k.value for k in WindowKind]}"
            ) from None
        if isinstance(self.length, bool) or not isinstance(self.length, (int, np.integer)):
            raise InvalidInputError(f"Window length must be an integer, got {self.length!r}")
        if self.length < 1:
            raise InvalidInputError(f"Window length must be >= 1, got {self.length}")
        object.__setattr__(self, "length", int(self.length))

        hop = max(1, self.length // 4) if self.hop_size is None else self.hop_size
        if isinstance(hop, bool) or not isinstance(hop, (int, np.integer)):
            raise InvalidInputError(f"Hop size must be an integer, got {hop!r}")
        if not 1 <= hop <= self.length:
            raise InvalidInputError(
                f"Hop size must satisfy 1 <= hop <= length ({self.length}), got {hop}"
            )
        object.__setattr__(self, "hop_size", int(hop))

    @property
    def overlap(self) -> float:
        """Fraction of each frame shared with the next one (0.0 – <1.0)."""
        return 1.0 - self.hop_size / self.length  # type: ignore[operator]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class WaveformResult:
    """Time-domain view of a buffer, ready for plotting.

    ``samples`` has shape (channels, points). When the waveform was
    decimated, each point is the largest-magnitude sample of its bucket and
    ``times`` holds the bucket start times.
    """

    times: np.ndarray
    """Time of each point in seconds, shape (points,)."""

    samples: np.ndarray
    """Amplitudes, shape (channels, points)."""

    sample_rate: int

    decimated: bool = False


@dataclass(frozen=True, eq=False)
class SpectrogramResult:
    """Time-frequency matrix produced by the STFT pipeline.

    Invariants:
        magnitude.shape == (len(time_bins), len(freq_bins))
        len(freq_bins) == fft_length // 2 + 1, where fft_length is the window
            length rounded up to a power of two (so a 1000-sample window
            yields 513 bins, not 501)
        all magnitude values >= 0
    """

    time_bins: np.ndarray
    """Frame centre times in seconds, ascending."""

    freq_bins: np.ndarray
    """Bin frequencies in Hz, 0 .. sample_rate / 2."""

    magnitude: np.ndarray
    """Shape (frames, bins). Power or linear magnitude, see ``scale``."""

    window: WindowSpec
    sample_rate: int

    fft_length: int
    """Padded FFT length (next power of two >= window length)."""

    scale: SpectrumScale = SpectrumScale.POWER
    degenerate: bool = False

    @property
    def freq_resolution(self) -> float:
        """Spacing between frequency bins in Hz."""
        return self.sample_rate / self.fft_length

    @property
    def time_resolution(self) -> float:
        """Spacing between frame centres in seconds."""
        return self.window.hop_size / self.sample_rate  # type: ignore[operator]

    def to_db(self, floor: float = DEFAULT_DB_FLOOR) -> np.ndarray:
        """Return the matrix in decibels with silent bins floored.

        Power values use 10·log10, magnitudes 20·log10 (the floor is
        applied in the power domain in both cases).
        """
        if self.scale is SpectrumScale.MAGNITUDE:
            return 20.0 * np.log10(np.maximum(self.magnitude, np.sqrt(floor)))
        return 10.0 * np.log10(np.maximum(self.magnitude, floor))


@dataclass(frozen=True, eq=False)
class PeriodogramResult:
    """Welch-averaged power spectrum of one channel.

    Invariants:
        len(power) == len(freq_bins)
        all power values >= 0
        power_db is finite everywhere
    """

    freq_bins: np.ndarray
    power: np.ndarray
    power_db: np.ndarray
    sample_rate: int

    segment_length: int
    """Effective segment length actually used (after clamping)."""

    segment_count: int
    fft_length: int
    degenerate: bool = False

    @property
    def freq_resolution(self) -> float:
        """Spacing between frequency bins in Hz."""
        return self.sample_rate / self.fft_length

    @property
    def peak_frequency(self) -> float:
        """Frequency (Hz) of the bin with the most power."""
        return float(self.freq_bins[int(np.argmax(self.power))])


@dataclass(frozen=True)
class ChannelMeasurements:
    """Scalar statistics for a single channel."""

    channel: int
    rms_amplitude: float
    power: float
    peak_amplitude: float
    rms_db: float


@dataclass(frozen=True)
class Measurements:
    """Scalar summary of a clip.

    From ``measure()`` the top-level RMS/power values describe the mono
    downmix (channels averaged sample-wise); ``analyze()`` reports them for
    the analysed signal, i.e. the selected channel when one is chosen.
    ``channels`` is populated only when per-channel results were requested.

    Invariants:
        power == rms_amplitude ** 2
        duration == sample_count / sample_rate
    """

    duration: float
    sample_rate: int
    sample_count: int
    channel_count: int
    rms_amplitude: float
    power: float
    peak_amplitude: float
    rms_db: float
    channels: tuple[ChannelMeasurements, ...] = field(default_factory=tuple)
    degenerate: bool = False
