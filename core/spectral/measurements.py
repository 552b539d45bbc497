"""
core/spectral/measurements.py — Scalar clip statistics.

    rms_amplitude = sqrt(mean(sample²))
    power         = rms_amplitude²
    duration      = sample_count / sample_rate
    rms_db        = 20·log10(max(rms, floor))   (dBFS for full-scale = 1.0)

Multi-channel buffers are downmixed sample-wise (mono average) for the
scalar values; per-channel figures are added on request.
"""

from __future__ import annotations

import numpy as np

from core.spectral.buffer import SampleBuffer, finite_samples
from core.spectral.errors import InvalidInputError
from core.spectral.types import DEFAULT_DB_FLOOR, ChannelMeasurements, Measurements


def rms(samples: np.ndarray) -> float:
    """Root-mean-square amplitude of a 1-D array (0.0 for all-zero input)."""
    return float(np.sqrt(np.mean(np.square(samples))))


def amplitude_to_db(amplitude: float, floor: float = DEFAULT_DB_FLOOR) -> float:
    """20·log10 of an amplitude, floored so silence stays finite."""
    return float(10.0 * np.log10(max(amplitude * amplitude, floor)))


def _channel_stats(index: int, samples: np.ndarray, floor: float) -> ChannelMeasurements:
    value = rms(samples)
    return ChannelMeasurements(
        channel=index,
        rms_amplitude=value,
        power=value * value,
        peak_amplitude=float(np.max(np.abs(samples))),
        rms_db=amplitude_to_db(value, floor),
    )


def measure(
    buffer: SampleBuffer,
    *,
    per_channel: bool = False,
    db_floor: float = DEFAULT_DB_FLOOR,
) -> Measurements:
    """Duration, RMS amplitude, power and peak of a buffer.

    Args:
        buffer: Buffer to summarise.
        per_channel: Also report statistics for every channel.
        db_floor: Power floor used for ``rms_db``.

    Raises:
        InvalidInputError: If the buffer has no samples.
    """
    if buffer.is_empty:
        raise InvalidInputError("Cannot measure an empty buffer")
    data, degenerate = finite_samples(buffer.data)
    mono = data[0] if buffer.channel_count == 1 else data.mean(axis=0)
    overall = _channel_stats(-1, mono, db_floor)

    channels: tuple[ChannelMeasurements, ...] = ()
    if per_channel:
        channels = tuple(_channel_stats(i, data[i], db_floor) for i in range(buffer.channel_count))

    return Measurements(
        duration=buffer.duration,
        sample_rate=buffer.sample_rate,
        sample_count=buffer.sample_count,
        channel_count=buffer.channel_count,
        rms_amplitude=overall.rms_amplitude,
        power=overall.power,
        peak_amplitude=overall.peak_amplitude,
        rms_db=overall.rms_db,
        channels=channels,
        degenerate=degenerate or not np.any(data),
    )
