"""Tests for core/spectral/measurements.py."""

from __future__ import annotations

import math

import numpy as np
import pytest

from core.spectral.buffer import SampleBuffer
from core.spectral.errors import InvalidInputError
from core.spectral.measurements import amplitude_to_db, measure, rms


class TestRMS:
    def test_zeros(self) -> None:
        assert rms(np.zeros(100)) == 0.0

    @pytest.mark.parametrize("a", [0.5, -0.25, 1.0, 3.0])
    def test_constant_signal(self, a: float) -> None:
        assert rms(np.full(1000, a)) == pytest.approx(abs(a))

    def test_sine_is_amplitude_over_root_two(self, sine_440: SampleBuffer) -> None:
        assert rms(sine_440.channel(0)) == pytest.approx(0.5 / math.sqrt(2), rel=1e-3)


class TestMeasure:
    def test_silence_is_exactly_zero(self) -> None:
        result = measure(SampleBuffer.silence(1.0, 8000))
        assert result.rms_amplitude == 0.0
        assert result.power == 0.0
        assert result.peak_amplitude == 0.0
        assert result.rms_db == pytest.approx(-120.0)
        assert result.degenerate is True

    def test_power_is_rms_squared(self, noise_buffer: SampleBuffer) -> None:
        result = measure(noise_buffer)
        assert result.power == pytest.approx(result.rms_amplitude**2)

    def test_duration_and_counts(self, stereo_buffer: SampleBuffer) -> None:
        result = measure(stereo_buffer)
        assert result.duration == pytest.approx(1.0)
        assert result.sample_count == 8000
        assert result.channel_count == 2
        assert result.sample_rate == 8000

    def test_opposite_channels_cancel_in_downmix(self) -> None:
        a = 0.4
        buf = SampleBuffer.from_channels([np.full(500, a), np.full(500, -a)], 8000)
        result = measure(buf, per_channel=True)
        assert result.rms_amplitude == 0.0
        assert [c.rms_amplitude for c in result.channels] == [
            pytest.approx(a),
            pytest.approx(a),
        ]
        assert [c.channel for c in result.channels] == [0, 1]

    def test_per_channel_off_by_default(self, stereo_buffer: SampleBuffer) -> None:
        assert measure(stereo_buffer).channels == ()

    def test_peak_amplitude(self) -> None:
        buf = SampleBuffer.from_channels([0.1, -0.9, 0.3], 8000)
        assert measure(buf).peak_amplitude == pytest.approx(0.9)

    def test_full_scale_is_zero_db(self) -> None:
        buf = SampleBuffer.from_channels(np.ones(100), 8000)
        assert measure(buf).rms_db == pytest.approx(0.0)

    def test_nan_samples_ignored_and_flagged(self) -> None:
        buf = SampleBuffer.from_channels([np.nan, 1.0, 1.0, 1.0], 8000)
        result = measure(buf)
        assert math.isfinite(result.rms_amplitude)
        assert result.rms_amplitude == pytest.approx(math.sqrt(0.75))
        assert result.degenerate is True

    def test_empty_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="empty"):
            measure(SampleBuffer.from_channels(np.zeros(0), 8000))

    def test_result_is_frozen(self, noise_buffer: SampleBuffer) -> None:
        result = measure(noise_buffer)
        with pytest.raises(AttributeError):
            result.power = 1.0  # type: ignore[misc]


class TestDecibels:
    def test_amplitude_to_db(self) -> None:
        assert amplitude_to_db(1.0) == pytest.approx(0.0)
        assert amplitude_to_db(0.1) == pytest.approx(-20.0)
        assert amplitude_to_db(0.0) == pytest.approx(-120.0)
        assert amplitude_to_db(0.0, floor=1e-6) == pytest.approx(-60.0)
