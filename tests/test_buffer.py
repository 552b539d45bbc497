"""Tests for core/spectral/buffer.py — SampleBuffer construction and invariants."""

from __future__ import annotations

import numpy as np
import pytest

from core.spectral.buffer import SampleBuffer, as_samples, finite_samples
from core.spectral.errors import InvalidInputError


class TestFromChannels:
    def test_mono_array_becomes_single_channel(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros(100), 8000)
        assert buf.channel_count == 1
        assert buf.sample_count == 100
        assert buf.data.shape == (1, 100)

    def test_two_d_array_keeps_channel_axis(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros((2, 50)), 8000)
        assert buf.channel_count == 2
        assert buf.sample_count == 50

    def test_nested_lists(self) -> None:
        buf = SampleBuffer.from_channels([[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]], 3)
        assert buf.channel_count == 2
        np.testing.assert_array_equal(buf.channel(1), [0.4, 0.5, 0.6])

    def test_ragged_channels_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="equal length"):
            SampleBuffer.from_channels([[0.1, 0.2], [0.3]], 8000)

    def test_rank_three_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="ndim=3"):
            SampleBuffer.from_channels(np.zeros((2, 2, 2)), 8000)

    def test_zero_channels_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="at least one channel"):
            SampleBuffer.from_channels(np.zeros((0, 10)), 8000)

    @pytest.mark.parametrize("rate", [0, -44100, 44100.0, True, None])
    def test_invalid_sample_rate_rejected(self, rate) -> None:
        with pytest.raises(InvalidInputError, match="Sample rate"):
            SampleBuffer.from_channels(np.zeros(10), rate)

    def test_empty_buffer_allowed(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros(0), 8000)
        assert buf.is_empty
        assert buf.duration == 0.0

    def test_out_of_range_amplitudes_kept(self) -> None:
        buf = SampleBuffer.from_channels([3.5, -7.0], 8000)
        np.testing.assert_array_equal(buf.channel(0), [3.5, -7.0])


class TestImmutability:
    def test_data_is_read_only(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros(10), 8000)
        with pytest.raises(ValueError):
            buf.data[0, 0] = 1.0

    def test_source_array_is_copied(self) -> None:
        src = np.zeros(10)
        buf = SampleBuffer.from_channels(src, 8000)
        src[0] = 5.0
        assert buf.data[0, 0] == 0.0

    def test_fields_frozen(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros(10), 8000)
        with pytest.raises((AttributeError, TypeError)):
            buf.sample_rate = 16000  # type: ignore[misc]


class TestTiming:
    def test_duration(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros(44100), 44100)
        assert buf.duration == pytest.approx(1.0)

    def test_times(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros(4), 4)
        np.testing.assert_allclose(buf.times(), [0.0, 0.25, 0.5, 0.75])

    def test_silence(self) -> None:
        buf = SampleBuffer.silence(0.5, 8000, channels=2)
        assert buf.data.shape == (2, 4000)
        assert not np.any(buf.data)

    def test_channel_index_out_of_range(self) -> None:
        buf = SampleBuffer.from_channels(np.zeros(4), 4)
        with pytest.raises(InvalidInputError, match="out of range"):
            buf.channel(1)


class TestIdentity:
    def test_fingerprint_stable_for_equal_content(self) -> None:
        a = SampleBuffer.from_channels([0.1, 0.2], 8000)
        b = SampleBuffer.from_channels([0.1, 0.2], 8000)
        assert a.fingerprint == b.fingerprint
        assert a.equals(b)

    def test_fingerprint_changes_with_rate(self) -> None:
        a = SampleBuffer.from_channels([0.1, 0.2], 8000)
        b = SampleBuffer.from_channels([0.1, 0.2], 16000)
        assert a.fingerprint != b.fingerprint
        assert not a.equals(b)

    def test_fingerprint_changes_with_samples(self) -> None:
        a = SampleBuffer.from_channels([0.1, 0.2], 8000)
        b = SampleBuffer.from_channels([0.1, 0.3], 8000)
        assert a.fingerprint != b.fingerprint

    def test_equals_treats_nan_as_equal(self) -> None:
        a = SampleBuffer.from_channels([np.nan, 0.2], 8000)
        b = SampleBuffer.from_channels([np.nan, 0.2], 8000)
        assert a.equals(b)


class TestSampleHelpers:
    def test_as_samples_rejects_2d(self) -> None:
        with pytest.raises(InvalidInputError, match="single channel"):
            as_samples(np.zeros((2, 3)))

    def test_finite_samples_passthrough(self) -> None:
        x = np.array([0.1, -0.2])
        out, degenerate = finite_samples(x)
        assert out is x
        assert degenerate is False

    def test_finite_samples_replaces_nan_and_inf(self) -> None:
        out, degenerate = finite_samples(np.array([np.nan, 0.5, np.inf, -np.inf]))
        np.testing.assert_array_equal(out, [0.0, 0.5, 0.0, 0.0])
        assert degenerate is True
