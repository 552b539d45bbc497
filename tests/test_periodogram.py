"""Tests for core/spectral/periodogram.py — Welch power spectrum."""

from __future__ import annotations

import threading

import numpy as np
import pytest
from scipy.signal import windows as scipy_windows

from core.spectral.buffer import SampleBuffer
from core.spectral.errors import ComputationCancelled, InvalidInputError
from core.spectral.fft import next_pow2
from core.spectral.periodogram import (
    MAX_SEGMENT_LENGTH,
    effective_segment_length,
    periodogram,
    periodogram_channels,
    power_to_db,
)
from core.spectral.stft import spectrogram
from core.spectral.types import WindowSpec

SR = 44100
SMALL_SR = 8000


def make_sine(freq_hz: float, duration: float, sr: int = SR) -> np.ndarray:
    n = int(round(duration * sr))
    return 0.5 * np.sin(2.0 * np.pi * freq_hz * np.arange(n) / sr)


class TestSingleSegment:
    def test_equals_one_windowed_fft(self) -> None:
        rng = np.random.default_rng(1)
        x = rng.standard_normal(1000)
        result = periodogram(x, SMALL_SR)
        window = scipy_windows.hann(1000, sym=True)
        expected = np.abs(np.fft.rfft(x * window, n=next_pow2(1000))) ** 2
        assert result.segment_count == 1
        assert result.segment_length == 1000
        np.testing.assert_allclose(result.power, expected, rtol=1e-9, atol=1e-8)

    def test_full_length_segment_beyond_default_cap(self) -> None:
        """A full-length segment on a clip longer than the cap is one FFT."""
        x = make_sine(440.0, 2.0)
        result = periodogram(x, SR, segment_length=x.size)
        window = scipy_windows.hann(x.size, sym=True)
        expected = np.abs(np.fft.rfft(x * window, n=next_pow2(x.size))) ** 2
        assert result.segment_count == 1
        assert result.segment_length == x.size
        assert result.fft_length == 131072
        np.testing.assert_allclose(result.power, expected, rtol=1e-7, atol=1e-6)

    def test_segment_longer_than_signal_is_clamped(self) -> None:
        x = make_sine(440.0, 0.05, sr=SMALL_SR)
        result = periodogram(x, SMALL_SR, segment_length=4096)
        assert result.segment_length == x.size
        assert result.segment_count == 1

    def test_matches_spectrogram_frame_with_same_window(self) -> None:
        x = make_sine(1000.0, 0.064, sr=SMALL_SR)  # 512 samples
        psd = periodogram(x, SMALL_SR, segment_length=512)
        spec = spectrogram(x, SMALL_SR, WindowSpec(length=512))
        np.testing.assert_allclose(psd.power, spec.magnitude[0], rtol=1e-12, atol=1e-12)


class TestSegmentation:
    def test_half_overlap_count(self) -> None:
        result = periodogram(np.ones(4096), SMALL_SR, segment_length=1024, overlap=0.5)
        assert result.segment_count == 7

    def test_zero_overlap_count(self) -> None:
        result = periodogram(np.ones(4096), SMALL_SR, segment_length=1024, overlap=0.0)
        assert result.segment_count == 4

    def test_cap_applies_to_default_only(self) -> None:
        """The cap bounds the default segment; explicit requests only clamp to n."""
        assert effective_segment_length(100_000, None) == MAX_SEGMENT_LENGTH
        assert effective_segment_length(5000, None, max_segment_length=512) == 512
        assert effective_segment_length(100_000, 20_000) == 20_000
        assert effective_segment_length(5000, 1024, max_segment_length=512) == 1024
        assert effective_segment_length(300, 1024) == 300

    def test_default_call_on_long_signal_is_capped(self) -> None:
        """Without a segment length a long clip is split into capped segments."""
        result = periodogram(np.ones(20_000), SMALL_SR)
        assert result.segment_length == MAX_SEGMENT_LENGTH
        assert result.segment_count > 1

    def test_bins_follow_padded_length(self) -> None:
        result = periodogram(np.ones(3000), SMALL_SR, segment_length=1000)
        assert result.fft_length == 1024
        assert len(result.freq_bins) == len(result.power) == 513
        assert result.freq_resolution == pytest.approx(SMALL_SR / 1024)


class TestSpectralContent:
    def test_sine_peak_within_one_bin(self) -> None:
        result = periodogram(make_sine(440.0, 2.0), SR, segment_length=1024)
        assert abs(result.peak_frequency - 440.0) <= result.freq_resolution

    def test_power_non_negative(self, noise_buffer: SampleBuffer) -> None:
        result = periodogram(noise_buffer.channel(0), noise_buffer.sample_rate, segment_length=256)
        assert np.all(result.power >= 0.0)
        assert np.all(np.isfinite(result.power_db))

    def test_per_channel_peaks(self, stereo_buffer: SampleBuffer) -> None:
        left, right = periodogram_channels(stereo_buffer, segment_length=1024)
        assert abs(left.peak_frequency - 440.0) <= left.freq_resolution
        assert abs(right.peak_frequency - 1000.0) <= right.freq_resolution

    def test_hamming_window_option(self) -> None:
        x = make_sine(440.0, 0.5)
        result = periodogram(x, SR, segment_length=2048, window_kind="hamming")
        assert abs(result.peak_frequency - 440.0) <= result.freq_resolution


class TestDecibels:
    def test_silence_floors_at_minus_120(self) -> None:
        result = periodogram(np.zeros(2048), SMALL_SR, segment_length=512)
        assert result.degenerate is True
        np.testing.assert_allclose(result.power_db, -120.0)

    def test_custom_floor(self) -> None:
        result = periodogram(np.zeros(64), SMALL_SR, db_floor=1e-6)
        np.testing.assert_allclose(result.power_db, -60.0)

    def test_power_to_db(self) -> None:
        np.testing.assert_allclose(power_to_db([1.0, 100.0, 0.0]), [0.0, 20.0, -120.0])


class TestInvalidInput:
    @pytest.mark.parametrize("overlap", [-0.1, 1.0, 1.5])
    def test_overlap_out_of_range(self, overlap: float) -> None:
        with pytest.raises(InvalidInputError, match="overlap"):
            periodogram(np.ones(100), SMALL_SR, overlap=overlap)

    def test_empty_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="empty"):
            periodogram(np.array([]), SMALL_SR)

    def test_zero_segment_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="segment_length"):
            periodogram(np.ones(100), SMALL_SR, segment_length=0)

    def test_bad_sample_rate(self) -> None:
        with pytest.raises(InvalidInputError, match="Sample rate"):
            periodogram(np.ones(100), 0)

    def test_nan_input_is_flagged(self) -> None:
        x = np.ones(256)
        x[10] = np.nan
        result = periodogram(x, SMALL_SR)
        assert result.degenerate is True
        assert np.all(np.isfinite(result.power))

    def test_cancelled(self) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ComputationCancelled):
            periodogram(np.ones(4096), SMALL_SR, segment_length=256, cancel_event=cancel)
