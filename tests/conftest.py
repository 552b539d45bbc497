"""
Shared fixtures for the test suite.

Centralizes the synthetic signals used across modules so individual test
files don't repeat buffer construction boilerplate.

Signal conventions:
    - SR = 44100 Hz unless a test needs something smaller.
    - Mono buffers have shape (1, N); stereo (2, N).
    - Sines use amplitude 0.5 and start at phase 0.
"""

import numpy as np
import pytest

from core.session.types import SessionParameters
from core.spectral.buffer import SampleBuffer

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SR = 44100
"""Standard sample rate for tests."""

SMALL_SR = 8000
"""Low sample rate keeping session tests fast."""


def make_sine(freq_hz: float, duration: float, sr: int = SR, amplitude: float = 0.5) -> np.ndarray:
    """Mono sine wave as a float64 array."""
    n = int(round(duration * sr))
    t = np.arange(n) / sr
    return amplitude * np.sin(2.0 * np.pi * freq_hz * t)


# ---------------------------------------------------------------------------
# Buffer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sine_440() -> SampleBuffer:
    """2-second 440 Hz mono sine at 44.1 kHz."""
    return SampleBuffer.from_channels(make_sine(440.0, 2.0), SR)


@pytest.fixture()
def stereo_buffer() -> SampleBuffer:
    """1-second stereo buffer: 440 Hz left, 1 kHz right, at 8 kHz."""
    left = make_sine(440.0, 1.0, SMALL_SR)
    right = make_sine(1000.0, 1.0, SMALL_SR, amplitude=0.25)
    return SampleBuffer.from_channels(np.stack([left, right]), SMALL_SR)


@pytest.fixture()
def noise_buffer() -> SampleBuffer:
    """0.5-second seeded white noise at 8 kHz."""
    rng = np.random.default_rng(42)
    return SampleBuffer.from_channels(0.3 * rng.standard_normal(SMALL_SR // 2), SMALL_SR)


@pytest.fixture()
def session_params(stereo_buffer: SampleBuffer) -> SessionParameters:
    """Session parameters over the stereo buffer with a small window."""
    return SessionParameters(source=stereo_buffer, window_length=256)
