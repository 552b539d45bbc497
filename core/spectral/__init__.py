"""
core/spectral — Spectral analysis engine.

Turns a decoded sample buffer into the three canonical views of a sound
(waveform, spectrogram, periodogram) plus scalar measurements.

All functions are pure: numpy arrays / SampleBuffers in → frozen
dataclasses out. No file I/O and no rendering in this package; decoding
happens before a SampleBuffer exists, colour mapping after a result does.

Architecture note:
    scipy supplies the window shapes; the FFT itself is a vectorised
    radix-2 implementation over numpy (``fft.py``). The one-shot pipeline
    that bundles all views lives in ``core.spectral.pipeline`` and is not
    re-exported here, because it depends on ``core.config``.

Public API:
    Types:        SampleBuffer, WindowSpec, WindowKind, SpectrumScale, MixMode,
                  SpectrogramResult, PeriodogramResult, WaveformResult,
                  Measurements, ChannelMeasurements
    Errors:       SpectralError, InvalidInputError, RangeError,
                  ComputationCancelled
    Windows:      window_weights
    FFT:          fft, rfft, fft_frequencies, next_pow2
    Spectrogram:  spectrogram
    Periodogram:  periodogram, periodogram_channels, power_to_db
    Measurements: measure, rms
    Edit:         trim, mix, select_channel
    Waveform:     waveform
"""

from core.spectral.buffer import SampleBuffer
from core.spectral.edit import mix, select_channel, trim
from core.spectral.errors import (
    ComputationCancelled,
    InvalidInputError,
    RangeError,
    SpectralError,
)
from core.spectral.fft import fft, fft_frequencies, next_pow2, rfft
from core.spectral.measurements import measure, rms
from core.spectral.periodogram import periodogram, periodogram_channels, power_to_db
from core.spectral.stft import spectrogram
from core.spectral.types import (
    ChannelMeasurements,
    Measurements,
    MixMode,
    PeriodogramResult,
    SpectrogramResult,
    SpectrumScale,
    WaveformResult,
    WindowKind,
    WindowSpec,
)
from core.spectral.waveform import waveform
from core.spectral.windows import window_weights

__all__ = [
    # Types
    "SampleBuffer",
    "WindowSpec",
    "WindowKind",
    "SpectrumScale",
    "MixMode",
    "SpectrogramResult",
    "PeriodogramResult",
    "WaveformResult",
    "Measurements",
    "ChannelMeasurements",
    # Errors
    "SpectralError",
    "InvalidInputError",
    "RangeError",
    "ComputationCancelled",
    # Computation
    "window_weights",
    "fft",
    "rfft",
    "fft_frequencies",
    "next_pow2",
    "spectrogram",
    "periodogram",
    "periodogram_channels",
    "power_to_db",
    "measure",
    "rms",
    "trim",
    "mix",
    "select_channel",
    "waveform",
]
