"""
core/spectral/pipeline.py — One recomputation of the three canonical views.

    SampleBuffer ─ trim ─ mix/select ─┬─ waveform
                                      ├─ spectrogram (STFT)
                                      ├─ periodogram (Welch)
                                      └─ measurements

``analyze()`` is what the session controller runs for every parameter
snapshot; it is equally usable as a one-shot call. It always builds a new
``AnalysisViews`` and never mutates its inputs.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any

from core.config import DEFAULT_CONFIG, AnalysisConfig
from core.session.types import SessionParameters
from core.spectral.buffer import SampleBuffer
from core.spectral.edit import mix, select_channel, trim
from core.spectral.errors import ComputationCancelled
from core.spectral.measurements import measure
from core.spectral.periodogram import periodogram
from core.spectral.stft import spectrogram
from core.spectral.types import (
    Measurements,
    PeriodogramResult,
    SpectrogramResult,
    WaveformResult,
)
from core.spectral.waveform import waveform


@dataclass(frozen=True, eq=False)
class AnalysisViews:
    """Everything a renderer needs for one parameter set."""

    parameters: SessionParameters
    waveform: WaveformResult
    spectrogram: SpectrogramResult
    periodogram: PeriodogramResult
    measurements: Measurements

    color_scheme: Any = None
    """Copied from the parameters; opaque to the engine."""


def select_analysis_buffer(params: SessionParameters) -> tuple[SampleBuffer, SampleBuffer]:
    """Apply trim and channel selection.

    Returns:
        (trimmed, analysed) — the trimmed multichannel buffer and the
        single-channel buffer the spectral views are computed from.
    """
    buffer = params.source
    if params.trim_range is not None:
        buffer = trim(buffer, *params.trim_range)
    if params.channel is not None:
        analysed = select_channel(buffer, params.channel)
    elif buffer.channel_count > 1:
        analysed = mix(buffer, "mono")
    else:
        analysed = buffer
    return buffer, analysed


def analyze(
    params: SessionParameters,
    config: AnalysisConfig = DEFAULT_CONFIG,
    *,
    cancel_event: threading.Event | None = None,
) -> AnalysisViews:
    """Compute waveform, spectrogram, periodogram and measurements.

    Args:
        params: Validated session parameters.
        config: Hop fraction, overlap, workers and other tuning.
        cancel_event: When set, stop between frame batches.

    Raises:
        InvalidInputError: The selected range holds no samples.
        ComputationCancelled: ``cancel_event`` was set mid-computation.
    """
    trimmed, analysed = select_analysis_buffer(params)
    samples = analysed.channel(0)
    window = config.window_spec(params.window_length, params.window_kind)

    views_waveform = waveform(analysed, config.waveform_max_points)
    spec = spectrogram(
        samples,
        analysed.sample_rate,
        window,
        scale=config.spectrum_scale,
        max_workers=config.max_workers,
        frames_per_batch=config.frames_per_batch,
        cancel_event=cancel_event,
    )
    psd = periodogram(
        samples,
        analysed.sample_rate,
        segment_length=params.window_length,
        overlap=config.segment_overlap,
        window_kind=params.window_kind,
        max_segment_length=config.max_segment_length,
        db_floor=config.db_floor,
        max_workers=config.max_workers,
        frames_per_batch=config.frames_per_batch,
        cancel_event=cancel_event,
    )
    if cancel_event is not None and cancel_event.is_set():
        raise ComputationCancelled("analysis superseded")
    stats = measure(analysed, db_floor=config.db_floor)
    if trimmed.channel_count > 1:
        # Scalars follow the analysed signal; per-channel figures cover the whole clip.
        every_channel = measure(trimmed, per_channel=True, db_floor=config.db_floor)
        stats = replace(
            stats, channel_count=trimmed.channel_count, channels=every_channel.channels
        )

    return AnalysisViews(
        parameters=params,
        waveform=views_waveform,
        spectrogram=spec,
        periodogram=psd,
        measurements=stats,
        color_scheme=params.color_scheme,
    )
