"""
Configuration dataclasses for the spectral analysis engine.

These immutable config objects decouple tuning parameters from function
signatures, making it easy to define standard configurations and share
them between one-shot analysis calls and interactive sessions.
"""

import os
from dataclasses import dataclass, fields, replace

from dotenv import load_dotenv

from core.spectral.types import DEFAULT_DB_FLOOR, SpectrumScale, WindowKind, WindowSpec

ENV_PREFIX = "SPECTRAL_"


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Configuration for spectrogram, periodogram and session computations.

    Attributes:
        window_kind: Analysis window shape. Defaults to Hann.
        window_length: Spectrogram window length in samples. Defaults to 1024.
        hop_fraction: Hop size as a fraction of the window length.
            Defaults to 0.25 (75% overlap, standard spectrogram practice).
        segment_overlap: Overlap between Welch segments, in [0, 1).
            Defaults to 0.5.
        max_segment_length: Cap on the Welch segment length, bounding FFT
            cost on long clips. Defaults to 8192.
        db_floor: Power floor used by every dB conversion. Defaults to 1e-12.
        spectrum_scale: "power" (|X|²) or "magnitude" (|X|) spectrogram values.
        max_workers: Threads used for frame batches. 1 runs inline.
        frames_per_batch: Frames transformed per FFT call.
        waveform_max_points: Peak-decimate the waveform view to this many
            points. None keeps every sample.
        debounce_seconds: Delay before a session computation snapshots its
            parameters, folding bursts of slider updates together.
        cache_size: Session results kept in the LRU cache.
        cache_ttl_seconds: Lifetime of a cached session result.

    Example:
        >>> config = AnalysisConfig(window_length=2048, max_workers=4)
        >>> result = spectrogram(samples, sr, config.window_spec())
    """

    window_kind: WindowKind = WindowKind.HANN
    window_length: int = 1024
    hop_fraction: float = 0.25
    segment_overlap: float = 0.5
    max_segment_length: int = 8192
    db_floor: float = DEFAULT_DB_FLOOR
    spectrum_scale: SpectrumScale = SpectrumScale.POWER
    max_workers: int = 1
    frames_per_batch: int = 256
    waveform_max_points: int | None = None
    debounce_seconds: float = 0.0
    cache_size: int = 32
    cache_ttl_seconds: float = 600.0

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        try:
            object.__setattr__(self, "window_kind", WindowKind(self.window_kind))
        except ValueError:
            raise ValueError(f"Unknown window_kind {self.window_kind!r}") from None
        try:
            object.__setattr__(self, "spectrum_scale", SpectrumScale(self.spectrum_scale))
        except ValueError:
            raise ValueError(f"Unknown spectrum_scale {self.spectrum_scale!r}") from None
        if self.window_length < 1:
            raise ValueError(f"window_length must be positive, got {self.window_length}")
        if not 0.0 < self.hop_fraction <= 1.0:
            raise ValueError(f"hop_fraction must be in (0, 1], got {self.hop_fraction}")
        if not 0.0 <= self.segment_overlap < 1.0:
            raise ValueError(f"segment_overlap must be in [0, 1), got {self.segment_overlap}")
        if self.max_segment_length < 1:
            raise ValueError(
                f"max_segment_length must be positive, got {self.max_segment_length}"
            )
        if self.db_floor <= 0.0:
            raise ValueError(f"db_floor must be positive, got {self.db_floor}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.frames_per_batch < 1:
            raise ValueError(f"frames_per_batch must be >= 1, got {self.frames_per_batch}")
        if self.waveform_max_points is not None and self.waveform_max_points < 1:
            raise ValueError(
                f"waveform_max_points must be >= 1 or None, got {self.waveform_max_points}"
            )
        if self.debounce_seconds < 0.0:
            raise ValueError(f"debounce_seconds must be non-negative, got {self.debounce_seconds}")
        if self.cache_size < 0:
            raise ValueError(f"cache_size must be non-negative, got {self.cache_size}")
        if self.cache_ttl_seconds <= 0.0:
            raise ValueError(f"cache_ttl_seconds must be positive, got {self.cache_ttl_seconds}")

    def hop_size(self, length: int | None = None) -> int:
        """Hop in samples for a window of ``length`` (default: window_length)."""
        length = self.window_length if length is None else length
        # Floors like WindowSpec's default hop: length // 4 at the default fraction.
        return max(1, min(length, int(length * self.hop_fraction)))

    def window_spec(
        self, length: int | None = None, kind: WindowKind | str | None = None
    ) -> WindowSpec:
        """``WindowSpec`` for this config, optionally overriding length and kind."""
        length = self.window_length if length is None else length
        return WindowSpec(
            kind=self.window_kind if kind is None else kind,
            length=length,
            hop_size=self.hop_size(length),
        )

    @classmethod
    def from_env(
        cls, prefix: str = ENV_PREFIX, base: "AnalysisConfig | None" = None
    ) -> "AnalysisConfig":
        """
        Build a config from ``<prefix><FIELD>`` environment variables.

        A ``.env`` file in the working directory is loaded first. Unset
        variables keep the value from ``base`` (default: DEFAULT_CONFIG).
        An empty ``SPECTRAL_WAVEFORM_MAX_POINTS`` means "no decimation".

        Raises:
            ValueError: If a variable cannot be parsed or fails validation.
        """
        load_dotenv()
        base = base or DEFAULT_CONFIG
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            current = getattr(base, f.name)
            try:
                if f.name == "waveform_max_points":
                    overrides[f.name] = int(raw) if raw.strip() else None
                elif isinstance(current, (WindowKind, SpectrumScale)):
                    overrides[f.name] = raw.strip().lower()
                elif isinstance(current, int):
                    overrides[f.name] = int(raw)
                else:
                    overrides[f.name] = float(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {prefix}{f.name.upper()}: {raw!r}") from exc
        return replace(base, **overrides)


# Pre-defined configurations for common use cases

DEFAULT_CONFIG = AnalysisConfig()
"""Default configuration: Hann, 1024-sample window, 75% overlap, serial."""

HIGH_RESOLUTION_CONFIG = AnalysisConfig(window_length=4096)
"""Fine frequency resolution (~10.8 Hz at 44.1 kHz), coarse time resolution."""

FAST_PREVIEW_CONFIG = AnalysisConfig(window_length=512, waveform_max_points=2000)
"""Cheap configuration for scrubbing through long clips."""

PARALLEL_CONFIG = AnalysisConfig(max_workers=4, frames_per_batch=128)
"""Transforms frame batches on four threads."""
