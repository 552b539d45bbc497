"""
core/session/types.py — Parameter and state types for interactive sessions.

``SessionParameters`` is validated as a whole in ``__post_init__``, so a
field-by-field mutation through ``dataclasses.replace`` either yields a
fully valid parameter set or raises — a session never holds a partially
invalid one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from core.spectral.buffer import SampleBuffer
from core.spectral.errors import InvalidInputError, RangeError
from core.spectral.types import WindowKind


class SessionState(Enum):
    """Session controller states.

    IDLE ──(update)──→ COMPUTING ──(done, not stale)──→ IDLE
                           │  ↑
                           └──┘ (done while stale: recompute newest)
    COMPUTING ──(pipeline error)──→ ERROR ──(update)──→ COMPUTING
    """

    IDLE = "idle"
    COMPUTING = "computing"
    ERROR = "error"


@dataclass(frozen=True, eq=False)
class SessionParameters:
    """Everything one recomputation of the three views depends on.

    Invariants:
        trim_range is None or 0 <= start < end <= source.duration
        window_length >= 1
        channel is None (mono downmix) or a valid channel index
    """

    source: SampleBuffer

    trim_range: tuple[float, float] | None = None
    """(start, end) in seconds; None analyses the whole buffer."""

    window_length: int = 1024
    window_kind: WindowKind = WindowKind.HANN

    channel: int | None = None
    """Channel to analyse; None averages all channels (mono downmix)."""

    color_scheme: Any = None
    """Opaque to the engine; handed through to the renderer."""

    def __post_init__(self) -> None:
        """Validate the full parameter set."""
        if not isinstance(self.source, SampleBuffer):
            raise InvalidInputError(
                f"source must be a SampleBuffer, got {type(self.source).__name__}"
            )
        if self.trim_range is not None:
            start, end = (float(v) for v in self.trim_range)
            if start < 0 or end > self.source.duration or start >= end:
                raise RangeError(start, end, self.source.duration)
            object.__setattr__(self, "trim_range", (start, end))
        if (
            isinstance(self.window_length, bool)
            or not isinstance(self.window_length, (int, np.integer))
            or self.window_length < 1
        ):
            raise InvalidInputError(f"window_length must be >= 1, got {self.window_length!r}")
        object.__setattr__(self, "window_length", int(self.window_length))
        try:
            object.__setattr__(self, "window_kind", WindowKind(self.window_kind))
        except ValueError:
            raise InvalidInputError(f"Unknown window kind {self.window_kind!r}") from None
        if self.channel is not None and not 0 <= self.channel < self.source.channel_count:
            raise InvalidInputError(
                f"channel {self.channel} out of range for "
                f"{self.source.channel_count} channel(s)"
            )

    def cache_key(self) -> tuple[Any, ...]:
        """Everything that affects the computed views (colour scheme excluded)."""
        return (
            self.source.fingerprint,
            self.trim_range,
            self.window_length,
            self.window_kind.value,
            self.channel,
        )
