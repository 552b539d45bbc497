"""
core/spectral/errors.py — Error taxonomy for the spectral analysis engine.

Numerically degenerate input (silence, NaN samples) is deliberately NOT an
error: it yields results with zero / floored values and a ``degenerate``
flag, so rendering never crashes on silence.
"""

from __future__ import annotations


class SpectralError(Exception):
    """Base class for all errors raised by the spectral engine."""


class InvalidInputError(SpectralError, ValueError):
    """Input rejected before any computation.

    Raised for empty buffers, zero-length windows, invalid hop sizes,
    unknown window kinds or mix modes, and malformed channel data.
    """


class RangeError(SpectralError, ValueError):
    """Trim bounds fall outside the buffer duration.

    Args:
        start: Requested start time in seconds.
        end: Requested end time in seconds.
        duration: Duration of the buffer being trimmed, in seconds.
    """

    def __init__(self, start: float, end: float, duration: float) -> None:
        """Initialize with the offending range and the buffer duration."""
        self.start = start
        self.end = end
        self.duration = duration
        super().__init__(
            f"Trim range [{start:.6g}, {end:.6g}) s is invalid for a buffer "
            f"of {duration:.6g} s (need 0 <= start < end <= duration)"
        )


class ComputationCancelled(SpectralError):
    """Raised between frame batches when a computation has been superseded.

    This is NOT a failure — the session controller swallows it and moves on
    to the newest parameter set.
    """
