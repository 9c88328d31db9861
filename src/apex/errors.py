"""Exception hierarchy for the APEX photo core."""

from __future__ import annotations


class ApexError(Exception):
    """Base class for all errors raised by :mod:`apex`."""


class InvalidBufferError(ApexError, ValueError):
    """Raised when a pixel buffer does not match its declared dimensions."""


class InvalidSettingsError(ApexError, ValueError):
    """Raised when an adjustment settings aggregate is malformed."""


class RenderCancelledError(ApexError):
    """Raised when a tiled render is abandoned before it completes."""


__all__ = [
    "ApexError",
    "InvalidBufferError",
    "InvalidSettingsError",
    "RenderCancelledError",
]
