"""APEX photo core: a deterministic, non-destructive pixel engine."""

from __future__ import annotations

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .errors import ApexError, InvalidBufferError, InvalidSettingsError, RenderCancelledError
from .utils.logging import get_logger

__version__ = "0.1.0"

__all__ = [
    *_core_all,
    "ApexError",
    "InvalidBufferError",
    "InvalidSettingsError",
    "RenderCancelledError",
    "get_logger",
]
