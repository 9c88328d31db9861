"""Logging helpers for APEX."""

from __future__ import annotations

import logging
import os
from typing import Optional

_LOGGER: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Return the package-level logger configured for APEX.

    Module loggers created with ``logging.getLogger(__name__)`` propagate to
    this logger, so configuring it once covers the whole package.  The level
    can be overridden through the ``APEX_LOG_LEVEL`` environment variable.
    """

    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger("apex")
        if not _LOGGER.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            handler.setFormatter(formatter)
            _LOGGER.addHandler(handler)
        level_name = os.environ.get("APEX_LOG_LEVEL", "INFO").upper()
        _LOGGER.setLevel(getattr(logging, level_name, logging.INFO))
    return _LOGGER

logger = get_logger()
