"""Render sessions that publish only the newest completed pass."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping

from .. import config
from ..errors import RenderCancelledError
from .buffer import PixelBuffer
from .pipeline import PipelineOptions, ProgressCallback, process_image, process_image_tiled
from .settings import AdjustmentSettings

_LOGGER = logging.getLogger(__name__)


class RenderGeneration:
    """Thread-safe, monotonically increasing render token.

    Every new pass calls :meth:`advance` and remembers the returned token.  A
    pass may only publish while its token is still :meth:`is_current`, so a
    slow pass that finishes after a newer one started is dropped instead of
    overwriting the newer result.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    @property
    def current(self) -> int:
        with self._lock:
            return self._value

    def advance(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._value


class PreviewSession(ABC):
    """Represents a backend specific rendering context.

    Sub-classes encapsulate any state that needs to live between individual
    renders of the same source image.
    """

    @abstractmethod
    def dispose(self) -> None:
        """Release resources associated with the session."""


class PreviewBackend(ABC):
    """Abstract preview backend selecting the optimal rendering strategy."""

    tier_name: str = "unknown"
    """Human readable tier label (e.g. ``"CPU"``)."""

    supports_realtime: bool = False
    """Whether the backend can render fast enough to run on the caller's thread."""

    @abstractmethod
    def create_session(self, buffer: PixelBuffer) -> PreviewSession:
        """Create a rendering session for *buffer*."""

    @abstractmethod
    def render(
        self,
        session: PreviewSession,
        settings: AdjustmentSettings | Mapping[str, Any] | None,
        on_progress: ProgressCallback | None = None,
    ) -> PixelBuffer | None:
        """Render *settings* and return the published result.

        Returns ``None`` when the pass was superseded by a newer one.
        """

    def dispose_session(self, session: PreviewSession) -> None:
        """Release resources owned by *session*."""

        session.dispose()


@dataclass(eq=False)
class CpuPreviewSession(PreviewSession):
    """Hold the original buffer and the most recently published result."""

    original: PixelBuffer
    generation: RenderGeneration = field(default_factory=RenderGeneration)
    _result: PixelBuffer | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def result(self) -> PixelBuffer | None:
        """Last published render, or ``None`` before the first one."""

        with self._lock:
            return self._result

    def begin(self) -> int:
        """Start a new pass; every earlier pass becomes stale."""

        return self.generation.advance()

    def publish(self, token: int, buffer: PixelBuffer) -> bool:
        """Store *buffer* if *token* is still current and report whether it was."""

        with self._lock:
            if not self.generation.is_current(token):
                _LOGGER.info(
                    "Discarding stale render %d (current generation %d)",
                    token,
                    self.generation.current,
                )
                return False
            self._result = buffer
            return True

    def dispose(self) -> None:
        with self._lock:
            self._result = None


class CpuPreviewBackend(PreviewBackend):
    """CPU implementation built on :mod:`apex.core.pipeline`.

    Buffers above ``tiled_threshold`` pixels are rendered tile by tile, and a
    tiled pass stops early once a newer pass has started.
    """

    tier_name = "CPU"
    supports_realtime = False

    def __init__(
        self,
        options: PipelineOptions | None = None,
        tiled_threshold: int = config.TILED_RENDER_PIXEL_THRESHOLD,
    ) -> None:
        self._options = options or PipelineOptions()
        self._tiled_threshold = tiled_threshold

    def create_session(self, buffer: PixelBuffer) -> PreviewSession:
        return CpuPreviewSession(buffer)

    def render(
        self,
        session: PreviewSession,
        settings: AdjustmentSettings | Mapping[str, Any] | None,
        on_progress: ProgressCallback | None = None,
    ) -> PixelBuffer | None:
        assert isinstance(session, CpuPreviewSession)
        token = session.begin()
        source = session.original

        if source.pixel_count > self._tiled_threshold:
            try:
                result = process_image_tiled(
                    source,
                    settings,
                    on_progress=on_progress,
                    options=self._options,
                    should_cancel=lambda: not session.generation.is_current(token),
                )
            except RenderCancelledError:
                _LOGGER.debug("Render %d superseded before completion", token)
                return None
        else:
            result = process_image(source, settings, self._options)
            if on_progress is not None:
                on_progress(1.0)

        if not session.publish(token, result):
            return None
        return result


def select_preview_backend() -> PreviewBackend:
    """Return the most capable preview backend available at runtime."""

    backend = CpuPreviewBackend()
    _LOGGER.info("Using %s preview backend", backend.tier_name)
    return backend


__all__ = [
    "CpuPreviewBackend",
    "CpuPreviewSession",
    "PreviewBackend",
    "PreviewSession",
    "RenderGeneration",
    "select_preview_backend",
]
