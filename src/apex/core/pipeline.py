"""Non-destructive image pipeline.

:func:`process_image` renders a whole buffer in one pass; :func:`process_image_tiled`
renders it tile by tile, reporting progress after each tile so a cooperative
scheduler can interleave other work.  Both modes produce identical bytes: the
tiled mode renders every tile together with enough surrounding context for the
blur-backed detail pass and crops the halo away afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

from .. import config
from ..errors import InvalidBufferError, InvalidSettingsError, RenderCancelledError
from .buffer import PixelBuffer
from .filters.jit_executor import EffectPlan, TonePlan, apply_effects_region, apply_tone_region
from .filters.lut import apply_lut_array, build_tone_lut
from .filters.spatial import apply_detail, detail_halo
from .settings import AdjustmentSettings

_LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
CancelCheck = Callable[[], bool]


@dataclass(frozen=True)
class PipelineOptions:
    """Per-call overrides for the pipeline defaults in :mod:`apex.config`."""

    tile_size: int = config.DEFAULT_TILE_SIZE
    clarity_radius: float = config.CLARITY_RADIUS
    noise_reduction_radius: float = config.NOISE_REDUCTION_RADIUS
    sharpen_threshold: float = config.SHARPEN_THRESHOLD
    reference_temperature: float = config.REFERENCE_TEMPERATURE
    use_lut_fast_path: bool = True


DEFAULT_PIPELINE_OPTIONS = PipelineOptions()


@dataclass(frozen=True)
class _RenderPlan:
    tone: TonePlan
    effects: EffectPlan
    settings: AdjustmentSettings
    options: PipelineOptions
    detail_active: bool
    halo: int
    luts: tuple[np.ndarray, np.ndarray, np.ndarray] | None


def _prepare(
    buffer: PixelBuffer,
    settings: AdjustmentSettings | Mapping[str, Any] | None,
    options: PipelineOptions | None,
) -> _RenderPlan:
    if not isinstance(buffer, PixelBuffer):
        raise InvalidBufferError(
            f"Expected a PixelBuffer, got {type(buffer).__name__}"
        )
    resolved = AdjustmentSettings.ensure(settings).validate().clamp()
    options = options or DEFAULT_PIPELINE_OPTIONS
    if options.tile_size <= 0:
        raise InvalidSettingsError(f"Tile size must be positive, got {options.tile_size}")

    if resolved.effects.dehaze != 0:
        _LOGGER.warning(
            "Dehaze (%s) is not supported by the CPU pipeline and was ignored",
            resolved.effects.dehaze,
        )

    tone = TonePlan.from_settings(resolved, options.reference_temperature)
    effects = EffectPlan.from_settings(resolved)
    detail_active = not resolved.detail.is_neutral
    halo = 0
    if detail_active:
        halo = detail_halo(
            resolved.detail, options.clarity_radius, options.noise_reduction_radius
        )

    luts = None
    if (
        options.use_lut_fast_path
        and tone.lut_compatible
        and not detail_active
        and not effects.is_active
    ):
        curve_tables = tone.curve_tables if tone.apply_curves else None
        luts = tuple(
            build_tone_lut(tone.exposure, tone.contrast, curve_tables, channel)
            for channel in range(3)
        )
        _LOGGER.debug("Using lookup-table fast path")

    return _RenderPlan(
        tone=tone,
        effects=effects,
        settings=resolved,
        options=options,
        detail_active=detail_active,
        halo=halo,
        luts=luts,
    )


def _render_region(
    source: np.ndarray,
    plan: _RenderPlan,
    origin_x: int,
    origin_y: int,
    full_width: int,
    full_height: int,
) -> np.ndarray:
    """Render *source* (a region of the full image) into a new array."""

    if plan.luts is not None:
        return apply_lut_array(source, *plan.luts)

    output = apply_tone_region(source, plan.tone)
    if plan.detail_active:
        options = plan.options
        output[..., :3] = apply_detail(
            output[..., :3],
            plan.settings.detail,
            options.clarity_radius,
            options.noise_reduction_radius,
            options.sharpen_threshold,
        )
    apply_effects_region(output, plan.effects, origin_x, origin_y, full_width, full_height)
    return output


def process_image(
    buffer: PixelBuffer,
    settings: AdjustmentSettings | Mapping[str, Any] | None = None,
    options: PipelineOptions | None = None,
) -> PixelBuffer:
    """Return a new buffer with *settings* applied to *buffer*.

    The input is never modified and alpha passes through unchanged.
    """

    plan = _prepare(buffer, settings, options)
    _LOGGER.debug("Processing %dx%d buffer", buffer.width, buffer.height)
    output = _render_region(buffer.pixels, plan, 0, 0, buffer.width, buffer.height)
    return PixelBuffer.from_array(output)


def iter_tiles(width: int, height: int, tile_size: int) -> Iterator[tuple[int, int, int, int]]:
    """Yield ``(x0, y0, x1, y1)`` tile rectangles in row-major order."""

    if tile_size <= 0:
        raise InvalidSettingsError(f"Tile size must be positive, got {tile_size}")
    for top in range(0, height, tile_size):
        for left in range(0, width, tile_size):
            yield left, top, min(left + tile_size, width), min(top + tile_size, height)


def process_image_tiled(
    buffer: PixelBuffer,
    settings: AdjustmentSettings | Mapping[str, Any] | None = None,
    tile_size: int | None = None,
    on_progress: ProgressCallback | None = None,
    options: PipelineOptions | None = None,
    should_cancel: CancelCheck | None = None,
) -> PixelBuffer:
    """Tiled variant of :func:`process_image`.

    ``on_progress`` receives the completed fraction after every tile and
    ``should_cancel`` is polled before each tile; when it returns ``True`` the
    pass stops with :class:`RenderCancelledError` and nothing is returned.
    """

    options = options or DEFAULT_PIPELINE_OPTIONS
    if tile_size is not None:
        options = replace(options, tile_size=tile_size)
    plan = _prepare(buffer, settings, options)

    width, height = buffer.width, buffer.height
    source = buffer.pixels
    output = np.empty_like(source)
    tiles = list(iter_tiles(width, height, options.tile_size))
    halo = plan.halo
    _LOGGER.debug(
        "Processing %dx%d buffer in %d tiles of %d px (halo %d)",
        width,
        height,
        len(tiles),
        options.tile_size,
        halo,
    )

    for index, (x0, y0, x1, y1) in enumerate(tiles):
        if should_cancel is not None and should_cancel():
            _LOGGER.debug("Tiled render cancelled before tile %d/%d", index, len(tiles))
            raise RenderCancelledError("Tiled render was cancelled")

        hx0 = max(0, x0 - halo)
        hy0 = max(0, y0 - halo)
        hx1 = min(width, x1 + halo)
        hy1 = min(height, y1 + halo)
        rendered = _render_region(source[hy0:hy1, hx0:hx1], plan, hx0, hy0, width, height)
        output[y0:y1, x0:x1] = rendered[y0 - hy0 : y1 - hy0, x0 - hx0 : x1 - hx0]

        if on_progress is not None:
            on_progress((index + 1) / len(tiles))

    return PixelBuffer.from_array(output)


__all__ = [
    "DEFAULT_PIPELINE_OPTIONS",
    "PipelineOptions",
    "iter_tiles",
    "process_image",
    "process_image_tiled",
]
