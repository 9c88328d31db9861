"""Lookup-table fast path for context-free tone adjustments.

Exposure, contrast and tone curves only depend on the value of the channel
being transformed, so every possible 8-bit input can be evaluated once and the
result applied with Pillow's C-optimised ``Image.point``.  Tables are built
from the very same scalar functions the per-pixel kernel inlines, which keeps
both paths bit-identical.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence

import numpy as np
from PIL import Image

from ..buffer import PixelBuffer
from ..colorspace import unit_to_byte
from ..settings import CurvePoint
from .algorithms import (
    adjust_contrast_linear,
    adjust_contrast_value,
    adjust_exposure,
    adjust_exposure_value,
    sample_curve,
)

_LOGGER = logging.getLogger(__name__)

_IDENTITY_TABLE = list(range(256))


def create_lut(transform: Callable[[float], float]) -> np.ndarray:
    """Pre-compute *transform* for every possible 8-bit channel value.

    *transform* receives the byte value as a float and returns a byte-scale
    float.  Results are rounded half up and clamped to ``0..255``.
    """

    lut = np.empty(256, dtype=np.uint8)
    for channel_value in range(256):
        adjusted = int(math.floor(transform(float(channel_value)) + 0.5))
        lut[channel_value] = min(255, max(0, adjusted))
    return lut


def create_exposure_lut(ev: float) -> np.ndarray:
    return create_lut(lambda value: adjust_exposure_value(value, ev))


def create_contrast_lut(amount: float) -> np.ndarray:
    """Table for the tangent S-curve contrast control."""

    return create_lut(lambda value: adjust_contrast_value(value, amount))


def _monotone_tangents(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Fritsch-Carlson tangents; they keep the interpolant monotone between points."""

    secants = np.diff(ys) / np.diff(xs)
    tangents = np.empty_like(ys)
    tangents[0] = secants[0]
    tangents[-1] = secants[-1]
    tangents[1:-1] = (secants[:-1] + secants[1:]) / 2.0
    # Local extrema get flat tangents.
    tangents[1:-1][secants[:-1] * secants[1:] <= 0.0] = 0.0

    for index, secant in enumerate(secants):
        if secant == 0.0:
            tangents[index] = 0.0
            tangents[index + 1] = 0.0
            continue
        alpha = tangents[index] / secant
        beta = tangents[index + 1] / secant
        magnitude = alpha * alpha + beta * beta
        if magnitude > 9.0:
            scale = 3.0 / np.sqrt(magnitude)
            tangents[index] = scale * alpha * secant
            tangents[index + 1] = scale * beta * secant
    return tangents


def curve_table(points: Sequence[CurvePoint]) -> np.ndarray:
    """Sample a tone curve into 256 normalised ``float64`` outputs.

    Points are sorted by ``x`` and joined with a monotone cubic.  Inputs left
    of the first point or right of the last hold the end values.
    """

    ordered = sorted(points, key=lambda point: point.x)
    xs = np.array([point.x for point in ordered], dtype=np.float64)
    ys = np.array([point.y for point in ordered], dtype=np.float64)
    # Clamping can fold distinct points onto the same x; keep the first.
    xs, unique = np.unique(xs, return_index=True)
    ys = ys[unique]
    samples = np.arange(256, dtype=np.float64)

    if xs.size == 1:
        return np.full(256, np.clip(ys[0], 0.0, 255.0) / 255.0)

    tangents = _monotone_tangents(xs, ys)
    segment = np.clip(np.searchsorted(xs, samples, side="right") - 1, 0, xs.size - 2)
    x0 = xs[segment]
    span = xs[segment + 1] - x0
    t = np.clip((samples - x0) / span, 0.0, 1.0)
    t2 = t * t
    t3 = t2 * t

    values = (
        (2.0 * t3 - 3.0 * t2 + 1.0) * ys[segment]
        + (t3 - 2.0 * t2 + t) * span * tangents[segment]
        + (-2.0 * t3 + 3.0 * t2) * ys[segment + 1]
        + (t3 - t2) * span * tangents[segment + 1]
    )
    values = np.where(samples < xs[0], ys[0], values)
    values = np.where(samples > xs[-1], ys[-1], values)
    return np.clip(values, 0.0, 255.0) / 255.0


def create_curve_lut(points: Sequence[CurvePoint]) -> np.ndarray:
    """Byte table for a single tone curve."""

    table = curve_table(points)
    return np.array([unit_to_byte(value) for value in table], dtype=np.uint8)


def build_curve_tables(curves) -> np.ndarray:
    """Stack the master, red, green and blue curve tables into a ``(4, 256)`` array."""

    return np.stack(
        [curve_table(curves.rgb), curve_table(curves.red), curve_table(curves.green), curve_table(curves.blue)]
    )


def build_tone_lut(
    exposure: float,
    contrast: float,
    curve_tables: np.ndarray | None,
    channel: int,
) -> np.ndarray:
    """Composite byte table for the pipeline's context-free stages.

    Evaluates exposure, midpoint contrast and the master plus per-channel
    curve (when *curve_tables* is given) for one output *channel* (0, 1, 2 for
    red, green, blue), using the kernel's own operators.
    """

    lut = np.empty(256, dtype=np.uint8)
    for channel_value in range(256):
        value = channel_value / 255.0
        value = adjust_exposure(value, value, value, exposure)[0]
        value = adjust_contrast_linear(value, value, value, contrast)[0]
        if curve_tables is not None:
            value = sample_curve(value, curve_tables[0])
            value = sample_curve(value, curve_tables[channel + 1])
        lut[channel_value] = unit_to_byte(value)
    return lut


def apply_lut_array(
    pixels: np.ndarray,
    red: Sequence[int],
    green: Sequence[int],
    blue: Sequence[int],
) -> np.ndarray:
    """Apply per-channel tables to an ``(height, width, 4)`` array via Pillow."""

    image = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    # ``Image.point`` takes the tables back to back, one per band.  Alpha gets
    # an identity table so transparency remains untouched.
    table = [int(v) for v in red] + [int(v) for v in green] + [int(v) for v in blue] + _IDENTITY_TABLE
    if len(table) != 1024:
        raise ValueError("Lookup tables must hold exactly 256 entries each")
    return np.asarray(image.point(table), dtype=np.uint8)


def apply_luts(
    buffer: PixelBuffer,
    red: Sequence[int],
    green: Sequence[int],
    blue: Sequence[int],
) -> PixelBuffer:
    """Return a new buffer with *red*, *green* and *blue* tables applied."""

    _LOGGER.debug("Applying lookup tables to %dx%d buffer", buffer.width, buffer.height)
    return PixelBuffer.from_array(apply_lut_array(buffer.pixels, red, green, blue))


__all__ = [
    "apply_lut_array",
    "apply_luts",
    "build_curve_tables",
    "build_tone_lut",
    "create_contrast_lut",
    "create_curve_lut",
    "create_exposure_lut",
    "create_lut",
    "curve_table",
]
