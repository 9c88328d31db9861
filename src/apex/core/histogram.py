"""Histogram, clipping and statistics analysis for RGBA buffers.

Everything here is read-only with respect to the analysed buffer.  Luminance
uses the BT.709 weights directly on the 8-bit encoded values, rounded half up,
so it matches what a histogram display of the encoded image shows.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .. import config
from ..errors import InvalidBufferError
from .buffer import PixelBuffer

HIGHLIGHT_OVERLAY_COLOR = (255, 0, 0, 150)
SHADOW_OVERLAY_COLOR = (0, 100, 255, 150)

MASK_NORMAL = 0
MASK_HIGHLIGHT = 1
MASK_SHADOW = 2


@dataclass(frozen=True, eq=False)
class HistogramData:
    """Four 256-bin frequency arrays plus the display maximum."""

    red: np.ndarray
    green: np.ndarray
    blue: np.ndarray
    luminance: np.ndarray
    max: int


@dataclass(frozen=True)
class ClippingReport:
    """Percentages (``0..100``) of clipped pixels."""

    highlight_clipping: float
    shadow_clipping: float


@dataclass(frozen=True)
class ChannelStatistics:
    r: float
    g: float
    b: float
    l: float


@dataclass(frozen=True)
class ImageStatistics:
    mean: ChannelStatistics
    median: ChannelStatistics
    std_dev: ChannelStatistics
    clipped_highlights: float
    clipped_shadows: float


def _luminance_bytes(rgb: np.ndarray) -> np.ndarray:
    values = rgb.astype(np.float64)
    lum = 0.2126 * values[..., 0] + 0.7152 * values[..., 1] + 0.0722 * values[..., 2]
    return np.minimum(np.floor(lum + 0.5), 255).astype(np.int64)


def _rgb(buffer: PixelBuffer) -> np.ndarray:
    if not isinstance(buffer, PixelBuffer):
        raise InvalidBufferError(f"Expected a PixelBuffer, got {type(buffer).__name__}")
    return buffer.data.reshape(-1, 4)[:, :3]


def _histogram_from_samples(rgb: np.ndarray) -> HistogramData:
    red = np.bincount(rgb[:, 0], minlength=256).astype(np.int64)
    green = np.bincount(rgb[:, 1], minlength=256).astype(np.int64)
    blue = np.bincount(rgb[:, 2], minlength=256).astype(np.int64)
    luminance = np.bincount(_luminance_bytes(rgb), minlength=256).astype(np.int64)

    low, high = config.HISTOGRAM_DISPLAY_RANGE
    window = slice(low, high + 1)
    display_max = max(
        int(red[window].max()),
        int(green[window].max()),
        int(blue[window].max()),
        int(luminance[window].max()),
    )
    return HistogramData(red, green, blue, luminance, display_max)


def calculate_histogram(buffer: PixelBuffer) -> HistogramData:
    """Histogram over every pixel of *buffer*."""

    return _histogram_from_samples(_rgb(buffer))


def calculate_histogram_fast(
    buffer: PixelBuffer, sample_rate: int = config.FAST_HISTOGRAM_SAMPLE_RATE
) -> HistogramData:
    """Histogram over every *sample_rate*-th pixel (row-major order)."""

    stride = max(1, int(sample_rate))
    return _histogram_from_samples(_rgb(buffer)[::stride])


def _clipping_predicates(
    rgb: np.ndarray, high_threshold: int, low_threshold: int
) -> tuple[np.ndarray, np.ndarray]:
    highlights = np.any(rgb >= high_threshold, axis=1)
    shadows = np.all(rgb <= low_threshold, axis=1)
    return highlights, shadows


def detect_clipping(
    buffer: PixelBuffer,
    high_threshold: int = config.HIGHLIGHT_CLIP_THRESHOLD,
    low_threshold: int = config.SHADOW_CLIP_THRESHOLD,
) -> ClippingReport:
    """Highlight clipping counts pixels with *any* channel at or above
    *high_threshold*; shadow clipping counts pixels with *all* channels at or
    below *low_threshold*.  The two can overlap."""

    rgb = _rgb(buffer)
    highlights, shadows = _clipping_predicates(rgb, high_threshold, low_threshold)
    total = rgb.shape[0]
    return ClippingReport(
        highlight_clipping=float(np.count_nonzero(highlights)) / total * 100.0,
        shadow_clipping=float(np.count_nonzero(shadows)) / total * 100.0,
    )


def create_clipping_mask(
    buffer: PixelBuffer,
    high_threshold: int = config.HIGHLIGHT_CLIP_THRESHOLD,
    low_threshold: int = config.SHADOW_CLIP_THRESHOLD,
) -> np.ndarray:
    """Per-pixel ``uint8`` mask: 0 normal, 1 highlight, 2 shadow.

    Highlight classification wins when a pixel matches both predicates.
    """

    highlights, shadows = _clipping_predicates(_rgb(buffer), high_threshold, low_threshold)
    mask = np.zeros(highlights.shape[0], dtype=np.uint8)
    mask[shadows] = MASK_SHADOW
    mask[highlights] = MASK_HIGHLIGHT
    return mask


def _median_from_histogram(histogram: np.ndarray, count: int) -> float:
    cumulative = np.cumsum(histogram)
    median_target = (count + 1) // 2
    median_index = int(np.searchsorted(cumulative, median_target, side="left"))
    if median_index >= histogram.size:
        median_index = histogram.size - 1
    return float(median_index)


def calculate_statistics(buffer: PixelBuffer) -> ImageStatistics:
    """Per-channel mean, median and population standard deviation.

    The variance is computed in a second pass around the mean.
    """

    rgb = _rgb(buffer)
    count = rgb.shape[0]
    channels = {
        "r": rgb[:, 0].astype(np.float64),
        "g": rgb[:, 1].astype(np.float64),
        "b": rgb[:, 2].astype(np.float64),
        "l": _luminance_bytes(rgb).astype(np.float64),
    }

    means = {name: float(values.sum() / count) for name, values in channels.items()}
    std_devs = {
        name: float(np.sqrt(np.sum((values - means[name]) ** 2) / count))
        for name, values in channels.items()
    }
    medians = {
        name: _median_from_histogram(
            np.bincount(values.astype(np.int64), minlength=256), count
        )
        for name, values in channels.items()
    }

    clipping = detect_clipping(buffer)
    return ImageStatistics(
        mean=ChannelStatistics(**means),
        median=ChannelStatistics(**medians),
        std_dev=ChannelStatistics(**std_devs),
        clipped_highlights=clipping.highlight_clipping,
        clipped_shadows=clipping.shadow_clipping,
    )


def render_clipping_overlay(
    mask: np.ndarray, width: int, height: int, stripe_width: int = 0
) -> PixelBuffer:
    """Render a clipping mask as an RGBA zebra overlay.

    Highlight pixels are drawn red and shadow pixels blue, both at alpha 150;
    everything else is fully transparent.  A positive *stripe_width* limits the
    colour to diagonal stripes of that width.
    """

    mask = np.asarray(mask, dtype=np.uint8).reshape(-1)
    if mask.size != width * height:
        raise InvalidBufferError(
            f"Mask holds {mask.size} entries but width*height is {width * height}"
        )
    grid = mask.reshape((height, width))
    if stripe_width > 0:
        ys, xs = np.indices((height, width))
        grid = np.where(((xs + ys) // stripe_width) % 2 == 0, grid, MASK_NORMAL)

    overlay = np.zeros((height, width, 4), dtype=np.uint8)
    overlay[grid == MASK_HIGHLIGHT] = HIGHLIGHT_OVERLAY_COLOR
    overlay[grid == MASK_SHADOW] = SHADOW_OVERLAY_COLOR
    return PixelBuffer.from_array(overlay)


__all__ = [
    "ChannelStatistics",
    "ClippingReport",
    "HistogramData",
    "ImageStatistics",
    "calculate_histogram",
    "calculate_histogram_fast",
    "calculate_statistics",
    "create_clipping_mask",
    "detect_clipping",
    "render_clipping_overlay",
]
