"""Neighbourhood filters: separable Gaussian blur and blur-backed detail.

All filters sample with a clamp-to-edge boundary so a uniform image stays
uniform, and all of them work on float copies so their inputs are never
modified.
"""

from __future__ import annotations

import math

import numpy as np

from ..buffer import PixelBuffer
from ..settings import DetailAdjustments


def _kernel_half_size(radius: float) -> int:
    if radius <= 0.0:
        return 0
    return int(math.ceil(radius * 3.0))


def gaussian_kernel(radius: float) -> np.ndarray:
    """Return normalised weights of length ``ceil(radius * 3) * 2 + 1``.

    Sigma is ``radius / 3``.  A non-positive radius yields the identity kernel.
    """

    half = _kernel_half_size(radius)
    if half == 0:
        return np.ones(1, dtype=np.float64)
    sigma = radius / 3.0
    offsets = np.arange(-half, half + 1, dtype=np.float64)
    weights = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return weights / weights.sum()


def _convolve_axis(array: np.ndarray, kernel: np.ndarray, axis: int) -> np.ndarray:
    half = kernel.size // 2
    padding = [(0, 0)] * array.ndim
    padding[axis] = (half, half)
    padded = np.pad(array, padding, mode="edge")

    length = array.shape[axis]
    result = np.zeros(array.shape, dtype=np.float64)
    for offset, weight in enumerate(kernel):
        window = [slice(None)] * array.ndim
        window[axis] = slice(offset, offset + length)
        result += weight * padded[tuple(window)]
    return result


def blur_array(rgb: np.ndarray, radius: float) -> np.ndarray:
    """Blur an ``(height, width, channels)`` array; returns ``float64``.

    The horizontal pass runs first, then the vertical pass over its result.
    """

    array = np.asarray(rgb, dtype=np.float64)
    kernel = gaussian_kernel(radius)
    if kernel.size == 1:
        return array.copy()
    horizontal = _convolve_axis(array, kernel, axis=1)
    return _convolve_axis(horizontal, kernel, axis=0)


def _to_bytes(values: np.ndarray) -> np.ndarray:
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def gaussian_blur(buffer: PixelBuffer, radius: float) -> PixelBuffer:
    """Return a blurred copy of *buffer*; alpha is left untouched."""

    pixels = buffer.pixels
    output = pixels.copy()
    output[..., :3] = _to_bytes(blur_array(pixels[..., :3], radius))
    return PixelBuffer.from_array(output)


def unsharp_mask(
    buffer: PixelBuffer,
    amount: float,
    radius: float = 1.0,
    threshold: float = 0.0,
) -> PixelBuffer:
    """Sharpen *buffer* by adding back ``amount``% of its high-frequency detail.

    Only channel samples whose detail magnitude exceeds *threshold* (in byte
    units) are modified.
    """

    amount = min(150.0, max(0.0, float(amount)))
    pixels = buffer.pixels
    if amount == 0.0:
        return buffer.copy()

    original = pixels[..., :3].astype(np.float64)
    detail = original - blur_array(original, radius)
    sharpened = original + detail * (amount / 100.0)
    mask = np.abs(detail) > max(0.0, float(threshold))

    output = pixels.copy()
    output[..., :3] = np.where(mask, _to_bytes(sharpened), pixels[..., :3])
    return PixelBuffer.from_array(output)


def detail_halo(
    detail: DetailAdjustments,
    clarity_radius: float,
    noise_reduction_radius: float,
) -> int:
    """Pixels of context a tile needs for :func:`apply_detail` to be seam-free.

    The passes are chained, so their reaches add up.
    """

    halo = 0
    if detail.noise_reduction > 0:
        halo += _kernel_half_size(noise_reduction_radius)
    if detail.clarity != 0:
        halo += _kernel_half_size(clarity_radius)
    if detail.sharpness > 0:
        halo += _kernel_half_size(min(3.0, max(0.5, detail.sharpness_radius)))
    return halo


def apply_detail(
    rgb: np.ndarray,
    detail: DetailAdjustments,
    clarity_radius: float,
    noise_reduction_radius: float,
    sharpen_threshold: float = 0.0,
) -> np.ndarray:
    """Run noise reduction, clarity and sharpening over a ``uint8`` RGB region.

    Returns a new ``uint8`` array of the same shape.  *sharpen_threshold* is
    expressed in byte units.
    """

    values = rgb.astype(np.float64) / 255.0

    noise_reduction = min(100.0, max(0.0, detail.noise_reduction))
    if noise_reduction > 0.0:
        smoothed = blur_array(values, noise_reduction_radius)
        values = values + (smoothed - values) * (noise_reduction / 100.0)

    clarity = min(100.0, max(-100.0, detail.clarity))
    if clarity != 0.0:
        local = blur_array(values, clarity_radius)
        values = np.clip(values + (values - local) * (clarity / 100.0), 0.0, 1.0)

    sharpness = min(150.0, max(0.0, detail.sharpness))
    if sharpness > 0.0:
        radius = min(3.0, max(0.5, detail.sharpness_radius))
        high_pass = values - blur_array(values, radius)
        mask = np.abs(high_pass) > max(0.0, sharpen_threshold) / 255.0
        sharpened = np.clip(values + high_pass * (sharpness / 100.0), 0.0, 1.0)
        values = np.where(mask, sharpened, values)

    return _to_bytes(values * 255.0)


__all__ = [
    "apply_detail",
    "blur_array",
    "detail_halo",
    "gaussian_blur",
    "gaussian_kernel",
    "unsharp_mask",
]
