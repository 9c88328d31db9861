"""Pure per-pixel adjustment operators.

Each operator maps a normalised RGB triple (and its control value) to a new
triple and is a strict no-op at the control's neutral value.  Control values
are clamped to their declared ranges instead of being rejected.  The functions
are compiled with Numba and inlined into the pixel kernel in
:mod:`.jit_executor`, but they remain callable from Python for tests and for
building lookup tables.
"""

from __future__ import annotations

import math

import numpy as np
from numba import jit

from ...config import REFERENCE_TEMPERATURE
from ..colorspace import (
    clamp,
    clamp01,
    get_luminance,
    hsl_to_rgb,
    kelvin_to_rgb,
    rgb_to_hsl,
)
from ..settings import HSL_BAND_HUES, HSL_BANDS

# Centre hues in band order; must stay sorted.
HSL_BAND_CENTERS = np.array([HSL_BAND_HUES[name] for name in HSL_BANDS], dtype=np.float64)


# ---------------------------------------------------------------------------
# Exposure
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def _exposure_channel(value: float, multiplier: float) -> float:
    adjusted = value * multiplier
    # Shoulder applied to values pushed past white.  Note that it is not
    # continuous at 1.0: a value just above 1.0 collapses towards 0.
    if adjusted > 1.0:
        adjusted = 1.0 - math.exp(1.0 - adjusted)
    return clamp01(adjusted)


@jit(nopython=True, inline="always")
def adjust_exposure(r: float, g: float, b: float, ev: float) -> tuple[float, float, float]:
    """Scale linear light by ``2 ** ev``."""

    ev = clamp(ev, -5.0, 5.0)
    if ev == 0.0:
        return r, g, b
    multiplier = math.pow(2.0, ev)
    return (
        _exposure_channel(r, multiplier),
        _exposure_channel(g, multiplier),
        _exposure_channel(b, multiplier),
    )


@jit(nopython=True, inline="always")
def adjust_exposure_value(value: float, ev: float) -> float:
    """Byte-scale exposure transfer (``0..255`` in and out) used for LUTs."""

    ev = clamp(ev, -5.0, 5.0)
    if ev == 0.0:
        return value * 1.0
    adjusted = _exposure_channel(value / 255.0, math.pow(2.0, ev))
    return clamp(adjusted * 255.0, 0.0, 255.0)


# ---------------------------------------------------------------------------
# Contrast
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def contrast_factor(amount: float) -> float:
    """Slope of the tangent S-curve for *amount* in ``[-100, 100]``."""

    amount = clamp(amount, -100.0, 100.0)
    normalised = (amount + 100.0) / 200.0
    return math.tan((normalised * 0.99 + 0.005) * math.pi / 2.0)


@jit(nopython=True, inline="always")
def adjust_contrast_value(value: float, amount: float) -> float:
    """Byte-scale tangent contrast curve pivoting around mid-grey."""

    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return value * 1.0
    factor = contrast_factor(amount)
    adjusted = (value / 255.0 - 0.5) * factor + 0.5
    return clamp(adjusted * 255.0, 0.0, 255.0)


@jit(nopython=True, inline="always")
def adjust_contrast(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    """Tangent S-curve contrast on normalised channels."""

    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    factor = contrast_factor(amount)
    return (
        clamp01((r - 0.5) * factor + 0.5),
        clamp01((g - 0.5) * factor + 0.5),
        clamp01((b - 0.5) * factor + 0.5),
    )


@jit(nopython=True, inline="always")
def adjust_contrast_linear(
    r: float, g: float, b: float, amount: float
) -> tuple[float, float, float]:
    """Midpoint-linear contrast used by the image pipeline.

    The slope is ``(amount + 100) / 100`` so ``+100`` doubles the distance to
    mid-grey while black and white stay pinned after clamping.
    """

    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    factor = (amount + 100.0) / 100.0
    return (
        clamp01((r - 0.5) * factor + 0.5),
        clamp01((g - 0.5) * factor + 0.5),
        clamp01((b - 0.5) * factor + 0.5),
    )


# ---------------------------------------------------------------------------
# Highlights / shadows / whites / blacks
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def tonal_mask(luminance: float, center: float, width: float) -> float:
    """Triangular weight peaking at *center* and reaching zero at ``±width``."""

    return max(0.0, 1.0 - abs(luminance - center) / width)


@jit(nopython=True, inline="always")
def _scale_rgb(r: float, g: float, b: float, multiplier: float) -> tuple[float, float, float]:
    return clamp01(r * multiplier), clamp01(g * multiplier), clamp01(b * multiplier)


@jit(nopython=True, inline="always")
def _offset_rgb(r: float, g: float, b: float, offset: float) -> tuple[float, float, float]:
    return clamp01(r + offset), clamp01(g + offset), clamp01(b + offset)


@jit(nopython=True, inline="always")
def adjust_highlights(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    mask = tonal_mask(get_luminance(r, g, b), 0.85, 0.3)
    return _scale_rgb(r, g, b, 1.0 + (amount / 100.0) * mask * 0.5)


@jit(nopython=True, inline="always")
def adjust_shadows(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    mask = tonal_mask(get_luminance(r, g, b), 0.15, 0.3)
    return _offset_rgb(r, g, b, (amount / 100.0) * mask * 0.3)


@jit(nopython=True, inline="always")
def adjust_whites(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    mask = tonal_mask(get_luminance(r, g, b), 0.95, 0.15)
    return _scale_rgb(r, g, b, 1.0 + (amount / 100.0) * mask * 0.3)


@jit(nopython=True, inline="always")
def adjust_blacks(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    mask = tonal_mask(get_luminance(r, g, b), 0.05, 0.15)
    return _offset_rgb(r, g, b, (amount / 100.0) * mask * 0.15)


# ---------------------------------------------------------------------------
# White balance
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def adjust_temperature(
    r: float,
    g: float,
    b: float,
    kelvin: float,
    reference: float = REFERENCE_TEMPERATURE,
) -> tuple[float, float, float]:
    """Correct for a light source of *kelvin* relative to *reference*.

    The per-channel correction is divided by its mean so overall brightness
    is preserved.
    """

    kelvin = clamp(kelvin, 2000.0, 50000.0)
    reference = clamp(reference, 2000.0, 50000.0)
    if kelvin == reference:
        return r, g, b
    tr, tg, tb = kelvin_to_rgb(kelvin)
    rr, rg, rb = kelvin_to_rgb(reference)
    cr = rr / tr
    cg = rg / tg
    cb = rb / tb
    mean = (cr + cg + cb) / 3.0
    return clamp01(r * cr / mean), clamp01(g * cg / mean), clamp01(b * cb / mean)


@jit(nopython=True, inline="always")
def adjust_tint(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    """Shift along the green-magenta axis (positive is magenta)."""

    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    return r, clamp01(g * (1.0 - (amount / 100.0) * 0.3)), b


# ---------------------------------------------------------------------------
# Saturation / vibrance
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def adjust_saturation(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    h, s, l = rgb_to_hsl(r, g, b)
    return hsl_to_rgb(h, clamp01(s * (1.0 + amount / 100.0)), l)


@jit(nopython=True, inline="always")
def is_skin_hue(hue: float) -> bool:
    """Warm hues in ``[0°, 50°] ∪ [320°, 360°]`` that vibrance protects."""

    return (0.0 <= hue <= 50.0) or (320.0 <= hue <= 360.0)


@jit(nopython=True, inline="always")
def adjust_vibrance(r: float, g: float, b: float, amount: float) -> tuple[float, float, float]:
    """Saturation boost weighted towards muted colors, halved on skin hues."""

    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    h, s, l = rgb_to_hsl(r, g, b)
    protection = 0.5 if is_skin_hue(h) else 1.0
    boost = (amount / 100.0) * (1.0 - s) * protection
    return hsl_to_rgb(h, clamp01(s + boost * s), l)


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def apply_clarity(
    r: float,
    g: float,
    b: float,
    blurred_r: float,
    blurred_g: float,
    blurred_b: float,
    amount: float,
) -> tuple[float, float, float]:
    """Boost (or, for negative amounts, smooth) detail against a blurred sample."""

    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0:
        return r, g, b
    factor = amount / 100.0
    return (
        clamp01(r + (r - blurred_r) * factor),
        clamp01(g + (g - blurred_g) * factor),
        clamp01(b + (b - blurred_b) * factor),
    )


@jit(nopython=True, inline="always")
def _sharpen_channel(original: float, blurred: float, factor: float, threshold: float) -> float:
    detail = original - blurred
    if abs(detail) > threshold:
        return clamp01(original + detail * factor)
    return original


@jit(nopython=True, inline="always")
def apply_unsharp_mask(
    r: float,
    g: float,
    b: float,
    blurred_r: float,
    blurred_g: float,
    blurred_b: float,
    amount: float,
    threshold: float = 0.0,
) -> tuple[float, float, float]:
    """Unsharp masking gated by *threshold* (normalised units)."""

    amount = clamp(amount, 0.0, 150.0)
    if amount == 0.0:
        return r, g, b
    factor = amount / 100.0
    threshold = max(threshold, 0.0)
    return (
        _sharpen_channel(r, blurred_r, factor, threshold),
        _sharpen_channel(g, blurred_g, factor, threshold),
        _sharpen_channel(b, blurred_b, factor, threshold),
    )


# ---------------------------------------------------------------------------
# HSL bands, curves and split toning
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def _band_weights(hue: float) -> tuple[int, int, float]:
    """Return the two bands bracketing *hue* and the weight of the second."""

    count = HSL_BAND_CENTERS.shape[0]
    for index in range(count):
        start = HSL_BAND_CENTERS[index]
        if index + 1 < count:
            end = HSL_BAND_CENTERS[index + 1]
            following = index + 1
        else:
            end = 360.0
            following = 0
        if start <= hue < end:
            return index, following, (hue - start) / (end - start)
    return 0, 1, 0.0


@jit(nopython=True, inline="always")
def adjust_hsl_bands(
    r: float, g: float, b: float, table: np.ndarray
) -> tuple[float, float, float]:
    """Apply per-band hue/saturation/luminance shifts.

    *table* is an ``(8, 3)`` array of band controls in ``[-100, 100]``.  Each
    pixel blends the two bands surrounding its hue linearly, so neighbouring
    bands hand over smoothly.  Hue shifts span ``±30°``.
    """

    h, s, l = rgb_to_hsl(r, g, b)
    if s == 0.0:
        return r, g, b
    first, second, weight = _band_weights(h % 360.0)
    hue_shift = table[first, 0] * (1.0 - weight) + table[second, 0] * weight
    sat_shift = table[first, 1] * (1.0 - weight) + table[second, 1] * weight
    lum_shift = table[first, 2] * (1.0 - weight) + table[second, 2] * weight
    if hue_shift == 0.0 and sat_shift == 0.0 and lum_shift == 0.0:
        return r, g, b

    h = (h + hue_shift / 100.0 * 30.0) % 360.0
    s_new = clamp01(s * (1.0 + sat_shift / 100.0))
    # Luminance shifts scale with saturation so neutral tones stay put.
    l = clamp01(l + lum_shift / 100.0 * 0.3 * s)
    return hsl_to_rgb(h, s_new, l)


@jit(nopython=True, inline="always")
def sample_curve(value: float, table: np.ndarray) -> float:
    """Evaluate a 256-entry normalised curve table at *value* with interpolation."""

    position = clamp01(value) * 255.0
    index = int(position)
    if index >= 255:
        return table[255]
    fraction = position - index
    return table[index] + (table[index + 1] - table[index]) * fraction


@jit(nopython=True, inline="always")
def apply_split_toning(
    r: float,
    g: float,
    b: float,
    highlight_hue: float,
    highlight_saturation: float,
    shadow_hue: float,
    shadow_saturation: float,
    balance: float,
) -> tuple[float, float, float]:
    """Tint highlights and shadows towards their respective hues.

    *balance* moves the pivot between the two zones: positive values widen
    the highlight zone, negative values widen the shadow zone.
    """

    if highlight_saturation <= 0.0 and shadow_saturation <= 0.0:
        return r, g, b
    luma = 0.2126 * r + 0.7152 * g + 0.0722 * b
    pivot = clamp(0.5 - clamp(balance, -100.0, 100.0) / 200.0, 0.01, 0.99)

    if luma >= pivot:
        weight = clamp01((luma - pivot) / (1.0 - pivot)) * clamp(highlight_saturation, 0.0, 100.0) / 100.0
        tr, tg, tb = hsl_to_rgb(highlight_hue, 1.0, 0.5)
    else:
        weight = clamp01((pivot - luma) / pivot) * clamp(shadow_saturation, 0.0, 100.0) / 100.0
        tr, tg, tb = hsl_to_rgb(shadow_hue, 1.0, 0.5)

    if weight == 0.0:
        return r, g, b
    strength = weight * 0.5
    return (
        clamp01(r + (tr - 0.5) * strength),
        clamp01(g + (tg - 0.5) * strength),
        clamp01(b + (tb - 0.5) * strength),
    )


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def vignette_weight(
    x: int,
    y: int,
    width: int,
    height: int,
    midpoint: float,
    roundness: float,
    feather: float,
) -> float:
    """Return the vignette strength in ``[0, 1]`` for pixel ``(x, y)``.

    Distances are measured on a super-ellipse fitted to the frame: roundness
    ``0`` follows the frame aspect, ``+100`` is a true circle and ``-100``
    approaches a rounded rectangle.
    """

    u = ((x + 0.5) / width) * 2.0 - 1.0
    v = ((y + 0.5) / height) * 2.0 - 1.0
    round_t = clamp(roundness, -100.0, 100.0) / 100.0
    if round_t > 0.0:
        aspect = width / height
        if aspect >= 1.0:
            u = u * (1.0 + (aspect - 1.0) * round_t)
        else:
            v = v * (1.0 + (1.0 / aspect - 1.0) * round_t)
    exponent = 2.0 + max(0.0, -round_t) * 6.0
    distance = math.pow(
        math.pow(abs(u), exponent) + math.pow(abs(v), exponent), 1.0 / exponent
    ) / math.pow(2.0, 1.0 / exponent)

    mid = clamp(midpoint, 0.0, 100.0) / 100.0
    soft = clamp(feather, 0.0, 100.0) / 100.0
    inner = mid * (1.0 - soft)
    outer = mid + (1.0 - mid) * soft
    if outer - inner < 1e-3:
        outer = inner + 1e-3
    t = clamp01((distance - inner) / (outer - inner))
    return t * t * (3.0 - 2.0 * t)


@jit(nopython=True, inline="always")
def apply_vignette(
    r: float, g: float, b: float, weight: float, amount: float
) -> tuple[float, float, float]:
    """Darken (positive *amount*) or lighten (negative) by *weight*."""

    amount = clamp(amount, -100.0, 100.0)
    if amount == 0.0 or weight == 0.0:
        return r, g, b
    strength = weight * abs(amount) / 100.0
    if amount > 0.0:
        return _scale_rgb(r, g, b, 1.0 - strength)
    return (
        clamp01(r + (1.0 - r) * strength),
        clamp01(g + (1.0 - g) * strength),
        clamp01(b + (1.0 - b) * strength),
    )


@jit(nopython=True, inline="always")
def grain_noise(x: int, y: int, width: int, height: int) -> float:
    """Return a deterministic pseudo random noise value in ``[0.0, 1.0]``."""

    if width <= 0 or height <= 0:
        return 0.5
    u = float(x) / float(max(width - 1, 1))
    v = float(y) / float(max(height - 1, 1))
    # Sine-based hash: the grain pattern stays stable across passes without
    # carrying any random state.
    seed = u * 12.9898 + v * 78.233
    noise = math.sin(seed) * 43758.5453
    fraction = noise - math.floor(noise)
    return clamp01(fraction)


@jit(nopython=True, inline="always")
def apply_grain(
    r: float,
    g: float,
    b: float,
    x: int,
    y: int,
    width: int,
    height: int,
    amount: float,
    size: float,
) -> tuple[float, float, float]:
    """Add monochrome film grain; *size* in ``[0, 100]`` sets the cell size."""

    amount = clamp(amount, 0.0, 100.0)
    if amount == 0.0:
        return r, g, b
    cell = 1 + int(clamp(size, 0.0, 100.0) / 25.0)
    noise = grain_noise(x // cell, y // cell, width, height)
    offset = (noise - 0.5) * 0.2 * amount / 100.0
    return _offset_rgb(r, g, b, offset)


__all__ = [
    "HSL_BAND_CENTERS",
    "REFERENCE_TEMPERATURE",
    "adjust_blacks",
    "adjust_contrast",
    "adjust_contrast_linear",
    "adjust_contrast_value",
    "adjust_exposure",
    "adjust_exposure_value",
    "adjust_highlights",
    "adjust_hsl_bands",
    "adjust_saturation",
    "adjust_shadows",
    "adjust_temperature",
    "adjust_tint",
    "adjust_vibrance",
    "adjust_whites",
    "apply_clarity",
    "apply_grain",
    "apply_split_toning",
    "apply_unsharp_mask",
    "apply_vignette",
    "contrast_factor",
    "grain_noise",
    "is_skin_hue",
    "sample_curve",
    "tonal_mask",
    "vignette_weight",
]
