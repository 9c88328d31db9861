"""Color space conversions used by the adjustment pipeline.

Every scalar helper is compiled with Numba so the per-pixel kernel can inline
it, yet each one stays callable from plain Python.  RGB values are normalised
to ``[0.0, 1.0]`` unless stated otherwise; hues are expressed in degrees and
wrap around ``360``.
"""

from __future__ import annotations

import math

import numpy as np
from numba import jit

# D65 reference white.
D65_X = 0.95047
D65_Y = 1.0
D65_Z = 1.08883

# CIE LAB transfer constants: (6/29)^3 and (29/3)^3.
LAB_EPSILON = 0.008856
LAB_KAPPA = 903.3

KELVIN_MIN = 1000.0
KELVIN_MAX = 40000.0


@jit(nopython=True, inline="always")
def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp *value* to the inclusive range ``[minimum, maximum]``."""

    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    return value


@jit(nopython=True, inline="always")
def clamp01(value: float) -> float:
    """Clamp *value* to the inclusive ``[0.0, 1.0]`` range."""

    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


@jit(nopython=True, inline="always")
def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between *a* and *b* (``t`` is not clamped)."""

    return a + (b - a) * t


@jit(nopython=True, inline="always")
def lerp_rgb(a, b, t: float) -> tuple[float, float, float]:
    """Componentwise :func:`lerp` between two RGB triples."""

    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


@jit(nopython=True, inline="always")
def unit_to_byte(value: float) -> int:
    """Convert *value* from ``[0.0, 1.0]`` to an 8-bit channel value.

    Exact halves round up, matching the histogram luminance bins.
    """

    if value <= 0.0:
        return 0
    if value >= 1.0:
        return 255
    return int(math.floor(value * 255.0 + 0.5))


@jit(nopython=True, inline="always")
def normalize_rgb(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Map byte channels ``0..255`` to normalised floats."""

    return r / 255.0, g / 255.0, b / 255.0


@jit(nopython=True, inline="always")
def denormalize_rgb(r: float, g: float, b: float) -> tuple[int, int, int]:
    """Map normalised floats back to rounded, clamped byte channels."""

    return unit_to_byte(r), unit_to_byte(g), unit_to_byte(b)


# ---------------------------------------------------------------------------
# sRGB transfer function
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def apply_gamma(linear: float) -> float:
    """Encode a linear value with the sRGB transfer curve."""

    linear = clamp01(linear)
    if linear <= 0.0031308:
        return 12.92 * linear
    return 1.055 * math.pow(linear, 1.0 / 2.4) - 0.055


@jit(nopython=True, inline="always")
def remove_gamma(encoded: float) -> float:
    """Decode an sRGB value into linear light."""

    encoded = clamp01(encoded)
    if encoded <= 0.04045:
        return encoded / 12.92
    return math.pow((encoded + 0.055) / 1.055, 2.4)


@jit(nopython=True, inline="always")
def apply_gamma_rgb(r: float, g: float, b: float) -> tuple[float, float, float]:
    return apply_gamma(r), apply_gamma(g), apply_gamma(b)


@jit(nopython=True, inline="always")
def remove_gamma_rgb(r: float, g: float, b: float) -> tuple[float, float, float]:
    return remove_gamma(r), remove_gamma(g), remove_gamma(b)


# ---------------------------------------------------------------------------
# HSL / HSV
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def _hue_from_rgb(r: float, g: float, b: float, maximum: float, delta: float) -> float:
    if maximum == r:
        hue = ((g - b) / delta) % 6.0
    elif maximum == g:
        hue = (b - r) / delta + 2.0
    else:
        hue = (r - g) / delta + 4.0
    hue *= 60.0
    if hue < 0.0:
        hue += 360.0
    if hue >= 360.0:
        hue -= 360.0
    return hue


@jit(nopython=True, inline="always")
def _sector_to_rgb(h: float, c: float, m: float) -> tuple[float, float, float]:
    """Rebuild RGB from hue, chroma and the lightness/value offset."""

    h = h % 360.0
    x = c * (1.0 - abs((h / 60.0) % 2.0 - 1.0))
    sector = int(h // 60.0)
    if sector == 0:
        r, g, b = c, x, 0.0
    elif sector == 1:
        r, g, b = x, c, 0.0
    elif sector == 2:
        r, g, b = 0.0, c, x
    elif sector == 3:
        r, g, b = 0.0, x, c
    elif sector == 4:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return r + m, g + m, b + m


@jit(nopython=True, inline="always")
def rgb_to_hsl(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Return ``(hue, saturation, lightness)`` for an RGB triple."""

    r = clamp01(r)
    g = clamp01(g)
    b = clamp01(b)
    maximum = max(r, g, b)
    minimum = min(r, g, b)
    delta = maximum - minimum
    lightness = (maximum + minimum) / 2.0

    # Achromatic: hue is undefined, 0 by convention.
    if delta == 0.0:
        return 0.0, 0.0, lightness

    if lightness > 0.5:
        saturation = delta / (2.0 - maximum - minimum)
    else:
        saturation = delta / (maximum + minimum)

    return _hue_from_rgb(r, g, b, maximum, delta), saturation, lightness


@jit(nopython=True, inline="always")
def hsl_to_rgb(h: float, s: float, l: float) -> tuple[float, float, float]:
    """Inverse of :func:`rgb_to_hsl`."""

    s = clamp01(s)
    l = clamp01(l)
    if s == 0.0:
        return l, l, l
    chroma = (1.0 - abs(2.0 * l - 1.0)) * s
    return _sector_to_rgb(h, chroma, l - chroma / 2.0)


@jit(nopython=True, inline="always")
def rgb_to_hsv(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Return ``(hue, saturation, value)`` for an RGB triple."""

    r = clamp01(r)
    g = clamp01(g)
    b = clamp01(b)
    maximum = max(r, g, b)
    minimum = min(r, g, b)
    delta = maximum - minimum
    if delta == 0.0:
        return 0.0, 0.0, maximum
    saturation = delta / maximum
    return _hue_from_rgb(r, g, b, maximum, delta), saturation, maximum


@jit(nopython=True, inline="always")
def hsv_to_rgb(h: float, s: float, v: float) -> tuple[float, float, float]:
    """Inverse of :func:`rgb_to_hsv`."""

    s = clamp01(s)
    v = clamp01(v)
    chroma = v * s
    return _sector_to_rgb(h, chroma, v - chroma)


# ---------------------------------------------------------------------------
# CIE XYZ / LAB
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def rgb_to_xyz(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Convert sRGB to CIE XYZ (D65)."""

    lr, lg, lb = remove_gamma_rgb(r, g, b)
    x = lr * 0.4124564 + lg * 0.3575761 + lb * 0.1804375
    y = lr * 0.2126729 + lg * 0.7151522 + lb * 0.0721750
    z = lr * 0.0193339 + lg * 0.1191920 + lb * 0.9503041
    return x, y, z


@jit(nopython=True, inline="always")
def xyz_to_rgb(x: float, y: float, z: float) -> tuple[float, float, float]:
    """Convert CIE XYZ (D65) to gamma-encoded sRGB, clamped to ``[0, 1]``."""

    lr = x * 3.2404542 + y * -1.5371385 + z * -0.4985314
    lg = x * -0.9692660 + y * 1.8760108 + z * 0.0415560
    lb = x * 0.0556434 + y * -0.2040259 + z * 1.0572252
    return (
        clamp01(apply_gamma(lr)),
        clamp01(apply_gamma(lg)),
        clamp01(apply_gamma(lb)),
    )


@jit(nopython=True, inline="always")
def _lab_f(t: float) -> float:
    if t > LAB_EPSILON:
        return math.pow(t, 1.0 / 3.0)
    return (LAB_KAPPA * t + 16.0) / 116.0


@jit(nopython=True, inline="always")
def _lab_f_inverse(t: float) -> float:
    cubed = t * t * t
    if cubed > LAB_EPSILON:
        return cubed
    return (116.0 * t - 16.0) / LAB_KAPPA


@jit(nopython=True, inline="always")
def xyz_to_lab(x: float, y: float, z: float) -> tuple[float, float, float]:
    """Convert XYZ to CIE LAB relative to the D65 white point."""

    fx = _lab_f(x / D65_X)
    fy = _lab_f(y / D65_Y)
    fz = _lab_f(z / D65_Z)
    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)


@jit(nopython=True, inline="always")
def lab_to_xyz(l: float, a: float, b: float) -> tuple[float, float, float]:
    """Inverse of :func:`xyz_to_lab`."""

    fy = (l + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0
    return D65_X * _lab_f_inverse(fx), D65_Y * _lab_f_inverse(fy), D65_Z * _lab_f_inverse(fz)


@jit(nopython=True, inline="always")
def rgb_to_lab(r: float, g: float, b: float) -> tuple[float, float, float]:
    x, y, z = rgb_to_xyz(r, g, b)
    return xyz_to_lab(x, y, z)


@jit(nopython=True, inline="always")
def lab_to_rgb(l: float, a: float, b: float) -> tuple[float, float, float]:
    x, y, z = lab_to_xyz(l, a, b)
    return xyz_to_rgb(x, y, z)


@jit(nopython=True, inline="always")
def delta_e(lab1, lab2) -> float:
    """CIE76 color difference: Euclidean distance between two LAB triples."""

    dl = lab1[0] - lab2[0]
    da = lab1[1] - lab2[1]
    db = lab1[2] - lab2[2]
    return math.sqrt(dl * dl + da * da + db * db)


# ---------------------------------------------------------------------------
# Color temperature
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def kelvin_to_rgb(kelvin: float) -> tuple[float, float, float]:
    """Approximate the normalised RGB color of a black body at *kelvin*.

    Uses the piecewise polynomial fit popularised by Tanner Helland, valid
    between 1000 K and 40000 K; inputs outside that range are clamped.
    """

    temp = clamp(kelvin, KELVIN_MIN, KELVIN_MAX) / 100.0

    if temp <= 66.0:
        red = 255.0
        green = 99.4708025861 * math.log(temp) - 161.1195681661
    else:
        red = 329.698727446 * math.pow(temp - 60.0, -0.1332047592)
        green = 288.1221695283 * math.pow(temp - 60.0, -0.0755148492)

    if temp >= 66.0:
        blue = 255.0
    elif temp <= 19.0:
        blue = 0.0
    else:
        blue = 138.5177312231 * math.log(temp - 10.0) - 305.0447927307

    return (
        clamp(red, 0.0, 255.0) / 255.0,
        clamp(green, 0.0, 255.0) / 255.0,
        clamp(blue, 0.0, 255.0) / 255.0,
    )


@jit(nopython=True, inline="always")
def temperature_shift(current: float, target: float) -> tuple[float, float, float]:
    """Per-channel ratio that moves a light source from *current* to *target*."""

    cr, cg, cb = kelvin_to_rgb(current)
    tr, tg, tb = kelvin_to_rgb(target)
    return tr / cr, tg / cg, tb / cb


# ---------------------------------------------------------------------------
# Luminance
# ---------------------------------------------------------------------------


@jit(nopython=True, inline="always")
def get_luminance(r: float, g: float, b: float) -> float:
    """Relative luminance (BT.709 weights applied to linearised RGB)."""

    lr, lg, lb = remove_gamma_rgb(r, g, b)
    return 0.2126 * lr + 0.7152 * lg + 0.0722 * lb


@jit(nopython=True, inline="always")
def get_perceived_brightness(r: float, g: float, b: float) -> float:
    """Fast, less accurate brightness estimate working on encoded values."""

    return math.sqrt(0.299 * r * r + 0.587 * g * g + 0.114 * b * b)


def srgb_to_linear(channel: np.ndarray) -> np.ndarray:
    """Vectorised :func:`remove_gamma` for NumPy arrays."""

    array = np.clip(np.asarray(channel, dtype=np.float64), 0.0, 1.0)
    return np.where(
        array <= 0.04045,
        array / 12.92,
        np.power((array + 0.055) / 1.055, 2.4),
    )


__all__ = [
    "D65_X",
    "D65_Y",
    "D65_Z",
    "LAB_EPSILON",
    "LAB_KAPPA",
    "apply_gamma",
    "apply_gamma_rgb",
    "clamp",
    "clamp01",
    "delta_e",
    "denormalize_rgb",
    "get_luminance",
    "get_perceived_brightness",
    "hsl_to_rgb",
    "hsv_to_rgb",
    "kelvin_to_rgb",
    "lab_to_rgb",
    "lab_to_xyz",
    "lerp",
    "lerp_rgb",
    "normalize_rgb",
    "remove_gamma",
    "remove_gamma_rgb",
    "rgb_to_hsl",
    "rgb_to_hsv",
    "rgb_to_lab",
    "rgb_to_xyz",
    "srgb_to_linear",
    "temperature_shift",
    "unit_to_byte",
    "xyz_to_lab",
    "xyz_to_rgb",
]
