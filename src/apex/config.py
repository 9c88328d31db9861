"""Default constants shared by the processing pipeline and the analysis tools."""

from __future__ import annotations

DEFAULT_TILE_SIZE = 256
"""Edge length, in pixels, of the square tiles used by tiled processing."""

REFERENCE_TEMPERATURE = 6500.0
"""Neutral white balance in Kelvin; the temperature operator is a no-op here."""

HIGHLIGHT_CLIP_THRESHOLD = 250
SHADOW_CLIP_THRESHOLD = 5

HISTOGRAM_DISPLAY_RANGE = (5, 250)
"""Inclusive bin range used to scale the display histogram."""

FAST_HISTOGRAM_SAMPLE_RATE = 4

CLARITY_RADIUS = 8.0
"""Blur radius of the local-contrast neighbourhood used by clarity."""

NOISE_REDUCTION_RADIUS = 1.0
SHARPEN_THRESHOLD = 0.0
"""Minimum detail magnitude, in byte units, before sharpening kicks in."""

TILED_RENDER_PIXEL_THRESHOLD = 4_000_000
"""Sessions switch to tiled rendering above this many pixels."""

# Ranges of every adjustment control.  Values outside these bounds are clamped,
# never rejected.
EXPOSURE_RANGE = (-5.0, 5.0)
AMOUNT_RANGE = (-100.0, 100.0)
TEMPERATURE_RANGE = (2000.0, 50000.0)
SHARPNESS_RANGE = (0.0, 150.0)
SHARPNESS_RADIUS_RANGE = (0.5, 3.0)
PERCENT_RANGE = (0.0, 100.0)
HUE_RANGE = (0.0, 360.0)
CURVE_RANGE = (0.0, 255.0)
