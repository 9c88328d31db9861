"""Tests for the per-pixel adjustment operators."""

import itertools
import math

import numpy as np
import pytest

from apex.core.colorspace import rgb_to_hsl, hsl_to_rgb
from apex.core.filters.algorithms import (
    adjust_blacks,
    adjust_contrast,
    adjust_contrast_linear,
    adjust_contrast_value,
    adjust_exposure,
    adjust_exposure_value,
    adjust_highlights,
    adjust_hsl_bands,
    adjust_saturation,
    adjust_shadows,
    adjust_temperature,
    adjust_tint,
    adjust_vibrance,
    adjust_whites,
    apply_clarity,
    apply_grain,
    apply_split_toning,
    apply_unsharp_mask,
    apply_vignette,
    contrast_factor,
    grain_noise,
    is_skin_hue,
    sample_curve,
    tonal_mask,
    vignette_weight,
)

GRID = [0.0, 0.1, 0.33, 0.5, 0.76, 0.95, 1.0]

AMOUNT_OPERATORS = [
    adjust_exposure,
    adjust_contrast,
    adjust_contrast_linear,
    adjust_highlights,
    adjust_shadows,
    adjust_whites,
    adjust_blacks,
    adjust_tint,
    adjust_saturation,
    adjust_vibrance,
]


@pytest.mark.parametrize("operator", AMOUNT_OPERATORS)
def test_neutral_amount_returns_input_unchanged(operator):
    for r, g, b in itertools.product(GRID, GRID, GRID):
        assert operator(r, g, b, 0.0) == (r, g, b)


def test_reference_temperature_is_identity():
    for r, g, b in itertools.product(GRID, GRID, GRID):
        assert adjust_temperature(r, g, b, 6500.0, 6500.0) == (r, g, b)
        assert adjust_temperature(r, g, b, 6500.0) == (r, g, b)


def test_detail_operators_are_identity_at_zero():
    assert apply_clarity(0.2, 0.4, 0.6, 0.5, 0.5, 0.5, 0.0) == (0.2, 0.4, 0.6)
    assert apply_unsharp_mask(0.2, 0.4, 0.6, 0.5, 0.5, 0.5, 0.0) == (0.2, 0.4, 0.6)


def test_exposure_doubles_linear_value_per_stop():
    r, g, b = adjust_exposure(0.25, 0.1, 0.4, 1.0)
    assert (r, g, b) == pytest.approx((0.5, 0.2, 0.8))
    assert adjust_exposure(0.5, 0.5, 0.5, -1.0) == pytest.approx((0.25, 0.25, 0.25))


def test_exposure_soft_knee_collapses_values_past_white():
    """Values pushed past 1.0 go through ``1 - e^(1 - x)`` literally."""

    # 200/255 at +1 EV gives x = 1.5686, so the output is 1 - e^-0.5686.
    value = adjust_exposure_value(200.0, 1.0)
    expected = (1.0 - math.exp(1.0 - 400.0 / 255.0)) * 255.0
    assert value == pytest.approx(expected)
    assert value == pytest.approx(110.59, abs=0.05)
    # A value landing exactly on 1.0 is untouched; just above collapses to ~0.
    assert adjust_exposure(0.5, 0.5, 0.5, 1.0)[0] == pytest.approx(1.0)
    assert adjust_exposure(0.51, 0.51, 0.51, 1.0)[0] == pytest.approx(0.0198, abs=1e-3)


def test_exposure_clamps_ev():
    assert adjust_exposure(0.01, 0.01, 0.01, 12.0) == adjust_exposure(0.01, 0.01, 0.01, 5.0)


def test_contrast_factor_is_unity_at_zero():
    assert contrast_factor(0.0) == pytest.approx(1.0)
    assert contrast_factor(100.0) > contrast_factor(50.0) > 1.0
    assert 0.0 < contrast_factor(-100.0) < 1.0


def test_tangent_contrast_preserves_mid_grey():
    assert adjust_contrast(0.5, 0.5, 0.5, 60.0) == pytest.approx((0.5, 0.5, 0.5))
    assert adjust_contrast_value(127.5, 60.0) == pytest.approx(127.5)
    low, _, high = adjust_contrast(0.3, 0.5, 0.7, 40.0)
    assert low < 0.3
    assert high > 0.7


def test_linear_contrast_endpoints_and_midpoint():
    assert adjust_contrast_linear(0.0, 0.0, 0.0, 100.0) == (0.0, 0.0, 0.0)
    assert adjust_contrast_linear(1.0, 1.0, 1.0, 100.0) == (1.0, 1.0, 1.0)
    mid = adjust_contrast_linear(128.0 / 255.0, 0.5, 0.5, 100.0)[0]
    assert mid * 255.0 == pytest.approx(128.0, abs=1.0)
    assert adjust_contrast_linear(0.8, 0.2, 0.5, -100.0) == pytest.approx((0.5, 0.5, 0.5))


def test_tonal_mask_shape():
    assert tonal_mask(0.85, 0.85, 0.3) == 1.0
    assert tonal_mask(0.55, 0.85, 0.3) == pytest.approx(0.0)
    assert tonal_mask(0.0, 0.85, 0.3) == 0.0
    assert tonal_mask(0.7, 0.85, 0.3) == pytest.approx(0.5)


def test_highlights_only_touch_bright_pixels():
    assert adjust_highlights(0.1, 0.1, 0.1, -100.0) == (0.1, 0.1, 0.1)
    darker = adjust_highlights(0.93, 0.93, 0.93, -100.0)
    assert darker[0] < 0.93


def test_shadows_lift_dark_pixels():
    lifted = adjust_shadows(0.3, 0.3, 0.3, 100.0)
    assert lifted[0] > 0.3
    assert adjust_shadows(0.9, 0.9, 0.9, 100.0) == pytest.approx((0.9, 0.9, 0.9))


def test_whites_and_blacks_respect_their_bands():
    assert adjust_whites(1.0, 1.0, 1.0, -100.0)[0] < 1.0
    assert adjust_whites(0.4, 0.4, 0.4, -100.0) == pytest.approx((0.4, 0.4, 0.4))
    assert adjust_blacks(0.05, 0.05, 0.05, 100.0)[0] > 0.05
    assert adjust_blacks(0.6, 0.6, 0.6, 100.0) == pytest.approx((0.6, 0.6, 0.6))


def test_out_of_range_reference_temperature_is_clamped_like_kelvin():
    assert adjust_temperature(0.3, 0.5, 0.7, 1500.0, 1500.0) == (0.3, 0.5, 0.7)
    assert adjust_temperature(0.3, 0.5, 0.7, 2000.0, 1000.0) == (0.3, 0.5, 0.7)
    assert adjust_temperature(0.3, 0.5, 0.7, 60000.0, 90000.0) == (0.3, 0.5, 0.7)


def test_temperature_warms_and_cools():
    warm = adjust_temperature(0.5, 0.5, 0.5, 3000.0)
    cool = adjust_temperature(0.5, 0.5, 0.5, 10000.0)
    # Correcting for a warm light source adds blue.
    assert warm[2] > warm[0]
    assert cool[0] > cool[2]


def test_tint_only_changes_green():
    r, g, b = adjust_tint(0.4, 0.5, 0.6, 100.0)
    assert (r, b) == (0.4, 0.6)
    assert g == pytest.approx(0.35)
    assert adjust_tint(0.4, 0.5, 0.6, -100.0)[1] == pytest.approx(0.65)


def test_saturation_extremes():
    grey = adjust_saturation(0.8, 0.4, 0.2, -100.0)
    assert grey[0] == pytest.approx(grey[1])
    assert grey[1] == pytest.approx(grey[2])
    _, s_before, _ = rgb_to_hsl(0.6, 0.4, 0.35)
    _, s_after, _ = rgb_to_hsl(*adjust_saturation(0.6, 0.4, 0.35, 50.0))
    assert s_after == pytest.approx(min(1.0, s_before * 1.5))


def test_vibrance_protects_skin_hues():
    skin = hsl_to_rgb(30.0, 0.4, 0.5)
    sky = hsl_to_rgb(200.0, 0.4, 0.5)

    _, skin_before, _ = rgb_to_hsl(*skin)
    _, sky_before, _ = rgb_to_hsl(*sky)
    _, skin_after, _ = rgb_to_hsl(*adjust_vibrance(*skin, 50.0))
    _, sky_after, _ = rgb_to_hsl(*adjust_vibrance(*sky, 50.0))

    skin_gain = skin_after - skin_before
    sky_gain = sky_after - sky_before
    assert sky_gain > 0.0
    assert skin_gain == pytest.approx(sky_gain * 0.5, rel=1e-6)


def test_skin_hue_ranges():
    assert is_skin_hue(0.0)
    assert is_skin_hue(50.0)
    assert is_skin_hue(340.0)
    assert not is_skin_hue(51.0)
    assert not is_skin_hue(200.0)


def test_clarity_pushes_away_from_blurred_sample():
    boosted = apply_clarity(0.6, 0.6, 0.6, 0.5, 0.5, 0.5, 50.0)
    assert boosted == pytest.approx((0.65, 0.65, 0.65))
    smoothed = apply_clarity(0.6, 0.6, 0.6, 0.5, 0.5, 0.5, -100.0)
    assert smoothed == pytest.approx((0.5, 0.5, 0.5))


def test_unsharp_mask_threshold_is_strict():
    sharpened = apply_unsharp_mask(0.6, 0.5, 0.5, 0.5, 0.5, 0.5, 100.0, 0.05)
    assert sharpened == pytest.approx((0.7, 0.5, 0.5))
    gated = apply_unsharp_mask(0.6, 0.5, 0.5, 0.5, 0.5, 0.5, 100.0, 0.2)
    assert gated == (0.6, 0.5, 0.5)


def test_hsl_bands_shift_only_matching_hues():
    table = np.zeros((8, 3))
    table[4, 1] = -100.0  # cyan saturation
    cyan = hsl_to_rgb(180.0, 0.8, 0.5)
    desaturated = adjust_hsl_bands(*cyan, table)
    assert rgb_to_hsl(*desaturated)[1] == pytest.approx(0.0, abs=1e-9)

    red = hsl_to_rgb(0.0, 0.8, 0.5)
    assert adjust_hsl_bands(*red, table) == red


def test_hsl_bands_hue_shift_blends_between_bands():
    table = np.zeros((8, 3))
    table[3, 0] = 100.0  # green hue +30 degrees
    # Half-way between yellow (60) and green (120) receives half the shift.
    shifted = adjust_hsl_bands(*hsl_to_rgb(90.0, 1.0, 0.5), table)
    assert rgb_to_hsl(*shifted)[0] == pytest.approx(105.0, abs=1e-6)


def test_hsl_bands_leave_greys_alone():
    table = np.full((8, 3), 80.0)
    assert adjust_hsl_bands(0.4, 0.4, 0.4, table) == (0.4, 0.4, 0.4)


def test_sample_curve_interpolates():
    table = np.linspace(0.0, 1.0, 256) ** 2
    assert sample_curve(0.0, table) == 0.0
    assert sample_curve(1.0, table) == pytest.approx(1.0)
    mid = sample_curve(100.5 / 255.0, table)
    assert mid == pytest.approx((table[100] + table[101]) / 2.0)


def test_split_toning_tints_highlights_and_shadows():
    bright = apply_split_toning(0.9, 0.9, 0.9, 0.0, 100.0, 240.0, 100.0, 0.0)
    dark = apply_split_toning(0.1, 0.1, 0.1, 0.0, 100.0, 240.0, 100.0, 0.0)
    assert bright[0] > bright[2]
    assert dark[2] > dark[0]
    assert apply_split_toning(0.3, 0.5, 0.7, 30.0, 0.0, 200.0, 0.0, 40.0) == (0.3, 0.5, 0.7)


def test_vignette_darkens_corners_more_than_centre():
    centre = vignette_weight(50, 50, 101, 101, 50.0, 0.0, 50.0)
    corner = vignette_weight(0, 0, 101, 101, 50.0, 0.0, 50.0)
    assert centre == pytest.approx(0.0)
    assert corner > 0.9
    darkened = apply_vignette(0.8, 0.8, 0.8, corner, 100.0)
    lightened = apply_vignette(0.2, 0.2, 0.2, corner, -100.0)
    assert darkened[0] < 0.8
    assert lightened[0] > 0.2
    assert apply_vignette(0.3, 0.4, 0.5, 1.0, 0.0) == (0.3, 0.4, 0.5)


def test_grain_noise_is_deterministic_and_bounded():
    values = [grain_noise(x, y, 64, 48) for x in range(0, 64, 7) for y in range(0, 48, 5)]
    assert values == [grain_noise(x, y, 64, 48) for x in range(0, 64, 7) for y in range(0, 48, 5)]
    assert all(0.0 <= value <= 1.0 for value in values)
    assert len(set(values)) > 1
    assert apply_grain(0.3, 0.4, 0.5, 3, 4, 64, 48, 0.0, 25.0) == (0.3, 0.4, 0.5)
