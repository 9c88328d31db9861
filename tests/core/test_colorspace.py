"""Tests for the colour space conversion helpers."""

import itertools

import numpy as np
import pytest

from apex.core.colorspace import (
    apply_gamma,
    delta_e,
    denormalize_rgb,
    get_luminance,
    get_perceived_brightness,
    hsl_to_rgb,
    hsv_to_rgb,
    kelvin_to_rgb,
    lab_to_rgb,
    lerp,
    lerp_rgb,
    normalize_rgb,
    remove_gamma,
    rgb_to_hsl,
    rgb_to_hsv,
    rgb_to_lab,
    rgb_to_xyz,
    srgb_to_linear,
    temperature_shift,
    unit_to_byte,
    xyz_to_rgb,
)

GRID = [0.0, 0.05, 0.2, 0.37, 0.5, 0.73, 0.9, 1.0]


def _colors():
    return itertools.product(GRID, GRID, GRID)


def test_hsl_round_trip_recovers_rgb():
    for r, g, b in _colors():
        h, s, l = rgb_to_hsl(r, g, b)
        assert hsl_to_rgb(h, s, l) == pytest.approx((r, g, b), abs=1e-6)


def test_hsv_round_trip_recovers_rgb():
    for r, g, b in _colors():
        h, s, v = rgb_to_hsv(r, g, b)
        assert hsv_to_rgb(h, s, v) == pytest.approx((r, g, b), abs=1e-6)


def test_xyz_round_trip_recovers_rgb():
    for r, g, b in _colors():
        x, y, z = rgb_to_xyz(r, g, b)
        # The published sRGB matrices are rounded to 7 digits and are not exact
        # inverses; their product drifts up to ~2e-6, so 1e-6 is too tight.
        assert xyz_to_rgb(x, y, z) == pytest.approx((r, g, b), abs=1e-5)


def test_lab_round_trip_recovers_rgb():
    for r, g, b in _colors():
        l, a, bb = rgb_to_lab(r, g, b)
        assert lab_to_rgb(l, a, bb) == pytest.approx((r, g, b), abs=1e-4)


def test_achromatic_colors_have_zero_hue_and_saturation():
    for value in GRID:
        h, s, l = rgb_to_hsl(value, value, value)
        assert h == 0.0
        assert s == 0.0
        assert l == pytest.approx(value)


def test_primary_hues():
    assert rgb_to_hsl(1.0, 0.0, 0.0)[0] == pytest.approx(0.0)
    assert rgb_to_hsl(0.0, 1.0, 0.0)[0] == pytest.approx(120.0)
    assert rgb_to_hsl(0.0, 0.0, 1.0)[0] == pytest.approx(240.0)
    assert rgb_to_hsv(1.0, 0.0, 1.0)[0] == pytest.approx(300.0)


def test_hue_wraps_modulo_360():
    assert hsl_to_rgb(480.0, 1.0, 0.5) == pytest.approx(hsl_to_rgb(120.0, 1.0, 0.5))
    assert hsl_to_rgb(-120.0, 1.0, 0.5) == pytest.approx(hsl_to_rgb(240.0, 1.0, 0.5))


@pytest.mark.parametrize(
    "value",
    [0.0, 0.001, 0.0031308, 0.0031309, 0.02, 0.04045, 0.04046, 0.3, 0.5, 0.999, 1.0],
)
def test_gamma_round_trip_across_breakpoints(value):
    assert remove_gamma(apply_gamma(value)) == pytest.approx(value, abs=1e-9)
    assert apply_gamma(remove_gamma(value)) == pytest.approx(value, abs=1e-9)


def test_gamma_clamps_out_of_range_input():
    assert apply_gamma(-0.5) == 0.0
    assert apply_gamma(2.0) == pytest.approx(1.0)
    assert remove_gamma(1.5) == pytest.approx(1.0)


def test_vectorised_linearisation_matches_scalar():
    samples = np.linspace(0.0, 1.0, 101)
    expected = [remove_gamma(value) for value in samples]
    np.testing.assert_allclose(srgb_to_linear(samples), expected, atol=1e-12)


def test_white_lab_and_delta_e():
    l, a, b = rgb_to_lab(1.0, 1.0, 1.0)
    assert l == pytest.approx(100.0, abs=0.01)
    assert a == pytest.approx(0.0, abs=0.01)
    assert b == pytest.approx(0.0, abs=0.01)
    assert delta_e((50.0, 0.0, 0.0), (50.0, 3.0, 4.0)) == pytest.approx(5.0)
    assert delta_e((l, a, b), (l, a, b)) == 0.0


def test_luminance_of_white_and_black():
    assert get_luminance(1.0, 1.0, 1.0) == pytest.approx(1.0)
    assert get_luminance(0.0, 0.0, 0.0) == 0.0
    assert get_luminance(0.0, 1.0, 0.0) == pytest.approx(0.7152)


def test_kelvin_to_rgb_warm_and_cool():
    warm = kelvin_to_rgb(2000.0)
    cool = kelvin_to_rgb(12000.0)
    assert warm[0] == pytest.approx(1.0)
    assert warm[2] < warm[1] < warm[0]
    assert cool[2] == pytest.approx(1.0)
    assert cool[0] < 1.0
    # Out-of-range inputs are clamped to the fitted range.
    assert kelvin_to_rgb(500.0) == kelvin_to_rgb(1000.0)
    assert kelvin_to_rgb(90000.0) == kelvin_to_rgb(40000.0)


def test_temperature_shift_is_identity_for_equal_temperatures():
    assert temperature_shift(5000.0, 5000.0) == pytest.approx((1.0, 1.0, 1.0))


def test_byte_conversions_round_and_clamp():
    assert unit_to_byte(128.0 / 255.0) == 128
    assert unit_to_byte(-0.2) == 0
    assert unit_to_byte(1.7) == 255
    assert denormalize_rgb(*normalize_rgb(12.0, 200.0, 255.0)) == (12, 200, 255)
    assert lerp(10.0, 20.0, 0.25) == pytest.approx(12.5)


def test_unit_to_byte_rounds_exact_halves_up():
    # 5/255 halved lands exactly on 2.5 bytes.
    assert unit_to_byte(5.0 / 255.0 * 0.5) == 3
    assert unit_to_byte(0.5) == 128


def test_lerp_rgb_interpolates_each_channel():
    a = (0.0, 0.2, 1.0)
    b = (1.0, 0.4, 0.0)
    assert lerp_rgb(a, b, 0.0) == pytest.approx(a)
    assert lerp_rgb(a, b, 1.0) == pytest.approx(b)
    assert lerp_rgb(a, b, 0.5) == pytest.approx((0.5, 0.3, 0.5))


def test_perceived_brightness_weights():
    assert get_perceived_brightness(1.0, 1.0, 1.0) == pytest.approx(1.0)
    assert get_perceived_brightness(0.0, 0.0, 0.0) == 0.0
    assert get_perceived_brightness(0.0, 1.0, 0.0) == pytest.approx(0.587 ** 0.5)
    assert get_perceived_brightness(0.0, 1.0, 0.0) > get_perceived_brightness(1.0, 0.0, 0.0)
