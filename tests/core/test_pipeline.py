"""Tests for the monolithic and tiled image pipeline."""

import logging
import math

import numpy as np
import pytest

from apex.core.buffer import PixelBuffer
from apex.core.pipeline import (
    PipelineOptions,
    iter_tiles,
    process_image,
    process_image_tiled,
)
from apex.core.settings import AdjustmentSettings, CurvePoint
from apex.errors import InvalidBufferError, InvalidSettingsError, RenderCancelledError

FULL_SETTINGS = {
    "basic": {"exposure": 0.4, "contrast": 20.0, "highlights": -30.0, "shadows": 25.0},
    "color": {"temperature": 5200.0, "tint": 8.0, "vibrance": 30.0, "saturation": -10.0},
    "hsl": {"blue": {"hue": 20.0, "saturation": 15.0, "luminance": -10.0}},
    "curves": {"rgb": [(0, 0), (100, 120), (255, 255)]},
    "split_toning": {"highlight_hue": 40.0, "highlight_saturation": 20.0, "shadow_hue": 220.0, "shadow_saturation": 15.0},
    "effects": {"vignette_amount": 40.0, "grain_amount": 20.0},
}

DETAIL_SETTINGS = dict(
    FULL_SETTINGS,
    detail={"clarity": 30.0, "sharpness": 60.0, "sharpness_radius": 1.2, "noise_reduction": 20.0},
)


def test_neutral_single_pixel_passes_through():
    buffer = PixelBuffer.filled(1, 1, (128, 128, 128, 255))
    settings = {
        "basic": {"exposure": 0.0, "contrast": 0.0},
        "color": {"temperature": 6500.0, "tint": 0.0, "vibrance": 0.0, "saturation": 0.0},
    }
    result = process_image(buffer, settings)
    assert result.to_bytes() == bytes([128, 128, 128, 255])


def test_neutral_settings_pass_through_without_fast_path(gradient_buffer):
    options = PipelineOptions(use_lut_fast_path=False)
    assert process_image(gradient_buffer, None, options) == gradient_buffer
    assert process_image(gradient_buffer, AdjustmentSettings(), options) == gradient_buffer


@pytest.mark.parametrize("use_lut", [True, False])
def test_out_of_range_reference_temperature_keeps_matching_temperature_neutral(
    gradient_buffer, use_lut
):
    options = PipelineOptions(reference_temperature=1500.0, use_lut_fast_path=use_lut)
    result = process_image(gradient_buffer, {"color": {"temperature": 1500.0}}, options)
    assert result == gradient_buffer


def test_contrast_keeps_endpoints_and_midpoint():
    pixels = np.array([[[0, 0, 0, 255], [255, 255, 255, 255], [128, 128, 128, 255]]], dtype=np.uint8)
    result = process_image(PixelBuffer.from_array(pixels), {"basic": {"contrast": 100.0}})
    out = result.pixels[0]
    assert tuple(out[0][:3]) == (0, 0, 0)
    assert tuple(out[1][:3]) == (255, 255, 255)
    assert abs(int(out[2][0]) - 128) <= 1


def test_exposure_soft_knee_through_pipeline():
    buffer = PixelBuffer.filled(2, 2, (200, 100, 0, 255))
    result = process_image(buffer, {"basic": {"exposure": 1.0}})
    # 200 doubles past white and collapses via the soft knee; 100 doubles normally.
    assert tuple(result.pixels[0, 0]) == (111, 200, 0, 255)


@pytest.mark.parametrize("use_lut", [True, False])
def test_halving_exposure_rounds_halves_up(use_lut):
    ramp = np.zeros((1, 256, 4), dtype=np.uint8)
    ramp[0, :, :3] = np.arange(256, dtype=np.uint8)[:, None]
    ramp[0, :, 3] = 255
    options = PipelineOptions(use_lut_fast_path=use_lut)
    result = process_image(PixelBuffer.from_array(ramp), {"basic": {"exposure": -1.0}}, options)

    red = result.pixels[0, :, 0]
    expected = [math.floor(v / 255.0 * 0.5 * 255.0 + 0.5) for v in range(256)]
    assert red.tolist() == expected
    # Odd inputs land exactly on .5 and must not round towards even.
    assert [int(red[v]) for v in (1, 5, 9, 13)] == [1, 3, 5, 7]


def test_input_is_never_mutated_and_alpha_preserved(gradient_buffer):
    before = gradient_buffer.copy()
    result = process_image(gradient_buffer, DETAIL_SETTINGS)
    assert gradient_buffer == before
    assert result is not gradient_buffer
    np.testing.assert_array_equal(result.pixels[..., 3], gradient_buffer.pixels[..., 3])


@pytest.mark.parametrize(
    "settings",
    [
        {"basic": {"exposure": 0.8, "contrast": -35.0}},
        {"basic": {"contrast": 45.0}, "curves": {"red": [(0, 20), (255, 235)]}},
    ],
)
def test_lut_fast_path_matches_kernel(gradient_buffer, settings):
    fast = process_image(gradient_buffer, settings)
    slow = process_image(gradient_buffer, settings, PipelineOptions(use_lut_fast_path=False))
    assert fast == slow


@pytest.mark.parametrize("settings", [FULL_SETTINGS, DETAIL_SETTINGS])
@pytest.mark.parametrize("tile_size", [3, 8, 16, 256])
def test_tiled_output_matches_monolithic(gradient_buffer, settings, tile_size):
    expected = process_image(gradient_buffer, settings)
    tiled = process_image_tiled(gradient_buffer, settings, tile_size=tile_size)
    assert tiled == expected


def test_tiled_progress_reports_every_tile(gradient_buffer):
    fractions = []
    process_image_tiled(gradient_buffer, FULL_SETTINGS, tile_size=10, on_progress=fractions.append)
    # 37x23 with 10px tiles: 4 columns x 3 rows.
    assert len(fractions) == 12
    assert fractions == sorted(fractions)
    assert fractions[-1] == pytest.approx(1.0)


def test_tiled_cancellation_raises_without_output(gradient_buffer):
    calls = []

    def should_cancel():
        calls.append(True)
        return len(calls) > 2

    with pytest.raises(RenderCancelledError):
        process_image_tiled(gradient_buffer, FULL_SETTINGS, tile_size=8, should_cancel=should_cancel)
    assert len(calls) == 3


def test_iter_tiles_row_major():
    tiles = list(iter_tiles(5, 3, 2))
    assert tiles == [
        (0, 0, 2, 2),
        (2, 0, 4, 2),
        (4, 0, 5, 2),
        (0, 2, 2, 3),
        (2, 2, 4, 3),
        (4, 2, 5, 3),
    ]
    with pytest.raises(InvalidSettingsError):
        list(iter_tiles(5, 3, 0))


def test_out_of_range_settings_are_clamped(gradient_buffer):
    extreme = process_image(gradient_buffer, {"basic": {"exposure": 9.0, "contrast": 400.0}})
    clamped = process_image(gradient_buffer, {"basic": {"exposure": 5.0, "contrast": 100.0}})
    assert extreme == clamped


def test_malformed_settings_fail_fast(gradient_buffer):
    with pytest.raises(InvalidSettingsError):
        process_image(gradient_buffer, {"curves": {"rgb": []}})
    with pytest.raises(InvalidSettingsError):
        process_image(gradient_buffer, {"basic": {"exposure": float("nan")}})
    with pytest.raises(InvalidSettingsError):
        process_image(gradient_buffer, {"mystery": {}})


def test_non_buffer_input_is_rejected():
    with pytest.raises(InvalidBufferError):
        process_image(b"\x00" * 4, None)


def test_curves_change_output(gradient_buffer):
    settings = AdjustmentSettings.ensure(
        {"curves": {"rgb": [CurvePoint(0, 255), CurvePoint(255, 0)]}}
    )
    inverted = process_image(gradient_buffer, settings)
    np.testing.assert_array_equal(
        inverted.pixels[..., :3].astype(int), 255 - gradient_buffer.pixels[..., :3].astype(int)
    )


def test_dehaze_is_logged_and_ignored(gradient_buffer, caplog):
    with caplog.at_level(logging.WARNING, logger="apex.core.pipeline"):
        result = process_image(gradient_buffer, {"effects": {"dehaze": 50.0}})
    assert result == gradient_buffer
    assert any("Dehaze" in record.getMessage() for record in caplog.records)


def test_vignette_darkens_corners_only():
    buffer = PixelBuffer.filled(41, 31, (180, 180, 180, 255))
    result = process_image(buffer, {"effects": {"vignette_amount": 80.0}}).pixels
    assert result[15, 20, 0] == 180
    assert result[0, 0, 0] < 180
