"""JIT-accelerated pixel kernels using Numba.

The pipeline runs in two per-pixel passes around the spatial detail pass:
the tone pass applies every colour and tone operator in canonical order and
quantises to bytes, the effects pass applies the position dependent vignette
and grain.  Both kernels read and write ``(height, width, 4)`` ``uint8``
arrays and leave alpha untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numba import jit

from ... import config
from ..colorspace import unit_to_byte
from ..settings import HSL_BANDS, AdjustmentSettings
from .algorithms import (
    adjust_blacks,
    adjust_contrast_linear,
    adjust_exposure,
    adjust_highlights,
    adjust_hsl_bands,
    adjust_saturation,
    adjust_shadows,
    adjust_temperature,
    adjust_tint,
    adjust_vibrance,
    adjust_whites,
    apply_grain,
    apply_split_toning,
    apply_vignette,
    sample_curve,
    vignette_weight,
)
from .lut import build_curve_tables


def _identity_curves() -> np.ndarray:
    return np.tile(np.arange(256, dtype=np.float64) / 255.0, (4, 1))


@dataclass(frozen=True, eq=False)
class TonePlan:
    """Flattened tone-pass parameters ready to hand to the kernel."""

    temperature: float
    reference_temperature: float
    tint: float
    exposure: float
    contrast: float
    highlights: float
    shadows: float
    whites: float
    blacks: float
    vibrance: float
    saturation: float
    apply_hsl: bool = False
    hsl_table: np.ndarray = field(default_factory=lambda: np.zeros((8, 3)))
    apply_curves: bool = False
    curve_tables: np.ndarray = field(default_factory=_identity_curves)
    apply_split: bool = False
    split_toning: tuple[float, float, float, float, float] = (0.0, 0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_settings(
        cls, settings: AdjustmentSettings, reference_temperature: float
    ) -> "TonePlan":
        basic = settings.basic
        color = settings.color
        hsl = settings.hsl
        curves = settings.curves
        split = settings.split_toning

        hsl_table = np.array(
            [
                [band.hue, band.saturation, band.luminance]
                for band in (getattr(hsl, name) for name in HSL_BANDS)
            ],
            dtype=np.float64,
        )
        apply_curves = not curves.is_neutral
        return cls(
            temperature=float(color.temperature),
            reference_temperature=min(
                config.TEMPERATURE_RANGE[1],
                max(config.TEMPERATURE_RANGE[0], float(reference_temperature)),
            ),
            tint=float(color.tint),
            exposure=float(basic.exposure),
            contrast=float(basic.contrast),
            highlights=float(basic.highlights),
            shadows=float(basic.shadows),
            whites=float(basic.whites),
            blacks=float(basic.blacks),
            vibrance=float(color.vibrance),
            saturation=float(color.saturation),
            apply_hsl=not hsl.is_neutral,
            hsl_table=hsl_table,
            apply_curves=apply_curves,
            curve_tables=build_curve_tables(curves) if apply_curves else _identity_curves(),
            apply_split=not split.is_neutral,
            split_toning=(
                float(split.highlight_hue),
                float(split.highlight_saturation),
                float(split.shadow_hue),
                float(split.shadow_saturation),
                float(split.balance),
            ),
        )

    @property
    def lut_compatible(self) -> bool:
        """``True`` when only exposure, contrast and curves can change pixels."""

        return (
            self.temperature == self.reference_temperature
            and self.tint == 0.0
            and self.highlights == 0.0
            and self.shadows == 0.0
            and self.whites == 0.0
            and self.blacks == 0.0
            and self.vibrance == 0.0
            and self.saturation == 0.0
            and not self.apply_hsl
            and not self.apply_split
        )


@dataclass(frozen=True)
class EffectPlan:
    """Vignette and grain parameters for the effects pass."""

    vignette_amount: float = 0.0
    vignette_midpoint: float = 50.0
    vignette_roundness: float = 0.0
    vignette_feather: float = 50.0
    grain_amount: float = 0.0
    grain_size: float = 25.0

    @classmethod
    def from_settings(cls, settings: AdjustmentSettings) -> "EffectPlan":
        effects = settings.effects
        return cls(
            vignette_amount=float(effects.vignette_amount),
            vignette_midpoint=float(effects.vignette_midpoint),
            vignette_roundness=float(effects.vignette_roundness),
            vignette_feather=float(effects.vignette_feather),
            grain_amount=float(effects.grain_amount),
            grain_size=float(effects.grain_size),
        )

    @property
    def is_active(self) -> bool:
        return self.vignette_amount != 0.0 or self.grain_amount != 0.0


def apply_tone_region(source: np.ndarray, plan: TonePlan) -> np.ndarray:
    """Return a new array with the tone pass applied to *source*."""

    height, width = source.shape[:2]
    output = np.empty((height, width, 4), dtype=np.uint8)
    if width <= 0 or height <= 0:
        return output
    hi_hue, hi_sat, sh_hue, sh_sat, balance = plan.split_toning
    _apply_tone_kernel(
        source,
        output,
        height,
        width,
        plan.temperature,
        plan.reference_temperature,
        plan.tint,
        plan.exposure,
        plan.contrast,
        plan.highlights,
        plan.shadows,
        plan.whites,
        plan.blacks,
        plan.vibrance,
        plan.saturation,
        plan.apply_hsl,
        plan.hsl_table,
        plan.apply_curves,
        plan.curve_tables,
        plan.apply_split,
        hi_hue,
        hi_sat,
        sh_hue,
        sh_sat,
        balance,
    )
    return output


@jit(nopython=True, cache=True)
def _apply_tone_kernel(
    source: np.ndarray,
    output: np.ndarray,
    height: int,
    width: int,
    temperature: float,
    reference_temperature: float,
    tint: float,
    exposure: float,
    contrast: float,
    highlights: float,
    shadows: float,
    whites: float,
    blacks: float,
    vibrance: float,
    saturation: float,
    apply_hsl: bool,
    hsl_table: np.ndarray,
    apply_curves: bool,
    curve_tables: np.ndarray,
    apply_split: bool,
    highlight_hue: float,
    highlight_saturation: float,
    shadow_hue: float,
    shadow_saturation: float,
    balance: float,
) -> None:
    """JIT-compiled tone pass."""
    for y in range(height):
        for x in range(width):
            r = source[y, x, 0] / 255.0
            g = source[y, x, 1] / 255.0
            b = source[y, x, 2] / 255.0

            r, g, b = adjust_temperature(r, g, b, temperature, reference_temperature)
            r, g, b = adjust_tint(r, g, b, tint)
            r, g, b = adjust_exposure(r, g, b, exposure)
            r, g, b = adjust_contrast_linear(r, g, b, contrast)
            r, g, b = adjust_highlights(r, g, b, highlights)
            r, g, b = adjust_shadows(r, g, b, shadows)
            r, g, b = adjust_whites(r, g, b, whites)
            r, g, b = adjust_blacks(r, g, b, blacks)
            r, g, b = adjust_vibrance(r, g, b, vibrance)
            r, g, b = adjust_saturation(r, g, b, saturation)

            if apply_hsl:
                r, g, b = adjust_hsl_bands(r, g, b, hsl_table)

            if apply_curves:
                r = sample_curve(sample_curve(r, curve_tables[0]), curve_tables[1])
                g = sample_curve(sample_curve(g, curve_tables[0]), curve_tables[2])
                b = sample_curve(sample_curve(b, curve_tables[0]), curve_tables[3])

            if apply_split:
                r, g, b = apply_split_toning(
                    r,
                    g,
                    b,
                    highlight_hue,
                    highlight_saturation,
                    shadow_hue,
                    shadow_saturation,
                    balance,
                )

            output[y, x, 0] = unit_to_byte(r)
            output[y, x, 1] = unit_to_byte(g)
            output[y, x, 2] = unit_to_byte(b)
            output[y, x, 3] = source[y, x, 3]


def apply_effects_region(
    pixels: np.ndarray,
    plan: EffectPlan,
    origin_x: int,
    origin_y: int,
    full_width: int,
    full_height: int,
) -> None:
    """Mutate *pixels* in-place with the vignette and grain.

    ``origin_x``/``origin_y`` locate the region inside the full image so the
    position dependent effects line up across tiles.
    """

    height, width = pixels.shape[:2]
    if width <= 0 or height <= 0 or not plan.is_active:
        return
    _apply_effects_kernel(
        pixels,
        height,
        width,
        origin_x,
        origin_y,
        full_width,
        full_height,
        plan.vignette_amount,
        plan.vignette_midpoint,
        plan.vignette_roundness,
        plan.vignette_feather,
        plan.grain_amount,
        plan.grain_size,
    )


@jit(nopython=True, cache=True)
def _apply_effects_kernel(
    pixels: np.ndarray,
    height: int,
    width: int,
    origin_x: int,
    origin_y: int,
    full_width: int,
    full_height: int,
    vignette_amount: float,
    vignette_midpoint: float,
    vignette_roundness: float,
    vignette_feather: float,
    grain_amount: float,
    grain_size: float,
) -> None:
    """JIT-compiled effects pass."""
    for y in range(height):
        image_y = origin_y + y
        for x in range(width):
            image_x = origin_x + x
            r = pixels[y, x, 0] / 255.0
            g = pixels[y, x, 1] / 255.0
            b = pixels[y, x, 2] / 255.0

            if vignette_amount != 0.0:
                weight = vignette_weight(
                    image_x,
                    image_y,
                    full_width,
                    full_height,
                    vignette_midpoint,
                    vignette_roundness,
                    vignette_feather,
                )
                r, g, b = apply_vignette(r, g, b, weight, vignette_amount)

            r, g, b = apply_grain(
                r, g, b, image_x, image_y, full_width, full_height, grain_amount, grain_size
            )

            pixels[y, x, 0] = unit_to_byte(r)
            pixels[y, x, 1] = unit_to_byte(g)
            pixels[y, x, 2] = unit_to_byte(b)


__all__ = [
    "EffectPlan",
    "TonePlan",
    "apply_effects_region",
    "apply_tone_region",
]
