"""Immutable adjustment settings consumed by the processing pipeline.

The aggregate mirrors the control groups of the editor (basic, color,
detail, HSL, curves, effects and split toning).  Each group is a frozen
dataclass whose neutral defaults make the pipeline a pass-through, so callers
only need to populate the controls they touch.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from .. import config
from ..errors import InvalidSettingsError

HSL_BANDS = ("red", "orange", "yellow", "green", "cyan", "blue", "purple", "magenta")
"""Band names in hue order; the pipeline relies on this ordering."""

HSL_BAND_HUES: Mapping[str, float] = {
    "red": 0.0,
    "orange": 30.0,
    "yellow": 60.0,
    "green": 120.0,
    "cyan": 180.0,
    "blue": 240.0,
    "purple": 270.0,
    "magenta": 300.0,
}
"""Centre hue, in degrees, of every HSL band."""

CURVE_CHANNELS = ("rgb", "red", "green", "blue")


def _clamp(value: float, minimum: float, maximum: float) -> float:
    """Return *value* constrained to ``[minimum, maximum]``."""

    return max(minimum, min(maximum, float(value)))


def _check_number(group: str, name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSettingsError(
            f"{group}.{name} must be a number, got {type(value).__name__}"
        )
    if math.isnan(value):
        raise InvalidSettingsError(f"{group}.{name} must not be NaN")


class _Group:
    """Mixin implementing clamping and validation from a ``RANGES`` table."""

    RANGES: Mapping[str, tuple[float, float]] = {}
    GROUP = ""

    def clamp(self):
        """Return a copy with every control limited to its declared range."""

        changes = {
            name: _clamp(getattr(self, name), *bounds)
            for name, bounds in self.RANGES.items()
        }
        return replace(self, **changes)

    def validate(self) -> None:
        for name in self.RANGES:
            _check_number(self.GROUP, name, getattr(self, name))

    @property
    def is_neutral(self) -> bool:
        """``True`` when the group leaves every pixel untouched."""

        default = type(self)()
        return all(getattr(self, name) == getattr(default, name) for name in self.RANGES)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None):
        values = values or {}
        known = {item.name for item in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise InvalidSettingsError(
                f"Unknown {cls.GROUP} setting(s): {', '.join(sorted(unknown))}"
            )
        return cls(**dict(values))


@dataclass(frozen=True)
class BasicAdjustments(_Group):
    """Exposure (EV) and tonal controls."""

    exposure: float = 0.0
    contrast: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    whites: float = 0.0
    blacks: float = 0.0

    GROUP = "basic"
    RANGES = {
        "exposure": config.EXPOSURE_RANGE,
        "contrast": config.AMOUNT_RANGE,
        "highlights": config.AMOUNT_RANGE,
        "shadows": config.AMOUNT_RANGE,
        "whites": config.AMOUNT_RANGE,
        "blacks": config.AMOUNT_RANGE,
    }


@dataclass(frozen=True)
class ColorAdjustments(_Group):
    """White balance and saturation controls."""

    temperature: float = config.REFERENCE_TEMPERATURE
    tint: float = 0.0
    vibrance: float = 0.0
    saturation: float = 0.0

    GROUP = "color"
    RANGES = {
        "temperature": config.TEMPERATURE_RANGE,
        "tint": config.AMOUNT_RANGE,
        "vibrance": config.AMOUNT_RANGE,
        "saturation": config.AMOUNT_RANGE,
    }


@dataclass(frozen=True)
class DetailAdjustments(_Group):
    """Clarity, sharpening and noise reduction."""

    clarity: float = 0.0
    sharpness: float = 0.0
    sharpness_radius: float = 1.0
    noise_reduction: float = 0.0

    GROUP = "detail"
    RANGES = {
        "clarity": config.AMOUNT_RANGE,
        "sharpness": config.SHARPNESS_RANGE,
        "sharpness_radius": config.SHARPNESS_RADIUS_RANGE,
        "noise_reduction": config.PERCENT_RANGE,
    }

    @property
    def is_neutral(self) -> bool:
        # The radius alone never changes pixels.
        return self.clarity == 0 and self.sharpness == 0 and self.noise_reduction == 0


@dataclass(frozen=True)
class HSLChannel(_Group):
    hue: float = 0.0
    saturation: float = 0.0
    luminance: float = 0.0

    GROUP = "hsl"
    RANGES = {
        "hue": config.AMOUNT_RANGE,
        "saturation": config.AMOUNT_RANGE,
        "luminance": config.AMOUNT_RANGE,
    }


@dataclass(frozen=True)
class HSLAdjustments:
    """Per-band hue, saturation and luminance shifts."""

    red: HSLChannel = field(default_factory=HSLChannel)
    orange: HSLChannel = field(default_factory=HSLChannel)
    yellow: HSLChannel = field(default_factory=HSLChannel)
    green: HSLChannel = field(default_factory=HSLChannel)
    cyan: HSLChannel = field(default_factory=HSLChannel)
    blue: HSLChannel = field(default_factory=HSLChannel)
    purple: HSLChannel = field(default_factory=HSLChannel)
    magenta: HSLChannel = field(default_factory=HSLChannel)

    def bands(self) -> tuple[HSLChannel, ...]:
        return tuple(getattr(self, name) for name in HSL_BANDS)

    def clamp(self) -> "HSLAdjustments":
        return HSLAdjustments(**{name: getattr(self, name).clamp() for name in HSL_BANDS})

    def validate(self) -> None:
        for name in HSL_BANDS:
            band = getattr(self, name)
            if not isinstance(band, HSLChannel):
                raise InvalidSettingsError(f"hsl.{name} must be an HSLChannel")
            band.validate()

    @property
    def is_neutral(self) -> bool:
        return all(band.is_neutral for band in self.bands())

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "HSLAdjustments":
        values = values or {}
        unknown = set(values) - set(HSL_BANDS)
        if unknown:
            raise InvalidSettingsError(f"Unknown HSL band(s): {', '.join(sorted(unknown))}")
        return cls(
            **{
                name: band if isinstance(band, HSLChannel) else HSLChannel.from_mapping(band)
                for name, band in values.items()
            }
        )


@dataclass(frozen=True)
class CurvePoint:
    """Tone curve control point, both coordinates in ``0..255``."""

    x: float
    y: float


IDENTITY_CURVE: tuple[CurvePoint, ...] = (CurvePoint(0.0, 0.0), CurvePoint(255.0, 255.0))


def _coerce_points(points: Any) -> tuple[CurvePoint, ...]:
    coerced = []
    for point in points:
        if isinstance(point, CurvePoint):
            coerced.append(point)
        elif isinstance(point, Mapping):
            coerced.append(CurvePoint(point.get("x"), point.get("y")))
        else:
            x, y = point
            coerced.append(CurvePoint(x, y))
    return tuple(coerced)


@dataclass(frozen=True)
class CurveAdjustments:
    """Tone curves for the master RGB curve and the individual channels."""

    rgb: tuple[CurvePoint, ...] = IDENTITY_CURVE
    red: tuple[CurvePoint, ...] = IDENTITY_CURVE
    green: tuple[CurvePoint, ...] = IDENTITY_CURVE
    blue: tuple[CurvePoint, ...] = IDENTITY_CURVE

    def __post_init__(self) -> None:
        # Accept lists of ``(x, y)`` pairs or mappings for convenience.
        for name in CURVE_CHANNELS:
            value = getattr(self, name)
            if not isinstance(value, tuple) or not all(
                isinstance(point, CurvePoint) for point in value
            ):
                try:
                    object.__setattr__(self, name, _coerce_points(value))
                except (TypeError, ValueError) as exc:
                    raise InvalidSettingsError(
                        f"curves.{name} must be a sequence of (x, y) points"
                    ) from exc

    def clamp(self) -> "CurveAdjustments":
        return CurveAdjustments(
            **{
                name: tuple(
                    CurvePoint(_clamp(p.x, *config.CURVE_RANGE), _clamp(p.y, *config.CURVE_RANGE))
                    for p in getattr(self, name)
                )
                for name in CURVE_CHANNELS
            }
        )

    def validate(self) -> None:
        for name in CURVE_CHANNELS:
            points = getattr(self, name)
            if not points:
                raise InvalidSettingsError(f"curves.{name} must contain at least one point")
            seen: set[float] = set()
            for point in points:
                _check_number("curves", f"{name}.x", point.x)
                _check_number("curves", f"{name}.y", point.y)
                if point.x in seen:
                    raise InvalidSettingsError(
                        f"curves.{name} has more than one point at x={point.x}"
                    )
                seen.add(point.x)

    @staticmethod
    def is_identity(points: tuple[CurvePoint, ...]) -> bool:
        ordered = sorted(points, key=lambda p: p.x)
        if len(ordered) < 2 or ordered[0].x != 0 or ordered[-1].x != 255:
            return False
        return all(p.x == p.y for p in ordered)

    @property
    def is_neutral(self) -> bool:
        return all(self.is_identity(getattr(self, name)) for name in CURVE_CHANNELS)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "CurveAdjustments":
        values = values or {}
        unknown = set(values) - set(CURVE_CHANNELS)
        if unknown:
            raise InvalidSettingsError(f"Unknown curve channel(s): {', '.join(sorted(unknown))}")
        return cls(**dict(values))


@dataclass(frozen=True)
class EffectAdjustments(_Group):
    """Vignette, film grain and dehaze."""

    vignette_amount: float = 0.0
    vignette_midpoint: float = 50.0
    vignette_roundness: float = 0.0
    vignette_feather: float = 50.0
    grain_amount: float = 0.0
    grain_size: float = 25.0
    dehaze: float = 0.0

    GROUP = "effects"
    RANGES = {
        "vignette_amount": config.AMOUNT_RANGE,
        "vignette_midpoint": config.PERCENT_RANGE,
        "vignette_roundness": config.AMOUNT_RANGE,
        "vignette_feather": config.PERCENT_RANGE,
        "grain_amount": config.PERCENT_RANGE,
        "grain_size": config.PERCENT_RANGE,
        "dehaze": config.AMOUNT_RANGE,
    }

    @property
    def is_neutral(self) -> bool:
        return self.vignette_amount == 0 and self.grain_amount == 0 and self.dehaze == 0


@dataclass(frozen=True)
class SplitToningAdjustments(_Group):
    """Tint highlights and shadows with independent hues."""

    highlight_hue: float = 0.0
    highlight_saturation: float = 0.0
    shadow_hue: float = 0.0
    shadow_saturation: float = 0.0
    balance: float = 0.0

    GROUP = "split_toning"
    RANGES = {
        "highlight_hue": config.HUE_RANGE,
        "highlight_saturation": config.PERCENT_RANGE,
        "shadow_hue": config.HUE_RANGE,
        "shadow_saturation": config.PERCENT_RANGE,
        "balance": config.AMOUNT_RANGE,
    }

    @property
    def is_neutral(self) -> bool:
        return self.highlight_saturation == 0 and self.shadow_saturation == 0


_GROUP_TYPES = {
    "basic": BasicAdjustments,
    "color": ColorAdjustments,
    "detail": DetailAdjustments,
    "hsl": HSLAdjustments,
    "curves": CurveAdjustments,
    "effects": EffectAdjustments,
    "split_toning": SplitToningAdjustments,
}


@dataclass(frozen=True)
class AdjustmentSettings:
    """Complete, immutable configuration for one processing pass."""

    basic: BasicAdjustments = field(default_factory=BasicAdjustments)
    color: ColorAdjustments = field(default_factory=ColorAdjustments)
    detail: DetailAdjustments = field(default_factory=DetailAdjustments)
    hsl: HSLAdjustments = field(default_factory=HSLAdjustments)
    curves: CurveAdjustments = field(default_factory=CurveAdjustments)
    effects: EffectAdjustments = field(default_factory=EffectAdjustments)
    split_toning: SplitToningAdjustments = field(default_factory=SplitToningAdjustments)

    @classmethod
    def ensure(
        cls, settings: "AdjustmentSettings | Mapping[str, Any] | None"
    ) -> "AdjustmentSettings":
        """Return *settings* as :class:`AdjustmentSettings`, falling back to defaults."""

        if settings is None:
            return cls()
        if isinstance(settings, cls):
            return settings
        if not isinstance(settings, Mapping):
            raise InvalidSettingsError(
                f"Expected AdjustmentSettings or a mapping, got {type(settings).__name__}"
            )
        unknown = set(settings) - set(_GROUP_TYPES)
        if unknown:
            raise InvalidSettingsError(
                f"Unknown settings group(s): {', '.join(sorted(unknown))}"
            )
        groups = {}
        for name, value in settings.items():
            group_type = _GROUP_TYPES[name]
            if isinstance(value, group_type):
                groups[name] = value
            elif isinstance(value, Mapping):
                groups[name] = group_type.from_mapping(value)
            else:
                raise InvalidSettingsError(
                    f"Settings group '{name}' must be a mapping or {group_type.__name__}"
                )
        return cls(**groups)

    def validate(self) -> "AdjustmentSettings":
        """Raise :class:`InvalidSettingsError` if the aggregate is malformed."""

        for name, group_type in _GROUP_TYPES.items():
            group = getattr(self, name)
            if not isinstance(group, group_type):
                raise InvalidSettingsError(
                    f"Settings group '{name}' must be {group_type.__name__}, "
                    f"got {type(group).__name__}"
                )
            group.validate()
        return self

    def clamp(self) -> "AdjustmentSettings":
        """Return a copy with every control clamped to its declared range."""

        return AdjustmentSettings(
            **{name: getattr(self, name).clamp() for name in _GROUP_TYPES}
        )

    def with_changes(self, **groups: Any) -> "AdjustmentSettings":
        """Return a copy where the named groups are replaced or partially updated."""

        updates = {}
        for name, value in groups.items():
            if name not in _GROUP_TYPES:
                raise InvalidSettingsError(f"Unknown settings group '{name}'")
            if isinstance(value, Mapping):
                value = replace(getattr(self, name), **dict(value))
            updates[name] = value
        return replace(self, **updates)

    @property
    def is_neutral(self) -> bool:
        return all(getattr(self, name).is_neutral for name in _GROUP_TYPES)


DEFAULT_ADJUSTMENT_SETTINGS = AdjustmentSettings()


__all__ = [
    "AdjustmentSettings",
    "BasicAdjustments",
    "ColorAdjustments",
    "CurveAdjustments",
    "CurvePoint",
    "DEFAULT_ADJUSTMENT_SETTINGS",
    "DetailAdjustments",
    "EffectAdjustments",
    "HSLAdjustments",
    "HSLChannel",
    "HSL_BANDS",
    "HSL_BAND_HUES",
    "IDENTITY_CURVE",
    "SplitToningAdjustments",
]
