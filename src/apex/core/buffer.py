"""RGBA pixel buffer shared by every stage of the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from ..errors import InvalidBufferError

BufferLike = Union[bytes, bytearray, memoryview, np.ndarray]

CHANNELS = 4


def _resolve_pixel_bytes(data: BufferLike, expected_size: int) -> np.ndarray:
    """Return a flat ``uint8`` array over *data*, validating its length.

    ``memoryview`` inputs are normalised to unsigned bytes first so
    multi-dimensional or differently typed exports line up with the
    per-channel offsets used everywhere else.
    """

    if isinstance(data, np.ndarray):
        if data.dtype != np.uint8:
            raise InvalidBufferError(f"Pixel data must be uint8, got {data.dtype}")
        array = data.reshape(-1)
    else:
        view = memoryview(data)
        try:
            view = view.cast("B")
        except TypeError:
            view = view.cast("B", (view.nbytes,))
        array = np.frombuffer(view, dtype=np.uint8)

    if array.size != expected_size:
        raise InvalidBufferError(
            f"Pixel data holds {array.size} bytes but width*height*4 is {expected_size}"
        )
    return array


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Row-major 8-bit RGBA image with non-premultiplied alpha.

    ``data`` is a flat ``uint8`` array of exactly ``width * height * 4``
    bytes.  The core treats buffers as snapshots: every processing pass
    allocates a fresh output instead of writing into its input.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidBufferError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise InvalidBufferError(f"{name} must be positive, got {value}")
        array = _resolve_pixel_bytes(self.data, self.width * self.height * CHANNELS)
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))
        object.__setattr__(self, "data", array)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: BufferLike) -> "PixelBuffer":
        """Wrap raw RGBA bytes; the bytes are copied so later edits cannot leak in."""

        return cls(width, height, np.array(_resolve_pixel_bytes(data, _size(width, height))))

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an ``(height, width, 4)`` ``uint8`` array."""

        if array.dtype != np.uint8:
            raise InvalidBufferError(f"Pixel data must be uint8, got {array.dtype}")
        if array.ndim != 3 or array.shape[2] != CHANNELS:
            raise InvalidBufferError(
                f"Expected an (height, width, 4) array, got shape {array.shape}"
            )
        height, width = array.shape[:2]
        return cls(width, height, np.ascontiguousarray(array).reshape(-1))

    @classmethod
    def filled(cls, width: int, height: int, rgba: Sequence[int]) -> "PixelBuffer":
        """Return a buffer where every pixel has the color *rgba*."""

        if len(rgba) != CHANNELS:
            raise InvalidBufferError("Fill color must have four RGBA components")
        pixel = np.asarray(rgba, dtype=np.uint8)
        return cls(width, height, np.tile(pixel, _size(width, height) // CHANNELS))

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def pixels(self) -> np.ndarray:
        """``(height, width, 4)`` view over :attr:`data`."""

        return self.data.reshape((self.height, self.width, CHANNELS))

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.data, other.data)
        )

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


def _size(width: int, height: int) -> int:
    if width <= 0 or height <= 0:
        raise InvalidBufferError(f"Dimensions must be positive, got {width}x{height}")
    return width * height * CHANNELS


__all__ = ["BufferLike", "CHANNELS", "PixelBuffer"]
