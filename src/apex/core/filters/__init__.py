"""Image filtering package for the non-destructive pipeline.

This package separates the pixel math from the strategies that run it:
- algorithms: pure per-pixel operators compiled with Numba
- jit_executor: the per-pixel tone and effects kernels
- lut: lookup tables for context-free tone stages, applied with Pillow
- spatial: Gaussian blur and blur-backed detail filters
"""

from __future__ import annotations

from .lut import apply_luts, create_contrast_lut, create_exposure_lut, create_lut
from .spatial import gaussian_blur, unsharp_mask

__all__ = [
    "apply_luts",
    "create_contrast_lut",
    "create_exposure_lut",
    "create_lut",
    "gaussian_blur",
    "unsharp_mask",
]
