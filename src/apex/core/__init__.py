"""Pixel processing core: buffers, settings, pipeline and analysis."""

from __future__ import annotations

from .buffer import PixelBuffer
from .histogram import (
    ClippingReport,
    HistogramData,
    ImageStatistics,
    calculate_histogram,
    calculate_histogram_fast,
    calculate_statistics,
    create_clipping_mask,
    detect_clipping,
    render_clipping_overlay,
)
from .pipeline import PipelineOptions, iter_tiles, process_image, process_image_tiled
from .preview_backends import (
    CpuPreviewBackend,
    PreviewBackend,
    PreviewSession,
    RenderGeneration,
    select_preview_backend,
)
from .settings import AdjustmentSettings

__all__ = [
    "AdjustmentSettings",
    "ClippingReport",
    "CpuPreviewBackend",
    "HistogramData",
    "ImageStatistics",
    "PipelineOptions",
    "PixelBuffer",
    "PreviewBackend",
    "PreviewSession",
    "RenderGeneration",
    "calculate_histogram",
    "calculate_histogram_fast",
    "calculate_statistics",
    "create_clipping_mask",
    "detect_clipping",
    "iter_tiles",
    "process_image",
    "process_image_tiled",
    "render_clipping_overlay",
    "select_preview_backend",
]
