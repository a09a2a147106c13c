"""Pixel processing stages for palette reduction."""

from .buffer import EdgeMap, PixelBuffer, decode_image, downsample
from .colorspace import hsv_to_rgb, hue_unit_vector, rgb_to_hsv, rgb_to_lab
from .edges import detect_edges
from .enhance import apply_pre_processing
from .masking import apply_edge_post_processing, create_edge_visualization
from .palette import (
    Palette,
    PaletteColor,
    extract_palette,
    generate_rgb_palette,
    palette_strip,
    preset_palette,
)
from .pipeline import ReductionResult, render_edge_view, run_pipeline
from .quantize import reduce_image
from .types import (
    AdjustmentConfig,
    DistanceMetric,
    EdgeConfig,
    EdgeKernel,
    PipelineConfig,
    PreProcessConfig,
    ReductionConfig,
)

__all__ = [
    "EdgeMap",
    "PixelBuffer",
    "decode_image",
    "downsample",
    "hsv_to_rgb",
    "hue_unit_vector",
    "rgb_to_hsv",
    "rgb_to_lab",
    "detect_edges",
    "apply_pre_processing",
    "apply_edge_post_processing",
    "create_edge_visualization",
    "Palette",
    "PaletteColor",
    "extract_palette",
    "generate_rgb_palette",
    "palette_strip",
    "preset_palette",
    "ReductionResult",
    "render_edge_view",
    "run_pipeline",
    "reduce_image",
    "AdjustmentConfig",
    "DistanceMetric",
    "EdgeConfig",
    "EdgeKernel",
    "PipelineConfig",
    "PreProcessConfig",
    "ReductionConfig",
]
