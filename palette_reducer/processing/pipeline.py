from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Optional

from ..config import SETTINGS, ReducerSettings
from ..errors import InvalidConfiguration
from .buffer import EdgeMap, PixelBuffer
from .edges import detect_edges
from .enhance import apply_pre_processing
from .masking import apply_edge_post_processing, create_edge_visualization
from .palette import Palette
from .quantize import reduce_image
from .types import EdgeConfig, PipelineConfig

logger = logging.getLogger(__name__)


@dataclass
class ReductionResult:
    image: PixelBuffer
    edge_view: Optional[PixelBuffer]
    edges: Optional[EdgeMap]


def _pre_processed(source: PixelBuffer, config: PipelineConfig) -> PixelBuffer:
    working = source.copy()
    pre = config.pre_process
    if pre is not None and pre.enabled:
        apply_pre_processing(working, pre)
    return working


def _detect(working: PixelBuffer, edge: EdgeConfig, settings: ReducerSettings) -> Optional[EdgeMap]:
    if not edge.algorithm.enabled:
        return None
    return detect_edges(working, edge.algorithm.kernel, edge.algorithm.hue_weight, settings=settings)


def render_edge_view(
    source: PixelBuffer,
    config: PipelineConfig,
    settings: ReducerSettings = SETTINGS,
) -> PixelBuffer:
    """Edge visualization of ``source`` after pre-processing, without reducing it."""

    edge = config.edge
    if edge is None or not edge.enabled:
        raise InvalidConfiguration("Edge processing is not enabled in config")
    working = _pre_processed(source, config)
    return create_edge_visualization(working, _detect(working, edge, settings), edge)


def run_pipeline(
    source: PixelBuffer,
    palette: Palette,
    config: PipelineConfig,
    settings: ReducerSettings = SETTINGS,
) -> ReductionResult:
    """Pre-process, detect and treat edges, then reduce to ``palette``.

    ``source`` is copied first and never modified. The edge view is rendered
    from the pre-processed copy before edge adjustments are applied, and the
    reduction runs without the edge-strength boost because edge pixels have
    already been treated.
    """

    if not palette.opaque_colors:
        raise InvalidConfiguration("Palette holds no opaque colors")

    started = time.perf_counter()
    working = _pre_processed(source, config)
    logger.debug("Pre-processing done in %.3fs", time.perf_counter() - started)

    edges: Optional[EdgeMap] = None
    edge_view: Optional[PixelBuffer] = None
    edge = config.edge
    if edge is not None and edge.enabled:
        edges = _detect(working, edge, settings)
        edge_view = create_edge_visualization(working, edges, edge)
        apply_edge_post_processing(working, edges, edge)
        logger.debug("Edge processing done in %.3fs", time.perf_counter() - started)

    reduction = replace(config.reduction, edge_strength=0)
    image = reduce_image(working, palette, edges, reduction, settings=settings)
    logger.info(
        "Reduced %dx%d image to %d colors in %.3fs",
        source.width,
        source.height,
        len(palette),
        time.perf_counter() - started,
    )
    return ReductionResult(image=image, edge_view=edge_view, edges=edges)
