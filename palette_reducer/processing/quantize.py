from __future__ import annotations

import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from ..config import SETTINGS, ReducerSettings
from .buffer import EdgeMap, PixelBuffer
from .colorspace import rgb_to_hsv, rgb_to_lab
from .palette import Palette, PaletteColor
from .types import DistanceMetric, HsvWeights, ReductionConfig

logger = logging.getLogger(__name__)

Rgb = Tuple[float, float, float]


class Metric(NamedTuple):
    """A colour space projection plus the distance measured inside it."""

    project: Callable[[Rgb], Tuple[float, float, float]]
    gap: Callable[[Tuple[float, float, float], Tuple[float, float, float]], float]


def squared_rgb_distance(c1: Rgb, c2: Rgb) -> float:
    dr = c1[0] - c2[0]
    dg = c1[1] - c2[1]
    db = c1[2] - c2[2]
    return dr * dr + dg * dg + db * db


def luma_distance(c1: Rgb, c2: Rgb) -> float:
    # Channel weights approximate luma sensitivity; this is not CIELAB.
    dr = c1[0] - c2[0]
    dg = c1[1] - c2[1]
    db = c1[2] - c2[2]
    return dr * dr * 0.30 + dg * dg * 0.59 + db * db * 0.11


def hsv_distance(hsv1: Rgb, hsv2: Rgb, weights: HsvWeights) -> float:
    """Normalised distance between two HSV triples; weights are percentages and need not sum to 100."""
    dh = abs(hsv1[0] - hsv2[0])
    if dh > 180:
        dh = 360 - dh
    return (
        (dh / 180) * (weights.h / 100)
        + (abs(hsv1[1] - hsv2[1]) / 100) * (weights.s / 100)
        + (abs(hsv1[2] - hsv2[2]) / 100) * (weights.v / 100)
    )


def _identity(rgb: Rgb) -> Rgb:
    return rgb


def metric_for(config: ReductionConfig) -> Metric:
    if config.metric is DistanceMetric.CIELAB:
        return Metric(lambda rgb: rgb_to_lab(*rgb), squared_rgb_distance)
    if config.metric is DistanceMetric.WEIGHTED:
        weights = config.weights
        return Metric(lambda rgb: rgb_to_hsv(*rgb), lambda a, b: hsv_distance(a, b, weights))
    if config.metric is DistanceMetric.LUMA:
        return Metric(_identity, luma_distance)
    return Metric(_identity, squared_rgb_distance)


def nearest_color(
    rgb: Rgb,
    candidates: Sequence[PaletteColor],
    projected: Sequence[Tuple[float, float, float]],
    metric: Metric,
    fallback: PaletteColor,
) -> PaletteColor:
    """First candidate with the strictly smallest distance.

    ``projected`` holds each candidate already passed through
    ``metric.project``. With no candidates the ``fallback`` is returned.
    """
    point = metric.project(rgb)
    gap = metric.gap
    best = fallback
    best_distance = float("inf")
    for color, target in zip(candidates, projected):
        d = gap(point, target)
        if d < best_distance:
            best_distance = d
            best = color
    return best


def boost(rgb: Rgb, edge_strength: float) -> Rgb:
    factor = 1 + edge_strength / 100
    r, g, b = rgb
    return (
        min(255.0, max(0.0, r * factor)),
        min(255.0, max(0.0, g * factor)),
        min(255.0, max(0.0, b * factor)),
    )


def reduce_image(
    source: PixelBuffer,
    palette: Palette,
    edges: Optional[EdgeMap] = None,
    config: ReductionConfig = ReductionConfig(),
    settings: ReducerSettings = SETTINGS,
) -> PixelBuffer:
    """Map every visible pixel to its nearest opaque palette colour.

    Fully transparent pixels become transparent black without a search.
    When ``config.edge_strength`` is non-zero, pixels whose edge magnitude
    exceeds ``settings.edge_boost_threshold`` are scaled by
    ``1 + edge_strength / 100`` before matching.
    """

    out = PixelBuffer.blank(source.width, source.height)
    src = source.data
    dst = out.data
    metric = metric_for(config)
    candidates: List[PaletteColor] = list(palette.opaque_colors)
    projected = [metric.project(color.rgb) for color in candidates]
    fallback = palette[0]
    boosting = config.edge_strength != 0 and edges is not None
    threshold = settings.edge_boost_threshold
    memo: Dict[Rgb, PaletteColor] = {}

    for i in range(source.width * source.height):
        idx = i * 4
        if src[idx + 3] == 0:
            continue

        rgb: Rgb = (src[idx], src[idx + 1], src[idx + 2])
        if boosting and edges[i] > threshold:
            rgb = boost(rgb, config.edge_strength)

        best = memo.get(rgb)
        if best is None:
            best = nearest_color(rgb, candidates, projected, metric, fallback)
            memo[rgb] = best

        dst[idx], dst[idx + 1], dst[idx + 2] = best.rgb
        dst[idx + 3] = 255

    logger.debug(
        "Reduced %dx%d with %s against %d colors",
        source.width,
        source.height,
        config.metric.value,
        len(candidates),
    )
    return out
