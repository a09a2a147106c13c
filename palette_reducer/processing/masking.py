from __future__ import annotations

from typing import Optional, Tuple

from .buffer import EdgeMap, PixelBuffer, clamp_byte
from .colorspace import hsv_to_rgb, rgb_to_hsv
from .enhance import clamp, contrast_factor
from .types import AdjustmentConfig, EdgeConfig, OutlineRule

_NEIGHBOURS = ((0, -1), (0, 1), (-1, 0), (1, 0))

EDGE_VIEW_BACKGROUND = (0, 0, 0)
EDGE_VIEW_ALPHA = (0, 0, 255)
EDGE_VIEW_ALGORITHM = (255, 0, 0)
EDGE_VIEW_BOTH = (255, 0, 255)


def is_outline(buffer: PixelBuffer, x: int, y: int, rule: OutlineRule) -> bool:
    """True if the pixel is opaque enough and touches a transparent-enough neighbour."""
    if not rule.enabled or buffer.alpha(x, y) < rule.opacity_min:
        return False
    return any(buffer.alpha(x + dx, y + dy) <= rule.neighbor_max for dx, dy in _NEIGHBOURS)


def _alpha_edge(buffer: PixelBuffer, x: int, y: int, config: EdgeConfig) -> bool:
    if config.band.matches(buffer.alpha(x, y)):
        return True
    return is_outline(buffer, x, y, config.outline)


def _algorithm_edge(edges: Optional[EdgeMap], i: int, config: EdgeConfig) -> bool:
    rule = config.algorithm
    return rule.enabled and edges is not None and edges[i] > rule.threshold


def classify_pixel(
    buffer: PixelBuffer, edges: Optional[EdgeMap], x: int, y: int, config: EdgeConfig
) -> Tuple[bool, bool]:
    """Return ``(alpha_rule_hit, algorithm_rule_hit)`` for one pixel."""
    i = y * buffer.width + x
    return _alpha_edge(buffer, x, y, config), _algorithm_edge(edges, i, config)


def adjust_color(r: float, g: float, b: float, adj: AdjustmentConfig) -> Tuple[int, int, int]:
    """Brightness, contrast, then saturation and hue through HSV."""
    if adj.brightness != 0:
        r += adj.brightness
        g += adj.brightness
        b += adj.brightness

    if adj.contrast != 0:
        factor = contrast_factor(adj.contrast)
        r = factor * (r - 128) + 128
        g = factor * (g - 128) + 128
        b = factor * (b - 128) + 128

    r, g, b = clamp(r), clamp(g), clamp(b)

    if adj.saturation != 0 or adj.hue != 0:
        h, s, v = rgb_to_hsv(r, g, b)
        h, s, v = h / 360, s / 100, v / 100
        if adj.saturation != 0:
            s = min(1.0, max(0.0, s * (1 + adj.saturation / 100)))
        if adj.hue != 0:
            h += adj.hue / 360
            if h < 0:
                h += 1
            if h > 1:
                h -= 1
        r, g, b = hsv_to_rgb(h, s, v)

    return clamp_byte(r), clamp_byte(g), clamp_byte(b)


def apply_edge_post_processing(buffer: PixelBuffer, edges: Optional[EdgeMap], config: EdgeConfig) -> None:
    """Adjust, in place, the pixels any enabled edge rule selects."""
    adj = config.adjustments
    if adj.is_noop:
        return

    data = buffer.data
    width = buffer.width
    for y in range(buffer.height):
        for x in range(width):
            i = y * width + x
            if not (_alpha_edge(buffer, x, y, config) or _algorithm_edge(edges, i, config)):
                continue
            idx = i * 4
            data[idx], data[idx + 1], data[idx + 2] = adjust_color(
                data[idx], data[idx + 1], data[idx + 2], adj
            )


def create_edge_visualization(buffer: PixelBuffer, edges: Optional[EdgeMap], config: EdgeConfig) -> PixelBuffer:
    """Opaque debug view: blue for alpha rules, red for the algorithm, magenta for both."""
    out = PixelBuffer.blank(buffer.width, buffer.height)
    dst = out.data
    for y in range(buffer.height):
        for x in range(buffer.width):
            alpha_hit, algo_hit = classify_pixel(buffer, edges, x, y, config)
            if alpha_hit and algo_hit:
                color = EDGE_VIEW_BOTH
            elif alpha_hit:
                color = EDGE_VIEW_ALPHA
            elif algo_hit:
                color = EDGE_VIEW_ALGORITHM
            else:
                color = EDGE_VIEW_BACKGROUND
            idx = (y * buffer.width + x) * 4
            dst[idx], dst[idx + 1], dst[idx + 2] = color
            dst[idx + 3] = 255
    return out
