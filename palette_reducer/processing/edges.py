from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence, Tuple

from ..config import SETTINGS, ReducerSettings
from ..errors import InvalidConfiguration
from .buffer import EdgeMap, PixelBuffer, new_edge_map
from .colorspace import hue_unit_vector, luma, rgb_to_hsv
from .types import EdgeKernel

logger = logging.getLogger(__name__)

# Normalisation constants are multiples of this rounded root two, so a full
# black/white step lands at roughly 255 for every kernel.
_ROOT2 = 1.4142

Kernel = Tuple[Tuple[int, int, int], ...]

_DIRECTIONAL: Dict[EdgeKernel, Tuple[Kernel, Kernel, float]] = {
    EdgeKernel.SOBEL: (
        ((-1, 0, 1), (-2, 0, 2), (-1, 0, 1)),
        ((-1, -2, -1), (0, 0, 0), (1, 2, 1)),
        4 * _ROOT2,
    ),
    EdgeKernel.PREWITT: (
        ((-1, 0, 1), (-1, 0, 1), (-1, 0, 1)),
        ((-1, -1, -1), (0, 0, 0), (1, 1, 1)),
        3 * _ROOT2,
    ),
    EdgeKernel.SCHARR: (
        ((-3, 0, 3), (-10, 0, 10), (-3, 0, 3)),
        ((-3, -10, -3), (0, 0, 0), (3, 10, 3)),
        16 * _ROOT2,
    ),
}


class _Raster:
    """Luma and hue-vector planes with a one pixel border of zeros.

    The border makes every 3x3 window and 2x2 diagonal lookup in-bounds; out
    of range samples read as black with no hue, matching a zero-fill policy.
    """

    def __init__(self, buffer: PixelBuffer, with_hue: bool, radius: float) -> None:
        self.stride = buffer.width + 2
        size = self.stride * (buffer.height + 2)
        self.luma: List[float] = [0.0] * size
        self.sin: List[float] = [0.0] * size
        self.cos: List[float] = [0.0] * size

        data = buffer.data
        hue_cache: Dict[Tuple[int, int, int], Tuple[float, float]] = {}
        for y in range(buffer.height):
            row = (y + 1) * self.stride + 1
            src = y * buffer.width * 4
            for x in range(buffer.width):
                idx = src + x * 4
                r, g, b = data[idx], data[idx + 1], data[idx + 2]
                pos = row + x
                self.luma[pos] = luma(r, g, b)
                if with_hue:
                    key = (r, g, b)
                    vector = hue_cache.get(key)
                    if vector is None:
                        vector = hue_unit_vector(rgb_to_hsv(r, g, b)[0], radius)
                        hue_cache[key] = vector
                    self.sin[pos], self.cos[pos] = vector

    def index(self, x: int, y: int) -> int:
        return (y + 1) * self.stride + x + 1


def _window_offsets(stride: int) -> List[int]:
    return [dy * stride + dx for dy in (-1, 0, 1) for dx in (-1, 0, 1)]


def _directional_taps(kernel: EdgeKernel, stride: int) -> Tuple[List[Tuple[int, int, int]], float]:
    kx, ky, divisor = _DIRECTIONAL[kernel]
    taps = []
    for row in range(3):
        for col in range(3):
            wx, wy = kx[row][col], ky[row][col]
            if wx or wy:
                taps.append(((row - 1) * stride + col - 1, wx, wy))
    return taps, divisor


def _gradient(plane: Sequence[float], center: int, taps: Sequence[Tuple[int, int, int]]) -> float:
    gx = 0.0
    gy = 0.0
    for offset, wx, wy in taps:
        value = plane[center + offset]
        gx += value * wx
        gy += value * wy
    return math.sqrt(gx * gx + gy * gy)


def _laplacian(plane: Sequence[float], center: int, stride: int) -> float:
    return (
        plane[center - stride]
        + plane[center - 1]
        - 4 * plane[center]
        + plane[center + 1]
        + plane[center + stride]
    )


def _max_pairwise_distance(points: Sequence[Tuple[float, float]]) -> float:
    best = 0.0
    for i in range(len(points)):
        s1, c1 = points[i]
        for j in range(i + 1, len(points)):
            s2, c2 = points[j]
            ds = s1 - s2
            dc = c1 - c2
            dist = math.sqrt(ds * ds + dc * dc)
            if dist > best:
                best = dist
    return best


def detect_edges(
    buffer: PixelBuffer,
    kernel: EdgeKernel | str = EdgeKernel.SOBEL,
    hue_weight: float = 0.0,
    settings: ReducerSettings = SETTINGS,
) -> EdgeMap:
    """Per-pixel edge magnitude, nominally 0..255.

    The luma gradient and, when ``hue_weight`` is positive, the gradient of
    the hue vector are blended as ``luma * (1 - w) + hue * w``. Pixels whose
    alpha is under ``settings.edge_alpha_floor`` stay at zero.
    """

    kernel = EdgeKernel.parse(kernel)
    if not 0.0 <= hue_weight <= 1.0:
        raise InvalidConfiguration(f"Hue weight must be within 0..1, got {hue_weight}")

    width, height = buffer.size
    edges = new_edge_map(width, height)
    with_hue = hue_weight > 0
    raster = _Raster(buffer, with_hue, settings.hue_radius)
    stride = raster.stride
    lum, sin_plane, cos_plane = raster.luma, raster.sin, raster.cos
    w_luma = 1 - hue_weight
    data = buffer.data
    floor = settings.edge_alpha_floor

    taps: List[Tuple[int, int, int]] = []
    divisor = 1.0
    if kernel in _DIRECTIONAL:
        taps, divisor = _directional_taps(kernel, stride)
    window = _window_offsets(stride)

    for y in range(height):
        for x in range(width):
            i = y * width + x
            if data[i * 4 + 3] < floor:
                continue

            c = raster.index(x, y)
            mag_h = 0.0

            if kernel is EdgeKernel.ROBERTS:
                p11 = c + stride + 1
                p01 = c + stride
                p10 = c + 1
                gx = lum[c] - lum[p11]
                gy = lum[p01] - lum[p10]
                mag_l = math.sqrt(gx * gx + gy * gy) / _ROOT2
                if with_hue:
                    norm = 1 / _ROOT2
                    gxs = sin_plane[c] - sin_plane[p11]
                    gys = sin_plane[p01] - sin_plane[p10]
                    gxc = cos_plane[c] - cos_plane[p11]
                    gyc = cos_plane[p01] - cos_plane[p10]
                    mag_s = math.sqrt(gxs * gxs + gys * gys) * norm
                    mag_c = math.sqrt(gxc * gxc + gyc * gyc) * norm
                    mag_h = math.sqrt(mag_s * mag_s + mag_c * mag_c)

            elif kernel is EdgeKernel.MORPHOLOGICAL:
                values = [lum[c + offset] for offset in window]
                mag_l = max(values) - min(values)
                if with_hue:
                    mag_h = _max_pairwise_distance(
                        [(sin_plane[c + offset], cos_plane[c + offset]) for offset in window]
                    )

            elif kernel is EdgeKernel.LAPLACIAN:
                mag_l = abs(_laplacian(lum, c, stride)) / 4
                if with_hue:
                    mag_s = abs(_laplacian(sin_plane, c, stride)) / 4
                    mag_c = abs(_laplacian(cos_plane, c, stride)) / 4
                    mag_h = math.sqrt(mag_s * mag_s + mag_c * mag_c)

            else:
                mag_l = _gradient(lum, c, taps) / divisor
                if with_hue:
                    mag_s = _gradient(sin_plane, c, taps)
                    mag_c = _gradient(cos_plane, c, taps)
                    mag_h = math.sqrt(mag_s * mag_s + mag_c * mag_c) / divisor

            edges[i] = mag_l * w_luma + mag_h * hue_weight

    logger.debug("Edge map computed with %s (hue weight %.2f) for %dx%d", kernel.value, hue_weight, width, height)
    return edges
