from __future__ import annotations

import math
from typing import Tuple

from ..config import SETTINGS

Hsv = Tuple[float, float, float]
Lab = Tuple[float, float, float]


def luma(r: float, g: float, b: float) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


def _hue_fraction(r: float, g: float, b: float, high: float, delta: float) -> float:
    # Inputs are already normalised to 0..1.
    if high == r:
        h = (g - b) / delta + (6 if g < b else 0)
    elif high == g:
        h = (b - r) / delta + 2
    else:
        h = (r - g) / delta + 4
    return h / 6


def rgb_to_hsv(r: float, g: float, b: float) -> Hsv:
    """Return ``(h, s, v)`` with h in [0, 360) and s, v in [0, 100].

    Achromatic colours report a hue of 0.
    """
    r, g, b = r / 255, g / 255, b / 255
    high = max(r, g, b)
    low = min(r, g, b)
    delta = high - low
    s = 0.0 if high == 0 else delta / high
    h = 0.0 if high == low else _hue_fraction(r, g, b, high, delta)
    return h * 360, s * 100, high * 100


def hsv_to_rgb(h: float, s: float, v: float) -> Tuple[float, float, float]:
    """Six-sector reconstruction; h, s and v are fractions in 0..1.

    Returns unclamped floats in 0..255.
    """
    sector = math.floor(h * 6)
    f = h * 6 - sector
    p = v * (1 - s)
    q = v * (1 - f * s)
    t = v * (1 - (1 - f) * s)

    sector %= 6
    if sector == 0:
        r, g, b = v, t, p
    elif sector == 1:
        r, g, b = q, v, p
    elif sector == 2:
        r, g, b = p, v, t
    elif sector == 3:
        r, g, b = p, q, v
    elif sector == 4:
        r, g, b = t, p, v
    else:
        r, g, b = v, p, q
    return r * 255, g * 255, b * 255


def _srgb_to_linear(u: float) -> float:
    return ((u + 0.055) / 1.055) ** 2.4 if u > 0.04045 else u / 12.92


def _lab_f(t: float) -> float:
    return t ** (1 / 3) if t > 0.008856 else 7.787 * t + 16 / 116


def rgb_to_lab(r: float, g: float, b: float) -> Lab:
    """sRGB (0..255) to CIE L*a*b* under D65."""
    rl = _srgb_to_linear(r / 255)
    gl = _srgb_to_linear(g / 255)
    bl = _srgb_to_linear(b / 255)

    x = (rl * 0.4124 + gl * 0.3576 + bl * 0.1805) / 0.95047
    y = (rl * 0.2126 + gl * 0.7152 + bl * 0.0722) / 1.00000
    z = (rl * 0.0193 + gl * 0.1192 + bl * 0.9505) / 1.08883

    fx, fy, fz = _lab_f(x), _lab_f(y), _lab_f(z)
    return 116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz)


def hue_unit_vector(h: float, radius: float | None = None) -> Tuple[float, float]:
    """Map hue degrees onto a circle so hue gradients read on the luma scale.

    With the default radius of 127.5 two opposite hues sit 255 apart, the same
    span as black to white in luma.
    """
    scale = SETTINGS.hue_radius if radius is None else radius
    angle = math.radians(h)
    return math.sin(angle) * scale, math.cos(angle) * scale
