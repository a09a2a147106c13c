from __future__ import annotations

import math
from typing import List, Optional

from .buffer import PixelBuffer, clamp_byte
from .types import PreProcessConfig


def contrast_factor(contrast: float) -> float:
    return (259 * (contrast + 255)) / (255 * (259 - contrast))


def clamp(value: float) -> float:
    return min(255.0, max(0.0, value))


def lut_index(value: float) -> int:
    """Round a 0..255 channel half up to the gamma table slot it reads."""
    return int(math.floor(value + 0.5))


def gamma_table(gamma: float) -> Optional[List[int]]:
    if gamma == 1.0:
        return None
    inv = 1.0 / gamma
    return [clamp_byte(((value / 255.0) ** inv) * 255) for value in range(256)]


def apply_pre_processing(buffer: PixelBuffer, config: PreProcessConfig) -> None:
    """Adjust every visible pixel of ``buffer`` in place.

    Stages run in a fixed order: RGB offset, brightness, contrast, saturation
    and finally gamma. Alpha is never changed and fully transparent pixels
    are left alone.
    """

    factor = contrast_factor(config.contrast) if config.contrast != 0 else 1.0
    sat_mult = 1 + config.saturation / 100
    lut = gamma_table(config.gamma)
    data = buffer.data

    for idx in range(0, len(data), 4):
        if data[idx + 3] == 0:
            continue

        r = data[idx] + config.r
        g = data[idx + 1] + config.g
        b = data[idx + 2] + config.b

        if config.brightness != 0:
            r += config.brightness
            g += config.brightness
            b += config.brightness

        if config.contrast != 0:
            r = factor * (r - 128) + 128
            g = factor * (g - 128) + 128
            b = factor * (b - 128) + 128

        r, g, b = clamp(r), clamp(g), clamp(b)

        if config.saturation != 0:
            lum = 0.2126 * r + 0.7152 * g + 0.0722 * b
            r = clamp(lum + (r - lum) * sat_mult)
            g = clamp(lum + (g - lum) * sat_mult)
            b = clamp(lum + (b - lum) * sat_mult)

        if lut is not None:
            r = lut[lut_index(r)]
            g = lut[lut_index(g)]
            b = lut[lut_index(b)]

        data[idx] = clamp_byte(r)
        data[idx + 1] = clamp_byte(g)
        data[idx + 2] = clamp_byte(b)
