from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, NamedTuple, Tuple

from PIL import Image

from ..config import SETTINGS, ReducerSettings
from ..errors import InvalidConfiguration
from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

SWATCH_SIZE = 8


class PaletteColor(NamedTuple):
    r: int
    g: int
    b: int
    a: int = 255

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b


TRANSPARENT = PaletteColor(0, 0, 0, 0)

RGB_PRESETS: Dict[str, Tuple[int, int, int]] = {
    "rgb232": (2, 3, 2),
    "rgb322": (3, 2, 2),
    "rgb343": (3, 4, 3),
    "rgb433": (4, 3, 3),
}


class Palette:
    """Ordered, deduplicated colours; entry 0 is always fully transparent.

    ``truncated`` is set when extraction stopped at the colour cap and some
    distinct colours of the source were dropped.
    """

    __slots__ = ("_colors", "truncated")

    def __init__(self, colors: Iterable[PaletteColor], truncated: bool = False) -> None:
        ordered = [TRANSPARENT]
        seen = {TRANSPARENT}
        for color in colors:
            color = PaletteColor(*color)
            if color in seen:
                continue
            seen.add(color)
            ordered.append(color)
        self._colors: Tuple[PaletteColor, ...] = tuple(ordered)
        self.truncated = truncated

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[PaletteColor]:
        return iter(self._colors)

    def __getitem__(self, index: int) -> PaletteColor:
        return self._colors[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Palette):
            return self._colors == other._colors
        return NotImplemented

    def __repr__(self) -> str:
        return f"Palette({len(self._colors)} colors, truncated={self.truncated})"

    @property
    def opaque_colors(self) -> Tuple[PaletteColor, ...]:
        return tuple(color for color in self._colors if color.a != 0)

    def to_json(self) -> list:
        return [color._asdict() for color in self._colors]


def extract_palette(
    buffer: PixelBuffer,
    *,
    alpha_floor: int | None = None,
    max_colors: int | None = None,
    settings: ReducerSettings = SETTINGS,
) -> Palette:
    """Collect the distinct colours of ``buffer`` in first-seen order.

    Pixels with alpha below ``alpha_floor`` are ignored, the rest are recorded
    at full opacity. Extraction stops once the palette (sentinel included)
    holds ``max_colors`` entries.
    """

    floor = settings.palette_alpha_floor if alpha_floor is None else alpha_floor
    cap = settings.palette_max_colors if max_colors is None else max_colors
    if cap < 1:
        raise InvalidConfiguration(f"Palette cap must be at least 1, got {cap}")

    data = buffer.data
    seen = set()
    colors = []
    count = 1  # transparent sentinel
    truncated = False

    for idx in range(0, len(data), 4):
        if data[idx + 3] < floor:
            continue
        key = (data[idx], data[idx + 1], data[idx + 2])
        if key in seen:
            continue
        if count >= cap:
            truncated = True
            logger.warning("Palette color limit (%d) reached. Some colors may be missing.", cap)
            break
        seen.add(key)
        colors.append(PaletteColor(*key, 255))
        count += 1

    return Palette(colors, truncated=truncated)


def _scale_level(value: int, levels: int) -> int:
    if levels <= 1:
        return 0
    return int(round((value / (levels - 1)) * 255))


def generate_rgb_palette(r_bits: int, g_bits: int, b_bits: int) -> Palette:
    """Uniform palette with ``2**bits`` levels per channel, red varying slowest."""
    r_levels, g_levels, b_levels = 1 << r_bits, 1 << g_bits, 1 << b_bits
    colors = [
        PaletteColor(_scale_level(r, r_levels), _scale_level(g, g_levels), _scale_level(b, b_levels))
        for r in range(r_levels)
        for g in range(g_levels)
        for b in range(b_levels)
    ]
    return Palette(colors)


def preset_palette(name: str) -> Palette:
    try:
        bits = RGB_PRESETS[name.lower()]
    except KeyError:
        raise InvalidConfiguration(f"Unknown palette preset: {name}") from None
    return generate_rgb_palette(*bits)


def palette_strip(palette: Palette) -> Image.Image:
    """Render one 8x8 swatch per entry, left to right."""
    strip = Image.new("RGBA", (len(palette) * SWATCH_SIZE, SWATCH_SIZE), (0, 0, 0, 0))
    for index, color in enumerate(palette):
        left = index * SWATCH_SIZE
        strip.paste(tuple(color), (left, 0, left + SWATCH_SIZE, SWATCH_SIZE))
    return strip
