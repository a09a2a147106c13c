from __future__ import annotations

import io
from array import array
from dataclasses import dataclass
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from ..config import SETTINGS, ReducerSettings
from ..errors import InvalidConfiguration

EdgeMap = array  # array("f") of width * height magnitudes

_DOWNSAMPLE_FILTERS = {
    "nearest": Image.NEAREST,
    "box": Image.BOX,
}


@dataclass
class PixelBuffer:
    """Row-major RGBA pixels with a top-left origin."""

    width: int
    height: int
    data: bytearray

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise InvalidConfiguration(f"Invalid buffer size {self.width}x{self.height}")
        if not isinstance(self.data, bytearray):
            self.data = bytearray(self.data)
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise InvalidConfiguration(
                f"Buffer holds {len(self.data)} bytes, expected {expected}"
            )

    @classmethod
    def blank(cls, width: int, height: int) -> "PixelBuffer":
        return cls(width, height, bytearray(width * height * 4))

    @classmethod
    def from_image(cls, img: Image.Image) -> "PixelBuffer":
        rgba = img.convert("RGBA")
        width, height = rgba.size
        return cls(width, height, bytearray(rgba.tobytes()))

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.data))

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, bytearray(self.data))

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        idx = (y * self.width + x) * 4
        data = self.data
        return data[idx], data[idx + 1], data[idx + 2], data[idx + 3]

    def alpha(self, x: int, y: int) -> int:
        """Alpha at ``(x, y)``; coordinates outside the buffer read as 0."""
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return 0
        return self.data[(y * self.width + x) * 4 + 3]


def new_edge_map(width: int, height: int) -> EdgeMap:
    return array("f", bytes(4 * width * height))


def clamp_byte(value: float) -> int:
    """Clamp to 0..255 and round half to even, as a canvas byte store does."""
    if value <= 0:
        return 0
    if value >= 255:
        return 255
    return int(round(value))


def decode_image(payload: bytes, settings: ReducerSettings = SETTINGS) -> PixelBuffer:
    try:
        img = Image.open(io.BytesIO(payload))
        width, height = img.size
        if width * height > settings.max_image_pixels:
            raise InvalidConfiguration(
                f"Image of {width}x{height} exceeds the {settings.max_image_pixels} pixel limit"
            )
        return PixelBuffer.from_image(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise InvalidConfiguration(f"Unreadable image: {exc}") from exc


def downsample(buffer: PixelBuffer, dot_width: int, method: str = "nearest") -> PixelBuffer:
    """Shrink ``buffer`` so every ``dot_width`` square becomes one pixel."""
    if dot_width < 1:
        raise InvalidConfiguration(f"Dot width must be at least 1, got {dot_width}")
    try:
        resample = _DOWNSAMPLE_FILTERS[method.lower()]
    except KeyError:
        raise InvalidConfiguration(f"Unknown downsample method: {method}") from None
    if dot_width == 1:
        return buffer.copy()

    width = max(1, buffer.width // dot_width)
    height = max(1, buffer.height // dot_width)
    img = buffer.to_image().resize((width, height), resample=resample)
    return PixelBuffer.from_image(img)
