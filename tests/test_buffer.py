import io
from dataclasses import replace

import pytest
from PIL import Image

from palette_reducer.config import SETTINGS
from palette_reducer.errors import InvalidConfiguration
from palette_reducer.processing.buffer import PixelBuffer, clamp_byte, decode_image, downsample


def test_pixel_buffer_rejects_wrong_length():
    with pytest.raises(InvalidConfiguration):
        PixelBuffer(2, 2, bytearray(15))


def test_from_image_converts_to_rgba():
    img = Image.new("RGB", (3, 2), color=(10, 20, 30))

    buffer = PixelBuffer.from_image(img)

    assert buffer.size == (3, 2)
    assert len(buffer.data) == 3 * 2 * 4
    assert buffer.pixel(2, 1) == (10, 20, 30, 255)


def test_copy_does_not_alias_data():
    buffer = PixelBuffer(1, 1, bytearray([1, 2, 3, 4]))

    clone = buffer.copy()
    clone.data[0] = 200

    assert buffer.data[0] == 1


def test_alpha_outside_buffer_reads_transparent():
    buffer = PixelBuffer(1, 1, bytearray([1, 2, 3, 255]))

    assert buffer.alpha(0, 0) == 255
    assert buffer.alpha(-1, 0) == 0
    assert buffer.alpha(0, 1) == 0


def test_to_image_keeps_pixels():
    buffer = PixelBuffer(2, 1, bytearray([255, 0, 0, 255, 0, 0, 255, 128]))

    img = buffer.to_image()

    assert img.mode == "RGBA"
    assert img.getpixel((1, 0)) == (0, 0, 255, 128)


@pytest.mark.parametrize("value, expected", [(-3.0, 0), (300.0, 255), (12.4, 12), (12.6, 13), (12.5, 12)])
def test_clamp_byte(value, expected):
    assert clamp_byte(value) == expected


def test_decode_image_rejects_garbage():
    with pytest.raises(InvalidConfiguration):
        decode_image(b"not an image")


def test_decode_image_reads_png():
    payload = io.BytesIO()
    Image.new("RGBA", (4, 3), color=(1, 2, 3, 4)).save(payload, "PNG")

    buffer = decode_image(payload.getvalue())

    assert buffer.size == (4, 3)
    assert buffer.pixel(0, 0) == (1, 2, 3, 4)


def test_downsample_by_dot_width():
    buffer = PixelBuffer.from_image(Image.new("RGBA", (8, 6), color=(50, 60, 70, 255)))

    small = downsample(buffer, 2)

    assert small.size == (4, 3)
    assert small.pixel(3, 2) == (50, 60, 70, 255)


def test_downsample_dot_width_one_copies():
    buffer = PixelBuffer(1, 1, bytearray([1, 2, 3, 4]))

    result = downsample(buffer, 1, "box")

    assert result == buffer
    assert result.data is not buffer.data


def test_downsample_rejects_unknown_method():
    buffer = PixelBuffer(1, 1, bytearray([1, 2, 3, 4]))

    with pytest.raises(InvalidConfiguration):
        downsample(buffer, 2, "lanczos")


def _truncated_png() -> bytes:
    img = Image.frombytes("RGBA", (64, 64), bytes((i * i * 31 + i * 7) % 251 for i in range(64 * 64 * 4)))
    payload = io.BytesIO()
    img.save(payload, "PNG")
    data = payload.getvalue()
    return data[: len(data) // 2]


def test_decode_image_rejects_truncated_png():
    with pytest.raises(InvalidConfiguration):
        decode_image(_truncated_png())


def test_decode_image_enforces_pixel_limit():
    payload = io.BytesIO()
    Image.new("RGBA", (8, 8)).save(payload, "PNG")
    settings = replace(SETTINGS, max_image_pixels=32)

    with pytest.raises(InvalidConfiguration):
        decode_image(payload.getvalue(), settings)
