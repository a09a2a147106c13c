from __future__ import annotations

import io

from flask import send_file
from PIL import Image

from ..processing.buffer import PixelBuffer


def encode_png(img: Image.Image | PixelBuffer) -> bytes:
    if isinstance(img, PixelBuffer):
        img = img.to_image()
    buffer = io.BytesIO()
    img.save(buffer, "PNG", optimize=True)
    return buffer.getvalue()


def send_png(img: Image.Image | PixelBuffer, *, truncated: bool = False):
    response = send_file(io.BytesIO(encode_png(img)), mimetype="image/png")
    if truncated:
        response.headers["X-Palette-Truncated"] = "1"
    return response
