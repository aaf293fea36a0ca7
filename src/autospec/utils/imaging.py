"""
Screenshot annotation helpers.
"""

import io
from typing import Tuple

from PIL import Image, ImageDraw

CURSOR_RADIUS = 4
CURSOR_COLOR = "red"


def _pil_to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def draw_cursor(screenshot: bytes, cursor_xy: Tuple[float, float], radius: int = CURSOR_RADIUS) -> bytes:
    """Return a PNG with a filled dot drawn at the mouse position."""
    with Image.open(io.BytesIO(screenshot)) as img:
        out = img.convert("RGB")

    x, y = cursor_xy
    d = ImageDraw.Draw(out)
    d.ellipse([x - radius, y - radius, x + radius, y + radius], fill=CURSOR_COLOR)
    return _pil_to_png_bytes(out)
