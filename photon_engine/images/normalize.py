"""Canonical square normalization for edit inputs.

Every image entering the edit history is drawn onto a fixed-size square
canvas: the larger side is scaled to the canvas edge, the image is centered,
and the remaining area is padded with the fill color. The result is always
re-encoded as PNG so history versions share one encoding.
"""

from __future__ import annotations

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import DecodeError
from .codec import EncodedImage, encode


CANONICAL_EDGE = 1024
CANONICAL_MEDIA_TYPE = "image/png"
FILL_COLOR = (0, 0, 0)


def fit_within(width: int, height: int, edge: int = CANONICAL_EDGE) -> tuple[int, int, int, int]:
    """Return ``(new_width, new_height, x, y)`` placing the image on the canvas."""
    if width <= 0 or height <= 0:
        raise DecodeError(f"Image has invalid dimensions {width}x{height}.")
    if width > height:
        new_width = edge
        new_height = max(1, round(height * edge / width))
    else:
        new_height = edge
        new_width = max(1, round(width * edge / height))
    x = (edge - new_width) // 2
    y = (edge - new_height) // 2
    return new_width, new_height, x, y


def load_image(raw_bytes: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(raw_bytes))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError("Image failed to load") from exc
    return ImageOps.exif_transpose(image)


def normalize(
    raw_bytes: bytes,
    *,
    edge: int = CANONICAL_EDGE,
    fill: tuple[int, int, int] = FILL_COLOR,
) -> EncodedImage:
    image = load_image(raw_bytes)
    new_width, new_height, x, y = fit_within(image.width, image.height, edge)

    canvas = Image.new("RGB", (edge, edge), fill)
    scaled = image.convert("RGBA").resize((new_width, new_height), Image.Resampling.LANCZOS)
    canvas.paste(scaled, (x, y), scaled)

    buffer = BytesIO()
    canvas.save(buffer, format="PNG")
    return encode(buffer.getvalue(), CANONICAL_MEDIA_TYPE)
