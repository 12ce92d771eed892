"""Decode and encode raster images exchanged with the editor.

Images travel either as raw bytes of an encoded file (PNG, JPEG, ...) or as
strings: ``data:`` URLs as produced by ``canvas.toDataURL`` or bare base64.
"""

import base64
import binascii
import io
import re
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from patchfill.errors import DecodeError
from patchfill.utils.vision import ensure_rgba

EncodedImage = Union[bytes, bytearray, str]

_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*?);base64,", re.IGNORECASE)


def _payload_from_string(text: str) -> bytes:
    text = text.strip()
    match = _DATA_URL.match(text)
    if match:
        text = text[match.end():]
    elif text.startswith("data:"):
        raise DecodeError("Only base64 data URLs are supported.")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError("Image string is not valid base64.") from exc


def decode_image(encoded: Union[EncodedImage, np.ndarray]) -> np.ndarray:
    """Decode an encoded image to an HxWx4 uint8 RGBA array."""

    if isinstance(encoded, np.ndarray):
        return ensure_rgba(encoded)
    if isinstance(encoded, str):
        payload = _payload_from_string(encoded)
    elif isinstance(encoded, (bytes, bytearray)):
        payload = bytes(encoded)
    else:
        raise DecodeError(f"Unsupported image input type: {type(encoded).__name__}")
    if not payload:
        raise DecodeError("Image payload is empty.")
    try:
        with Image.open(io.BytesIO(payload)) as image:
            rgba = image.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"Failed to decode image: {exc}") from exc
    return np.array(rgba, dtype=np.uint8)


def encode_png(pixels: np.ndarray, data_url: bool = False) -> EncodedImage:
    """Encode an RGBA array as PNG bytes, or as a PNG data URL string."""

    image = Image.fromarray(ensure_rgba(pixels))
    output = io.BytesIO()
    image.save(output, format="PNG")
    png = output.getvalue()
    if not data_url:
        return png
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
