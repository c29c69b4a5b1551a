"""Decode image references into fixed-size RGBA pixel buffers.

An image reference may be raw bytes, a base64 `data:` URI (what generation
clients return) or a filesystem path (how catalog artwork is stored). Every
image is stretched to a square of the requested side regardless of its aspect
ratio so buffers from different pipelines line up pixel for pixel.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from utils.errors import DecodeError
from utils.media_validation import parse_data_uri

ImageRef = Union[bytes, str, Path]


def load_image_bytes(ref: ImageRef) -> bytes:
    """Return the encoded image bytes behind an image reference."""
    if isinstance(ref, (bytes, bytearray)):
        return bytes(ref)
    if isinstance(ref, str) and ref.startswith("data:"):
        try:
            _, content = parse_data_uri(ref)
        except ValueError as exc:
            raise DecodeError(f"Malformed image data URI: {exc}") from exc
        return content
    try:
        return Path(ref).read_bytes()
    except (OSError, ValueError, TypeError) as exc:
        raise DecodeError(f"Unable to read image file {ref!r}") from exc


def decode_image(ref: ImageRef, size: int = 256) -> np.ndarray:
    """Decode an image reference into a `(size, size, 4)` uint8 RGBA array.

    Raises:
        DecodeError: If the bytes are empty, corrupt, in an unsupported format, or zero-sized.
    """
    raw = load_image_bytes(ref)
    if not raw:
        raise DecodeError("Image data is empty")

    try:
        with Image.open(io.BytesIO(raw)) as src:
            if src.width == 0 or src.height == 0:
                raise DecodeError("Image has zero size")
            with src.convert("RGBA") as rgba:
                with rgba.resize((size, size), Image.BILINEAR) as resized:
                    return np.array(resized, dtype=np.uint8)
    except DecodeError:
        raise
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise DecodeError("Decoded bytes are not a supported image format") from exc
