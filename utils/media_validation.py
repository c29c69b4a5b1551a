"""Validation helpers for prompts and image payloads."""

import base64
import binascii
from typing import Any, Tuple

from utils.errors import ValidationError

DEFAULT_IMAGE_TYPE = "image/jpeg"


def validate_prompt(value: Any, min_length: int = 4) -> str:
    """Return the trimmed prompt, or raise ValidationError when it is unusable."""
    if not isinstance(value, str):
        raise ValidationError("A longer prompt is required for generation.")
    prompt = value.strip()
    if len(prompt) < min_length:
        raise ValidationError("A longer prompt is required for generation.")
    return prompt


def build_data_uri(content: bytes, content_type: str = DEFAULT_IMAGE_TYPE) -> str:
    """Encode image bytes to a base64 data URI string."""
    encoded = base64.b64encode(content).decode("utf-8")
    return f"data:{content_type or DEFAULT_IMAGE_TYPE};base64,{encoded}"


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into its content type and decoded bytes.

    Raises:
        ValueError: If the string is not a base64 data URI or the payload is not valid base64.
    """
    if not uri.startswith("data:"):
        raise ValueError("Not a data URI")
    header, sep, payload = uri[5:].partition(",")
    if not sep:
        raise ValueError("Data URI has no payload separator")
    params = header.split(";")
    if "base64" not in params[1:]:
        raise ValueError("Only base64 data URIs are supported")
    content_type = params[0] or DEFAULT_IMAGE_TYPE
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid base64 data provided") from exc
    return content_type, content
