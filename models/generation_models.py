from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GeneratedImage:
    """Raw bytes returned by the upstream image provider.

    Attributes:
        content: Image bytes exactly as received.
        content_type: MIME type reported by the provider (image/jpeg when absent).
        seed: Seed sent with the request that produced this image.
    """

    content: bytes
    content_type: str
    seed: int


@dataclass(frozen=True)
class GenerationResult:
    """What the round pipeline receives from a generation client."""

    image_ref: str
    seed: int
