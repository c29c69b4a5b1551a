"""Shared fixtures: synthetic images, fake generation clients and catalogs."""

import asyncio
import io
from typing import List, Optional

import numpy as np
import pytest
from PIL import Image

from models.generation_models import GenerationResult
from models.round_models import ReferenceImage
from services.game.reference_catalog import ReferenceCatalog
from utils.media_validation import build_data_uri


def png_bytes(array: np.ndarray) -> bytes:
    mode = "RGBA" if array.shape[-1] == 4 else "RGB"
    out = io.BytesIO()
    Image.fromarray(array.astype(np.uint8), mode=mode).save(out, format="PNG")
    return out.getvalue()


def solid(color, size=(256, 256)) -> np.ndarray:
    width, height = size
    array = np.zeros((height, width, len(color)), dtype=np.uint8)
    array[...] = color
    return array


class FirstChoice:
    """Deterministic random source that always picks the first candidate."""

    def choice(self, seq):
        return seq[0]


class FakeGenerationClient:
    """Returns canned results and records every prompt it receives."""

    def __init__(self, image_ref: str = "data:image/png;base64,AAAA", seed: int = 42, error: Optional[Exception] = None):
        self.image_ref = image_ref
        self.seed = seed
        self.error = error
        self.prompts: List[str] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate(self, prompt_text: str) -> GenerationResult:
        self.prompts.append(prompt_text)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return GenerationResult(image_ref=self.image_ref, seed=self.seed)


class FixedScoringEngine:
    def __init__(self, score: int = 63):
        self.value = score
        self.calls = []

    def score(self, reference_ref, candidate_ref) -> int:
        self.calls.append((reference_ref, candidate_ref))
        return self.value


@pytest.fixture
def catalog() -> ReferenceCatalog:
    return ReferenceCatalog(
        ReferenceImage(id=scene, title=scene.title(), description=f"A {scene}.", image_ref=f"/refs/{scene}.jpg")
        for scene in ("city", "forest", "mountain")
    )


@pytest.fixture
def reference_dir(tmp_path):
    """Directory holding JPEG artwork for the default catalog."""
    colors = {"city": (200, 40, 160), "forest": (20, 140, 40), "mountain": (120, 130, 150)}
    for scene, color in colors.items():
        Image.fromarray(solid(color, (64, 64))).save(tmp_path / f"{scene}.jpg", format="JPEG")
    return tmp_path


@pytest.fixture
def data_uri():
    def make(array: np.ndarray) -> str:
        return build_data_uri(png_bytes(array), "image/png")

    return make
