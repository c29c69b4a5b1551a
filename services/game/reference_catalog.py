"""Static catalog of reference scenes with injectable random selection."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Protocol, Sequence, TypeVar

from models.round_models import ReferenceImage

T = TypeVar("T")


class RandomSource(Protocol):
    def choice(self, seq: Sequence[T]) -> T: ...


# id -> (title, description, artwork filename, prompt hints)
DEFAULT_SCENES = (
    (
        "city",
        "Neon City Sunset",
        "A futuristic skyline soaked in neon hues as the sun dips below the horizon.",
        "city.jpg",
        (
            "futuristic neon skyline at sunset",
            "cyberpunk cityscape with glowing billboards",
            "sci fi city during golden hour",
        ),
    ),
    (
        "forest",
        "Emerald Canopy",
        "Sunbeams cutting through dense forest foliage with a dreamy green glow.",
        "forest.jpg",
        (
            "sunlit forest with misty light rays",
            "lush woodland with glowing green tones",
            "fantasy forest canopy at dawn",
        ),
    ),
    (
        "mountain",
        "Peaks in the Clouds",
        "Sharp mountains rising into dramatic clouds above a reflective valley.",
        "mountain.jpg",
        (
            "dramatic mountain range with clouds",
            "alpine peaks reflecting in water",
            "cinematic mountains under stormy sky",
        ),
    ),
)


class ReferenceCatalog:
    """Immutable set of reference images.

    Args:
        entries: Reference images; ids must be unique and at least one entry is required.
    """

    def __init__(self, entries: Iterable[ReferenceImage]) -> None:
        self._entries = tuple(entries)
        if not self._entries:
            raise ValueError("Reference catalog requires at least one entry.")
        self._by_id: Dict[str, ReferenceImage] = {}
        for entry in self._entries:
            if entry.id in self._by_id:
                raise ValueError(f"Duplicate reference id '{entry.id}'")
            self._by_id[entry.id] = entry

    @classmethod
    def default(cls, image_dir: Path) -> "ReferenceCatalog":
        """Build the built-in city, forest and mountain scenes rooted at `image_dir`."""
        return cls(
            ReferenceImage(
                id=scene_id,
                title=title,
                description=description,
                image_ref=str(Path(image_dir) / filename),
                prompt_hints=hints,
            )
            for scene_id, title, description, filename, hints in DEFAULT_SCENES
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ReferenceImage]:
        return iter(self._entries)

    def get(self, reference_id: str) -> ReferenceImage:
        """Return a reference or raise KeyError if missing."""
        entry = self._by_id.get(reference_id)
        if entry is None:
            raise KeyError(f"Reference {reference_id} not found")
        return entry

    def pick_random(self, rng: RandomSource, exclude_id: Optional[str] = None) -> ReferenceImage:
        """Choose uniformly among entries other than `exclude_id`.

        Falls back to the whole catalog when excluding would leave nothing to pick.
        """
        pool = [entry for entry in self._entries if entry.id != exclude_id] if exclude_id is not None else []
        return rng.choice(pool or list(self._entries))
