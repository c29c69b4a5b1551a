import random
from collections import Counter

import pytest

from models.round_models import ReferenceImage
from services.game.reference_catalog import ReferenceCatalog

from conftest import FirstChoice


def test_default_catalog_has_three_scenes_rooted_in_image_dir(tmp_path):
    catalog = ReferenceCatalog.default(tmp_path)
    assert [ref.id for ref in catalog] == ["city", "forest", "mountain"]
    city = catalog.get("city")
    assert city.title == "Neon City Sunset"
    assert city.image_ref == str(tmp_path / "city.jpg")
    assert len(city.prompt_hints) == 3


def test_pick_random_excludes_given_id(catalog):
    rng = random.Random(7)
    for _ in range(200):
        assert catalog.pick_random(rng, exclude_id="city").id != "city"


def test_pick_random_without_exclusion_covers_whole_catalog(catalog):
    rng = random.Random(3)
    counts = Counter(catalog.pick_random(rng).id for _ in range(300))
    assert set(counts) == {"city", "forest", "mountain"}


def test_pick_random_is_a_function_of_the_random_source(catalog):
    first = [catalog.pick_random(random.Random(11)).id for _ in range(5)]
    second = [catalog.pick_random(random.Random(11)).id for _ in range(5)]
    assert first == second
    assert catalog.pick_random(FirstChoice(), exclude_id="city").id == "forest"


def test_single_entry_catalog_falls_back_to_full_set():
    only = ReferenceImage(id="solo", title="Solo", description="", image_ref="solo.jpg")
    catalog = ReferenceCatalog([only])
    assert catalog.pick_random(random.Random(), exclude_id="solo") is only


def test_rejects_empty_and_duplicate_catalogs():
    with pytest.raises(ValueError):
        ReferenceCatalog([])
    dup = ReferenceImage(id="x", title="", description="", image_ref="x.jpg")
    with pytest.raises(ValueError):
        ReferenceCatalog([dup, dup])


def test_get_unknown_id_raises_key_error(catalog):
    with pytest.raises(KeyError):
        catalog.get("ocean")
