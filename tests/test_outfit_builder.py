"""Best-first outfit enumeration, locks, exhaustion and item removal."""

from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import List, Set, Tuple

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.outfit_builder import (
    STATUS_ALL_LOCKED,
    STATUS_EXHAUSTED,
    STATUS_INSUFFICIENT,
    STATUS_OK,
    OutfitEnumerator,
)
from models.color_theory import RGB
from models.wardrobe_item import WardrobeItem
from tools.outfit_store import OutfitStore


class FakeOutfitStore(OutfitStore):
    """Answers ``combination_exists`` from an in-memory set and counts calls."""

    def __init__(self, saved: Set[Tuple[str, str, str]] | None = None) -> None:
        self.saved = set(saved or ())
        self.lookups = 0

    def combination_exists(self, user_id: str, top_url: str, bottom_url: str, shoes_url: str) -> bool:
        self.lookups += 1
        return (top_url, bottom_url, shoes_url) in self.saved


def make_item(url: str, category: str, rgb) -> WardrobeItem:
    return WardrobeItem(url=url, category=category, brand="Brand", size="M", rgb=RGB(*rgb))


@pytest.fixture()
def wardrobe() -> List[WardrobeItem]:
    return [
        make_item("top-red", "top", (255, 0, 0)),
        make_item("top-black", "top", (10, 10, 10)),
        make_item("top-grey", "top", (150, 150, 150)),
        make_item("bottom-navy", "bottom", (20, 30, 90)),
        make_item("bottom-khaki", "bottom", (160, 150, 130)),
        make_item("bottom-white", "bottom", (240, 240, 240)),
        make_item("shoes-grey", "shoes", (140, 140, 140)),
        make_item("shoes-yellow", "shoes", (250, 230, 20)),
        make_item("shoes-black", "shoes", (5, 5, 5)),
    ]


def combination(result) -> Tuple[str, str, str]:
    return result.outfit.combination


def test_casual_generate_picks_best_per_slot(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())

    result = enumerator.generate()

    assert result.status == STATUS_OK
    assert combination(result) == ("top-grey", "bottom-khaki", "shoes-grey")
    assert result.outfit.top.score == max(item.score for item in enumerator.ranked["top"])
    assert 0.0 <= result.outfit.overall_score <= 100.0


def test_advance_visits_every_combination_before_repeating(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    seen = [combination(enumerator.generate())]

    for _ in range(26):
        result = enumerator.advance()
        assert result.status == STATUS_OK
        seen.append(combination(result))

    assert len(set(seen)) == 27
    assert combination(enumerator.advance()) == seen[0]


def test_generate_skips_saved_combinations(wardrobe: List[WardrobeItem]) -> None:
    store = FakeOutfitStore({("top-grey", "bottom-khaki", "shoes-grey")})
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", store)

    result = enumerator.generate()

    assert result.status == STATUS_OK
    assert combination(result) != ("top-grey", "bottom-khaki", "shoes-grey")
    assert result.attempts == 2


def test_advance_skips_saved_combinations(wardrobe: List[WardrobeItem]) -> None:
    store = FakeOutfitStore()
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", store)
    enumerator.generate()
    reference = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    reference.generate()
    second = combination(reference.advance())
    third = combination(reference.advance())
    store.saved.add(second)

    assert combination(enumerator.advance()) == third


def test_exhaustion_terminates_and_returns_best(wardrobe: List[WardrobeItem]) -> None:
    reference = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    everything = {combination(reference.generate())}
    for _ in range(26):
        everything.add(combination(reference.advance()))
    store = FakeOutfitStore(everything)
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", store)

    generated = enumerator.generate()
    assert generated.status == STATUS_EXHAUSTED
    assert generated.exhausted
    assert combination(generated) == ("top-grey", "bottom-khaki", "shoes-grey")

    advanced = enumerator.advance()
    assert advanced.status == STATUS_EXHAUSTED
    assert advanced.attempts == 27
    assert store.lookups == 54


def test_locked_slot_never_changes(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    enumerator.generate()
    lock = enumerator.toggle_lock("top")
    assert lock.locked and not lock.ready_to_save

    seen = set()
    for _ in range(12):
        result = enumerator.advance()
        assert result.outfit.top.url == "top-grey"
        assert result.outfit.top_locked
        seen.add(combination(result))

    assert len(seen) == 9


def test_locks_survive_generate(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    enumerator.generate()
    enumerator.advance()
    enumerator.toggle_lock("shoes")
    locked_shoes = enumerator.current.shoes.url

    result = enumerator.generate()

    assert result.outfit.shoes.url == locked_shoes
    assert result.outfit.shoes_locked


def test_all_locked_advance_is_a_no_op(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    first = enumerator.generate().outfit
    for slot in ("top", "bottom", "shoes"):
        last = enumerator.toggle_lock(slot)
    assert last.ready_to_save

    result = enumerator.advance()

    assert result.status == STATUS_ALL_LOCKED
    assert result.ready_to_save
    assert result.outfit.combination == first.combination


def test_toggle_lock_requires_an_outfit(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())

    with pytest.raises(ValueError):
        enumerator.toggle_lock("top")

    enumerator.generate()
    assert enumerator.toggle_lock("top").locked
    assert not enumerator.toggle_lock("top").locked
    with pytest.raises(ValueError):
        enumerator.toggle_lock("hat")


def test_missing_category_reports_insufficient(wardrobe: List[WardrobeItem]) -> None:
    no_shoes = [item for item in wardrobe if item.category != "shoes"]
    enumerator = OutfitEnumerator("user-1", no_shoes, "casual", FakeOutfitStore())

    result = enumerator.generate()

    assert result.status == STATUS_INSUFFICIENT
    assert result.outfit is None
    assert enumerator.advance().status == STATUS_INSUFFICIENT


def test_removed_item_never_returns(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    enumerator.generate()
    enumerator.toggle_lock("top")

    assert enumerator.remove_item("top-grey")
    assert not enumerator.remove_item("top-grey")
    assert not enumerator.current.top_locked

    for _ in range(20):
        assert enumerator.advance().outfit.top.url != "top-grey"



def full_walk(wardrobe: List[WardrobeItem]) -> List[Tuple[str, str, str]]:
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    walk = [combination(enumerator.generate())]
    walk.extend(combination(enumerator.advance()) for _ in range(26))
    return walk


def test_removing_current_top_resumes_walk_at_next_top(wardrobe: List[WardrobeItem]) -> None:
    walk = full_walk(wardrobe)
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    removed = combination(enumerator.generate())[0]

    enumerator.remove_item(removed)
    rest = [combination(enumerator.advance()) for _ in range(18)]

    assert rest == [combo for combo in walk if combo[0] != removed]


def test_removing_current_shoes_skips_no_remaining_combination(wardrobe: List[WardrobeItem]) -> None:
    walk = full_walk(wardrobe)
    enumerator = OutfitEnumerator("user-1", wardrobe, "casual", FakeOutfitStore())
    enumerator.generate()
    removed = combination(enumerator.advance())[2]

    enumerator.remove_item(removed)
    rest = [combination(enumerator.advance()) for _ in range(17)]

    assert rest == [combo for combo in walk[2:] if combo[2] != removed]
    assert len(set(rest) | {walk[0]}) == 18


def test_removal_keeps_random_scores(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "random", FakeOutfitStore(), rng=random.Random(5))
    enumerator.generate()
    before = {slot: [item.url for item in items] for slot, items in enumerator.ranked.items()}
    current = enumerator.current.combination
    removed = next(url for url in before["bottom"] if url != current[1])

    enumerator.remove_item(removed)

    assert [item.url for item in enumerator.ranked["bottom"]] == [url for url in before["bottom"] if url != removed]
    assert [item.url for item in enumerator.ranked["top"]] == before["top"]
    assert [item.url for item in enumerator.ranked["shoes"]] == before["shoes"]


def test_streetwear_prefers_light_top_and_dark_bottoms(wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", wardrobe, "streetwear", FakeOutfitStore())

    result = enumerator.generate()

    assert result.outfit.bottom.url == "bottom-navy"
    assert result.outfit.shoes.url == "shoes-black"
    assert result.outfit.top.url == "top-grey"


def test_random_style_is_deterministic_with_seed(wardrobe: List[WardrobeItem]) -> None:
    first = OutfitEnumerator("user-1", wardrobe, "random", FakeOutfitStore(), rng=random.Random(3))
    second = OutfitEnumerator("user-1", wardrobe, "random", FakeOutfitStore(), rng=random.Random(3))

    assert combination(first.generate()) == combination(second.generate())


@pytest.fixture()
def sandwich_wardrobe() -> List[WardrobeItem]:
    return [
        make_item("top-white", "top", (250, 250, 250)),
        make_item("top-black", "top", (0, 0, 0)),
        make_item("bottom-grey", "bottom", (128, 128, 128)),
        make_item("bottom-black", "bottom", (10, 10, 10)),
        make_item("bottom-white", "bottom", (245, 245, 245)),
        make_item("shoes-white", "shoes", (255, 255, 255)),
        make_item("shoes-red", "shoes", (250, 0, 0)),
    ]


def test_sandwich_matches_top_and_shoes_with_contrasting_bottom(sandwich_wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", sandwich_wardrobe, "sandwich", FakeOutfitStore())

    result = enumerator.generate()

    assert combination(result) == ("top-white", "bottom-black", "shoes-white")
    assert len(enumerator.candidates) == 4


def test_sandwich_advance_cycles_candidates(sandwich_wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", sandwich_wardrobe, "sandwich", FakeOutfitStore())
    seen = [combination(enumerator.generate())]
    for _ in range(3):
        seen.append(combination(enumerator.advance()))

    assert len(set(seen)) == 4
    assert combination(enumerator.advance()) == seen[0]


def test_sandwich_respects_locks(sandwich_wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", sandwich_wardrobe, "sandwich", FakeOutfitStore())
    enumerator.generate()
    enumerator.toggle_lock("top")

    for _ in range(5):
        result = enumerator.advance()
        assert result.outfit.top.url == "top-white"
        assert result.outfit.top_locked


def test_sandwich_exhaustion(sandwich_wardrobe: List[WardrobeItem]) -> None:
    reference = OutfitEnumerator("user-1", sandwich_wardrobe, "sandwich", FakeOutfitStore())
    reference.generate()
    saved = {candidate.combination for candidate in reference.candidates}
    enumerator = OutfitEnumerator("user-1", sandwich_wardrobe, "sandwich", FakeOutfitStore(saved))

    result = enumerator.generate()

    assert result.status == STATUS_EXHAUSTED
    assert combination(result) == ("top-white", "bottom-black", "shoes-white")


def test_sandwich_removal_keeps_walk_position(sandwich_wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", sandwich_wardrobe, "sandwich", FakeOutfitStore())
    first = combination(enumerator.generate())

    assert enumerator.remove_item("shoes-red")

    assert len(enumerator.candidates) == 2
    assert all(candidate.shoes.url != "shoes-red" for candidate in enumerator.candidates)
    second = combination(enumerator.advance())
    assert second != first
    assert second[2] != "shoes-red"
    assert combination(enumerator.advance()) == first


def test_sandwich_removed_bottom_is_replaced(sandwich_wardrobe: List[WardrobeItem]) -> None:
    enumerator = OutfitEnumerator("user-1", sandwich_wardrobe, "sandwich", FakeOutfitStore())
    enumerator.generate()

    enumerator.remove_item("bottom-black")

    assert len(enumerator.candidates) == 4
    assert all(candidate.bottom.url != "bottom-black" for candidate in enumerator.candidates)
