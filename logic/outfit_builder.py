"""Deterministic best-first outfit enumeration with slot locks.

The enumerator keeps one generation cycle's ranked item lists and walks the
combination space from the highest-scored outfit downwards, skipping any
combination the outfit store already holds. Locked slots never change while
advancing.
"""
from __future__ import annotations

import itertools
import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from logic.similarity import SimilarityMatrix
from logic.style_scoring import SandwichScorer, StyleScorer, build_scorer
from models.outfit import GeneratedOutfit
from models.styles import StyleProfile, get_style
from models.taxonomy import SLOTS, empty_slot_map, validate_slot
from models.wardrobe_item import WardrobeItem
from tools.outfit_store import OutfitStore

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_EXHAUSTED = "exhausted"
STATUS_INSUFFICIENT = "insufficient_items"
STATUS_ALL_LOCKED = "all_locked"

EXHAUSTED_MESSAGE = "All possible combinations have been saved! Here's the highest rated outfit."
INSUFFICIENT_MESSAGE = "Add at least one top, one bottom and one pair of shoes to generate outfits."
ALL_LOCKED_MESSAGE = "Every item is locked. Save the outfit or unlock an item to see more."

_UNSET = object()


@dataclass(frozen=True)
class EnumerationResult:
    """Outcome of a generate or advance step."""

    outfit: Optional[GeneratedOutfit]
    status: str
    message: str = ""
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.status == STATUS_EXHAUSTED

    @property
    def ready_to_save(self) -> bool:
        return self.outfit is not None and self.outfit.all_locked


@dataclass(frozen=True)
class LockResult:
    outfit: GeneratedOutfit
    slot: str
    locked: bool
    ready_to_save: bool


def partition_items(items: Iterable[WardrobeItem]) -> Dict[str, List[WardrobeItem]]:
    """Group items by category, keeping their input order."""

    grouped = empty_slot_map()
    for item in items:
        grouped[item.category].append(item)
    return grouped


class OutfitEnumerator:
    """Generates and steps through candidate outfits for one user and style."""

    def __init__(
        self,
        user_id: str,
        items: Sequence[WardrobeItem],
        style: str | StyleProfile,
        outfit_store: OutfitStore,
        scorer: Optional[StyleScorer] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.user_id = user_id
        self.style = get_style(style)
        self.scorer = scorer or build_scorer(self.style, rng=rng)
        self.outfit_store = outfit_store
        self._items: List[WardrobeItem] = list(items)
        self.ranked: Dict[str, List[WardrobeItem]] = empty_slot_map()
        self.similarity: Optional[SimilarityMatrix] = None
        self.candidates: List[GeneratedOutfit] = []
        self._candidate_signature: object = _UNSET
        self._candidate_index = -1
        self._positions: Dict[str, int] = {slot: 0 for slot in SLOTS}
        self.current: Optional[GeneratedOutfit] = None

    @property
    def items(self) -> List[WardrobeItem]:
        return list(self._items)

    @property
    def pairwise(self) -> bool:
        return isinstance(self.scorer, SandwichScorer)

    def _has_every_category(self) -> bool:
        grouped = partition_items(self._items)
        return all(grouped[slot] for slot in SLOTS)

    def _insufficient(self) -> EnumerationResult:
        self.current = None
        logger.info("Insufficient wardrobe items for style=%s", self.style.name)
        return EnumerationResult(outfit=None, status=STATUS_INSUFFICIENT, message=INSUFFICIENT_MESSAGE)

    def _locked_items(self) -> Dict[str, Optional[WardrobeItem]]:
        locked: Dict[str, Optional[WardrobeItem]] = {slot: None for slot in SLOTS}
        if self.current is None:
            return locked
        urls = {item.url for item in self._items}
        for slot in SLOTS:
            item = self.current.item(slot)
            if self.current.is_locked(slot) and item is not None and item.url in urls:
                locked[slot] = item
        return locked

    def _is_saved(self, outfit: GeneratedOutfit) -> bool:
        combination = outfit.combination
        if combination is None:
            return False
        return self.outfit_store.combination_exists(self.user_id, *combination)

    def _rank(self) -> None:
        """Run one generation cycle: rebuild the similarity table and rescore."""

        grouped = partition_items(self._items)
        self.similarity = SimilarityMatrix(self._items) if self.pairwise else None
        if self.pairwise:
            self.ranked = grouped
        else:
            self.ranked = {slot: self.scorer.rank_items(grouped[slot], slot) for slot in SLOTS}
        self._candidate_signature = _UNSET
        logger.info(
            "Ranked wardrobe for style=%s tops=%s bottoms=%s shoes=%s",
            self.style.name,
            len(grouped["top"]),
            len(grouped["bottom"]),
            len(grouped["shoes"]),
        )

    # Independent styles (Casual, Streetwear, Random)

    def _position_of(self, slot: str, item: Optional[WardrobeItem]) -> Optional[int]:
        if item is None:
            return None
        for index, candidate in enumerate(self.ranked[slot]):
            if candidate.url == item.url:
                return index
        return None

    def _outfit_at(self, positions: Dict[str, int], locks: Dict[str, bool]) -> GeneratedOutfit:
        return GeneratedOutfit(
            top=self.ranked["top"][positions["top"]],
            bottom=self.ranked["bottom"][positions["bottom"]],
            shoes=self.ranked["shoes"][positions["shoes"]],
            top_locked=locks["top"],
            bottom_locked=locks["bottom"],
            shoes_locked=locks["shoes"],
        )

    def _generate_independent(self, locked: Dict[str, Optional[WardrobeItem]]) -> EnumerationResult:
        choices: Dict[str, Sequence[int]] = {}
        locks: Dict[str, bool] = {}
        for slot in SLOTS:
            position = self._position_of(slot, locked[slot])
            locks[slot] = position is not None
            choices[slot] = [position] if position is not None else range(len(self.ranked[slot]))

        attempts = 0
        for top, bottom, shoes in itertools.product(choices["top"], choices["bottom"], choices["shoes"]):
            attempts += 1
            positions = {"top": top, "bottom": bottom, "shoes": shoes}
            outfit = self._outfit_at(positions, locks)
            if not self._is_saved(outfit):
                self._positions = positions
                self.current = outfit
                logger.info("Generated unsaved %s outfit after %s attempts", self.style.name, attempts)
                return EnumerationResult(outfit=outfit, status=STATUS_OK, attempts=attempts)

        positions = {slot: choices[slot][0] for slot in SLOTS}
        return self._exhausted(self._outfit_at(positions, locks), attempts, positions=positions)

    def _advance_independent(self) -> EnumerationResult:
        locks = self.current.locks
        free = [slot for slot in SLOTS if not locks[slot]]
        positions = dict(self._positions)
        limit = math.prod(len(self.ranked[slot]) for slot in free)

        for attempt in range(1, limit + 1):
            # Odometer step over the unlocked slots, shoes turning fastest.
            for slot in reversed(free):
                positions[slot] = (positions[slot] + 1) % len(self.ranked[slot])
                if positions[slot] != 0:
                    break
            outfit = self._outfit_at(positions, locks)
            if not self._is_saved(outfit):
                self._positions = dict(positions)
                self.current = outfit
                return EnumerationResult(outfit=outfit, status=STATUS_OK, attempts=attempt)

        fallback = dict(self._positions)
        for slot in free:
            fallback[slot] = 0
        return self._exhausted(self._outfit_at(fallback, locks), limit, positions=fallback)

    # Sandwich style

    def _build_sandwich_candidates(self, locked: Dict[str, Optional[WardrobeItem]]) -> List[GeneratedOutfit]:
        scorer: SandwichScorer = self.scorer  # type: ignore[assignment]
        tops = [locked["top"]] if locked["top"] else self.ranked["top"]
        shoes = [locked["shoes"]] if locked["shoes"] else self.ranked["shoes"]
        bottoms = [locked["bottom"]] if locked["bottom"] else self.ranked["bottom"]

        candidates = []
        for pair in scorer.rank_pairs(tops, shoes, self.similarity):
            bottom = scorer.best_bottom(bottoms, pair.top, pair.shoes)
            if bottom is None:
                continue
            candidates.append(
                GeneratedOutfit(
                    top=pair.top,
                    bottom=bottom,
                    shoes=pair.shoes,
                    top_locked=locked["top"] is not None,
                    bottom_locked=locked["bottom"] is not None,
                    shoes_locked=locked["shoes"] is not None,
                )
            )
        return candidates

    @staticmethod
    def _signature(locked: Dict[str, Optional[WardrobeItem]]) -> Tuple[Optional[str], ...]:
        return tuple(locked[slot].url if locked[slot] else None for slot in SLOTS)

    def _refresh_candidates(self, locked: Dict[str, Optional[WardrobeItem]]) -> None:
        signature = self._signature(locked)
        if signature == self._candidate_signature:
            return
        self.candidates = self._build_sandwich_candidates(locked)
        self._candidate_signature = signature
        self._candidate_index = -1
        current = self.current.combination if self.current else None
        for index, candidate in enumerate(self.candidates):
            if candidate.combination == current:
                self._candidate_index = index
                break

    def _generate_sandwich(self, locked: Dict[str, Optional[WardrobeItem]]) -> EnumerationResult:
        self._refresh_candidates(locked)
        for index, outfit in enumerate(self.candidates):
            if not self._is_saved(outfit):
                self._candidate_index = index
                self.current = outfit
                logger.info("Starting sandwich walk at pair %s of %s", index, len(self.candidates))
                return EnumerationResult(outfit=outfit, status=STATUS_OK, attempts=index + 1)
        self._candidate_index = 0
        return self._exhausted(self.candidates[0], len(self.candidates))

    def _advance_sandwich(self) -> EnumerationResult:
        self._refresh_candidates(self._locked_items())
        count = len(self.candidates)
        index = self._candidate_index
        for attempt in range(1, count + 1):
            index = (index + 1) % count
            outfit = self.candidates[index]
            if not self._is_saved(outfit):
                self._candidate_index = index
                self.current = outfit
                return EnumerationResult(outfit=outfit, status=STATUS_OK, attempts=attempt)
        self._candidate_index = 0
        return self._exhausted(self.candidates[0], count)

    def _exhausted(
        self, outfit: GeneratedOutfit, attempts: int, positions: Optional[Dict[str, int]] = None
    ) -> EnumerationResult:
        if positions is not None:
            self._positions = positions
        self.current = outfit
        logger.warning("All %s combinations for style=%s are saved", attempts, self.style.name)
        return EnumerationResult(outfit=outfit, status=STATUS_EXHAUSTED, message=EXHAUSTED_MESSAGE, attempts=attempts)

    # Public operations

    def generate(self) -> EnumerationResult:
        """Rescore the wardrobe and select the best unsaved outfit.

        Slots locked on the current outfit stay fixed. When every combination is
        already saved the best one is returned with ``status="exhausted"``.
        """

        if not self._has_every_category():
            return self._insufficient()
        locked = self._locked_items()
        self._rank()
        if self.pairwise:
            return self._generate_sandwich(locked)
        return self._generate_independent(locked)

    def advance(self) -> EnumerationResult:
        """Step to the next unsaved outfit without rescoring."""

        if not self._has_every_category():
            return self._insufficient()
        if self.current is None:
            return self.generate()
        if self.current.all_locked:
            return EnumerationResult(outfit=self.current, status=STATUS_ALL_LOCKED, message=ALL_LOCKED_MESSAGE)
        if self.pairwise:
            return self._advance_sandwich()
        return self._advance_independent()

    def toggle_lock(self, slot: str) -> LockResult:
        """Flip one slot's lock on the current outfit."""

        slot = validate_slot(slot)
        if self.current is None or self.current.item(slot) is None:
            raise ValueError(f"Cannot lock empty slot '{slot}'")
        outfit = self.current.with_lock(slot, not self.current.is_locked(slot))
        self.current = outfit
        logger.info("Slot %s locked=%s", slot, outfit.is_locked(slot))
        return LockResult(outfit=outfit, slot=slot, locked=outfit.is_locked(slot), ready_to_save=outfit.all_locked)

    def remove_item(self, url: str) -> bool:
        """Drop an item from every future candidate; returns False if unknown."""

        remaining = [item for item in self._items if item.url != url]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        if self.current is not None:
            for slot in SLOTS:
                item = self.current.item(slot)
                if item is not None and item.url == url and self.current.is_locked(slot):
                    self.current = self.current.with_lock(slot, False)
        if not self._has_every_category():
            self.ranked = partition_items(self._items)
            return True
        # Scores from the last generation cycle are kept.
        if self.pairwise:
            self.ranked = {slot: [i for i in self.ranked[slot] if i.url != url] for slot in SLOTS}
            self._drop_from_candidates(url)
        else:
            self._drop_from_walk(url)
        logger.info("Removed item from %s candidates", self.style.name)
        return True

    def _drop_from_walk(self, url: str) -> None:
        removed_slot = removed_index = None
        for slot in SLOTS:
            for index, item in enumerate(self.ranked[slot]):
                if item.url == url:
                    removed_slot, removed_index = slot, index
        if removed_slot is None:
            return
        self.ranked[removed_slot] = [i for i in self.ranked[removed_slot] if i.url != url]
        if self.current is None:
            return
        current = self.current.item(removed_slot)
        if current is None or current.url != url:
            for slot in SLOTS:
                position = self._position_of(slot, self.current.item(slot))
                if position is not None:
                    self._positions[slot] = position
            return

        # Park the odometer one step before the first combination that follows
        # the removed item, so the next advance resumes the walk there.
        free = [slot for slot in SLOTS if not self.current.is_locked(slot)]
        positions = dict(self._positions)
        positions[removed_slot] = removed_index
        if removed_slot in free:
            for slot in free[free.index(removed_slot) + 1:]:
                positions[slot] = 0
            for slot in reversed(free):
                positions[slot] -= 1
                if positions[slot] >= 0:
                    break
                positions[slot] = len(self.ranked[slot]) - 1
        self._positions = positions

    def _drop_from_candidates(self, url: str) -> None:
        scorer: SandwichScorer = self.scorer  # type: ignore[assignment]
        kept: List[GeneratedOutfit] = []
        index = -1
        for position, outfit in enumerate(self.candidates):
            if url in (outfit.top.url, outfit.shoes.url):
                continue
            if outfit.bottom.url == url:
                bottom = scorer.best_bottom(self.ranked["bottom"], outfit.top, outfit.shoes)
                if bottom is None:
                    continue
                outfit = replace(outfit, bottom=bottom, bottom_locked=False)
            if position <= self._candidate_index:
                index = len(kept)
            kept.append(outfit)
        if not kept:
            self._candidate_signature = _UNSET
            return
        self.candidates = kept
        self._candidate_index = index
        self._candidate_signature = self._signature(self._locked_items())


__all__ = [
    "STATUS_OK",
    "STATUS_EXHAUSTED",
    "STATUS_INSUFFICIENT",
    "STATUS_ALL_LOCKED",
    "EnumerationResult",
    "LockResult",
    "OutfitEnumerator",
    "partition_items",
]
