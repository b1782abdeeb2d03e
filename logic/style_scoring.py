"""Deterministic per-style match scoring for wardrobe items."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from logic.similarity import SimilarityMatrix
from models.color_theory import (
    CHANNEL_MAX,
    DARK_RANGE,
    MAX_NORMALIZED_DISTANCE,
    NEUTRAL_RANGE,
    RGB,
    color_distance,
    range_midpoint,
)
from models.styles import CASUAL, RANDOM, SANDWICH, STREETWEAR, StyleProfile, get_style
from models.wardrobe_item import WardrobeItem

logger = logging.getLogger(__name__)

NEUTRAL_TARGET = range_midpoint(NEUTRAL_RANGE)
DARK_INTENSITY_LIMIT = DARK_RANGE[1].intensity
# Tunable: multiplier for bottoms/shoes already inside the dark range.
STREETWEAR_DARK_BOOST = 1.5


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def neutrality_score(rgb: RGB) -> float:
    """Closeness to the neutral midpoint as a percentage."""

    return (1.0 - color_distance(rgb, NEUTRAL_TARGET) / MAX_NORMALIZED_DISTANCE) * 100.0


def grayscale_score(rgb: RGB) -> float:
    """How close the channels are to each other as a percentage."""

    mean = rgb.intensity
    deviation = sum(abs(channel - mean) for channel in rgb) / 3.0
    return (1.0 - deviation / CHANNEL_MAX) * 100.0


def casual_score(rgb: RGB) -> float:
    return _clamp((neutrality_score(rgb) + grayscale_score(rgb)) / 2.0)


def brightness_score(rgb: RGB) -> float:
    return _clamp(rgb.intensity / CHANNEL_MAX * 100.0)


def darkness_score(rgb: RGB, boost: float = STREETWEAR_DARK_BOOST) -> float:
    base = (1.0 - rgb.intensity / CHANNEL_MAX) * 100.0
    if rgb.intensity <= DARK_INTENSITY_LIMIT:
        return _clamp(base * boost)
    return _clamp(base)


def sandwich_match_score(top: RGB, shoes: RGB) -> float:
    """Top/shoe similarity: 100 for identical colors."""

    return _clamp((1.0 - color_distance(top, shoes) / MAX_NORMALIZED_DISTANCE) * 100.0)


def sandwich_contrast_score(bottom: RGB, top: RGB, shoes: RGB) -> float:
    """Mean contrast of a bottom against the chosen top and shoes."""

    total = color_distance(bottom, top) + color_distance(bottom, shoes)
    return _clamp(total / (2.0 * MAX_NORMALIZED_DISTANCE) * 100.0)


@dataclass(frozen=True)
class ScoredPair:
    top: WardrobeItem
    shoes: WardrobeItem
    score: float


class StyleScorer:
    """Maps raw items to scored copies for one style."""

    style: str = ""
    pairwise = False

    def score_item(self, item: WardrobeItem, slot: str) -> float:
        raise NotImplementedError

    def score_items(self, items: Sequence[WardrobeItem], slot: str) -> List[WardrobeItem]:
        return [item.with_score(self.score_item(item, slot)) for item in items]

    def rank_items(self, items: Sequence[WardrobeItem], slot: str) -> List[WardrobeItem]:
        """Scored items, best first; ties keep their input order."""

        return sorted(self.score_items(items, slot), key=lambda item: -item.score)


class CasualScorer(StyleScorer):
    style = CASUAL

    def score_item(self, item: WardrobeItem, slot: str) -> float:
        return casual_score(item.rgb)


class StreetwearScorer(StyleScorer):
    style = STREETWEAR

    def __init__(self, dark_boost: float = STREETWEAR_DARK_BOOST) -> None:
        self.dark_boost = dark_boost

    def score_item(self, item: WardrobeItem, slot: str) -> float:
        if slot == "top":
            return brightness_score(item.rgb)
        return darkness_score(item.rgb, self.dark_boost)


class RandomScorer(StyleScorer):
    """Uniform scores redrawn on every call; inject a seeded ``rng`` in tests."""

    style = RANDOM

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def score_item(self, item: WardrobeItem, slot: str) -> float:
        return self.rng.uniform(0.0, 100.0)


class SandwichScorer(StyleScorer):
    """Top and shoes should match; the bottom should contrast with both."""

    style = SANDWICH
    pairwise = True

    def score_item(self, item: WardrobeItem, slot: str) -> float:
        raise TypeError("Sandwich scoring is pairwise; use rank_pairs and best_bottom")

    def pair_score(
        self, top: WardrobeItem, shoes: WardrobeItem, matrix: Optional[SimilarityMatrix] = None
    ) -> float:
        if matrix is not None and top.url in matrix and shoes.url in matrix:
            distance = matrix.normalized_distance(top, shoes)
            return _clamp((1.0 - distance / MAX_NORMALIZED_DISTANCE) * 100.0)
        return sandwich_match_score(top.rgb, shoes.rgb)

    def rank_pairs(
        self,
        tops: Sequence[WardrobeItem],
        shoes: Sequence[WardrobeItem],
        matrix: Optional[SimilarityMatrix] = None,
    ) -> List[ScoredPair]:
        """Every (top, shoes) pair, best match first, with both items scored."""

        pairs = []
        for top in tops:
            for shoe in shoes:
                score = self.pair_score(top, shoe, matrix)
                pairs.append(ScoredPair(top=top.with_score(score), shoes=shoe.with_score(score), score=score))
        pairs.sort(key=lambda pair: -pair.score)
        logger.debug("Ranked %s sandwich pairs", len(pairs))
        return pairs

    def score_bottom(self, bottom: WardrobeItem, top: WardrobeItem, shoes: WardrobeItem) -> float:
        return sandwich_contrast_score(bottom.rgb, top.rgb, shoes.rgb)

    def best_bottom(
        self, bottoms: Sequence[WardrobeItem], top: WardrobeItem, shoes: WardrobeItem
    ) -> Optional[WardrobeItem]:
        """Highest-contrast bottom for the pair; the first one wins ties."""

        best: Optional[WardrobeItem] = None
        for bottom in bottoms:
            scored = bottom.with_score(self.score_bottom(bottom, top, shoes))
            if best is None or scored.score > best.score:
                best = scored
        return best


def build_scorer(
    style: str | StyleProfile,
    rng: Optional[random.Random] = None,
    dark_boost: float = STREETWEAR_DARK_BOOST,
) -> StyleScorer:
    """Return the scorer for ``style``."""

    profile = get_style(style)
    if profile.name == CASUAL:
        return CasualScorer()
    if profile.name == STREETWEAR:
        return StreetwearScorer(dark_boost=dark_boost)
    if profile.name == SANDWICH:
        return SandwichScorer()
    return RandomScorer(rng)


__all__ = [
    "NEUTRAL_TARGET",
    "STREETWEAR_DARK_BOOST",
    "neutrality_score",
    "grayscale_score",
    "casual_score",
    "brightness_score",
    "darkness_score",
    "sandwich_match_score",
    "sandwich_contrast_score",
    "ScoredPair",
    "StyleScorer",
    "CasualScorer",
    "StreetwearScorer",
    "RandomScorer",
    "SandwichScorer",
    "build_scorer",
]
