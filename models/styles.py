"""Style profiles and their strict color-compatibility rules."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from models.color_theory import (
    DARK_RANGE,
    NEUTRAL_RANGE,
    are_similar_colors,
    is_bright_color,
    is_within_range,
)

logger = logging.getLogger(__name__)

CASUAL = "casual"
STREETWEAR = "streetwear"
SANDWICH = "sandwich"
RANDOM = "random"


class UnknownStyleError(ValueError):
    """Raised when a style name is not one of the fixed variants."""


@dataclass(frozen=True)
class StyleProfile:
    """Static configuration for one style."""

    name: str
    title: str
    description: str
    color_rule: str


_STYLES: Dict[str, StyleProfile] = {
    CASUAL: StyleProfile(
        name=CASUAL,
        title="Casual",
        description="Everyday wear",
        color_rule="Neutral colors (RGB: 100-200) for all pieces",
    ),
    STREETWEAR: StyleProfile(
        name=STREETWEAR,
        title="Streetwear",
        description="Streetwear style",
        color_rule=(
            "Bright top (Red, Green, Blue, Yellow, Cyan, or Magenta) "
            "with dark bottoms and shoes (RGB: 0-100)"
        ),
    ),
    SANDWICH: StyleProfile(
        name=SANDWICH,
        title="Sandwich method",
        description="Top and shoes are the same colour while the bottoms are different",
        color_rule="Top and shoes must have similar RGB values (within 30 points)",
    ),
    RANDOM: StyleProfile(
        name=RANDOM,
        title="Random",
        description="Completely Random!",
        color_rule="No color restrictions",
    ),
}

_ALIASES = {
    "sandwich method": SANDWICH,
    "sandwich_method": SANDWICH,
    "street": STREETWEAR,
}


def available_styles() -> List[StyleProfile]:
    return list(_STYLES.values())


def get_style(name: str | StyleProfile) -> StyleProfile:
    """Return the :class:`StyleProfile` for ``name``.

    Matching is case-insensitive and accepts display titles. Unlike free-form
    tags, styles are a closed set, so unknown names raise
    :class:`UnknownStyleError`.
    """

    if isinstance(name, StyleProfile):
        return name
    normalized = (name or "").strip().lower()
    normalized = _ALIASES.get(normalized, normalized)
    if normalized not in _STYLES:
        raise UnknownStyleError(f"Unknown style '{name}'. Allowed: {sorted(_STYLES)}")
    return _STYLES[normalized]


def validate_colors(
    style: str | StyleProfile, top: Sequence[float], bottom: Sequence[float], shoes: Sequence[float]
) -> bool:
    """Return True when the three colors satisfy the style's strict rule."""

    profile = get_style(style)
    if profile.name == CASUAL:
        result = all(is_within_range(rgb, *NEUTRAL_RANGE) for rgb in (top, bottom, shoes))
    elif profile.name == STREETWEAR:
        result = (
            is_bright_color(top)
            and is_within_range(bottom, *DARK_RANGE)
            and is_within_range(shoes, *DARK_RANGE)
        )
    elif profile.name == SANDWICH:
        result = are_similar_colors(top, shoes)
    else:
        result = True
    logger.debug("%s rule check -> %s", profile.name, result)
    return result


def match_band(score: float) -> str:
    """Bucket a 0-100 match score into a display band."""

    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


__all__ = [
    "CASUAL",
    "STREETWEAR",
    "SANDWICH",
    "RANDOM",
    "StyleProfile",
    "UnknownStyleError",
    "available_styles",
    "get_style",
    "validate_colors",
    "match_band",
]
