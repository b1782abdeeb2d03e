"""Canonical taxonomy definitions for wardrobe items.

This module centralises the canonical labels for categories and outfit slots.
Helper functions keep validation logic consistent across the scorers, the
enumerator and the stores.
"""

from typing import Dict, List, Tuple


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_")


# Outfit slots in their fixed evaluation order.
SLOTS: Tuple[str, ...] = ("top", "bottom", "shoes")

CATEGORY_ALIASES: Dict[str, str] = {
    "top": "top",
    "tops": "top",
    "bottom": "bottom",
    "bottoms": "bottom",
    "shoe": "shoes",
    "shoes": "shoes",
}

CATEGORY_LABELS: Dict[str, str] = {
    "top": "Tops",
    "bottom": "Bottoms",
    "shoes": "Shoes",
}


def validate_category(value: str) -> str:
    """Validate and normalise a category value.

    Accepts singular and plural spellings (``Top``/``Tops``). Raises a
    :class:`ValueError` if the category is not part of the canonical taxonomy.
    """

    key = CATEGORY_ALIASES.get(_normalize_key(str(value)))
    if key is None:
        raise ValueError(f"Unsupported category '{value}'. Allowed: {list(SLOTS)}")
    return key


def validate_slot(value: str) -> str:
    """Validate a slot name used by lock toggles and prompts."""

    key = _normalize_key(str(value))
    if key not in SLOTS:
        raise ValueError(f"Unsupported slot '{value}'. Allowed: {list(SLOTS)}")
    return key


def category_label(category: str) -> str:
    """Return the display label for a canonical category."""

    return CATEGORY_LABELS[validate_category(category)]


def empty_slot_map() -> Dict[str, List]:
    return {slot: [] for slot in SLOTS}


__all__ = [
    "SLOTS",
    "CATEGORY_ALIASES",
    "CATEGORY_LABELS",
    "validate_category",
    "validate_slot",
    "category_label",
    "empty_slot_map",
]
