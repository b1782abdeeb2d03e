"""Generated and saved outfit schemas."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from models.color_theory import RGB, bright_color_name
from models.styles import StyleProfile, match_band, validate_colors
from models.taxonomy import SLOTS, category_label, validate_slot
from models.wardrobe_item import WardrobeItem, parse_rgb

Combination = Tuple[str, str, str]


@dataclass(frozen=True)
class GeneratedOutfit:
    """A candidate outfit shown to the user.

    Superseded on every step rather than mutated; lock toggles return a new
    instance. A slot without an item can never be locked.
    """

    top: Optional[WardrobeItem] = None
    bottom: Optional[WardrobeItem] = None
    shoes: Optional[WardrobeItem] = None
    top_locked: bool = False
    bottom_locked: bool = False
    shoes_locked: bool = False

    def __post_init__(self) -> None:
        for slot in SLOTS:
            if self.is_locked(slot) and self.item(slot) is None:
                raise ValueError(f"Cannot lock empty slot '{slot}'")

    def item(self, slot: str) -> Optional[WardrobeItem]:
        return getattr(self, validate_slot(slot))

    def is_locked(self, slot: str) -> bool:
        return getattr(self, f"{validate_slot(slot)}_locked")

    @property
    def locks(self) -> Dict[str, bool]:
        return {slot: self.is_locked(slot) for slot in SLOTS}

    @property
    def all_locked(self) -> bool:
        return all(self.locks.values())

    @property
    def is_complete(self) -> bool:
        return all(self.item(slot) is not None for slot in SLOTS)

    @property
    def combination(self) -> Optional[Combination]:
        """The ``(top.url, bottom.url, shoes.url)`` identity, if every slot is filled."""

        if not self.is_complete:
            return None
        return (self.top.url, self.bottom.url, self.shoes.url)

    @property
    def overall_score(self) -> float:
        items = [self.item(slot) for slot in SLOTS if self.item(slot) is not None]
        if not items:
            return 0.0
        return sum(item.score for item in items) / len(items)

    def with_lock(self, slot: str, locked: bool) -> "GeneratedOutfit":
        return replace(self, **{f"{validate_slot(slot)}_locked": locked})

    def meets_style_rule(self, style: str | StyleProfile) -> bool:
        """Whether the filled slots satisfy the style's strict color rule."""

        if not self.is_complete:
            return False
        return validate_colors(style, self.top.rgb, self.bottom.rgb, self.shoes.rgb)

    def to_dict(self, style: Optional[str | StyleProfile] = None) -> Dict[str, Any]:
        """Display payload; with ``style`` it also carries the rule check."""

        payload: Dict[str, Any] = {}
        for slot in SLOTS:
            item = self.item(slot)
            payload[slot] = None if item is None else _item_payload(item)
            payload[f"{slot}_locked"] = self.is_locked(slot)
        payload["overall_score"] = round(self.overall_score, 2)
        payload["match"] = match_band(self.overall_score)
        if style is not None:
            payload["meets_style_rule"] = self.meets_style_rule(style)
        return payload


def _item_payload(item: WardrobeItem) -> Dict[str, Any]:
    return {
        **item.to_record(),
        "label": category_label(item.category),
        "score": round(item.score, 2),
        "match": match_band(item.score),
        "bright_color": bright_color_name(item.rgb),
    }


@dataclass(frozen=True)
class SavedItem:
    """Frozen copy of a garment's essential fields inside a saved outfit."""

    brand: str
    size: str
    category: str
    url: str
    rgb: RGB

    @classmethod
    def from_item(cls, item: WardrobeItem) -> "SavedItem":
        return cls(brand=item.brand, size=item.size, category=item.category, url=item.url, rgb=item.rgb)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "SavedItem":
        return cls(
            brand=str(record["brand"]),
            size=str(record["size"]),
            category=str(record["category"]),
            url=str(record["url"]),
            rgb=parse_rgb(record["rgb"]),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "brand": self.brand,
            "size": self.size,
            "category": self.category,
            "url": self.url,
            "rgb": {"red": self.rgb.red, "green": self.rgb.green, "blue": self.rgb.blue},
        }


@dataclass(frozen=True)
class SavedOutfit:
    """Persisted outfit record; never mutated after creation."""

    name: str
    style: str
    top: SavedItem
    bottom: SavedItem
    shoes: SavedItem
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def combination(self) -> Combination:
        return (self.top.url, self.bottom.url, self.shoes.url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "style": self.style,
            "created_at": self.created_at.isoformat(),
            "top": self.top.to_record(),
            "bottom": self.bottom.to_record(),
            "shoes": self.shoes.to_record(),
        }


__all__ = ["GeneratedOutfit", "SavedItem", "SavedOutfit", "Combination"]
