"""Wardrobe item data model and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping

from models.color_theory import CHANNEL_MAX, RGB
from models.taxonomy import validate_category

_RGB_CHANNELS = ("red", "green", "blue")


class MalformedRecordError(ValueError):
    """Raised when a loose wardrobe record cannot be parsed into a typed item."""

    def __init__(self, field_name: str, reason: str) -> None:
        super().__init__(f"Malformed wardrobe record field '{field_name}': {reason}")
        self.field_name = field_name
        self.reason = reason


def _coerce_channel(field_name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedRecordError(field_name, f"expected a number, got {value!r}")
    channel = float(value)
    if not 0.0 <= channel <= CHANNEL_MAX:
        raise MalformedRecordError(field_name, f"{channel} is outside [0, 255]")
    return channel


def parse_rgb(raw: Any, field_name: str = "rgb") -> RGB:
    """Parse an ``{"red", "green", "blue"}`` mapping or a 3-sequence into :class:`RGB`."""

    if raw is None:
        raise MalformedRecordError(field_name, "missing")
    if isinstance(raw, Mapping):
        missing = [channel for channel in _RGB_CHANNELS if channel not in raw]
        if missing:
            raise MalformedRecordError(field_name, f"missing channels {missing}")
        values = [raw[channel] for channel in _RGB_CHANNELS]
    elif isinstance(raw, (list, tuple)) and len(raw) == 3:
        values = list(raw)
    else:
        raise MalformedRecordError(field_name, f"expected a mapping or 3 channels, got {raw!r}")
    return RGB(*(_coerce_channel(f"{field_name}.{name}", value) for name, value in zip(_RGB_CHANNELS, values)))


@dataclass
class WardrobeItem:
    """One garment in the user's wardrobe, identified by its source URL.

    ``rejection_count`` mirrors the externally persisted counter and ``score``
    is the transient match score of the current generation cycle. Neither takes
    part in equality: two records for the same garment compare equal.
    """

    url: str
    category: str
    brand: str
    size: str
    rgb: RGB
    rejection_count: int = field(default=0, compare=False)
    score: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        self.category = validate_category(self.category)
        if not isinstance(self.rgb, RGB):
            self.rgb = parse_rgb(self.rgb)
        if self.rejection_count < 0:
            raise ValueError(f"rejection_count must be >= 0, got {self.rejection_count}")

    def with_score(self, score: float) -> "WardrobeItem":
        """Return a copy carrying ``score``; the original is left untouched."""

        return replace(self, score=float(score))

    def to_record(self) -> Dict[str, Any]:
        """Essential fields frozen into a saved outfit."""

        return {
            "brand": self.brand,
            "size": self.size,
            "category": self.category,
            "url": self.url,
            "rgb": {"red": self.rgb.red, "green": self.rgb.green, "blue": self.rgb.blue},
        }


def _required_string(metadata: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = metadata.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise MalformedRecordError(keys[0], f"expected a string, got {value!r}")
        if key == "url" and not value.strip():
            raise MalformedRecordError(keys[0], "empty url")
        return value
    raise MalformedRecordError(keys[0], "missing")


def from_raw_metadata(metadata: Mapping[str, Any]) -> WardrobeItem:
    """Factory to build a :class:`WardrobeItem` from a loosely typed record.

    Accepts the stored field spellings (``type`` for category, ``rgbValues`` for
    the color, ``rejectionCount`` for the counter). Every required field must be
    present and well formed; nothing is silently defaulted except a missing
    rejection counter, which means the item was never rejected.
    """

    url = _required_string(metadata, "url")
    raw_category = _required_string(metadata, "category", "type")
    try:
        category = validate_category(raw_category)
    except ValueError as exc:
        raise MalformedRecordError("category", str(exc)) from exc
    brand = _required_string(metadata, "brand")
    size = _required_string(metadata, "size")
    rgb_key = "rgb" if "rgb" in metadata else "rgbValues"
    rgb = parse_rgb(metadata.get(rgb_key), field_name=rgb_key)

    raw_count = metadata.get("rejection_count", metadata.get("rejectionCount", 0))
    if isinstance(raw_count, bool) or not isinstance(raw_count, int) or raw_count < 0:
        raise MalformedRecordError("rejection_count", f"expected a non-negative integer, got {raw_count!r}")

    return WardrobeItem(
        url=url,
        category=category,
        brand=brand,
        size=size,
        rgb=rgb,
        rejection_count=raw_count,
    )


__all__ = ["WardrobeItem", "MalformedRecordError", "from_raw_metadata", "parse_rgb"]
