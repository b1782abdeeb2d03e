"""RGB color primitives shared by every style scorer."""
from __future__ import annotations

import logging
import math
from typing import Dict, NamedTuple, Optional, Sequence

logger = logging.getLogger(__name__)

CHANNEL_MAX = 255.0
MAX_NORMALIZED_DISTANCE = math.sqrt(3.0)
MAX_RAW_DISTANCE = math.sqrt(3.0 * CHANNEL_MAX ** 2)

BRIGHT_COLOR_THRESHOLD = 30


class RGB(NamedTuple):
    """Average color of a garment, one value per channel in ``[0, 255]``."""

    red: float
    green: float
    blue: float

    @property
    def intensity(self) -> float:
        """Mean of the three channels."""

        return (self.red + self.green + self.blue) / 3.0

    def normalized(self) -> "RGB":
        return RGB(self.red / CHANNEL_MAX, self.green / CHANNEL_MAX, self.blue / CHANNEL_MAX)


BRIGHT_COLORS: Dict[str, RGB] = {
    "Red": RGB(255, 0, 0),
    "Green": RGB(0, 255, 0),
    "Blue": RGB(0, 0, 255),
    "Yellow": RGB(255, 255, 0),
    "Cyan": RGB(0, 255, 255),
    "Magenta": RGB(255, 0, 255),
}

NEUTRAL_RANGE = (RGB(100, 100, 100), RGB(200, 200, 200))
DARK_RANGE = (RGB(0, 0, 0), RGB(100, 100, 100))


def range_midpoint(bounds: Sequence[RGB]) -> RGB:
    low, high = bounds
    return RGB(*((lo + hi) / 2.0 for lo, hi in zip(low, high)))


def is_within_range(rgb: Sequence[float], minimum: Sequence[float], maximum: Sequence[float]) -> bool:
    """Return True when every channel lies inside the inclusive bounds."""

    return all(lo <= value <= hi for value, lo, hi in zip(rgb, minimum, maximum))


def are_similar_colors(rgb1: Sequence[float], rgb2: Sequence[float], threshold: float = BRIGHT_COLOR_THRESHOLD) -> bool:
    """Return True when no channel differs by more than ``threshold``."""

    return all(abs(a - b) <= threshold for a, b in zip(rgb1, rgb2))


def bright_color_name(rgb: Sequence[float]) -> Optional[str]:
    """Return the canonical bright color ``rgb`` is similar to, if any."""

    for name, bright in BRIGHT_COLORS.items():
        if are_similar_colors(rgb, bright, BRIGHT_COLOR_THRESHOLD):
            return name
    return None


def is_bright_color(rgb: Sequence[float]) -> bool:
    """Return True when the color is close to one of the six bright primaries."""

    result = bright_color_name(rgb) is not None
    logger.debug("bright check %s -> %s", tuple(rgb), result)
    return result


def raw_distance(rgb1: Sequence[float], rgb2: Sequence[float]) -> float:
    """Euclidean distance in unnormalized channel space, range ``[0, 255*sqrt(3)]``."""

    return math.sqrt(sum((a - b) ** 2 for a, b in zip(rgb1, rgb2)))


def color_distance(rgb1: Sequence[float], rgb2: Sequence[float]) -> float:
    """Euclidean distance with channels scaled to ``[0, 1]``, range ``[0, sqrt(3)]``."""

    return math.sqrt(sum(((a - b) / CHANNEL_MAX) ** 2 for a, b in zip(rgb1, rgb2)))


__all__ = [
    "RGB",
    "BRIGHT_COLORS",
    "BRIGHT_COLOR_THRESHOLD",
    "NEUTRAL_RANGE",
    "DARK_RANGE",
    "MAX_NORMALIZED_DISTANCE",
    "MAX_RAW_DISTANCE",
    "range_midpoint",
    "is_within_range",
    "are_similar_colors",
    "bright_color_name",
    "is_bright_color",
    "raw_distance",
    "color_distance",
]
