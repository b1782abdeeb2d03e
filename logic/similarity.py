"""Pairwise color-distance table rebuilt once per generation cycle."""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from models.color_theory import CHANNEL_MAX, raw_distance
from models.wardrobe_item import WardrobeItem

logger = logging.getLogger(__name__)


class SimilarityMatrix:
    """N x N table of raw RGB distances between the given items.

    Cells hold the unnormalized Euclidean distance, so the diagonal is zero and
    the table is symmetric. Lookups go by item URL.
    """

    def __init__(self, items: Sequence[WardrobeItem]) -> None:
        self.items: List[WardrobeItem] = list(items)
        self._index: Dict[str, int] = {item.url: position for position, item in enumerate(self.items)}
        size = len(self.items)
        self.matrix: List[List[float]] = [[0.0] * size for _ in range(size)]
        for i in range(size):
            for j in range(i + 1, size):
                distance = raw_distance(self.items[i].rgb, self.items[j].rgb)
                self.matrix[i][j] = distance
                self.matrix[j][i] = distance
        logger.debug("Built similarity matrix for %s items", size)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, url: object) -> bool:
        return url in self._index

    def distance(self, first: WardrobeItem, second: WardrobeItem) -> float:
        """Raw distance in ``[0, 255*sqrt(3)]`` between two items of the table."""

        return self.matrix[self._index[first.url]][self._index[second.url]]

    def normalized_distance(self, first: WardrobeItem, second: WardrobeItem) -> float:
        """Distance rescaled to the ``[0, sqrt(3)]`` range of :func:`color_distance`."""

        return self.distance(first, second) / CHANNEL_MAX


__all__ = ["SimilarityMatrix"]
