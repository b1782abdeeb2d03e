"""Per-item rejection counting and the keep/delete/donate disposition queue."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional

from models.outfit import GeneratedOutfit
from models.taxonomy import SLOTS
from models.wardrobe_item import WardrobeItem
from tools.wardrobe_store import WardrobeStore

logger = logging.getLogger(__name__)

KEEP = "keep"
DELETE = "delete"
DONATE = "donate"
DISPOSITIONS = (KEEP, DELETE, DONATE)

DEFAULT_REJECTION_THRESHOLD = 3
DEFAULT_DONATION_URL = "https://donateclothes.uk/"


def validate_disposition(choice: str) -> str:
    key = (choice or "").strip().lower()
    if key not in DISPOSITIONS:
        raise ValueError(f"Unsupported disposition '{choice}'. Allowed: {list(DISPOSITIONS)}")
    return key


@dataclass(frozen=True)
class DispositionPrompt:
    """Ask the user whether to keep, delete or donate a repeatedly rejected item."""

    item: WardrobeItem
    slot: str
    rejection_count: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "slot": self.slot,
            "item": self.item.to_record(),
            "rejection_count": self.rejection_count,
            "choices": list(DISPOSITIONS),
        }


@dataclass(frozen=True)
class DispositionOutcome:
    choice: str
    prompt: DispositionPrompt
    removed_url: Optional[str] = None
    donation_url: Optional[str] = None
    next_prompt: Optional[DispositionPrompt] = None

    @property
    def resolved(self) -> bool:
        """Keep and Delete dequeue the prompt; Donate leaves it pending."""

        return self.choice != DONATE


class RejectionTracker:
    """Counts swipe rejections per item and queues disposition prompts.

    Counters live in the wardrobe store. A prompt is queued for an item when
    a recorded rejection takes it to ``threshold``. Prompts are served one at
    a time in slot order.
    """

    def __init__(
        self,
        user_id: str,
        item_store: WardrobeStore,
        threshold: int = DEFAULT_REJECTION_THRESHOLD,
        donation_url: str = DEFAULT_DONATION_URL,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.user_id = user_id
        self.item_store = item_store
        self.threshold = threshold
        self.donation_url = donation_url
        self._queue: Deque[DispositionPrompt] = deque()

    @property
    def pending(self) -> List[DispositionPrompt]:
        return list(self._queue)

    @property
    def has_pending(self) -> bool:
        return bool(self._queue)

    @property
    def current_prompt(self) -> Optional[DispositionPrompt]:
        return self._queue[0] if self._queue else None

    def record_rejection(self, outfit: GeneratedOutfit) -> List[DispositionPrompt]:
        """Increment the counter of every item in an unlocked slot.

        Returns the prompts newly queued by this rejection. Each item's prompt
        is queued as soon as its own increment lands, so a store failure on a
        later slot keeps the prompts for counters already written. An item
        whose counter is at or past ``threshold`` and has no pending prompt is
        queued once.
        """

        new_prompts: List[DispositionPrompt] = []
        for slot in SLOTS:
            item = outfit.item(slot)
            if item is None or outfit.is_locked(slot):
                continue
            count = self.item_store.increment_rejection(self.user_id, item.url)
            if count >= self.threshold and not self._is_queued(item.url):
                prompt = DispositionPrompt(item=item, slot=slot, rejection_count=count)
                self._queue.append(prompt)
                new_prompts.append(prompt)
        logger.info("Recorded rejection, %s new prompts", len(new_prompts))
        return new_prompts

    def _is_queued(self, url: str) -> bool:
        return any(prompt.item.url == url for prompt in self._queue)

    def resolve(self, choice: str) -> DispositionOutcome:
        """Apply the user's choice to the prompt at the head of the queue."""

        choice = validate_disposition(choice)
        prompt = self.current_prompt
        if prompt is None:
            raise LookupError("No disposition prompt is pending")

        if choice == DONATE:
            logger.info("Donation link requested for pending prompt")
            return DispositionOutcome(choice=choice, prompt=prompt, donation_url=self.donation_url, next_prompt=prompt)

        if choice == KEEP:
            self.item_store.reset_rejection(self.user_id, prompt.item.url)
            removed_url = None
        else:
            self.item_store.delete_item(self.user_id, prompt.item.url)
            removed_url = prompt.item.url
        self._queue.popleft()
        logger.info("Resolved disposition prompt with %s; %s remaining", choice, len(self._queue))
        return DispositionOutcome(
            choice=choice, prompt=prompt, removed_url=removed_url, next_prompt=self.current_prompt
        )

    def reset_all(self) -> int:
        """Zero every counter for the user; returns how many items were reset."""

        count = self.item_store.reset_all_rejections(self.user_id)
        logger.info("Reset rejection counters for %s items", count)
        return count


__all__ = [
    "KEEP",
    "DELETE",
    "DONATE",
    "DISPOSITIONS",
    "DispositionPrompt",
    "DispositionOutcome",
    "RejectionTracker",
    "validate_disposition",
]
