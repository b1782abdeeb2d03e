"""Per-user styling sessions and a manager that owns them.

A session sequences the UI's action stream (generate, reject, lock, save,
prompt resolution) over one enumerator and one rejection tracker. Every action
returns a response dict with a ``status`` and a user-facing ``message``; store
failures become ``status="error"`` and leave the in-memory state as it was.
"""
from __future__ import annotations

import contextlib
import logging
import random
import time
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from logic.outfit_builder import EnumerationResult, OutfitEnumerator, STATUS_INSUFFICIENT
from logic.rejection import DEFAULT_DONATION_URL, DONATE, RejectionTracker
from logic.style_scoring import STREETWEAR_DARK_BOOST, build_scorer
from logic.validation import WardrobeCount, count_wardrobe
from models.styles import get_style
from models.taxonomy import category_label
from tools.outfit_store import OutfitStore
from tools.store_errors import OutfitCombinationTakenError, OutfitNameTakenError, StoreError
from tools.wardrobe_store import WardrobeStore
from wardrobe_app.logging_config import get_logger, log_event, operation_context

LOGGER = get_logger(__name__)

NAME_TAKEN_MESSAGE = "An outfit with this name already exists. Please enter a different one."
COMBINATION_TAKEN_MESSAGE = "This outfit combination already exists in your wardrobe!"
PROMPT_PENDING_MESSAGE = "Decide what to do with the rejected item first."


class UnknownSessionError(KeyError):
    """No live session has the given id."""


class StylingSession:
    """One user's outfit flow for a chosen style."""

    def __init__(
        self,
        user_id: str,
        style: str,
        item_store: WardrobeStore,
        outfit_store: OutfitStore,
        rejection_threshold: int = 3,
        minimum_items: int = 3,
        donation_url: str = DEFAULT_DONATION_URL,
        rng: Optional[random.Random] = None,
        dark_boost: float = STREETWEAR_DARK_BOOST,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or str(uuid4())
        self.user_id = user_id
        self.style = get_style(style)
        self.item_store = item_store
        self.outfit_store = outfit_store
        self.minimum_items = minimum_items
        self.created_at = time.time()
        items = item_store.list_items(user_id)
        scorer = build_scorer(self.style, rng=rng, dark_boost=dark_boost)
        self.enumerator = OutfitEnumerator(user_id, items, self.style, outfit_store, scorer=scorer)
        self.tracker = RejectionTracker(
            user_id, item_store, threshold=rejection_threshold, donation_url=donation_url
        )
        self._advance_deferred = False

    @contextlib.contextmanager
    def _action(self, name: str) -> Iterator[str]:
        with operation_context(
            f"session.{name}", session_id=self.session_id, style=self.style.name, user_id=self.user_id
        ) as correlation_id:
            log_event(LOGGER, logging.INFO, "session_action_started", action=name)
            yield correlation_id
            log_event(LOGGER, logging.INFO, "session_action_completed", action=name)

    @property
    def wardrobe_count(self) -> WardrobeCount:
        return count_wardrobe(self.enumerator.items, minimum=self.minimum_items)

    def _response(self, status: str, message: str = "", **extra: Any) -> Dict[str, Any]:
        outfit = self.enumerator.current
        prompt = self.tracker.current_prompt
        payload: Dict[str, Any] = {
            "status": status,
            "message": message,
            "session_id": self.session_id,
            "style": self.style.name,
            "outfit": outfit.to_dict(self.style) if outfit else None,
            "ready_to_save": bool(outfit and outfit.all_locked),
            "prompt": prompt.to_dict() if prompt else None,
            "pending_prompts": len(self.tracker.pending),
        }
        payload.update(extra)
        return payload

    def _from_result(self, result: EnumerationResult) -> Dict[str, Any]:
        return self._response(result.status, result.message)

    def _store_failure(self, action: str, exc: StoreError) -> Dict[str, Any]:
        log_event(LOGGER, logging.WARNING, "session_store_failure", action=action, error=str(exc))
        return self._response("error", f"Could not {action}: {exc}")

    def generate(self) -> Dict[str, Any]:
        """Score the wardrobe and show the best unsaved outfit."""

        with self._action("generate"):
            count = self.wardrobe_count
            if not count.has_minimum:
                needed = ", ".join(f"{n} more {category_label(slot)}" for slot, n in count.missing.items())
                log_event(LOGGER, logging.INFO, "session_insufficient_items", missing=count.missing)
                return self._response(STATUS_INSUFFICIENT, f"Add {needed} to generate outfits.")
            try:
                result = self.enumerator.generate()
            except StoreError as exc:
                return self._store_failure("generate an outfit", exc)
            log_event(LOGGER, logging.INFO, "session_generated", style=self.style.name, status=result.status)
            return self._from_result(result)

    def next_outfit(self) -> Dict[str, Any]:
        """Advance to the next unsaved outfit unless a prompt is pending."""

        with self._action("next_outfit"):
            if self.tracker.has_pending:
                self._advance_deferred = True
                return self._response("prompt_pending", PROMPT_PENDING_MESSAGE)
            try:
                result = self.enumerator.advance()
            except StoreError as exc:
                return self._store_failure("load the next outfit", exc)
            return self._from_result(result)

    def reject(self) -> Dict[str, Any]:
        """Count a rejection for unlocked items, then move on or prompt."""

        with self._action("reject"):
            outfit = self.enumerator.current
            if outfit is None:
                return self._response("invalid_request", "There is no outfit to reject.")
            if self.tracker.has_pending:
                return self._response("prompt_pending", PROMPT_PENDING_MESSAGE)
            try:
                new_prompts = self.tracker.record_rejection(outfit)
            except StoreError as exc:
                return self._store_failure("record the rejection", exc)
            log_event(LOGGER, logging.INFO, "session_rejected", new_prompts=len(new_prompts))
            if self.tracker.has_pending:
                self._advance_deferred = True
                return self._response("prompt", "You've passed on this item a few times. Keep it?")
            try:
                result = self.enumerator.advance()
            except StoreError as exc:
                return self._store_failure("load the next outfit", exc)
            return self._from_result(result)

    def toggle_lock(self, slot: str) -> Dict[str, Any]:
        with self._action("toggle_lock"):
            try:
                lock = self.enumerator.toggle_lock(slot)
            except ValueError as exc:
                return self._response("invalid_request", str(exc))
            message = "All items locked. Ready to save this outfit." if lock.ready_to_save else ""
            return self._response("ok", message, slot=lock.slot, locked=lock.locked)

    def save(self, name: str) -> Dict[str, Any]:
        """Persist the current outfit under ``name``."""

        with self._action("save"):
            outfit = self.enumerator.current
            if outfit is None or not outfit.is_complete:
                return self._response("invalid_request", "There is no complete outfit to save.")
            try:
                saved = self.outfit_store.persist(self.user_id, name, self.style.title, outfit)
                saved_count = len(self.outfit_store.list_saved(self.user_id))
            except OutfitNameTakenError:
                return self._response("name_taken", NAME_TAKEN_MESSAGE)
            except OutfitCombinationTakenError:
                return self._response("combination_taken", COMBINATION_TAKEN_MESSAGE)
            except StoreError as exc:
                return self._store_failure("save the outfit", exc)
            log_event(LOGGER, logging.INFO, "session_saved", style=self.style.name, saved_count=saved_count)
            return self._response(
                "saved", f"Saved '{saved.name}'.", saved=saved.to_dict(), saved_count=saved_count
            )

    def resolve_prompt(self, choice: str) -> Dict[str, Any]:
        """Apply keep/delete/donate to the head prompt; resume once the queue drains."""

        with self._action("resolve_prompt"):
            try:
                outcome = self.tracker.resolve(choice)
            except (ValueError, LookupError) as exc:
                return self._response("invalid_request", str(exc).strip("'\""))
            except StoreError as exc:
                return self._store_failure("update the item", exc)

            if outcome.choice == DONATE:
                return self._response("donate", "Opening the donation page.", donation_url=outcome.donation_url)

            if outcome.removed_url:
                self.enumerator.remove_item(outcome.removed_url)
                message = "Item removed from your wardrobe"
            else:
                message = "Item kept in your wardrobe"
            log_event(LOGGER, logging.INFO, "session_prompt_resolved", choice=outcome.choice)

            if not self.tracker.has_pending and self._advance_deferred:
                self._advance_deferred = False
                try:
                    result = self.enumerator.advance()
                except StoreError as exc:
                    self._advance_deferred = True
                    return self._store_failure("load the next outfit", exc)
                if result.message:
                    message = f"{message}. {result.message}"
                return self._response(result.status, message, resolved=outcome.choice)
            return self._response("ok", message, resolved=outcome.choice)

    def reset_rejections(self) -> Dict[str, Any]:
        with self._action("reset_rejections"):
            try:
                count = self.tracker.reset_all()
            except StoreError as exc:
                return self._store_failure("reset rejection counts", exc)
            return self._response("ok", "All rejection counts have been reset", reset_count=count)

    def snapshot(self) -> Dict[str, Any]:
        return self._response("ok")


class SessionManager:
    """Owns live styling sessions keyed by id, at most one per user.

    Starting a session ends the user's previous one, so an item deleted from a
    disposition prompt can never linger in another live enumerator.
    """

    def __init__(
        self,
        item_store: WardrobeStore,
        outfit_store: OutfitStore,
        rejection_threshold: int = 3,
        minimum_items: int = 3,
        donation_url: str = DEFAULT_DONATION_URL,
        random_seed: Optional[int] = None,
        dark_boost: float = STREETWEAR_DARK_BOOST,
    ) -> None:
        self.item_store = item_store
        self.outfit_store = outfit_store
        self.rejection_threshold = rejection_threshold
        self.minimum_items = minimum_items
        self.donation_url = donation_url
        self.random_seed = random_seed
        self.dark_boost = dark_boost
        self._sessions: Dict[str, StylingSession] = {}

    def start_session(self, user_id: str, style: str) -> StylingSession:
        rng = random.Random(self.random_seed) if self.random_seed is not None else None
        session = StylingSession(
            user_id=user_id,
            style=style,
            item_store=self.item_store,
            outfit_store=self.outfit_store,
            rejection_threshold=self.rejection_threshold,
            minimum_items=self.minimum_items,
            donation_url=self.donation_url,
            rng=rng,
            dark_boost=self.dark_boost,
        )
        for previous in self.sessions_for_user(user_id):
            self.end_session(previous.session_id)
            log_event(LOGGER, logging.INFO, "session_replaced", session_id=previous.session_id)
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> StylingSession:
        try:
            return self._sessions[session_id]
        except KeyError as exc:
            raise UnknownSessionError(session_id) from exc

    def end_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def sessions_for_user(self, user_id: str) -> List[StylingSession]:
        return [session for session in self._sessions.values() if session.user_id == user_id]


__all__ = ["StylingSession", "SessionManager", "UnknownSessionError"]
