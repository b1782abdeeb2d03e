"""Outfit engine bootstrap."""

import logging
from typing import Any, Dict, Iterable, Mapping

from pydantic import ValidationError

from logic.validation import StartSessionRequest, WardrobeItemRequest, count_wardrobe, validation_failure
from memory.session_store import SessionManager, StylingSession
from models.color_theory import RGB
from models.styles import available_styles
from models.wardrobe_item import MalformedRecordError, WardrobeItem, from_raw_metadata
from tools.outfit_store import OutfitStore, SQLiteOutfitStore
from tools.store_errors import StoreError
from tools.wardrobe_store import SQLiteWardrobeStore, WardrobeStore
from wardrobe_app.config import EngineConfig
from wardrobe_app.logging_config import configure_logging, get_logger, log_event, operation_context

LOGGER = get_logger(__name__)


class OutfitEngineApp:
    """Wires together the configuration, the stores and the session manager."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        item_store: WardrobeStore | None = None,
        outfit_store: OutfitStore | None = None,
    ) -> None:
        self.config = config or EngineConfig.from_env()
        configure_logging(self.config.log_level)

        self.item_store = item_store or SQLiteWardrobeStore(self.config.database_path)
        self.outfit_store = outfit_store or SQLiteOutfitStore(self.config.database_path)
        self.session_manager = SessionManager(
            item_store=self.item_store,
            outfit_store=self.outfit_store,
            rejection_threshold=self.config.rejection_threshold,
            minimum_items=self.config.minimum_items_per_category,
            donation_url=self.config.donation_url,
            random_seed=self.config.random_seed,
            dark_boost=self.config.streetwear_dark_boost,
        )

    def styles(self) -> list:
        return [
            {"name": style.name, "title": style.title, "description": style.description}
            for style in available_styles()
        ]

    def add_item(self, user_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate and store one classified garment."""

        with operation_context("app.add_item", user_id=user_id) as correlation_id:
            try:
                request = WardrobeItemRequest.model_validate(payload)
            except ValidationError as exc:
                log_event(
                    LOGGER,
                    level=logging.WARNING,
                    event="app_request_invalid",
                    method="add_item",
                    details=str(exc),
                    correlation_id=correlation_id,
                )
                return validation_failure("Invalid wardrobe item", exc)

            item = WardrobeItem(
                url=request.url,
                category=request.category,
                brand=request.brand,
                size=request.size,
                rgb=RGB(request.rgb.red, request.rgb.green, request.rgb.blue),
            )
            try:
                stored = self.item_store.add_item(user_id, item)
            except StoreError as exc:
                return {"status": "error", "message": f"Could not add the item: {exc}"}
            log_event(LOGGER, logging.INFO, "app_item_added", category=stored.category)
            return {"status": "ok", "item": stored.to_record()}

    def import_items(self, user_id: str, records: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
        """Load raw metadata records, skipping any that are malformed."""

        imported = 0
        skipped = []
        with operation_context("app.import_items", user_id=user_id):
            for index, record in enumerate(records):
                try:
                    item = from_raw_metadata(record)
                except MalformedRecordError as exc:
                    log_event(
                        LOGGER,
                        logging.WARNING,
                        "app_record_skipped",
                        index=index,
                        field=exc.field_name,
                        reason=exc.reason,
                    )
                    skipped.append({"index": index, "field": exc.field_name, "reason": exc.reason})
                    continue
                try:
                    self.item_store.add_item(user_id, item)
                except StoreError as exc:
                    return {"status": "error", "message": str(exc), "imported": imported, "skipped": skipped}
                imported += 1
        return {"status": "ok", "imported": imported, "skipped": skipped}

    def wardrobe_summary(self, user_id: str) -> Dict[str, Any]:
        try:
            items = self.item_store.list_items(user_id)
        except StoreError as exc:
            return {"status": "error", "message": str(exc)}
        count = count_wardrobe(items, minimum=self.config.minimum_items_per_category)
        return {
            "status": "ok",
            "tops": count.tops,
            "bottoms": count.bottoms,
            "shoes": count.shoes,
            "has_minimum": count.has_minimum,
            "missing": count.missing,
        }

    def start_session(self, user_id: str, style: str) -> Dict[str, Any]:
        """Open a styling session and generate its first outfit."""

        with operation_context("app.start_session", user_id=user_id, style=style):
            try:
                request = StartSessionRequest.model_validate({"user_id": user_id, "style": style})
            except ValidationError as exc:
                return validation_failure("Invalid session request", exc)
            try:
                session = self.session_manager.start_session(request.user_id, request.style)
            except StoreError as exc:
                return {"status": "error", "message": f"Could not load the wardrobe: {exc}"}
            log_event(LOGGER, logging.INFO, "app_session_started", style=request.style)
            return session.generate()

    def session(self, session_id: str) -> StylingSession:
        return self.session_manager.get(session_id)

    def reset_rejections(self, user_id: str) -> Dict[str, Any]:
        try:
            count = self.item_store.reset_all_rejections(user_id)
        except StoreError as exc:
            return {"status": "error", "message": str(exc)}
        return {"status": "ok", "message": "All rejection counts have been reset", "reset_count": count}

    def list_saved(self, user_id: str, search: str | None = None) -> Dict[str, Any]:
        try:
            if search:
                outfits = self.outfit_store.search_saved(user_id, search)
            else:
                outfits = self.outfit_store.list_saved(user_id)
        except StoreError as exc:
            return {"status": "error", "message": str(exc)}
        return {"status": "ok", "outfits": [outfit.to_dict() for outfit in outfits]}

    def delete_saved(self, user_id: str, name: str) -> Dict[str, Any]:
        try:
            deleted = self.outfit_store.delete_saved(user_id, name)
        except StoreError as exc:
            return {"status": "error", "message": str(exc)}
        if not deleted:
            return {"status": "not_found", "message": f"No saved outfit named '{name}'"}
        return {"status": "ok", "message": f"Deleted '{name}'"}


__all__ = ["OutfitEngineApp"]
