"""Styling sessions sequencing reject, prompt, lock and save actions."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Tuple

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from memory.session_store import SessionManager, UnknownSessionError
from models.color_theory import RGB
from models.wardrobe_item import WardrobeItem
from tools.outfit_store import SQLiteOutfitStore
from tools.store_errors import StoreError
from tools.wardrobe_store import SQLiteWardrobeStore

USER = "user-1"
WARDROBE = [
    ("top-red", "top", (255, 0, 0)),
    ("top-black", "top", (10, 10, 10)),
    ("top-grey", "top", (150, 150, 150)),
    ("bottom-navy", "bottom", (20, 30, 90)),
    ("bottom-khaki", "bottom", (160, 150, 130)),
    ("bottom-white", "bottom", (240, 240, 240)),
    ("shoes-grey", "shoes", (140, 140, 140)),
    ("shoes-yellow", "shoes", (250, 230, 20)),
    ("shoes-black", "shoes", (5, 5, 5)),
]


@pytest.fixture()
def stores(tmp_path: Path) -> Tuple[SQLiteWardrobeStore, SQLiteOutfitStore]:
    item_store = SQLiteWardrobeStore(tmp_path / "engine.db")
    outfit_store = SQLiteOutfitStore(tmp_path / "engine.db")
    for url, category, rgb in WARDROBE:
        item_store.add_item(USER, WardrobeItem(url=url, category=category, brand="B", size="M", rgb=RGB(*rgb)))
    return item_store, outfit_store


@pytest.fixture()
def manager(stores) -> SessionManager:
    item_store, outfit_store = stores
    return SessionManager(item_store, outfit_store, donation_url="https://donate.example.org/")


def urls(response) -> Tuple[str, str, str]:
    outfit = response["outfit"]
    return outfit["top"]["url"], outfit["bottom"]["url"], outfit["shoes"]["url"]


def test_generate_returns_best_casual_outfit(manager: SessionManager) -> None:
    session = manager.start_session(USER, "Casual")

    response = session.generate()

    assert response["status"] == "ok"
    assert urls(response) == ("top-grey", "bottom-khaki", "shoes-grey")
    assert response["prompt"] is None
    assert manager.get(session.session_id) is session


def test_outfit_payload_carries_match_bands_and_rule_check(manager: SessionManager) -> None:
    outfit = manager.start_session(USER, "casual").generate()["outfit"]

    assert outfit["top"]["label"] == "Tops"
    assert outfit["top"]["match"] == "excellent"
    assert outfit["top"]["bright_color"] is None
    assert outfit["match"] in ("excellent", "good")
    assert outfit["meets_style_rule"] is True


def test_streetwear_payload_flags_a_broken_color_rule(manager: SessionManager) -> None:
    outfit = manager.start_session(USER, "streetwear").generate()["outfit"]

    assert outfit["top"]["url"] == "top-grey"
    assert outfit["meets_style_rule"] is False


def test_unknown_session_raises(manager: SessionManager) -> None:
    with pytest.raises(UnknownSessionError):
        manager.get("nope")


def test_insufficient_wardrobe_is_reported_before_generation(stores) -> None:
    item_store, outfit_store = stores
    item_store.delete_item(USER, "shoes-black")
    session = SessionManager(item_store, outfit_store).start_session(USER, "casual")

    response = session.generate()

    assert response["status"] == "insufficient_items"
    assert "1 more Shoes" in response["message"]
    assert response["outfit"] is None


def test_third_rejection_prompts_and_defers_next_outfit(manager: SessionManager, stores) -> None:
    item_store, _ = stores
    session = manager.start_session(USER, "casual")
    session.generate()

    assert session.reject()["status"] == "ok"
    assert session.reject()["status"] == "ok"
    prompted = session.reject()

    assert prompted["status"] == "prompt"
    assert prompted["prompt"]["slot"] == "top"
    assert prompted["pending_prompts"] == 2
    shown = urls(prompted)

    assert session.next_outfit()["status"] == "prompt_pending"
    assert session.reject()["status"] == "prompt_pending"
    assert item_store.get_rejection_count(USER, "top-grey") == 3

    kept = session.resolve_prompt("keep")
    assert kept["status"] == "ok"
    assert kept["prompt"]["slot"] == "bottom"
    assert urls(kept) == shown
    assert item_store.get_rejection_count(USER, "top-grey") == 0

    deleted = session.resolve_prompt("delete")
    assert deleted["status"] == "ok"
    assert deleted["prompt"] is None
    assert urls(deleted) != shown
    assert item_store.get_item(USER, "bottom-khaki") is None

    for _ in range(10):
        assert session.next_outfit()["outfit"]["bottom"]["url"] != "bottom-khaki"


def test_donate_keeps_prompt_pending(manager: SessionManager) -> None:
    session = manager.start_session(USER, "casual")
    session.generate()
    for _ in range(3):
        session.reject()

    response = session.resolve_prompt("donate")

    assert response["status"] == "donate"
    assert response["donation_url"] == "https://donate.example.org/"
    assert response["pending_prompts"] == 2


def test_resolve_without_prompt_is_invalid(manager: SessionManager) -> None:
    session = manager.start_session(USER, "casual")
    session.generate()

    assert session.resolve_prompt("keep")["status"] == "invalid_request"


def test_actions_before_generate_are_invalid(manager: SessionManager) -> None:
    session = manager.start_session(USER, "casual")

    assert session.reject()["status"] == "invalid_request"
    assert session.toggle_lock("top")["status"] == "invalid_request"
    assert session.save("Monday")["status"] == "invalid_request"


def test_locking_everything_signals_ready_to_save(manager: SessionManager) -> None:
    session = manager.start_session(USER, "casual")
    session.generate()

    session.toggle_lock("top")
    session.toggle_lock("bottom")
    response = session.toggle_lock("shoes")

    assert response["ready_to_save"]
    assert session.next_outfit()["status"] == "all_locked"


def test_save_conflicts_are_distinguished(manager: SessionManager) -> None:
    session = manager.start_session(USER, "casual")
    session.generate()

    saved = session.save("Monday")
    assert saved["status"] == "saved"
    assert saved["saved"]["style"] == "Casual"
    assert saved["saved_count"] == 1

    assert session.save("Monday")["status"] == "name_taken"
    assert session.save("Tuesday")["status"] == "combination_taken"


def test_saved_outfits_are_skipped_by_new_sessions(manager: SessionManager) -> None:
    first = manager.start_session(USER, "casual")
    saved_urls = urls(first.generate())
    first.save("Monday")

    second = manager.start_session(USER, "casual")

    assert urls(second.generate()) != saved_urls


def test_store_failure_leaves_state_unchanged(manager: SessionManager, monkeypatch) -> None:
    session = manager.start_session(USER, "casual")
    before = session.generate()

    def offline(*_, **__):
        raise StoreError("store offline")

    monkeypatch.setattr(session.outfit_store, "persist", offline)
    response = session.save("Monday")

    assert response["status"] == "error"
    assert "store offline" in response["message"]
    assert urls(response) == urls(before)


def test_reset_rejections(manager: SessionManager, stores) -> None:
    item_store, _ = stores
    session = manager.start_session(USER, "casual")
    session.generate()
    session.reject()

    response = session.reset_rejections()

    assert response["reset_count"] == len(WARDROBE)
    assert item_store.get_rejection_count(USER, "top-grey") == 0


def test_end_session(manager: SessionManager) -> None:
    session = manager.start_session(USER, "random")

    assert manager.sessions_for_user(USER) == [session]
    assert manager.end_session(session.session_id)
    assert not manager.end_session(session.session_id)


def test_new_session_replaces_the_users_previous_one(manager: SessionManager) -> None:
    first = manager.start_session(USER, "casual")
    first.generate()
    other_user = manager.start_session("user-2", "casual")

    second = manager.start_session(USER, "streetwear")

    with pytest.raises(UnknownSessionError):
        manager.get(first.session_id)
    assert manager.sessions_for_user(USER) == [second]
    assert manager.get(other_user.session_id) is other_user


def test_deleted_item_is_gone_from_the_live_session(manager: SessionManager, stores) -> None:
    item_store, _ = stores
    manager.start_session(USER, "casual").generate()
    session = manager.start_session(USER, "casual")
    session.generate()
    for _ in range(3):
        session.reject()
    session.resolve_prompt("delete")
    session.resolve_prompt("keep")

    assert manager.sessions_for_user(USER) == [session]
    assert item_store.get_item(USER, "top-grey") is None
    tops = {session.next_outfit()["outfit"]["top"]["url"] for _ in range(27)}
    assert "top-grey" not in tops
    assert session.reject()["status"] != "error"
