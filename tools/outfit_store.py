"""Saved outfit storage abstractions and SQLite implementation."""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List

from models.outfit import GeneratedOutfit, SavedItem, SavedOutfit
from tools.observability import instrument_gateway
from tools.store_errors import OutfitCombinationTakenError, OutfitNameTakenError, StoreError


class OutfitStore:
    """Persistence interface for saved outfits.

    ``persist`` raises :class:`OutfitNameTakenError` or
    :class:`OutfitCombinationTakenError` for conflicts and :class:`StoreError`
    for any other failure.
    """

    def name_exists(self, user_id: str, name: str) -> bool:
        raise NotImplementedError

    def combination_exists(self, user_id: str, top_url: str, bottom_url: str, shoes_url: str) -> bool:
        raise NotImplementedError

    def persist(self, user_id: str, name: str, style: str, outfit: GeneratedOutfit) -> SavedOutfit:
        raise NotImplementedError

    def list_saved(self, user_id: str) -> List[SavedOutfit]:
        raise NotImplementedError

    def delete_saved(self, user_id: str, name: str) -> bool:
        raise NotImplementedError

    def search_saved(self, user_id: str, text: str) -> List[SavedOutfit]:
        """Saved outfits whose name or style contains ``text``, ignoring case."""

        saved = self.list_saved(user_id)
        needle = (text or "").strip().lower()
        if not needle:
            return saved
        return [outfit for outfit in saved if needle in outfit.name.lower() or needle in outfit.style.lower()]


class SQLiteOutfitStore(OutfitStore):
    """Local SQLite-backed store for saved outfits."""

    def __init__(self, database_path: str | Path = "data/outfit_engine.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Outfit store unavailable: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreError(f"Outfit store operation failed: {exc}") from exc
        finally:
            conn.close()

    def _ensure_tables(self) -> None:
        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS saved_outfits (
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    style TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    top_url TEXT NOT NULL,
                    bottom_url TEXT NOT NULL,
                    shoes_url TEXT NOT NULL,
                    top TEXT NOT NULL,
                    bottom TEXT NOT NULL,
                    shoes TEXT NOT NULL,
                    PRIMARY KEY (user_id, name)
                );
                CREATE UNIQUE INDEX IF NOT EXISTS saved_outfits_combination
                    ON saved_outfits (user_id, top_url, bottom_url, shoes_url);
                """
            )

    @staticmethod
    def _row_to_outfit(row: sqlite3.Row) -> SavedOutfit:
        return SavedOutfit(
            name=row["name"],
            style=row["style"],
            created_at=datetime.fromisoformat(row["created_at"]),
            top=SavedItem.from_record(json.loads(row["top"])),
            bottom=SavedItem.from_record(json.loads(row["bottom"])),
            shoes=SavedItem.from_record(json.loads(row["shoes"])),
        )

    def name_exists(self, user_id: str, name: str) -> bool:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT 1 FROM saved_outfits WHERE user_id = ? AND name = ?",
                (user_id, name),
            ).fetchone()
            return row is not None

    def combination_exists(self, user_id: str, top_url: str, bottom_url: str, shoes_url: str) -> bool:
        with self._transaction() as conn:
            row = conn.execute(
                """
                SELECT 1 FROM saved_outfits
                WHERE user_id = ? AND top_url = ? AND bottom_url = ? AND shoes_url = ?
                """,
                (user_id, top_url, bottom_url, shoes_url),
            ).fetchone()
            return row is not None

    @instrument_gateway("outfit_store.persist")
    def persist(self, user_id: str, name: str, style: str, outfit: GeneratedOutfit) -> SavedOutfit:
        combination = outfit.combination
        if combination is None:
            raise ValueError("Only complete outfits can be saved")
        if self.name_exists(user_id, name):
            raise OutfitNameTakenError(name)
        if self.combination_exists(user_id, *combination):
            raise OutfitCombinationTakenError(combination)

        saved = SavedOutfit(
            name=name,
            style=style,
            created_at=datetime.now(timezone.utc),
            top=SavedItem.from_item(outfit.top),
            bottom=SavedItem.from_item(outfit.bottom),
            shoes=SavedItem.from_item(outfit.shoes),
        )
        with self._transaction() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO saved_outfits (
                        user_id, name, style, created_at, top_url, bottom_url, shoes_url, top, bottom, shoes
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        saved.name,
                        saved.style,
                        saved.created_at.isoformat(),
                        *combination,
                        json.dumps(saved.top.to_record()),
                        json.dumps(saved.bottom.to_record()),
                        json.dumps(saved.shoes.to_record()),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                # Lost a race with another writer between the checks and the insert.
                if "saved_outfits.name" in str(exc):
                    raise OutfitNameTakenError(name) from exc
                raise OutfitCombinationTakenError(combination) from exc
        return saved

    @instrument_gateway("outfit_store.list_saved")
    def list_saved(self, user_id: str) -> List[SavedOutfit]:
        with self._transaction() as conn:
            cursor = conn.execute(
                "SELECT * FROM saved_outfits WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            )
            return [self._row_to_outfit(row) for row in cursor.fetchall()]

    @instrument_gateway("outfit_store.delete_saved")
    def delete_saved(self, user_id: str, name: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM saved_outfits WHERE user_id = ? AND name = ?",
                (user_id, name),
            )
            return cursor.rowcount > 0


__all__ = ["OutfitStore", "SQLiteOutfitStore"]
