"""Wardrobe item storage abstractions and SQLite implementation."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from models.color_theory import RGB
from models.wardrobe_item import WardrobeItem
from tools.observability import instrument_gateway
from tools.store_errors import ItemNotFoundError, StoreError


class WardrobeStore:
    """Persistence interface for wardrobe items and their rejection counters."""

    def add_item(self, user_id: str, item: WardrobeItem) -> WardrobeItem:
        raise NotImplementedError

    def get_item(self, user_id: str, url: str) -> Optional[WardrobeItem]:
        raise NotImplementedError

    def list_items(self, user_id: str) -> List[WardrobeItem]:
        raise NotImplementedError

    def get_rejection_count(self, user_id: str, url: str) -> int:
        raise NotImplementedError

    def increment_rejection(self, user_id: str, url: str) -> int:
        raise NotImplementedError

    def reset_rejection(self, user_id: str, url: str) -> None:
        raise NotImplementedError

    def reset_all_rejections(self, user_id: str) -> int:
        raise NotImplementedError

    def delete_item(self, user_id: str, url: str) -> bool:
        raise NotImplementedError


class SQLiteWardrobeStore(WardrobeStore):
    """Local SQLite-backed store for wardrobe items."""

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
            raise StoreError(f"Wardrobe store unavailable: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreError(f"Wardrobe store operation failed: {exc}") from exc
        finally:
            conn.close()

    def _ensure_tables(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS wardrobe_items (
                    user_id TEXT NOT NULL,
                    url TEXT NOT NULL,
                    category TEXT NOT NULL,
                    brand TEXT,
                    size TEXT,
                    red REAL NOT NULL,
                    green REAL NOT NULL,
                    blue REAL NOT NULL,
                    rejection_count INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (user_id, url)
                );
                """
            )

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> WardrobeItem:
        return WardrobeItem(
            url=row["url"],
            category=row["category"],
            brand=row["brand"] or "",
            size=row["size"] or "",
            rgb=RGB(row["red"], row["green"], row["blue"]),
            rejection_count=row["rejection_count"],
        )

    @instrument_gateway("wardrobe_store.add_item")
    def add_item(self, user_id: str, item: WardrobeItem) -> WardrobeItem:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO wardrobe_items (
                    user_id, url, category, brand, size, red, green, blue, rejection_count
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, url) DO UPDATE SET
                    category = excluded.category,
                    brand = excluded.brand,
                    size = excluded.size,
                    red = excluded.red,
                    green = excluded.green,
                    blue = excluded.blue
                """,
                (
                    user_id,
                    item.url,
                    item.category,
                    item.brand,
                    item.size,
                    item.rgb.red,
                    item.rgb.green,
                    item.rgb.blue,
                    item.rejection_count,
                ),
            )
        return item

    def get_item(self, user_id: str, url: str) -> Optional[WardrobeItem]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM wardrobe_items WHERE user_id = ? AND url = ?",
                (user_id, url),
            ).fetchone()
            return self._row_to_item(row) if row else None

    @instrument_gateway("wardrobe_store.list_items")
    def list_items(self, user_id: str) -> List[WardrobeItem]:
        with self._transaction() as conn:
            cursor = conn.execute(
                "SELECT * FROM wardrobe_items WHERE user_id = ? ORDER BY rowid",
                (user_id,),
            )
            return [self._row_to_item(row) for row in cursor.fetchall()]

    def get_rejection_count(self, user_id: str, url: str) -> int:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT rejection_count FROM wardrobe_items WHERE user_id = ? AND url = ?",
                (user_id, url),
            ).fetchone()
        if row is None:
            raise ItemNotFoundError(url)
        return int(row["rejection_count"])

    @instrument_gateway("wardrobe_store.increment_rejection")
    def increment_rejection(self, user_id: str, url: str) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE wardrobe_items SET rejection_count = rejection_count + 1 WHERE user_id = ? AND url = ?",
                (user_id, url),
            )
            if cursor.rowcount == 0:
                raise ItemNotFoundError(url)
            row = conn.execute(
                "SELECT rejection_count FROM wardrobe_items WHERE user_id = ? AND url = ?",
                (user_id, url),
            ).fetchone()
        return int(row["rejection_count"])

    @instrument_gateway("wardrobe_store.reset_rejection")
    def reset_rejection(self, user_id: str, url: str) -> None:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE wardrobe_items SET rejection_count = 0 WHERE user_id = ? AND url = ?",
                (user_id, url),
            )
            if cursor.rowcount == 0:
                raise ItemNotFoundError(url)

    @instrument_gateway("wardrobe_store.reset_all_rejections")
    def reset_all_rejections(self, user_id: str) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE wardrobe_items SET rejection_count = 0 WHERE user_id = ?",
                (user_id,),
            )
            return cursor.rowcount

    @instrument_gateway("wardrobe_store.delete_item")
    def delete_item(self, user_id: str, url: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM wardrobe_items WHERE user_id = ? AND url = ?",
                (user_id, url),
            )
            return cursor.rowcount > 0


__all__ = ["WardrobeStore", "SQLiteWardrobeStore"]
