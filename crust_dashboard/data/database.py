"""SQLite persistence for favorites, the address book and the watch list."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from ..core.config import get_settings
from ..core.types import WatchItem

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS favorites (
        storage_key TEXT NOT NULL,
        account_id TEXT NOT NULL,
        added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (storage_key, account_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS address_book (
        account_id TEXT PRIMARY KEY,
        name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS watch_items (
        file_cid TEXT PRIMARY KEY,
        data_json TEXT NOT NULL,
        added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DashboardDatabase:
    """Keyed local store; implements the favorites and address book
    interfaces and keeps watch items across sessions."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path or get_settings().database_path)
        self._initialized = False

    async def init_db(self) -> None:
        """Create parent directory and schema on first use."""
        if self._initialized:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            for statement in SCHEMA:
                await db.execute(statement)
            await db.commit()
        self._initialized = True

    # Favorites

    async def get(self, key: str) -> list[str]:
        """Favorite account ids stored under ``key``, oldest first."""
        await self.init_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT account_id FROM favorites WHERE storage_key = ? ORDER BY rowid",
                (key,),
            ) as cursor:
                rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def toggle(self, key: str, account_id: str) -> list[str]:
        """Add or remove ``account_id``; returns the new favorites list."""
        await self.init_db()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM favorites WHERE storage_key = ? AND account_id = ?",
                (key, account_id),
            )
            if cursor.rowcount == 0:
                await db.execute(
                    "INSERT INTO favorites (storage_key, account_id) VALUES (?, ?)",
                    (key, account_id),
                )
            await db.commit()
        return await self.get(key)

    # Address book

    async def get_name(self, account_id: str) -> str | None:
        await self.init_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT name FROM address_book WHERE account_id = ?", (account_id,)
            ) as cursor:
                row = await cursor.fetchone()
        return row[0] if row else None

    async def get_names(self) -> dict[str, str]:
        await self.init_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT account_id, name FROM address_book") as cursor:
                rows = await cursor.fetchall()
        return {account_id: name for account_id, name in rows}

    async def set_name(self, account_id: str, name: str) -> None:
        await self.init_db()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO address_book (account_id, name) VALUES (?, ?)
                ON CONFLICT(account_id) DO UPDATE SET name = excluded.name
                """,
                (account_id, name),
            )
            await db.commit()

    # Watch list

    async def save_watch_item(self, item: WatchItem) -> None:
        """Insert or replace a watch item."""
        await self.init_db()
        now = _now()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO watch_items (file_cid, data_json, added_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(file_cid) DO UPDATE SET
                    data_json = excluded.data_json,
                    updated_at = excluded.updated_at
                """,
                (item.file_cid, item.model_dump_json(), now, now),
            )
            await db.commit()

    async def get_watch_items(self) -> list[WatchItem]:
        await self.init_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT data_json FROM watch_items ORDER BY added_at, rowid"
            ) as cursor:
                rows = await cursor.fetchall()

        items = []
        for (data_json,) in rows:
            try:
                items.append(WatchItem.model_validate(json.loads(data_json)))
            except ValueError as e:
                logger.warning(f"Skipping unreadable watch item: {e}")
        return items

    async def delete_watch_items(self, file_cids: list[str]) -> int:
        """Remove watch items; returns how many rows were deleted."""
        if not file_cids:
            return 0
        await self.init_db()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.executemany(
                "DELETE FROM watch_items WHERE file_cid = ?",
                [(cid,) for cid in file_cids],
            )
            await db.commit()
            return cursor.rowcount
