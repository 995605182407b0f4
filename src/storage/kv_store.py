# src/storage/kv_store.py

"""Persistent key-value store holding JSON values under string keys."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Protocol

from src.config.settings import Settings
from src.errors import StorageReadFailure, StorageWriteFailure

logger = logging.getLogger("pricewatch.kv_store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS kv_entries (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""


class KeyValueStore(Protocol):
    """Storage boundary used for the product list and tracking map."""

    def get(self, keys: list[str]) -> dict[str, Any]:
        """Return the stored values for whichever ``keys`` exist."""
        ...

    def set(self, entries: dict[str, Any]) -> None:
        """Store every entry, replacing existing values."""
        ...

    def remove(self, keys: list[str]) -> None:
        """Delete ``keys``; missing keys are ignored."""
        ...

    def close(self) -> None:
        """Release the underlying resources."""
        ...


class SqliteKeyValueStore:
    """SQLite-backed store of JSON-serialised values."""

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.STORE_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._path = path
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("SqliteKeyValueStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def get(self, keys: list[str]) -> dict[str, Any]:
        """Return ``{key: value}`` for the keys that are present.

        Raises:
            StorageReadFailure: the database or a stored value is unreadable.
        """
        if not keys:
            return {}
        placeholders = ",".join("?" * len(keys))
        try:
            rows = self._conn.execute(
                f"SELECT key, value FROM kv_entries WHERE key IN ({placeholders})",
                list(keys),
            ).fetchall()
            return {key: json.loads(value) for key, value in rows}
        except (sqlite3.Error, json.JSONDecodeError) as exc:
            raise StorageReadFailure(
                f"Failed to read keys {keys}: {exc}"
            ) from exc

    def set(self, entries: dict[str, Any]) -> None:
        """Upsert every entry in a single transaction.

        Raises:
            StorageWriteFailure: a value is not JSON-serialisable or the
                write failed; nothing is committed in that case.
        """
        if not entries:
            return
        try:
            rows = [
                (key, json.dumps(value, ensure_ascii=False))
                for key, value in entries.items()
            ]
            with self._conn:
                self._conn.executemany(
                    "INSERT INTO kv_entries (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
                    "updated_at=strftime('%Y-%m-%dT%H:%M:%fZ', 'now')",
                    rows,
                )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise StorageWriteFailure(
                f"Failed to write keys {list(entries)}: {exc}"
            ) from exc
        logger.debug("Stored keys %s", list(entries))

    def remove(self, keys: list[str]) -> None:
        """Delete the given keys."""
        if not keys:
            return
        placeholders = ",".join("?" * len(keys))
        try:
            with self._conn:
                self._conn.execute(
                    f"DELETE FROM kv_entries WHERE key IN ({placeholders})",
                    list(keys),
                )
        except sqlite3.Error as exc:
            raise StorageWriteFailure(
                f"Failed to remove keys {keys}: {exc}"
            ) from exc
