"""Key/value storage for analysis results, whitelist, settings and history."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol

from gmail_sender_cleaner import constants
from gmail_sender_cleaner.models import AnalysisResult, HistoryEntry

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value_json TEXT NOT NULL
);
"""


class KeyValueStore(Protocol):
    """Opaque store of JSON-serialisable values."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, mainly for tests and dry runs."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        return default if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        # Stored as JSON so callers never share mutable state with the store.
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteStore:
    """Persistent SQLite-backed store."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path or constants.STORE_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript(_CREATE_TABLES_SQL)

    # --- public API ---

    def get(self, key: str, default: Any = None) -> Any:
        row = self._conn.execute("SELECT value_json FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        return json.loads(row["value_json"])

    def set(self, key: str, value: Any) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO kv (key, value_json) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json",
                (key, json.dumps(value)),
            )

    def remove(self, key: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- context manager ---

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()


class MailboxCache:
    """Typed access to everything the cleaner keeps in a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # --- analysis ---

    def save_analysis(self, analysis: AnalysisResult) -> None:
        self.store.set(constants.KEY_ANALYSIS, analysis.to_dict())
        self.store.set(constants.KEY_LAST_UPDATED, datetime.now(timezone.utc).isoformat())

    def load_analysis(self) -> AnalysisResult | None:
        data = self.store.get(constants.KEY_ANALYSIS)
        return AnalysisResult.from_dict(data) if data else None

    def last_updated(self) -> datetime | None:
        value = self.store.get(constants.KEY_LAST_UPDATED)
        return datetime.fromisoformat(value) if value else None

    def is_cache_valid(self, max_age: timedelta | None = None) -> bool:
        """True when the cached analysis is younger than *max_age*."""
        if max_age is None:
            max_age = timedelta(minutes=self.get_settings()["cache_expiration_minutes"])
        updated = self.last_updated()
        if updated is None:
            return False
        return datetime.now(timezone.utc) - updated < max_age

    # --- whitelist ---

    def get_whitelist(self) -> set[str]:
        return set(self.store.get(constants.KEY_WHITELIST, []))

    def save_whitelist(self, whitelist: set[str]) -> None:
        self.store.set(constants.KEY_WHITELIST, sorted(whitelist))

    def add_to_whitelist(self, email: str) -> None:
        whitelist = self.get_whitelist()
        whitelist.add(email.strip().lower())
        self.save_whitelist(whitelist)

    def remove_from_whitelist(self, email: str) -> None:
        whitelist = self.get_whitelist()
        whitelist.discard(email.strip().lower())
        self.save_whitelist(whitelist)

    def is_whitelisted(self, email: str) -> bool:
        return email.strip().lower() in self.get_whitelist()

    # --- settings ---

    def get_settings(self) -> dict:
        settings = dict(constants.DEFAULT_SETTINGS)
        settings.update(self.store.get(constants.KEY_SETTINGS, {}))
        return settings

    def update_setting(self, key: str, value: Any) -> None:
        if key not in constants.DEFAULT_SETTINGS:
            raise KeyError(f"Unknown setting: {key}")
        stored = self.store.get(constants.KEY_SETTINGS, {})
        stored[key] = value
        self.store.set(constants.KEY_SETTINGS, stored)

    # --- history ---

    def add_history(self, entry: HistoryEntry) -> None:
        history = self.store.get(constants.KEY_HISTORY, [])
        history.insert(0, entry.to_dict())
        self.store.set(constants.KEY_HISTORY, history[: constants.HISTORY_LIMIT])

    def get_history(self, limit: int | None = 50) -> list[HistoryEntry]:
        history = self.store.get(constants.KEY_HISTORY, [])
        if limit:
            history = history[:limit]
        return [HistoryEntry.from_dict(h) for h in history]

    def clear_history(self) -> None:
        self.store.set(constants.KEY_HISTORY, [])

    # --- maintenance ---

    def clear(self) -> None:
        """Drop the cached analysis; whitelist, settings and history survive."""
        self.store.remove(constants.KEY_ANALYSIS)
        self.store.remove(constants.KEY_LAST_UPDATED)

    def get_info(self) -> dict:
        """Return cache statistics."""
        analysis = self.load_analysis()
        updated = self.last_updated()
        return {
            "last_updated": updated.isoformat() if updated else None,
            "sender_count": len(analysis.senders) if analysis else 0,
            "message_count": analysis.stats.total_messages if analysis else 0,
            "whitelist_count": len(self.get_whitelist()),
            "history_count": len(self.store.get(constants.KEY_HISTORY, [])),
        }
