"""
roadwatch/store/local_cache.py
Local fallback cache — named slots holding one serialized value each.
HazardStore keeps the whole hazard list in a single slot and always
read-modify-writes it. Not itemized; not transactional across calls.

SQLite backing: one table, one row per slot. WAL journal for safe
concurrent reads. Concurrent writers (several processes) can still
clobber each other's read-modify-write cycles.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class LocalCache(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class SqliteLocalCache(LocalCache):

    def __init__(self, db_path: Path = Path('roadwatch_cache.db')):
        self.db_path = Path(db_path)
        self._schema_ready = False

    # ── INTERNAL ─────────────────────────────────────────────
    def _connect(self) -> sqlite3.Connection:
        fresh = not self.db_path.exists()
        conn  = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        if fresh or not self._schema_ready:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cache_slots (
                    slot_key    TEXT PRIMARY KEY,
                    slot_value  TEXT NOT NULL,
                    updated_at  TEXT NOT NULL
                )
            """)
            conn.commit()
            self._schema_ready = True
        return conn

    # ── SLOTS ────────────────────────────────────────────────
    def get(self, key: str) -> Optional[str]:
        if not self.db_path.exists():
            return None
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT slot_value FROM cache_slots WHERE slot_key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO cache_slots (slot_key, slot_value, updated_at) "
                "VALUES (?, ?, ?)",
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Local cache write failed for slot '{key}': {e}")
            raise
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        if not self.db_path.exists():
            return
        conn = self._connect()
        try:
            conn.execute("DELETE FROM cache_slots WHERE slot_key = ?", (key,))
            conn.commit()
        finally:
            conn.close()
