# Path: artindex/storage/cache_store.py
# Purpose: Persist versioned JSON envelopes across restarts.
# Layer: artindex/storage.
# Details: SQLite is the primary backend with one reused connection; a capped JSON-file directory is the fallback.

from __future__ import annotations

import json
import logging
import re
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from artindex.errors import StorageCapacityExceeded

logger = logging.getLogger(__name__)

FALLBACK_MAX_BYTES = 4_500_000
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class CacheStore:
    """Generic key/value persistence for versioned envelopes."""

    def __init__(
        self,
        database_path: Optional[Path],
        fallback_dir: Path,
        fallback_max_bytes: int = FALLBACK_MAX_BYTES,
    ) -> None:
        self.database_path = Path(database_path) if database_path is not None else None
        self.fallback_dir = Path(fallback_dir)
        self.fallback_max_bytes = fallback_max_bytes
        self._lock = threading.RLock()
        self._connection: Optional[sqlite3.Connection] = None
        self.primary_available = self._probe_primary()

    # ------------------------------------------------------------------ primary backend

    @staticmethod
    def _connect_sqlite(path: Path) -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS cache_entries (
                key TEXT PRIMARY KEY,
                version INTEGER,
                payload TEXT NOT NULL,
                updated_at REAL NOT NULL
            )
            """
        )
        conn.commit()
        return conn

    def _probe_primary(self) -> bool:
        """Open the primary backend once; any failure routes all traffic to the fallback."""

        if self.database_path is None:
            logger.info("No cache database configured; using file fallback at %s", self.fallback_dir)
            return False
        try:
            self._get_connection()
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Cache database %s unavailable, using file fallback: %s", self.database_path, exc)
            self._connection = None
            return False
        return True

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._connection is None:
                assert self.database_path is not None
                self._connection = self._connect_sqlite(self.database_path)
            return self._connection

    def test_connection(self) -> bool:
        """Return True when the primary backend answers a trivial query."""

        if not self.primary_available:
            return False
        try:
            with self._lock:
                self._get_connection().execute("SELECT 1").fetchone()
        except sqlite3.Error as exc:
            logger.warning("Cache database probe failed: %s", exc)
            return False
        return True

    def _write_primary(self, key: str, version: Optional[int], serialized: str) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO cache_entries(key, version, payload, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    version=excluded.version,
                    payload=excluded.payload,
                    updated_at=excluded.updated_at
                """,
                (key, version, serialized, time.time()),
            )
            conn.commit()

    def _read_primary(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._get_connection().execute(
                "SELECT payload FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def _delete_primary(self, key: str) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            conn.commit()

    # ------------------------------------------------------------------ fallback backend

    def _fallback_path(self, key: str) -> Path:
        return self.fallback_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def _write_fallback(self, key: str, serialized: str) -> None:
        size = len(serialized.encode("utf-8"))
        if size > self.fallback_max_bytes:
            raise StorageCapacityExceeded(
                f"Payload for {key!r} is {size} bytes; fallback limit is {self.fallback_max_bytes}.",
                details={"key": key, "size": size, "limit": self.fallback_max_bytes},
            )
        self.fallback_dir.mkdir(parents=True, exist_ok=True)
        target = self._fallback_path(key)
        tmp = target.with_suffix(".tmp")
        tmp.write_text(serialized, encoding="utf-8")
        tmp.replace(target)

    def _read_fallback(self, key: str) -> Optional[str]:
        target = self._fallback_path(key)
        if not target.exists():
            return None
        return target.read_text(encoding="utf-8")

    def _delete_fallback(self, key: str) -> None:
        target = self._fallback_path(key)
        if target.exists():
            target.unlink()

    # ------------------------------------------------------------------ public API

    def save(self, key: str, payload: Dict[str, Any]) -> bool:
        """
        Serialize and store ``payload`` under ``key``.

        Returns False when neither backend accepted the payload; oversized payloads are never truncated.
        """

        try:
            serialized = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot serialize cache entry %s: %s", key, exc)
            return False
        version = payload.get("version") if isinstance(payload.get("version"), int) else None

        if self.primary_available:
            try:
                self._write_primary(key, version, serialized)
            except sqlite3.Error as exc:
                logger.warning("Primary cache write failed for %s, trying fallback: %s", key, exc)
            else:
                self._discard_fallback(key)
                return True

        try:
            self._write_fallback(key, serialized)
        except StorageCapacityExceeded as exc:
            logger.warning("Cache save rejected: %s", exc.message)
            return False
        except OSError as exc:
            logger.warning("Fallback cache write failed for %s: %s", key, exc)
            return False
        return True

    def load(self, key: str, version: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """
        Return the stored payload, or None on miss, corruption, or version mismatch.

        Corrupt or outdated entries are deleted as soon as they are detected.
        """

        if self.primary_available:
            try:
                raw = self._read_primary(key)
            except sqlite3.Error as exc:
                logger.warning("Primary cache read failed for %s: %s", key, exc)
                raw = None
            if raw is not None:
                data = self._decode(key, raw, version)
                if data is not None:
                    return data
                self._discard_primary(key)

        try:
            raw = self._read_fallback(key)
        except OSError as exc:
            logger.warning("Fallback cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        data = self._decode(key, raw, version)
        if data is None:
            self._discard_fallback(key)
        return data

    def remove(self, key: str) -> None:
        """Delete ``key`` from both backends."""

        if self.primary_available:
            self._discard_primary(key)
        self._discard_fallback(key)

    def migrate_fallback(self) -> int:
        """Move entries written to the fallback into the primary backend; returns the number moved."""

        if not self.primary_available or not self.fallback_dir.is_dir():
            return 0
        moved = 0
        for entry in sorted(self.fallback_dir.glob("*.json")):
            try:
                serialized = entry.read_text(encoding="utf-8")
                data = json.loads(serialized)
            except (OSError, ValueError) as exc:
                logger.warning("Dropping unreadable fallback entry %s: %s", entry.name, exc)
                entry.unlink(missing_ok=True)
                continue
            version = data.get("version") if isinstance(data, dict) else None
            try:
                self._write_primary(entry.stem, version if isinstance(version, int) else None, serialized)
            except sqlite3.Error as exc:
                logger.warning("Migration of %s stopped: %s", entry.name, exc)
                break
            entry.unlink(missing_ok=True)
            moved += 1
        if moved:
            logger.info("Migrated %d cache entries from fallback storage", moved)
        return moved

    def keys(self) -> List[str]:
        found = set()
        if self.primary_available:
            with self._lock:
                found.update(row[0] for row in self._get_connection().execute("SELECT key FROM cache_entries"))
        if self.fallback_dir.is_dir():
            found.update(entry.stem for entry in self.fallback_dir.glob("*.json"))
        return sorted(found)

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _decode(key: str, raw: str, version: Optional[int]) -> Optional[Dict[str, Any]]:
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("Corrupt cache entry %s removed: %s", key, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Cache entry %s is not an object; removed", key)
            return None
        if version is not None and data.get("version") != version:
            logger.info("Cache entry %s has version %s, expected %s; discarded", key, data.get("version"), version)
            return None
        return data

    def _discard_primary(self, key: str) -> None:
        try:
            self._delete_primary(key)
        except sqlite3.Error as exc:
            logger.warning("Could not delete cache entry %s: %s", key, exc)

    def _discard_fallback(self, key: str) -> None:
        try:
            self._delete_fallback(key)
        except OSError as exc:
            logger.warning("Could not delete fallback entry %s: %s", key, exc)
