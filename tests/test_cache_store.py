from __future__ import annotations

import sqlite3
from pathlib import Path

from artindex.storage.cache_store import CacheStore


def test_save_and_load_round_trip(store: CacheStore) -> None:
    assert store.save("entry", {"version": 3, "items": [1, 2]})

    assert store.load("entry", version=3) == {"version": 3, "items": [1, 2]}
    assert store.primary_available
    assert store.test_connection()


def test_version_mismatch_discards_entry(store: CacheStore) -> None:
    store.save("entry", {"version": 6, "items": []})

    assert store.load("entry", version=7) is None
    assert store.load("entry") is None
    assert "entry" not in store.keys()


def test_corrupt_primary_entry_is_removed(store: CacheStore, tmp_path: Path) -> None:
    store.save("entry", {"version": 1})
    conn = sqlite3.connect(str(tmp_path / "db" / "cache.sqlite3"))
    conn.execute("UPDATE cache_entries SET payload = ? WHERE key = ?", ("{not json", "entry"))
    conn.commit()
    conn.close()

    assert store.load("entry") is None
    assert store.keys() == []


def test_fallback_used_without_database(fallback_store: CacheStore, tmp_path: Path) -> None:
    assert not fallback_store.primary_available
    assert fallback_store.save("artindex-index", {"version": 7, "payload": "x"})

    assert (tmp_path / "fallback" / "artindex-index.json").exists()
    assert fallback_store.load("artindex-index", version=7)["payload"] == "x"


def test_fallback_rejects_oversized_payloads(tmp_path: Path) -> None:
    small = CacheStore(None, tmp_path / "fallback", fallback_max_bytes=64)

    assert not small.save("big", {"version": 1, "blob": "x" * 200})
    assert small.load("big") is None
    assert not (tmp_path / "fallback" / "big.json").exists()


def test_corrupt_fallback_file_is_deleted(fallback_store: CacheStore, tmp_path: Path) -> None:
    target = tmp_path / "fallback" / "entry.json"
    target.parent.mkdir(parents=True)
    target.write_text("[1, 2", encoding="utf-8")

    assert fallback_store.load("entry") is None
    assert not target.exists()


def test_migrate_fallback_moves_entries_into_primary(fallback_store: CacheStore, tmp_path: Path) -> None:
    fallback_store.save("entry", {"version": 2, "value": 1})
    primary = CacheStore(tmp_path / "db.sqlite3", tmp_path / "fallback")
    try:
        assert primary.migrate_fallback() == 1
        assert primary.load("entry", version=2) == {"version": 2, "value": 1}
        assert not (tmp_path / "fallback" / "entry.json").exists()
    finally:
        primary.close()


def test_remove_deletes_from_both_backends(store: CacheStore) -> None:
    store.save("entry", {"version": 1})
    store.remove("entry")

    assert store.load("entry") is None
