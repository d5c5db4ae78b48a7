from __future__ import annotations

import json
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict

import pytest
import requests

from artindex.errors import CapabilityDisabled, EmptyPayload, MalformedPayload, NetworkError, SourceBusy, SourceUnavailable
from artindex.filtering.path_filter import PathFilter
from artindex.sources.external_cache import (
    EXTERNAL_CACHE_KEY,
    EXTERNAL_CACHE_VERSION,
    ExternalCacheAdapter,
    StaticSourceStatus,
)
from artindex.storage.cache_store import CacheStore

from .conftest import SMALL_TERMS, FakeResponse, FakeSession

CATALOG_URL = "https://catalog.example/cache.json"
HEADERS = {"Last-Modified": "Mon, 01 Jan 2024 00:00:00 GMT", "Content-Length": "120"}
CATALOG: Dict[str, Any] = {
    "Goblins": [["tokens/goblin_boss.png", "Goblin Boss"], "props/barrel.png"],
    "Wolves": [{"path": "packs/wolves/tokens/dire_wolf.png", "name": "Dire Wolf"}],
}


def _adapter(store: CacheStore, session: FakeSession, **kwargs) -> ExternalCacheAdapter:
    kwargs.setdefault("poll_interval", 0.01)
    return ExternalCacheAdapter(store, PathFilter(), term_table=SMALL_TERMS, session=session, **kwargs)


def _serve(session: FakeSession, headers: Dict[str, str] = HEADERS) -> None:
    session.get_routes[CATALOG_URL] = FakeResponse(CATALOG, headers=headers)
    session.head_routes[CATALOG_URL] = FakeResponse(headers=headers)


def test_load_filters_and_persists_snapshot(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    adapter = _adapter(store, session)

    assert adapter.load_from_source(CATALOG_URL)

    assert sorted(adapter.registry.all_paths) == ["packs/wolves/tokens/dire_wolf.png", "tokens/goblin_boss.png"]
    assert adapter.groups == {"Goblins": ["tokens/goblin_boss.png"], "Wolves": ["packs/wolves/tokens/dire_wolf.png"]}
    stored = store.load(EXTERNAL_CACHE_KEY, version=EXTERNAL_CACHE_VERSION)
    assert stored["sourceUrl"] == CATALOG_URL
    assert stored["sourceContentLength"] == 120
    assert stored["catalog"]["Goblins"] == [["tokens/goblin_boss.png", "Goblin Boss", []]]


def test_repeated_loads_reuse_the_catalog(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    adapter = _adapter(store, session)

    adapter.load_from_source(CATALOG_URL)
    adapter.load_from_source(CATALOG_URL)

    assert session.count("GET", CATALOG_URL) == 1


def test_unchanged_source_restores_without_download(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    _adapter(store, session).load_from_source(CATALOG_URL)

    fresh_session = FakeSession()
    _serve(fresh_session)
    restored = _adapter(store, fresh_session)

    assert restored.restore_if_fresh(CATALOG_URL) is not None
    assert restored.is_loaded and not restored.revalidation_pending
    assert restored.load_from_source(CATALOG_URL)
    assert fresh_session.count("GET", CATALOG_URL) == 0
    assert fresh_session.count("HEAD", CATALOG_URL) == 1


def test_changed_source_discards_snapshot(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    _adapter(store, session).load_from_source(CATALOG_URL)

    changed = FakeSession()
    _serve(changed, headers={**HEADERS, "Content-Length": "999"})
    adapter = _adapter(store, changed)

    assert adapter.restore_if_fresh(CATALOG_URL) is None
    assert store.load(EXTERNAL_CACHE_KEY) is None
    assert not adapter.is_loaded


def test_failed_probe_keeps_snapshot_and_revalidates_on_load(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    _adapter(store, session).load_from_source(CATALOG_URL)

    offline = FakeSession()
    offline.head_routes[CATALOG_URL] = requests.ConnectionError("offline")
    offline.get_routes[CATALOG_URL] = FakeResponse(CATALOG, headers=HEADERS)
    adapter = _adapter(store, offline)

    assert adapter.restore_if_fresh(CATALOG_URL) is not None
    assert adapter.revalidation_pending
    assert adapter.search_direct("goblin")[0].path == "tokens/goblin_boss.png"

    adapter.load_from_source(CATALOG_URL)
    assert offline.count("GET", CATALOG_URL) == 1
    assert not adapter.revalidation_pending


def test_snapshot_from_another_locator_is_ignored(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    _adapter(store, session).load_from_source(CATALOG_URL)

    assert _adapter(store, session).restore_if_fresh("https://other.example/cache.json") is None


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (StaticSourceStatus(available=False), SourceUnavailable),
        (StaticSourceStatus(enabled=False), CapabilityDisabled),
        (StaticSourceStatus(busy=True), SourceBusy),
    ],
)
def test_source_status_failures_are_structured(store: CacheStore, session: FakeSession, status, error) -> None:
    _serve(session)
    adapter = _adapter(store, session, status=status, busy_wait=0.05)

    with pytest.raises(error):
        adapter.load_from_source(CATALOG_URL)
    assert session.count("GET", CATALOG_URL) == 0


def test_busy_source_is_waited_for(store: CacheStore, session: FakeSession) -> None:
    class WarmingUp(StaticSourceStatus):
        polls = 0

        def is_busy(self) -> bool:
            self.polls += 1
            return self.polls < 3

    _serve(session)
    adapter = _adapter(store, session, status=WarmingUp(), busy_wait=5)

    assert adapter.load_from_source(CATALOG_URL)


@pytest.mark.parametrize(
    ("response", "error"),
    [
        (FakeResponse(status_code=500), NetworkError),
        (FakeResponse(text="{oops"), MalformedPayload),
        (FakeResponse(["not", "an", "object"]), MalformedPayload),
        (FakeResponse({"Props": ["props/crate.png"]}), EmptyPayload),
    ],
)
def test_payload_failures_are_structured(store: CacheStore, session: FakeSession, response, error) -> None:
    session.get_routes[CATALOG_URL] = response
    adapter = _adapter(store, session)

    with pytest.raises(error):
        adapter.load_from_source(CATALOG_URL)
    assert not adapter.is_loaded


def test_local_file_catalog_uses_stat_for_freshness(store: CacheStore, session: FakeSession, tmp_path: Path) -> None:
    catalog = tmp_path / "catalog.json"
    catalog.write_text(json.dumps(CATALOG), encoding="utf-8")
    _adapter(store, session).load_from_source(str(catalog))

    assert _adapter(store, session).restore_if_fresh(str(catalog)) is not None

    catalog.write_text(json.dumps({"Goblins": ["tokens/goblin.png"]}) + " " * 64, encoding="utf-8")
    assert _adapter(store, session).restore_if_fresh(str(catalog)) is None


def test_missing_file_is_unavailable(store: CacheStore, session: FakeSession, tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailable):
        _adapter(store, session).load_from_source(str(tmp_path / "missing.json"))


def test_category_search_ignores_source_labels(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    adapter = _adapter(store, session)
    adapter.load_from_source(CATALOG_URL)

    assert [result.path for result in adapter.search_by_category("humanoid")] == ["tokens/goblin_boss.png"]
    assert [result.path for result in adapter.search_by_category("beast")] == ["packs/wolves/tokens/dire_wolf.png"]
    assert all(result.source == "external" for result in adapter.search_multiple(["goblin", "wolf"]))


def test_clear_forgets_memory_and_snapshot(store: CacheStore, session: FakeSession) -> None:
    _serve(session)
    adapter = _adapter(store, session)
    adapter.load_from_source(CATALOG_URL)

    adapter.clear()

    assert not adapter.is_loaded
    assert adapter.stats()["total_images"] == 0
    assert store.load(EXTERNAL_CACHE_KEY) is None


def test_concurrent_loads_share_one_download(store: CacheStore, session: FakeSession) -> None:
    session.head_routes[CATALOG_URL] = FakeResponse(headers=HEADERS)

    def slow_catalog(params: Dict[str, Any]) -> FakeResponse:
        time.sleep(0.2)
        return FakeResponse(CATALOG, headers=HEADERS)

    session.get_routes[CATALOG_URL] = slow_catalog
    adapter = _adapter(store, session)

    with ThreadPoolExecutor(max_workers=4) as pool:
        outcomes = list(pool.map(lambda _: adapter.load_from_source(CATALOG_URL), range(4)))

    assert outcomes == [True, True, True, True]
    assert session.count("GET", CATALOG_URL) == 1
    assert len(adapter.registry) == 2
