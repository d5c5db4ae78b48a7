"""Shared fixtures: tmp-path cache stores, in-memory HTTP fakes, and small term tables."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

from artindex.errors import NetworkError
from artindex.filtering.path_filter import PathFilter
from artindex.models.domain import ImageRecord
from artindex.storage.cache_store import CacheStore

SMALL_TERMS: Dict[str, Tuple[str, ...]] = {
    "humanoid": ("goblin", "orc", "human"),
    "beast": ("wolf", "bear"),
    "undead": ("skeleton", "zombie"),
}


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(
        self,
        payload: Any = None,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        text: Optional[str] = None,
    ) -> None:
        self._payload = payload
        self.status_code = status_code
        self.headers = headers or {}
        self.reason = "OK" if status_code < 400 else "Error"
        self._text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


Route = Union[FakeResponse, Exception, Callable[..., FakeResponse]]


class FakeSession:
    """Routes GET and HEAD calls by URL to canned responses and records every call."""

    def __init__(self) -> None:
        self.get_routes: Dict[str, Route] = {}
        self.head_routes: Dict[str, Route] = {}
        self.calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []

    def _answer(self, routes: Dict[str, Route], method: str, url: str, params: Optional[Dict[str, Any]]) -> FakeResponse:
        self.calls.append((method, url, dict(params) if params else None))
        route = routes.get(url)
        if route is None:
            return FakeResponse(status_code=404)
        if isinstance(route, Exception):
            raise route
        if callable(route) and not isinstance(route, FakeResponse):
            return route(params or {})
        return route

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> FakeResponse:
        return self._answer(self.get_routes, "GET", url, params)

    def head(self, url: str, timeout: Optional[float] = None, allow_redirects: bool = True) -> FakeResponse:
        return self._answer(self.head_routes, "HEAD", url, None)

    def count(self, method: str, url: str) -> int:
        return sum(1 for call in self.calls if call[0] == method and call[1] == url)


class FakeTermSource:
    """Per-term source backed by a dict; portrait lookups only answer for ``portrait_terms``."""

    def __init__(
        self,
        results: Dict[str, List[str]],
        portrait_terms: Tuple[str, ...] = (),
        failing: Tuple[str, ...] = (),
    ) -> None:
        self.results = results
        self.portrait_terms = portrait_terms
        self.failing = failing
        self.calls: List[Tuple[str, Optional[str]]] = []

    def search(self, term: str, result_type: Optional[str] = None) -> List[ImageRecord]:
        self.calls.append((term, result_type))
        if term in self.failing:
            raise NetworkError(f"boom for {term}")
        if result_type is not None and term not in self.portrait_terms:
            return []
        return [ImageRecord(path=path, name=path.rsplit("/", 1)[-1].rsplit(".", 1)[0], source="remote") for path in self.results.get(term, [])]


@pytest.fixture
def store(tmp_path: Path) -> CacheStore:
    cache = CacheStore(tmp_path / "db" / "cache.sqlite3", tmp_path / "fallback")
    yield cache
    cache.close()


@pytest.fixture
def fallback_store(tmp_path: Path) -> CacheStore:
    return CacheStore(None, tmp_path / "fallback")


@pytest.fixture
def path_filter() -> PathFilter:
    return PathFilter()


@pytest.fixture
def small_terms() -> Dict[str, Tuple[str, ...]]:
    return dict(SMALL_TERMS)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


CATALOG_ITEMS: Dict[str, Any] = {
    "Monsters": [
        ["tokens/grak_the_bold.png", "Grak the Bold"],
        ["tokens/orc_brute.png", "Orc Brute"],
        "props/barrel.png",
    ],
    "Beasts": [["packs/beasts/tokens/dire_wolf.png", "Dire Wolf"]],
}


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    target = tmp_path / "catalog.json"
    target.write_text(json.dumps(CATALOG_ITEMS), encoding="utf-8")
    return target


@pytest.fixture
def settings(tmp_path: Path, catalog_file: Path):
    from config.settings import AppSettings, CacheSettings, SearchSettings, SourceSettings

    return AppSettings(
        cache=CacheSettings(
            database_path=tmp_path / "db" / "artindex.sqlite3",
            fallback_dir=tmp_path / "fallback",
            use_worker=False,
            index_batch_pause=0.0,
        ),
        sources=SourceSettings(external_locator=str(catalog_file), term_batch_pause=0.0, poll_interval=0.01),
        search=SearchSettings(batch_pause=0.0),
    )
