# Path: artindex/sources/external_cache.py
# Purpose: Load a large externally maintained artwork catalog and keep a revalidated local snapshot of it.
# Layer: artindex/sources.
# Details: Fetches over HTTP (requests) or from disk, parses with periodic yields, and persists through CacheStore.

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

import requests

from artindex.concurrency import CancelToken, SingleFlight
from artindex.errors import (
    ArtIndexError,
    CacheLoadFailed,
    CapabilityDisabled,
    EmptyPayload,
    MalformedPayload,
    NetworkError,
    SourceBusy,
    SourceUnavailable,
)
from artindex.filtering.path_filter import PathFilter
from artindex.models.domain import CacheEnvelope, CatalogRegistry, ImageRecord, SearchResult
from artindex.search.engine import SearchEngine
from artindex.sources.normalize import iter_catalog, normalize_item
from artindex.storage.cache_store import CacheStore
from artindex.taxonomy import CREATURE_TYPE_MAPPINGS, TermTable

logger = logging.getLogger(__name__)

EXTERNAL_CACHE_VERSION = 2
EXTERNAL_CACHE_KEY = "artindex-external"
CATEGORY_PATH_DEPTH = 4


class SourceStatus(Protocol):
    """Readiness of the program that produces the external catalog."""

    def is_available(self) -> bool:
        ...

    def is_enabled(self) -> bool:
        ...

    def is_busy(self) -> bool:
        ...


@dataclass
class StaticSourceStatus:
    """Fixed status, used when the catalog is a plain file or URL with no producer to ask."""

    available: bool = True
    enabled: bool = True
    busy: bool = False

    def is_available(self) -> bool:
        return self.available

    def is_enabled(self) -> bool:
        return self.enabled

    def is_busy(self) -> bool:
        return self.busy


@dataclass(frozen=True)
class SourceMetadata:
    """Freshness metadata reported by the source for its current catalog."""

    last_modified: Optional[str] = None
    content_length: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.last_modified is None and self.content_length is None


def is_remote_locator(locator: str) -> bool:
    return locator.startswith("http://") or locator.startswith("https://")


def _parse_length(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class ExternalCacheAdapter:
    """Bulk catalog loader with a flat searchable registry and source-label groups."""

    source_tag = "external"

    def __init__(
        self,
        store: CacheStore,
        path_filter: PathFilter,
        term_table: TermTable = CREATURE_TYPE_MAPPINGS,
        session: Optional[requests.Session] = None,
        status: Optional[SourceStatus] = None,
        timeout: float = 30.0,
        busy_wait: float = 30.0,
        poll_interval: float = 0.5,
        yield_every: int = 5000,
        version: int = EXTERNAL_CACHE_VERSION,
        cache_key: str = EXTERNAL_CACHE_KEY,
    ) -> None:
        self.store = store
        self.path_filter = path_filter
        self.session = session or requests.Session()
        self.status: SourceStatus = status or StaticSourceStatus()
        self.timeout = timeout
        self.busy_wait = busy_wait
        self.poll_interval = poll_interval
        self.yield_every = max(1, yield_every)
        self.version = version
        self.cache_key = cache_key

        self.registry = CatalogRegistry()
        self.groups: Dict[str, List[str]] = {}
        self.engine = SearchEngine(
            self.registry, term_table, source=self.source_tag, category_path_depth=CATEGORY_PATH_DEPTH
        )
        self.locator: Optional[str] = None
        self.metadata = SourceMetadata()
        self.loaded_at: Optional[float] = None
        # Set when a snapshot was kept because its freshness probe failed.
        self.revalidation_pending = False

        self._flight = SingleFlight()
        self._cancel = CancelToken()

    @property
    def is_loaded(self) -> bool:
        return len(self.registry) > 0

    def records(self) -> List[ImageRecord]:
        return list(self.registry)

    # ------------------------------------------------------------------ loading

    def load_from_source(self, locator: str) -> bool:
        """
        Fetch, parse, and persist the catalog at ``locator``.

        Concurrent calls for the same locator share one fetch. Raises a structured ArtIndexError when
        the source cannot deliver a usable catalog.

        External calls:
        - requests.Session.get - download a remote catalog.
        - artindex/storage/cache_store.py::CacheStore.save - persist the parsed snapshot.
        """

        if self.is_loaded and self.locator == locator and not self.revalidation_pending:
            return True
        return self._flight.run(f"load:{locator}", self._load, locator)

    def _load(self, locator: str) -> bool:
        self._cancel.reset()
        started = time.monotonic()
        try:
            self._check_status()
            if not locator:
                raise SourceUnavailable(
                    "No catalog file is configured for the external source.",
                    remediation=("enable_static_cache", "rebuild_cache"),
                )
            payload, metadata = self._fetch(locator)
            registry, groups, processed = self._parse(payload)
            if not len(registry):
                raise EmptyPayload(
                    "Catalog loaded successfully but contains no usable images.",
                    details={"locator": locator, "processed": processed},
                    remediation=("rebuild_cache", "check_paths"),
                )
            self._install(locator, registry, groups, metadata)
            self._persist()
            logger.info(
                "External catalog loaded: %d images in %d groups from %s (%.1fs)",
                len(registry),
                len(groups),
                locator,
                time.monotonic() - started,
            )
            return True
        except ArtIndexError:
            raise
        except Exception as exc:
            raise CacheLoadFailed(f"Unexpected error loading catalog: {exc}", details={"locator": locator}) from exc

    def _check_status(self) -> None:
        if not self.status.is_available():
            raise SourceUnavailable("The external catalog source is not available.")
        deadline = time.monotonic() + self.busy_wait
        while self.status.is_busy():
            if time.monotonic() >= deadline:
                raise SourceBusy(
                    f"The external source is still building its catalog after {self.busy_wait:.0f}s.",
                    details={"waited": self.busy_wait},
                )
            self._cancel.raise_if_cancelled("Catalog load")
            time.sleep(self.poll_interval)
        if not self.status.is_enabled():
            raise CapabilityDisabled("The external source has its static catalog disabled.")

    def _fetch(self, locator: str) -> Tuple[Any, SourceMetadata]:
        if is_remote_locator(locator):
            try:
                response = self.session.get(locator, timeout=self.timeout)
            except requests.RequestException as exc:
                raise NetworkError(f"Failed to fetch catalog: {exc}", details={"locator": locator}) from exc
            if not response.ok:
                raise NetworkError(
                    f"Failed to fetch catalog: HTTP {response.status_code} {response.reason or ''}".rstrip(),
                    details={"locator": locator, "status": response.status_code},
                    remediation=("check_network", "rebuild_cache", "check_file_access"),
                )
            try:
                payload = response.json()
            except ValueError as exc:
                raise MalformedPayload(f"Invalid JSON in catalog: {exc}", details={"locator": locator}) from exc
            return payload, self._metadata_from_headers(response.headers)

        path = Path(locator)
        try:
            text = path.read_text(encoding="utf-8")
            stat = path.stat()
        except FileNotFoundError as exc:
            raise SourceUnavailable(f"Catalog file {locator} does not exist.", details={"locator": locator}) from exc
        except OSError as exc:
            raise SourceUnavailable(f"Catalog file {locator} cannot be read: {exc}", details={"locator": locator}) from exc
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise MalformedPayload(f"Invalid JSON in catalog: {exc}", details={"locator": locator}) from exc
        return payload, self._metadata_from_stat(stat)

    @staticmethod
    def _metadata_from_headers(headers: Any) -> SourceMetadata:
        return SourceMetadata(
            last_modified=headers.get("Last-Modified"),
            content_length=_parse_length(headers.get("Content-Length")),
        )

    @staticmethod
    def _metadata_from_stat(stat: os.stat_result) -> SourceMetadata:
        return SourceMetadata(last_modified=str(stat.st_mtime_ns), content_length=stat.st_size)

    def _parse(self, payload: Any) -> Tuple[CatalogRegistry, Dict[str, List[str]], int]:
        """Build a registry from a ``{label: [records]}`` payload, pausing every ``yield_every`` items."""

        registry = CatalogRegistry()
        groups: Dict[str, List[str]] = {}
        processed = 0
        skipped = 0
        for label, record in iter_catalog(payload, source=self.source_tag):
            processed += 1
            if processed % self.yield_every == 0:
                self._cancel.raise_if_cancelled("Catalog load")
                time.sleep(0)
            group = groups.setdefault(label, [])
            if record is None:
                skipped += 1
                continue
            if self.path_filter.is_excluded(record.path):
                continue
            if registry.insert(record):
                group.append(record.path)
        if skipped:
            logger.warning("Skipped %d catalog items with no usable path", skipped)
        return registry, groups, processed

    def _install(
        self,
        locator: str,
        registry: CatalogRegistry,
        groups: Dict[str, List[str]],
        metadata: SourceMetadata,
    ) -> None:
        self.registry = registry
        self.engine.registry = registry
        self.groups = groups
        self.locator = locator
        self.metadata = metadata
        self.loaded_at = time.time()
        self.revalidation_pending = False

    def _persist(self) -> bool:
        catalog = {
            label: [
                [path, self.registry.all_paths[path].name, list(self.registry.all_paths[path].tags)]
                for path in paths
            ]
            for label, paths in self.groups.items()
        }
        envelope = CacheEnvelope(
            version=self.version,
            payload={"catalog": catalog},
            last_update=self.loaded_at or time.time(),
            source_url=self.locator,
            source_last_modified=self.metadata.last_modified,
            source_content_length=self.metadata.content_length,
        )
        saved = self.store.save(self.cache_key, envelope.to_dict())
        if not saved:
            logger.warning("External catalog snapshot could not be persisted")
        return saved

    # ------------------------------------------------------------------ revalidation

    def probe(self, locator: str) -> SourceMetadata:
        """Metadata-only request: HEAD for URLs, stat for files."""

        if is_remote_locator(locator):
            try:
                response = self.session.head(locator, timeout=self.timeout, allow_redirects=True)
            except requests.RequestException as exc:
                raise NetworkError(f"Freshness probe failed: {exc}", details={"locator": locator}) from exc
            if not response.ok:
                raise NetworkError(
                    f"Freshness probe returned HTTP {response.status_code}.",
                    details={"locator": locator, "status": response.status_code},
                )
            return self._metadata_from_headers(response.headers)
        try:
            return self._metadata_from_stat(Path(locator).stat())
        except OSError as exc:
            raise SourceUnavailable(f"Freshness probe failed: {exc}", details={"locator": locator}) from exc

    @staticmethod
    def _matches(stored: CacheEnvelope, current: SourceMetadata) -> bool:
        if stored.source_content_length is not None and current.content_length is not None:
            if stored.source_content_length != current.content_length:
                return False
        if stored.source_last_modified is not None and current.last_modified is not None:
            if stored.source_last_modified != current.last_modified:
                return False
        return True

    def restore_if_fresh(self, locator: str) -> Optional[CatalogRegistry]:
        """
        Install the persisted snapshot for ``locator`` if the source has not changed since it was taken.

        A different stored locator is a miss. Changed length or modification time deletes the snapshot.
        A failed probe keeps the snapshot and marks it for revalidation.
        """

        data = self.store.load(self.cache_key, version=self.version)
        if data is None:
            return None
        try:
            envelope = CacheEnvelope.from_dict(data)
            registry, groups = self._restore_payload(envelope.payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable catalog snapshot: %s", exc)
            self.store.remove(self.cache_key)
            return None
        if envelope.source_url != locator:
            logger.info("Catalog snapshot was taken from %s, not %s; ignoring", envelope.source_url, locator)
            return None

        stale = False
        try:
            current = self.probe(locator)
        except (NetworkError, SourceUnavailable) as exc:
            logger.warning("Keeping catalog snapshot without revalidation: %s", exc.message)
            current = None
            stale = True
        if current is not None and not self._matches(envelope, current):
            logger.info("Catalog at %s changed since the snapshot; discarding it", locator)
            self.store.remove(self.cache_key)
            return None
        if not len(registry):
            return None

        metadata = SourceMetadata(envelope.source_last_modified, envelope.source_content_length)
        self._install(locator, registry, groups, metadata)
        self.loaded_at = envelope.last_update
        self.revalidation_pending = stale
        logger.info("Catalog snapshot restored: %d images", len(registry))
        return registry

    def _restore_payload(self, payload: Dict[str, Any]) -> Tuple[CatalogRegistry, Dict[str, List[str]]]:
        catalog = payload["catalog"]
        if not isinstance(catalog, dict):
            raise ValueError("Snapshot 'catalog' must be an object.")
        registry = CatalogRegistry()
        groups: Dict[str, List[str]] = {}
        for label, items in catalog.items():
            group = groups.setdefault(label, [])
            for item in items:
                record = normalize_item(item, source=self.source_tag)
                if record is None:
                    raise ValueError(f"Snapshot item in {label!r} has no path.")
                if self.path_filter.is_excluded(record.path):
                    continue
                if registry.insert(record):
                    group.append(record.path)
        return registry, groups

    # ------------------------------------------------------------------ lifecycle and queries

    def reload(self, locator: str) -> bool:
        """Drop the in-memory catalog and load it again from the source."""

        self._reset_memory()
        self.path_filter.clear_cache()
        return self.load_from_source(locator)

    def clear(self) -> None:
        self._reset_memory()
        self.store.remove(self.cache_key)

    def cancel(self) -> None:
        self._cancel.cancel()

    def _reset_memory(self) -> None:
        self.registry = CatalogRegistry()
        self.engine.registry = self.registry
        self.groups = {}
        self.locator = None
        self.metadata = SourceMetadata()
        self.loaded_at = None
        self.revalidation_pending = False

    def stats(self) -> Dict[str, Any]:
        return {
            "loaded": self.is_loaded,
            "total_images": len(self.registry),
            "categories": len(self.groups),
            "source_url": self.locator,
            "loaded_at": self.loaded_at,
            "revalidation_pending": self.revalidation_pending,
        }

    def search_direct(self, term: str) -> List[SearchResult]:
        return self.engine.search_exact(term) if self.is_loaded else []

    def search_multiple(self, terms: List[str]) -> List[SearchResult]:
        return self.engine.search_multiple(terms) if self.is_loaded else []

    def search_by_category(self, category: str) -> List[SearchResult]:
        return self.engine.search_by_category(category) if self.is_loaded else []


__all__ = [
    "EXTERNAL_CACHE_KEY",
    "EXTERNAL_CACHE_VERSION",
    "ExternalCacheAdapter",
    "SourceMetadata",
    "SourceStatus",
    "StaticSourceStatus",
]
