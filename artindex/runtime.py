# Path: artindex/runtime.py
# Purpose: Wire storage, sources, the index, and the orchestrator into one explicitly owned runtime.
# Layer: artindex.
# Details: Persisted state is restored before any catalog download; close() cancels work and releases storage.

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from artindex.errors import ArtIndexError, SourceUnavailable
from artindex.filtering.path_filter import PathFilter
from artindex.indexing.index_builder import IndexBuilder, ProgressCallback
from artindex.indexing.scanner import ImageScanner
from artindex.models.domain import EntityDescriptor, ImageRecord, SearchResult
from artindex.search.orchestrator import SearchOrchestrator
from artindex.sources.external_cache import ExternalCacheAdapter, SourceStatus
from artindex.sources.remote import HttpTermSearchSource, TermSearchSource
from artindex.storage.cache_store import CacheStore
from artindex.taxonomy import CREATURE_TYPE_MAPPINGS
from config.settings import AppSettings

logger = logging.getLogger(__name__)


class SearchRuntime:
    """Owns every long-lived component; create one per process or per test."""

    def __init__(
        self,
        settings: AppSettings,
        store: CacheStore,
        path_filter: PathFilter,
        index: IndexBuilder,
        external: ExternalCacheAdapter,
        orchestrator: SearchOrchestrator,
        scanner: ImageScanner,
        remote: Optional[TermSearchSource] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.path_filter = path_filter
        self.index = index
        self.external = external
        self.orchestrator = orchestrator
        self.scanner = scanner
        self.remote = remote
        self._local_index: Optional[List[ImageRecord]] = None

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        session: Optional[requests.Session] = None,
        status: Optional[SourceStatus] = None,
        remote: Optional[TermSearchSource] = None,
    ) -> "SearchRuntime":
        """Construct every component from ``settings``; ``session`` and ``remote`` may be injected."""

        session = session or requests.Session()
        cache, sources, search = settings.cache, settings.sources, settings.search
        store = CacheStore(cache.database_path, cache.fallback_dir, cache.fallback_max_bytes)
        path_filter = PathFilter()
        if remote is None and sources.remote_search_url:
            remote = HttpTermSearchSource(sources.remote_search_url, session=session, timeout=sources.request_timeout)
        index = IndexBuilder(
            store,
            path_filter,
            term_table=CREATURE_TYPE_MAPPINGS,
            freshness_window=settings.freshness_window(),
            term_batch_size=sources.term_batch_size,
            term_batch_pause=sources.term_batch_pause,
            direct_batch_size=cache.index_batch_size,
            direct_batch_pause=cache.index_batch_pause,
            use_worker=cache.use_worker,
            worker_timeout=cache.worker_timeout,
        )
        external = ExternalCacheAdapter(
            store,
            path_filter,
            term_table=CREATURE_TYPE_MAPPINGS,
            session=session,
            status=status,
            timeout=sources.request_timeout,
            busy_wait=sources.busy_wait,
            poll_interval=sources.poll_interval,
        )
        orchestrator = SearchOrchestrator(
            path_filter,
            index=index,
            external=external,
            remote=remote,
            term_table=CREATURE_TYPE_MAPPINGS,
            priority=search.search_priority,
            fuzzy_threshold=search.fuzzy_threshold,
            use_external_cache=sources.use_external_cache,
            slow_batch_size=search.slow_batch_size,
            parallel_batch_size=search.parallel_batch_size,
            batch_pause=search.batch_pause,
        )
        scanner = ImageScanner(settings.additional_paths)
        return cls(settings, store, path_filter, index, external, orchestrator, scanner, remote)

    # ------------------------------------------------------------------ lifecycle

    def start(self, build_index: bool = True, on_progress: Optional[ProgressCallback] = None) -> "SearchRuntime":
        """
        Restore persisted state, then load the external catalog and build the index as configured.

        Source failures are logged; searches then use whichever tier is ready.
        """

        migrated = self.store.migrate_fallback()
        if migrated:
            logger.info("Moved %d fallback entries into the primary store", migrated)
        self._restore_index()

        sources = self.settings.sources
        if sources.use_external_cache and sources.external_locator:
            self._load_external(sources.external_locator, sources.refresh_external_cache)

        if build_index and (not self.index.is_built or self.index.needs_update()):
            try:
                self.build_index(on_progress=on_progress)
            except ArtIndexError as exc:
                logger.warning("Index build skipped: %s", exc.message)
        self.orchestrator.clear_cache()
        return self

    def _restore_index(self) -> bool:
        try:
            return self.index.build()
        except SourceUnavailable:
            logger.info("No persisted index to restore")
            return False

    def _load_external(self, locator: str, refresh: bool) -> bool:
        try:
            if refresh:
                return self.external.reload(locator)
            self.external.restore_if_fresh(locator)
            return self.external.load_from_source(locator)
        except ArtIndexError as exc:
            logger.warning("External catalog unavailable: %s", exc.message)
            return False

    def build_index(self, force: bool = False, on_progress: Optional[ProgressCallback] = None) -> bool:
        """Build from the loaded external catalog when present, else from the per-term source."""

        records = self.external.records() if self.external.is_loaded else None
        try:
            if force:
                return self.index.force_rebuild(self.remote, on_progress, records=records)
            return self.index.build(self.remote, on_progress, records=records)
        finally:
            self.orchestrator.clear_cache()

    def close(self) -> None:
        self.orchestrator.cancel()
        self.external.cancel()
        self.index.close()
        self.store.close()

    def __enter__(self) -> "SearchRuntime":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------ queries

    @property
    def local_index(self) -> List[ImageRecord]:
        if self._local_index is None:
            self._local_index = self.scanner.scan()
            logger.debug("Local artwork scan found %d images", len(self._local_index))
        return self._local_index

    def begin_operation(self) -> None:
        """Start a new search operation; results cached by the previous one are dropped."""

        self.orchestrator.begin_operation()

    def refresh_local(self) -> int:
        self._local_index = None
        self.orchestrator.clear_cache()
        return len(self.local_index)

    def search(self, entity: EntityDescriptor, use_cache: bool = True) -> List[SearchResult]:
        return self.orchestrator.search_entity(entity, self.local_index, use_cache=use_cache)

    def search_category(self, category: str, direct_term: Optional[str] = None) -> List[SearchResult]:
        return self.orchestrator.search_by_category(category, self.local_index, direct_term=direct_term)

    def stats(self) -> Dict[str, Any]:
        return {
            "index": self.index.get_stats(),
            "external": self.external.stats(),
            "local_images": len(self._local_index) if self._local_index is not None else None,
            "ready_tier": self.orchestrator.ready_tier(),
            "primary_store": self.store.primary_available,
        }


__all__ = ["SearchRuntime"]
