# Path: artindex/indexing/index_builder.py
# Purpose: Build, persist, and query the categorized artwork registry.
# Layer: artindex/indexing.
# Details: Builds from bulk records (worker or direct) or per-term retrieval, with a freshness window and single-flight guard.

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from artindex.concurrency import CancelToken, SingleFlight, run_in_batches
from artindex.errors import ArtIndexError, EmptyPayload, IndexBuildFailed, OperationCancelled, SourceUnavailable
from artindex.filtering.path_filter import PathFilter
from artindex.indexing.categorize import Classification, TermClassifier, insert_record
from artindex.indexing.worker import (
    CancelCommand,
    CancelledEvent,
    CompleteEvent,
    ErrorEvent,
    IndexPathsCommand,
    IndexWorker,
    ProgressEvent,
)
from artindex.models.domain import ALL_BUCKET, CacheEnvelope, CatalogRegistry, ImageRecord, SearchResult
from artindex.search.engine import SearchEngine
from artindex.sources.remote import TermSearchSource, search_with_portrait_retry
from artindex.storage.cache_store import CacheStore
from artindex.taxonomy import CREATURE_TYPE_MAPPINGS, TermTable, term_universe

logger = logging.getLogger(__name__)

INDEX_VERSION = 7
INDEX_CACHE_KEY = "artindex-index"
DEFAULT_FRESHNESS_WINDOW = 7 * 24 * 60 * 60

ProgressCallback = Callable[[int, int, int], None]


class IndexBuilder:
    """Owns the flat registry and category index for one running instance."""

    source_tag = "index"

    def __init__(
        self,
        store: CacheStore,
        path_filter: PathFilter,
        term_table: TermTable = CREATURE_TYPE_MAPPINGS,
        freshness_window: float = DEFAULT_FRESHNESS_WINDOW,
        term_batch_size: int = 20,
        term_batch_pause: float = 0.05,
        direct_batch_size: int = 1000,
        direct_batch_pause: float = 0.01,
        use_worker: bool = True,
        worker_timeout: float = 60.0,
        version: int = INDEX_VERSION,
        cache_key: str = INDEX_CACHE_KEY,
    ) -> None:
        self.store = store
        self.path_filter = path_filter
        self.term_table: Dict[str, Tuple[str, ...]] = {name: tuple(terms) for name, terms in term_table.items()}
        self.classifier = TermClassifier(self.term_table)
        self.freshness_window = freshness_window
        self.term_batch_size = term_batch_size
        self.term_batch_pause = term_batch_pause
        self.direct_batch_size = direct_batch_size
        self.direct_batch_pause = direct_batch_pause
        self.use_worker = use_worker
        self.worker_timeout = worker_timeout
        self.version = version
        self.cache_key = cache_key

        self.registry = CatalogRegistry()
        self.engine = SearchEngine(self.registry, self.term_table, source=self.source_tag)
        self.is_built = False
        self.created_at: float = time.time()
        self.last_update: Optional[float] = None

        self._flight = SingleFlight()
        self._cancel = CancelToken()
        self._worker: Optional[IndexWorker] = None
        self._worker_failed = False

    # ------------------------------------------------------------------ registry state

    def _set_registry(self, registry: CatalogRegistry) -> None:
        self.registry = registry
        self.engine.registry = registry

    def needs_update(self, now: Optional[float] = None) -> bool:
        """True when no build is recorded or the last one is older than the freshness window."""

        if self.last_update is None:
            return True
        return ((time.time() if now is None else now) - self.last_update) > self.freshness_window

    def categorize(self, path: str, name: str) -> Classification:
        return self.classifier.classify(path, name)

    def add_image(self, path: str, name: Optional[str] = None, tags: Tuple[str, ...] = ()) -> bool:
        """Insert one record; False when the path is already known or excluded."""

        return insert_record(self.registry, path, name, self.path_filter, self.classifier, tags, self.source_tag)

    # ------------------------------------------------------------------ persistence

    def load_from_cache(self) -> bool:
        """Restore the persisted registry; outdated, damaged, or empty envelopes count as a miss."""

        data = self.store.load(self.cache_key, version=self.version)
        if data is None:
            return False
        try:
            envelope = CacheEnvelope.from_dict(data)
            registry = CatalogRegistry.from_payload(envelope.payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable index cache: %s", exc)
            self.store.remove(self.cache_key)
            return False
        if not len(registry):
            return False
        self._set_registry(registry)
        self.created_at = envelope.timestamp
        self.last_update = envelope.last_update
        logger.info("Index restored from cache with %d images", len(registry))
        return True

    def save_to_cache(self) -> bool:
        envelope = CacheEnvelope(
            version=self.version,
            payload=self.registry.to_payload(),
            timestamp=self.created_at,
            last_update=self.last_update or time.time(),
        )
        saved = self.store.save(self.cache_key, envelope.to_dict())
        if not saved:
            logger.warning("Index with %d images could not be persisted", len(self.registry))
        return saved

    # ------------------------------------------------------------------ build

    def build(
        self,
        term_source: Optional[TermSearchSource] = None,
        on_progress: Optional[ProgressCallback] = None,
        force: bool = False,
        records: Optional[Iterable[ImageRecord]] = None,
    ) -> bool:
        """
        Make the index ready, joining any build already in flight.

        Order: persisted cache (unless ``force`` or stale), then bulk ``records``, then per-term retrieval.

        External calls:
        - artindex/storage/cache_store.py::CacheStore.load - restore a persisted envelope.
        - artindex/sources/remote.py::search_with_portrait_retry - per-term retrieval.
        - artindex/storage/cache_store.py::CacheStore.save - persist the finished registry.
        """

        return self._flight.run("build", self._build, term_source, on_progress, force, records)

    def _build(
        self,
        term_source: Optional[TermSearchSource],
        on_progress: Optional[ProgressCallback],
        force: bool,
        records: Optional[Iterable[ImageRecord]],
    ) -> bool:
        self._cancel.reset()
        started = time.monotonic()
        stale: Optional[CatalogRegistry] = None
        try:
            restored = not force and self.load_from_cache()
            if restored and not self.needs_update():
                self.is_built = True
                logger.info("Index loaded from cache, no update needed")
                return True

            bulk = list(records) if records is not None else None
            if not bulk and term_source is None:
                if restored:
                    self.is_built = True
                    logger.warning("Index cache is stale but no source is available; using it as is")
                    return True
                raise SourceUnavailable("No bulk records or per-term source available to build the index.")
            if restored:
                logger.info("Index cache is older than the freshness window; rebuilding")
                stale = self.registry

            self.is_built = False
            self._set_registry(CatalogRegistry())
            self.created_at = time.time()

            if bulk:
                self.index_records(bulk, on_progress)
            if not len(self.registry) and term_source is not None:
                self.index_from_terms(term_source, on_progress)

            if not len(self.registry):
                raise EmptyPayload(
                    "Index build completed but no images were indexed.",
                    remediation=("rebuild_cache", "check_paths"),
                )

            self.last_update = time.time()
            self.save_to_cache()
            self.is_built = True
            stats = self.get_stats()
            logger.info(
                "Index built: %d total images (%d categorized) in %.1fs",
                stats["total_images"],
                stats["categorized_images"],
                time.monotonic() - started,
            )
            return True
        except ArtIndexError:
            self._keep_stale(stale)
            raise
        except Exception as exc:
            self._keep_stale(stale)
            raise IndexBuildFailed(f"Index build failed: {exc}") from exc

    def _keep_stale(self, stale: Optional[CatalogRegistry]) -> None:
        """After a failed rebuild, keep serving the restored registry if there was one."""

        if stale is None:
            self.is_built = False
            return
        self._set_registry(stale)
        self.is_built = True
        logger.warning("Index rebuild failed; keeping the cached index with %d images", len(stale))

    def index_from_terms(self, term_source: TermSearchSource, on_progress: Optional[ProgressCallback] = None) -> int:
        """Query every term of the taxonomy in parallel batches and index what comes back."""

        terms = term_universe(self.term_table)
        found = 0
        started = time.monotonic()
        logger.info("Searching %d terms for index build", len(terms))

        def handle_batch(processed: int, total: int, batch: List[Tuple[str, Any]]) -> None:
            nonlocal found
            for _term, term_records in batch:
                for record in term_records or ():
                    if self.add_image(record.path, record.name, record.tags):
                        found += 1
            if on_progress is not None:
                on_progress(processed, total, len(self.registry))

        run_in_batches(
            terms,
            lambda term: search_with_portrait_retry(term_source, term),
            self.term_batch_size,
            yield_seconds=self.term_batch_pause,
            cancel=self._cancel,
            on_batch=handle_batch,
        )
        elapsed = time.monotonic() - started
        if found:
            logger.info("Per-term build indexed %d images in %.1fs (%.0f images/s)", found, elapsed, found / max(elapsed, 1e-6))
        return found

    def index_records(self, records: Iterable[ImageRecord], on_progress: Optional[ProgressCallback] = None) -> int:
        """Index bulk records on the worker, falling back to direct indexing if the worker fails."""

        items = tuple((record.path, record.name, tuple(record.tags)) for record in records)
        if self.use_worker and not self._worker_failed:
            try:
                return self._index_with_worker(items, on_progress)
            except (RuntimeError, TimeoutError) as exc:
                logger.warning("Index worker failed, indexing directly: %s", exc)
                self._worker_failed = True
                self._stop_worker()
        return self._index_directly(items, on_progress)

    def _ensure_worker(self) -> IndexWorker:
        if self._worker is None:
            self._worker = IndexWorker(progress_every=self.direct_batch_size)
        self._worker.start()
        return self._worker

    def _stop_worker(self) -> None:
        if self._worker is not None:
            self._worker.stop()
            self._worker = None

    def _index_with_worker(
        self,
        items: Tuple[Tuple[str, Optional[str], Tuple[str, ...]], ...],
        on_progress: Optional[ProgressCallback],
    ) -> int:
        worker = self._ensure_worker()
        worker.send(
            IndexPathsCommand(
                records=items,
                term_table=dict(self.term_table),
                excluded_folders=tuple(sorted(self.path_filter.excluded_folders)),
                excluded_filename_terms=tuple(self.path_filter.excluded_filename_terms),
                scaffolding_segments=tuple(sorted(self.path_filter.scaffolding_segments)),
                source=self.source_tag,
            )
        )
        cancel_sent = False
        for event in worker.events(timeout=self.worker_timeout):
            if self._cancel.is_cancelled and not cancel_sent:
                worker.send(CancelCommand())
                cancel_sent = True
            if isinstance(event, ProgressEvent):
                if on_progress is not None:
                    on_progress(event.processed, event.total, len(self.registry) + event.images_found)
            elif isinstance(event, CompleteEvent):
                if self._cancel.is_cancelled:
                    raise OperationCancelled("Index build was cancelled.")
                added = sum(1 for record in event.registry if self.registry.insert(record))
                logger.info("Worker indexed %d of %d records", added, event.total)
                return added
            elif isinstance(event, CancelledEvent):
                raise OperationCancelled("Index build was cancelled.", details={"processed": event.processed})
            elif isinstance(event, ErrorEvent):
                raise RuntimeError(event.message)
        raise RuntimeError("Index worker stopped without completing.")

    def _index_directly(
        self,
        items: Tuple[Tuple[str, Optional[str], Tuple[str, ...]], ...],
        on_progress: Optional[ProgressCallback],
    ) -> int:
        total = len(items)
        found = 0
        for start in range(0, total, self.direct_batch_size):
            self._cancel.raise_if_cancelled("Index build")
            for path, name, tags in items[start : start + self.direct_batch_size]:
                if self.add_image(path, name, tags):
                    found += 1
            processed = min(start + self.direct_batch_size, total)
            if on_progress is not None:
                on_progress(processed, total, len(self.registry))
            if processed < total and self.direct_batch_pause > 0:
                time.sleep(self.direct_batch_pause)
        return found

    # ------------------------------------------------------------------ queries

    def search(self, term: str) -> List[SearchResult]:
        return self.engine.search_exact(term) if self.is_built else []

    def search_multiple(self, terms: Iterable[str]) -> List[SearchResult]:
        return self.engine.search_multiple(terms) if self.is_built else []

    def search_by_category(self, category: str) -> List[SearchResult]:
        return self.engine.search_by_category(category) if self.is_built else []

    def search_by_subcategory(self, category: str, subcategory: str) -> List[SearchResult]:
        return self.engine.search_by_subcategory(category, subcategory) if self.is_built else []

    # ------------------------------------------------------------------ lifecycle

    def get_stats(self) -> Dict[str, Any]:
        categorized = sum(1 for record in self.registry if record.category)
        return {
            "is_built": self.is_built,
            "version": self.version,
            "total_images": len(self.registry),
            "categorized_images": categorized,
            "uncategorized_images": len(self.registry) - categorized,
            "last_update": self.last_update,
            "categories": {
                category: len(buckets.get(ALL_BUCKET, ())) for category, buckets in self.registry.categories.items()
            },
        }

    def cancel(self) -> None:
        self._cancel.cancel()

    def clear(self) -> None:
        """Drop the in-memory registry and its persisted envelope."""

        self._set_registry(CatalogRegistry())
        self.is_built = False
        self.last_update = None
        self.store.remove(self.cache_key)
        self.path_filter.clear_cache()

    def force_rebuild(
        self,
        term_source: Optional[TermSearchSource] = None,
        on_progress: Optional[ProgressCallback] = None,
        records: Optional[Iterable[ImageRecord]] = None,
    ) -> bool:
        self.clear()
        return self.build(term_source, on_progress, force=True, records=records)

    def close(self) -> None:
        self.cancel()
        self._stop_worker()


def tqdm_progress(desc: str = "Indexing") -> Tuple[ProgressCallback, Callable[[], None]]:
    """Return a progress callback that drives a tqdm bar, plus a function closing the bar."""

    bar = tqdm(total=0, desc=desc, unit="item")

    def update(processed: int, total: int, images_found: int) -> None:
        if bar.total != total:
            bar.total = total
        bar.n = processed
        bar.set_postfix(images=images_found)
        bar.refresh()

    return update, bar.close


__all__ = ["INDEX_CACHE_KEY", "INDEX_VERSION", "IndexBuilder", "ProgressCallback", "tqdm_progress"]
