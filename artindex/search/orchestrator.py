# Path: artindex/search/orchestrator.py
# Purpose: Merge results from the ready retrieval tier and local artwork into one ordered list per entity.
# Layer: artindex/search.
# Details: Tiers are tried cheapest first (index, external catalog, per-term remote); results are tagged, filtered, and sorted.

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from artindex.concurrency import CancelToken, run_in_batches
from artindex.errors import OperationCancelled
from artindex.filtering.path_filter import PathFilter
from artindex.models.domain import EntityDescriptor, ImageRecord, PriorityFlags, SearchResult
from artindex.search.engine import SCORE_SUBSTRING, score_match
from artindex.search.query import (
    fingerprint,
    folder_matches_type,
    fuzzy_score,
    has_generic_subtype,
    is_valid_result_path,
    parse_subtype_terms,
)
from artindex.sources.remote import TermSearchSource, search_with_portrait_retry
from artindex.taxonomy import CREATURE_TYPE_MAPPINGS, PRIMARY_CATEGORY_TERMS, TermTable, terms_for_category

if TYPE_CHECKING:
    from artindex.indexing.index_builder import IndexBuilder
    from artindex.sources.external_cache import ExternalCacheAdapter

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "local"
REMOTE_SOURCE = "remote"
CATALOG_SOURCES = frozenset({"index", "external", REMOTE_SOURCE})

SCORE_UNSCORED = 0.5
SCORE_LOCAL_NAME = 0.15
SCORE_LOCAL_SUBTYPE = 0.4
SCORE_CATEGORY = 0.6
STANDARD_EARLY_STOP = 5

CategoryProgress = Callable[[int, int, str, int], None]
GroupProgress = Callable[[int, int], None]


class SearchPriority(str, Enum):
    """Which side wins ties: local artwork, catalog sources, or neither."""

    LOCAL = "local"
    REMOTE = "remote"
    BOTH = "both"


class _Merged:
    """Path-deduplicated accumulator; first occurrence of a path wins."""

    def __init__(self, path_filter: PathFilter) -> None:
        self.path_filter = path_filter
        self.seen: Set[str] = set()
        self.results: List[SearchResult] = []

    def add(self, results: Iterable[SearchResult], flags: Optional[PriorityFlags] = None) -> int:
        added = 0
        for result in results:
            if result.path in self.seen or self.path_filter.is_excluded(result.path):
                continue
            self.seen.add(result.path)
            self.results.append(replace(result, flags=replace(flags)) if flags is not None else result)
            added += 1
        return added


class SearchOrchestrator:
    """Answers entity queries across retrieval tiers with a per-operation result cache."""

    def __init__(
        self,
        path_filter: PathFilter,
        index: Optional["IndexBuilder"] = None,
        external: Optional["ExternalCacheAdapter"] = None,
        remote: Optional[TermSearchSource] = None,
        term_table: TermTable = CREATURE_TYPE_MAPPINGS,
        priority: str = SearchPriority.BOTH.value,
        fuzzy_threshold: float = 0.1,
        use_external_cache: bool = True,
        slow_batch_size: int = 4,
        parallel_batch_size: int = 4,
        batch_pause: float = 0.05,
    ) -> None:
        self.path_filter = path_filter
        self.index = index
        self.external = external
        self.remote = remote
        self.term_table = term_table
        self.priority = SearchPriority(priority)
        self.fuzzy_threshold = fuzzy_threshold
        self.use_external_cache = use_external_cache
        self.slow_batch_size = slow_batch_size
        self.parallel_batch_size = parallel_batch_size
        self.batch_pause = batch_pause

        self._cache: Dict[str, List[SearchResult]] = {}
        self._cache_lock = threading.Lock()
        self._cancel = CancelToken()

    # ------------------------------------------------------------------ operation lifecycle

    def begin_operation(self) -> None:
        """Start a new operation: forget cached results and clear any previous cancellation."""

        self.clear_cache()
        self._cancel.reset()

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    def cancel(self) -> None:
        self._cancel.cancel()

    # ------------------------------------------------------------------ tiers

    def ready_tier(self) -> Optional[str]:
        """Name of the cheapest ready catalog tier, or None."""

        if self.index is not None and self.index.is_built:
            return "index"
        if self.external is not None and self.use_external_cache and self.external.is_loaded:
            return "external"
        if self.remote is not None:
            return "remote"
        return None

    def _catalog_enabled(self) -> bool:
        return not (self.priority is SearchPriority.LOCAL and not self.use_external_cache)

    def _local_enabled(self) -> bool:
        return self.priority is not SearchPriority.REMOTE

    def _guard(self, label: str, fn: Callable[..., List[SearchResult]], *args: object) -> List[SearchResult]:
        """Run one retrieval; a failure is logged and counts as zero results."""

        try:
            return fn(*args)
        except OperationCancelled:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Search %s failed: %s", label, exc)
            return []

    def remote_search(self, term: str) -> List[SearchResult]:
        """Per-term remote query converted to scored results."""

        if self.remote is None:
            return []
        needle = term.lower()
        results = []
        for record in search_with_portrait_retry(self.remote, term):
            name = record.name.lower()
            score = score_match(name, needle) if needle in name else SCORE_UNSCORED
            results.append(
                SearchResult(path=record.path, name=record.name, source=REMOTE_SOURCE, score=score, category=record.category)
            )
        return results

    def _tier_term(self, tier: str, term: str) -> List[SearchResult]:
        if tier == "index":
            return self._guard(f"index:{term}", self.index.search, term)
        if tier == "external":
            return self._guard(f"external:{term}", self.external.search_direct, term)
        return self._guard(f"remote:{term}", self.remote_search, term)

    def _tier_terms(self, tier: str, terms: Sequence[str]) -> List[SearchResult]:
        if tier == "index":
            return self._guard("index:multiple", self.index.search_multiple, list(terms))
        if tier == "external":
            return self._guard("external:multiple", self.external.search_multiple, list(terms))
        merged: List[SearchResult] = []
        seen: Set[str] = set()
        for term in terms:
            self._cancel.raise_if_cancelled("Search")
            for result in self._tier_term(tier, term):
                if result.path not in seen:
                    seen.add(result.path)
                    merged.append(result)
        return merged

    # ------------------------------------------------------------------ local artwork

    @staticmethod
    def _local_result(record: ImageRecord, score: float) -> SearchResult:
        return SearchResult(path=record.path, name=record.name, source=LOCAL_SOURCE, score=score, category=record.category)

    def _local_substring(
        self, local_index: Sequence[ImageRecord], term: str, score: float, include_category: bool = False
    ) -> List[SearchResult]:
        needle = term.lower()
        matches = []
        for record in local_index:
            fields = [record.name, record.path] + ([record.category or ""] if include_category else [])
            if any(needle in (value or "").lower() for value in fields):
                matches.append(self._local_result(record, score))
        return matches

    def _local_fuzzy(
        self, local_index: Sequence[ImageRecord], terms: Sequence[str], creature_type: Optional[str]
    ) -> List[SearchResult]:
        results: List[SearchResult] = []
        seen: Set[str] = set()
        for term in terms:
            scored = []
            for record in local_index:
                if record.path in seen:
                    continue
                filename = record.path.replace("\\", "/").split("/")[-1]
                score = min(fuzzy_score(term, value) for value in (record.name, filename, record.category))
                if score > self.fuzzy_threshold:
                    continue
                if creature_type and record.category and not folder_matches_type(
                    record.category, creature_type, self.term_table
                ):
                    continue
                scored.append((score, record))
            scored.sort(key=lambda pair: pair[0])
            for score, record in scored:
                seen.add(record.path)
                results.append(self._local_result(record, score))
        return results

    # ------------------------------------------------------------------ entity search

    def search_entity(
        self,
        entity: EntityDescriptor,
        local_index: Optional[Sequence[ImageRecord]] = None,
        use_cache: bool = True,
    ) -> List[SearchResult]:
        """
        Ordered artwork candidates for one entity.

        Specific subtypes search the name (fromName) then each subtype (fromSubtype); a generic subtype
        adds the whole category (fromCategory); otherwise a standard untagged search runs.
        """

        terms = entity.search_terms
        if not terms:
            return []
        key = fingerprint(entity)
        if use_cache:
            with self._cache_lock:
                cached = self._cache.get(key)
            if cached is not None:
                return list(cached)
        self._cancel.raise_if_cancelled("Search")

        local = list(local_index or ())
        merged = _Merged(self.path_filter)
        generic = has_generic_subtype(entity.subtype)
        subtype_terms = parse_subtype_terms(entity.subtype)

        if subtype_terms and not generic and entity.type:
            logger.debug("Subtype search for %r: %s", entity.name, ", ".join(subtype_terms))
            self._search_specific(entity, subtype_terms, local, merged)
        else:
            self._search_standard(entity, terms, local, merged)
            if generic and entity.type:
                merged.add(self.search_by_category(entity.type, local), PriorityFlags(from_category=True))

        results = self._finalize(merged.results)
        with self._cache_lock:
            self._cache[key] = results
        logger.debug("Search for %r produced %d results", entity.name, len(results))
        return list(results)

    def _search_specific(
        self,
        entity: EntityDescriptor,
        subtype_terms: List[str],
        local: List[ImageRecord],
        merged: _Merged,
    ) -> None:
        name_flags = PriorityFlags(from_name=True)
        subtype_flags = PriorityFlags(from_subtype=True)
        # Subtype searches consult every side; priority only orders the merged results.
        tier = self.ready_tier()
        if tier is not None:
            if entity.name:
                merged.add(self._tier_term(tier, entity.name.lower()), name_flags)
            merged.add(self._tier_terms(tier, subtype_terms), subtype_flags)
        if local:
            if entity.name:
                merged.add(self._local_substring(local, entity.name, SCORE_LOCAL_NAME), name_flags)
            for term in subtype_terms:
                merged.add(self._local_substring(local, term, SCORE_LOCAL_SUBTYPE, include_category=True), subtype_flags)

    def _search_standard(
        self,
        entity: EntityDescriptor,
        terms: List[str],
        local: List[ImageRecord],
        merged: _Merged,
    ) -> None:
        if local and self._local_enabled():
            merged.add(self._local_fuzzy(local, terms, entity.type or None))
        tier = self.ready_tier() if self._catalog_enabled() else None
        if tier is None:
            return
        for position, term in enumerate(terms):
            self._cancel.raise_if_cancelled("Search")
            found = self._tier_term(tier, term)
            merged.add(found)
            if position == 0 and len(found) >= STANDARD_EARLY_STOP:
                break

    def _source_rank(self, source: str) -> int:
        if self.priority is SearchPriority.LOCAL:
            return 0 if source == LOCAL_SOURCE else 1
        if self.priority is SearchPriority.REMOTE:
            return 0 if source in CATALOG_SOURCES else 1
        return 0

    def _finalize(self, results: List[SearchResult]) -> List[SearchResult]:
        valid = [result for result in results if is_valid_result_path(result.path)]
        valid.sort(key=lambda result: (result.flags.group(), self._source_rank(result.source), result.score))
        return valid

    # ------------------------------------------------------------------ category search

    def search_by_category(
        self,
        category: str,
        local_index: Optional[Sequence[ImageRecord]] = None,
        direct_term: Optional[str] = None,
        on_progress: Optional[CategoryProgress] = None,
    ) -> List[SearchResult]:
        """
        Every candidate for a creature category, or for ``direct_term`` when given.

        Uses the cheapest ready tier; without a bulk registry the category's terms are queried per term
        in small parallel batches. Local artwork whose folder matches the category is appended.
        """

        merged = _Merged(self.path_filter)
        local = list(local_index or ())
        tier = self.ready_tier() if self._catalog_enabled() else None

        if direct_term:
            if on_progress is not None:
                on_progress(0, 1, direct_term, 0)
            if tier is not None:
                merged.add(self._tier_term(tier, direct_term))
            if local and self._local_enabled():
                merged.add(self._local_substring(local, direct_term, SCORE_SUBSTRING, include_category=True))
            if on_progress is not None:
                on_progress(1, 1, direct_term, len(merged.results))
            return merged.results

        if tier in ("index", "external"):
            label = f"{tier} lookup"
            if on_progress is not None:
                on_progress(0, 1, label, 0)
            lookup = self.index.search_by_category if tier == "index" else self.external.search_by_category
            merged.add(self._guard(f"{tier}:category:{category}", lookup, category))
            if on_progress is not None:
                on_progress(1, 1, label, len(merged.results))
        elif tier == "remote":
            terms = list(terms_for_category(self.term_table, category)) or list(
                PRIMARY_CATEGORY_TERMS.get(category.lower(), ())
            )
            logger.info("Searching %d terms for %s without a bulk registry", len(terms), category)

            def handle_batch(processed: int, total: int, batch: list) -> None:
                for _term, found in batch:
                    merged.add(found or ())
                if on_progress is not None:
                    on_progress(processed, total, ", ".join(term for term, _ in batch), len(merged.results))

            run_in_batches(
                terms,
                self.remote_search,
                self.slow_batch_size,
                yield_seconds=self.batch_pause,
                cancel=self._cancel,
                on_batch=handle_batch,
            )

        if local and self._local_enabled():
            matches = [
                self._local_result(record, SCORE_CATEGORY)
                for record in local
                if folder_matches_type(record.category, category, self.term_table)
            ]
            merged.add(matches)
        return merged.results

    # ------------------------------------------------------------------ batches of entities

    def parallel_search(
        self,
        groups: Mapping[str, EntityDescriptor],
        local_index: Optional[Sequence[ImageRecord]] = None,
        on_progress: Optional[GroupProgress] = None,
    ) -> Dict[str, List[SearchResult]]:
        """Search many entity groups in bounded parallel batches; a failed group yields no results."""

        items = list(groups.items())

        def handle_batch(processed: int, total: int, _batch: list) -> None:
            if on_progress is not None:
                on_progress(processed, total)

        outcome = run_in_batches(
            items,
            lambda item: self.search_entity(item[1], local_index, use_cache=True),
            self.parallel_batch_size,
            cancel=self._cancel,
            on_batch=handle_batch,
        )
        return {key: results for (key, _entity), results in outcome}


__all__ = ["SearchOrchestrator", "SearchPriority"]
