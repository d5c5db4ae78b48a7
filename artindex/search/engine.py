# Path: artindex/search/engine.py
# Purpose: Answer exact, multi-term, category, and subcategory queries over a built catalog registry.
# Layer: artindex/search.
# Details: Stateless with respect to queries; every method scores with the same exact < prefix < substring convention.

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from artindex.models.domain import ALL_BUCKET, CatalogRegistry, ImageRecord, SearchResult
from artindex.taxonomy import TermTable, terms_for_category

SCORE_EXACT = 0.0
SCORE_PREFIX = 0.1
SCORE_SUBSTRING = 0.3


def score_match(name: str, term: str) -> float:
    """Score ``term`` against a lowercased record name."""

    if name == term:
        return SCORE_EXACT
    if name.startswith(term):
        return SCORE_PREFIX
    return SCORE_SUBSTRING


class SearchEngine:
    """Query functions over one registry, tagging results with a source label."""

    def __init__(
        self,
        registry: CatalogRegistry,
        term_table: Optional[TermTable] = None,
        source: str = "index",
        category_path_depth: Optional[int] = None,
    ) -> None:
        self.registry = registry
        self.term_table = term_table or {}
        self.source = source
        # Term-based category lookups match only the trailing segments of a path when set.
        self.category_path_depth = category_path_depth

    @staticmethod
    def _haystack_path(path: str, depth: Optional[int]) -> str:
        lowered = path.lower()
        if depth is None:
            return lowered
        return "/".join(lowered.replace("\\", "/").split("/")[-depth:])

    def _result(self, record: ImageRecord, score: float) -> SearchResult:
        return SearchResult(path=record.path, name=record.name, source=self.source, score=score, category=record.category)

    def search_exact(self, term: str) -> List[SearchResult]:
        """Case-insensitive substring match against every record's name and path, best score first."""

        return self._search_term(term, None)

    def _search_term(self, term: str, path_depth: Optional[int]) -> List[SearchResult]:
        needle = (term or "").strip().lower()
        if not needle:
            return []
        results: List[SearchResult] = []
        for record in self.registry:
            name = record.name.lower()
            if needle in name:
                results.append(self._result(record, score_match(name, needle)))
            elif needle in self._haystack_path(record.path, path_depth):
                results.append(self._result(record, SCORE_SUBSTRING))
        results.sort(key=lambda result: result.score)
        return results

    def search_multiple(self, terms: Iterable[str]) -> List[SearchResult]:
        """OR-union of ``search_exact`` over ``terms``, keeping each path's lowest score."""

        return self._search_terms(terms, None)

    def _search_terms(self, terms: Iterable[str], path_depth: Optional[int]) -> List[SearchResult]:
        best: Dict[str, SearchResult] = {}
        for term in terms:
            for result in self._search_term(term, path_depth):
                current = best.get(result.path)
                if current is None or result.score < current.score:
                    best[result.path] = result
        return sorted(best.values(), key=lambda result: result.score)

    def _bucket_results(self, entries: Iterable[Dict[str, str]], terms: Sequence[str]) -> List[SearchResult]:
        results: Dict[str, SearchResult] = {}
        for entry in entries:
            path = entry["path"]
            if path in results:
                continue
            record = self.registry.all_paths.get(path)
            if record is None:
                continue
            name = record.name.lower()
            matched = [term for term in (record.subcategories or terms) if term in name]
            score = min((score_match(name, term) for term in matched), default=SCORE_SUBSTRING)
            results[path] = self._result(record, score)
        return sorted(results.values(), key=lambda result: result.score)

    def _find_category(self, category: str) -> Optional[str]:
        wanted = category.lower()
        for name in self.registry.categories:
            if name.lower() == wanted:
                return name
        return None

    def search_by_category(self, category: str) -> List[SearchResult]:
        """
        Return every record matching any term mapped to ``category``.

        Members of the category's `_all` bucket come first, followed by records that match one of its
        terms but were classified elsewhere. An unknown category is searched as a raw term.
        """

        if not category:
            return []
        terms = terms_for_category(self.term_table, category)
        known = self._find_category(category)
        if known is None and not terms:
            return self.search_exact(category)
        results: List[SearchResult] = []
        if known is not None:
            results = self._bucket_results(self.registry.categories[known].get(ALL_BUCKET, []), ())
        seen = {result.path for result in results}
        for result in self._search_terms(terms, self.category_path_depth):
            if result.path not in seen:
                seen.add(result.path)
                results.append(result)
        return results

    def search_by_subcategory(self, category: str, subcategory: str) -> List[SearchResult]:
        """Exact subcategory bucket, else the union of sibling buckets whose names contain or are contained by it."""

        known = self._find_category(category) if category else None
        wanted = (subcategory or "").strip().lower()
        if known is None or not wanted:
            return []
        buckets = self.registry.categories[known]
        if wanted in buckets:
            return self._bucket_results(buckets[wanted], (wanted,))
        entries: List[Dict[str, str]] = []
        for name, members in buckets.items():
            if name == ALL_BUCKET:
                continue
            if wanted in name or name in wanted:
                entries.extend(members)
        return self._bucket_results(entries, (wanted,))


__all__ = ["SCORE_EXACT", "SCORE_PREFIX", "SCORE_SUBSTRING", "SearchEngine", "score_match"]
