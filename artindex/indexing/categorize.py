# Path: artindex/indexing/categorize.py
# Purpose: Classify catalog paths into the two-level category taxonomy.
# Layer: artindex/indexing.
# Details: Counts substring hits of each category's terms; ties resolve to the lexically smallest category.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from artindex.filtering.path_filter import PathFilter
from artindex.models.domain import CatalogRegistry, ImageRecord, display_name
from artindex.taxonomy import TermTable


@dataclass(frozen=True)
class Classification:
    category: Optional[str]
    subcategories: Tuple[str, ...] = ()


UNCATEGORIZED = Classification(category=None)


class TermClassifier:
    """Precomputed, lowercased view of a term table used for per-record classification."""

    def __init__(self, term_table: TermTable) -> None:
        self.table: Tuple[Tuple[str, Tuple[str, ...]], ...] = tuple(
            (category, tuple(dict.fromkeys(term.lower() for term in terms if term)))
            for category, terms in sorted(term_table.items())
        )

    def classify(self, path: str, name: str) -> Classification:
        """
        Pick the category whose terms occur most often in the lowercased ``path + " " + name``.

        The matched terms of the winning category become its subcategories.
        """

        text = f"{path} {name}".lower()
        best: Classification = UNCATEGORIZED
        best_count = 0
        for category, terms in self.table:
            matched = tuple(term for term in terms if term in text)
            if len(matched) > best_count:
                best_count = len(matched)
                best = Classification(category=category, subcategories=matched)
        return best


def categorize(path: str, name: str, term_table: TermTable) -> Classification:
    """One-off classification; build a TermClassifier when classifying many records."""

    return TermClassifier(term_table).classify(path, name)


def insert_record(
    registry: CatalogRegistry,
    path: str,
    name: Optional[str],
    path_filter: PathFilter,
    classifier: TermClassifier,
    tags: Tuple[str, ...] = (),
    source: str = "",
) -> bool:
    """
    Classify and insert one (path, name) pair.

    Returns False for an already-known or excluded path, True only for a new insertion.
    """

    if not path or path in registry or path_filter.is_excluded(path):
        return False
    label = name or display_name(path)
    classification = classifier.classify(path, label)
    record = ImageRecord(
        path=path,
        name=label,
        category=classification.category,
        subcategories=classification.subcategories,
        tags=tuple(tags),
        source=source,
    )
    return registry.insert(record)
