# Path: artindex/search/query.py
# Purpose: Parse entity descriptors into search terms and score loose text matches.
# Layer: artindex/search.
# Details: Subtype parsing, generic-subtype detection, per-run cache fingerprints, and difflib fuzzy scoring.

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import List, Optional

from artindex.models.domain import EntityDescriptor
from artindex.taxonomy import GENERIC_SUBTYPE_INDICATORS, TermTable, terms_for_category

_SUBTYPE_DELIMITERS = re.compile(r"[,;/&]+")


def has_generic_subtype(subtype: Optional[str]) -> bool:
    """True when the subtype means "any kind", e.g. "any race" or "various"."""

    if not subtype:
        return False
    lowered = subtype.strip().lower()
    return any(indicator in lowered for indicator in GENERIC_SUBTYPE_INDICATORS)


def parse_subtype_terms(subtype: Optional[str]) -> List[str]:
    """Split "Dwarf, Monk" into ["dwarf", "monk"]; generic subtypes yield no terms."""

    if not subtype or has_generic_subtype(subtype):
        return []
    terms = [term.strip() for term in _SUBTYPE_DELIMITERS.split(subtype.lower())]
    return [term for term in terms if term and term not in GENERIC_SUBTYPE_INDICATORS]


def fingerprint(entity: EntityDescriptor) -> str:
    return f"{(entity.name or '').lower()}_{entity.type or ''}_{entity.subtype or ''}"


def is_valid_result_path(path: Optional[str]) -> bool:
    if not path or not isinstance(path, str):
        return False
    return "/" in path or "." in path or path.startswith("http") or path.startswith("forge://")


def folder_matches_type(folder: Optional[str], creature_type: Optional[str], term_table: TermTable) -> bool:
    """True when a folder name mentions the type itself or one of its mapped terms."""

    if not folder or not creature_type:
        return False
    folder_lower = folder.lower()
    type_lower = creature_type.lower()
    if type_lower in folder_lower:
        return True
    return any(term in folder_lower for term in terms_for_category(term_table, type_lower))


def fuzzy_score(term: str, text: Optional[str]) -> float:
    """
    Distance in [0, 1] between ``term`` and ``text``; 0 is identical.

    Substrings score at most 0.1; otherwise 1 minus the best SequenceMatcher ratio against the whole
    text or any of its words.
    """

    needle = term.strip().lower()
    haystack = (text or "").strip().lower()
    if not needle or not haystack:
        return 1.0
    if needle == haystack:
        return 0.0
    if needle in haystack:
        return 0.05 if haystack.startswith(needle) else 0.1
    candidates = [haystack] + haystack.replace("_", " ").replace("-", " ").split()
    best = max(SequenceMatcher(None, needle, candidate).ratio() for candidate in candidates)
    return round(1.0 - best, 4)


__all__ = [
    "fingerprint",
    "folder_matches_type",
    "fuzzy_score",
    "has_generic_subtype",
    "is_valid_result_path",
    "parse_subtype_terms",
]
