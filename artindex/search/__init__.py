# Path: artindex/search/__init__.py
# Purpose: Package initializer for registry search and cross-tier orchestration.
# Layer: artindex/search.
# Details: Exposes the registry engine, query helpers, and the orchestrator entrypoint.

from .engine import SCORE_EXACT, SCORE_PREFIX, SCORE_SUBSTRING, SearchEngine, score_match
from .query import fingerprint, fuzzy_score, has_generic_subtype, parse_subtype_terms
from .orchestrator import SearchOrchestrator, SearchPriority

__all__ = [
    "SCORE_EXACT",
    "SCORE_PREFIX",
    "SCORE_SUBSTRING",
    "SearchEngine",
    "SearchOrchestrator",
    "SearchPriority",
    "fingerprint",
    "fuzzy_score",
    "has_generic_subtype",
    "parse_subtype_terms",
    "score_match",
]
