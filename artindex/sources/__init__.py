# Path: artindex/sources/__init__.py
# Purpose: Package initializer for artwork catalog sources.
# Layer: artindex/sources.
# Details: Exposes payload normalization, the per-term remote source, and the bulk external catalog adapter.

from .normalize import iter_catalog, normalize_item, normalize_records
from .remote import HttpTermSearchSource, TermSearchSource, search_with_portrait_retry
from .external_cache import ExternalCacheAdapter, SourceStatus, StaticSourceStatus

__all__ = [
    "ExternalCacheAdapter",
    "HttpTermSearchSource",
    "SourceStatus",
    "StaticSourceStatus",
    "TermSearchSource",
    "iter_catalog",
    "normalize_item",
    "normalize_records",
    "search_with_portrait_retry",
]
