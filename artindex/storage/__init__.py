# Path: artindex/storage/__init__.py
# Purpose: Package initializer for persistence backends.
# Layer: artindex/storage.
# Details: Exposes the versioned envelope store.

from .cache_store import FALLBACK_MAX_BYTES, CacheStore

__all__ = ["CacheStore", "FALLBACK_MAX_BYTES"]
