# Path: artindex/models/__init__.py
# Purpose: Package initializer for domain model definitions.
# Layer: artindex/models.
# Details: Exposes dataclasses used across filtering, storage, indexing, and search layers.

from .domain import (
    ALL_BUCKET,
    CacheEnvelope,
    CatalogRegistry,
    EntityDescriptor,
    ImageRecord,
    PriorityFlags,
    SearchResult,
    display_name,
)

__all__ = [
    "ALL_BUCKET",
    "CacheEnvelope",
    "CatalogRegistry",
    "EntityDescriptor",
    "ImageRecord",
    "PriorityFlags",
    "SearchResult",
    "display_name",
]
