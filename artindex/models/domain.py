# Path: artindex/models/domain.py
# Purpose: Define domain models shared across indexing, caching, and search workflows.
# Layer: artindex/models.
# Details: Lightweight dataclasses with explicit dict conversion for the persisted JSON envelope.

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

ALL_BUCKET = "_all"

_NAME_SEPARATORS = re.compile(r"[-_]+")
_WHITESPACE = re.compile(r"\s+")


def display_name(path: str) -> str:
    """Derive a display name from the filename: no extension, dashes and underscores as spaces."""

    filename = path.replace("\\", "/").rstrip("/").split("/")[-1]
    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    cleaned = _WHITESPACE.sub(" ", _NAME_SEPARATORS.sub(" ", stem)).strip()
    return cleaned or "Unknown"


@dataclass(frozen=True)
class ImageRecord:
    """Catalog entry for one artwork path; immutable once added."""

    path: str
    name: str
    category: Optional[str] = None
    subcategories: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    source: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "category": self.category,
            "subcategories": list(self.subcategories),
        }
        if self.tags:
            payload["tags"] = list(self.tags)
        return payload

    @classmethod
    def from_dict(cls, path: str, payload: Dict[str, Any]) -> "ImageRecord":
        return cls(
            path=path,
            name=str(payload.get("name") or ""),
            category=payload.get("category"),
            subcategories=tuple(payload.get("subcategories") or ()),
            tags=tuple(payload.get("tags") or ()),
        )


@dataclass
class PriorityFlags:
    """Provenance tags used to group merged search results."""

    from_name: bool = False
    from_subtype: bool = False
    from_category: bool = False

    def group(self) -> int:
        """Return the ordering group: name, subtype, category, then untagged."""

        if self.from_name:
            return 0
        if self.from_subtype:
            return 1
        if self.from_category:
            return 2
        return 3

    def to_dict(self) -> Dict[str, bool]:
        return {"fromName": self.from_name, "fromSubtype": self.from_subtype, "fromCategory": self.from_category}


@dataclass
class SearchResult:
    """Search hit; lower score means a better match."""

    path: str
    name: str
    source: str
    score: float
    flags: PriorityFlags = field(default_factory=PriorityFlags)
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "source": self.source,
            "score": self.score,
            "category": self.category,
            "priorityFlags": self.flags.to_dict(),
        }


@dataclass
class EntityDescriptor:
    """Opaque name/type/subtype strings describing the entity that needs artwork."""

    name: str
    type: str = ""
    subtype: str = ""

    @property
    def search_terms(self) -> List[str]:
        """Primary name first, then the entity type, lowercased and deduplicated."""

        terms: List[str] = []
        for value in (self.name, self.type):
            term = (value or "").strip().lower()
            if term and term not in terms:
                terms.append(term)
        return terms


@dataclass
class CatalogRegistry:
    """Flat registry (dedup authority) plus the two-level category index."""

    all_paths: Dict[str, ImageRecord] = field(default_factory=dict)
    categories: Dict[str, Dict[str, List[Dict[str, str]]]] = field(default_factory=dict)

    def __contains__(self, path: object) -> bool:
        return path in self.all_paths

    def __len__(self) -> int:
        return len(self.all_paths)

    def __iter__(self) -> Iterator[ImageRecord]:
        return iter(self.all_paths.values())

    def insert(self, record: ImageRecord) -> bool:
        """
        Insert a classified record into both structures.

        Categorized records land in each matched subcategory bucket and the category's `_all` bucket.
        """

        if record.path in self.all_paths:
            return False
        self.all_paths[record.path] = record
        if record.category:
            buckets = self.categories.setdefault(record.category, {ALL_BUCKET: []})
            entry = {"path": record.path, "name": record.name}
            for subcategory in record.subcategories:
                buckets.setdefault(subcategory, []).append(entry)
            buckets.setdefault(ALL_BUCKET, []).append(entry)
        return True

    def category_names(self) -> List[str]:
        return list(self.categories)

    def clear(self) -> None:
        self.all_paths.clear()
        self.categories.clear()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "categories": {
                category: {name: [dict(entry) for entry in entries] for name, entries in buckets.items()}
                for category, buckets in self.categories.items()
            },
            "allPaths": {path: record.to_dict() for path, record in self.all_paths.items()},
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "CatalogRegistry":
        """Rebuild a registry from a persisted payload; raises ValueError on structural damage."""

        raw_paths = payload.get("allPaths")
        raw_categories = payload.get("categories")
        if not isinstance(raw_paths, dict) or not isinstance(raw_categories, dict):
            raise ValueError("Registry payload must contain 'allPaths' and 'categories' objects.")
        registry = cls()
        for path, entry in raw_paths.items():
            if not isinstance(entry, dict):
                raise ValueError(f"Registry entry for {path!r} is not an object.")
            registry.all_paths[path] = ImageRecord.from_dict(path, entry)
        for category, buckets in raw_categories.items():
            if not isinstance(buckets, dict):
                raise ValueError(f"Category {category!r} is not an object.")
            registry.categories[category] = {
                name: [{"path": str(item["path"]), "name": str(item.get("name", ""))} for item in entries]
                for name, entries in buckets.items()
            }
        return registry


@dataclass
class CacheEnvelope:
    """Versioned persisted payload with optional source revalidation metadata."""

    version: int
    payload: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)
    last_update: float = field(default_factory=time.time)
    source_url: Optional[str] = None
    source_last_modified: Optional[str] = None
    source_content_length: Optional[int] = None

    _RESERVED = ("version", "timestamp", "lastUpdate", "sourceUrl", "sourceLastModified", "sourceContentLength")

    def age(self, now: Optional[float] = None) -> float:
        return (time.time() if now is None else now) - self.last_update

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": self.version,
            "timestamp": self.timestamp,
            "lastUpdate": self.last_update,
        }
        data.update(self.payload)
        if self.source_url is not None:
            data["sourceUrl"] = self.source_url
            data["sourceLastModified"] = self.source_last_modified
            data["sourceContentLength"] = self.source_content_length
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEnvelope":
        """Parse a stored envelope; raises ValueError when the header is unusable."""

        if not isinstance(data, dict) or not isinstance(data.get("version"), int):
            raise ValueError("Envelope is missing an integer 'version'.")
        length = data.get("sourceContentLength")
        return cls(
            version=data["version"],
            payload={key: value for key, value in data.items() if key not in cls._RESERVED},
            timestamp=float(data.get("timestamp") or 0.0),
            last_update=float(data.get("lastUpdate") or data.get("timestamp") or 0.0),
            source_url=data.get("sourceUrl"),
            source_last_modified=data.get("sourceLastModified"),
            source_content_length=int(length) if length is not None else None,
        )
