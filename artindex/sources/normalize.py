# Path: artindex/sources/normalize.py
# Purpose: Turn heterogeneous source records into canonical ImageRecord instances.
# Layer: artindex/sources.
# Details: The only place that inspects record and container shapes; everything downstream sees ImageRecord.

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple

from artindex.errors import MalformedPayload
from artindex.models.domain import ImageRecord, display_name

PATH_KEYS = ("path", "route", "img", "src", "image", "url", "uri", "thumb", "thumbnail")
NAME_KEYS = ("name", "label", "title", "displayName")
CONTAINER_KEYS = ("paths", "images", "results", "data", "items", "files")


def looks_like_path(value: Any) -> bool:
    return isinstance(value, str) and bool(value) and (
        value.startswith("http") or value.startswith("forge://") or "/" in value or "." in value
    )


def _path_from_object(obj: Dict[str, Any], depth: int = 0) -> Optional[str]:
    for key in PATH_KEYS:
        if looks_like_path(obj.get(key)):
            return obj[key]
    if depth >= 3:
        return None
    for value in obj.values():
        if isinstance(value, dict):
            nested = _path_from_object(value, depth + 1)
            if nested:
                return nested
    return None


def _name_from_object(obj: Dict[str, Any]) -> Optional[str]:
    for key in NAME_KEYS:
        value = obj.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _tags(value: Any) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(tag) for tag in value if isinstance(tag, (str, int, float)))
    if isinstance(value, dict):
        return tuple(str(key) for key in value)
    return ()


def normalize_item(item: Any, source: str = "") -> Optional[ImageRecord]:
    """
    Canonicalize one record.

    Accepted shapes: a bare path string, ``[path, name]``, ``[path, name, tags]``, or an object with
    one of PATH_KEYS (searched one level of nesting at a time) and optionally one of NAME_KEYS.
    Anything else returns None.
    """

    path: Optional[str] = None
    name: Optional[str] = None
    tags: Tuple[str, ...] = ()
    if isinstance(item, str):
        path = item if looks_like_path(item) else None
    elif isinstance(item, (list, tuple)):
        if item and looks_like_path(item[0]):
            path = item[0]
            if len(item) >= 2 and isinstance(item[1], str) and item[1].strip():
                name = item[1].strip()
            if len(item) >= 3:
                tags = _tags(item[2])
    elif isinstance(item, dict):
        path = _path_from_object(item)
        name = _name_from_object(item)
        tags = _tags(item.get("tags"))
    if not path:
        return None
    return ImageRecord(path=path, name=name or display_name(path), tags=tags, source=source)


def _is_tuple_record(payload: Any) -> bool:
    """A lone ``[path, name]`` or ``[path, name, tags]`` rather than a list of records."""

    return (
        2 <= len(payload) <= 3
        and looks_like_path(payload[0])
        and isinstance(payload[1], str)
        and not looks_like_path(payload[1])
    )


def normalize_records(payload: Any, source: str = "") -> List[ImageRecord]:
    """
    Normalize a search response or record container into records, deduplicated by path.

    Containers: a list of records, an object holding one of CONTAINER_KEYS, an object whose keys are
    paths (values are names or record objects), or a single record.
    """

    if payload is None:
        return []
    records: List[ImageRecord] = []
    seen = set()

    def accept(record: Optional[ImageRecord]) -> None:
        if record is not None and record.path not in seen:
            seen.add(record.path)
            records.append(record)

    if isinstance(payload, (list, tuple)):
        if _is_tuple_record(payload):
            accept(normalize_item(payload, source))
            return records
        for item in payload:
            accept(normalize_item(item, source))
        return records
    if isinstance(payload, dict):
        for key in CONTAINER_KEYS:
            if isinstance(payload.get(key), (list, tuple, dict)):
                return normalize_records(payload[key], source)
        single = normalize_item(payload, source)
        if single is not None:
            return [single]
        for key, value in payload.items():
            if not looks_like_path(key):
                continue
            if isinstance(value, dict):
                accept(normalize_item({"path": key, **value}, source))
            else:
                accept(normalize_item([key, value] if isinstance(value, str) else key, source))
        return records
    accept(normalize_item(payload, source))
    return records


def iter_catalog(payload: Any, source: str = "") -> Iterator[Tuple[str, Optional[ImageRecord]]]:
    """
    Walk a bulk catalog of the form ``{label: [record, ...]}``.

    Yields ``(label, record_or_None)`` for every raw item so callers can count processed items.
    Raises MalformedPayload when the top level is not an object of lists.
    """

    if not isinstance(payload, dict):
        raise MalformedPayload(
            "Catalog payload must be an object mapping labels to record lists.",
            details={"type": type(payload).__name__},
        )
    for label, items in payload.items():
        if not isinstance(items, list):
            raise MalformedPayload(f"Catalog group {label!r} is not a list.", details={"label": label})
        for item in items:
            yield str(label), normalize_item(item, source)


__all__ = ["iter_catalog", "looks_like_path", "normalize_item", "normalize_records"]
