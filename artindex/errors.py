# Path: artindex/errors.py
# Purpose: Define structured errors raised by the index, cache, and search services.
# Layer: artindex.
# Details: Each error carries a machine-readable kind, a message, and remediation hints for callers.

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple


class ErrorKind(str, Enum):
    """Failure categories surfaced at build and load entry points."""

    SOURCE_UNAVAILABLE = "source_unavailable"
    SOURCE_BUSY = "source_busy"
    NETWORK_ERROR = "network_error"
    MALFORMED_PAYLOAD = "malformed_payload"
    EMPTY_PAYLOAD = "empty_payload"
    CAPABILITY_DISABLED = "capability_disabled"
    STORAGE_CAPACITY_EXCEEDED = "storage_capacity_exceeded"
    INVALID_INPUT = "invalid_input"
    CANCELLED = "cancelled"
    CACHE_LOAD_FAILED = "cache_load_failed"
    INDEX_BUILD_FAILED = "index_build_failed"


class ArtIndexError(Exception):
    """Base class for all structured errors of the package."""

    kind: ErrorKind = ErrorKind.INDEX_BUILD_FAILED
    default_remediation: Tuple[str, ...] = ()

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        remediation: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.remediation: Tuple[str, ...] = tuple(remediation) if remediation is not None else self.default_remediation

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for HTTP responses and logs."""

        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
            "remediation": list(self.remediation),
        }


class SourceUnavailable(ArtIndexError):
    """The bulk catalog or per-term source is not installed or configured."""

    kind = ErrorKind.SOURCE_UNAVAILABLE
    default_remediation = ("install_source", "check_configuration")


class SourceBusy(ArtIndexError):
    """The source is still producing its own catalog after the bounded wait."""

    kind = ErrorKind.SOURCE_BUSY
    default_remediation = ("wait_for_cache", "retry_later")


class NetworkError(ArtIndexError):
    """A transport-level failure or non-success HTTP status."""

    kind = ErrorKind.NETWORK_ERROR
    default_remediation = ("check_network", "retry_later")


class MalformedPayload(ArtIndexError):
    """The payload could not be parsed into catalog records."""

    kind = ErrorKind.MALFORMED_PAYLOAD
    default_remediation = ("rebuild_cache",)


class EmptyPayload(ArtIndexError):
    """The payload parsed correctly but yielded no usable records."""

    kind = ErrorKind.EMPTY_PAYLOAD
    default_remediation = ("rebuild_cache", "check_configuration")


class CapabilityDisabled(ArtIndexError):
    """The upstream source has the required feature switched off."""

    kind = ErrorKind.CAPABILITY_DISABLED
    default_remediation = ("enable_static_cache",)


class StorageCapacityExceeded(ArtIndexError):
    """A payload does not fit in any persistence backend."""

    kind = ErrorKind.STORAGE_CAPACITY_EXCEEDED
    default_remediation = ("clear_cache",)


class InvalidInput(ArtIndexError):
    """A caller supplied arguments that cannot be processed."""

    kind = ErrorKind.INVALID_INPUT
    default_remediation = ("check_input",)


class OperationCancelled(ArtIndexError):
    """Cooperative cancellation was observed at a batch boundary."""

    kind = ErrorKind.CANCELLED


class CacheLoadFailed(ArtIndexError):
    """An unexpected failure escaped a bulk catalog load."""

    kind = ErrorKind.CACHE_LOAD_FAILED
    default_remediation = ("retry_later", "rebuild_cache")


class IndexBuildFailed(ArtIndexError):
    """An unexpected failure escaped the index build."""

    kind = ErrorKind.INDEX_BUILD_FAILED
    default_remediation = ("retry_later", "rebuild_cache")


__all__ = [
    "ArtIndexError",
    "CacheLoadFailed",
    "CapabilityDisabled",
    "EmptyPayload",
    "ErrorKind",
    "IndexBuildFailed",
    "InvalidInput",
    "MalformedPayload",
    "NetworkError",
    "OperationCancelled",
    "SourceBusy",
    "SourceUnavailable",
    "StorageCapacityExceeded",
]
