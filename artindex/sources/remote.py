# Path: artindex/sources/remote.py
# Purpose: Query an incremental per-term artwork search service.
# Layer: artindex/sources.
# Details: The HTTP implementation uses a requests.Session; responses are normalized into ImageRecord lists.

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol

import requests

from artindex.errors import MalformedPayload, NetworkError
from artindex.models.domain import ImageRecord
from artindex.sources.normalize import normalize_records

logger = logging.getLogger(__name__)

PORTRAIT_RESULT_TYPE = "Portrait"


class TermSearchSource(Protocol):
    """Per-term search backend consulted when no bulk registry is ready."""

    def search(self, term: str, result_type: Optional[str] = None) -> List[ImageRecord]:
        ...


class HttpTermSearchSource:
    """Per-term search over HTTP: ``GET <base_url>/search?q=<term>[&type=<result_type>]``."""

    source_tag = "remote"

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def search(self, term: str, result_type: Optional[str] = None) -> List[ImageRecord]:
        """
        Return normalized records for ``term``.

        External calls:
        - requests.Session.get - issue the search request.
        """

        params = {"q": term}
        if result_type:
            params["type"] = result_type
        try:
            response = self.session.get(f"{self.base_url}/search", params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise NetworkError(f"Search request for {term!r} failed: {exc}", details={"term": term}) from exc
        if not response.ok:
            raise NetworkError(
                f"Search service returned HTTP {response.status_code} for {term!r}.",
                details={"term": term, "status": response.status_code},
            )
        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise MalformedPayload(f"Search response for {term!r} is not JSON.", details={"term": term}) from exc
        return normalize_records(payload, source=self.source_tag)


def search_with_portrait_retry(source: TermSearchSource, term: str) -> List[ImageRecord]:
    """Ask for portrait results first and retry without a result type when none come back."""

    records = source.search(term, PORTRAIT_RESULT_TYPE)
    if records:
        return records
    logger.debug("No portrait results for %r; retrying without a result type", term)
    return source.search(term)


__all__ = ["HttpTermSearchSource", "PORTRAIT_RESULT_TYPE", "TermSearchSource", "search_with_portrait_retry"]
