# Path: api/app.py
# Purpose: Expose a FastAPI application for artwork search operations.
# Layer: api.
# Details: Provides health checks, entity and category search, and index maintenance delegating to the runtime.

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from artindex.errors import ArtIndexError, ErrorKind, InvalidInput
from artindex.models.domain import EntityDescriptor
from artindex.runtime import SearchRuntime

ERROR_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.CANCELLED: 409,
    ErrorKind.NETWORK_ERROR: 502,
    ErrorKind.MALFORMED_PAYLOAD: 502,
    ErrorKind.EMPTY_PAYLOAD: 502,
    ErrorKind.SOURCE_UNAVAILABLE: 503,
    ErrorKind.SOURCE_BUSY: 503,
    ErrorKind.CAPABILITY_DISABLED: 503,
}


class SearchRequest(BaseModel):
    """Entity descriptor posted to ``/search``."""

    name: str = Field(default="", description="Primary entity name.")
    type: str = Field(default="", description="Creature type, e.g. humanoid.")
    subtype: str = Field(default="", description="Comma separated subtypes, or a generic marker such as 'any'.")
    use_cache: bool = Field(default=True, description="Reuse results cached during the current operation.")


class CategoryRequest(BaseModel):
    category: str = Field(description="Creature category to list.")
    term: Optional[str] = Field(default=None, description="Search this term directly instead of the category.")


class RebuildRequest(BaseModel):
    force: bool = Field(default=True, description="Discard the persisted index before building.")


def status_for(error: ArtIndexError) -> int:
    return ERROR_STATUS.get(error.kind, 500)


def create_app(runtime: Optional[SearchRuntime] = None):  # type: ignore[override]
    """Create a FastAPI app instance configured with the provided search runtime."""

    from fastapi import FastAPI, HTTPException

    app = FastAPI(title="ArtIndex API", version="0.1.0")

    def require_runtime() -> SearchRuntime:
        if runtime is None:
            raise HTTPException(status_code=500, detail="Search runtime is not configured.")
        return runtime

    def fail(error: ArtIndexError) -> HTTPException:
        return HTTPException(status_code=status_for(error), detail=error.to_dict())

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Return a simple health status payload with the currently ready tier."""

        tier = runtime.orchestrator.ready_tier() if runtime is not None else None
        return {"status": "ok", "ready_tier": tier}

    @app.post("/search")
    def search(payload: SearchRequest) -> Dict[str, Any]:
        """Run an entity search and return ordered results."""

        active = require_runtime()
        try:
            if not payload.name.strip() and not payload.type.strip():
                raise InvalidInput("A name or a type is required.", details={"fields": ["name", "type"]})
            entity = EntityDescriptor(name=payload.name, type=payload.type, subtype=payload.subtype)
            active.begin_operation()
            results = active.search(entity, use_cache=payload.use_cache)
        except ArtIndexError as exc:
            raise fail(exc) from exc
        return {"count": len(results), "results": [result.to_dict() for result in results]}

    @app.post("/search/category")
    def search_category(payload: CategoryRequest) -> Dict[str, Any]:
        """List candidates for a creature category or a direct term."""

        active = require_runtime()
        try:
            if not payload.category.strip():
                raise InvalidInput("A category is required.", details={"fields": ["category"]})
            active.begin_operation()
            results = active.search_category(payload.category, direct_term=payload.term)
        except ArtIndexError as exc:
            raise fail(exc) from exc
        return {"count": len(results), "results": [result.to_dict() for result in results]}

    @app.get("/index/stats")
    def index_stats() -> Dict[str, Any]:
        return require_runtime().stats()

    @app.post("/index/rebuild")
    def rebuild(payload: RebuildRequest) -> Dict[str, Any]:
        """Rebuild the index from the loaded catalog or the per-term source."""

        active = require_runtime()
        try:
            active.build_index(force=payload.force)
        except ArtIndexError as exc:
            raise fail(exc) from exc
        return active.index.get_stats()

    return app


__all__ = ["CategoryRequest", "RebuildRequest", "SearchRequest", "create_app", "status_for"]
