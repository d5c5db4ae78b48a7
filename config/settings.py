# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for storage, catalog sources, search behaviour, and batching parameters.

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "ARTINDEX_"

DAY_SECONDS = 24 * 60 * 60
UPDATE_FREQUENCIES: Dict[str, int] = {
    "daily": DAY_SECONDS,
    "weekly": 7 * DAY_SECONDS,
    "monthly": 30 * DAY_SECONDS,
    "quarterly": 90 * DAY_SECONDS,
}
DEFAULT_UPDATE_FREQUENCY = "weekly"


class CacheSettings(BaseModel):
    """Settings controlling persistence of the index and external catalog snapshots."""

    database_path: Optional[Path] = Field(
        default=Path("storage/db/artindex.sqlite3"), description="Primary SQLite store; unset disables it."
    )
    fallback_dir: Path = Field(default=Path("storage/cache"), description="Folder for size-capped JSON fallbacks.")
    fallback_max_bytes: int = Field(default=4_500_000, description="Largest payload written to the fallback store.")
    index_update_frequency: str = Field(
        default=DEFAULT_UPDATE_FREQUENCY, description="Rebuild cadence: daily, weekly, monthly, or quarterly."
    )
    index_batch_size: int = Field(default=1000, description="Records per batch during direct indexing.")
    index_batch_pause: float = Field(default=0.01, description="Seconds yielded between direct indexing batches.")
    use_worker: bool = Field(default=True, description="Index bulk records on a background worker thread.")
    worker_timeout: float = Field(default=60.0, description="Seconds to wait for a worker event before giving up.")


class SourceSettings(BaseModel):
    """Settings describing where artwork catalogs come from and how patiently to ask."""

    use_external_cache: bool = Field(default=True, description="Load the bulk external catalog when available.")
    refresh_external_cache: bool = Field(default=False, description="Force a fresh external fetch on startup.")
    external_locator: Optional[str] = Field(default=None, description="URL or file path of the bulk catalog.")
    remote_search_url: Optional[str] = Field(default=None, description="Base URL of the per-term search service.")
    request_timeout: float = Field(default=30.0, description="Timeout in seconds for outbound HTTP requests.")
    busy_wait: float = Field(default=30.0, description="Upper bound in seconds to wait for a busy source.")
    poll_interval: float = Field(default=0.5, description="Seconds between busy-source polls.")
    term_batch_size: int = Field(default=20, description="Remote terms queried in parallel per batch.")
    term_batch_pause: float = Field(default=0.05, description="Seconds yielded between remote term batches.")


class SearchSettings(BaseModel):
    """Settings shaping result ordering and batched entity searches."""

    search_priority: Literal["local", "remote", "both"] = Field(
        default="both", description="Which side ranks first when results tie on provenance."
    )
    fuzzy_threshold: float = Field(default=0.1, ge=0.0, le=1.0, description="Maximum fuzzy distance for local art.")
    # Read by the apply step that writes a chosen result back to the entity; searching ignores them.
    auto_apply: bool = Field(default=False, description="Apply the best result without asking.")
    confirm_apply: bool = Field(default=True, description="Ask before replacing existing artwork.")
    slow_batch_size: int = Field(default=4, description="Category terms per batch without a bulk registry.")
    parallel_batch_size: int = Field(default=4, description="Entity groups searched in parallel per batch.")
    batch_pause: float = Field(default=0.05, description="Seconds yielded between category term batches.")


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    cache: CacheSettings = Field(default_factory=CacheSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    additional_paths: List[Path] = Field(default_factory=list, description="Folders holding local artwork.")
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")

    def freshness_window(self) -> int:
        """Seconds a built index stays fresh; unknown cadences fall back to weekly."""

        frequency = self.cache.index_update_frequency.strip().lower()
        return UPDATE_FREQUENCIES.get(frequency, UPDATE_FREQUENCIES[DEFAULT_UPDATE_FREQUENCY])

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """
        Instantiate settings with ``ARTINDEX_<FIELD>`` environment overrides.

        Nested fields are addressed by their own name (``ARTINDEX_FUZZY_THRESHOLD``);
        ``ARTINDEX_ADDITIONAL_PATHS`` is split on the platform path separator.
        """

        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for section, model in (("cache", CacheSettings), ("sources", SourceSettings), ("search", SearchSettings)):
            values = {name: env[_env_key(name)] for name in model.model_fields if _env_key(name) in env}
            if values:
                data[section] = values
        raw_paths = env.get(_env_key("additional_paths"))
        if raw_paths:
            data["additional_paths"] = [part for part in raw_paths.split(os.pathsep) if part]
        if _env_key("log_level") in env:
            data["log_level"] = env[_env_key("log_level")]
        return cls.model_validate(data)


def _env_key(field_name: str) -> str:
    return f"{ENV_PREFIX}{field_name.upper()}"


__all__ = ["AppSettings", "CacheSettings", "SearchSettings", "SourceSettings", "UPDATE_FREQUENCIES"]
