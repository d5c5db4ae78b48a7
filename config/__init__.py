# Path: config/__init__.py
# Purpose: Package initializer for artwork search configuration.
# Layer: config.
# Details: Exposes the nested settings groups and the index update cadences.

from .settings import UPDATE_FREQUENCIES, AppSettings, CacheSettings, SearchSettings, SourceSettings

__all__ = ["AppSettings", "CacheSettings", "SearchSettings", "SourceSettings", "UPDATE_FREQUENCIES"]
