# Path: artindex/indexing/__init__.py
# Purpose: Package initializer for indexing utilities.
# Layer: artindex/indexing.
# Details: Exposes scanning, classification, the background worker, and index building.

from .scanner import ImageScanner
from .categorize import Classification, TermClassifier, categorize
from .worker import IndexWorker
from .index_builder import IndexBuilder

__all__ = ["Classification", "ImageScanner", "IndexBuilder", "IndexWorker", "TermClassifier", "categorize"]
