# Path: artindex/filtering/__init__.py
# Purpose: Package initializer for path exclusion helpers.
# Layer: artindex/filtering.
# Details: Exposes the PathFilter predicate and its pattern helpers.

from .path_filter import PathFilter, compile_term_pattern, filename_words, split_segments

__all__ = ["PathFilter", "compile_term_pattern", "filename_words", "split_segments"]
