# Path: artindex/filtering/path_filter.py
# Purpose: Decide whether a catalog path points at a prop or scenery asset instead of a creature token.
# Layer: artindex/filtering.
# Details: Folder segments are checked by set membership; filename terms by one precompiled whole-word pattern.

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern
from urllib.parse import unquote, urlparse

from artindex.taxonomy import EXCLUDED_FILENAME_TERMS, EXCLUDED_FOLDERS, SCAFFOLDING_SEGMENTS

_SEPARATORS = re.compile(r"[\\/]+")
_WORD_SEPARATORS = re.compile(r"[-_.\s]+")


def compile_term_pattern(terms: Iterable[str]) -> Optional[Pattern[str]]:
    """
    Build one alternation matching any term as a whole word.

    Multi-word terms match across any run of whitespace. Longer terms are tried first.
    """

    parts = []
    for term in sorted({t.strip().lower() for t in terms if t and t.strip()}, key=len, reverse=True):
        parts.append(r"\s+".join(re.escape(word) for word in term.split()))
    if not parts:
        return None
    return re.compile(r"(?<![a-z0-9])(?:" + "|".join(parts) + r")(?![a-z0-9])")


def split_segments(path: str) -> List[str]:
    """Split a path or URL into lowercase segments, dropping scheme and host."""

    parsed = urlparse(path)
    body = parsed.path if parsed.scheme and parsed.netloc else path
    return [segment.lower() for segment in _SEPARATORS.split(unquote(body)) if segment]


def filename_words(filename: str) -> str:
    """Strip the extension and turn word separators into single spaces."""

    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    return _WORD_SEPARATORS.sub(" ", stem.lower()).strip()


class PathFilter:
    """Pure exclusion predicate compiled once per instance."""

    def __init__(
        self,
        excluded_folders: Iterable[str] = EXCLUDED_FOLDERS,
        excluded_filename_terms: Iterable[str] = EXCLUDED_FILENAME_TERMS,
        scaffolding_segments: Iterable[str] = SCAFFOLDING_SEGMENTS,
        cache_size: int = 65536,
    ) -> None:
        self.excluded_folders = frozenset(folder.lower() for folder in excluded_folders)
        self.excluded_filename_terms = tuple(excluded_filename_terms)
        self.scaffolding_segments = frozenset(segment.lower() for segment in scaffolding_segments)
        self._pattern = compile_term_pattern(self.excluded_filename_terms)
        self._cached = lru_cache(maxsize=cache_size)(self._evaluate)

    def is_excluded(self, path: str) -> bool:
        """Return True when the path belongs to an excluded folder or its filename names a prop."""

        if not path:
            return False
        return self._cached(path)

    def __call__(self, path: str) -> bool:
        return self.is_excluded(path)

    def clear_cache(self) -> None:
        self._cached.cache_clear()

    def _evaluate(self, path: str) -> bool:
        segments = split_segments(path)
        if not segments:
            return False
        for folder in segments[:-1]:
            if folder in self.scaffolding_segments:
                continue
            if folder in self.excluded_folders or folder.replace(" ", "_") in self.excluded_folders:
                return True
        if self._pattern is None:
            return False
        return self._pattern.search(filename_words(segments[-1])) is not None
