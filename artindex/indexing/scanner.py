# Path: artindex/indexing/scanner.py
# Purpose: Scan folders and collect local artwork paths with lightweight metadata.
# Layer: artindex/indexing.
# Details: The parent folder name becomes the record category so local art can be matched by creature type.

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence, Union

from artindex.models.domain import ImageRecord, display_name

SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".svg"}
LOCAL_SOURCE = "local"


class ImageScanner:
    """Scan filesystem roots for supported image files."""

    def __init__(self, roots: Sequence[Union[str, Path]]) -> None:
        self.roots = [Path(root) for root in roots]

    def scan(self) -> List[ImageRecord]:
        """Return discovered images; missing roots are skipped and duplicate paths collapse."""

        records: List[ImageRecord] = []
        seen = set()
        for path in self._iter_image_files():
            key = path.as_posix()
            if key in seen:
                continue
            seen.add(key)
            records.append(
                ImageRecord(path=key, name=display_name(path.name), category=path.parent.name or None, source=LOCAL_SOURCE)
            )
        return records

    def _iter_image_files(self) -> Iterable[Path]:
        for root in self.roots:
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS:
                    yield path


__all__ = ["ImageScanner", "LOCAL_SOURCE", "SUPPORTED_EXTENSIONS"]
