# Path: scripts/build_index.py
# Purpose: CLI tool to load the external catalog and build the artwork index.
# Layer: scripts.
# Details: Demonstrates how to wire settings, the runtime, and tqdm progress reporting together.

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from artindex.errors import ArtIndexError
from artindex.indexing.index_builder import tqdm_progress
from artindex.log import configure_logging
from artindex.runtime import SearchRuntime
from config import AppSettings


def main() -> int:
    """Build or force-rebuild the index and print its statistics."""

    parser = argparse.ArgumentParser(description="Build the ArtIndex artwork index")
    parser.add_argument("--catalog", type=str, default=None, help="URL or file path of the bulk catalog")
    parser.add_argument("--search-url", type=str, default=None, help="Base URL of the per-term search service")
    parser.add_argument("--database", type=Path, default=None, help="SQLite database path")
    parser.add_argument("--force", action="store_true", help="Discard the persisted index before building")
    parser.add_argument("--no-worker", action="store_true", help="Index in the calling thread")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level, e.g. DEBUG")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    if args.catalog:
        settings.sources.external_locator = args.catalog
    if args.search_url:
        settings.sources.remote_search_url = args.search_url
    if args.database:
        settings.cache.database_path = args.database
    if args.no_worker:
        settings.cache.use_worker = False
    configure_logging(args.log_level or settings.log_level)

    progress, close_bar = tqdm_progress("Indexing")
    with SearchRuntime.from_settings(settings) as runtime:
        try:
            runtime.start(build_index=False)
            runtime.build_index(force=args.force, on_progress=progress)
        except ArtIndexError as exc:
            print(f"Index build failed [{exc.kind.value}]: {exc.message}", file=sys.stderr)
            for hint in exc.remediation:
                print(f"  hint: {hint}", file=sys.stderr)
            return 1
        finally:
            close_bar()
        stats = runtime.index.get_stats()

    print(f"Indexed {stats['total_images']} images ({stats['categorized_images']} categorized)")
    for category, count in sorted(stats["categories"].items()):
        print(f"  {category}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
