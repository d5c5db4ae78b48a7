# Path: scripts/search_demo.py
# Purpose: Simple CLI to run an entity search against the cached index and sources.
# Layer: scripts.
# Details: Restores persisted state, searches once, and prints ranked results.

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from artindex.errors import ArtIndexError
from artindex.log import configure_logging
from artindex.models.domain import EntityDescriptor
from artindex.runtime import SearchRuntime
from config import AppSettings


def main() -> int:
    """Execute a quick entity search from the command line."""

    parser = argparse.ArgumentParser(description="Search artwork for one entity")
    parser.add_argument("--name", type=str, required=True, help="Entity name, e.g. 'Goblin Boss'")
    parser.add_argument("--type", type=str, default="", help="Creature type, e.g. humanoid")
    parser.add_argument("--subtype", type=str, default="", help="Subtypes, e.g. 'goblinoid' or 'any race'")
    parser.add_argument("--k", type=int, default=10, help="Number of results to print")
    parser.add_argument("--local", type=Path, action="append", default=[], help="Folder with local artwork")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    if args.local:
        settings.additional_paths = list(args.local)
    configure_logging(settings.log_level)

    with SearchRuntime.from_settings(settings) as runtime:
        try:
            runtime.start(build_index=False)
            results = runtime.search(EntityDescriptor(name=args.name, type=args.type, subtype=args.subtype))
        except ArtIndexError as exc:
            print(f"Search failed [{exc.kind.value}]: {exc.message}", file=sys.stderr)
            return 1

    for result in results[: args.k]:
        flags = ",".join(key for key, value in result.flags.to_dict().items() if value) or "-"
        print(f"score={result.score:.2f} source={result.source} flags={flags} path={result.path}")
    if not results:
        print("No artwork found.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
