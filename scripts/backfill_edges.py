"""
backfill_edges.py - Compute betting edges for picks stored without them.

A pick qualifies when all three stored edges are zero.  Picks without
simulator output are skipped.

Usage
-----
  python scripts/backfill_edges.py              # dry-run (shows edges, no writes)
  python scripts/backfill_edges.py --execute    # write edges to the picks table
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure the project root (one level up from scripts/) is on sys.path so that
# `from pickedge.xxx import ...` resolves when run directly.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Backfill moneyline/spread/total edges for Pick Edge picks."
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually write edges.  Without this flag the script runs dry.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    from pickedge.core.engine_config import EngineConfig
    from pickedge.services.edge_engine import EdgeEngine, backfill_edges
    from pickedge.services.pick_store import SQLPickStore, StoreError

    dry_run = not args.execute
    label = "[DRY RUN] " if dry_run else ""

    try:
        counts = asyncio.run(
            backfill_edges(SQLPickStore(), EdgeEngine(EngineConfig.from_env()), dry_run=dry_run)
        )
    except StoreError as exc:
        print(f"Backfill failed: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"\n{label}Backfill summary")
    print(f"  Candidates : {counts['candidates']}")
    print(f"  Updated    : {counts['updated']}" + (" (would update)" if dry_run else ""))
    print(f"  Skipped    : {counts['skipped']}  (no simulator output)")
    print(f"  Errors     : {counts['errors']}")
    if dry_run:
        print("\nRe-run with --execute to write edges.")
    if counts["errors"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
