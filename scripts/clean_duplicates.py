"""
clean_duplicates.py - Report and remove duplicate picks.

Two picks are duplicates when they share home team, away team and week
(team aliases folded).  The earliest-created pick of each game is kept.

Usage
-----
  python scripts/clean_duplicates.py              # dry-run (lists groups, no delete)
  python scripts/clean_duplicates.py --execute    # delete duplicates
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def _run(execute: bool) -> int:
    from pickedge.services.duplicates import clean_duplicates, find_duplicates
    from pickedge.services.pick_store import SQLPickStore

    store = SQLPickStore()
    picks = await store.get_all()
    groups = find_duplicates(picks)
    label = "" if execute else "[DRY RUN] "

    print(f"{label}{len(picks)} pick(s), {len(groups)} duplicate group(s)")
    for group in groups:
        print(f"  {group.key}: keep {group.original.id} ({group.original.created_at:%Y-%m-%d %H:%M})")
        for dup in group.duplicates:
            print(f"      {'delete' if execute else 'would delete'} {dup.id} ({dup.created_at:%Y-%m-%d %H:%M})")

    if not execute or not groups:
        if groups:
            print("\nRe-run with --execute to delete.")
        return 0

    report = await clean_duplicates(picks, store)
    print(f"\nDeleted {report.deleted_count}, failed {report.failed_count}")
    for err in report.errors:
        print(f"  {err['pick_id']}: {err['error']}")
    return 1 if report.failed_count else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Remove duplicate Pick Edge picks.")
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually delete duplicates.  Without this flag the script runs dry.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    from pickedge.services.pick_store import StoreError

    try:
        sys.exit(asyncio.run(_run(args.execute)))
    except StoreError as exc:
        print(f"Cleanup failed: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
