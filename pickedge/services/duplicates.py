"""
Duplicate-pick detection.

Two picks are the same game when their canonical keys match::

    <home slug>-<away slug>-<week>

Team names go through the static alias table in
:mod:`pickedge.services.team_resolver` ("Browns" and "Cleveland Browns"
share a slug).  The week is the stored week, else derived from the kickoff
date.  Kickoff time itself is not part of the key, so a rescheduled game
still collides with its original pick.

Within a group the earliest ``created_at`` is the original; everything
after it is a duplicate.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pickedge.core.nfl_weeks import resolve_week
from pickedge.schemas import Pick
from pickedge.services.pick_store import BasePickStore, StoreError
from pickedge.services.team_resolver import team_slug

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    key: str
    original: Pick
    duplicates: List[Pick]


@dataclass
class CleanupReport:
    deleted_count: int = 0
    failed_count: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)  # {"pick_id", "error"}


def normalize_team(name: Optional[str]) -> str:
    return team_slug(name)


def game_key(pick: Pick) -> str:
    game = pick.game_info
    week = resolve_week(pick.week, game.game_date, label=f"pick {pick.id}")
    return f"{normalize_team(game.home_team)}-{normalize_team(game.away_team)}-{week}"


def _oldest_first(picks: List[Pick]) -> List[Pick]:
    # sorted() is stable: equal timestamps keep input order
    return sorted(picks, key=lambda p: p.created_at)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def find_duplicates(picks: List[Pick]) -> List[DuplicateGroup]:
    """Groups of picks sharing a game key, oldest pick as the original."""
    buckets: Dict[str, List[Pick]] = {}
    for pick in _oldest_first(picks):
        buckets.setdefault(game_key(pick), []).append(pick)

    return [
        DuplicateGroup(key=key, original=group[0], duplicates=group[1:])
        for key, group in buckets.items()
        if len(group) > 1
    ]


def count_duplicates(picks: List[Pick]) -> int:
    return sum(len(g.duplicates) for g in find_duplicates(picks))


def is_duplicate(pick: Pick, picks: List[Pick]) -> bool:
    """True if any *other* pick in ``picks`` shares ``pick``'s game key."""
    key = game_key(pick)
    return any(other.id != pick.id and game_key(other) == key for other in picks)


def find_original(pick: Pick, picks: List[Pick]) -> Optional[Pick]:
    """
    The earliest pick for ``pick``'s game.

    Returns None when there is no match or ``pick`` is itself the original.
    """
    key = game_key(pick)
    matching = _oldest_first([p for p in picks if game_key(p) == key])
    if not matching or matching[0].id == pick.id:
        return None
    return matching[0]


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------

async def clean_duplicates(picks: List[Pick], store: BasePickStore) -> CleanupReport:
    """
    Delete every duplicate, keeping each group's original.

    A failed delete is recorded and the sweep continues.
    """
    report = CleanupReport()
    groups = find_duplicates(picks)

    for group in groups:
        for dup in group.duplicates:
            try:
                await store.delete(dup.id)
                report.deleted_count += 1
            except StoreError as exc:
                report.failed_count += 1
                report.errors.append({"pick_id": dup.id, "error": str(exc)})
                logger.warning("Failed to delete duplicate %s (%s): %s", dup.id, group.key, exc)

    logger.info(
        "Duplicate cleanup: %d groups, %d deleted, %d failed",
        len(groups), report.deleted_count, report.failed_count,
    )
    return report
