"""
Refresh signals emitted after a successful batch commit.

Public API:
  RefreshSignals.connect(name, callback)  → None
  RefreshSignals.emit(name)               → int   (callbacks run)

Listeners are plain callables taking the signal name.  A listener that
raises is logged and skipped; the remaining listeners still run.
"""

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List

logger = logging.getLogger(__name__)

REFRESH_PICKS = "refresh_picks"
REFRESH_STATS = "refresh_stats"

Listener = Callable[[str], None]


class RefreshSignals:
    def __init__(self):
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)
        self.emitted: List[str] = []

    def connect(self, name: str, callback: Listener) -> None:
        self._listeners[name].append(callback)

    def disconnect(self, name: str, callback: Listener) -> None:
        if callback in self._listeners[name]:
            self._listeners[name].remove(callback)

    def emit(self, name: str) -> int:
        self.emitted.append(name)
        ran = 0
        for callback in list(self._listeners[name]):
            try:
                callback(name)
                ran += 1
            except Exception as exc:
                logger.error("Listener %r for %s failed: %s", callback, name, exc)
        logger.debug("Emitted %s to %d listener(s)", name, ran)
        return ran

    def emit_refresh(self) -> None:
        """Picks and derived stats are both stale after a commit."""
        self.emit(REFRESH_PICKS)
        self.emit(REFRESH_STATS)
