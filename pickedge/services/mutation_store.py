"""
Optimistic edits with rollback.

An :class:`OptimisticMutationStore` is owned by one editing session (one
admin screen, one script run).  Edits show up in :attr:`data` immediately;
the store keeps enough history to put everything back if the commit fails.

Two records are kept:

* ``pending``: one :class:`PendingOperation` per id.  Repeated edits to the
  same id collapse into the latest operation, but the snapshot taken before
  the *first* edit is preserved.  This is what gets committed.
* ``_log``: append-only, one entry per edit, each holding the item exactly
  as it was right before that edit.  Replaying it backwards restores the
  starting dataset.

Removed items are put back by their position in the pre-edit dataset (the
baseline), so order survives any mix of deletes and partial rollbacks.

Items are any pydantic model with an ``id`` attribute (normally ``Pick``).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

if TYPE_CHECKING:
    from pickedge.services.batch_commit import AtomicBatchCommitter, BatchResult

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass
class PendingOperation(Generic[T]):
    id: str
    type: str                               # update | delete
    payload: Optional[Dict[str, Any]]
    original_snapshot: Optional[T]
    timestamp: float


@dataclass
class _LogEntry(Generic[T]):
    id: str
    type: str
    before: T


class OptimisticMutationStore(Generic[T]):
    def __init__(self, data: Optional[List[T]] = None):
        self._data: List[T] = list(data or [])
        self._pending: Dict[str, PendingOperation[T]] = {}
        self._log: List[_LogEntry[T]] = []
        # id -> position in the dataset as it stood before the pending edits
        self._baseline: Dict[str, int] = {}
        self._reset_baseline()

    # -- views ---------------------------------------------------------------

    @property
    def data(self) -> List[T]:
        return list(self._data)

    @property
    def pending_operations(self) -> List[PendingOperation[T]]:
        """Pending operations in first-edit order."""
        return list(self._pending.values())

    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    def get_pending_operation(self, item_id: str) -> Optional[PendingOperation[T]]:
        return self._pending.get(item_id)

    def _reset_baseline(self) -> None:
        self._baseline = {item.id: i for i, item in enumerate(self._data)}

    def _insert_in_baseline_order(self, item: T) -> None:
        """Re-insert a removed item ahead of the first visible item that followed it."""
        rank = self._baseline.get(item.id)
        if rank is None:
            self._data.append(item)
            return
        for i, existing in enumerate(self._data):
            if self._baseline.get(existing.id, len(self._baseline)) > rank:
                self._data.insert(i, item)
                return
        self._data.append(item)

    def _index_of(self, item_id: str) -> Optional[int]:
        for i, item in enumerate(self._data):
            if item.id == item_id:
                return i
        return None

    def _record(self, item_id: str, op_type: str, payload: Optional[Dict[str, Any]], before: T) -> None:
        self._log.append(_LogEntry(item_id, op_type, before))
        existing = self._pending.get(item_id)
        snapshot = existing.original_snapshot if existing else before
        # assigning an existing key keeps its first-edit position
        self._pending[item_id] = PendingOperation(
            id=item_id,
            type=op_type,
            payload=payload,
            original_snapshot=snapshot,
            timestamp=time.time(),
        )

    # -- edits ---------------------------------------------------------------

    def optimistic_update(self, item_id: str, updates: Dict[str, Any]) -> T:
        """Apply ``updates`` to the visible item and queue them.

        Raises:
            KeyError: ``item_id`` is not in the visible dataset.
            pydantic.ValidationError: the updated item is invalid.  Nothing
                is recorded in that case.
        """
        index = self._index_of(item_id)
        if index is None:
            raise KeyError(item_id)

        before = self._data[index]
        after = type(before).model_validate({**before.model_dump(), **updates})

        existing = self._pending.get(item_id)
        merged = dict(existing.payload or {}) if existing and existing.type == "update" else {}
        merged.update(updates)

        self._record(item_id, "update", merged, before)
        self._data[index] = after
        return after

    def optimistic_delete(self, item_id: str) -> None:
        index = self._index_of(item_id)
        if index is None:
            raise KeyError(item_id)
        before = self._data.pop(index)
        self._record(item_id, "delete", None, before)

    # -- rollback ------------------------------------------------------------

    def rollback_operation(self, item_id: str) -> bool:
        """Restore one item to its state before its first edit.

        Returns False when nothing is pending for ``item_id``.
        """
        op = self._pending.pop(item_id, None)
        if op is None:
            return False

        self._log = [e for e in self._log if e.id != item_id]

        index = self._index_of(item_id)
        if index is not None:
            self._data[index] = op.original_snapshot
        else:
            self._insert_in_baseline_order(op.original_snapshot)
        logger.debug("Rolled back %s on %s", op.type, item_id)
        return True

    def rollback_all_operations(self) -> None:
        """Undo every edit, newest first, restoring the starting dataset."""
        for entry in reversed(self._log):
            if entry.type == "delete":
                self._insert_in_baseline_order(entry.before)
            else:
                index = self._index_of(entry.id)
                if index is None:
                    logger.warning("Item %s vanished before rollback; re-inserting", entry.id)
                    self._insert_in_baseline_order(entry.before)
                else:
                    self._data[index] = entry.before
        if self._log:
            logger.info("Rolled back %d edit(s) on %d item(s)", len(self._log), len(self._pending))
        self._log.clear()
        self._pending.clear()

    def clear_pending_operations(self) -> None:
        """Forget history and keep the visible data as-is (after a successful save)."""
        self._log.clear()
        self._pending.clear()
        self._reset_baseline()

    def set_data(self, data: List[T]) -> None:
        """Replace the dataset (e.g. after a reload); pending history is dropped."""
        if self._pending:
            logger.warning("set_data() discarding %d pending operation(s)", len(self._pending))
        self._data = list(data)
        self.clear_pending_operations()

    # -- commit --------------------------------------------------------------

    async def commit(
        self,
        committer: "AtomicBatchCommitter",
        continue_on_error: bool = False,
        validate_before_commit: bool = True,
    ) -> "BatchResult":
        """Send the pending operations through ``committer``.

        Success clears the ledger.  A partial failure rolls back only the
        failed items and keeps the rest; any other failure rolls back
        everything.
        """
        result = await committer.execute(
            self.pending_operations,
            continue_on_error=continue_on_error,
            validate_before_commit=validate_before_commit,
        )
        if result.success:
            self.clear_pending_operations()
        elif result.is_partial:
            for item_id in result.failed_ids:
                self.rollback_operation(item_id)
            self.clear_pending_operations()
        else:
            self.rollback_all_operations()
        return result
