"""
Apply a batch of queued pick edits to the store.

Public API:
  AtomicBatchCommitter(store, signals).execute(operations, ...) → BatchResult
  validate_operation(op)        → None   (raises BatchValidationError)
  create_operation_summary(r)   → str

Phases:
  1. Validation (optional, on by default).  The first bad operation aborts
     the whole batch before any store call.
  2. Sequential execution, one awaited store call per operation.
  3. On a failure with ``continue_on_error=False``: stop, then undo the
     updates that already went through by writing back their original
     result fields, newest first.  Deletes cannot be undone; they are
     logged and the caller must reload from the store.

The store is plain row storage with no transactions, so "atomic" here means
best-effort compensation, not isolation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pickedge.schemas import VALID_RESULTS
from pickedge.services.mutation_store import PendingOperation
from pickedge.services.pick_store import BasePickStore, StoreError
from pickedge.services.signals import RefreshSignals

logger = logging.getLogger(__name__)

ALLOWED_UPDATE_FIELDS = frozenset({
    "result",
    "ats_result",
    "ou_result",
    "game_info",
    "prediction",
    "spread_prediction",
    "ou_prediction",
    "confidence",
    "reasoning",
    "week",
    "is_pinned",
    "schedule_id",
    "moneyline_edge",
    "spread_edge",
    "ou_edge",
})

RESULT_FIELDS = ("result", "ats_result", "ou_result")

# BatchError.kind
VALIDATION = "validation"
ROLLED_BACK = "rolled_back"
PARTIAL = "partial"


class BatchValidationError(ValueError):
    def __init__(self, message: str, operation_id: Optional[str] = None):
        super().__init__(message)
        self.operation_id = operation_id


@dataclass
class BatchError:
    kind: str           # validation | rolled_back | partial
    message: str
    operation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "operation_id": self.operation_id}


@dataclass
class BatchResult:
    success: bool
    succeeded: List[PendingOperation] = field(default_factory=list)
    failed: List[PendingOperation] = field(default_factory=list)
    error: Optional[BatchError] = None
    summary: str = ""

    @property
    def succeeded_ids(self) -> List[str]:
        return [op.id for op in self.succeeded]

    @property
    def failed_ids(self) -> List[str]:
        return [op.id for op in self.failed]

    @property
    def is_partial(self) -> bool:
        return self.error is not None and self.error.kind == PARTIAL


def create_operation_summary(result: BatchResult) -> str:
    ok = len(result.succeeded)
    bad = len(result.failed)
    if result.success:
        return f"Successfully completed all {ok} operations"
    if ok == 0:
        return f"All {bad} operations failed"
    return f"Completed {ok} of {ok + bad} operations ({bad} failed)"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_operation(op: PendingOperation) -> None:
    if not op.id:
        raise BatchValidationError("operation has no pick id")
    if op.type not in ("update", "delete"):
        raise BatchValidationError(f"unknown operation type {op.type!r}", op.id)
    if op.original_snapshot is None:
        raise BatchValidationError(f"no original snapshot for pick {op.id}", op.id)

    if op.type == "update":
        if not op.payload:
            raise BatchValidationError(f"update for pick {op.id} has no payload", op.id)
        bad_fields = sorted(set(op.payload) - ALLOWED_UPDATE_FIELDS)
        if bad_fields:
            raise BatchValidationError(
                f"update for pick {op.id} touches disallowed fields: {', '.join(bad_fields)}",
                op.id,
            )
        for name in RESULT_FIELDS:
            value = op.payload.get(name)
            if value is not None and value not in VALID_RESULTS:
                raise BatchValidationError(
                    f"invalid {name} {value!r} for pick {op.id}", op.id
                )


# ---------------------------------------------------------------------------
# Committer
# ---------------------------------------------------------------------------

class AtomicBatchCommitter:
    def __init__(self, store: BasePickStore, signals: Optional[RefreshSignals] = None):
        self.store = store
        self.signals = signals or RefreshSignals()

    async def execute(
        self,
        operations: List[PendingOperation],
        continue_on_error: bool = False,
        validate_before_commit: bool = True,
    ) -> BatchResult:
        operations = list(operations)

        if validate_before_commit:
            try:
                for op in operations:
                    validate_operation(op)
            except BatchValidationError as exc:
                logger.warning("Batch rejected before commit: %s", exc)
                return self._finish(BatchResult(
                    success=False,
                    failed=operations,
                    error=BatchError(VALIDATION, str(exc), exc.operation_id),
                ))

        succeeded: List[PendingOperation] = []
        failed: List[PendingOperation] = []

        for op in operations:
            try:
                await self._apply(op)
                succeeded.append(op)
            except StoreError as exc:
                logger.error("Failed to %s pick %s: %s", op.type, op.id, exc)
                failed.append(op)
                if not continue_on_error:
                    await self._compensate(succeeded)
                    return self._finish(BatchResult(
                        success=False,
                        failed=operations,
                        error=BatchError(
                            ROLLED_BACK,
                            f"{op.type} failed for pick {op.id} and {len(succeeded)} "
                            f"completed operation(s) were rolled back: {exc}",
                            op.id,
                        ),
                    ))

        if failed:
            return self._finish(BatchResult(
                success=False,
                succeeded=succeeded,
                failed=failed,
                error=BatchError(PARTIAL, f"{len(failed)} of {len(operations)} operations failed"),
            ))

        self.signals.emit_refresh()
        return self._finish(BatchResult(success=True, succeeded=succeeded))

    async def _apply(self, op: PendingOperation) -> None:
        if op.type == "update":
            await self.store.update(op.id, op.payload or {})
        elif op.type == "delete":
            await self.store.delete(op.id)
        else:
            raise StoreError(f"unknown operation type {op.type!r}", op.id)

    async def _compensate(self, applied: List[PendingOperation]) -> None:
        """Undo already-applied updates, newest first.  Failures are logged, not raised."""
        if not applied:
            return
        logger.warning("Rolling back %d completed operation(s)", len(applied))
        for op in reversed(applied):
            if op.type == "delete":
                logger.warning("Cannot roll back delete of pick %s; reload required", op.id)
                continue
            if op.original_snapshot is None:
                logger.warning("No snapshot to roll back pick %s; reload required", op.id)
                continue
            original = {name: getattr(op.original_snapshot, name) for name in RESULT_FIELDS}
            try:
                await self.store.update(op.id, original)
            except StoreError as exc:
                logger.error("Rollback of pick %s failed: %s", op.id, exc)

    @staticmethod
    def _finish(result: BatchResult) -> BatchResult:
        result.summary = create_operation_summary(result)
        if result.success:
            logger.info(result.summary)
        else:
            logger.warning(result.summary)
        return result
