"""
Row storage for picks.

Services depend on :class:`BasePickStore`, never on SQLAlchemy directly, so
the batch committer and duplicate cleanup can run against an in-memory store
in tests and scripts.

Every method is ``async`` and is awaited one call at a time.  Failures are
raised as :class:`StoreError`; a missing row on ``update``/``delete`` is a
failure too.  The store makes no transactional promises across calls.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pickedge.models import PickRecord, SessionLocal, to_column_values
from pickedge.schemas import Pick

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A store call failed.  ``pick_id`` names the row when there is one."""

    def __init__(self, message: str, pick_id: Optional[str] = None):
        super().__init__(message)
        self.pick_id = pick_id


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class BasePickStore(ABC):
    """Async row-store contract."""

    @abstractmethod
    async def get_all(self) -> List[Pick]:
        """All picks, oldest first."""

    @abstractmethod
    async def get(self, pick_id: str) -> Optional[Pick]:
        """One pick, or None if it does not exist."""

    @abstractmethod
    async def create(self, pick: Pick) -> Pick:
        """Insert ``pick`` and return it as stored."""

    @abstractmethod
    async def update(self, pick_id: str, fields: Dict[str, Any]) -> Pick:
        """Overwrite ``fields`` on one pick and return the updated pick."""

    @abstractmethod
    async def delete(self, pick_id: str) -> None:
        """Remove one pick."""


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SQLPickStore(BasePickStore):
    """:class:`BasePickStore` over the ``picks`` table."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def get_all(self) -> List[Pick]:
        db = self._session_factory()
        try:
            rows = db.query(PickRecord).order_by(PickRecord.created_at.asc()).all()
            return [row.to_schema() for row in rows]
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to load picks: {exc}") from exc
        finally:
            db.close()

    async def get(self, pick_id: str) -> Optional[Pick]:
        db = self._session_factory()
        try:
            row = db.get(PickRecord, pick_id)
            return row.to_schema() if row else None
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to load pick {pick_id}: {exc}", pick_id) from exc
        finally:
            db.close()

    async def create(self, pick: Pick) -> Pick:
        db = self._session_factory()
        try:
            row = PickRecord.from_schema(pick)
            db.add(row)
            db.commit()
            db.refresh(row)
            return row.to_schema()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreError(f"failed to create pick {pick.id}: {exc}", pick.id) from exc
        finally:
            db.close()

    async def update(self, pick_id: str, fields: Dict[str, Any]) -> Pick:
        db = self._session_factory()
        try:
            row = db.get(PickRecord, pick_id)
            if row is None:
                raise StoreError(f"pick {pick_id} not found", pick_id)
            # Validate the merged pick before touching the row; a bad value
            # must never reach the table.
            try:
                merged = Pick.model_validate({**row.to_schema().model_dump(), **fields})
            except ValueError as exc:
                raise StoreError(f"invalid update for pick {pick_id}: {exc}", pick_id) from exc
            row.apply(to_column_values(merged.model_dump(include=set(fields))))
            db.commit()
            db.refresh(row)
            return row.to_schema()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreError(f"failed to update pick {pick_id}: {exc}", pick_id) from exc
        finally:
            db.close()

    async def delete(self, pick_id: str) -> None:
        db = self._session_factory()
        try:
            row = db.get(PickRecord, pick_id)
            if row is None:
                raise StoreError(f"pick {pick_id} not found", pick_id)
            db.delete(row)
            db.commit()
            logger.info("Deleted pick %s", pick_id)
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreError(f"failed to delete pick {pick_id}: {exc}", pick_id) from exc
        finally:
            db.close()


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryPickStore(BasePickStore):
    """Dict-backed store for tests and dry runs."""

    def __init__(self, picks: Optional[List[Pick]] = None):
        self._rows: Dict[str, Pick] = {p.id: p for p in (picks or [])}

    async def get_all(self) -> List[Pick]:
        return sorted(self._rows.values(), key=lambda p: p.created_at)

    async def get(self, pick_id: str) -> Optional[Pick]:
        return self._rows.get(pick_id)

    async def create(self, pick: Pick) -> Pick:
        if pick.id in self._rows:
            raise StoreError(f"pick {pick.id} already exists", pick.id)
        self._rows[pick.id] = pick
        return pick

    async def update(self, pick_id: str, fields: Dict[str, Any]) -> Pick:
        current = self._rows.get(pick_id)
        if current is None:
            raise StoreError(f"pick {pick_id} not found", pick_id)
        try:
            updated = Pick.model_validate({**current.model_dump(), **fields})
        except ValueError as exc:
            raise StoreError(f"invalid update for pick {pick_id}: {exc}", pick_id) from exc
        self._rows[pick_id] = updated
        return updated

    async def delete(self, pick_id: str) -> None:
        if self._rows.pop(pick_id, None) is None:
            raise StoreError(f"pick {pick_id} not found", pick_id)
