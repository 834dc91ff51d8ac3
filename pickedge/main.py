"""
FastAPI application for Pick Edge
Pick grading, betting edges, duplicate cleanup and batch edits
"""

from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging
import os

from pickedge.models import Base, engine, get_db
from pickedge.auth import ApiPrincipal, require_admin, require_reader
from pickedge.core.engine_config import get_engine_config
from pickedge.schemas import (
    BatchRequest,
    BatchResponse,
    CleanupResponse,
    Pick,
    ScoreEntry,
)
from pickedge.services.batch_commit import AtomicBatchCommitter
from pickedge.services.duplicates import clean_duplicates, find_duplicates
from pickedge.services.edge_engine import EdgeEngine, backfill_edges
from pickedge.services.mutation_store import PendingOperation
from pickedge.services.outcomes import apply_scores
from pickedge.services.performance import performance_summary
from pickedge.services.pick_store import BasePickStore, SQLPickStore, StoreError
from pickedge.services.signals import REFRESH_PICKS, REFRESH_STATS, RefreshSignals

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0"

signals = RefreshSignals()


def _log_refresh(name: str) -> None:
    logger.info("Refresh signal: %s", name)


signals.connect(REFRESH_PICKS, _log_refresh)
signals.connect(REFRESH_STATS, _log_refresh)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting Pick Edge")
    Base.metadata.create_all(bind=engine)
    cfg = get_engine_config()
    logger.info(
        "Engine config: push_threshold=%.2f shrinkage=%.2f tiers=%.1f/%.1f kelly=%.2f",
        cfg.push_threshold, cfg.edge_shrinkage, cfg.moderate_edge_pct,
        cfg.strong_edge_pct, cfg.kelly_fraction,
    )
    yield
    logger.info("Shutting down Pick Edge")


app = FastAPI(
    title="Pick Edge",
    description="Pick resolution and betting-edge engine",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> BasePickStore:
    return SQLPickStore()


def get_edge_engine() -> EdgeEngine:
    return EdgeEngine(get_engine_config())


def _store_failure(exc: StoreError) -> HTTPException:
    logger.error("Store error: %s", exc)
    return HTTPException(status_code=503, detail=f"Pick store unavailable: {exc}")


async def _load_pick(store: BasePickStore, pick_id: str) -> Pick:
    try:
        pick = await store.get(pick_id)
    except StoreError as exc:
        raise _store_failure(exc)
    if pick is None:
        raise HTTPException(status_code=404, detail=f"Pick {pick_id} not found")
    return pick


async def _load_all(store: BasePickStore) -> list:
    try:
        return await store.get_all()
    except StoreError as exc:
        raise _store_failure(exc)


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "app": "Pick Edge",
        "version": APP_VERSION,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint"""
    health = {"status": "healthy", "database": "connected"}
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {str(e)}"
    return health


# ============================================================================
# AUTHENTICATED ENDPOINTS - PICKS
# ============================================================================

@app.get("/api/picks")
async def list_picks(
    week: Optional[int] = Query(default=None, ge=1, le=22),
    result: Optional[str] = Query(default=None),
    principal: ApiPrincipal = Depends(require_reader),
    store: BasePickStore = Depends(get_store),
):
    """All picks, oldest first, optionally filtered by week and result."""
    picks = await _load_all(store)
    if week is not None:
        picks = [p for p in picks if p.week == week]
    if result is not None:
        picks = [p for p in picks if p.result == result]
    return {"total": len(picks), "picks": [p.model_dump(mode="json") for p in picks]}


@app.get("/api/picks/duplicates")
async def get_duplicates(
    principal: ApiPrincipal = Depends(require_reader),
    store: BasePickStore = Depends(get_store),
):
    """Duplicate groups with the original kept in each."""
    groups = find_duplicates(await _load_all(store))
    return {
        "duplicate_count": sum(len(g.duplicates) for g in groups),
        "groups": [
            {
                "key": g.key,
                "original_id": g.original.id,
                "duplicate_ids": [d.id for d in g.duplicates],
            }
            for g in groups
        ],
    }


@app.delete("/api/picks/duplicates", response_model=CleanupResponse)
async def delete_duplicates(
    principal: ApiPrincipal = Depends(require_admin("clean_duplicates")),
    store: BasePickStore = Depends(get_store),
):
    """Delete every duplicate pick, keeping each group's original."""
    report = await clean_duplicates(await _load_all(store), store)
    if report.deleted_count:
        signals.emit_refresh()
    return CleanupResponse(
        deleted_count=report.deleted_count,
        failed_count=report.failed_count,
        errors=report.errors,
    )


@app.get("/api/picks/{pick_id}/edges")
async def get_pick_edges(
    pick_id: str,
    principal: ApiPrincipal = Depends(require_reader),
    store: BasePickStore = Depends(get_store),
    edge_engine: EdgeEngine = Depends(get_edge_engine),
):
    """Per-market edges for one pick, plus both sides of every market."""
    pick = await _load_pick(store, pick_id)
    edges = edge_engine.calculate_pick_edges(pick)
    best = edge_engine.best_bet(pick)
    return {
        "pick_id": pick.id,
        "matchup": pick.matchup,
        "edges": {m.market: m.to_dict() for m in edges.markets()},
        "both_sides": {
            market: {side: e.to_dict() for side, e in sides.items()}
            for market, sides in edge_engine.both_sides_edges(pick).items()
        },
        "best_bet": best.to_dict() if best else None,
    }


@app.put("/api/picks/{pick_id}/scores")
async def enter_scores(
    pick_id: str,
    scores: ScoreEntry,
    principal: ApiPrincipal = Depends(require_admin("enter_scores")),
    store: BasePickStore = Depends(get_store),
):
    """Enter final scores and grade all three markets."""
    pick = await _load_pick(store, pick_id)
    graded = apply_scores(pick, scores.home_score, scores.away_score)
    try:
        stored = await store.update(pick_id, {
            "game_info": graded.game_info,
            "result": graded.result,
            "ats_result": graded.ats_result,
            "ou_result": graded.ou_result,
        })
    except StoreError as exc:
        raise _store_failure(exc)

    signals.emit_refresh()
    logger.info("Scores entered for %s by %s", pick_id, principal.key_id)
    return stored.model_dump(mode="json")


@app.post("/api/picks/batch", response_model=BatchResponse)
async def commit_batch(
    request: BatchRequest,
    principal: ApiPrincipal = Depends(require_admin("commit_batch")),
    store: BasePickStore = Depends(get_store),
):
    """
    Apply queued edits.  Each operation's current row is fetched first and
    used as the rollback snapshot; an unknown id fails validation.
    """
    operations = []
    for op in request.operations:
        try:
            snapshot = await store.get(op.id)
        except StoreError as exc:
            raise _store_failure(exc)
        operations.append(PendingOperation(
            id=op.id,
            type=op.type,
            payload=op.payload,
            original_snapshot=snapshot,
            timestamp=datetime.utcnow().timestamp(),
        ))

    committer = AtomicBatchCommitter(store, signals)
    result = await committer.execute(
        operations,
        continue_on_error=request.continue_on_error,
        validate_before_commit=request.validate_before_commit,
    )
    return BatchResponse(
        success=result.success,
        summary=result.summary,
        succeeded=result.succeeded_ids,
        failed=result.failed_ids,
        error=result.error.message if result.error else None,
    )


@app.post("/api/picks/edges/backfill")
async def run_edge_backfill(
    dry_run: bool = Query(default=True),
    principal: ApiPrincipal = Depends(require_admin("backfill_edges")),
    store: BasePickStore = Depends(get_store),
    edge_engine: EdgeEngine = Depends(get_edge_engine),
):
    """Compute edges for picks whose stored edges are all zero."""
    try:
        counts = await backfill_edges(store, edge_engine, dry_run=dry_run)
    except StoreError as exc:
        raise _store_failure(exc)
    if counts["updated"] and not dry_run:
        signals.emit(REFRESH_PICKS)
    return {"dry_run": dry_run, **counts}


# ============================================================================
# AUTHENTICATED ENDPOINTS - PERFORMANCE
# ============================================================================

@app.get("/api/performance/summary")
async def get_performance_summary(
    principal: ApiPrincipal = Depends(require_reader),
    store: BasePickStore = Depends(get_store),
):
    """Overall record, recent form, efficiency and weekly records."""
    return performance_summary(await _load_all(store))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pickedge.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=False,
    )
