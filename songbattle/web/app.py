"""
FastAPI application for the Song Battle web interface.
"""
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from songbattle.utils.config import SongBattleConfig
from songbattle.utils.constants import APP_NAME, APP_VERSION
from songbattle.ranking.errors import (
    InsufficientDataError, InvalidOutcomeError, NotFoundError
)
from songbattle.web.battle_manager import BattleManager
from songbattle.web.models import (
    DuelRequest, DuelResponse, EloChangeInfo, ErrorResponse, ExportRequest,
    ExportResponse, HistoryResponse, MatchResponse, RankedTrackInfo, RankingResponse,
    StatsResponse,
)

# Global instance (initialized on startup)
battle_manager: Optional[BattleManager] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the battle manager from the environment on startup."""
    global battle_manager

    if battle_manager is None:
        battle_manager = BattleManager.from_config(SongBattleConfig.from_env())
    yield


# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="Rank a music collection through pairwise duels",
    version=APP_VERSION,
    lifespan=lifespan,
)


def get_manager() -> BattleManager:
    if battle_manager is None:
        raise HTTPException(status_code=500, detail="Battle manager not initialized")
    return battle_manager


# =============================================================================
# Error mapping
# =============================================================================

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidOutcomeError)
async def invalid_outcome_handler(request: Request, exc: InvalidOutcomeError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(InsufficientDataError)
async def insufficient_data_handler(request: Request, exc: InsufficientDataError):
    return JSONResponse(
        status_code=409,
        content={"detail": f"{exc}. Import more tracks and try again."}
    )


# =============================================================================
# Duel Endpoints
# =============================================================================

@app.get(
    "/api/match",
    response_model=MatchResponse,
    responses={409: {"model": ErrorResponse}}
)
def get_next_match(manager: BattleManager = Depends(get_manager)):
    """Get the next pair of tracks to compare."""
    return manager.next_match()


@app.post(
    "/api/duels",
    response_model=DuelResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
def submit_duel(duel: DuelRequest, manager: BattleManager = Depends(get_manager)):
    """Submit the outcome of a duel."""
    try:
        return manager.submit(duel.left_id, duel.right_id, duel.outcome)
    except InvalidOutcomeError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/duels/preview", response_model=List[EloChangeInfo])
def preview_duel(duel: DuelRequest, manager: BattleManager = Depends(get_manager)):
    """Show what a duel outcome would change without recording it."""
    try:
        return manager.preview(duel.left_id, duel.right_id, duel.outcome)
    except InvalidOutcomeError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# Ranking Endpoints
# =============================================================================

@app.get("/api/ranking", response_model=RankingResponse)
def get_ranking(
    limit: Optional[int] = Query(default=None, ge=1),
    manager: BattleManager = Depends(get_manager)
):
    """Current ranking, best first."""
    return manager.ranking(limit)


@app.get(
    "/api/tracks/{track_id}",
    response_model=RankedTrackInfo,
    responses={404: {"model": ErrorResponse}}
)
def get_track(track_id: int, manager: BattleManager = Depends(get_manager)):
    """A single track with its rating."""
    track = manager.get_track(track_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return track


@app.get("/api/history", response_model=HistoryResponse)
def get_history(
    limit: int = Query(default=50, ge=1, le=500),
    track_id: Optional[int] = None,
    manager: BattleManager = Depends(get_manager)
):
    """Recent duels, most recent first."""
    return manager.history(limit=limit, track_id=track_id)


@app.get("/api/stats", response_model=StatsResponse)
def get_stats(manager: BattleManager = Depends(get_manager)):
    """Aggregate rating and matchmaking statistics."""
    return manager.stats()


# =============================================================================
# Export Endpoints
# =============================================================================

@app.post("/api/export", response_model=ExportResponse)
def export_playlist(request: ExportRequest, manager: BattleManager = Depends(get_manager)):
    """Write the ranking (or part of it) as a playlist file."""
    try:
        return manager.export(
            limit=request.limit,
            min_elo=request.min_elo,
            max_elo=request.max_elo,
            track_ids=request.track_ids,
            name=request.name,
            fmt=request.format,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/")
def index():
    """API landing page."""
    return {"message": f"{APP_NAME} API. Use /docs for API documentation."}
