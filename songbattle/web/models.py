"""
Pydantic models for the Song Battle web API.

Defines request/response schemas for the REST endpoints.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class TrackInfo(BaseModel):
    """Catalog metadata of a track."""
    track_id: int
    catalog_id: str
    name: str
    artist: str
    album: str
    year: int
    genres: List[str]
    uri: str
    preview_url: Optional[str] = None
    audio_features: Dict[str, float] = Field(default_factory=dict)


class RankedTrackInfo(BaseModel):
    """A track with its current rating."""
    track: TrackInfo
    elo: int
    wins: int
    losses: int
    draws: int
    total_battles: int
    win_rate: float
    rank: Optional[int] = None


class EloChangeInfo(BaseModel):
    """Rating movement of one track."""
    track_id: int
    old_elo: int
    new_elo: int
    change: int


class MatchPreview(BaseModel):
    """Projected changes for each possible outcome."""
    left: List[EloChangeInfo]
    right: List[EloChangeInfo]
    draw: List[EloChangeInfo]


class MatchResponse(BaseModel):
    """The next duel to present."""
    left: RankedTrackInfo
    right: RankedTrackInfo
    quality: str
    preview: MatchPreview


class DuelRequest(BaseModel):
    """Outcome of a duel submitted by the user."""
    left_id: int
    right_id: int
    outcome: str = Field(description="One of: left, right, draw, skip")


class MatchRecordInfo(BaseModel):
    """An entry of the duel log."""
    match_id: Optional[int]
    left_track_id: int
    right_track_id: int
    winner_track_id: Optional[int] = None
    created_at: str


class DuelResponse(BaseModel):
    """Result of a processed duel."""
    outcome: str
    left: EloChangeInfo
    right: EloChangeInfo
    match: MatchRecordInfo


class RankingResponse(BaseModel):
    """Current ranking, best first."""
    tracks: List[RankedTrackInfo]
    total: int


class HistoryResponse(BaseModel):
    """Recent duels, most recent first."""
    matches: List[MatchRecordInfo]


class StatsResponse(BaseModel):
    """Rating and matchmaking statistics."""
    total_tracks: int
    average_elo: int
    median_elo: float
    std_elo: float
    min_elo: int
    max_elo: int
    total_duels: int
    new_tracks: int
    experienced_tracks: int
    exploration_rate: float
    elo_range: int


class ExportRequest(BaseModel):
    """Playlist export parameters."""
    limit: Optional[int] = Field(default=None, description="Export the top N tracks")
    min_elo: Optional[int] = None
    max_elo: Optional[int] = None
    track_ids: Optional[List[int]] = None
    name: str = ""
    format: str = Field(default="json", description="json or m3u")


class ExportResponse(BaseModel):
    """A written playlist file."""
    name: str
    description: str
    path: str
    track_count: int
    created_at: str


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
