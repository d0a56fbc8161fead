"""
Data model for tracks, ratings and duels.

Track is created once on import and never mutated by the engine. Rating is
the only mutable record and is written exclusively through
EloEngine.process_outcome. MatchRecord is append-only.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from songbattle.utils.constants import (
    INITIAL_ELO,
    OUTCOME_LEFT, OUTCOME_RIGHT, OUTCOME_DRAW, OUTCOME_SKIP,
)
from songbattle.ranking.errors import InvalidOutcomeError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Outcome(Enum):
    """Resolved result of a duel, from the left track's point of view."""
    LEFT = OUTCOME_LEFT
    RIGHT = OUTCOME_RIGHT
    DRAW = OUTCOME_DRAW
    SKIP = OUTCOME_SKIP

    @classmethod
    def parse(cls, value) -> "Outcome":
        """
        Convert an Outcome or its string value into an Outcome.

        Raises:
            InvalidOutcomeError: For anything outside the four outcomes
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidOutcomeError(value)

    @property
    def scores(self) -> Optional[tuple]:
        """Actual (left, right) scores, or None for a skip."""
        return _SCORES[self]


_SCORES = {
    Outcome.LEFT: (1.0, 0.0),
    Outcome.RIGHT: (0.0, 1.0),
    Outcome.DRAW: (0.5, 0.5),
    Outcome.SKIP: None,
}


class MatchMode(Enum):
    """Matchmaking strategy selected for a single next_match call."""
    EXPLORATION = "exploration"
    BALANCED = "balanced"


class MatchQuality(Enum):
    """Descriptive label for a pairing, by absolute Elo difference."""
    EXPLORATION = "Exploration"
    PERFECT = "Perfect"
    EXCELLENT = "Excellent"
    GOOD = "Good"
    AVERAGE = "Average"
    UNBALANCED = "Unbalanced"


@dataclass(frozen=True)
class Track:
    """A catalog entry. Immutable once stored."""
    catalog_id: str
    name: str
    artist: str = ""
    album: str = ""
    year: int = 0
    genres: List[str] = field(default_factory=list)
    uri: str = ""
    preview_url: Optional[str] = None
    audio_features: Dict[str, float] = field(default_factory=dict)
    track_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        if self.artist:
            return f"{self.name} - {self.artist}"
        return self.name


@dataclass
class Rating:
    """Elo statistics for a single track."""
    track_id: int
    elo: int = INITIAL_ELO
    wins: int = 0
    losses: int = 0
    draws: int = 0
    last_seen_at: Optional[datetime] = None

    @property
    def total_battles(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def win_rate(self) -> float:
        """Win percentage between 0 and 100."""
        if self.total_battles == 0:
            return 0.0
        return self.wins / self.total_battles * 100


@dataclass(frozen=True)
class MatchRecord:
    """One processed duel. winner_id is None for draws and skips."""
    left_track_id: int
    right_track_id: int
    winner_track_id: Optional[int] = None
    created_at: datetime = field(default_factory=utc_now)
    match_id: Optional[int] = None

    def involves(self, track_id: int) -> bool:
        return track_id in (self.left_track_id, self.right_track_id)

    def opponent_of(self, track_id: int) -> Optional[int]:
        """Return the other participant, or None if track_id did not play."""
        if self.left_track_id == track_id:
            return self.right_track_id
        if self.right_track_id == track_id:
            return self.left_track_id
        return None


@dataclass(frozen=True)
class RankedTrack:
    """A track joined with its rating. Rebuilt on every query."""
    track: Track
    rating: Rating

    @property
    def track_id(self) -> int:
        return self.rating.track_id

    @property
    def elo(self) -> int:
        return self.rating.elo

    @property
    def total_battles(self) -> int:
        return self.rating.total_battles


@dataclass(frozen=True)
class EloChange:
    """Rating movement of one track in one duel."""
    track_id: int
    old_elo: int
    new_elo: int
    outcome: Outcome

    @property
    def change(self) -> int:
        return self.new_elo - self.old_elo


@dataclass(frozen=True)
class DuelResult:
    """Everything process_outcome changed."""
    outcome: Outcome
    left: EloChange
    right: EloChange
    match: MatchRecord


@dataclass(frozen=True)
class EloStats:
    """Aggregate rating statistics over the whole collection."""
    total_tracks: int = 0
    average_elo: int = 0
    median_elo: float = 0.0
    std_elo: float = 0.0
    min_elo: int = 0
    max_elo: int = 0
    total_duels: int = 0


@dataclass(frozen=True)
class MatchmakingStats:
    """Snapshot of how the pool splits between underplayed and experienced."""
    total_tracks: int
    new_tracks: int
    experienced_tracks: int
    exploration_rate: float
    elo_range: int
