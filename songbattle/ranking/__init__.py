"""
Ranking module for rating a music collection through pairwise duels.

Provides:
- EloEngine: Elo updates from duel outcomes
- Matchmaker: Selection of the next duel
- RatingStorage: SQLite persistence of tracks, ratings and duels
"""

from songbattle.ranking.errors import (
    SongBattleError, NotFoundError, InvalidOutcomeError, InsufficientDataError
)
from songbattle.ranking.models import (
    Track, Rating, MatchRecord, RankedTrack, Outcome, MatchMode, MatchQuality,
    EloChange, DuelResult, EloStats, MatchmakingStats,
)
from songbattle.ranking.storage import RatingStorage
from songbattle.ranking.elo import EloEngine, expected_score, k_factor, new_rating
from songbattle.ranking.matchmaker import Matchmaker, find_best_opponent, match_quality
from songbattle.ranking.display import format_leaderboard, format_match

__all__ = [
    'SongBattleError',
    'NotFoundError',
    'InvalidOutcomeError',
    'InsufficientDataError',
    'Track',
    'Rating',
    'MatchRecord',
    'RankedTrack',
    'Outcome',
    'MatchMode',
    'MatchQuality',
    'EloChange',
    'DuelResult',
    'EloStats',
    'MatchmakingStats',
    'RatingStorage',
    'EloEngine',
    'expected_score',
    'k_factor',
    'new_rating',
    'Matchmaker',
    'find_best_opponent',
    'match_quality',
    'format_leaderboard',
    'format_match',
]
