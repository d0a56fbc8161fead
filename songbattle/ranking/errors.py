"""
Exceptions raised by the rating and matchmaking engine.

Storage failures (sqlite3.Error) are not wrapped and reach the caller as-is.
"""

from songbattle.utils.constants import OUTCOME_NAMES


class SongBattleError(Exception):
    """Base class for Song Battle errors."""


class NotFoundError(SongBattleError, LookupError):
    """A referenced track has no rating record."""

    def __init__(self, track_id):
        self.track_id = track_id
        super().__init__(f"No rating found for track {track_id}")


class InvalidOutcomeError(SongBattleError, ValueError):
    """A duel outcome outside left/right/draw/skip."""

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__(
            f"Invalid duel outcome {outcome!r}: expected one of {', '.join(OUTCOME_NAMES)}"
        )


class InsufficientDataError(SongBattleError):
    """Fewer than two tracks are available for a duel."""

    def __init__(self, available: int):
        self.available = available
        super().__init__(f"Need at least 2 tracks for a duel, found {available}")
