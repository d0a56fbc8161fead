"""
Elo rating engine for track duels.

Implements the standard Elo rating system with a tiered K-factor:
- Expected score: E = 1 / (1 + 10^((R_opp - R_self) / 400))
- Rating update: R_new = round(R_old + K * (S - E))

round() is Python's built-in: nearest integer, ties to even.
"""

import logging
import threading
from typing import List, Optional, Tuple

import numpy as np

from songbattle.utils.constants import (
    ELO_SCALE,
    MAX_K, MID_K, MIN_K,
    NEW_TRACK_THRESHOLD, EXPERIENCED_TRACK_THRESHOLD,
)
from songbattle.ranking.errors import NotFoundError
from songbattle.ranking.models import (
    DuelResult, EloChange, EloStats, MatchRecord, Outcome, RankedTrack, Rating,
    utc_now,
)
from songbattle.ranking.storage import RatingStorage

logger = logging.getLogger(__name__)


def expected_score(rating_a: int, rating_b: int) -> float:
    """
    Calculate expected score for track A against track B.

    Args:
        rating_a: Rating of track A
        rating_b: Rating of track B

    Returns:
        Expected score strictly between 0 and 1
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / ELO_SCALE))


def k_factor(total_battles: int) -> int:
    """
    K-factor for a track given its battles before the duel.

    - fewer than 10 battles: 32
    - 10 to 29 battles: 24
    - 30 or more: 16
    """
    if total_battles < NEW_TRACK_THRESHOLD:
        return MAX_K
    elif total_battles < EXPERIENCED_TRACK_THRESHOLD:
        return MID_K
    return MIN_K


def new_rating(old_rating: int, actual_score: float, expected: float, k: int) -> int:
    """Apply one Elo update. Ties round to the even integer."""
    return round(old_rating + k * (actual_score - expected))


def compute_changes(
    left: Rating,
    right: Rating,
    outcome: Outcome
) -> Tuple[EloChange, EloChange]:
    """
    Rating changes for both sides of a duel.

    Both sides use the pre-duel ratings and their own pre-duel K-factor.
    A skip yields zero changes.
    """
    scores = outcome.scores
    if scores is None:
        return (
            EloChange(left.track_id, left.elo, left.elo, outcome),
            EloChange(right.track_id, right.elo, right.elo, outcome),
        )

    left_score, right_score = scores
    left_expected = expected_score(left.elo, right.elo)
    right_expected = expected_score(right.elo, left.elo)

    new_left = new_rating(left.elo, left_score, left_expected, k_factor(left.total_battles))
    new_right = new_rating(right.elo, right_score, right_expected, k_factor(right.total_battles))

    return (
        EloChange(left.track_id, left.elo, new_left, outcome),
        EloChange(right.track_id, right.elo, new_right, outcome),
    )


class EloEngine:
    """
    Turns duel outcomes into persisted rating updates.

    The engine is the only writer of Rating rows. Writes go through
    RatingStorage.apply_duel (one transaction) and are additionally
    serialized by an in-process lock.
    """

    def __init__(self, storage: RatingStorage):
        """
        Initialize the engine.

        Args:
            storage: Store holding tracks, ratings and the duel log
        """
        self.storage = storage
        self._lock = threading.Lock()

    def _load_pair(self, left_id: int, right_id: int) -> Tuple[Rating, Rating]:
        if left_id == right_id:
            raise ValueError(f"Track {left_id} cannot battle itself")

        left = self.storage.get_rating(left_id)
        if left is None:
            raise NotFoundError(left_id)
        right = self.storage.get_rating(right_id)
        if right is None:
            raise NotFoundError(right_id)
        return left, right

    def process_outcome(self, left_id: int, right_id: int, outcome) -> DuelResult:
        """
        Apply a duel outcome and persist it.

        Args:
            left_id: Track shown on the left
            right_id: Track shown on the right
            outcome: Outcome or one of 'left', 'right', 'draw', 'skip'

        Returns:
            DuelResult with both rating changes and the stored match record

        Raises:
            InvalidOutcomeError: Unknown outcome
            NotFoundError: Either track has no rating
            ValueError: left_id == right_id
        """
        outcome = Outcome.parse(outcome)

        with self._lock:
            left, right = self._load_pair(left_id, right_id)
            left_change, right_change = compute_changes(left, right, outcome)

            if outcome is Outcome.SKIP:
                match = self.storage.append_match_record(
                    MatchRecord(left_track_id=left_id, right_track_id=right_id)
                )
                logger.debug("Skipped duel %s vs %s", left_id, right_id)
                return DuelResult(outcome, left_change, right_change, match)

            now = utc_now()
            left.elo, right.elo = left_change.new_elo, right_change.new_elo
            left.last_seen_at = right.last_seen_at = now

            winner_id = None
            if outcome is Outcome.LEFT:
                left.wins += 1
                right.losses += 1
                winner_id = left_id
            elif outcome is Outcome.RIGHT:
                left.losses += 1
                right.wins += 1
                winner_id = right_id
            else:
                left.draws += 1
                right.draws += 1

            match = self.storage.apply_duel(
                [left, right],
                MatchRecord(
                    left_track_id=left_id,
                    right_track_id=right_id,
                    winner_track_id=winner_id,
                    created_at=now,
                )
            )

        logger.debug(
            "Duel %s vs %s (%s): %+d / %+d",
            left_id, right_id, outcome.value, left_change.change, right_change.change
        )
        return DuelResult(outcome, left_change, right_change, match)

    def simulate_outcome(self, left_id: int, right_id: int, outcome) -> Tuple[EloChange, EloChange]:
        """
        Compute the changes process_outcome would apply, without writing.

        Raises the same errors as process_outcome.
        """
        outcome = Outcome.parse(outcome)
        left, right = self._load_pair(left_id, right_id)
        return compute_changes(left, right, outcome)

    def current_ranking(self, limit: Optional[int] = None) -> List[RankedTrack]:
        """Tracks sorted by Elo descending, ties by track id."""
        return self.storage.list_ranked_tracks(limit)

    def get_stats(self) -> EloStats:
        """Aggregate statistics over all rated tracks."""
        tracks = self.storage.list_ranked_tracks()
        if not tracks:
            return EloStats()

        elos = np.array([t.elo for t in tracks], dtype=np.int64)

        return EloStats(
            total_tracks=len(tracks),
            average_elo=int(elos.sum()) // len(tracks),
            median_elo=float(np.median(elos)),
            std_elo=float(np.std(elos)),
            min_elo=int(elos.min()),
            max_elo=int(elos.max()),
            total_duels=self.storage.count_duels(),
        )
