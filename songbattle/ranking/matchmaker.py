"""
Next-duel selection.

Each call to next_match() reloads the pool and walks an ordered chain of
selection strategies until one returns a pair:

- exploration: an underplayed track against anyone
- balanced: two experienced tracks with the closest Elo
- random: any two distinct tracks (always succeeds with 2+ tracks)

The chain is exploration -> balanced -> random when exploration is chosen,
balanced -> random otherwise.
"""

import logging
import random
from typing import Callable, List, Optional, Sequence, Tuple

from songbattle.utils.constants import (
    ELO_RANGE,
    EXPLORATION_RATE,
    MIN_BATTLES_FOR_BALANCE,
    UNDERPLAYED_MAJORITY,
    RECENT_OPPONENTS_LIMIT,
    QUALITY_PERFECT, QUALITY_EXCELLENT, QUALITY_GOOD, QUALITY_AVERAGE,
)
from songbattle.ranking.errors import InsufficientDataError
from songbattle.ranking.models import (
    MatchMode, MatchQuality, MatchmakingStats, RankedTrack
)
from songbattle.ranking.storage import RatingStorage

logger = logging.getLogger(__name__)

Pair = Tuple[RankedTrack, RankedTrack]
Strategy = Callable[[List[RankedTrack]], Optional[Pair]]


def is_underplayed(track: RankedTrack) -> bool:
    return track.total_battles < MIN_BATTLES_FOR_BALANCE


def find_best_opponent(
    target: RankedTrack,
    candidates: Sequence[RankedTrack]
) -> Optional[RankedTrack]:
    """
    Closest-Elo opponent for target among candidates.

    Candidates within ELO_RANGE are preferred; if there are none, the globally
    closest candidate is used. Equal differences go to the lowest track id.

    Returns:
        The chosen opponent, or None if candidates hold nothing but target
    """
    others = [c for c in candidates if c.track_id != target.track_id]
    if not others:
        return None

    def distance(candidate: RankedTrack) -> Tuple[int, int]:
        return abs(candidate.elo - target.elo), candidate.track_id

    in_range = [c for c in others if abs(c.elo - target.elo) <= ELO_RANGE]
    return min(in_range or others, key=distance)


def match_quality(left: RankedTrack, right: RankedTrack) -> MatchQuality:
    """Describe a pairing. Has no effect on selection."""
    if is_underplayed(left) or is_underplayed(right):
        return MatchQuality.EXPLORATION

    diff = abs(left.elo - right.elo)
    if diff <= QUALITY_PERFECT:
        return MatchQuality.PERFECT
    elif diff <= QUALITY_EXCELLENT:
        return MatchQuality.EXCELLENT
    elif diff <= QUALITY_GOOD:
        return MatchQuality.GOOD
    elif diff <= QUALITY_AVERAGE:
        return MatchQuality.AVERAGE
    return MatchQuality.UNBALANCED


class Matchmaker:
    """
    Picks the next pair of tracks to duel.

    Usage:
        matchmaker = Matchmaker(storage, rng=random.Random(42))
        left, right = matchmaker.next_match()
    """

    def __init__(
        self,
        storage: RatingStorage,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        avoid_recent: bool = False
    ):
        """
        Initialize the matchmaker.

        Args:
            storage: Store to read ratings and duel history from (never written)
            rng: Random source (a new one seeded with `seed` if None)
            seed: Seed for the default random source
            avoid_recent: Skip each track's last opponents in balanced mode
        """
        self.storage = storage
        self.rng = rng or random.Random(seed)
        self.avoid_recent = avoid_recent

    def next_match(self) -> Pair:
        """
        Select the next duel.

        Returns:
            (left, right) pair of distinct tracks

        Raises:
            InsufficientDataError: If fewer than 2 tracks exist
        """
        tracks = self.storage.list_ranked_tracks()
        if len(tracks) < 2:
            raise InsufficientDataError(len(tracks))

        mode = self.select_mode(tracks)
        for strategy in self.strategy_chain(mode):
            pair = strategy(tracks)
            if pair is not None:
                logger.debug(
                    "%s match via %s: %s vs %s",
                    mode.value, strategy.__name__, pair[0].track_id, pair[1].track_id
                )
                return pair

        # random_match only fails with fewer than 2 tracks, checked above
        raise InsufficientDataError(len(tracks))

    def select_mode(self, tracks: Sequence[RankedTrack]) -> MatchMode:
        """Exploration is forced while underplayed tracks are a strict majority."""
        underplayed = sum(1 for t in tracks if is_underplayed(t))
        if underplayed / len(tracks) > UNDERPLAYED_MAJORITY:
            return MatchMode.EXPLORATION

        if self.rng.random() < EXPLORATION_RATE:
            return MatchMode.EXPLORATION
        return MatchMode.BALANCED

    def strategy_chain(self, mode: MatchMode) -> List[Strategy]:
        """Ordered strategies to try for the given mode."""
        if mode is MatchMode.EXPLORATION:
            return [self.exploration_match, self.balanced_match, self.random_match]
        return [self.balanced_match, self.random_match]

    # =========================================================================
    # Strategies
    # =========================================================================

    def exploration_match(self, tracks: List[RankedTrack]) -> Optional[Pair]:
        """An underplayed track against any other track."""
        underplayed = [t for t in tracks if is_underplayed(t)]
        if not underplayed:
            return None

        left = self.rng.choice(underplayed)
        others = [t for t in tracks if t.track_id != left.track_id]
        if not others:
            return None

        return left, self.rng.choice(others)

    def balanced_match(self, tracks: List[RankedTrack]) -> Optional[Pair]:
        """A random experienced track against its closest-Elo experienced peer."""
        experienced = [t for t in tracks if not is_underplayed(t)]
        if len(experienced) < 2:
            return None

        left = self.rng.choice(experienced)
        if self.avoid_recent:
            right = self.avoid_recent_opponent(left, experienced)
        else:
            right = find_best_opponent(left, experienced)

        if right is None:
            return None
        return left, right

    def random_match(self, tracks: List[RankedTrack]) -> Optional[Pair]:
        """Two distinct tracks picked uniformly."""
        if len(tracks) < 2:
            return None

        left_idx = self.rng.randrange(len(tracks))
        right_idx = self.rng.randrange(len(tracks))
        while right_idx == left_idx:
            right_idx = self.rng.randrange(len(tracks))

        return tracks[left_idx], tracks[right_idx]

    # =========================================================================
    # Recent opponents
    # =========================================================================

    def recent_opponents(self, track_id: int, limit: int) -> List[int]:
        """
        Distinct opponents of a track, most recent first.

        Args:
            track_id: Track to look up
            limit: Maximum number of opponents to return
        """
        opponents: List[int] = []
        if limit <= 0:
            return opponents

        for match in self.storage.list_match_history(track_id=track_id):
            opponent = match.opponent_of(track_id)
            if opponent is None or opponent in opponents:
                continue
            opponents.append(opponent)
            if len(opponents) >= limit:
                break

        return opponents

    def avoid_recent_opponent(
        self,
        target: RankedTrack,
        candidates: Sequence[RankedTrack]
    ) -> Optional[RankedTrack]:
        """
        find_best_opponent, ignoring target's last few opponents.

        Falls back to the unfiltered candidates if the filter leaves none.
        """
        recent = set(self.recent_opponents(target.track_id, RECENT_OPPONENTS_LIMIT))
        filtered = [
            c for c in candidates
            if c.track_id != target.track_id and c.track_id not in recent
        ]
        if not filtered:
            return find_best_opponent(target, candidates)
        return find_best_opponent(target, filtered)

    # =========================================================================
    # Analytics
    # =========================================================================

    def match_quality(self, left: RankedTrack, right: RankedTrack) -> MatchQuality:
        return match_quality(left, right)

    def get_matchmaking_stats(self) -> MatchmakingStats:
        tracks = self.storage.list_ranked_tracks()
        new_tracks = sum(1 for t in tracks if is_underplayed(t))

        return MatchmakingStats(
            total_tracks=len(tracks),
            new_tracks=new_tracks,
            experienced_tracks=len(tracks) - new_tracks,
            exploration_rate=EXPLORATION_RATE,
            elo_range=ELO_RANGE,
        )
