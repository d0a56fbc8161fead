"""
Battle manager for the web interface.

Wires the store, rating engine, matchmaker and exporter together and turns
their results into API payloads.
"""
import random
from typing import Any, Dict, List, Optional

from songbattle.utils.config import SongBattleConfig
from songbattle.ranking.elo import EloEngine
from songbattle.ranking.matchmaker import Matchmaker
from songbattle.ranking.models import Outcome
from songbattle.ranking.storage import RatingStorage
from songbattle.export.playlist import PlaylistExporter
from songbattle.web.serialization import (
    serialize_ranked_track, serialize_elo_change, serialize_match_record,
    serialize_playlist,
)


class BattleManager:
    """
    Serves duels to the web front end.

    Holds no per-request state: every call reads the store afresh.
    """

    def __init__(
        self,
        storage: RatingStorage,
        rng: Optional[random.Random] = None,
        avoid_recent: bool = False,
        export_dir: str = "data/exports"
    ):
        """
        Initialize battle manager.

        Args:
            storage: Store holding the collection
            rng: Random source for the matchmaker
            avoid_recent: Enable recent-opponent avoidance in balanced mode
            export_dir: Directory for playlist exports
        """
        self.storage = storage
        self.engine = EloEngine(storage)
        self.matchmaker = Matchmaker(storage, rng=rng, avoid_recent=avoid_recent)
        self.exporter = PlaylistExporter(storage, output_dir=export_dir)

    @classmethod
    def from_config(cls, config: SongBattleConfig) -> "BattleManager":
        return cls(
            RatingStorage(config.data_dir),
            rng=random.Random(config.seed),
            avoid_recent=config.avoid_recent,
            export_dir=config.export_dir,
        )

    def next_match(self) -> Dict[str, Any]:
        """Pick the next duel, with its quality and projected changes."""
        left, right = self.matchmaker.next_match()
        preview = {
            outcome.value: [
                serialize_elo_change(c)
                for c in self.engine.simulate_outcome(left.track_id, right.track_id, outcome)
            ]
            for outcome in (Outcome.LEFT, Outcome.RIGHT, Outcome.DRAW)
        }
        return {
            "left": serialize_ranked_track(left),
            "right": serialize_ranked_track(right),
            "quality": self.matchmaker.match_quality(left, right).value,
            "preview": preview,
        }

    def submit(self, left_id: int, right_id: int, outcome: str) -> Dict[str, Any]:
        """Apply a duel outcome."""
        result = self.engine.process_outcome(left_id, right_id, outcome)
        return {
            "outcome": result.outcome.value,
            "left": serialize_elo_change(result.left),
            "right": serialize_elo_change(result.right),
            "match": serialize_match_record(result.match),
        }

    def preview(self, left_id: int, right_id: int, outcome: str) -> List[Dict[str, Any]]:
        """Projected changes of an outcome, nothing is written."""
        return [
            serialize_elo_change(c)
            for c in self.engine.simulate_outcome(left_id, right_id, outcome)
        ]

    def ranking(self, limit: Optional[int] = None) -> Dict[str, Any]:
        tracks = self.engine.current_ranking(limit)
        return {
            "tracks": [serialize_ranked_track(t, rank=i) for i, t in enumerate(tracks, 1)],
            "total": self.storage.count_tracks(),
        }

    def get_track(self, track_id: int) -> Optional[Dict[str, Any]]:
        ranked = self.storage.get_ranked_track(track_id)
        return serialize_ranked_track(ranked) if ranked else None

    def history(self, limit: int = 50, track_id: Optional[int] = None) -> Dict[str, Any]:
        matches = self.storage.list_match_history(limit=limit, track_id=track_id)
        return {"matches": [serialize_match_record(m) for m in matches]}

    def stats(self) -> Dict[str, Any]:
        elo_stats = self.engine.get_stats()
        mm_stats = self.matchmaker.get_matchmaking_stats()
        return {
            "total_tracks": elo_stats.total_tracks,
            "average_elo": elo_stats.average_elo,
            "median_elo": elo_stats.median_elo,
            "std_elo": elo_stats.std_elo,
            "min_elo": elo_stats.min_elo,
            "max_elo": elo_stats.max_elo,
            "total_duels": elo_stats.total_duels,
            "new_tracks": mm_stats.new_tracks,
            "experienced_tracks": mm_stats.experienced_tracks,
            "exploration_rate": mm_stats.exploration_rate,
            "elo_range": mm_stats.elo_range,
        }

    def export(
        self,
        limit: Optional[int] = None,
        min_elo: Optional[int] = None,
        max_elo: Optional[int] = None,
        track_ids: Optional[List[int]] = None,
        name: str = "",
        fmt: str = "json"
    ) -> Dict[str, Any]:
        """
        Export a playlist.

        Exactly one selection applies, checked in this order: explicit
        track_ids, an Elo range, then the top `limit` tracks.

        Raises:
            ValueError: If no selection is given or the export is invalid
        """
        if track_ids:
            info = self.exporter.export_custom(track_ids, name=name, fmt=fmt)
        elif min_elo is not None or max_elo is not None:
            if min_elo is None or max_elo is None:
                raise ValueError("Both min_elo and max_elo are required for a range export")
            info = self.exporter.export_by_elo_range(min_elo, max_elo, name=name, fmt=fmt)
        elif limit is not None:
            info = self.exporter.export_top_tracks(limit, name=name, fmt=fmt)
        else:
            raise ValueError("Specify track_ids, an Elo range or a limit")
        return serialize_playlist(info)
