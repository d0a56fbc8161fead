"""
Unit tests for the web application components.

Tests the BattleManager, serialization, and the REST endpoints.
"""

import random
import shutil
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from songbattle.ranking.models import (
    EloChange, MatchRecord, Outcome, RankedTrack, Rating, Track
)
from songbattle.ranking.storage import RatingStorage
from songbattle.web.app import app, get_manager
from songbattle.web.battle_manager import BattleManager
from songbattle.web.serialization import (
    serialize_elo_change, serialize_match_record, serialize_ranked_track
)


def add_track(storage, catalog_id, elo=1200):
    track = storage.create_track(Track(catalog_id=catalog_id, name=f"Song {catalog_id}"))
    storage.update_rating(Rating(track.track_id, elo=elo))
    return track.track_id


@pytest.fixture
def temp_dir():
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def manager(temp_dir):
    """A battle manager over a fresh store."""
    storage = RatingStorage(data_dir=str(temp_dir))
    return BattleManager(storage, rng=random.Random(1), export_dir=str(temp_dir / "exports"))


@pytest.fixture
def client(manager):
    """Test client wired to the temporary manager."""
    app.dependency_overrides[get_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSerialization:
    """Tests for serialization utilities."""

    def test_serialize_ranked_track(self):
        ranked = RankedTrack(
            track=Track(catalog_id="abc", name="Song", genres=["rock"], track_id=3),
            rating=Rating(3, elo=1250, wins=2, losses=1),
        )
        result = serialize_ranked_track(ranked, rank=1)
        assert result["track"]["track_id"] == 3
        assert result["track"]["genres"] == ["rock"]
        assert result["elo"] == 1250
        assert result["total_battles"] == 3
        assert result["win_rate"] == 66.7
        assert result["rank"] == 1

    def test_serialize_audio_features(self):
        ranked = RankedTrack(
            track=Track(catalog_id="abc", name="Song", track_id=3,
                        audio_features={"energy": 0.9, "tempo": 140.0}),
            rating=Rating(3),
        )
        result = serialize_ranked_track(ranked)
        assert result["track"]["audio_features"] == {"energy": 0.9, "tempo": 140.0}

    def test_serialize_elo_change(self):
        result = serialize_elo_change(EloChange(1, 1200, 1184, Outcome.RIGHT))
        assert result == {"track_id": 1, "old_elo": 1200, "new_elo": 1184, "change": -16}

    def test_serialize_match_record(self):
        record = MatchRecord(1, 2, winner_track_id=None, match_id=5)
        result = serialize_match_record(record)
        assert result["match_id"] == 5
        assert result["winner_track_id"] is None
        assert isinstance(result["created_at"], str)


class TestBattleManager:
    """Tests for BattleManager."""

    def test_next_match_payload(self, manager):
        add_track(manager.storage, "a")
        add_track(manager.storage, "b")

        match = manager.next_match()
        assert match["left"]["track"]["track_id"] != match["right"]["track"]["track_id"]
        assert match["quality"] == "Exploration"
        assert set(match["preview"]) == {"left", "right", "draw"}
        assert match["preview"]["left"][0]["change"] == 16

    def test_submit(self, manager):
        a = add_track(manager.storage, "a")
        b = add_track(manager.storage, "b")

        result = manager.submit(a, b, "left")
        assert result["outcome"] == "left"
        assert result["left"]["new_elo"] == 1216
        assert result["match"]["winner_track_id"] == a

    def test_preview_does_not_write(self, manager):
        a = add_track(manager.storage, "a")
        b = add_track(manager.storage, "b")

        changes = manager.preview(a, b, "right")
        assert [c["change"] for c in changes] == [-16, 16]
        assert manager.storage.count_duels() == 0

    def test_ranking(self, manager):
        add_track(manager.storage, "a", elo=1100)
        add_track(manager.storage, "b", elo=1300)

        ranking = manager.ranking()
        assert ranking["total"] == 2
        assert [t["rank"] for t in ranking["tracks"]] == [1, 2]
        assert ranking["tracks"][0]["elo"] == 1300

    def test_export_requires_selection(self, manager):
        add_track(manager.storage, "a")
        with pytest.raises(ValueError):
            manager.export()
        with pytest.raises(ValueError):
            manager.export(min_elo=1000)


class TestAPI:
    """Tests for the REST endpoints."""

    def test_index(self, client):
        assert client.get("/").status_code == 200

    def test_match_needs_two_tracks(self, client, manager):
        add_track(manager.storage, "a")
        response = client.get("/api/match")
        assert response.status_code == 409

    def test_match(self, client, manager):
        add_track(manager.storage, "a")
        add_track(manager.storage, "b")
        response = client.get("/api/match")
        assert response.status_code == 200
        assert "preview" in response.json()

    def test_submit_duel(self, client, manager):
        a = add_track(manager.storage, "a")
        b = add_track(manager.storage, "b")

        response = client.post("/api/duels", json={"left_id": a, "right_id": b, "outcome": "draw"})
        assert response.status_code == 200
        data = response.json()
        assert data["left"]["change"] == 0
        assert data["match"]["winner_track_id"] is None

    def test_submit_invalid_outcome(self, client, manager):
        a = add_track(manager.storage, "a")
        b = add_track(manager.storage, "b")

        response = client.post("/api/duels", json={"left_id": a, "right_id": b, "outcome": "tie"})
        assert response.status_code == 400
        assert manager.storage.count_duels() == 0

    def test_submit_unknown_track(self, client, manager):
        a = add_track(manager.storage, "a")

        response = client.post("/api/duels", json={"left_id": a, "right_id": 999, "outcome": "left"})
        assert response.status_code == 404
        assert manager.storage.count_duels() == 0

    def test_submit_self_duel(self, client, manager):
        a = add_track(manager.storage, "a")
        response = client.post("/api/duels", json={"left_id": a, "right_id": a, "outcome": "left"})
        assert response.status_code == 400

    def test_preview_endpoint(self, client, manager):
        a = add_track(manager.storage, "a")
        b = add_track(manager.storage, "b")
        response = client.post("/api/duels/preview", json={"left_id": a, "right_id": b, "outcome": "left"})
        assert response.status_code == 200
        assert [c["change"] for c in response.json()] == [16, -16]

    def test_ranking_and_track(self, client, manager):
        a = add_track(manager.storage, "a", elo=1250)
        add_track(manager.storage, "b")

        ranking = client.get("/api/ranking", params={"limit": 1}).json()
        assert len(ranking["tracks"]) == 1
        assert ranking["total"] == 2

        assert client.get(f"/api/tracks/{a}").json()["elo"] == 1250
        assert client.get("/api/tracks/999").status_code == 404

    def test_track_audio_features(self, client, manager):
        track = manager.storage.create_track(
            Track(catalog_id="abc", name="Song", audio_features={"danceability": 0.6})
        )
        data = client.get(f"/api/tracks/{track.track_id}").json()
        assert data["track"]["audio_features"] == {"danceability": 0.6}

    def test_history(self, client, manager):
        a = add_track(manager.storage, "a")
        b = add_track(manager.storage, "b")
        manager.submit(a, b, "skip")
        manager.submit(a, b, "right")

        matches = client.get("/api/history").json()["matches"]
        assert len(matches) == 2
        assert matches[0]["winner_track_id"] == b

    def test_stats(self, client, manager):
        add_track(manager.storage, "a")
        add_track(manager.storage, "b")

        stats = client.get("/api/stats").json()
        assert stats["total_tracks"] == 2
        assert stats["average_elo"] == 1200
        assert stats["new_tracks"] == 2

    def test_export(self, client, manager, temp_dir):
        add_track(manager.storage, "a")
        response = client.post("/api/export", json={"limit": 5, "format": "m3u"})
        assert response.status_code == 200
        data = response.json()
        assert data["track_count"] == 1
        assert Path(data["path"]).exists()

    def test_export_invalid(self, client, manager):
        add_track(manager.storage, "a")
        response = client.post("/api/export", json={"limit": 0})
        assert response.status_code == 400
