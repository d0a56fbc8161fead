"""
Tests for catalog import.
"""

import json
import shutil
import tempfile
from pathlib import Path

import pytest

from songbattle.catalog.importer import import_tracks, load_catalog_file, parse_track
from songbattle.ranking.models import Track
from songbattle.ranking.storage import RatingStorage
from songbattle.utils.constants import META_LAST_IMPORT


SERVICE_ENTRY = {
    "id": "4uLU6hMCjMI75M1A2tKUQC",
    "name": "Never Gonna Give You Up",
    "artists": [{"name": "Rick Astley"}],
    "album": {"name": "Whenever You Need Somebody", "release_date": "1987-11-12"},
    "uri": "spotify:track:4uLU6hMCjMI75M1A2tKUQC",
    "preview_url": None,
}


class TestParseTrack:
    """Tests for converting catalog entries."""

    def test_service_shape(self):
        track = parse_track(SERVICE_ENTRY)
        assert track.catalog_id == "4uLU6hMCjMI75M1A2tKUQC"
        assert track.artist == "Rick Astley"
        assert track.album == "Whenever You Need Somebody"
        assert track.year == 1987
        assert track.uri == "spotify:track:4uLU6hMCjMI75M1A2tKUQC"
        assert track.track_id is None

    def test_flat_shape(self):
        track = parse_track({
            "id": 7, "name": "Song", "artist": "Band",
            "album": "LP", "year": 2004, "genres": ["pop"],
        })
        assert track.catalog_id == "7"
        assert track.artist == "Band"
        assert track.album == "LP"
        assert track.year == 2004
        assert track.genres == ["pop"]

    def test_multiple_artists(self):
        track = parse_track({"id": "x", "name": "Duet", "artists": [{"name": "A"}, {"name": "B"}]})
        assert track.artist == "A, B"

    def test_missing_fields(self):
        assert parse_track({"name": "No id"}) is None
        assert parse_track({"id": "no-name"}) is None

    def test_artist_object_without_name(self):
        """Artist objects lacking a name are left out of the artist string."""
        track = parse_track({"id": "x", "name": "Song", "artists": [{"id": "a1"}, {"name": "B"}]})
        assert track.artist == "B"

        track = parse_track({"id": "x", "name": "Song", "artists": [{"id": "a1"}]})
        assert track.artist == ""

    def test_single_genre_string(self):
        """A bare genre string is one genre, not a list of letters."""
        track = parse_track({"id": "x", "name": "Song", "genres": "rock"})
        assert track.genres == ["rock"]

    def test_malformed_fields_rejected(self):
        with pytest.raises(ValueError):
            parse_track({"id": "x", "name": "Song", "year": "nineteen"})
        with pytest.raises(ValueError):
            parse_track({"id": "x", "name": "Song", "genres": {"main": "rock"}})
        with pytest.raises(ValueError):
            parse_track({"id": "x", "name": "Song", "audio_features": [0.5]})

    def test_audio_features(self):
        """Numeric features are kept, text fields of the feature object dropped."""
        track = parse_track({
            "id": "x", "name": "Song",
            "audio_features": {
                "danceability": 0.8, "energy": 1, "tempo": 120.5,
                "type": "audio_features", "uri": "spotify:track:x",
            },
        })
        assert track.audio_features == {"danceability": 0.8, "energy": 1.0, "tempo": 120.5}

    def test_no_audio_features(self):
        assert parse_track({"id": "x", "name": "Song"}).audio_features == {}


class TestImport:
    """Tests for loading files and storing tracks."""

    @pytest.fixture
    def temp_dir(self):
        temp_dir = tempfile.mkdtemp()
        yield Path(temp_dir)
        shutil.rmtree(temp_dir)

    def write_json(self, path, data):
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f)
        return path

    def test_load_list(self, temp_dir):
        path = self.write_json(temp_dir / "tracks.json", [SERVICE_ENTRY, {"id": "b", "name": "B"}])
        tracks = load_catalog_file(path)
        assert [t.catalog_id for t in tracks] == ["4uLU6hMCjMI75M1A2tKUQC", "b"]

    def test_load_items_object(self, temp_dir):
        path = self.write_json(temp_dir / "top.json", {"items": [SERVICE_ENTRY]})
        assert len(load_catalog_file(path)) == 1

    def test_load_skips_invalid_entries(self, temp_dir):
        path = self.write_json(temp_dir / "tracks.json", [{"name": "no id"}, "junk", {"id": "ok", "name": "Ok"}])
        tracks = load_catalog_file(path)
        assert [t.catalog_id for t in tracks] == ["ok"]

    def test_load_skips_malformed_entries(self, temp_dir):
        """Malformed entries are skipped instead of aborting the whole import."""
        path = self.write_json(temp_dir / "tracks.json", [
            {"id": "x", "name": "Song", "artists": [{"id": "a1"}]},
            {"id": "y", "name": "Bad year", "year": "soon"},
            {"id": "z", "name": "Bad genres", "genres": 5},
            {"id": "ok", "name": "Ok", "genres": "rock"},
        ])
        tracks = load_catalog_file(path)
        assert [t.catalog_id for t in tracks] == ["x", "ok"]
        assert tracks[1].genres == ["rock"]

    def test_load_rejects_non_list(self, temp_dir):
        path = self.write_json(temp_dir / "bad.json", {"something": "else"})
        with pytest.raises(ValueError):
            load_catalog_file(path)

    def test_load_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_catalog_file(temp_dir / "missing.json")

    def test_import_skips_existing(self, temp_dir):
        """Re-importing never creates a second rating for the same track."""
        storage = RatingStorage(data_dir=str(temp_dir))
        tracks = [Track(catalog_id="a", name="A"), Track(catalog_id="b", name="B")]

        first = import_tracks(storage, tracks, source="first.json")
        assert first.added_count == 2
        assert all(t.track_id is not None for t in first.added)

        second = import_tracks(storage, tracks + [Track(catalog_id="c", name="C")])
        assert second.added_count == 1
        assert second.skipped == ["a", "b"]

        assert storage.count_tracks() == 3
        assert storage.get_meta(META_LAST_IMPORT) == "first.json"

    def test_import_duplicates_within_batch(self, temp_dir):
        storage = RatingStorage(data_dir=str(temp_dir))
        summary = import_tracks(storage, [Track(catalog_id="a", name="A"), Track(catalog_id="a", name="A")])
        assert summary.added_count == 1
        assert summary.skipped_count == 1
