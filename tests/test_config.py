"""
Tests for runtime configuration.
"""

import pytest

import run_web
from songbattle.utils.config import SongBattleConfig


class TestSongBattleConfig:
    """Tests for SongBattleConfig."""

    def test_defaults(self):
        config = SongBattleConfig.from_env({})
        assert config.data_dir == "data"
        assert config.seed is None
        assert config.avoid_recent is False
        assert config.export_dir.endswith("exports")

    def test_from_env(self):
        config = SongBattleConfig.from_env({
            "SONGBATTLE_DATA_DIR": "/tmp/music",
            "SONGBATTLE_SEED": "42",
            "SONGBATTLE_AVOID_RECENT": "yes",
            "SONGBATTLE_EXPORT_DIR": "/tmp/out",
        })
        assert config.data_dir == "/tmp/music"
        assert config.seed == 42
        assert config.avoid_recent is True
        assert config.export_dir == "/tmp/out"

    def test_invalid_seed(self):
        with pytest.raises(ValueError):
            SongBattleConfig.from_env({"SONGBATTLE_SEED": "abc"})

    def test_export_dir_follows_data_dir(self):
        config = SongBattleConfig(data_dir="library")
        assert config.export_dir.replace("\\", "/") == "library/exports"


class TestWebLauncher:
    """Tests for handing run_web.py options to the app."""

    def test_flags_reach_config(self):
        args = run_web.parse_args([
            "--data-dir", "library", "--seed", "3",
            "--avoid-recent", "--export-dir", "/tmp/out",
        ])
        environ = {}
        run_web.export_settings(args, environ)

        config = SongBattleConfig.from_env(environ)
        assert config.data_dir == "library"
        assert config.seed == 3
        assert config.avoid_recent is True
        assert config.export_dir == "/tmp/out"

    def test_unset_flags_leave_environment_alone(self):
        environ = {"SONGBATTLE_EXPORT_DIR": "/srv/playlists"}
        run_web.export_settings(run_web.parse_args([]), environ)

        assert environ == {"SONGBATTLE_EXPORT_DIR": "/srv/playlists"}
        config = SongBattleConfig.from_env(environ)
        assert config.avoid_recent is False
        assert config.export_dir == "/srv/playlists"
