"""
Tests for terminal formatting.
"""

from songbattle.ranking.display import (
    format_audio_features, format_bar, format_elo_change, format_leaderboard,
    format_match, format_preview, format_stats, short_name
)
from songbattle.ranking.models import (
    EloChange, EloStats, MatchQuality, MatchmakingStats, Outcome, RankedTrack,
    Rating, Track
)


def ranked(track_id, name, elo, wins=0, losses=0, draws=0):
    return RankedTrack(
        track=Track(catalog_id=str(track_id), name=name, artist="Band", track_id=track_id),
        rating=Rating(track_id, elo=elo, wins=wins, losses=losses, draws=draws),
    )


class TestDisplay:
    """Tests for display helpers."""

    def test_short_name(self):
        assert short_name("Short") == "Short"
        assert short_name("x" * 40, max_len=10) == "xxxxxxxx.."

    def test_leaderboard(self):
        output = format_leaderboard([
            ranked(1, "Winner", 1300, wins=3, losses=1),
            ranked(2, "Loser", 1100, losses=3),
        ], title="TOP 2")

        assert "=== TOP 2 ===" in output
        assert "Winner" in output
        assert "3-1-0" in output
        assert "75.0%" in output
        assert output.index("Winner") < output.index("Loser")

    def test_empty_leaderboard(self):
        assert "No tracks yet." in format_leaderboard([])

    def test_match(self):
        output = format_match(ranked(1, "Left", 1200), ranked(2, "Right", 1210), MatchQuality.PERFECT)
        assert "[1] Left - Band" in output
        assert "[2] Right - Band" in output
        assert "Perfect" in output

    def test_elo_change(self):
        change = EloChange(1, 1200, 1216, Outcome.LEFT)
        assert format_elo_change(change, "Song") == "  Song: 1200 -> 1216 (+16)"

    def test_preview(self):
        left_win = (EloChange(1, 1200, 1216, Outcome.LEFT), EloChange(2, 1200, 1184, Outcome.LEFT))
        right_win = (EloChange(1, 1200, 1184, Outcome.RIGHT), EloChange(2, 1200, 1216, Outcome.RIGHT))
        output = format_preview(left_win, right_win)
        assert "If [1] wins: +16 / -16" in output
        assert "If [2] wins: -16 / +16" in output

    def test_stats(self):
        output = format_stats(
            EloStats(total_tracks=3, average_elo=1200, median_elo=1200.0, std_elo=81.6,
                     min_elo=1100, max_elo=1300, total_duels=7),
            MatchmakingStats(total_tracks=3, new_tracks=1, experienced_tracks=2,
                             exploration_rate=0.15, elo_range=100),
        )
        assert "Tracks: 3 (1 new, 2 experienced)" in output
        assert "Duels: 7" in output
        assert "range 1100-1300" in output

    def test_bar(self):
        assert format_bar(0.5, width=10) == "#####....."
        assert format_bar(1.5, width=4) == "####"
        assert format_bar(-0.2, width=4) == "...."

    def test_audio_features(self):
        track = Track(
            catalog_id="x", name="Song", artist="Band",
            audio_features={"danceability": 0.8, "energy": 0.25, "tempo": 121.6, "key": 5.0},
        )
        output = format_audio_features(track)

        assert "Audio features: Song - Band" in output
        assert "Danceability" in output and "80%" in output
        assert "Energy" in output and "25%" in output
        assert "122 BPM" in output
        assert "Valence" not in output
        assert output.index("Danceability") < output.index("Energy") < output.index("Tempo")

    def test_no_audio_features(self):
        output = format_audio_features(Track(catalog_id="x", name="Song"))
        assert output == "No audio features available."
