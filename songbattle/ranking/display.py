"""
Display formatting for rankings and duels.

Provides ASCII-formatted leaderboards and duel summaries for terminal output.
"""

from typing import Sequence

from songbattle.ranking.models import (
    EloChange, EloStats, MatchQuality, MatchmakingStats, RankedTrack, Track
)

# Audio features shown as 0-1 bars, in display order
AUDIO_FEATURE_BARS = [
    ("danceability", "Danceability"),
    ("energy", "Energy"),
    ("valence", "Valence"),
    ("acousticness", "Acousticness"),
]


def short_name(name: str, max_len: int = 28) -> str:
    """Truncate long names for display."""
    if len(name) <= max_len:
        return name
    return name[:max_len - 2] + ".."


def format_leaderboard(tracks: Sequence[RankedTrack], title: str = "RANKING") -> str:
    """
    Format the ranking as an ASCII table.

    Args:
        tracks: Tracks in rank order
        title: Heading line

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append(f"=== {title} ===")
    lines.append("")

    if not tracks:
        lines.append("No tracks yet.")
        return "\n".join(lines)

    # Header
    lines.append(f"{'Rank':<6}{'Track':<30}{'Artist':<22}{'Elo':<7}{'W-L-D':<12}{'Win%':<8}")
    lines.append("-" * 85)

    # Rows
    for i, ranked in enumerate(tracks, 1):
        rating = ranked.rating
        wld = f"{rating.wins}-{rating.losses}-{rating.draws}"
        win_pct = f"{rating.win_rate:.1f}%"
        lines.append(
            f"{i:<6}{short_name(ranked.track.name):<30}"
            f"{short_name(ranked.track.artist, 20):<22}"
            f"{rating.elo:<7}{wld:<12}{win_pct:<8}"
        )

    return "\n".join(lines)


def format_match(left: RankedTrack, right: RankedTrack, quality: MatchQuality) -> str:
    """Format a pending duel."""
    lines = []
    lines.append(f"[1] {left.track.display_name}  (Elo {left.elo}, {left.total_battles} duels)")
    lines.append("    vs")
    lines.append(f"[2] {right.track.display_name}  (Elo {right.elo}, {right.total_battles} duels)")
    lines.append(f"Match quality: {quality.value}")
    return "\n".join(lines)


def format_elo_change(change: EloChange, name: str) -> str:
    """Format a single rating movement line."""
    return f"  {name}: {change.old_elo} -> {change.new_elo} ({change.change:+d})"


def format_preview(left_win: Sequence[EloChange], right_win: Sequence[EloChange]) -> str:
    """Format the projected swing for either result of a duel."""
    return (f"  If [1] wins: {left_win[0].change:+d} / {left_win[1].change:+d}   "
            f"If [2] wins: {right_win[0].change:+d} / {right_win[1].change:+d}")


def format_stats(stats: EloStats, matchmaking: MatchmakingStats) -> str:
    """Format collection statistics."""
    lines = []
    lines.append(f"Tracks: {stats.total_tracks} "
                 f"({matchmaking.new_tracks} new, {matchmaking.experienced_tracks} experienced)")
    lines.append(f"Duels: {stats.total_duels}")
    lines.append(f"Elo: avg {stats.average_elo}, median {stats.median_elo:.0f}, "
                 f"std {stats.std_elo:.1f}, range {stats.min_elo}-{stats.max_elo}")
    return "\n".join(lines)


def format_bar(value: float, width: int = 20) -> str:
    """ASCII progress bar for a value between 0 and 1."""
    filled = max(0, min(width, int(value * width)))
    return "#" * filled + "." * (width - filled)


def format_audio_features(track: Track) -> str:
    """Format a track's audio features, or a notice when it has none."""
    features = track.audio_features
    if not features:
        return "No audio features available."

    lines = [f"Audio features: {track.display_name}", ""]
    for key, label in AUDIO_FEATURE_BARS:
        if key in features:
            value = features[key]
            lines.append(f"  {label:<14}{format_bar(value)} {int(value * 100)}%")
    if "tempo" in features:
        lines.append(f"  {'Tempo':<14}{features['tempo']:.0f} BPM")
    return "\n".join(lines)
