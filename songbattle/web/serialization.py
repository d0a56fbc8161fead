"""
Conversion of engine objects into JSON-ready dicts for the web API.
"""
from typing import Any, Dict, Optional

from songbattle.ranking.models import EloChange, MatchRecord, RankedTrack, Track
from songbattle.export.playlist import PlaylistInfo


def serialize_track(track: Track) -> Dict[str, Any]:
    return {
        "track_id": track.track_id,
        "catalog_id": track.catalog_id,
        "name": track.name,
        "artist": track.artist,
        "album": track.album,
        "year": track.year,
        "genres": list(track.genres),
        "uri": track.uri,
        "preview_url": track.preview_url,
        "audio_features": dict(track.audio_features),
    }


def serialize_ranked_track(ranked: RankedTrack, rank: Optional[int] = None) -> Dict[str, Any]:
    rating = ranked.rating
    return {
        "track": serialize_track(ranked.track),
        "elo": rating.elo,
        "wins": rating.wins,
        "losses": rating.losses,
        "draws": rating.draws,
        "total_battles": rating.total_battles,
        "win_rate": round(rating.win_rate, 1),
        "rank": rank,
    }


def serialize_elo_change(change: EloChange) -> Dict[str, Any]:
    return {
        "track_id": change.track_id,
        "old_elo": change.old_elo,
        "new_elo": change.new_elo,
        "change": change.change,
    }


def serialize_match_record(match: MatchRecord) -> Dict[str, Any]:
    return {
        "match_id": match.match_id,
        "left_track_id": match.left_track_id,
        "right_track_id": match.right_track_id,
        "winner_track_id": match.winner_track_id,
        "created_at": match.created_at.isoformat(),
    }


def serialize_playlist(info: PlaylistInfo) -> Dict[str, Any]:
    return {
        "name": info.name,
        "description": info.description,
        "path": str(info.path),
        "track_count": info.track_count,
        "created_at": info.created_at.isoformat(),
    }
