"""
Playlist export of the ranking to local files.

Writes either a JSON document (playlist metadata plus ranked tracks) or an
extended M3U file listing track URIs, ready to import into a player.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from songbattle.utils.constants import (
    APP_NAME, EXPORT_FORMATS, MAX_EXPORT_LIMIT, META_LAST_EXPORT
)
from songbattle.ranking.models import RankedTrack, utc_now
from songbattle.ranking.storage import RatingStorage

logger = logging.getLogger(__name__)

RECOMMENDED_LIMITS = {
    "small": 25,
    "medium": 50,
    "large": 100,
    "max": 500,
}


def validate_export_limit(limit: int):
    """
    Check a requested playlist size.

    Raises:
        ValueError: If limit is not between 1 and MAX_EXPORT_LIMIT
    """
    if limit <= 0:
        raise ValueError("Export limit must be positive")
    if limit > MAX_EXPORT_LIMIT:
        raise ValueError(f"Export limit cannot exceed {MAX_EXPORT_LIMIT} tracks")


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return slug or "playlist"


@dataclass
class PlaylistInfo:
    """A written playlist file."""
    name: str
    description: str
    path: Path
    track_count: int
    created_at: datetime = field(default_factory=utc_now)
    tracks: List[RankedTrack] = field(default_factory=list)

    def summary(self) -> str:
        return (f"{self.name}\n"
                f"{self.track_count} tracks\n"
                f"{self.path}\n"
                f"Created {self.created_at.strftime('%d/%m/%Y')}")


class PlaylistExporter:
    """
    Exports ranked tracks as playlist files.

    Usage:
        exporter = PlaylistExporter(storage, output_dir="data/exports")
        info = exporter.export_top_tracks(50, fmt="m3u")
    """

    def __init__(self, storage: RatingStorage, output_dir: str = "data/exports"):
        """
        Initialize the exporter.

        Args:
            storage: Store to read rankings from
            output_dir: Directory playlist files are written to
        """
        self.storage = storage
        self.output_dir = Path(output_dir)

    def export_top_tracks(self, limit: int, name: str = "", fmt: str = "json") -> PlaylistInfo:
        """Export the best `limit` tracks."""
        validate_export_limit(limit)

        tracks = self.storage.list_ranked_tracks(limit)
        if not tracks:
            raise ValueError("No tracks to export")

        created_at = utc_now()
        name = name or f"{APP_NAME} Top {len(tracks)}"
        description = (f"Top {len(tracks)} tracks according to {APP_NAME} - "
                       f"created {created_at.strftime('%d/%m/%Y')}")
        return self._write(name, description, tracks, fmt, created_at)

    def export_custom(
        self,
        track_ids: Sequence[int],
        name: str = "",
        description: str = "",
        fmt: str = "json"
    ) -> PlaylistInfo:
        """
        Export a hand-picked selection of tracks, in the given order.

        Unknown track ids are ignored.

        Raises:
            ValueError: If no track ids are given or none of them exists
        """
        if not track_ids:
            raise ValueError("No tracks specified")

        tracks = []
        for track_id in track_ids:
            ranked = self.storage.get_ranked_track(track_id)
            if ranked is None:
                logger.warning("Track %s not found, leaving it out of the export", track_id)
                continue
            tracks.append(ranked)

        if not tracks:
            raise ValueError("None of the specified tracks exist")

        created_at = utc_now()
        name = name or f"{APP_NAME} Custom Playlist"
        description = description or (
            f"{APP_NAME} custom playlist - {len(tracks)} tracks - "
            f"created {created_at.strftime('%d/%m/%Y')}"
        )
        return self._write(name, description, tracks, fmt, created_at)

    def export_by_elo_range(
        self,
        min_elo: int,
        max_elo: int,
        name: str = "",
        fmt: str = "json"
    ) -> PlaylistInfo:
        """
        Export every track whose Elo lies within [min_elo, max_elo].

        Raises:
            ValueError: If the range is inverted or holds no tracks
        """
        if min_elo > max_elo:
            raise ValueError(f"Invalid Elo range {min_elo}-{max_elo}")

        tracks = [
            t for t in self.storage.list_ranked_tracks()
            if min_elo <= t.elo <= max_elo
        ]
        if not tracks:
            raise ValueError(f"No tracks found in Elo range {min_elo}-{max_elo}")

        created_at = utc_now()
        name = name or f"{APP_NAME} Elo {min_elo}-{max_elo}"
        description = (f"Tracks rated between {min_elo} and {max_elo} - "
                       f"{len(tracks)} tracks - created {created_at.strftime('%d/%m/%Y')}")
        return self._write(name, description, tracks, fmt, created_at)

    def _write(
        self,
        name: str,
        description: str,
        tracks: List[RankedTrack],
        fmt: str,
        created_at: datetime
    ) -> PlaylistInfo:
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format: {fmt}")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = created_at.strftime("%Y%m%d_%H%M%S")
        path = self.output_dir / f"{_slugify(name)}_{timestamp}.{fmt}"

        if fmt == "json":
            self._write_json(path, name, description, tracks, created_at)
        else:
            self._write_m3u(path, name, tracks)

        self.storage.set_meta(META_LAST_EXPORT, str(path))
        logger.info("Exported %d tracks to %s", len(tracks), path)

        return PlaylistInfo(
            name=name,
            description=description,
            path=path,
            track_count=len(tracks),
            created_at=created_at,
            tracks=tracks,
        )

    @staticmethod
    def _write_json(
        path: Path,
        name: str,
        description: str,
        tracks: List[RankedTrack],
        created_at: datetime
    ):
        document = {
            'name': name,
            'description': description,
            'created_at': created_at.isoformat(),
            'track_count': len(tracks),
            'tracks': [
                {
                    'rank': i,
                    'track_id': t.track_id,
                    'catalog_id': t.track.catalog_id,
                    'name': t.track.name,
                    'artist': t.track.artist,
                    'album': t.track.album,
                    'uri': t.track.uri,
                    'elo': t.elo,
                    'wins': t.rating.wins,
                    'losses': t.rating.losses,
                    'draws': t.rating.draws,
                }
                for i, t in enumerate(tracks, 1)
            ],
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2, ensure_ascii=False)

    @staticmethod
    def _write_m3u(path: Path, name: str, tracks: List[RankedTrack]):
        lines = ["#EXTM3U", f"#PLAYLIST:{name}"]
        for t in tracks:
            lines.append(f"#EXTINF:-1,{t.track.display_name}")
            lines.append(t.track.uri or t.track.catalog_id)
        with open(path, 'w', encoding='utf-8') as f:
            f.write("\n".join(lines) + "\n")


def recommended_limit(size: Optional[str]) -> int:
    """Map a size name from RECOMMENDED_LIMITS to a track count."""
    if size not in RECOMMENDED_LIMITS:
        raise ValueError(f"Unknown playlist size {size!r}; choose from {sorted(RECOMMENDED_LIMITS)}")
    return RECOMMENDED_LIMITS[size]
