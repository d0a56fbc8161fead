"""
Catalog import from a local JSON export.

Reads track metadata in the shape a music service returns for "top tracks"
style queries and stores each new track with its initial rating.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from songbattle.utils.constants import META_LAST_IMPORT
from songbattle.ranking.models import Track
from songbattle.ranking.storage import RatingStorage

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"^(\d{4})")


@dataclass
class ImportSummary:
    """Result of importing a batch of tracks."""
    added: List[Track] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def _artist_name(entry: Dict[str, Any]) -> str:
    if entry.get('artist'):
        return str(entry['artist'])
    artists = entry.get('artists') or []
    if isinstance(artists, str):
        return artists
    if not isinstance(artists, list):
        raise ValueError(f"artists must be a list, got {type(artists).__name__}")
    names = [(a.get('name') or "") if isinstance(a, dict) else str(a) for a in artists]
    return ", ".join(str(n) for n in names if n)


def _album_and_year(entry: Dict[str, Any]) -> tuple:
    album = entry.get('album') or ""
    year = entry.get('year') or 0
    if isinstance(album, dict):
        release_date = str(album.get('release_date') or "")
        match = _YEAR_RE.match(release_date)
        if not year and match:
            year = int(match.group(1))
        album = album.get('name') or ""
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise ValueError(f"year must be a number, got {year!r}")
    return str(album), year


def _genres(entry: Dict[str, Any]) -> List[str]:
    genres = entry.get('genres') or []
    if isinstance(genres, str):
        return [genres]
    if not isinstance(genres, list):
        raise ValueError(f"genres must be a list, got {type(genres).__name__}")
    return [str(g) for g in genres]


def _audio_features(entry: Dict[str, Any]) -> Dict[str, float]:
    """Numeric audio features; ids, uris and other text fields are dropped."""
    features = entry.get('audio_features') or {}
    if not isinstance(features, dict):
        raise ValueError(f"audio_features must be an object, got {type(features).__name__}")
    return {
        str(key): float(value)
        for key, value in features.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


def parse_track(entry: Dict[str, Any]) -> Optional[Track]:
    """
    Convert one catalog entry into a Track.

    Returns:
        Track, or None if the entry lacks an id or a name

    Raises:
        ValueError: If a present field has an unusable shape (e.g. a
            non-numeric year)
    """
    catalog_id = entry.get('id')
    name = entry.get('name')
    if not catalog_id or not name:
        return None

    album, year = _album_and_year(entry)

    return Track(
        catalog_id=str(catalog_id),
        name=str(name),
        artist=_artist_name(entry),
        album=album,
        year=year,
        genres=_genres(entry),
        uri=str(entry.get('uri') or ""),
        preview_url=entry.get('preview_url'),
        audio_features=_audio_features(entry),
    )


def load_catalog_file(path: Union[str, Path]) -> List[Track]:
    """
    Load tracks from a catalog JSON file.

    The file may hold a list of tracks, or an object with an 'items' or
    'tracks' list. Entries without an id or name, or with malformed
    fields, are skipped with a warning.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed tracks in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the JSON does not contain a track list
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get('items', data.get('tracks'))
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of tracks")

    tracks = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            logger.warning("Skipping catalog entry %d in %s: not an object", i, path)
            continue
        try:
            track = parse_track(entry)
        except ValueError as e:
            logger.warning("Skipping catalog entry %d in %s: %s", i, path, e)
            continue
        if track is None:
            logger.warning("Skipping catalog entry %d in %s: missing id or name", i, path)
            continue
        tracks.append(track)

    return tracks


def import_tracks(
    storage: RatingStorage,
    tracks: List[Track],
    source: Optional[str] = None
) -> ImportSummary:
    """
    Store tracks that are not in the collection yet.

    Args:
        storage: Target store
        tracks: Tracks to import
        source: Optional description recorded as the last import source

    Returns:
        ImportSummary listing added tracks and skipped catalog ids
    """
    summary = ImportSummary()
    seen = set()

    for track in tracks:
        if track.catalog_id in seen or storage.get_track_by_catalog_id(track.catalog_id):
            summary.skipped.append(track.catalog_id)
            continue
        seen.add(track.catalog_id)
        summary.added.append(storage.create_track(track))

    if source:
        storage.set_meta(META_LAST_IMPORT, source)

    logger.info("Imported %d tracks (%d already present)",
                summary.added_count, summary.skipped_count)
    return summary
