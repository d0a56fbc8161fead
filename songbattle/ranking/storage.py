"""
Storage backend for tracks, ratings and the duel log.

Uses SQLite for everything. Each public method runs in its own transaction;
multi-row writes (apply_duel) commit or roll back as a unit.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from songbattle.utils.constants import DB_NAME, INITIAL_ELO
from songbattle.ranking.models import (
    MatchRecord, RankedTrack, Rating, Track, utc_now
)

logger = logging.getLogger(__name__)

_RANKED_SELECT = """
    SELECT t.id, t.catalog_id, t.name, t.artist, t.album, t.year, t.genres_json,
           t.uri, t.preview_url, t.audio_features_json, t.created_at,
           r.elo, r.wins, r.losses, r.draws, r.last_seen_at
    FROM tracks t
    JOIN ratings r ON t.id = r.track_id
"""


def _to_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class RatingStorage:
    """
    Handles persistent storage of the music collection and its rankings.

    Tables:
    - tracks: catalog metadata, one row per imported track
    - ratings: Elo and win/loss/draw counters, one row per track
    - duels: append-only match log
    - meta: application key/value settings
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize storage backend.

        Args:
            data_dir: Base directory for data storage
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / DB_NAME

        # Ensure directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back on error, always close."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self):
        """Initialize SQLite database schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tracks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    catalog_id TEXT UNIQUE NOT NULL,
                    name TEXT NOT NULL,
                    artist TEXT NOT NULL DEFAULT '',
                    album TEXT NOT NULL DEFAULT '',
                    year INTEGER DEFAULT 0,
                    genres_json TEXT DEFAULT '[]',
                    uri TEXT NOT NULL DEFAULT '',
                    preview_url TEXT,
                    audio_features_json TEXT DEFAULT '{}',
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS ratings (
                    track_id INTEGER PRIMARY KEY,
                    elo INTEGER NOT NULL DEFAULT {INITIAL_ELO},
                    wins INTEGER NOT NULL DEFAULT 0,
                    losses INTEGER NOT NULL DEFAULT 0,
                    draws INTEGER NOT NULL DEFAULT 0,
                    last_seen_at TEXT,
                    FOREIGN KEY (track_id) REFERENCES tracks(id) ON DELETE CASCADE
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS duels (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    left_track_id INTEGER NOT NULL,
                    right_track_id INTEGER NOT NULL,
                    winner_track_id INTEGER,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (left_track_id) REFERENCES tracks(id) ON DELETE CASCADE,
                    FOREIGN KEY (right_track_id) REFERENCES tracks(id) ON DELETE CASCADE,
                    FOREIGN KEY (winner_track_id) REFERENCES tracks(id) ON DELETE SET NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            # Indexes
            conn.execute("CREATE INDEX IF NOT EXISTS idx_ratings_elo ON ratings(elo DESC)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_duels_left ON duels(left_track_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_duels_right ON duels(right_track_id)")

            # Databases created before audio features were stored
            columns = {row["name"] for row in conn.execute("PRAGMA table_info(tracks)")}
            if "audio_features_json" not in columns:
                conn.execute("ALTER TABLE tracks ADD COLUMN audio_features_json TEXT DEFAULT '{}'")

    # =========================================================================
    # Tracks
    # =========================================================================

    def create_track(self, track: Track) -> Track:
        """
        Insert a track together with its initial rating.

        Args:
            track: Track to store (track_id and created_at are ignored)

        Returns:
            The stored Track with its assigned track_id

        Raises:
            sqlite3.IntegrityError: If the catalog_id already exists
        """
        created_at = track.created_at or utc_now()

        with self._connect() as conn:
            cursor = conn.execute("""
                INSERT INTO tracks (catalog_id, name, artist, album, year, genres_json,
                                    uri, preview_url, audio_features_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                track.catalog_id,
                track.name,
                track.artist,
                track.album,
                track.year,
                json.dumps(list(track.genres)),
                track.uri,
                track.preview_url,
                json.dumps(dict(track.audio_features)),
                created_at.isoformat(),
            ))
            track_id = cursor.lastrowid

            conn.execute("""
                INSERT INTO ratings (track_id, elo, wins, losses, draws, last_seen_at)
                VALUES (?, ?, 0, 0, 0, ?)
            """, (track_id, INITIAL_ELO, created_at.isoformat()))

        logger.debug("Created track %s (%s)", track_id, track.catalog_id)

        return Track(
            catalog_id=track.catalog_id,
            name=track.name,
            artist=track.artist,
            album=track.album,
            year=track.year,
            genres=list(track.genres),
            uri=track.uri,
            preview_url=track.preview_url,
            audio_features=dict(track.audio_features),
            track_id=track_id,
            created_at=created_at,
        )

    def get_track(self, track_id: int) -> Optional[Track]:
        """Load a track by its store id."""
        ranked = self.get_ranked_track(track_id)
        return ranked.track if ranked else None

    def get_track_by_catalog_id(self, catalog_id: str) -> Optional[Track]:
        """Load a track by its external catalog id."""
        with self._connect() as conn:
            row = conn.execute(
                _RANKED_SELECT + " WHERE t.catalog_id = ?", (catalog_id,)
            ).fetchone()
        return self._row_to_ranked(row).track if row else None

    def count_tracks(self) -> int:
        """Number of tracks that have a rating."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM tracks t JOIN ratings r ON t.id = r.track_id"
            ).fetchone()
        return row[0]

    # =========================================================================
    # Ratings
    # =========================================================================

    def get_rating(self, track_id: int) -> Optional[Rating]:
        """Load the rating row for a track, or None if it has none."""
        with self._connect() as conn:
            row = conn.execute("""
                SELECT track_id, elo, wins, losses, draws, last_seen_at
                FROM ratings WHERE track_id = ?
            """, (track_id,)).fetchone()

        if not row:
            return None

        return Rating(
            track_id=row['track_id'],
            elo=row['elo'],
            wins=row['wins'],
            losses=row['losses'],
            draws=row['draws'],
            last_seen_at=_from_timestamp(row['last_seen_at']),
        )

    def get_ranked_track(self, track_id: int) -> Optional[RankedTrack]:
        """Load a single track joined with its rating."""
        with self._connect() as conn:
            row = conn.execute(
                _RANKED_SELECT + " WHERE t.id = ?", (track_id,)
            ).fetchone()
        return self._row_to_ranked(row) if row else None

    def list_ranked_tracks(self, limit: Optional[int] = None) -> List[RankedTrack]:
        """
        List tracks with their ratings, best first.

        Ties on Elo are ordered by track id so the ranking is deterministic.

        Args:
            limit: Maximum number of tracks (None for all)

        Raises:
            ValueError: If limit is negative
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must not be negative, got {limit}")

        query = _RANKED_SELECT + " ORDER BY r.elo DESC, t.id ASC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        return [self._row_to_ranked(row) for row in rows]

    def update_rating(self, rating: Rating):
        """Overwrite a single rating row."""
        with self._connect() as conn:
            self._write_rating(conn, rating)

    def apply_duel(self, ratings: Sequence[Rating], match: MatchRecord) -> MatchRecord:
        """
        Write updated ratings and the duel record in one transaction.

        Either every rating row and the match record are committed, or none is.

        Returns:
            The stored MatchRecord with its match_id
        """
        with self._connect() as conn:
            for rating in ratings:
                self._write_rating(conn, rating)
            match_id = self._insert_match(conn, match)

        return MatchRecord(
            left_track_id=match.left_track_id,
            right_track_id=match.right_track_id,
            winner_track_id=match.winner_track_id,
            created_at=match.created_at,
            match_id=match_id,
        )

    def _write_rating(self, conn: sqlite3.Connection, rating: Rating):
        cursor = conn.execute("""
            UPDATE ratings SET elo = ?, wins = ?, losses = ?, draws = ?, last_seen_at = ?
            WHERE track_id = ?
        """, (
            rating.elo,
            rating.wins,
            rating.losses,
            rating.draws,
            _to_timestamp(rating.last_seen_at),
            rating.track_id,
        ))
        if cursor.rowcount != 1:
            raise sqlite3.IntegrityError(f"No rating row for track {rating.track_id}")

    # =========================================================================
    # Duels
    # =========================================================================

    def append_match_record(self, match: MatchRecord) -> MatchRecord:
        """Append a duel to the log without touching any rating."""
        return self.apply_duel([], match)

    def _insert_match(self, conn: sqlite3.Connection, match: MatchRecord) -> int:
        cursor = conn.execute("""
            INSERT INTO duels (left_track_id, right_track_id, winner_track_id, created_at)
            VALUES (?, ?, ?, ?)
        """, (
            match.left_track_id,
            match.right_track_id,
            match.winner_track_id,
            match.created_at.isoformat(),
        ))
        return cursor.lastrowid

    def list_match_history(
        self,
        limit: Optional[int] = None,
        track_id: Optional[int] = None
    ) -> List[MatchRecord]:
        """
        List duels, most recent first.

        Args:
            limit: Maximum number of records (None for all)
            track_id: Only duels this track took part in
        """
        query = """
            SELECT id, left_track_id, right_track_id, winner_track_id, created_at
            FROM duels
        """
        params: list = []
        if track_id is not None:
            query += " WHERE left_track_id = ? OR right_track_id = ?"
            params.extend([track_id, track_id])
        # Insertion order is the log order
        query += " ORDER BY id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            MatchRecord(
                left_track_id=row['left_track_id'],
                right_track_id=row['right_track_id'],
                winner_track_id=row['winner_track_id'],
                created_at=_from_timestamp(row['created_at']),
                match_id=row['id'],
            )
            for row in rows
        ]

    def count_duels(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM duels").fetchone()[0]

    # =========================================================================
    # Meta
    # =========================================================================

    def set_meta(self, key: str, value: str):
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
                (key, value)
            )

    def get_meta(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        return row['value'] if row else default

    def delete_meta(self, key: str):
        with self._connect() as conn:
            conn.execute("DELETE FROM meta WHERE key = ?", (key,))

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _row_to_ranked(row: sqlite3.Row) -> RankedTrack:
        track = Track(
            catalog_id=row['catalog_id'],
            name=row['name'],
            artist=row['artist'],
            album=row['album'],
            year=row['year'] or 0,
            genres=json.loads(row['genres_json'] or '[]'),
            uri=row['uri'],
            preview_url=row['preview_url'],
            audio_features=json.loads(row['audio_features_json'] or '{}'),
            track_id=row['id'],
            created_at=_from_timestamp(row['created_at']),
        )
        rating = Rating(
            track_id=row['id'],
            elo=row['elo'],
            wins=row['wins'],
            losses=row['losses'],
            draws=row['draws'],
            last_seen_at=_from_timestamp(row['last_seen_at']),
        )
        return RankedTrack(track=track, rating=rating)
