"""SQLite storage for imported playlists and their channels."""

import logging
import sqlite3
import threading
from datetime import datetime

from playlist_transfer.m3u_core import fetch_content, parse_m3u

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS playlists (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    source_url TEXT,
    channel_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS channels (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    playlist_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    tvg_id TEXT,
    tvg_name TEXT,
    tvg_logo TEXT,
    group_title TEXT,
    stream_url TEXT NOT NULL,
    FOREIGN KEY(playlist_id) REFERENCES playlists(id) ON DELETE CASCADE
);
"""


class PlaylistStore:
    def __init__(self, db_path):
        self.db_path = db_path
        self._conn = None
        # Imports run on worker threads; one connection guarded by a lock
        self._lock = threading.Lock()

    def initialize(self):
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(SCHEMA)
        self._conn.commit()
        logger.info(f"Playlist database ready at {self.db_path}")

    def close(self):
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _require_connection(self):
        if self._conn is None:
            raise RuntimeError("PlaylistStore is not initialized")
        return self._conn

    def add_playlist_from_url(self, name, url):
        """
        Downloads the playlist at url and stores it.
        Returns the stored playlist dict, or None if nothing could be imported.
        """
        content, fetch_errors = fetch_content('url', url)
        if content is None:
            for error in fetch_errors:
                logger.warning(error)
            return None
        return self._save(name, content, source_url=url)

    def add_playlist_from_content(self, name, content):
        """Stores playlist text received directly. Returns the playlist dict or None."""
        return self._save(name, content, source_url=None)

    def _save(self, name, content, source_url):
        errors, channels = parse_m3u(content)
        for error in errors:
            logger.debug(f"[{name}] {error}")

        if not channels:
            logger.warning(f"Playlist '{name}' contains no playable channels, nothing imported")
            return None

        created_at = datetime.now().isoformat(timespec='seconds')
        with self._lock:
            conn = self._require_connection()
            with conn:
                cursor = conn.execute(
                    "INSERT INTO playlists (name, source_url, channel_count, created_at) VALUES (?, ?, ?, ?)",
                    (name, source_url, len(channels), created_at),
                )
                playlist_id = cursor.lastrowid
                conn.executemany(
                    "INSERT INTO channels (playlist_id, name, tvg_id, tvg_name, tvg_logo, group_title, stream_url) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    [
                        (playlist_id, c['name'], c['tvg_id'], c['tvg_name'], c['tvg_logo'],
                         c['group_title'], c['stream_url'])
                        for c in channels
                    ],
                )

        logger.info(f"Imported playlist '{name}' with {len(channels)} channels ({len(errors)} warnings)")
        return {
            'id': playlist_id,
            'name': name,
            'source_url': source_url,
            'channel_count': len(channels),
            'created_at': created_at,
        }

    def list_playlists(self):
        with self._lock:
            rows = self._require_connection().execute(
                "SELECT id, name, source_url, channel_count, created_at FROM playlists ORDER BY id"
            ).fetchall()
        return [dict(row) for row in rows]

    def get_channels(self, playlist_id):
        with self._lock:
            rows = self._require_connection().execute(
                "SELECT name, tvg_id, tvg_name, tvg_logo, group_title, stream_url "
                "FROM channels WHERE playlist_id = ? ORDER BY id",
                (playlist_id,),
            ).fetchall()
        return [dict(row) for row in rows]
