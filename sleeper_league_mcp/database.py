"""
SQLite persistence for the Sleeper player directory.

The directory (``/players/nfl``) is several megabytes and changes slowly, so
it is fetched rarely and kept on disk. Derived analytics are never stored.
"""

import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime, UTC
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

logger = logging.getLogger(__name__)


def _full_name(player: Dict) -> str:
    full_name = player.get("full_name")
    if full_name:
        return full_name
    # Team defenses only carry first/last name ("Dallas" / "Cowboys")
    parts = [player.get("first_name"), player.get("last_name")]
    return " ".join(p for p in parts if p)


class PlayerDatabase:
    """SQLite store for player id -> name/team/position lookups."""

    CURRENT_SCHEMA_VERSION = 2

    def __init__(self, db_path: str = "sleeper_players.db"):
        """
        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self._ensure_database()

    @contextmanager
    def _get_connection(self):
        conn = sqlite3.connect(str(self.db_path), timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_database(self) -> None:
        """Create tables if they don't exist and run pending migrations."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)
            row = conn.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            ).fetchone()
            current_version = row[0] if row else 0
            self._run_migrations(conn, current_version)
            conn.commit()

    def _run_migrations(self, conn: sqlite3.Connection, from_version: int) -> None:
        migrations = {
            1: self._migration_v1_players,
            2: self._migration_v2_name_index,
        }
        for version in range(from_version + 1, self.CURRENT_SCHEMA_VERSION + 1):
            logger.info(f"Running migration to version {version}")
            migrations[version](conn)
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, datetime.now(UTC).isoformat())
            )

    def _migration_v1_players(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS players (
                id TEXT PRIMARY KEY,
                full_name TEXT,
                team TEXT,
                position TEXT,
                status TEXT,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_players_team ON players(team)")

    def _migration_v2_name_index(self, conn: sqlite3.Connection) -> None:
        conn.execute("CREATE INDEX IF NOT EXISTS idx_players_name ON players(full_name COLLATE NOCASE)")

    def upsert_players(self, players: Dict[str, Dict]) -> int:
        """
        Insert or update player records.

        Args:
            players: Mapping of player id to the Sleeper player object

        Returns:
            Number of players processed
        """
        if not players:
            return 0

        updated_at = datetime.now(UTC).isoformat()
        rows = [
            (
                str(player_id),
                _full_name(player),
                player.get("team") or "",
                player.get("position") or "",
                player.get("status") or "",
                updated_at,
            )
            for player_id, player in players.items()
            if isinstance(player, dict)
        ]

        with self._get_connection() as conn:
            try:
                conn.executemany("""
                    INSERT INTO players (id, full_name, team, position, status, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        full_name=excluded.full_name,
                        team=excluded.team,
                        position=excluded.position,
                        status=excluded.status,
                        updated_at=excluded.updated_at
                """, rows)
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error(f"Error upserting players: {e}")
                raise

        logger.info(f"Successfully processed {len(rows)} players")
        return len(rows)

    def get_player_by_id(self, player_id: str) -> Optional[Dict]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM players WHERE id = ?", (str(player_id),)).fetchone()
            return dict(row) if row else None

    def get_players_by_ids(self, player_ids: Iterable[str]) -> Dict[str, Dict]:
        """Batch lookup; ids not in the store are simply absent from the result."""
        ids = list(dict.fromkeys(str(pid) for pid in player_ids))
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        with self._get_connection() as conn:
            cursor = conn.execute(f"SELECT * FROM players WHERE id IN ({placeholders})", ids)
            return {row["id"]: dict(row) for row in cursor.fetchall()}

    def get_player_count(self) -> int:
        with self._get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM players").fetchone()[0]

    def get_last_updated(self) -> Optional[str]:
        """ISO timestamp of the most recent upsert, or None if empty."""
        with self._get_connection() as conn:
            return conn.execute("SELECT MAX(updated_at) FROM players").fetchone()[0]

    def clear_players(self) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM players")
            conn.commit()
            return cursor.rowcount

    def health_check(self) -> Dict[str, Union[bool, int, str, None]]:
        try:
            return {
                "healthy": True,
                "player_count": self.get_player_count(),
                "last_updated": self.get_last_updated(),
                "schema_version": self.CURRENT_SCHEMA_VERSION,
            }
        except sqlite3.Error as e:
            logger.error(f"Database health check failed: {e}")
            return {"healthy": False, "error": f"Database check failed: {str(e)}"}
