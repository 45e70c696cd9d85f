"""
Player id -> name/team/position lookup backed by the on-disk store.

The directory is filled from ``/players/nfl`` once (or when older than the
configured TTL) and then read locally. Unknown ids get a fallback label so a
single missing player never fails a matchup.
"""

import logging
import sqlite3
from datetime import datetime, timedelta, UTC
from typing import Dict, Iterable, Optional

from . import sleeper_tools
from .database import PlayerDatabase
from .errors import create_success_response

logger = logging.getLogger(__name__)

EMPTY_SLOT_ID = "0"
UNKNOWN_PLAYER = "Unknown player"
EMPTY_SLOT = "Empty slot"
NOT_AVAILABLE = "N/A"


class PlayerDirectory:
    def __init__(self, db: PlayerDatabase, ttl_hours: int = 24):
        self.db = db
        self.ttl = timedelta(hours=ttl_hours)
        self._memo: Dict[str, Dict[str, str]] = {}

    def is_stale(self) -> bool:
        try:
            if self.db.get_player_count() == 0:
                return True
            last_updated = self.db.get_last_updated()
        except sqlite3.Error as e:
            logger.warning(f"Player store unreadable, treating as stale: {e}")
            return True
        if not last_updated:
            return True
        return datetime.now(UTC) - datetime.fromisoformat(last_updated) > self.ttl

    async def ensure_loaded(self, force: bool = False) -> dict:
        """
        Fill the store from the upstream directory when empty, stale or forced.

        Returns:
            Envelope with ``refreshed`` and ``player_count``, or the fetch's
            error envelope.
        """
        if not force and not self.is_stale():
            return create_success_response({
                "refreshed": False,
                "player_count": self.db.get_player_count(),
                "last_updated": self.db.get_last_updated(),
            })

        logger.info("Refreshing player directory from Sleeper")
        response = await sleeper_tools.fetch_all_players()
        if not response.get("success"):
            logger.warning(f"Player directory refresh failed: {response.get('error')}")
            return response

        players = response.get("players") or {}
        if force and players:
            # Forced refresh replaces the store so retired ids drop out
            removed = self.db.clear_players()
            logger.debug(f"Cleared {removed} players before forced refresh")
        count = self.db.upsert_players(players)
        self._memo.clear()
        return create_success_response({
            "refreshed": True,
            "player_count": count,
            "last_updated": self.db.get_last_updated(),
        })

    def _lookup(self, player_id: str) -> Optional[Dict]:
        try:
            return self.db.get_player_by_id(player_id)
        except sqlite3.Error as e:
            logger.debug(f"Lookup failed for {player_id}: {e}")
            return None

    @staticmethod
    def _detail(player_id: str, row: Optional[Dict]) -> Dict[str, str]:
        if player_id == EMPTY_SLOT_ID:
            return {"player_id": player_id, "name": EMPTY_SLOT, "team": NOT_AVAILABLE, "position": NOT_AVAILABLE}
        if not row:
            return {"player_id": player_id, "name": UNKNOWN_PLAYER, "team": NOT_AVAILABLE, "position": NOT_AVAILABLE}
        return {
            "player_id": player_id,
            "name": row.get("full_name") or UNKNOWN_PLAYER,
            "team": row.get("team") or NOT_AVAILABLE,
            "position": row.get("position") or NOT_AVAILABLE,
        }

    def prefetch(self, player_ids: Iterable[str]) -> None:
        """Load many ids in one query so the following ``describe`` calls hit the memo."""
        missing = [str(pid) for pid in player_ids if str(pid) not in self._memo and str(pid) != EMPTY_SLOT_ID]
        if not missing:
            return
        try:
            rows = self.db.get_players_by_ids(missing)
        except sqlite3.Error as e:
            logger.debug(f"Batch lookup failed for {len(missing)} players: {e}")
            return
        for player_id in missing:
            self._memo[player_id] = self._detail(player_id, rows.get(player_id))

    def describe(self, player_id: str) -> Dict[str, str]:
        """``{player_id, name, team, position}`` for a player id, with fallbacks."""
        player_id = str(player_id)
        if player_id in self._memo:
            return self._memo[player_id]

        row = None if player_id == EMPTY_SLOT_ID else self._lookup(player_id)
        detail = self._detail(player_id, row)
        self._memo[player_id] = detail
        return detail
