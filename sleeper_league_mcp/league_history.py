"""
League chain resolution.

Sleeper creates a new league object every season and links it to the
prior season only through ``previous_league_id``. Walking that pointer
backwards yields the league's full history, keyed by season.
"""

import logging
from typing import Dict, Optional

from . import sleeper_tools
from .identity import IdentityResolver
from .models import LeagueStatus, SeasonEntry

logger = logging.getLogger(__name__)

SeasonHistoryMap = Dict[str, SeasonEntry]


async def fetch_league(league_id: str) -> Optional[dict]:
    """League metadata, or None when it cannot be fetched."""
    response = await sleeper_tools.get_league(league_id)
    if not response.get("success") or not response.get("league"):
        return None
    return response["league"]


def _previous_league_id(league: dict) -> Optional[str]:
    previous = league.get("previous_league_id")
    # Sleeper reports "0" for a league with no predecessor in some payloads
    if not previous or str(previous) == "0":
        return None
    return str(previous)


class LeagueChainResolver:
    """Walk ``previous_league_id`` pointers into a season-indexed history."""

    def __init__(self, identity: Optional[IdentityResolver] = None):
        self.identity = identity or IdentityResolver()

    async def resolve(self, current_league: dict) -> SeasonHistoryMap:
        """
        Build the season history starting from ``current_league``.

        The walk is iterative and refuses to revisit a season or league id,
        so a malformed chain that loops back on itself ends the walk. When a
        predecessor cannot be fetched the seasons gathered so far are
        returned.

        Args:
            current_league: League metadata for the most recent season

        Returns:
            Mapping of season label to SeasonEntry
        """
        history: SeasonHistoryMap = {}
        visited_ids = set()
        league = current_league

        while league is not None:
            season = str(league.get("season"))
            league_id = str(league.get("league_id"))

            if season in history or league_id in visited_ids:
                logger.warning(
                    f"League chain revisits season {season} (league {league_id}); "
                    f"stopping with {len(history)} season(s)"
                )
                break

            history[season] = SeasonEntry(
                season=season,
                league_id=league_id,
                league_name=league.get("name") or "",
                status=LeagueStatus.parse(league.get("status")),
            )
            visited_ids.add(league_id)

            previous_id = _previous_league_id(league)
            if previous_id is None:
                break

            league = await fetch_league(previous_id)
            if league is None:
                logger.warning(
                    f"Could not fetch previous league {previous_id} before season {season}; "
                    f"returning partial history of {len(history)} season(s)"
                )

        return history

    async def fetch_league_history_map(self, username: str, league_name: str) -> Optional[SeasonHistoryMap]:
        """
        History for the user's league called ``league_name``.

        Returns:
            The history map, or None when the current-season league cannot be found.
        """
        league_id = await self.identity.resolve_league_id(username, league_name)
        if not league_id:
            return None

        current = await fetch_league(league_id)
        if current is None:
            return None

        return await self.resolve(current)
