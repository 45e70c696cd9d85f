"""
Resolution of human-chosen names to Sleeper identifiers.

Usernames and league names are what people type; the API wants opaque
user ids and league ids. ``IdentityResolver`` performs those lookups and
memoizes them in an ``IdentityCache`` that is injected by the caller and
lives as long as the caller keeps it.
"""

import asyncio
import logging
from datetime import datetime, UTC
from typing import Dict, List, Optional, Tuple

from . import sleeper_tools
from .errors import is_upstream_failure
from .models import NFLState, ResolvedRoster

logger = logging.getLogger(__name__)

UNKNOWN_USERNAME = "unknown username"

_QUOTE_TRANSLATION = str.maketrans({
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
})


def normalize_league_name(name: str) -> str:
    """Lowercase, straighten curly quotes and trim, for name comparison."""
    return (name or "").lower().translate(_QUOTE_TRANSLATION).strip()


class IdentityCache:
    """Append-only lookup caches shared by every resolver built on it.

    Concurrent lookups for the same key may both populate an entry; the
    write is idempotent so no locking is needed.
    """

    def __init__(self):
        self.user_ids: Dict[str, str] = {}
        self.league_ids: Dict[Tuple[str, str, str], str] = {}


def find_roster_for_user(rosters: List[ResolvedRoster], user_id: str) -> Optional[ResolvedRoster]:
    """The roster owned or co-owned by ``user_id``, if any."""
    for roster in rosters:
        if roster.is_owned_by(user_id):
            return roster
    return None


def find_roster_by_id(rosters: List[ResolvedRoster], roster_id) -> Optional[ResolvedRoster]:
    for roster in rosters:
        if roster.roster_id == roster_id:
            return roster
    return None


class IdentityResolver:
    """Resolve usernames, league names and roster owners."""

    def __init__(self, cache: Optional[IdentityCache] = None):
        self.cache = cache if cache is not None else IdentityCache()

    async def resolve_user_id(self, username: str) -> Optional[str]:
        """
        Resolve a username (or user id) to a Sleeper user id.

        Returns:
            The user id, or None when the user does not exist or the lookup failed.
        """
        key = username.strip().lower()
        cached = self.cache.user_ids.get(key)
        if cached is not None:
            return cached

        response = await sleeper_tools.get_user(username.strip())
        if is_upstream_failure(response):
            logger.warning(f"User lookup for '{username}' failed: {(response or {}).get('error')}")
            return None
        user = response.get("user") if response.get("success") else None
        if not user or not user.get("user_id"):
            logger.info(f"User '{username}' could not be resolved")
            return None

        user_id = str(user["user_id"])
        self.cache.user_ids[key] = user_id
        return user_id

    async def current_season(self) -> str:
        """The season the NFL state reports as current for leagues.

        Falls back to the calendar year when the state endpoint is unavailable.
        """
        response = await sleeper_tools.get_nfl_state()
        if response.get("success") and response.get("nfl_state"):
            return NFLState.from_dict(response["nfl_state"]).current_season
        fallback = str(datetime.now(UTC).year)
        logger.warning(f"NFL state unavailable, using calendar year {fallback} as current season")
        return fallback

    async def list_leagues(self, username: str, season: Optional[str] = None) -> Optional[List[dict]]:
        """All leagues the user belongs to in ``season`` (current season by default)."""
        user_id = await self.resolve_user_id(username)
        if not user_id:
            return None
        season = season or await self.current_season()
        response = await sleeper_tools.get_user_leagues(user_id, season)
        if not response.get("success"):
            return None
        return response.get("leagues") or []

    async def resolve_league_id(self, username: str, league_name: str, season: Optional[str] = None) -> Optional[str]:
        """
        Find the id of the user's league called ``league_name`` in ``season``.

        Names are compared after ``normalize_league_name``.
        """
        user_id = await self.resolve_user_id(username)
        if not user_id:
            return None
        season = str(season or await self.current_season())
        normalized = normalize_league_name(league_name)

        key = (user_id, normalized, season)
        cached = self.cache.league_ids.get(key)
        if cached is not None:
            return cached

        response = await sleeper_tools.get_user_leagues(user_id, season)
        if not response.get("success"):
            return None

        for league in response.get("leagues") or []:
            if normalize_league_name(league.get("name", "")) == normalized:
                league_id = str(league["league_id"])
                self.cache.league_ids[key] = league_id
                return league_id

        logger.info(f"No league named '{league_name}' for user '{username}' in {season}")
        return None

    async def _display_name(self, user_id: str) -> str:
        response = await sleeper_tools.get_user(user_id)
        user = response.get("user") if response.get("success") else None
        if not user:
            return UNKNOWN_USERNAME
        return user.get("username") or user.get("display_name") or UNKNOWN_USERNAME

    async def resolve_rosters(self, league_id: str) -> Optional[List[ResolvedRoster]]:
        """
        Fetch a league's rosters and attach owner/co-owner display names.

        Each distinct owner id is looked up once, concurrently. A lookup that
        fails yields ``"unknown username"`` for that owner instead of failing
        the roster.

        Returns:
            The resolved rosters, or None when the rosters could not be fetched
            or the league has none.
        """
        response = await sleeper_tools.get_rosters(league_id)
        raw_rosters = response.get("rosters") if response.get("success") else None
        if not raw_rosters:
            return None

        owner_ids_by_roster = []
        for raw in raw_rosters:
            owners = [raw.get("owner_id")] + list(raw.get("co_owners") or [])
            owner_ids_by_roster.append([str(o) for o in owners if o])

        distinct_ids = list(dict.fromkeys(uid for ids in owner_ids_by_roster for uid in ids))
        names = await asyncio.gather(*(self._display_name(uid) for uid in distinct_ids))
        name_by_id = dict(zip(distinct_ids, names))

        resolved = []
        for raw, owner_ids in zip(raw_rosters, owner_ids_by_roster):
            resolved.append(ResolvedRoster(
                roster_id=raw.get("roster_id"),
                owner_id=raw.get("owner_id"),
                co_owners=list(raw.get("co_owners") or []),
                owner_ids=owner_ids,
                owner_names=[name_by_id[uid] for uid in owner_ids],
                players=list(raw.get("players") or []),
                starters=list(raw.get("starters") or []),
                reserve=list(raw.get("reserve") or []),
                taxi=list(raw.get("taxi") or []),
                settings=dict(raw.get("settings") or {}),
            ))
        return resolved
