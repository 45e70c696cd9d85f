"""
Raw Sleeper API fetchers.

One function per upstream endpoint. Each is a read-only GET that returns the
standard response envelope; transport and HTTP failures are converted to
error envelopes by ``handle_http_errors``. Nothing here retries: a failed
fetch is reported once and the caller decides what it means for its unit of
work.

Callers go through the module (``sleeper_tools.get_league(...)``) so tests
can patch individual endpoints.
"""

import logging
from typing import Any, Optional

from .config import (
    get_http_headers, create_http_client, validate_limit, LIMITS, LONG_TIMEOUT, SLEEPER_API_BASE
)
from .errors import create_success_response, handle_http_errors

logger = logging.getLogger(__name__)


async def _get_json(path: str, service: str, params: Optional[dict] = None, timeout=None) -> Any:
    url = f"{SLEEPER_API_BASE}{path}"
    logger.debug(f"GET {url}")
    async with create_http_client(timeout) as client:
        response = await client.get(url, headers=get_http_headers(service), params=params)
        response.raise_for_status()
        return response.json()


@handle_http_errors(
    default_data={"user": None},
    operation_name="fetching user"
)
async def get_user(user_id_or_username: str) -> dict:
    """Fetch a Sleeper user by user_id or username.

    Sleeper answers an unknown username with ``200 null``; that is reported
    as a successful fetch with ``user`` set to None.
    """
    data = await _get_json(f"/user/{user_id_or_username}", "sleeper_users")
    return create_success_response({"user": data})


@handle_http_errors(
    default_data={"leagues": [], "count": 0, "season": None},
    operation_name="fetching user leagues"
)
async def get_user_leagues(user_id: str, season: str) -> dict:
    """Fetch all NFL leagues for a user in one season."""
    data = await _get_json(f"/user/{user_id}/leagues/nfl/{season}", "sleeper_league") or []
    return create_success_response({"leagues": data, "count": len(data), "season": str(season)})


@handle_http_errors(
    default_data={"league": None},
    operation_name="fetching league information"
)
async def get_league(league_id: str) -> dict:
    """
    Get league metadata from the Sleeper API.

    The payload carries ``previous_league_id``, ``status``, ``settings``,
    ``scoring_settings``, ``roster_positions`` and ``total_rosters``.

    Args:
        league_id: The unique identifier for the league

    Returns:
        A dictionary containing:
        - league: League information and settings (None if unknown)
        - success, error, error_type
    """
    data = await _get_json(f"/league/{league_id}", "sleeper_league")
    return create_success_response({"league": data})


@handle_http_errors(
    default_data={"rosters": [], "count": 0},
    operation_name="fetching league rosters"
)
async def get_rosters(league_id: str) -> dict:
    """Fetch all rosters in a league (owner, co-owners, players, starters)."""
    data = await _get_json(f"/league/{league_id}/rosters", "sleeper_rosters") or []
    return create_success_response({"rosters": data, "count": len(data)})


@handle_http_errors(
    default_data={"matchups": [], "week": None, "count": 0},
    operation_name="fetching matchups"
)
async def get_matchups(league_id: str, week: int) -> dict:
    """
    Fetch every scoring entry for one league week.

    Two entries sharing a ``matchup_id`` form a head-to-head matchup.
    """
    data = await _get_json(f"/league/{league_id}/matchups/{week}", "sleeper_matchups") or []
    return create_success_response({"matchups": data, "week": week, "count": len(data)})


@handle_http_errors(
    default_data={"bracket": []},
    operation_name="fetching winners bracket"
)
async def get_winners_bracket(league_id: str) -> dict:
    """Fetch the flat winners-bracket edge list (r, m, t1, t2, w, l, t1_from, t2_from, p)."""
    data = await _get_json(f"/league/{league_id}/winners_bracket", "sleeper_playoffs") or []
    return create_success_response({"bracket": data})


@handle_http_errors(
    default_data={"nfl_state": None},
    operation_name="fetching NFL state"
)
async def get_nfl_state() -> dict:
    """
    Get current NFL state information from the Sleeper API.

    Returns:
        A dictionary containing:
        - nfl_state: season, league_season, week, display_week, season_type
        - success, error, error_type
    """
    data = await _get_json("/state/nfl", "sleeper_nfl_state")
    return create_success_response({"nfl_state": data})


@handle_http_errors(
    default_data={"trending": [], "trend_type": None, "count": 0},
    operation_name="fetching trending players"
)
async def get_trending_players(trend_type: str, limit: Optional[int] = None) -> dict:
    """Fetch the league-wide trending list for ``add`` or ``drop``.

    Items are ``{"player_id": str, "count": int}`` in rank order.
    """
    limit = validate_limit(limit, 1, 100, default=LIMITS["trending_limit"])
    params = {"lookback_hours": 24, "limit": limit}
    data = await _get_json(f"/players/nfl/trending/{trend_type}", "sleeper_trending", params=params) or []
    return create_success_response({"trending": data, "trend_type": trend_type, "count": len(data)})


@handle_http_errors(
    default_data={"players": {}, "player_count": 0},
    operation_name="fetching player directory"
)
async def fetch_all_players() -> dict:
    """Fetch the full NFL player directory (id -> player). Several MB; callers cache it."""
    data = await _get_json("/players/nfl", "sleeper_players", timeout=LONG_TIMEOUT) or {}
    return create_success_response({"players": data, "player_count": len(data)})
