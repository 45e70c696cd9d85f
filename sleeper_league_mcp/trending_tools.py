"""
League-wide waiver trends and the trending players on a user's roster.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from . import sleeper_tools
from .errors import ErrorType, create_error_response, create_success_response
from .identity import IdentityResolver, find_roster_for_user
from .player_directory import PlayerDirectory

logger = logging.getLogger(__name__)

TREND_TYPES = ("add", "drop", "all")
TREND_LABELS = {"add": "Most Added", "drop": "Most Dropped", "all": "Trending"}


async def _ranked_trend(players: PlayerDirectory, trend_type: str) -> Optional[List[Dict]]:
    response = await sleeper_tools.get_trending_players(trend_type)
    if not response.get("success"):
        return None

    sign = "+" if trend_type == "add" else "-"
    ranked = []
    for rank, item in enumerate(response.get("trending") or [], start=1):
        detail = players.describe(str(item.get("player_id")))
        ranked.append({
            **detail,
            "player_trend": f"{sign}{item.get('count', 0)}",
            "trend_type": trend_type,
            "trend_rank": rank,
        })
    return ranked


async def collect_trending(players: PlayerDirectory, trend_type: str) -> Optional[List[Dict]]:
    """Ranked trending players; ``all`` is adds followed by drops."""
    if trend_type != "all":
        return await _ranked_trend(players, trend_type)

    adds, drops = await asyncio.gather(
        _ranked_trend(players, "add"),
        _ranked_trend(players, "drop"),
    )
    if adds is None or drops is None:
        return None
    return adds + drops


def _split(trending: List[Dict], top: Optional[int] = None) -> Dict[str, List[Dict]]:
    adds = [p for p in trending if p["trend_type"] == "add"]
    drops = [p for p in trending if p["trend_type"] == "drop"]
    if top is not None:
        adds, drops = adds[:top], drops[:top]
    return {"most_added": adds, "most_dropped": drops}


async def fetch_trending_players(players: PlayerDirectory, trend_type: str, top: Optional[int] = 5) -> dict:
    trending = await collect_trending(players, trend_type)
    if trending is None:
        return create_error_response(
            f"Unable to fetch {TREND_LABELS[trend_type]} players at this time.",
            ErrorType.HTTP, {"trend_type": trend_type}
        )

    return create_success_response({
        "trend_type": trend_type,
        **_split(trending, top),
    })


async def fetch_my_trending_roster_players(
    identity: IdentityResolver,
    players: PlayerDirectory,
    username: str,
    league_name: str,
    trend_type: str,
) -> dict:
    """Trending players that are on the user's current-season roster in ``league_name``."""
    user_id = await identity.resolve_user_id(username)
    if not user_id:
        return create_error_response(
            f"Could not find user '{username}'. Ensure the username is valid.",
            ErrorType.NOT_FOUND
        )

    trending, league_id = await asyncio.gather(
        collect_trending(players, trend_type),
        identity.resolve_league_id(username, league_name),
    )
    if not league_id:
        return create_error_response(
            f"Could not find league '{league_name}' for user '{username}'",
            ErrorType.NOT_FOUND
        )
    if trending is None:
        return create_error_response(
            f"Unable to fetch {TREND_LABELS[trend_type]} players at this time.",
            ErrorType.HTTP, {"trend_type": trend_type}
        )

    rosters = await identity.resolve_rosters(league_id)
    roster = find_roster_for_user(rosters or [], user_id)
    if roster is None:
        return create_error_response(
            f"No roster for '{username}' in league '{league_name}'",
            ErrorType.NOT_FOUND
        )

    on_roster = roster.all_player_ids()
    mine = [p for p in trending if p["player_id"] in on_roster]
    logger.debug(f"{len(mine)} of {len(trending)} trending players are on {username}'s roster")

    return create_success_response({
        "trend_type": trend_type,
        "league_name": league_name,
        "count": len(mine),
        **_split(mine),
    })
