"""
Playoff schedule, bracket and final placements.

Sleeper returns the winners bracket as a flat list of edges::

    {"r": round, "m": match id, "t1": roster id, "t2": roster id,
     "w": winner, "l": loser, "t1_from": {"w": m}, "t2_from": {"l": m},
     "p": placement decided by this game}

The bracket view keeps only the championship path; placement games for
third place and below are dropped.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from . import sleeper_tools
from .errors import (
    ErrorType, NoDataReason, create_error_response, create_no_data_response,
    create_success_response
)
from .identity import IdentityResolver, find_roster_by_id
from .league_history import fetch_league
from .models import (
    BracketNode, BracketSource, BracketTeam, LeagueSettings, LeagueStatus,
    NFLState, PlayoffSchedule, ResolvedRoster
)

logger = logging.getLogger(__name__)

UNKNOWN_TEAM = "Unknown team"
UNKNOWN_USER = "Unknown user"
ROSTER_NOT_FOUND = "Roster not found"

ROUND_TYPE_DESCRIPTIONS = {
    0: "One week per playoff round",
    1: "One week per round with two-week championship",
    2: "Two weeks per playoff round",
}


def describe_round_type(round_type: int) -> str:
    return ROUND_TYPE_DESCRIPTIONS.get(round_type, "Unknown playoff structure")


def build_playoff_schedule(settings: LeagueSettings) -> PlayoffSchedule:
    """Map playoff rounds to NFL weeks from the league settings."""
    if settings.playoff_teams <= 4:
        rounds = ["semifinals", "finals"]
    else:
        rounds = ["quarterfinals", "semifinals", "finals"]

    round_type = settings.playoff_round_type
    if round_type == 1:
        durations = [2 if r == "finals" else 1 for r in rounds]
    elif round_type == 2:
        durations = [2 for _ in rounds]
    else:
        durations = [1 for _ in rounds]

    round_to_weeks = {}
    week = settings.playoff_week_start
    for round_name, duration in zip(rounds, durations):
        round_to_weeks[round_name] = list(range(week, week + duration))
        week += duration

    return PlayoffSchedule(
        playoff_week_start=settings.playoff_week_start,
        playoff_teams=settings.playoff_teams,
        playoff_round_type=round_type,
        rounds=rounds,
        round_to_weeks=round_to_weeks,
        total_weeks=week - 1,
    )


def filter_championship_path(edges: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep round one, the title game, and advancement games that decide no lower place."""
    kept = []
    for edge in edges:
        placement = edge.get("p")
        fed_by_advancement = bool(edge.get("t1_from") or edge.get("t2_from"))
        if edge.get("r") == 1 or placement == 1:
            kept.append(edge)
        elif fed_by_advancement and placement in (None, 1):
            kept.append(edge)
    return kept


def _source(hint: Optional[Dict[str, Any]]) -> Optional[BracketSource]:
    if not hint:
        return None
    if "w" in hint:
        return BracketSource("winner", hint["w"])
    if "l" in hint:
        return BracketSource("loser", hint["l"])
    return None


def _team(roster_id, rosters: List[ResolvedRoster]) -> Optional[BracketTeam]:
    if roster_id is None:
        return None
    roster = find_roster_by_id(rosters, roster_id)
    if roster is None:
        logger.warning(f"Bracket references roster {roster_id} which is not in the league")
        return BracketTeam(roster_id, [UNKNOWN_TEAM])
    return BracketTeam(roster_id, roster.owner_names)


def _build_node(edge: Dict[str, Any], rosters: List[ResolvedRoster]) -> BracketNode:
    team1 = _team(edge.get("t1"), rosters)
    team2 = _team(edge.get("t2"), rosters)
    winner = loser = None

    winner_id = edge.get("w")
    if winner_id is not None:
        if team1 is None or team2 is None:
            logger.warning(
                f"Bracket match {edge.get('m')} has winner {winner_id} but an undetermined team; "
                f"treating as not completed"
            )
        elif winner_id == team1.roster_id:
            winner, loser = team1, team2
        elif winner_id == team2.roster_id:
            winner, loser = team2, team1
        else:
            logger.warning(
                f"Bracket match {edge.get('m')} has winner {winner_id} which is neither team; "
                f"treating as not completed"
            )

    return BracketNode(
        round=edge.get("r"),
        match_id=edge.get("m"),
        team1=team1,
        team2=team2,
        winner=winner,
        loser=loser,
        team1_from=_source(edge.get("t1_from")) if team1 is None else None,
        team2_from=_source(edge.get("t2_from")) if team2 is None else None,
        placement=edge.get("p"),
        is_completed=winner is not None,
    )


def build_bracket(edges: List[Dict[str, Any]], rosters: List[ResolvedRoster], playoff_status: str) -> Dict[str, Any]:
    """
    Render the championship path as nodes grouped by round.

    Returns:
        ``{"bracket_by_round": {round: [node, ...]}, "total_rounds", "playoff_status"}``
        with rounds ascending and nodes sorted by match id.
    """
    by_round: Dict[int, List[Dict[str, Any]]] = defaultdict(list)
    for edge in filter_championship_path(edges):
        by_round[edge.get("r")].append(edge)

    bracket_by_round = {}
    for round_number in sorted(by_round):
        round_edges = sorted(by_round[round_number], key=lambda e: e.get("m"))
        bracket_by_round[round_number] = [_build_node(e, rosters).to_dict() for e in round_edges]

    return {
        "bracket_by_round": bracket_by_round,
        "total_rounds": len(bracket_by_round),
        "playoff_status": playoff_status,
    }


async def fetch_league_playoff_bracket(identity: IdentityResolver, league_id: str, season) -> dict:
    """Playoff bracket for one season of a league, with its progress status."""
    season = str(season)
    bracket_response, rosters, league = await asyncio.gather(
        sleeper_tools.get_winners_bracket(league_id),
        identity.resolve_rosters(league_id),
        fetch_league(league_id),
    )
    if not bracket_response.get("success") or rosters is None or league is None:
        return create_error_response(
            f"Could not fetch playoff bracket for season {season}",
            ErrorType.NOT_FOUND, {"season": season}
        )

    edges = bracket_response.get("bracket") or []
    if LeagueStatus.parse(league.get("status")) is LeagueStatus.COMPLETE:
        return create_success_response({"season": season, **build_bracket(edges, rosters, "completed")})

    state_response = await sleeper_tools.get_nfl_state()
    raw_state = state_response.get("nfl_state") if state_response.get("success") else None
    if not raw_state:
        return create_error_response(
            f"Could not determine playoff status for season {season}",
            state_response.get("error_type") or ErrorType.UNEXPECTED, {"season": season}
        )

    state = NFLState.from_dict(raw_state)
    schedule = build_playoff_schedule(LeagueSettings.from_dict(league.get("settings")))
    if state.current_week < schedule.playoff_week_start:
        return create_no_data_response(
            NoDataReason.PLAYOFFS_NOT_STARTED,
            f"Playoffs start in week {schedule.playoff_week_start}",
            {"season": season, "bracket_by_round": {}, "playoff_status": "not_started"}
        )

    return create_success_response({"season": season, **build_bracket(edges, rosters, "in_progress")})


async def fetch_league_playoff_history(identity: IdentityResolver, league_id: str, season) -> dict:
    """
    Final placements for one completed season.

    The last bracket round's placement games give the winner place ``p`` and
    the loser ``p + 1``; every other roster missed the playoffs.
    """
    season = str(season)
    league = await fetch_league(league_id)
    if league is None:
        return create_error_response(
            f"Could not fetch league data for season {season}",
            ErrorType.NOT_FOUND, {"season": season}
        )

    league_name = league.get("name") or ""
    if LeagueStatus.parse(league.get("status")) is not LeagueStatus.COMPLETE:
        return create_no_data_response(
            NoDataReason.SEASON_INCOMPLETE,
            "Season is currently in progress - playoff data not yet available",
            {"season": season, "league_name": league_name, "placements": {},
             "missed_playoffs": [], "is_incomplete": True}
        )

    bracket_response = await sleeper_tools.get_winners_bracket(league_id)
    if not bracket_response.get("success"):
        return create_error_response(
            f"Could not fetch playoff data for season {season}",
            bracket_response.get("error_type") or ErrorType.UNEXPECTED, {"season": season}
        )

    edges = bracket_response.get("bracket") or []
    standings = []
    if edges:
        last_round = max(edge.get("r") or 0 for edge in edges)
        for edge in sorted((e for e in edges if e.get("r") == last_round), key=lambda e: e.get("p") or 0):
            placement = edge.get("p")
            if placement:
                standings.append((placement, edge.get("w")))
                standings.append((placement + 1, edge.get("l")))

    rosters = await identity.resolve_rosters(league_id)
    if not rosters or not standings:
        return create_no_data_response(
            NoDataReason.NOT_APPLICABLE,
            "No playoff data available",
            {"season": season, "league_name": league_name, "placements": {},
             "missed_playoffs": [], "is_incomplete": False}
        )

    placements: Dict[str, List[str]] = {}
    for placement, roster_id in standings:
        roster = find_roster_by_id(rosters, roster_id)
        if roster is None:
            logger.warning(f"Placement {placement} references missing roster {roster_id} in {season}")
            placements[str(placement)] = [ROSTER_NOT_FOUND]
        else:
            placements[str(placement)] = roster.owner_names or [UNKNOWN_USER]

    placed = {roster_id for _, roster_id in standings}
    total_rosters = int(league.get("total_rosters") or len(rosters))
    missed_playoffs = []
    for roster_id in range(1, total_rosters + 1):
        if roster_id in placed:
            continue
        roster = find_roster_by_id(rosters, roster_id)
        if roster is not None:
            missed_playoffs.extend(roster.owner_names)

    return create_success_response({
        "season": season,
        "league_name": league_name,
        "champion": placements.get("1"),
        "placements": placements,
        "missed_playoffs": missed_playoffs,
        "is_incomplete": False,
    })


async def fetch_playoff_schedule(league_id: str, season) -> dict:
    season = str(season)
    league = await fetch_league(league_id)
    if league is None:
        return create_error_response(
            f"Could not fetch league data for season {season}",
            ErrorType.NOT_FOUND, {"season": season}
        )

    schedule = build_playoff_schedule(LeagueSettings.from_dict(league.get("settings")))
    return create_success_response({
        "season": season,
        "round_type_description": describe_round_type(schedule.playoff_round_type),
        **schedule.to_dict(),
    })
