"""
Weekly matchup resolution and the reports built on it.

A Sleeper week is a flat list of scoring entries; two entries sharing a
``matchup_id`` are opponents. ``MatchupResolver`` finds the user's entry and
its pair, attaches owner names and player detail, and classifies the week as
completed, in progress or upcoming relative to the NFL state.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from . import sleeper_tools
from .errors import (
    ErrorType, NoDataReason, create_error_response, create_no_data_response,
    create_success_response
)
from .identity import IdentityResolver, find_roster_by_id, find_roster_for_user
from .models import (
    LeagueSettings, MatchupDetails, MatchupSide, MatchupStatus, NFLState,
    HeadToHeadGame, PlayerSlot, ResolvedRoster
)
from .player_directory import PlayerDirectory
from .playoff_tools import build_playoff_schedule

logger = logging.getLogger(__name__)

NON_STARTING_SLOTS = frozenset({"BN", "IR", "TAXI"})
BENCH_SLOT = "BN"


@dataclass
class LeagueContext:
    """League-level lookups shared by every week of one league."""
    league_id: str
    rosters: Optional[List[ResolvedRoster]]
    league: Optional[dict]
    nfl_state: Optional[NFLState]

    @property
    def roster_positions(self) -> List[str]:
        return list((self.league or {}).get("roster_positions") or [])

    @property
    def settings(self) -> LeagueSettings:
        return LeagueSettings.from_dict((self.league or {}).get("settings"))


def derive_matchup_status(season, week: int, current_season, current_week: int) -> MatchupStatus:
    """
    Classify a league week against the current NFL state.

    Seasons compare numerically; a different season decides on its own.
    """
    season, current_season = int(season), int(current_season)
    if season < current_season:
        return MatchupStatus.COMPLETED
    if season > current_season:
        return MatchupStatus.UPCOMING
    if week < current_week:
        return MatchupStatus.COMPLETED
    if week == current_week:
        return MatchupStatus.IN_PROGRESS
    return MatchupStatus.UPCOMING


def starting_slot_labels(roster_positions: List[str], starter_count: int) -> List[str]:
    labels = [slot for slot in roster_positions if slot not in NON_STARTING_SLOTS]
    return labels[:starter_count]


def _points(value) -> float:
    return float(value) if value is not None else 0.0


def build_matchup_side(entry: Dict[str, Any], roster_positions: List[str], players: PlayerDirectory) -> MatchupSide:
    """Enrich one scoring entry with slot labels, player detail and per-player points."""
    starters = [str(pid) for pid in entry.get("starters") or []]
    starter_set = set(starters)
    players_points = entry.get("players_points") or {}
    starters_points = entry.get("starters_points") or []
    labels = starting_slot_labels(roster_positions, len(starters))
    players.prefetch(starters + [str(pid) for pid in entry.get("players") or []])

    def slot(player_id: str, label: str, fallback_points=None) -> PlayerSlot:
        detail = players.describe(player_id)
        points = players_points.get(player_id, fallback_points)
        return PlayerSlot(
            player_id=player_id,
            name=detail["name"],
            team=detail["team"],
            position=detail["position"],
            roster_slot=label,
            points=_points(points),
        )

    starter_slots = []
    for index, player_id in enumerate(starters):
        label = labels[index] if index < len(labels) else BENCH_SLOT
        fallback = starters_points[index] if index < len(starters_points) else None
        starter_slots.append(slot(player_id, label, fallback))

    bench_slots = [
        slot(str(pid), BENCH_SLOT)
        for pid in entry.get("players") or []
        if str(pid) not in starter_set
    ]

    return MatchupSide(
        roster_id=entry.get("roster_id"),
        matchup_id=entry.get("matchup_id"),
        total_points=_points(entry.get("points")),
        starters=starter_slots,
        bench=bench_slots,
    )


class MatchupResolver:
    """Resolve a user's head-to-head matchup for a league week."""

    def __init__(self, identity: IdentityResolver, players: PlayerDirectory):
        self.identity = identity
        self.players = players

    async def load_context(self, league_id: str) -> LeagueContext:
        rosters, league_response, state_response = await asyncio.gather(
            self.identity.resolve_rosters(league_id),
            sleeper_tools.get_league(league_id),
            sleeper_tools.get_nfl_state(),
        )
        league = league_response.get("league") if league_response.get("success") else None
        raw_state = state_response.get("nfl_state") if state_response.get("success") else None
        return LeagueContext(
            league_id=league_id,
            rosters=rosters,
            league=league,
            nfl_state=NFLState.from_dict(raw_state) if raw_state else None,
        )

    async def resolve_matchup(
        self,
        league_id: str,
        week: int,
        user_id: str,
        season,
        context: Optional[LeagueContext] = None,
    ) -> Optional[MatchupDetails]:
        """
        The user's matchup for ``week``, or None when any piece is missing
        (matchups, rosters, the user's roster or entry, the opponent entry,
        league metadata, NFL state).
        """
        if context is None:
            response, context = await asyncio.gather(
                sleeper_tools.get_matchups(league_id, week),
                self.load_context(league_id),
            )
        else:
            response = await sleeper_tools.get_matchups(league_id, week)
        entries = response.get("matchups") if response.get("success") else None
        if not entries:
            return None

        if not context.rosters or context.league is None or context.nfl_state is None:
            return None

        user_roster = find_roster_for_user(context.rosters, user_id)
        if user_roster is None:
            return None

        user_entry = next((e for e in entries if e.get("roster_id") == user_roster.roster_id), None)
        if user_entry is None or user_entry.get("matchup_id") is None:
            return None

        opponent_entry = next(
            (e for e in entries
             if e.get("matchup_id") == user_entry["matchup_id"]
             and e.get("roster_id") != user_roster.roster_id),
            None
        )
        if opponent_entry is None:
            return None

        opponent_roster = find_roster_by_id(context.rosters, opponent_entry.get("roster_id"))
        if opponent_roster is None:
            return None

        state = context.nfl_state
        positions = context.roster_positions
        return MatchupDetails(
            user_side=build_matchup_side(user_entry, positions, self.players),
            opponent_side=build_matchup_side(opponent_entry, positions, self.players),
            user_owners=user_roster.owner_names,
            opponent_owners=opponent_roster.owner_names,
            status=derive_matchup_status(season, week, state.current_season, state.current_week),
            week=week,
            season=str(season),
        )


def matchup_not_found_response(season, week: int) -> dict:
    return create_error_response(
        f"No matchup found for week {week} of {season}",
        ErrorType.NOT_FOUND,
        {"season": str(season), "week": week}
    )


def upcoming_response(details: MatchupDetails) -> dict:
    return create_no_data_response(
        NoDataReason.UPCOMING,
        f"Week {details.week} of {details.season} has not been played yet",
        {"season": details.season, "week": details.week, "status": details.status.value}
    )


async def fetch_matchup_summary(resolver: MatchupResolver, league_id: str, season, week: int, user_id: str) -> dict:
    """Scores for both teams and, once the week is completed, the winner."""
    details = await resolver.resolve_matchup(league_id, week, user_id, season)
    if details is None:
        return matchup_not_found_response(season, week)

    user_score = details.user_side.total_points
    opponent_score = details.opponent_side.total_points
    winner = None
    if details.status is MatchupStatus.COMPLETED:
        if user_score > opponent_score:
            winner = details.user_owners
        elif opponent_score > user_score:
            winner = details.opponent_owners
        else:
            winner = "tie"

    return create_success_response({
        "season": details.season,
        "week": week,
        "status": details.status.value,
        "matchup_id": details.user_side.matchup_id,
        "user_team": {"owners": details.user_owners, "score": user_score},
        "opponent_team": {"owners": details.opponent_owners, "score": opponent_score},
        "winner": winner,
    })


async def fetch_matchup_starters(resolver: MatchupResolver, league_id: str, season, week: int, user_id: str) -> dict:
    details = await resolver.resolve_matchup(league_id, week, user_id, season)
    if details is None:
        return matchup_not_found_response(season, week)
    if details.status is MatchupStatus.UPCOMING:
        return upcoming_response(details)

    def team(owners, side: MatchupSide) -> dict:
        return {
            "owners": owners,
            "total_points": side.total_points,
            "starters": [p.to_dict() for p in side.starters],
        }

    return create_success_response({
        "season": details.season,
        "week": week,
        "status": details.status.value,
        "user_team": team(details.user_owners, details.user_side),
        "opponent_team": team(details.opponent_owners, details.opponent_side),
    })


async def fetch_matchup_bench(resolver: MatchupResolver, league_id: str, season, week: int, user_id: str) -> dict:
    details = await resolver.resolve_matchup(league_id, week, user_id, season)
    if details is None:
        return matchup_not_found_response(season, week)
    if details.status is MatchupStatus.UPCOMING:
        return upcoming_response(details)

    def team(owners, side: MatchupSide) -> dict:
        return {
            "owners": owners,
            "bench_points": round(side.bench_points, 2),
            "bench": [p.to_dict() for p in side.bench],
        }

    return create_success_response({
        "season": details.season,
        "week": week,
        "status": details.status.value,
        "user_team": team(details.user_owners, details.user_side),
        "opponent_team": team(details.opponent_owners, details.opponent_side),
    })


def summarize_head_to_head(games: List[HeadToHeadGame]) -> Dict[str, Any]:
    """W-L-T record and point totals over a list of games."""
    wins = sum(1 for g in games if g.user_score > g.opponent_score)
    losses = sum(1 for g in games if g.user_score < g.opponent_score)
    ties = len(games) - wins - losses
    return {
        "record": f"{wins}-{losses}-{ties}",
        "wins": wins,
        "losses": losses,
        "ties": ties,
        "user_total_points": round(sum(g.user_score for g in games), 2),
        "opponent_total_points": round(sum(g.opponent_score for g in games), 2),
        "games": [g.to_dict() for g in games],
    }


async def fetch_season_head_to_head(
    resolver: MatchupResolver,
    league_id: str,
    season,
    user_id: str,
    opponent_user_id: str,
) -> dict:
    """
    Every game between two users in one season of a league.

    Weeks run through the last playoff week, or through last week when
    ``season`` is the current season.
    """
    context = await resolver.load_context(league_id)
    if not context.rosters or context.league is None or context.nfl_state is None:
        return create_error_response(
            f"League data unavailable for season {season}",
            ErrorType.NOT_FOUND, {"season": str(season)}
        )

    opponent_roster = find_roster_for_user(context.rosters, opponent_user_id)
    if opponent_roster is None or find_roster_for_user(context.rosters, user_id) is None:
        return create_no_data_response(
            NoDataReason.NEVER_PLAYED,
            f"Both users were not in this league in {season}",
            {"season": str(season)}
        )

    state = context.nfl_state
    if str(season) == state.current_season:
        weeks = state.current_week - 1 if state.current_week > 1 else 0
    else:
        weeks = build_playoff_schedule(context.settings).total_weeks

    games = []
    for week in range(1, weeks + 1):
        details = await resolver.resolve_matchup(league_id, week, user_id, season, context)
        if details is None:
            continue
        if details.opponent_side.roster_id == opponent_roster.roster_id:
            games.append(HeadToHeadGame(
                week=week,
                user_score=details.user_side.total_points,
                opponent_score=details.opponent_side.total_points,
            ))

    if not games:
        return create_no_data_response(
            NoDataReason.NEVER_PLAYED,
            f"No games between these users in {season}",
            {"season": str(season)}
        )

    logger.debug(f"Found {len(games)} head-to-head game(s) in {season} for league {league_id}")
    return create_success_response({
        "season": str(season),
        "opponent_owners": opponent_roster.owner_names,
        **summarize_head_to_head(games),
    })
