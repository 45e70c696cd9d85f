"""Tool registry for the Sleeper League MCP Server.

Every MCP tool is a plain async function defined here and registered with
the FastMCP server. Tools validate their input, then delegate to the
analysis modules; multi-season tools go through
``multi_year.process_league_data_by_year``.
"""
from __future__ import annotations
from functools import partial
from typing import Optional, List, Callable

from .metrics import timing_decorator
from . import sleeper_tools
from .config import validate_string_input, LIMITS, SAFE_PATTERNS
from .database import PlayerDatabase
from .errors import create_error_response, create_success_response, handle_validation_error, ErrorType
from .identity import IdentityCache, IdentityResolver
from .league_settings_tools import (
    SCORING_CATEGORIES, process_league_settings, process_roster_settings, process_scoring_settings
)
from .lineup_analysis import fetch_bench_vs_starter_analysis
from .matchup_tools import (
    MatchupResolver, fetch_matchup_bench, fetch_matchup_starters, fetch_matchup_summary,
    fetch_season_head_to_head
)
from .models import NFLState
from .multi_year import process_league_data_by_year
from .param_validator import validate_params, format_errors
from .player_directory import PlayerDirectory
from .playoff_tools import fetch_league_playoff_bracket, fetch_league_playoff_history, fetch_playoff_schedule
from .trending_tools import TREND_TYPES, fetch_my_trending_roster_players, fetch_trending_players

# Shared resources - initialized by the server
_identity: IdentityResolver = IdentityResolver(IdentityCache())
_players: PlayerDirectory | None = None


def initialize_shared(db: PlayerDatabase, ttl_hours: int = 24) -> PlayerDirectory:
    """Attach the player store and reset the identity cache for a new process."""
    global _players, _identity
    _players = PlayerDirectory(db, ttl_hours)
    _identity = IdentityResolver(IdentityCache())
    return _players


def get_player_directory() -> PlayerDirectory:
    if _players is None:
        raise RuntimeError("Player directory not initialized; call initialize_shared() first")
    return _players


def _matchup_resolver() -> MatchupResolver:
    return MatchupResolver(_identity, get_player_directory())


def get_all_tools() -> List[Callable]:
    """Get list of all tool functions to register with FastMCP server."""
    return [
        # NFL state and waiver trends
        get_current_nfl_week,
        get_trending_players,
        get_user_roster_trending_players,

        # League discovery and configuration
        get_league_names_for_user,
        get_league_settings,
        get_league_playoff_schedule,
        get_league_scoring_settings,
        get_league_roster_settings,

        # Weekly matchups
        get_matchup_details,
        get_matchup_starters,
        get_matchup_bench,
        get_bench_starter_analysis,

        # History
        get_league_playoff_history,
        get_season_head_to_head,
        get_league_playoff_bracket,

        # Maintenance
        refresh_player_directory,
    ]


# =============================================================================
# INPUT VALIDATION
# =============================================================================

_YEAR_SCHEMA = {
    "year": {"type": str, "nullable": True, "pattern": SAFE_PATTERNS["year_expression"]},
}

_WEEK_SCHEMA = {
    "week": {"type": int, "required": True, "min": LIMITS["week_min"], "max": LIMITS["week_max"]},
    **_YEAR_SCHEMA,
}


def _validate_user_league(username: str, league_name: str) -> tuple[str, str]:
    username = validate_string_input(username, 'username')
    league_name = validate_string_input(league_name, 'general')
    return username, league_name


def _validate(schema: dict, **values) -> dict:
    validated, errors = validate_params(schema, values)
    if errors:
        raise ValueError(format_errors(errors))
    return validated


def _user_not_found(username: str) -> dict:
    return create_error_response(
        f"Could not find user '{username}'. Usernames are case sensitive; ask the user to confirm it.",
        ErrorType.NOT_FOUND
    )


# =============================================================================
# NFL STATE AND TRENDS
# =============================================================================

@timing_decorator("get_current_nfl_week", tool_type="nfl_state")
async def get_current_nfl_week() -> dict:
    """Get the current NFL season and week from Sleeper.

    Outside the regular season a message explains that no week is in play.

    Returns: {season, week, season_type, message?, success, error?}
    Example: get_current_nfl_week()
    """
    response = await sleeper_tools.get_nfl_state()
    if not response.get("success") or not response.get("nfl_state"):
        return response

    state = NFLState.from_dict(response["nfl_state"])
    result = {"season": state.current_season, "week": state.current_week, "season_type": state.season_type}
    if state.season_type != "regular":
        result["message"] = (
            f"The NFL is currently in the {state.season_type} period; "
            f"there is no active regular season week."
        )
    return create_success_response(result)


@timing_decorator("get_trending_players", tool_type="trending")
async def get_trending_players(trending_type: str = "add") -> dict:
    """Get the top trending players league-wide by waiver adds, drops or both.

    Parameters:
        trending_type (str, default "add"): One of "add", "drop", "all".
    Returns: {trend_type, most_added: [...], most_dropped: [...], success, error?}
    Each player: {player_id, name, team, position, player_trend ("+N"/"-N"), trend_rank}
    Example: get_trending_players(trending_type="all")
    """
    try:
        values = _validate({"trending_type": {"type": str, "required": True, "choices": list(TREND_TYPES)}},
                           trending_type=trending_type)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await fetch_trending_players(get_player_directory(), values["trending_type"])


@timing_decorator("get_user_roster_trending_players", tool_type="trending")
async def get_user_roster_trending_players(username: str, league_name: str, trending_type: str = "all") -> dict:
    """Get the trending players that are on the user's roster in a league this season.

    Parameters:
        username (str, required): Sleeper username (case sensitive).
        league_name (str, required): League name as shown in Sleeper.
        trending_type (str, default "all"): One of "add", "drop", "all".
    Returns: {trend_type, league_name, count, most_added, most_dropped, success, error?}
    """
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate({"trending_type": {"type": str, "required": True, "choices": list(TREND_TYPES)}},
                           trending_type=trending_type)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await fetch_my_trending_roster_players(
        _identity, get_player_directory(), username, league_name, values["trending_type"]
    )


# =============================================================================
# LEAGUE DISCOVERY AND CONFIGURATION
# =============================================================================

@timing_decorator("get_league_names_for_user", tool_type="league")
async def get_league_names_for_user(username: str) -> dict:
    """List the names of every league the user is in for the current season.

    Call this before league-specific tools to confirm the exact league name.
    When a name the user mentions does not match, pick the closest one from
    this list or tell the user which names are valid.

    Parameters:
        username (str, required): Sleeper username (case sensitive).
    Returns: {username, season, league_names: [...], count, success, error?}
    """
    try:
        username = validate_string_input(username, 'username')
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")

    season = await _identity.current_season()
    leagues = await _identity.list_leagues(username, season)
    if leagues is None:
        if not await _identity.resolve_user_id(username):
            return _user_not_found(username)
        return create_error_response("Unable to fetch the most recent leagues. Try again.", ErrorType.HTTP)

    names = [league.get("name") for league in leagues]
    return create_success_response({
        "username": username,
        "season": season,
        "league_names": names,
        "count": len(names),
    })


@timing_decorator("get_league_settings", tool_type="league")
async def get_league_settings(username: str, league_name: str, year: Optional[str] = None) -> dict:
    """Get general, waiver and taxi settings for a league, per season.

    Parameters:
        username (str, required): Sleeper username (case sensitive).
        league_name (str, required): League name.
        year (str, optional): "2023", "2021-2023" or "2021,2023". Omit for every season.
    Returns: {title, seasons: [{season, league_type, general, waivers, taxi}], missing_seasons, note, success}
    """
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate(_YEAR_SCHEMA, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        process_league_settings, f"League Settings for {league_name}"
    )


@timing_decorator("get_league_playoff_schedule", tool_type="league")
async def get_league_playoff_schedule(username: str, league_name: str, year: Optional[str] = None) -> dict:
    """Get the playoff format and the NFL weeks of each playoff round, per season.

    Returns: {title, seasons: [{season, playoff_teams, playoff_week_start, rounds,
              round_to_weeks, total_weeks, round_type_description}], success}
    """
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate(_YEAR_SCHEMA, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        fetch_playoff_schedule, f"Playoff Schedule for {league_name}"
    )


@timing_decorator("get_league_scoring_settings", tool_type="league")
async def get_league_scoring_settings(
    username: str,
    league_name: str,
    category: str = "all",
    year: Optional[str] = None
) -> dict:
    """Get the league's scoring values, grouped by category, per season.

    Parameters:
        category (str, default "all"): "offensive", "defensive", "kicking" or "all".
            Defensive and kicking scoring are reported as not applicable for
            leagues without a DEF or K roster slot.
    Returns: {title, seasons: [{season, category, league_type, scoring: {...}}], success}
    """
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate({
            "category": {"type": str, "required": True, "choices": list(SCORING_CATEGORIES)},
            **_YEAR_SCHEMA,
        }, category=category, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        process_scoring_settings, f"Scoring Settings for {league_name}", values["category"]
    )


@timing_decorator("get_league_roster_settings", tool_type="league")
async def get_league_roster_settings(username: str, league_name: str, year: Optional[str] = None) -> dict:
    """Get the roster slot counts (QB, RB, FLEX, BN, ...) per season."""
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate(_YEAR_SCHEMA, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        process_roster_settings, f"Roster Settings for {league_name}"
    )


# =============================================================================
# WEEKLY MATCHUPS
# =============================================================================

async def _run_week_tool(per_season_fn, title: str, username: str, league_name: str, week, year) -> dict:
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate(_WEEK_SCHEMA, week=week, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")

    user_id = await _identity.resolve_user_id(username)
    if not user_id:
        return _user_not_found(username)

    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        partial(per_season_fn, _matchup_resolver()),
        title.format(week=values["week"], league_name=league_name),
        values["week"], user_id
    )


@timing_decorator("get_matchup_details", tool_type="matchup")
async def get_matchup_details(username: str, league_name: str, week: int, year: Optional[str] = None) -> dict:
    """Get the user's matchup result for a week: both scores and, once completed, the winner.

    Parameters:
        username (str, required): Sleeper username (case sensitive).
        league_name (str, required): League name.
        week (int, required, 1-18): League week.
        year (str, optional): Year expression; omit for every season.
    Returns: {title, seasons: [{season, week, status, user_team, opponent_team, winner}], success}
    Status is "completed", "in_progress" or "upcoming"; winner is owner names or "tie".
    """
    return await _run_week_tool(
        fetch_matchup_summary, "Week {week} Matchup in {league_name}", username, league_name, week, year
    )


@timing_decorator("get_matchup_starters", tool_type="matchup")
async def get_matchup_starters(username: str, league_name: str, week: int, year: Optional[str] = None) -> dict:
    """Get both teams' starters for a week, with slot, player detail and points."""
    return await _run_week_tool(
        fetch_matchup_starters, "Week {week} Starters in {league_name}", username, league_name, week, year
    )


@timing_decorator("get_matchup_bench", tool_type="matchup")
async def get_matchup_bench(username: str, league_name: str, week: int, year: Optional[str] = None) -> dict:
    """Get both teams' bench players for a week and the points left on each bench."""
    return await _run_week_tool(
        fetch_matchup_bench, "Week {week} Bench in {league_name}", username, league_name, week, year
    )


@timing_decorator("get_bench_starter_analysis", tool_type="matchup")
async def get_bench_starter_analysis(username: str, league_name: str, week: int, year: Optional[str] = None) -> dict:
    """Compare bench players with the lowest-scoring starter for both teams in a week.

    Returns per team the worst starter, bench players who outscored it,
    missed points and whether the lineup was optimal, plus a summary with
    whether the user's missed points could have changed the result.
    Slot eligibility is not considered.
    """
    return await _run_week_tool(
        fetch_bench_vs_starter_analysis, "Week {week} Bench vs Starters in {league_name}",
        username, league_name, week, year
    )


# =============================================================================
# HISTORY
# =============================================================================

@timing_decorator("get_league_playoff_history", tool_type="history")
async def get_league_playoff_history(username: str, league_name: str, year: Optional[str] = None) -> dict:
    """Get final playoff placements and teams that missed the playoffs, per season.

    Returns: {title, seasons: [{season, league_name, champion, placements: {"1": [...], ...},
              missed_playoffs: [...], is_incomplete}], success}
    Seasons still in progress are reported with no_data and reason "season_incomplete".
    """
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate(_YEAR_SCHEMA, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        partial(fetch_league_playoff_history, _identity), f"Playoff History for {league_name}"
    )


@timing_decorator("get_season_head_to_head", tool_type="history")
async def get_season_head_to_head(
    username: str,
    league_name: str,
    opponent_username: str,
    year: Optional[str] = None
) -> dict:
    """Get every game between the user and an opponent, with W-L-T record and point totals, per season.

    Parameters:
        opponent_username (str, required): The opponent's Sleeper username.
    Returns: {title, seasons: [{season, record, wins, losses, ties, user_total_points,
              opponent_total_points, games: [{week, user_score, opponent_score}]}], success}
    """
    try:
        username, league_name = _validate_user_league(username, league_name)
        opponent_username = validate_string_input(opponent_username, 'username')
        values = _validate(_YEAR_SCHEMA, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")

    user_id = await _identity.resolve_user_id(username)
    if not user_id:
        return _user_not_found(username)
    opponent_id = await _identity.resolve_user_id(opponent_username)
    if not opponent_id:
        return _user_not_found(opponent_username)

    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        partial(fetch_season_head_to_head, _matchup_resolver()),
        f"Season Head-to-Head: {username} vs {opponent_username}",
        user_id, opponent_id
    )


@timing_decorator("get_league_playoff_bracket", tool_type="history")
async def get_league_playoff_bracket(username: str, league_name: str, year: Optional[str] = None) -> dict:
    """Get the playoff bracket: championship path matchups by round, winners and progression.

    Undecided slots carry a hint such as "winner of game 1".
    Returns: {title, seasons: [{season, bracket_by_round: {round: [...]}, total_rounds,
              playoff_status ("completed" | "in_progress" | "not_started")}], success}
    """
    try:
        username, league_name = _validate_user_league(username, league_name)
        values = _validate(_YEAR_SCHEMA, year=year)
    except ValueError as e:
        return handle_validation_error(f"Invalid input: {e}")
    return await process_league_data_by_year(
        _identity, username, league_name, values["year"],
        partial(fetch_league_playoff_bracket, _identity), f"Playoff Bracket for {league_name}"
    )


# =============================================================================
# MAINTENANCE
# =============================================================================

@timing_decorator("refresh_player_directory", tool_type="maintenance")
async def refresh_player_directory(force: bool = False) -> dict:
    """Reload the Sleeper player directory used for player names and positions.

    Parameters:
        force (bool, default False): Refresh even when the stored copy is recent.
    Returns: {refreshed, player_count, last_updated, success, error?}
    """
    return await get_player_directory().ensure_loaded(force=bool(force))
