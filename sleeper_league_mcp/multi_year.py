"""
Cross-season query engine.

A year expression picks seasons out of a league's history; a per-season
function is then run for each picked season, in order, and the results are
assembled into one report.

Year expression grammar:
    (absent)      every available season, newest first
    "2022-2024"   every season in the inclusive range, ascending
    "2022,2024"   the listed seasons in the given order
    "2023"        that season
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import ErrorType, create_error_response, create_success_response
from .identity import IdentityResolver
from .league_history import LeagueChainResolver
from .logging_config import log_with_context

logger = logging.getLogger(__name__)

PerSeasonFn = Callable[..., Awaitable[Dict[str, Any]]]


@dataclass
class YearSelection:
    requested: List[str]
    to_process: List[str]

    @property
    def missing(self) -> List[str]:
        return [season for season in self.requested if season not in self.to_process]


def parse_year_expression(expression: Optional[str], available: Iterable[str]) -> YearSelection:
    """
    Turn a year expression into requested and processable seasons.

    ``to_process`` is always a subset of both ``requested`` and ``available``.
    Numeric format is not checked here; a malformed range token raises
    ValueError and should have been rejected by input validation first.
    """
    available = [str(season) for season in available]
    available_set = set(available)

    if not expression or not expression.strip():
        return YearSelection(
            requested=list(available),
            to_process=sorted(available, key=int, reverse=True),
        )

    expression = expression.strip()

    if "-" in expression:
        start_token, end_token = expression.split("-", 1)
        start, end = int(start_token.strip()), int(end_token.strip())
        requested = [str(year) for year in range(start, end + 1)]
        return YearSelection(requested, [y for y in requested if y in available_set])

    if "," in expression:
        requested = [token.strip() for token in expression.split(",") if token.strip()]
        return YearSelection(requested, [y for y in requested if y in available_set])

    return YearSelection([expression], [expression] if expression in available_set else [])


async def dispatch_across_seasons(
    to_process: List[str],
    season_to_league_id: Mapping[str, str],
    per_season_fn: PerSeasonFn,
    *extra: Any,
) -> List[Dict[str, Any]]:
    """
    Run ``per_season_fn(league_id, season, *extra)`` for each season in order.

    Seasons run one after another and results keep the input order. A
    per-season function is expected to return a value describing its own
    failure; one that raises anyway is logged and recorded as an
    ``unexpected_error`` result for that season so the rest still run.
    """
    results = []
    for season in to_process:
        league_id = season_to_league_id[season]
        try:
            result = await per_season_fn(league_id, season, *extra)
        except Exception as e:
            logger.exception(f"Per-season analysis failed for season {season}")
            result = create_error_response(
                f"Analysis failed for season {season}: {e}",
                ErrorType.UNEXPECTED,
            )

        result.setdefault("season", season)
        log_with_context(
            logger, "debug", "Season processed",
            season=season, league_id=league_id,
            success=result.get("success"), no_data=result.get("no_data", False),
        )
        results.append(result)
    return results


async def process_league_data_by_year(
    identity: IdentityResolver,
    username: str,
    league_name: str,
    year: Optional[str],
    per_season_fn: PerSeasonFn,
    title: str,
    *extra: Any,
) -> Dict[str, Any]:
    """
    Resolve a league's history and run ``per_season_fn`` over the selected seasons.

    Returns:
        Success envelope with ``title``, ordered ``seasons`` results,
        ``missing_seasons`` and a ``note`` naming requested seasons with no
        data; or a not-found error when the user, the league or every
        requested season is unknown.
    """
    base = {"title": title, "seasons": []}

    user_id = await identity.resolve_user_id(username)
    if not user_id:
        return create_error_response(
            f"Could not find user '{username}'. Ensure the username is valid.",
            ErrorType.NOT_FOUND, base
        )

    history = await LeagueChainResolver(identity).fetch_league_history_map(username, league_name)
    if not history:
        return create_error_response(
            f"Could not find league '{league_name}' for user '{username}'",
            ErrorType.NOT_FOUND, base
        )

    available = sorted(history, key=int, reverse=True)
    selection = parse_year_expression(year, history.keys())
    if not selection.to_process:
        return create_error_response(
            f"No data available for year(s): {', '.join(selection.requested)}. "
            f"Available years: {', '.join(available)}",
            ErrorType.NOT_FOUND,
            {**base, "available_seasons": available},
        )

    season_to_league_id = {season: entry.league_id for season, entry in history.items()}
    results = await dispatch_across_seasons(
        selection.to_process, season_to_league_id, per_season_fn, *extra
    )

    missing = selection.missing
    return create_success_response({
        "title": title,
        "username": username,
        "league_name": league_name,
        "requested_seasons": selection.requested,
        "available_seasons": available,
        "seasons": results,
        "missing_seasons": missing,
        "note": f"No data found for year(s): {', '.join(missing)}" if missing else None,
    })
