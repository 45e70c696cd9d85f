"""
Bench-versus-starter lineup analysis.

Compares each bench player with the lowest-scoring starter. This is a
greedy single-swap heuristic: it ignores slot eligibility, so a bench QB
can count as outperforming a starting RB.
"""

import logging

from .errors import create_success_response
from .matchup_tools import MatchupResolver, matchup_not_found_response, upcoming_response
from .models import LineupAnalysis, MatchupSide, MatchupStatus

logger = logging.getLogger(__name__)


def analyze_lineup(side: MatchupSide) -> LineupAnalysis:
    """Find bench players who outscored the worst starter and the points they left behind."""
    starters = sorted(side.starters, key=lambda p: p.points)
    bench = sorted(side.bench, key=lambda p: p.points, reverse=True)

    if not starters:
        return LineupAnalysis(
            starters=[],
            bench=bench,
            worst_starter=None,
            outperforming_bench=[],
            missed_points=0.0,
            optimal_choices=True,
        )

    worst = starters[0]
    outperforming = [p for p in bench if p.points > worst.points]
    missed = sum(p.points - worst.points for p in outperforming)

    return LineupAnalysis(
        starters=starters,
        bench=bench,
        worst_starter=worst,
        outperforming_bench=outperforming,
        missed_points=missed,
        optimal_choices=not outperforming,
    )


def could_have_changed_outcome(side_points: float, opponent_points: float, analysis: LineupAnalysis) -> bool:
    """Whether the side's own missed points alone could have flipped the result."""
    missed = analysis.missed_points
    if side_points < opponent_points:
        return side_points + missed > opponent_points
    if side_points > opponent_points:
        return side_points - missed < opponent_points
    return False


def _team_block(owners, analysis: LineupAnalysis) -> dict:
    return {
        "owners": owners,
        "analysis": analysis.to_dict(),
        "has_missed_opportunities": bool(analysis.outperforming_bench),
    }


async def fetch_bench_vs_starter_analysis(
    resolver: MatchupResolver,
    league_id: str,
    season,
    week: int,
    user_id: str,
) -> dict:
    details = await resolver.resolve_matchup(league_id, week, user_id, season)
    if details is None:
        return matchup_not_found_response(season, week)
    if details.status is MatchupStatus.UPCOMING:
        return upcoming_response(details)

    user_analysis = analyze_lineup(details.user_side)
    opponent_analysis = analyze_lineup(details.opponent_side)
    user_points = details.user_side.total_points
    opponent_points = details.opponent_side.total_points

    return create_success_response({
        "season": details.season,
        "week": week,
        "status": details.status.value,
        "user_team": _team_block(details.user_owners, user_analysis),
        "opponent_team": _team_block(details.opponent_owners, opponent_analysis),
        "summary": {
            "user_made_optimal_choices": user_analysis.optimal_choices,
            "opponent_made_optimal_choices": opponent_analysis.optimal_choices,
            "user_missed_points": round(user_analysis.missed_points, 2),
            "opponent_missed_points": round(opponent_analysis.missed_points, 2),
            "could_have_changed_outcome": could_have_changed_outcome(
                user_points, opponent_points, user_analysis
            ),
        },
    })
