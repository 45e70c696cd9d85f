"""
League configuration reports: general settings, scoring and roster slots.

Each ``process_*`` function handles one season of a league and is run
across seasons by ``multi_year.process_league_data_by_year``.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Tuple

from .errors import (
    ErrorType, NoDataReason, create_error_response, create_no_data_response,
    create_success_response
)
from .league_history import fetch_league
from .models import LeagueSettings, ScoringSettings

logger = logging.getLogger(__name__)

SCORING_CATEGORIES = ("offensive", "defensive", "kicking", "all")

WAIVER_TYPES = {
    0: ("Rolling Waivers",
        "Continuous and last person to waiver a player is placed last into waiver priority"),
    1: ("Reverse Standings",
        "Lower placed teams in the current standings will get highest waiver priority "
        "at the beginning of each week."),
    2: ("FAAB",
        "Each manager is given a budget to bid on unclaimed players that are on waivers."),
}

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

POSITION_LABELS = {
    "QB": "Quarterback",
    "RB": "Running back",
    "WR": "Wide Receiver",
    "TE": "Tight End",
    "FLEX": "Flex",
    "SUPER_FLEX": "Super Flex",
    "DEF": "Defense",
    "BN": "Bench",
}

# (label, ScoringSettings field) per group
OFFENSIVE_SCORING: Dict[str, List[Tuple[str, str]]] = {
    "passing": [
        ("Passing yards (per yard)", "pass_yd"),
        ("Passing TD", "pass_td"),
        ("Passing TD 40+ yards bonus", "pass_td_40p"),
        ("Passing TD 50+ yards bonus", "pass_td_50p"),
        ("Interception thrown", "pass_int"),
        ("2PT conversion pass", "pass_2pt"),
        ("300+ passing yard bonus", "bonus_pass_yd_300"),
        ("400+ passing yard bonus", "bonus_pass_yd_400"),
    ],
    "rushing": [
        ("Rushing attempt", "rush_att"),
        ("Rushing yards (per yard)", "rush_yd"),
        ("Rushing TD", "rush_td"),
        ("Rushing TD 40+ yards bonus", "rush_td_40p"),
        ("Rushing TD 50+ yards bonus", "rush_td_50p"),
        ("2PT conversion rush", "rush_2pt"),
        ("100+ rushing yard bonus", "bonus_rush_yd_100"),
        ("200+ rushing yard bonus", "bonus_rush_yd_200"),
    ],
    "receiving": [
        ("Reception", "rec"),
        ("Receiving yards (per yard)", "rec_yd"),
        ("Receiving TD", "rec_td"),
        ("Receiving TD 40+ yards bonus", "rec_td_40p"),
        ("Receiving TD 50+ yards bonus", "rec_td_50p"),
        ("2PT conversion reception", "rec_2pt"),
        ("100+ receiving yard bonus", "bonus_rec_yd_100"),
        ("200+ receiving yard bonus", "bonus_rec_yd_200"),
    ],
    "miscellaneous": [
        ("Fumble lost", "fum_lost"),
        ("Combined 200+ rush/rec yards bonus", "bonus_rush_rec_yd_200"),
    ],
}

DEFENSIVE_SCORING: Dict[str, List[Tuple[str, str]]] = {
    "individual_defense": [
        ("Sack", "sack"),
        ("Interception", "interception"),
        ("Forced fumble", "ff"),
        ("Fumble recovery", "fum_rec"),
        ("Fumble recovery TD", "fum_rec_td"),
        ("Safety", "safe"),
    ],
    "team_defense_special_teams": [
        ("Defensive TD", "def_td"),
        ("Defensive/ST TD", "def_st_td"),
        ("Special teams TD", "st_td"),
        ("Defensive/ST fumble recovery", "def_st_fum_rec"),
        ("Defensive/ST forced fumble", "def_st_ff"),
        ("ST fumble recovery", "st_fum_rec"),
        ("ST forced fumble", "st_ff"),
        ("Blocked kick", "blk_kick"),
    ],
    "points_allowed": [
        ("0 points allowed", "pts_allow_0"),
        ("1-6 points allowed", "pts_allow_1_6"),
        ("7-13 points allowed", "pts_allow_7_13"),
        ("14-20 points allowed", "pts_allow_14_20"),
        ("21-27 points allowed", "pts_allow_21_27"),
        ("28-34 points allowed", "pts_allow_28_34"),
        ("35+ points allowed", "pts_allow_35p"),
    ],
}

KICKING_SCORING: Dict[str, List[Tuple[str, str]]] = {
    "kicking": [
        ("FG 0-19 yards", "fgm_0_19"),
        ("FG 20-29 yards", "fgm_20_29"),
        ("FG 30-39 yards", "fgm_30_39"),
        ("FG 40-49 yards", "fgm_40_49"),
        ("FG 50+ yards", "fgm_50p"),
        ("Missed FG", "fgmiss"),
        ("Extra point made", "xpm"),
        ("Missed extra point", "xpmiss"),
    ],
}


def waiver_type_label(waiver_type: int) -> str:
    return WAIVER_TYPES.get(waiver_type, ("Unknown", "Unknown"))[0]


def waiver_type_description(waiver_type: int) -> str:
    return WAIVER_TYPES.get(waiver_type, ("Unknown", "Unknown"))[1]


def day_of_week(day: int) -> str:
    """Sleeper numbers waiver days from Monday = 0."""
    if 0 <= day < len(DAYS_OF_WEEK):
        return DAYS_OF_WEEK[day]
    return "Unknown"


def position_label(position: str) -> str:
    return POSITION_LABELS.get(position, "")


def determine_league_type(league: Dict[str, Any]) -> str:
    """Standard / PPR / Half PPR, with " Super Flex" when the league has that slot."""
    reception_points = ScoringSettings.from_dict(league.get("scoring_settings")).rec
    if reception_points == 1:
        scoring_type = "PPR"
    elif reception_points == 0.5:
        scoring_type = "Half PPR"
    else:
        scoring_type = "Standard"
    super_flex = "SUPER_FLEX" in (league.get("roster_positions") or [])
    return f"{scoring_type}{' Super Flex' if super_flex else ''}"


def _league_unavailable(season: str) -> dict:
    return create_error_response(
        f"Could not fetch league data for season {season}",
        ErrorType.NOT_FOUND, {"season": season}
    )


def _scoring_groups(scoring: ScoringSettings, groups: Dict[str, List[Tuple[str, str]]]) -> Dict[str, List[dict]]:
    return {
        group: [{"label": label, "points": getattr(scoring, name)} for label, name in entries]
        for group, entries in groups.items()
    }


async def process_league_settings(league_id: str, season) -> dict:
    season = str(season)
    league = await fetch_league(league_id)
    if league is None:
        return _league_unavailable(season)

    settings = LeagueSettings.from_dict(league.get("settings"))
    result = {
        "season": season,
        "league_name": league.get("name") or "",
        "league_type": determine_league_type(league),
        "general": {
            "waiver_budget": settings.waiver_budget,
            "trade_deadline_week": settings.trade_deadline,
            "draft_rounds": settings.draft_rounds,
            "injured_reserve_slots": settings.reserve_slots,
            "num_teams": settings.num_teams,
        },
        "waivers": {
            "type": waiver_type_label(settings.waiver_type),
            "description": waiver_type_description(settings.waiver_type),
            "clear_day": day_of_week(settings.waiver_day_of_week),
            "starting_budget": settings.waiver_budget,
        },
        "taxi": None,
    }
    if settings.taxi_slots > 0:
        result["taxi"] = {
            "slots": settings.taxi_slots,
            "deadline_week": settings.taxi_deadline,
            "max_years": settings.taxi_years,
        }
    return create_success_response(result)


async def process_scoring_settings(league_id: str, season, category: str = "all") -> dict:
    """
    Scoring values for one season, grouped by ``category``.

    Defensive scoring needs a ``DEF`` roster slot and kicking a ``K`` slot;
    without one the season is reported as not applicable.
    """
    season = str(season)
    league = await fetch_league(league_id)
    if league is None:
        return _league_unavailable(season)

    positions = league.get("roster_positions") or []
    if category == "defensive" and "DEF" not in positions:
        return create_no_data_response(
            NoDataReason.NOT_APPLICABLE,
            "No defense roster slot - Defense scoring not available",
            {"season": season}
        )
    if category == "kicking" and "K" not in positions:
        return create_no_data_response(
            NoDataReason.NOT_APPLICABLE,
            "No kicker roster slot - Kicker scoring not available",
            {"season": season}
        )

    scoring = ScoringSettings.from_dict(league.get("scoring_settings"))
    sections = {}
    if category in ("all", "offensive"):
        sections["offensive"] = _scoring_groups(scoring, OFFENSIVE_SCORING)
    if category in ("all", "defensive"):
        sections["defensive"] = _scoring_groups(scoring, DEFENSIVE_SCORING)
    if category in ("all", "kicking"):
        sections["kicking"] = _scoring_groups(scoring, KICKING_SCORING)

    return create_success_response({
        "season": season,
        "category": category,
        "league_type": determine_league_type(league),
        "scoring": sections,
    })


async def process_roster_settings(league_id: str, season) -> dict:
    season = str(season)
    league = await fetch_league(league_id)
    if league is None:
        return _league_unavailable(season)

    counts = Counter(league.get("roster_positions") or [])
    positions = [
        {"position": position, "label": position_label(position), "count": count}
        for position, count in counts.items()
    ]
    return create_success_response({
        "season": season,
        "positions": positions,
        "total_slots": sum(counts.values()),
    })
