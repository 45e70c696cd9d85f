"""
Typed shapes for league history, matchups, lineups and playoff brackets.

Upstream payloads are loose JSON; everything past the fetch layer works on
these dataclasses. Each exposes ``to_dict()`` for tool output.
"""

import logging
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class LeagueStatus(str, Enum):
    PRE_DRAFT = "pre_draft"
    DRAFTING = "drafting"
    IN_SEASON = "in_season"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LeagueStatus":
        try:
            return cls(value)
        except ValueError:
            logger.debug(f"Unknown league status {value!r}, treating as pre_draft")
            return cls.PRE_DRAFT


class MatchupStatus(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class SeasonEntry:
    """One season of a league chain."""
    season: str
    league_id: str
    league_name: str
    status: LeagueStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "league_id": self.league_id,
            "league_name": self.league_name,
            "status": self.status.value,
        }


@dataclass
class NFLState:
    current_week: int
    current_season: str
    season_type: str

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NFLState":
        week = raw.get("display_week")
        if week is None:
            week = raw.get("week")
        season = raw.get("league_season") or raw.get("season")
        if not season:
            season = datetime.now(UTC).year
            logger.warning(f"NFL state carries no season, using calendar year {season}")
        return cls(
            current_week=int(week or 0),
            current_season=str(season),
            season_type=raw.get("season_type") or "regular",
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(value: Any, default: Any) -> Any:
    if value is None:
        return default
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        logger.debug(f"Could not coerce {value!r}, using default {default!r}")
        return default


@dataclass
class LeagueSettings:
    """League ``settings`` block as a closed set of fields.

    Absent or unparseable fields take the default below; upstream keys not
    listed here are ignored.
    """
    playoff_week_start: int = 15
    playoff_teams: int = 6
    playoff_round_type: int = 0
    trade_deadline: int = 11
    waiver_type: int = 2
    waiver_day_of_week: int = 2
    waiver_budget: int = 100
    draft_rounds: int = 15
    reserve_slots: int = 0
    taxi_slots: int = 0
    taxi_deadline: int = 0
    taxi_years: int = 0
    num_teams: int = 12

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "LeagueSettings":
        raw = raw or {}
        defaults = cls()
        return cls(**{
            f.name: _coerce(raw.get(f.name), getattr(defaults, f.name)) for f in fields(cls)
        })

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScoringSettings:
    """League ``scoring_settings`` as a closed set of point values (default 0.0)."""
    # passing
    pass_yd: float = 0.0
    pass_td: float = 0.0
    pass_td_40p: float = 0.0
    pass_td_50p: float = 0.0
    pass_int: float = 0.0
    pass_2pt: float = 0.0
    bonus_pass_yd_300: float = 0.0
    bonus_pass_yd_400: float = 0.0
    # rushing
    rush_att: float = 0.0
    rush_yd: float = 0.0
    rush_td: float = 0.0
    rush_td_40p: float = 0.0
    rush_td_50p: float = 0.0
    rush_2pt: float = 0.0
    bonus_rush_yd_100: float = 0.0
    bonus_rush_yd_200: float = 0.0
    # receiving
    rec: float = 0.0
    rec_yd: float = 0.0
    rec_td: float = 0.0
    rec_td_40p: float = 0.0
    rec_td_50p: float = 0.0
    rec_2pt: float = 0.0
    bonus_rec_yd_100: float = 0.0
    bonus_rec_yd_200: float = 0.0
    fum_lost: float = 0.0
    bonus_rush_rec_yd_200: float = 0.0
    # kicking
    fgm_0_19: float = 0.0
    fgm_20_29: float = 0.0
    fgm_30_39: float = 0.0
    fgm_40_49: float = 0.0
    fgm_50p: float = 0.0
    fgmiss: float = 0.0
    xpm: float = 0.0
    xpmiss: float = 0.0
    # individual defense
    sack: float = 0.0
    interception: float = 0.0
    ff: float = 0.0
    fum_rec: float = 0.0
    fum_rec_td: float = 0.0
    safe: float = 0.0
    # team defense and special teams
    def_td: float = 0.0
    def_st_td: float = 0.0
    st_td: float = 0.0
    def_st_fum_rec: float = 0.0
    def_st_ff: float = 0.0
    st_fum_rec: float = 0.0
    st_ff: float = 0.0
    blk_kick: float = 0.0
    pts_allow_0: float = 0.0
    pts_allow_1_6: float = 0.0
    pts_allow_7_13: float = 0.0
    pts_allow_14_20: float = 0.0
    pts_allow_21_27: float = 0.0
    pts_allow_28_34: float = 0.0
    pts_allow_35p: float = 0.0

    # field name -> upstream key where they differ
    ALIASES = {"interception": "int"}

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ScoringSettings":
        raw = raw or {}
        return cls(**{
            f.name: _coerce(raw.get(cls.ALIASES.get(f.name, f.name)), 0.0) for f in fields(cls)
        })

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ResolvedRoster:
    """A league roster with owner and co-owner display names attached."""
    roster_id: int
    owner_id: Optional[str]
    co_owners: List[str]
    owner_ids: List[str]
    owner_names: List[str]
    players: List[str] = field(default_factory=list)
    starters: List[str] = field(default_factory=list)
    reserve: List[str] = field(default_factory=list)
    taxi: List[str] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)

    def is_owned_by(self, user_id: str) -> bool:
        return user_id in self.owner_ids

    def all_player_ids(self) -> set:
        return set(self.players) | set(self.starters) | set(self.reserve) | set(self.taxi)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlayerSlot:
    player_id: str
    name: str
    team: str
    position: str
    roster_slot: str
    points: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MatchupSide:
    """One roster's scoring entry for a week, enriched with player detail."""
    roster_id: int
    matchup_id: Optional[int]
    total_points: float
    starters: List[PlayerSlot]
    bench: List[PlayerSlot]

    @property
    def bench_points(self) -> float:
        return sum(p.points for p in self.bench)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roster_id": self.roster_id,
            "matchup_id": self.matchup_id,
            "total_points": self.total_points,
            "starters": [p.to_dict() for p in self.starters],
            "bench": [p.to_dict() for p in self.bench],
        }


@dataclass
class MatchupDetails:
    user_side: MatchupSide
    opponent_side: MatchupSide
    user_owners: List[str]
    opponent_owners: List[str]
    status: MatchupStatus
    week: int
    season: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "week": self.week,
            "status": self.status.value,
            "user_side": self.user_side.to_dict(),
            "opponent_side": self.opponent_side.to_dict(),
            "user_owners": list(self.user_owners),
            "opponent_owners": list(self.opponent_owners),
        }


@dataclass
class LineupAnalysis:
    starters: List[PlayerSlot]
    bench: List[PlayerSlot]
    worst_starter: Optional[PlayerSlot]
    outperforming_bench: List[PlayerSlot]
    missed_points: float
    optimal_choices: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "starters": [p.to_dict() for p in self.starters],
            "bench": [p.to_dict() for p in self.bench],
            "worst_starter": self.worst_starter.to_dict() if self.worst_starter else None,
            "outperforming_bench": [
                {**p.to_dict(), "point_difference": round(p.points - self.worst_starter.points, 2)}
                for p in self.outperforming_bench
            ],
            "missed_points": round(self.missed_points, 2),
            "optimal_choices": self.optimal_choices,
        }


@dataclass
class BracketTeam:
    roster_id: int
    owners: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"roster_id": self.roster_id, "owners": list(self.owners)}


@dataclass
class BracketSource:
    """Where an undetermined bracket slot will come from."""
    outcome: str  # "winner" | "loser"
    match_id: int

    def describe(self) -> str:
        return f"{self.outcome} of game {self.match_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": self.outcome, "match_id": self.match_id, "description": self.describe()}


@dataclass
class BracketNode:
    round: int
    match_id: int
    team1: Optional[BracketTeam]
    team2: Optional[BracketTeam]
    winner: Optional[BracketTeam]
    loser: Optional[BracketTeam]
    team1_from: Optional[BracketSource]
    team2_from: Optional[BracketSource]
    placement: Optional[int]
    is_completed: bool

    def to_dict(self) -> Dict[str, Any]:
        def _opt(value):
            return value.to_dict() if value is not None else None

        return {
            "round": self.round,
            "match_id": self.match_id,
            "team1": _opt(self.team1),
            "team2": _opt(self.team2),
            "winner": _opt(self.winner),
            "loser": _opt(self.loser),
            "team1_from": _opt(self.team1_from),
            "team2_from": _opt(self.team2_from),
            "placement": self.placement,
            "is_completed": self.is_completed,
        }


@dataclass
class PlayoffSchedule:
    playoff_week_start: int
    playoff_teams: int
    playoff_round_type: int
    rounds: List[str]
    round_to_weeks: Dict[str, List[int]]
    total_weeks: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HeadToHeadGame:
    week: int
    user_score: float
    opponent_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
