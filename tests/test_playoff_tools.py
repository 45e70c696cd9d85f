"""
Tests for playoff schedule, bracket rendering and final placements.
"""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sleeper_league_mcp import sleeper_tools
from sleeper_league_mcp.errors import (
    ErrorType, NoDataReason, create_error_response, create_success_response
)
from sleeper_league_mcp.models import LeagueSettings, ResolvedRoster
from sleeper_league_mcp.playoff_tools import (
    ROSTER_NOT_FOUND, UNKNOWN_TEAM, build_bracket, build_playoff_schedule, describe_round_type,
    fetch_league_playoff_bracket, fetch_league_playoff_history, fetch_playoff_schedule,
    filter_championship_path
)


def _roster(roster_id, name):
    return ResolvedRoster(
        roster_id=roster_id, owner_id=f"u{roster_id}", co_owners=[],
        owner_ids=[f"u{roster_id}"], owner_names=[name]
    )


ROSTERS = [_roster(i, name) for i, name in enumerate(["ann", "ben", "cat", "dan", "eve", "fay"], start=1)]

THREE_EDGES = [
    {"r": 1, "m": 1, "t1": 1, "t2": 4, "w": 1, "l": 4},
    {"r": 1, "m": 2, "t1": 2, "t2": 3, "w": None, "l": None},
    {"r": 2, "m": 3, "t1": None, "t2": None, "t1_from": {"w": 1}, "t2_from": {"w": 2}, "p": 1},
]


def _identity(rosters=ROSTERS):
    identity = MagicMock()
    identity.resolve_rosters = AsyncMock(return_value=rosters)
    return identity


def _league(status="complete", **settings):
    return create_success_response({"league": {
        "league_id": "L1", "name": "Main", "status": status, "total_rosters": 6,
        "settings": {"playoff_week_start": 15, "playoff_teams": 4, **settings},
    }})


def _state(week):
    return create_success_response({"nfl_state": {"season": "2024", "league_season": "2024", "week": week}})


class TestPlayoffSchedule:

    def test_six_team_one_week_rounds(self):
        schedule = build_playoff_schedule(LeagueSettings(playoff_week_start=15, playoff_teams=6))

        assert schedule.rounds == ["quarterfinals", "semifinals", "finals"]
        assert schedule.round_to_weeks == {"quarterfinals": [15], "semifinals": [16], "finals": [17]}
        assert schedule.total_weeks == 17

    def test_two_week_championship(self):
        schedule = build_playoff_schedule(
            LeagueSettings(playoff_week_start=14, playoff_teams=4, playoff_round_type=1)
        )

        assert schedule.rounds == ["semifinals", "finals"]
        assert schedule.round_to_weeks["finals"] == [15, 16]
        assert schedule.total_weeks == 16

    def test_two_weeks_every_round(self):
        schedule = build_playoff_schedule(
            LeagueSettings(playoff_week_start=13, playoff_teams=8, playoff_round_type=2)
        )

        assert schedule.round_to_weeks["quarterfinals"] == [13, 14]
        assert schedule.total_weeks == 18

    def test_round_type_description(self):
        assert describe_round_type(2) == "Two weeks per playoff round"
        assert describe_round_type(9) == "Unknown playoff structure"

    @pytest.mark.asyncio
    async def test_fetch_schedule(self):
        with patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league(playoff_round_type=1))):
            result = await fetch_playoff_schedule("L1", "2023")

        assert result["success"] is True
        assert result["round_type_description"] == "One week per round with two-week championship"
        assert result["playoff_week_start"] == 15


class TestFilterChampionshipPath:

    def test_consolation_games_dropped(self):
        edges = THREE_EDGES + [
            {"r": 2, "m": 4, "t1": 4, "t2": 3, "t1_from": {"l": 1}, "t2_from": {"l": 2}, "p": 3},
            {"r": 2, "m": 5, "t1": 5, "t2": 6, "p": 5},
        ]
        kept = filter_championship_path(edges)
        assert [e["m"] for e in kept] == [1, 2, 3]


class TestBuildBracket:

    def test_three_edge_bracket(self):
        bracket = build_bracket(THREE_EDGES, ROSTERS, "in_progress")

        assert bracket["total_rounds"] == 2
        assert list(bracket["bracket_by_round"]) == [1, 2]

        first, second = bracket["bracket_by_round"][1]
        assert first["is_completed"] is True
        assert first["winner"]["owners"] == ["ann"]
        assert first["loser"]["owners"] == ["dan"]
        assert second["is_completed"] is False

        final = bracket["bracket_by_round"][2][0]
        assert final["team1"] is None
        assert final["team1_from"]["description"] == "winner of game 1"
        assert final["team2_from"]["description"] == "winner of game 2"
        assert final["is_completed"] is False

    def test_hint_dropped_once_team_known(self):
        edges = [{"r": 2, "m": 3, "t1": 1, "t2": None, "t1_from": {"w": 1}, "t2_from": {"w": 2}, "p": 1}]
        node = build_bracket(edges, ROSTERS, "in_progress")["bracket_by_round"][2][0]

        assert node["team1"]["owners"] == ["ann"]
        assert node["team1_from"] is None
        assert node["team2_from"]["match_id"] == 2

    def test_unknown_roster_is_labelled(self):
        edges = [{"r": 1, "m": 1, "t1": 1, "t2": 42, "w": 42, "l": 1}]
        node = build_bracket(edges, ROSTERS, "completed")["bracket_by_round"][1][0]

        assert node["team2"]["owners"] == [UNKNOWN_TEAM]
        assert node["winner"]["roster_id"] == 42

    def test_winner_without_teams_is_incomplete(self, caplog):
        edges = [{"r": 2, "m": 3, "t1": None, "t2": 2, "w": 2, "t1_from": {"w": 1}, "p": 1}]
        with caplog.at_level(logging.WARNING):
            node = build_bracket(edges, ROSTERS, "in_progress")["bracket_by_round"][2][0]

        assert node["is_completed"] is False
        assert node["winner"] is None
        assert "undetermined team" in caplog.text

    def test_winner_matching_neither_team_is_incomplete(self, caplog):
        edges = [{"r": 1, "m": 1, "t1": 1, "t2": 2, "w": 7, "l": 1}]
        with caplog.at_level(logging.WARNING):
            node = build_bracket(edges, ROSTERS, "in_progress")["bracket_by_round"][1][0]

        assert node["is_completed"] is False
        assert node["winner"] is None
        assert node["loser"] is None
        assert node["team1"]["roster_id"] == 1
        assert node["team2"]["roster_id"] == 2
        assert "neither team" in caplog.text


class TestFetchLeaguePlayoffBracket:

    @pytest.mark.asyncio
    async def test_completed_league(self):
        bracket = create_success_response({"bracket": THREE_EDGES})
        with patch.object(sleeper_tools, "get_winners_bracket", AsyncMock(return_value=bracket)), \
             patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league())), \
             patch.object(sleeper_tools, "get_nfl_state", AsyncMock()) as get_state:
            result = await fetch_league_playoff_bracket(_identity(), "L1", "2023")

        assert result["success"] is True
        assert result["playoff_status"] == "completed"
        get_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_playoffs_not_started(self):
        bracket = create_success_response({"bracket": THREE_EDGES})
        with patch.object(sleeper_tools, "get_winners_bracket", AsyncMock(return_value=bracket)), \
             patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league("in_season"))), \
             patch.object(sleeper_tools, "get_nfl_state", AsyncMock(return_value=_state(10))):
            result = await fetch_league_playoff_bracket(_identity(), "L1", "2024")

        assert result["no_data"] is True
        assert result["reason"] == NoDataReason.PLAYOFFS_NOT_STARTED
        assert result["playoff_status"] == "not_started"
        assert result["bracket_by_round"] == {}

    @pytest.mark.asyncio
    async def test_playoffs_in_progress(self):
        bracket = create_success_response({"bracket": THREE_EDGES})
        with patch.object(sleeper_tools, "get_winners_bracket", AsyncMock(return_value=bracket)), \
             patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league("in_season"))), \
             patch.object(sleeper_tools, "get_nfl_state", AsyncMock(return_value=_state(16))):
            result = await fetch_league_playoff_bracket(_identity(), "L1", "2024")

        assert result["playoff_status"] == "in_progress"
        assert result["total_rounds"] == 2

    @pytest.mark.asyncio
    async def test_bracket_fetch_failure(self):
        failure = create_error_response("down", ErrorType.HTTP, {"bracket": []})
        with patch.object(sleeper_tools, "get_winners_bracket", AsyncMock(return_value=failure)), \
             patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league())):
            result = await fetch_league_playoff_bracket(_identity(), "L1", "2023")

        assert result["success"] is False


class TestFetchLeaguePlayoffHistory:

    FINAL_ROUND = [
        {"r": 1, "m": 1, "t1": 1, "t2": 4, "w": 1, "l": 4},
        {"r": 1, "m": 2, "t1": 2, "t2": 3, "w": 2, "l": 3},
        {"r": 2, "m": 3, "t1": 1, "t2": 2, "w": 2, "l": 1, "p": 1},
        {"r": 2, "m": 4, "t1": 4, "t2": 3, "w": 3, "l": 4, "p": 3},
    ]

    @pytest.mark.asyncio
    async def test_placements_and_missed_playoffs(self):
        bracket = create_success_response({"bracket": self.FINAL_ROUND})
        with patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league())), \
             patch.object(sleeper_tools, "get_winners_bracket", AsyncMock(return_value=bracket)):
            result = await fetch_league_playoff_history(_identity(), "L1", "2023")

        assert result["success"] is True
        assert result["placements"] == {"1": ["ben"], "2": ["ann"], "3": ["cat"], "4": ["dan"]}
        assert result["champion"] == ["ben"]
        assert result["missed_playoffs"] == ["eve", "fay"]
        assert result["is_incomplete"] is False

    @pytest.mark.asyncio
    async def test_in_progress_season(self):
        with patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league("in_season"))), \
             patch.object(sleeper_tools, "get_winners_bracket", AsyncMock()) as get_bracket:
            result = await fetch_league_playoff_history(_identity(), "L1", "2024")

        assert result["no_data"] is True
        assert result["reason"] == NoDataReason.SEASON_INCOMPLETE
        assert result["is_incomplete"] is True
        get_bracket.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_placement_roster(self):
        rosters = [r for r in ROSTERS if r.roster_id != 3]
        bracket = create_success_response({"bracket": self.FINAL_ROUND})
        with patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league())), \
             patch.object(sleeper_tools, "get_winners_bracket", AsyncMock(return_value=bracket)):
            result = await fetch_league_playoff_history(_identity(rosters), "L1", "2023")

        assert result["placements"]["3"] == [ROSTER_NOT_FOUND]

    @pytest.mark.asyncio
    async def test_empty_bracket(self):
        bracket = create_success_response({"bracket": []})
        with patch.object(sleeper_tools, "get_league", AsyncMock(return_value=_league())), \
             patch.object(sleeper_tools, "get_winners_bracket", AsyncMock(return_value=bracket)):
            result = await fetch_league_playoff_history(_identity(), "L1", "2023")

        assert result["no_data"] is True
        assert result["message"] == "No playoff data available"

    @pytest.mark.asyncio
    async def test_league_not_found(self):
        failure = create_error_response("missing", ErrorType.NOT_FOUND, {"league": None})
        with patch.object(sleeper_tools, "get_league", AsyncMock(return_value=failure)):
            result = await fetch_league_playoff_history(_identity(), "L1", "2023")

        assert result["success"] is False
        assert result["error_type"] == ErrorType.NOT_FOUND
