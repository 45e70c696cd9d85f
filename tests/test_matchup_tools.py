"""
Tests for matchup resolution, status classification and head-to-head records.
"""

import logging
from datetime import datetime, UTC

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sleeper_league_mcp import sleeper_tools
from sleeper_league_mcp.errors import ErrorType, NoDataReason, create_success_response
from sleeper_league_mcp.matchup_tools import (
    MatchupResolver, build_matchup_side, derive_matchup_status, starting_slot_labels,
    summarize_head_to_head, fetch_matchup_summary, fetch_matchup_starters,
    fetch_matchup_bench, fetch_season_head_to_head
)
from sleeper_league_mcp.models import HeadToHeadGame, MatchupStatus, ResolvedRoster

LEAGUE = {
    "league_id": "L1",
    "roster_positions": ["QB", "RB", "FLEX", "BN", "BN", "IR"],
    "settings": {"playoff_week_start": 15, "playoff_teams": 6, "playoff_round_type": 0},
}


def _roster(roster_id, owner_id, name):
    return ResolvedRoster(
        roster_id=roster_id, owner_id=owner_id, co_owners=[],
        owner_ids=[owner_id], owner_names=[name]
    )


ROSTERS = [_roster(1, "111", "alice"), _roster(2, "222", "bob"), _roster(3, "333", "carol")]


def _entry(roster_id, matchup_id, points, starters=(), bench=(), players_points=None):
    return {
        "roster_id": roster_id,
        "matchup_id": matchup_id,
        "points": points,
        "starters": list(starters),
        "players": list(starters) + list(bench),
        "players_points": players_points or {},
    }


def _players():
    players = MagicMock()
    players.describe.side_effect = lambda pid: {
        "player_id": pid, "name": f"Player {pid}", "team": "KC", "position": "RB"
    }
    return players


def _resolver():
    identity = MagicMock()
    identity.resolve_rosters = AsyncMock(return_value=ROSTERS)
    return MatchupResolver(identity, _players())


def _state(season="2024", week=8):
    return create_success_response({"nfl_state": {"season": season, "league_season": season, "week": week}})


def _patches(matchups_by_week, state=None):
    def matchups(league_id, week):
        return create_success_response({"matchups": matchups_by_week.get(week, []), "week": week})

    return (
        patch.object(sleeper_tools, "get_matchups", AsyncMock(side_effect=matchups)),
        patch.object(sleeper_tools, "get_league", AsyncMock(return_value=create_success_response({"league": LEAGUE}))),
        patch.object(sleeper_tools, "get_nfl_state", AsyncMock(return_value=state or _state())),
    )


WEEK_5 = [
    _entry(1, 1, 101.5, starters=["a", "b"], bench=["c"], players_points={"a": 61.5, "b": 40.0, "c": 12.0}),
    _entry(2, 1, 95.0, starters=["d", "e"], bench=["f"], players_points={"d": 50.0, "e": 45.0, "f": 30.0}),
    _entry(3, 2, 80.0),
]


class TestDeriveMatchupStatus:

    def test_past_season_is_completed(self):
        assert derive_matchup_status("2023", 17, "2024", 1) is MatchupStatus.COMPLETED

    def test_past_week_is_completed(self):
        assert derive_matchup_status("2024", 5, "2024", 8) is MatchupStatus.COMPLETED

    def test_current_week_is_in_progress(self):
        assert derive_matchup_status("2024", 8, "2024", 8) is MatchupStatus.IN_PROGRESS

    def test_future_week_is_upcoming(self):
        assert derive_matchup_status("2024", 10, "2024", 8) is MatchupStatus.UPCOMING

    def test_future_season_is_upcoming(self):
        assert derive_matchup_status("2025", 1, "2024", 8) is MatchupStatus.UPCOMING


class TestSlotLabels:

    def test_non_starting_slots_are_skipped(self):
        assert starting_slot_labels(["QB", "BN", "RB", "IR", "TAXI", "FLEX"], 3) == ["QB", "RB", "FLEX"]

    def test_truncated_to_starter_count(self):
        assert starting_slot_labels(["QB", "RB", "WR"], 2) == ["QB", "RB"]


class TestBuildMatchupSide:

    def test_points_fall_back_to_starters_points(self):
        entry = {
            "roster_id": 1, "matchup_id": 3, "points": 20.0,
            "starters": ["a", "0"], "players": ["a", "0", "z"],
            "starters_points": [12.5, 0], "players_points": {"z": 7.5},
        }
        side = build_matchup_side(entry, ["QB", "RB", "BN"], _players())

        assert [p.roster_slot for p in side.starters] == ["QB", "RB"]
        assert side.starters[0].points == 12.5
        assert [p.player_id for p in side.bench] == ["z"]
        assert side.bench_points == 7.5

    def test_missing_points_default_to_zero(self):
        side = build_matchup_side({"roster_id": 1, "starters": ["a"], "players": ["a"]}, [], _players())
        assert side.total_points == 0.0
        assert side.starters[0].points == 0.0
        assert side.starters[0].roster_slot == "BN"


class TestResolveMatchup:

    @pytest.mark.asyncio
    async def test_pairs_user_with_opponent(self):
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups, get_league, get_state:
            details = await _resolver().resolve_matchup("L1", 5, "111", "2024")

        assert details.user_owners == ["alice"]
        assert details.opponent_owners == ["bob"]
        assert details.status is MatchupStatus.COMPLETED
        assert [p.roster_slot for p in details.user_side.starters] == ["QB", "RB"]
        assert details.user_side.bench[0].player_id == "c"

    @pytest.mark.asyncio
    async def test_no_opponent_is_none(self):
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups, get_league, get_state:
            assert await _resolver().resolve_matchup("L1", 5, "333", "2024") is None

    @pytest.mark.asyncio
    async def test_user_not_in_league_is_none(self):
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups, get_league, get_state:
            assert await _resolver().resolve_matchup("L1", 5, "999", "2024") is None

    @pytest.mark.asyncio
    async def test_empty_week_is_none(self):
        get_matchups, get_league, get_state = _patches({})
        with get_matchups, get_league, get_state:
            assert await _resolver().resolve_matchup("L1", 5, "111", "2024") is None

    @pytest.mark.asyncio
    async def test_fetches_matchups_and_context_once_each(self):
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups as matchups, get_league as league, get_state as state:
            await _resolver().resolve_matchup("L1", 5, "111", "2024")

        matchups.assert_awaited_once_with("L1", 5)
        league.assert_awaited_once_with("L1")
        state.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_given_context_is_reused(self):
        resolver = _resolver()
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups as matchups, get_league as league, get_state:
            context = await resolver.load_context("L1")
            details = await resolver.resolve_matchup("L1", 5, "111", "2024", context=context)

        assert details.opponent_owners == ["bob"]
        assert league.await_count == 1
        matchups.assert_awaited_once_with("L1", 5)

    @pytest.mark.asyncio
    async def test_state_without_season_uses_calendar_year(self, caplog):
        this_year = str(datetime.now(UTC).year)
        state = create_success_response({"nfl_state": {"week": 8}})
        get_matchups, get_league, get_state = _patches({5: WEEK_5}, state=state)
        with get_matchups, get_league, get_state:
            with caplog.at_level(logging.WARNING):
                details = await _resolver().resolve_matchup("L1", 5, "111", this_year)

        assert details.status is MatchupStatus.COMPLETED
        assert "no season" in caplog.text


class TestMatchupReports:

    @pytest.mark.asyncio
    async def test_summary_completed_has_winner(self):
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups, get_league, get_state:
            result = await fetch_matchup_summary(_resolver(), "L1", "2024", 5, "111")

        assert result["success"] is True
        assert result["status"] == "completed"
        assert result["user_team"] == {"owners": ["alice"], "score": 101.5}
        assert result["winner"] == ["alice"]

    @pytest.mark.asyncio
    async def test_summary_in_progress_has_no_winner(self):
        get_matchups, get_league, get_state = _patches({8: WEEK_5})
        with get_matchups, get_league, get_state:
            result = await fetch_matchup_summary(_resolver(), "L1", "2024", 8, "111")

        assert result["status"] == "in_progress"
        assert result["winner"] is None

    @pytest.mark.asyncio
    async def test_summary_tie(self):
        week = [_entry(1, 1, 90.0), _entry(2, 1, 90.0)]
        get_matchups, get_league, get_state = _patches({3: week})
        with get_matchups, get_league, get_state:
            result = await fetch_matchup_summary(_resolver(), "L1", "2024", 3, "111")

        assert result["winner"] == "tie"

    @pytest.mark.asyncio
    async def test_summary_not_found(self):
        get_matchups, get_league, get_state = _patches({})
        with get_matchups, get_league, get_state:
            result = await fetch_matchup_summary(_resolver(), "L1", "2024", 5, "111")

        assert result["success"] is False
        assert result["error_type"] == ErrorType.NOT_FOUND

    @pytest.mark.asyncio
    async def test_starters_for_upcoming_week_is_no_data(self):
        get_matchups, get_league, get_state = _patches({10: WEEK_5})
        with get_matchups, get_league, get_state:
            result = await fetch_matchup_starters(_resolver(), "L1", "2024", 10, "111")

        assert result["success"] is True
        assert result["no_data"] is True
        assert result["reason"] == NoDataReason.UPCOMING

    @pytest.mark.asyncio
    async def test_starters_lists_slots(self):
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups, get_league, get_state:
            result = await fetch_matchup_starters(_resolver(), "L1", "2024", 5, "111")

        starters = result["user_team"]["starters"]
        assert [s["player_id"] for s in starters] == ["a", "b"]
        assert starters[0]["name"] == "Player a"
        assert result["opponent_team"]["total_points"] == 95.0

    @pytest.mark.asyncio
    async def test_bench_points(self):
        get_matchups, get_league, get_state = _patches({5: WEEK_5})
        with get_matchups, get_league, get_state:
            result = await fetch_matchup_bench(_resolver(), "L1", "2024", 5, "111")

        assert result["user_team"]["bench_points"] == 12.0
        assert result["opponent_team"]["bench"][0]["player_id"] == "f"


class TestHeadToHead:

    def test_summary_counts_ties(self):
        games = [HeadToHeadGame(1, 10, 8), HeadToHeadGame(2, 7, 9), HeadToHeadGame(3, 12, 12)]
        summary = summarize_head_to_head(games)

        assert summary["record"] == "1-1-1"
        assert summary["user_total_points"] == 29
        assert summary["opponent_total_points"] == 29

    @pytest.mark.asyncio
    async def test_past_season_scans_through_playoffs(self):
        weeks = {
            1: [_entry(1, 1, 10.0), _entry(2, 1, 8.0)],
            2: [_entry(1, 1, 7.0), _entry(2, 1, 9.0)],
            3: [_entry(1, 1, 110.0), _entry(3, 1, 90.0)],
            17: [_entry(1, 4, 12.0), _entry(2, 4, 12.0)],
        }
        get_matchups, get_league, get_state = _patches(weeks)
        with get_matchups as matchups, get_league, get_state:
            result = await fetch_season_head_to_head(_resolver(), "L1", "2023", "111", "222")

        assert result["success"] is True
        assert result["record"] == "1-1-1"
        assert [g["week"] for g in result["games"]] == [1, 2, 17]
        assert result["opponent_owners"] == ["bob"]
        assert matchups.await_count == 17

    @pytest.mark.asyncio
    async def test_current_season_stops_before_current_week(self):
        get_matchups, get_league, get_state = _patches({1: [_entry(1, 1, 10.0), _entry(2, 1, 8.0)]})
        with get_matchups as matchups, get_league, get_state:
            result = await fetch_season_head_to_head(_resolver(), "L1", "2024", "111", "222")

        assert result["record"] == "1-0-0"
        assert matchups.await_count == 7

    @pytest.mark.asyncio
    async def test_opponent_not_in_league(self):
        get_matchups, get_league, get_state = _patches({})
        with get_matchups, get_league, get_state:
            result = await fetch_season_head_to_head(_resolver(), "L1", "2023", "111", "999")

        assert result["no_data"] is True
        assert result["reason"] == NoDataReason.NEVER_PLAYED

    @pytest.mark.asyncio
    async def test_never_met(self):
        get_matchups, get_league, get_state = _patches({1: [_entry(1, 1, 10.0), _entry(3, 1, 8.0)]})
        with get_matchups, get_league, get_state:
            result = await fetch_season_head_to_head(_resolver(), "L1", "2023", "111", "222")

        assert result["no_data"] is True
