"""
Unit tests for the Sleeper League MCP Server.

Tests server creation, custom routes and the player directory warm-up.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastmcp import FastMCP

from sleeper_league_mcp import server, tool_registry
from sleeper_league_mcp.server import create_app, app_lifespan, SERVICE_NAME


@pytest.fixture
def app(tmp_path):
    manager = MagicMock()
    manager.config.sleeper.player_db_path = str(tmp_path / "players.db")
    manager.config.sleeper.player_directory_ttl_hours = 24
    with patch("sleeper_league_mcp.server.get_config_manager", return_value=manager):
        yield create_app()


class TestServerCreation:
    """Test server creation and configuration."""

    def test_create_app_returns_fastmcp_instance(self, app):
        assert isinstance(app, FastMCP)
        assert app.name == "Sleeper League MCP Server"

    def test_player_directory_is_initialized(self, app, tmp_path):
        directory = tool_registry.get_player_directory()
        assert directory.db.db_path == tmp_path / "players.db"

    def test_import_all_modules(self):
        import sleeper_league_mcp
        from sleeper_league_mcp import create_app as exported_create_app, main

        assert exported_create_app is create_app
        assert main is server.main
        assert sleeper_league_mcp.__version__


class TestServerConfiguration:
    """Test the custom HTTP routes."""

    def test_health_route_exists(self, app):
        routes = app._get_additional_http_routes()
        assert [route for route in routes if '/health' in str(route)]

    def test_metrics_route_exists(self, app):
        routes = app._get_additional_http_routes()
        assert [route for route in routes if '/metrics' in str(route)]


class TestPlayerDirectoryStatus:

    def test_status_reports_store_health(self, app):
        status = server._player_directory_status()

        assert status["success"] is True
        assert status["player_directory"]["player_count"] == 0

    def test_store_failure_becomes_database_error(self, app):
        with patch.object(tool_registry, "get_player_directory", side_effect=RuntimeError("closed")):
            status = server._player_directory_status()

        assert status["success"] is False
        assert status["error_type"] == "database_error"
        assert status["player_directory"] is None


class TestAppLifespan:

    @pytest.mark.asyncio
    async def test_warms_player_directory(self, app):
        directory = MagicMock()
        directory.ensure_loaded = AsyncMock(return_value={"success": True, "player_count": 10, "refreshed": True})
        with patch.object(tool_registry, "get_player_directory", return_value=directory):
            async with app_lifespan(None):
                pass

        directory.ensure_loaded.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_warm_up_still_serves(self, app):
        directory = MagicMock()
        directory.ensure_loaded = AsyncMock(return_value={"success": False, "error": "timed out"})
        entered = False
        with patch.object(tool_registry, "get_player_directory", return_value=directory):
            async with app_lifespan(None):
                entered = True

        assert entered


def test_service_name():
    assert SERVICE_NAME == "Sleeper League MCP Server"
