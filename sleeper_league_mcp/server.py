#!/usr/bin/env python3
"""
Sleeper League MCP Server

A FastMCP server that provides:
- Health and metrics endpoints (non-MCP REST endpoints)
- League history tools across every season of a Sleeper league:
  settings, scoring, roster slots, playoff schedule, bracket and placements
- Weekly matchup tools: results, starters, bench and bench-vs-starter analysis
- Head-to-head records between two managers
- Waiver trend tools (league-wide and for the user's roster)
"""

from fastmcp import FastMCP
from starlette.responses import JSONResponse

from .config import SERVER_VERSION
from .config_manager import get_config_manager
from .database import PlayerDatabase
from .errors import handle_database_errors
from .logging_config import setup_logging
from .metrics import get_metrics_collector
from . import tool_registry
import os, logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

SERVICE_NAME = "Sleeper League MCP Server"


@handle_database_errors(default_data={"player_directory": None}, operation_name="player directory health check")
def _player_directory_status() -> dict:
    status = tool_registry.get_player_directory().db.health_check()
    return {"success": status.get("healthy", False), "player_directory": status}


def create_app() -> FastMCP:
    """Create and configure the FastMCP server application."""
    mcp = FastMCP(name=SERVICE_NAME)

    sleeper_config = get_config_manager().config.sleeper
    player_db = PlayerDatabase(sleeper_config.player_db_path)
    tool_registry.initialize_shared(player_db, sleeper_config.player_directory_ttl_hours)

    for tool_func in tool_registry.get_all_tools():
        mcp.tool(tool_func)

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request):
        """Health check endpoint for monitoring server status."""
        directory = _player_directory_status()
        return JSONResponse({
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVER_VERSION,
            "player_directory": directory.get("player_directory"),
        })

    @mcp.custom_route("/metrics", methods=["GET"])
    async def metrics(request):
        return JSONResponse(get_metrics_collector().get_metrics())

    return mcp


@asynccontextmanager
async def app_lifespan(app):
    """Warm the player directory before serving; matchups fall back to placeholder names if this fails."""
    result = await tool_registry.get_player_directory().ensure_loaded()
    if result.get("success"):
        logger.info(
            f"Player directory ready ({result.get('player_count')} players, "
            f"refreshed={result.get('refreshed')})"
        )
    else:
        logger.warning(f"Player directory unavailable, player names will be placeholders: {result.get('error')}")
    yield


def main():
    """Main entry point for the server."""
    setup_logging(
        log_level=os.getenv("SLEEPER_MCP_LOG_LEVEL", "INFO").upper(),
        version=SERVER_VERSION,
        enable_file_logging=bool(os.getenv("SLEEPER_MCP_LOG_FILE")),
        log_file_path=os.getenv("SLEEPER_MCP_LOG_FILE"),
    )

    app = create_app()

    # Get MCP HTTP app with /mcp path prefix
    mcp_http = app.http_app(path="/mcp")

    # Save original MCP lifespan BEFORE replacing it
    original_mcp_lifespan = mcp_http.router.lifespan_context

    @asynccontextmanager
    async def combined_lifespan(app_instance):
        async with app_lifespan(app_instance):
            async with original_mcp_lifespan(app_instance):
                yield

    mcp_http.router.lifespan_context = combined_lifespan

    import uvicorn
    uvicorn.run(
        mcp_http,
        host=os.getenv("SLEEPER_MCP_HOST", "0.0.0.0"),
        port=int(os.getenv("SLEEPER_MCP_PORT", "9000")),
    )


if __name__ == "__main__":
    main()
