"""
Sleeper League MCP Server Package

A FastMCP server answering history and matchup questions about Sleeper
fantasy football leagues across every season of a league.
"""

from .server import create_app, main

__version__ = "0.1.0"
__all__ = ["create_app", "main"]
