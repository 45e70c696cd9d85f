"""
Configuration constants and shared utilities for the Sleeper League MCP Server.

Values are read once from the ConfigManager at import time; the hardcoded
fallbacks only apply when the configuration cannot be loaded at all.
"""

import re
import logging
from typing import Any, Dict

import httpx

from .config_manager import get_config_manager


logger = logging.getLogger(__name__)


def _get_timeout_config():
    try:
        return get_config_manager().get_http_timeout()
    except (ValueError, RuntimeError) as e:
        logger.warning(f"Falling back to default HTTP timeout: {e}")
        return httpx.Timeout(30.0, connect=10.0)


def _get_long_timeout_config():
    try:
        return get_config_manager().get_long_http_timeout()
    except (ValueError, RuntimeError) as e:
        logger.warning(f"Falling back to default long HTTP timeout: {e}")
        return httpx.Timeout(90.0, connect=15.0)


DEFAULT_TIMEOUT = _get_timeout_config()
LONG_TIMEOUT = _get_long_timeout_config()


def _get_server_version():
    try:
        return get_config_manager().config.server.version
    except (ValueError, RuntimeError):
        return "0.1.0"


def _get_api_base():
    try:
        return get_config_manager().config.sleeper.api_base.rstrip("/")
    except (ValueError, RuntimeError):
        return "https://api.sleeper.app/v1"


SERVER_VERSION = _get_server_version()
BASE_USER_AGENT = f"Sleeper-League-MCP/{SERVER_VERSION}"
SLEEPER_API_BASE = _get_api_base()

_SERVICES = (
    "sleeper_users",
    "sleeper_league",
    "sleeper_rosters",
    "sleeper_matchups",
    "sleeper_playoffs",
    "sleeper_nfl_state",
    "sleeper_trending",
    "sleeper_players",
)


def _get_user_agents():
    try:
        config_manager = get_config_manager()
        return {name: config_manager.get_user_agent(name) for name in _SERVICES}
    except (ValueError, RuntimeError):
        return {name: BASE_USER_AGENT for name in _SERVICES}


USER_AGENTS = _get_user_agents()


def get_http_headers(service_name: str) -> Dict[str, str]:
    """
    Get standardized HTTP headers for a service.

    Args:
        service_name: The service name key from USER_AGENTS

    Returns:
        Dictionary with standard headers including User-Agent
    """
    return {
        "User-Agent": USER_AGENTS.get(service_name, BASE_USER_AGENT),
        "Accept": "application/json",
    }


def create_http_client(timeout: httpx.Timeout = None) -> httpx.AsyncClient:
    """
    Create a configured HTTP client with standard settings.

    Args:
        timeout: Optional custom timeout, uses DEFAULT_TIMEOUT if not provided

    Returns:
        Configured httpx.AsyncClient
    """
    return httpx.AsyncClient(
        timeout=timeout or DEFAULT_TIMEOUT,
        follow_redirects=True
    )


def _get_limits():
    try:
        return get_config_manager().get_limits_dict()
    except (ValueError, RuntimeError):
        return {
            "week_min": 1,
            "week_max": 18,
            "trending_limit": 25,
            "max_string_length": 100,
        }


LIMITS = _get_limits()


SAFE_PATTERNS = {
    # Sleeper usernames and user ids: letters, digits, underscore
    'username': re.compile(r'^[A-Za-z0-9_]+$'),
    'year_expression': re.compile(r'^\s*\d{4}\s*(?:(?:-\s*\d{4}\s*)|(?:(?:,\s*\d{4}\s*)+))?$'),
}

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')


def validate_string_input(value: str, input_type: str = 'general', max_length: int = None, required: bool = True) -> str:
    """
    Validate a string input.

    Args:
        value: The string value to validate
        input_type: One of the SAFE_PATTERNS keys, or 'general' for free text
        max_length: Maximum allowed length (configured default if None)
        required: Whether the input is required (cannot be empty)

    Returns:
        The stripped string

    Raises:
        ValueError: If validation fails
    """
    if value is None:
        if required:
            raise ValueError("Required string input cannot be None")
        return ""

    if not isinstance(value, str):
        raise ValueError(f"Input must be a string, got {type(value)}")

    if max_length is None:
        max_length = LIMITS["max_string_length"]

    if len(value) > max_length:
        raise ValueError(f"Input length ({len(value)}) exceeds maximum ({max_length})")

    stripped = value.strip()
    if required and not stripped:
        raise ValueError("Required string input cannot be empty")

    if _CONTROL_CHARS.search(value):
        raise ValueError("Input contains control characters")

    if input_type in SAFE_PATTERNS and stripped:
        if not SAFE_PATTERNS[input_type].match(stripped):
            raise ValueError(f"Input does not match required pattern for {input_type}")

    return stripped


def validate_numeric_input(value: Any, min_val: int = None, max_val: int = None,
                           default: int = None, required: bool = True) -> int:
    """
    Integer validation with range checking.

    Raises:
        ValueError: If validation fails and no default provided
    """
    if value is None:
        if default is not None:
            return default
        if not required:
            return 0
        raise ValueError("Required numeric input cannot be None")

    if isinstance(value, bool):
        raise ValueError("Boolean is not a valid numeric input")

    try:
        int_value = int(value)
    except (ValueError, TypeError):
        if default is not None:
            return default
        raise ValueError(f"Cannot convert '{value}' to integer")

    if min_val is not None and int_value < min_val:
        raise ValueError(f"Value {int_value} is below minimum {min_val}")

    if max_val is not None and int_value > max_val:
        raise ValueError(f"Value {int_value} exceeds maximum {max_val}")

    return int_value


def validate_limit(value: int, min_val: int, max_val: int, default: int = None) -> int:
    """Clamp-style limit validation: invalid values fall back to the default."""
    if value is None:
        return default if default is not None else min_val

    try:
        return validate_numeric_input(value, min_val, max_val, default, required=True)
    except ValueError:
        return default if default is not None else min_val
