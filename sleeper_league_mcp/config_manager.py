"""
Configuration management system for the Sleeper League MCP Server.

Sources, lowest precedence first:
- dataclass defaults
- a configuration file (YAML/JSON)
- SLEEPER_MCP_* environment variables

The file is watched and hot-reloaded when it changes.
"""

import os
import json
import logging
import yaml
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass, field
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
import httpx
from pydantic import BaseModel, ValidationError, Field


logger = logging.getLogger(__name__)


@dataclass
class TimeoutConfig:
    """HTTP timeout configuration."""
    total: float = 30.0
    connect: float = 10.0


@dataclass
class LongTimeoutConfig:
    """Long HTTP timeout for the player directory dump (several MB)."""
    total: float = 90.0
    connect: float = 15.0


@dataclass
class ServerConfig:
    """Server configuration."""
    version: str = "0.1.0"
    base_user_agent: str = field(init=False)

    def __post_init__(self):
        self.base_user_agent = f"Sleeper-League-MCP/{self.version}"


@dataclass
class SleeperConfig:
    """Upstream API and player directory settings."""
    api_base: str = "https://api.sleeper.app/v1"
    player_db_path: str = "sleeper_players.db"
    player_directory_ttl_hours: int = 24


@dataclass
class ValidationLimits:
    """Parameter validation limits."""
    week_min: int = 1
    week_max: int = 18
    trending_limit: int = 25
    max_string_length: int = 100


class ConfigurationModel(BaseModel):
    """Pydantic model for configuration validation."""
    timeout: TimeoutConfig = Field(default_factory=TimeoutConfig)
    long_timeout: LongTimeoutConfig = Field(default_factory=LongTimeoutConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    sleeper: SleeperConfig = Field(default_factory=SleeperConfig)
    limits: ValidationLimits = Field(default_factory=ValidationLimits)

    model_config = {"arbitrary_types_allowed": True}


class ConfigFileHandler(FileSystemEventHandler):
    """File system event handler for configuration hot-reloading."""

    def __init__(self, config_manager: 'ConfigManager'):
        self.config_manager = config_manager
        super().__init__()

    def on_modified(self, event):
        if not event.is_directory and event.src_path == str(self.config_manager.config_file_path):
            logger.info(f"Configuration file {event.src_path} modified, reloading")
            self.config_manager.reload_configuration()


# env var -> (section, key, converter)
ENV_MAPPINGS = {
    'SLEEPER_MCP_TIMEOUT_TOTAL': ('timeout', 'total', float),
    'SLEEPER_MCP_TIMEOUT_CONNECT': ('timeout', 'connect', float),
    'SLEEPER_MCP_LONG_TIMEOUT_TOTAL': ('long_timeout', 'total', float),
    'SLEEPER_MCP_LONG_TIMEOUT_CONNECT': ('long_timeout', 'connect', float),
    'SLEEPER_MCP_SERVER_VERSION': ('server', 'version', str),
    'SLEEPER_MCP_API_BASE': ('sleeper', 'api_base', str),
    'SLEEPER_MCP_PLAYER_DB_PATH': ('sleeper', 'player_db_path', str),
    'SLEEPER_MCP_PLAYER_DIRECTORY_TTL_HOURS': ('sleeper', 'player_directory_ttl_hours', int),
    'SLEEPER_MCP_WEEK_MIN': ('limits', 'week_min', int),
    'SLEEPER_MCP_WEEK_MAX': ('limits', 'week_max', int),
    'SLEEPER_MCP_TRENDING_LIMIT': ('limits', 'trending_limit', int),
    'SLEEPER_MCP_MAX_STRING_LENGTH': ('limits', 'max_string_length', int),
}


class ConfigManager:
    """
    Configuration manager supporting environment variables, configuration
    files, validation, and hot-reloading.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None, enable_hot_reload: bool = True):
        """
        Args:
            config_file: Path to configuration file (YAML or JSON)
            enable_hot_reload: Whether to watch the file for changes
        """
        self.config_file_path = Path(config_file) if config_file else None
        self.enable_hot_reload = enable_hot_reload
        self._config_lock = threading.RLock()
        self._observer = None
        self._config: Optional[ConfigurationModel] = None

        self.load_configuration()

        if self.enable_hot_reload and self.config_file_path and self.config_file_path.exists():
            self._setup_hot_reload()

    def _setup_hot_reload(self):
        """Set up file system monitoring for hot-reloading."""
        if self._observer:
            self._observer.stop()
            self._observer.join()

        self._observer = Observer()
        event_handler = ConfigFileHandler(self)
        self._observer.schedule(event_handler, str(self.config_file_path.parent), recursive=False)
        self._observer.start()

    def load_configuration(self):
        """Load configuration from environment variables and config file."""
        with self._config_lock:
            config_dict = {}

            if self.config_file_path and self.config_file_path.exists():
                config_dict = self._load_config_file()

            config_dict = self._load_environment_variables(config_dict)

            try:
                self._config = ConfigurationModel(**config_dict)
            except ValidationError as e:
                raise ValueError(f"Configuration validation failed: {e}")

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        suffix = self.config_file_path.suffix.lower()
        if suffix not in ('.yml', '.yaml', '.json'):
            raise ValueError(f"Unsupported configuration file format: {self.config_file_path.suffix}")
        try:
            with open(self.config_file_path, 'r') as f:
                if suffix == '.json':
                    return json.load(f)
                return yaml.safe_load(f) or {}
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to load configuration file {self.config_file_path}: {e}")

    def _load_environment_variables(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay SLEEPER_MCP_* environment variables onto the file config."""
        for env_var, (section, key, type_converter) in ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    config_dict.setdefault(section, {})
                    config_dict[section][key] = type_converter(env_value)
                except (ValueError, TypeError) as e:
                    raise ValueError(f"Invalid value for environment variable {env_var}: {env_value} ({e})")

        return config_dict

    def reload_configuration(self):
        """Reload configuration from file and environment variables."""
        try:
            self.load_configuration()
            logger.info("Configuration reloaded successfully")
        except ValueError as e:
            logger.error(f"Failed to reload configuration: {e}")

    @property
    def config(self) -> ConfigurationModel:
        """Get the current configuration."""
        with self._config_lock:
            if self._config is None:
                raise RuntimeError("Configuration not loaded")
            return self._config

    def get_http_timeout(self) -> httpx.Timeout:
        timeout_config = self.config.timeout
        return httpx.Timeout(timeout_config.total, connect=timeout_config.connect)

    def get_long_http_timeout(self) -> httpx.Timeout:
        timeout_config = self.config.long_timeout
        return httpx.Timeout(timeout_config.total, connect=timeout_config.connect)

    def get_user_agent(self, service_name: str = None) -> str:
        """Get user agent string for a service."""
        base_agent = self.config.server.base_user_agent
        if service_name:
            service_descriptions = {
                "sleeper_users": "Sleeper Users Fetcher",
                "sleeper_league": "Sleeper League Fetcher",
                "sleeper_rosters": "Sleeper Rosters Fetcher",
                "sleeper_matchups": "Sleeper Matchups Fetcher",
                "sleeper_playoffs": "Sleeper Playoffs Fetcher",
                "sleeper_nfl_state": "Sleeper NFL State Fetcher",
                "sleeper_trending": "Sleeper Trending Players Fetcher",
                "sleeper_players": "Sleeper Player Directory Fetcher",
            }
            description = service_descriptions.get(service_name, "Generic Service")
            return f"{base_agent} ({description})"
        return base_agent

    def get_limits_dict(self) -> Dict[str, int]:
        """Validation limits as a plain dict."""
        limits = self.config.limits
        return {
            "week_min": limits.week_min,
            "week_max": limits.week_max,
            "trending_limit": limits.trending_limit,
            "max_string_length": limits.max_string_length,
        }

    def stop(self):
        """Stop the configuration manager and clean up resources."""
        if self._observer:
            self._observer.stop()
            self._observer.join()


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        config_paths = [
            Path("config.yml"),
            Path("config.yaml"),
            Path("config.json"),
            Path("/etc/sleeper-mcp/config.yml"),
            Path("/etc/sleeper-mcp/config.yaml"),
            Path("/etc/sleeper-mcp/config.json"),
        ]

        config_file = None
        for path in config_paths:
            if path.exists():
                config_file = path
                break

        _config_manager = ConfigManager(config_file)

    return _config_manager


def set_config_manager(config_manager: ConfigManager):
    """Set the global configuration manager instance."""
    global _config_manager
    if _config_manager:
        _config_manager.stop()
    _config_manager = config_manager
