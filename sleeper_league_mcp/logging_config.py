"""
Structured logging configuration for the Sleeper League MCP Server.

Log records are emitted as one JSON object per line. Contextual fields
(season, league id, tool name) ride along via ``log_with_context``.
"""

import logging
import logging.config
import json
import sys
from datetime import datetime, UTC
from typing import Optional
from pathlib import Path


SERVICE_NAME = "sleeper-league-mcp"


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def __init__(self, service_name: str = SERVICE_NAME, version: str = "0.1.0"):
        super().__init__()
        self.service_name = service_name
        self.version = version

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "version": self.version,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log_entry.update(context)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        return json.dumps(log_entry, default=str)


def setup_logging(
    log_level: str = "INFO",
    service_name: str = SERVICE_NAME,
    version: str = "0.1.0",
    enable_file_logging: bool = False,
    log_file_path: Optional[str] = None
) -> None:
    """
    Install the structured logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        service_name: Name of the service for log entries
        version: Version of the service
        enable_file_logging: Whether to add a rotating file handler
        log_file_path: Path to log file (defaults to logs/sleeper_league_mcp.log)
    """
    log_level = log_level.upper()

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
                "service_name": service_name,
                "version": version
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "structured",
                "stream": sys.stdout
            },
        },
        "loggers": {
            "sleeper_league_mcp": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False
            },
            "httpx": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False
            }
        },
        "root": {
            "level": log_level,
            "handlers": ["console"]
        }
    }

    if enable_file_logging:
        if log_file_path is None:
            log_file_path = str(Path("logs") / "sleeper_league_mcp.log")
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "structured",
            "filename": log_file_path,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf8"
        }
        config["loggers"]["sleeper_league_mcp"]["handlers"].append("file")
        config["root"]["handlers"].append("file")

    logging.config.dictConfig(config)


def log_with_context(logger: logging.Logger, level: str, message: str, **context) -> None:
    """
    Log a message with additional structured fields.

    Args:
        logger: Logger instance
        level: Log level name (debug, info, warning, error, critical)
        message: Log message
        **context: Fields merged into the JSON log entry
    """
    logger.log(getattr(logging, level.upper()), message, extra={"context": context})
