"""
Error handling utilities for the Sleeper League MCP Server.

Every fetch and tool in this package reports failure as a value, never as a
raised exception that escapes to the host process. This module provides the
standard response envelopes and the decorators that turn httpx and sqlite
failures into those envelopes.
"""

import logging
import httpx
from functools import wraps
from typing import Any, Dict, Optional, Callable


logger = logging.getLogger(__name__)


class ErrorType:
    """Standard error type constants."""
    VALIDATION = "validation_error"
    TIMEOUT = "timeout_error"
    HTTP = "http_error"
    DATABASE = "database_error"
    NETWORK = "network_error"
    NOT_FOUND = "not_found_error"
    UNEXPECTED = "unexpected_error"


class NoDataReason:
    """Reasons a period legitimately has nothing to report."""
    SEASON_INCOMPLETE = "season_incomplete"
    PLAYOFFS_NOT_STARTED = "playoffs_not_started"
    NEVER_PLAYED = "never_played"
    UPCOMING = "upcoming"
    NOT_APPLICABLE = "not_applicable"


# Upstream-unavailable errors collapse to an absent result at the core boundary.
UPSTREAM_ERROR_TYPES = frozenset({
    ErrorType.TIMEOUT, ErrorType.HTTP, ErrorType.NETWORK, ErrorType.UNEXPECTED
})


def create_error_response(
    error_message: str,
    error_type: str = ErrorType.UNEXPECTED,
    data: Optional[Dict[str, Any]] = None,
    success: bool = False
) -> Dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        error_message: Human-readable error description
        error_type: Type of error (see ErrorType constants)
        data: Tool-specific data to include in response
        success: Whether the operation was successful

    Returns:
        Standardized error response dictionary
    """
    response = {
        "success": success,
        "error": error_message,
        "error_type": error_type
    }

    if data:
        response.update(data)

    if not success:
        # not-found is an expected outcome for lookups; keep it out of the error stream
        if error_type == ErrorType.NOT_FOUND:
            logger.info(f"Not found: {error_message}")
        else:
            logger.error(f"Error ({error_type}): {error_message}")

    return response


def create_success_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: Tool-specific data to include in response

    Returns:
        Standardized success response dictionary
    """
    response = {
        "success": True,
        "error": None,
        "error_type": None
    }
    response.update(data)
    return response


def create_no_data_response(reason: str, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Success envelope for a period with nothing to report.

    Distinct from an error so a multi-season report can say "season X
    incomplete" instead of "season X failed".
    """
    response = create_success_response({
        "no_data": True,
        "reason": reason,
        "message": message,
    })
    if data:
        response.update(data)
    return response


def is_upstream_failure(response: Optional[Dict[str, Any]]) -> bool:
    """True when a fetch envelope reports a transport/HTTP level failure."""
    if not response:
        return True
    return not response.get("success") and response.get("error_type") in UPSTREAM_ERROR_TYPES


def handle_http_errors(
    default_data: Optional[Dict[str, Any]] = None,
    operation_name: str = "operation"
) -> Callable:
    """
    Decorator for standardizing HTTP API error handling.

    A 404 from the upstream API means the identifier does not resolve and is
    reported as ``not_found_error`` rather than a generic HTTP failure.

    Args:
        default_data: Default data structure to return on errors
        operation_name: Name of the operation for error messages

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Dict[str, Any]:
            try:
                return await func(*args, **kwargs)

            except httpx.TimeoutException:
                return create_error_response(
                    f"Request timed out while {operation_name}",
                    ErrorType.TIMEOUT,
                    default_data or {}
                )

            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    return create_error_response(
                        f"Not found while {operation_name}",
                        ErrorType.NOT_FOUND,
                        default_data or {}
                    )
                return create_error_response(
                    f"HTTP {e.response.status_code}: {e.response.reason_phrase}",
                    ErrorType.HTTP,
                    default_data or {}
                )

            except httpx.NetworkError as e:
                return create_error_response(
                    f"Network error while {operation_name}: {str(e)}",
                    ErrorType.NETWORK,
                    default_data or {}
                )

            except Exception as e:
                logger.exception(f"Unexpected failure during {operation_name}")
                return create_error_response(
                    f"Unexpected error during {operation_name}: {str(e)}",
                    ErrorType.UNEXPECTED,
                    default_data or {}
                )

        return wrapper
    return decorator


def handle_database_errors(
    default_data: Optional[Dict[str, Any]] = None,
    operation_name: str = "database operation"
) -> Callable:
    """
    Decorator for standardizing database operation error handling.

    Args:
        default_data: Default data structure to return on errors
        operation_name: Name of the operation for error messages

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Dict[str, Any]:
            try:
                return func(*args, **kwargs)

            except Exception as e:
                return create_error_response(
                    f"Error during {operation_name}: {str(e)}",
                    ErrorType.DATABASE,
                    default_data or {}
                )

        return wrapper
    return decorator


def handle_validation_error(
    error_message: str,
    default_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Create a standardized validation error response.

    Args:
        error_message: Validation error message
        default_data: Default data structure to return

    Returns:
        Standardized validation error response
    """
    return create_error_response(
        error_message,
        ErrorType.VALIDATION,
        default_data or {}
    )
