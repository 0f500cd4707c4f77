"""
Standardized error response utilities for the rewards API.

Provides consistent error response format across all endpoints:
{
    "error": {
        "message": "User-friendly error message",
        "code": "ERROR_CODE"
    }
}

Usage:
    from app.utils.errors import error_response, ErrorCode

    return error_response("Token not found", ErrorCode.TOKEN_NOT_FOUND, 404)
"""
import logging
from enum import Enum
from flask import jsonify
from typing import Optional

from .exceptions import (
    RewardsError,
    NotFoundError,
    AlreadyRedeemedError,
    DuplicateError,
    ValidationError,
    InsufficientBalanceError,
    AuthorizationError,
    InternalError,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Authentication & Authorization (401, 403)
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Validation Errors (400)
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Not Found (404)
    NOT_FOUND = "NOT_FOUND"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    PAYOUT_NOT_FOUND = "PAYOUT_NOT_FOUND"

    # Conflict (409)
    ALREADY_REDEEMED = "ALREADY_REDEEMED"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Business Logic Errors (400)
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"

    # Rate limiting (429)
    RATE_LIMITED = "RATE_LIMITED"

    # Server Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


def status_for(error: RewardsError) -> int:
    """HTTP status code for a core exception."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, (AlreadyRedeemedError, DuplicateError)):
        return 409
    if isinstance(error, (ValidationError, InsufficientBalanceError)):
        return 400
    if isinstance(error, AuthorizationError):
        return error.status_code
    return 500


def error_response(
    message: str,
    code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    status_code: int = 500,
    log_error: bool = True,
    details: Optional[dict] = None,
    **extra
) -> tuple:
    """
    Create a standardized error response.

    Args:
        message: User-friendly error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code
        log_error: Whether to log the error (default True for 500s)
        details: Optional additional details (only logged, not returned to user)
        extra: Top-level keys merged into the body (e.g. success=False)

    Returns:
        Tuple of (response, status_code) for Flask
    """
    if log_error and status_code >= 500:
        logger.error(f"API Error [{code}]: {message}", extra={"details": details})
    elif log_error and status_code >= 400:
        logger.warning(f"API Error [{code}]: {message}", extra={"details": details})

    response = {
        "error": {
            "message": message,
            "code": code.value if isinstance(code, ErrorCode) else code
        }
    }
    response.update(extra)

    return jsonify(response), status_code


def from_exception(error: RewardsError, **extra) -> tuple:
    """Translate a core exception into an error response."""
    status_code = status_for(error)
    if isinstance(error, InternalError):
        # Internal details stay in the logs
        return error_response(
            "Internal server error", ErrorCode.INTERNAL_ERROR, 500,
            details={'error': error.message}, **extra
        )
    return error_response(error.message, error.code, status_code, log_error=False, **extra)


# Convenience functions for common error types
def bad_request(message: str, code: ErrorCode = ErrorCode.INVALID_REQUEST) -> tuple:
    """400 Bad Request error."""
    return error_response(message, code, 400, log_error=False)


def unauthorized(message: str = "Authentication required", code: ErrorCode = ErrorCode.AUTH_REQUIRED) -> tuple:
    """401 Unauthorized error."""
    return error_response(message, code, 401, log_error=False)


def forbidden(message: str = "Permission denied", code: ErrorCode = ErrorCode.PERMISSION_DENIED) -> tuple:
    """403 Forbidden error."""
    return error_response(message, code, 403, log_error=False)


def not_found(message: str, code: ErrorCode = ErrorCode.NOT_FOUND) -> tuple:
    """404 Not Found error."""
    return error_response(message, code, 404, log_error=False)


def internal_error(message: str = "An unexpected error occurred", details: Optional[dict] = None) -> tuple:
    """500 Internal Server Error."""
    return error_response(message, ErrorCode.INTERNAL_ERROR, 500, log_error=True, details=details)
