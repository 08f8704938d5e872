"""Exit codes for script-friendly error handling.

These codes let wrapping scripts determine the category of failure
without parsing error messages.
"""

from __future__ import annotations

# Success
SUCCESS = 0

# Stripe is unreachable or rate limiting us
API_UNAVAILABLE = 1

# Missing or malformed input (month selector, config values)
INPUT_ERROR = 2

# API key rejected
AUTH_ERROR = 3

# Any other error (bad request, server error, unknown)
OTHER_ERROR = 4


ERROR_CODE_MAP: dict[str, int] = {
    "CONNECTION_ERROR": API_UNAVAILABLE,
    "RATE_LIMITED": API_UNAVAILABLE,
    "AUTH_ERROR": AUTH_ERROR,
    "MISSING_INPUT": INPUT_ERROR,
    "INVALID_MONTH": INPUT_ERROR,
    "VALIDATION_ERROR": INPUT_ERROR,
    "NOT_FOUND": OTHER_ERROR,
    "INVALID_REQUEST": OTHER_ERROR,
    "API_ERROR": OTHER_ERROR,
}


def exit_code_for(error_code: str) -> int:
    """Map an error code string to a CLI exit code."""
    return ERROR_CODE_MAP.get(error_code, OTHER_ERROR)
