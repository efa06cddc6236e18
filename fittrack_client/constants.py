"""
Configuration constants for the FitTrack API client

This module contains all configurable constants used throughout the client.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Token expiry & refresh thresholds
TOKEN_REFRESH_THRESHOLD_SECONDS = _get_env_int(
    "TOKEN_REFRESH_THRESHOLD_SECONDS", 24 * 60 * 60
)  # Refresh proactively when less than this many seconds remain (1 day)
TOKEN_REFRESH_TIMEOUT_SECONDS = _get_env_float(
    "TOKEN_REFRESH_TIMEOUT_SECONDS", 30.0
)  # Upper bound on a single refresh call before waiters are released

# Read-through cache
REST_TIMER_CACHE_TTL_SECONDS = _get_env_float(
    "REST_TIMER_CACHE_TTL_SECONDS", 5 * 60
)  # Freshness window for the cached rest-timer list (5 minutes)
CACHE_FETCH_TIMEOUT_SECONDS = _get_env_float(
    "CACHE_FETCH_TIMEOUT_SECONDS", 30.0
)  # Upper bound on a single cache fetch

# Network/HTTP constants
API_BASE_URL = os.getenv("FITTRACK_API_URL", "http://localhost:3000")
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Default HTTP request timeout

# Retry/backoff constants
FETCH_MAX_ATTEMPTS = _get_env_int(
    "FETCH_MAX_ATTEMPTS", 3
)  # Attempts for idempotent list fetches on transient network errors
RETRY_BACKOFF_MULTIPLIER = _get_env_float(
    "RETRY_BACKOFF_MULTIPLIER", 0.5
)  # Exponential backoff multiplier
RETRY_MAX_BACKOFF_SECONDS = _get_env_int(
    "RETRY_MAX_BACKOFF_SECONDS", 10
)  # Maximum backoff time in seconds

# Local persistence
STORAGE_PATH = os.getenv(
    "FITTRACK_STORAGE_PATH", os.path.join("~", ".fittrack", "state.json")
)
ACCESS_TOKEN_KEY = "access_token"
USER_PAYLOAD_KEY = "user_payload"
TIMER_SETTINGS_KEY = "restTimerSettings"

# Logging
LOG_LEVEL_ENV = "FITTRACK_LOG_LEVEL"  # Level name (e.g. WARNING); wins over DEBUG
ERROR_HISTORY_PER_CATEGORY = _get_env_int(
    "ERROR_HISTORY_PER_CATEGORY", 200
)  # Recent failures kept per category for the shutdown report
ERROR_SUMMARY_WINDOW_SECONDS = _get_env_int(
    "ERROR_SUMMARY_WINDOW_SECONDS", 60 * 60
)  # Window for the "recent" count in the shutdown report (1 hour)
