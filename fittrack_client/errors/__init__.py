"""Error types and error handling helpers."""

from .internal import (  # noqa: F401
    APIError,
    InternalError,
    NetworkError,
    OAuthError,
    ParsingError,
    RateLimitContext,
    RateLimitError,
    SessionExpiredError,
    TokenRefreshError,
)

__all__ = [
    "APIError",
    "InternalError",
    "NetworkError",
    "OAuthError",
    "ParsingError",
    "RateLimitContext",
    "RateLimitError",
    "SessionExpiredError",
    "TokenRefreshError",
]
