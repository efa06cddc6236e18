"""Centralized internal error hierarchy.

These exceptions provide semantic categories for retry logic and higher-level
error handling. Only raise these inside application/network boundaries – never
directly surface raw aiohttp / JSON errors to callers; wrap them instead.

Classes:
  InternalError        – Base for all internal errors.
  NetworkError         – Transient network/IO issues (safe to retry).
  OAuthError           – Authentication / authorization related failures.
  SessionExpiredError  – Session terminated; stored credentials were cleared.
  ParsingError         – Response parsing / schema validation issues.
  RateLimitError       – Explicit rate limiting signalled by remote service.
  APIError             – Non-auth HTTP error with a normalized message.
  TokenRefreshError    – Refresh failure delivered to queued refresh waiters.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


class InternalError(Exception):
    """Base class for all internal client errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}

    @property
    def message(self) -> str:
        return str(self)


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    This includes connection failures, resets and timeouts that may be retried.
    """


class OAuthError(InternalError):
    """Exception raised for authentication or authorization failures.

    These errors indicate issues with credentials or tokens and are not
    suitable for automatic retry.
    """


class SessionExpiredError(OAuthError):
    """Raised when the session cannot be recovered after a 401 response.

    By the time this is raised the token store has been cleared and the
    session-expired hooks have run; callers should send the user back to login.
    """


class ParsingError(InternalError):
    """Exception raised for response parsing or schema validation errors."""


class TokenRefreshError(InternalError):
    """Failure of an in-flight refresh, as observed by queued waiters."""


@dataclass
class RateLimitContext:
    """Context information for rate limiting errors.

    Attributes:
        remaining: The number of remaining requests allowed, or None if unknown.
    """

    remaining: int | None = None


class RateLimitError(InternalError):
    """Exception raised when rate limiting is encountered.

    Args:
        message: Optional error message, defaults to "Rate limited".
        context: Optional RateLimitContext with additional rate limit details.
    """

    def __init__(
        self, message: str = "Rate limited", *, context: RateLimitContext | None = None
    ):
        super().__init__(message, data={"rate_limit": context})


class APIError(InternalError):
    """HTTP error response carrying a human-readable message.

    Args:
        message: Normalized message (server message, transport message or fallback).
        status_code: HTTP status of the response, if one was received.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        data: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, data=data)
        self.status_code = status_code


__all__ = [
    "InternalError",
    "NetworkError",
    "OAuthError",
    "SessionExpiredError",
    "ParsingError",
    "TokenRefreshError",
    "RateLimitError",
    "RateLimitContext",
    "APIError",
]
