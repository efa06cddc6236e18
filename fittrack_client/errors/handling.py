from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import RETRY_BACKOFF_MULTIPLIER, RETRY_MAX_BACKOFF_SECONDS
from ..logging_config import log_structured_error
from .internal import (
    APIError,
    InternalError,
    NetworkError,
    OAuthError,
    ParsingError,
    RateLimitError,
)

T = TypeVar("T")

DEFAULT_ERROR_MESSAGE = "An error occurred"


def extract_error_message(
    payload: Any, error: BaseException | None = None
) -> str:
    """Pick the most useful human-readable message for a failed request.

    Priority: the server's structured ``message`` field (validation errors
    arrive as a list and are joined), then the transport error text, then a
    fixed fallback.

    Args:
        payload: Decoded response body, if any.
        error: Transport-level exception, if any.

    Returns:
        A non-empty message string.
    """
    if isinstance(payload, dict):
        server_message = payload.get("message")
        if isinstance(server_message, list):
            parts = [str(p) for p in server_message if p]
            if parts:
                return ", ".join(parts)
        elif isinstance(server_message, str) and server_message.strip():
            return server_message
    if error is not None and str(error).strip():
        return str(error)
    return DEFAULT_ERROR_MESSAGE


def log_error(
    message: str, error: Exception, context: dict[str, Any] | None = None
) -> None:
    """Log an error message with the associated exception details.

    The exception is mapped to a category so repeated failures of the same
    kind are aggregated by the structured logger.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    error_type = "unknown"
    if isinstance(error, NetworkError | OSError | ConnectionError):
        error_type = "network"
    elif isinstance(error, OAuthError):
        error_type = "auth"
    elif isinstance(error, RateLimitError):
        error_type = "ratelimit"
    elif isinstance(error, ParsingError):
        error_type = "parsing"
    elif isinstance(error, APIError):
        error_type = "api"
    elif isinstance(error, InternalError):
        error_type = "internal"

    log_structured_error(
        error_type,
        f"{message}: {str(error)}",
        error=error,
        context=context,
    )


def retry_budget_seconds(max_attempts: int, attempt_timeout: float) -> float:
    """Worst-case duration of ``handle_retryable_error`` when every attempt times out.

    Mirrors the backoff used there: ``max_attempts`` attempts of up to
    ``attempt_timeout`` each, separated by capped exponential waits.
    """
    attempts = max(1, max_attempts)
    waits = sum(
        min(RETRY_BACKOFF_MULTIPLIER * 2**k, RETRY_MAX_BACKOFF_SECONDS)
        for k in range(attempts - 1)
    )
    return attempts * attempt_timeout + waits


async def handle_retryable_error(
    operation: Callable[[], Awaitable[T]],
    context: str,
    max_attempts: int = 3,
) -> T:
    """Run an idempotent operation, retrying transient network failures.

    Only ``NetworkError`` triggers another attempt; anything else (auth,
    API or parsing errors) propagates immediately. When retries are exhausted
    the last ``NetworkError`` is re-raised unchanged so callers keep a single
    error vocabulary.

    Args:
        operation: Async callable performing the request.
        context: Descriptive context for the operation.
        max_attempts: Maximum number of attempts.

    Returns:
        The result of the operation.
    """

    def before_retry(retry_state: Any) -> None:
        if retry_state.attempt_number > 1:
            logging.info(
                f"🔁 Retrying {context} (attempt {retry_state.attempt_number}/{max_attempts})"
            )

    def after_retry(retry_state: Any) -> None:
        if retry_state.outcome.failed:
            log_error(
                f"Attempt failed for {context}",
                retry_state.outcome.exception(),
                context={"attempt": retry_state.attempt_number, "operation": context},
            )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(
            multiplier=RETRY_BACKOFF_MULTIPLIER, max=RETRY_MAX_BACKOFF_SECONDS
        ),
        retry=retry_if_exception_type(NetworkError),
        before=before_retry,
        after=after_retry,
        reraise=True,
    )
    return await retrying(operation)


__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "extract_error_message",
    "log_error",
    "handle_retryable_error",
    "retry_budget_seconds",
]
