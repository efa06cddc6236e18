"""Unverified decoding of access token claims.

The payload segment of the bearer token is read without checking the
signature; it is only used to schedule refreshes, never to trust identity.
Any decoding problem is reported as "no expiry", which every check below
treats as expired.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from datetime import UTC, datetime
from typing import Any

from ..constants import TOKEN_REFRESH_THRESHOLD_SECONDS


def decode_claims(token: str | None) -> dict[str, Any] | None:
    """Return the decoded claims payload, or ``None`` when malformed."""
    if not token:
        return None
    parts = token.split(".")
    if len(parts) < 2 or not parts[1]:
        return None
    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(segment.encode("ascii"))
        claims = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        return None
    return claims if isinstance(claims, dict) else None


def token_expiry(token: str | None) -> datetime | None:
    """Expiry instant from the ``exp`` claim (UTC), or ``None``."""
    claims = decode_claims(token)
    if claims is None:
        return None
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, int | float):
        return None
    try:
        return datetime.fromtimestamp(exp, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def remaining_seconds(token: str | None, now: float | None = None) -> float | None:
    """Seconds until expiry (negative once expired), ``None`` if unknown."""
    expiry = token_expiry(token)
    if expiry is None:
        return None
    current = time.time() if now is None else now
    return expiry.timestamp() - current


def is_token_expired(token: str | None, now: float | None = None) -> bool:
    remaining = remaining_seconds(token, now)
    return remaining is None or remaining <= 0


def is_token_expiring_soon(
    token: str | None,
    threshold_seconds: float = TOKEN_REFRESH_THRESHOLD_SECONDS,
    now: float | None = None,
) -> bool:
    """True when less than ``threshold_seconds`` of lifetime remain.

    Missing or undecodable tokens count as expiring.
    """
    remaining = remaining_seconds(token, now)
    return remaining is None or remaining < threshold_seconds


__all__ = [
    "decode_claims",
    "token_expiry",
    "remaining_seconds",
    "is_token_expired",
    "is_token_expiring_soon",
]
