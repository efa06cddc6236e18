"""Shared types for the auth_token package."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class TokenOutcome(str, Enum):
    """Outcome of a proactive freshness check.

    Attributes:
        VALID: Token is far enough from expiry; nothing was done.
        REFRESHED: A refresh completed (performed by this caller or awaited).
        SKIPPED: No token stored; the request goes out unauthenticated.
        FAILED: Refresh failed; the stale token is still used.
    """

    VALID = "valid"
    REFRESHED = "refreshed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class AuthUser:
    """User summary persisted next to the access token."""

    sub: str
    email: str
    name: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> AuthUser | None:
        """Build from a server or claims payload; ``None`` if unusable.

        Server responses carry ``id`` while token claims carry ``sub``.
        """
        if not isinstance(payload, dict):
            return None
        sub = payload.get("sub") or payload.get("id")
        email = payload.get("email")
        if not sub or not isinstance(email, str):
            return None
        name = payload.get("name")
        return cls(sub=str(sub), email=email, name=name if isinstance(name, str) else None)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AuthResult:
    """New credentials returned by refresh or login."""

    access_token: str
    user: AuthUser | None
