"""Access token storage, decoding and single-flight refresh."""

from .claims import (  # noqa: F401
    decode_claims,
    is_token_expired,
    is_token_expiring_soon,
    remaining_seconds,
    token_expiry,
)
from .client import AuthClient
from .gate import RefreshGate
from .hook_manager import SessionHooks
from .store import TokenStore
from .types import AuthResult, AuthUser, TokenOutcome

__all__ = [
    "AuthClient",
    "AuthResult",
    "AuthUser",
    "RefreshGate",
    "SessionHooks",
    "TokenOutcome",
    "TokenStore",
    "decode_claims",
    "is_token_expired",
    "is_token_expiring_soon",
    "remaining_seconds",
    "token_expiry",
]
