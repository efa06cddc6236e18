"""Access token and user summary storage."""

from __future__ import annotations

import json
import logging
from datetime import datetime

from ..constants import ACCESS_TOKEN_KEY, USER_PAYLOAD_KEY
from ..storage import KeyValueStorage, MemoryStorage
from .claims import token_expiry
from .types import AuthUser


class TokenStore:
    """Holds the current access token, its derived expiry and the user summary.

    The token and user are persisted through a ``KeyValueStorage`` under the
    ``access_token`` and ``user_payload`` keys. Expiry is decoded lazily from
    the token claims and cached per raw token value; ``None`` means the token
    could not be decoded and must be treated as expired.
    """

    def __init__(self, storage: KeyValueStorage | None = None) -> None:
        self.storage = storage if storage is not None else MemoryStorage()
        self._expiry_token: str | None = None
        self._expiry: datetime | None = None

    @property
    def access_token(self) -> str | None:
        token = self.storage.get(ACCESS_TOKEN_KEY)
        return token or None

    @property
    def expires_at(self) -> datetime | None:
        token = self.access_token
        if token is None:
            return None
        if token != self._expiry_token:
            self._expiry = token_expiry(token)
            self._expiry_token = token
        return self._expiry

    @property
    def user(self) -> AuthUser | None:
        raw = self.storage.get(USER_PAYLOAD_KEY)
        if not raw:
            return None
        try:
            payload = json.loads(raw)
        except ValueError:
            logging.warning("⚠️ Discarding unreadable stored user payload")
            return None
        return AuthUser.from_payload(payload)

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None and self.user is not None

    def save(self, access_token: str, user: AuthUser | None = None) -> None:
        """Persist a new token; the user summary is only replaced when given."""
        if not access_token:
            raise ValueError("access_token cannot be empty")
        self.storage.set(ACCESS_TOKEN_KEY, access_token)
        if user is not None:
            self.storage.set(USER_PAYLOAD_KEY, json.dumps(user.to_dict()))
        logging.debug(f"🔑 Stored access token expires_at={self.expires_at}")

    def clear(self) -> None:
        self.storage.remove(ACCESS_TOKEN_KEY)
        self.storage.remove(USER_PAYLOAD_KEY)
        self._expiry_token = None
        self._expiry = None
        logging.debug("🗑️ Cleared stored credentials")
