"""Authentication endpoints of the FitTrack API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from ..constants import HTTP_REQUEST_TIMEOUT_SECONDS
from ..errors.handling import extract_error_message
from ..errors.internal import NetworkError, OAuthError, ParsingError, RateLimitError
from .claims import decode_claims
from .types import AuthResult, AuthUser


class AuthClient:
    """Client for the login and token refresh endpoints.

    Requests go straight through the shared ``aiohttp.ClientSession`` and
    never through the request interceptor, so a refresh can not recurse into
    another refresh. The session's cookie jar carries the server-side session
    cookie the refresh endpoint relies on.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        base_url: str,
        *,
        timeout: float = HTTP_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        if http_session is None:
            raise TypeError("http_session cannot be None")
        self.session = http_session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def refresh(self, access_token: str | None = None) -> AuthResult:
        """Exchange the current credentials for a new access token.

        Args:
            access_token: Current (possibly stale) token sent as bearer.

        Returns:
            AuthResult with the new token and user summary.

        Raises:
            OAuthError: The server rejected the credentials (401).
            RateLimitError: The server rate limited the refresh (429).
            NetworkError: Transport failure, timeout or unexpected status.
            ParsingError: The response lacks an access token.
        """
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        data = await self._post("/auth/refresh", headers=headers, context="token refresh")
        result = self._parse_auth_response(data)
        logging.debug("🔁 Refresh endpoint returned a new access token")
        return result

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password."""
        if not email or not password:
            raise ValueError("email and password are required")
        data = await self._post(
            "/auth/login",
            json={"email": email, "password": password},
            context="login",
        )
        result = self._parse_auth_response(data)
        logging.info(f"🔓 Logged in user={result.user.email if result.user else email}")
        return result

    async def _post(
        self,
        path: str,
        *,
        context: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with self.session.post(
                url, headers=headers, json=json, timeout=timeout
            ) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
                if resp.status in (200, 201):
                    return body
                message = extract_error_message(body)
                if resp.status == 401:
                    raise OAuthError(
                        f"Unauthorized during {context}: {message}",
                        data={"status": resp.status},
                    )
                if resp.status == 429:
                    raise RateLimitError(f"Rate limited during {context}")
                raise NetworkError(
                    f"HTTP {resp.status} during {context}: {message}",
                    data={"status": resp.status},
                )
        except TimeoutError as e:
            raise NetworkError(f"Timeout during {context}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error during {context}: {e}") from e

    @staticmethod
    def _parse_auth_response(data: Any) -> AuthResult:
        if not isinstance(data, dict):
            raise ParsingError("Auth response is not a JSON object")
        token = data.get("access_token")
        if not isinstance(token, str) or not token:
            raise ParsingError("Missing access_token in auth response")
        user = AuthUser.from_payload(data.get("user"))
        if user is None:
            # Fall back to the identity claims embedded in the token itself.
            user = AuthUser.from_payload(decode_claims(token))
        return AuthResult(access_token=token, user=user)
