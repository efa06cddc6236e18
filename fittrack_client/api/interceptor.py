"""Bearer token attachment and one-shot 401 recovery for outbound requests."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import aiohttp

from ..auth_token.gate import RefreshGate, Refresher
from ..auth_token.hook_manager import SessionHooks
from ..auth_token.store import TokenStore
from ..errors.handling import extract_error_message
from ..errors.internal import (
    APIError,
    NetworkError,
    SessionExpiredError,
)


class RequestState(str, Enum):
    """Lifecycle of a single outbound request.

    ``NEW -> SENT -> SUCCESS`` on the happy path; a 401 moves through
    ``AUTH_FAILED -> REFRESHING -> RETRIED`` at most once before ending in
    ``SUCCESS`` or ``TERMINAL_FAILURE``. ``FAILED`` covers every other error
    response or transport failure.
    """

    NEW = "new"
    SENT = "sent"
    SUCCESS = "success"
    AUTH_FAILED = "auth_failed"
    REFRESHING = "refreshing"
    RETRIED = "retried"
    TERMINAL_FAILURE = "terminal_failure"
    FAILED = "failed"


@dataclass
class RequestContext:
    method: str
    path: str
    json: Any = None
    params: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    retried: bool = False
    state: RequestState = RequestState.NEW


@dataclass
class HttpResponse:
    status: int
    payload: Any = None


Sender = Callable[[RequestContext], Awaitable[HttpResponse]]


class RequestInterceptor:
    """Wraps every API call with authentication handling.

    Before sending, the refresh gate gets a chance to proactively refresh a
    token close to expiry, then the stored token is attached as a bearer
    header. A 401 response triggers exactly one reactive refresh (directly,
    not through the gate) and one resend; the ``retried`` flag on the request
    context keeps a second 401 from starting another cycle. When recovery is
    impossible the stored credentials are cleared, the session-expired hooks
    run and ``SessionExpiredError`` is raised.
    """

    def __init__(
        self,
        store: TokenStore,
        gate: RefreshGate,
        refresher: Refresher,
        hooks: SessionHooks | None = None,
    ) -> None:
        self.store = store
        self.gate = gate
        self._refresher = refresher
        self.hooks = hooks

    async def execute(self, ctx: RequestContext, send: Sender) -> HttpResponse:
        """Send ``ctx`` through ``send`` with authentication handling.

        Returns:
            The successful response.

        Raises:
            SessionExpiredError: 401 that could not be recovered.
            APIError: Any other error status, with a normalized message.
            NetworkError: Transport failure or timeout.
        """
        await self.before_request(ctx)
        response = await self._send(ctx, send)
        return await self.handle_response(ctx, response, send)

    async def before_request(self, ctx: RequestContext) -> None:
        await self.gate.ensure_fresh_token()
        self._attach_token(ctx)

    async def handle_response(
        self, ctx: RequestContext, response: HttpResponse, send: Sender
    ) -> HttpResponse:
        if response.status == 401:
            return await self._handle_unauthorized(ctx, send)
        if response.status >= 400:
            ctx.state = RequestState.FAILED
            raise APIError(
                extract_error_message(response.payload),
                response.status,
                data={"method": ctx.method, "path": ctx.path},
            )
        ctx.state = RequestState.SUCCESS
        return response

    async def _handle_unauthorized(
        self, ctx: RequestContext, send: Sender
    ) -> HttpResponse:
        ctx.state = RequestState.AUTH_FAILED
        if ctx.retried:
            logging.warning(
                f"🚫 Request rejected again after token refresh method={ctx.method} path={ctx.path}"
            )
            await self._terminate_session(ctx)
            raise SessionExpiredError("Session expired")

        ctx.retried = True
        ctx.state = RequestState.REFRESHING
        logging.info(
            f"🔐 Unauthorized response; refreshing token method={ctx.method} path={ctx.path}"
        )
        try:
            result = await self._refresher()
            self.store.save(result.access_token, result.user)
        except Exception as e:  # noqa: BLE001
            logging.warning(
                f"❌ Token refresh after 401 failed type={type(e).__name__} error={str(e)}"
            )
            await self._terminate_session(ctx)
            raise SessionExpiredError(f"Session expired: {str(e)}") from e

        if self.hooks is not None:
            await self.hooks.fire_update_hooks()
        self._attach_token(ctx)
        ctx.state = RequestState.RETRIED
        retry_response = await self._send(ctx, send)
        return await self.handle_response(ctx, retry_response, send)

    async def _terminate_session(self, ctx: RequestContext) -> None:
        ctx.state = RequestState.TERMINAL_FAILURE
        self.store.clear()
        logging.warning("🔒 Session terminated; stored credentials cleared")
        if self.hooks is not None:
            await self.hooks.fire_session_expired_hooks()

    def _attach_token(self, ctx: RequestContext) -> None:
        token = self.store.access_token
        if token:
            ctx.headers["Authorization"] = f"Bearer {token}"
        else:
            ctx.headers.pop("Authorization", None)

    @staticmethod
    async def _send(ctx: RequestContext, send: Sender) -> HttpResponse:
        if ctx.state is RequestState.NEW:
            ctx.state = RequestState.SENT
        try:
            return await send(ctx)
        except TimeoutError as e:
            ctx.state = RequestState.FAILED
            raise NetworkError(
                f"Request timed out: {ctx.method} {ctx.path}",
                data={"method": ctx.method, "path": ctx.path},
            ) from e
        except aiohttp.ClientError as e:
            ctx.state = RequestState.FAILED
            raise NetworkError(
                extract_error_message(None, e),
                data={"method": ctx.method, "path": ctx.path},
            ) from e
