"""Single-flight proactive token refresh."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable

from ..constants import TOKEN_REFRESH_THRESHOLD_SECONDS, TOKEN_REFRESH_TIMEOUT_SECONDS
from ..errors.internal import TokenRefreshError
from ..utils import format_duration
from .hook_manager import SessionHooks
from .store import TokenStore
from .types import AuthResult, TokenOutcome

Refresher = Callable[[], Awaitable[AuthResult]]


class RefreshGate:
    """Ensures at most one proactive token refresh is in flight.

    The first caller that finds the stored token near expiry runs the
    refresher; callers arriving meanwhile are queued as waiters and released
    in arrival order once the refresh settles. Waiters are only released
    after ``refreshing`` is reset and the store holds the outcome, so none of
    them can observe a half-applied refresh.

    A failed or timed-out refresh never raises out of ``ensure_fresh_token``:
    the stale token keeps being attached and a genuine 401 from the server is
    left to the reactive path in the request interceptor.
    """

    def __init__(
        self,
        store: TokenStore,
        refresher: Refresher,
        *,
        hooks: SessionHooks | None = None,
        threshold_seconds: float = TOKEN_REFRESH_THRESHOLD_SECONDS,
        timeout: float | None = TOKEN_REFRESH_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self._refresher = refresher
        self.hooks = hooks
        self.threshold_seconds = threshold_seconds
        self.timeout = timeout
        self._clock = clock
        self.refreshing = False
        self._waiters: deque[asyncio.Future[AuthResult]] = deque()

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def remaining_seconds(self) -> float | None:
        expiry = self.store.expires_at
        if expiry is None:
            return None
        return expiry.timestamp() - self._clock()

    def needs_refresh(self) -> bool:
        remaining = self.remaining_seconds()
        return remaining is None or remaining < self.threshold_seconds

    async def ensure_fresh_token(self) -> TokenOutcome:
        """Refresh the stored token if it is near expiry.

        Returns:
            SKIPPED when no token is stored, VALID when no refresh was needed,
            REFRESHED when a refresh (own or awaited) succeeded and FAILED when
            it did not. The store is the source of the token to attach.
        """
        if self.store.access_token is None:
            return TokenOutcome.SKIPPED
        if not self.needs_refresh():
            return TokenOutcome.VALID
        if self.refreshing:
            return await self._wait_for_refresh()
        return await self._run_refresh()

    async def _wait_for_refresh(self) -> TokenOutcome:
        waiter: asyncio.Future[AuthResult] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logging.debug(f"⏳ Queued behind in-flight token refresh waiters={len(self._waiters)}")
        try:
            await waiter
        except TokenRefreshError:
            return TokenOutcome.FAILED
        return TokenOutcome.REFRESHED

    async def _run_refresh(self) -> TokenOutcome:
        # Flag is set before the first suspension point; no lock needed on one loop.
        self.refreshing = True
        remaining = self.remaining_seconds()
        logging.info(
            f"🔄 Refreshing access token remaining={format_duration(remaining)}"
        )
        try:
            if self.timeout is None:
                result = await self._refresher()
            else:
                result = await asyncio.wait_for(self._refresher(), timeout=self.timeout)
            self.store.save(result.access_token, result.user)
        except asyncio.CancelledError:
            self._settle(error=TokenRefreshError("Token refresh cancelled"))
            raise
        except TimeoutError:
            logging.warning(
                f"⏱️ Token refresh timed out after {self.timeout}s; using stale token"
            )
            self._settle(error=TokenRefreshError("Token refresh timed out"))
            return TokenOutcome.FAILED
        except Exception as e:  # noqa: BLE001
            # Any refresher failure is soft; the gate must always settle.
            logging.warning(
                f"⚠️ Token refresh failed; using stale token type={type(e).__name__} error={str(e)}"
            )
            self._settle(error=TokenRefreshError(str(e) or type(e).__name__))
            return TokenOutcome.FAILED

        self._settle(result=result)
        logging.info(
            f"✅ Access token refreshed remaining={format_duration(self.remaining_seconds())}"
        )
        if self.hooks is not None:
            await self.hooks.fire_update_hooks()
        return TokenOutcome.REFRESHED

    def _settle(
        self,
        *,
        result: AuthResult | None = None,
        error: TokenRefreshError | None = None,
    ) -> None:
        """Reset the flag and release every queued waiter in FIFO order."""
        self.refreshing = False
        waiters = list(self._waiters)
        self._waiters.clear()
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(result)
        if waiters:
            logging.debug(
                f"🚦 Released refresh waiters count={len(waiters)} ok={error is None}"
            )
