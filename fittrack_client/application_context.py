"""Central application context for shared async resources."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from .api.client import ApiClient
from .api.interceptor import RequestInterceptor
from .auth_token.client import AuthClient
from .auth_token.gate import RefreshGate
from .auth_token.hook_manager import SessionHooks
from .auth_token.store import TokenStore
from .auth_token.types import AuthResult, AuthUser
from .config.model import ClientSettings
from .errors.internal import ParsingError
from .logging_config import error_aggregator
from .rest_timers import RestTimerService
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage


class ApplicationContext:
    """Owns one instance of every client component for a session.

    Every coordination point (refresh gate, rest-timer cache, hook registry)
    lives on this object rather than in module globals, so independent
    contexts never share state.
    """

    session: aiohttp.ClientSession | None
    _closed: bool
    _lock: asyncio.Lock

    def __init__(
        self,
        settings: ClientSettings,
        session: aiohttp.ClientSession,
        storage: KeyValueStorage,
    ) -> None:
        self.settings = settings
        self.session = session
        self.storage = storage
        self.hooks = SessionHooks()
        self.token_store = TokenStore(storage)
        self.auth_client = AuthClient(
            session, settings.api_base_url, timeout=settings.request_timeout_seconds
        )
        self.refresh_gate = RefreshGate(
            self.token_store,
            self.refresh_token,
            hooks=self.hooks,
            threshold_seconds=settings.refresh_threshold_seconds,
            timeout=settings.refresh_timeout_seconds,
        )
        self.interceptor = RequestInterceptor(
            self.token_store, self.refresh_gate, self.refresh_token, self.hooks
        )
        self.api = ApiClient(
            session,
            settings.api_base_url,
            self.interceptor,
            timeout=settings.request_timeout_seconds,
        )
        self.rest_timers = RestTimerService(
            self.api,
            ttl_seconds=settings.cache_ttl_seconds,
            fetch_timeout=settings.cache_fetch_timeout_seconds,
            max_attempts=settings.fetch_max_attempts,
            request_timeout=settings.request_timeout_seconds,
        )
        self._closed = False
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(
        cls,
        settings: ClientSettings,
        *,
        storage: KeyValueStorage | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> ApplicationContext:
        """Create a context with a fresh HTTP session unless one is given.

        Storage defaults to a JSON file at ``settings.storage_path`` or to
        memory when no path is configured.
        """
        if storage is None:
            storage = (
                JsonFileStorage(settings.storage_path)
                if settings.storage_path
                else MemoryStorage()
            )
        if session is None:
            session = aiohttp.ClientSession()
            logging.debug("🔗 HTTP session created")
        ctx = cls(settings, session, storage)
        logging.debug(f"🧪 Application context created api={settings.api_base_url}")
        return ctx

    async def __aenter__(self) -> ApplicationContext:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    # ------------------------- Session ------------------------------ #
    async def refresh_token(self) -> AuthResult:
        """Refresher shared by the gate (proactive) and the interceptor (reactive)."""
        return await self.auth_client.refresh(self.token_store.access_token)

    async def login(self, email: str, password: str) -> AuthUser | None:
        result = await self.auth_client.login(email, password)
        self.token_store.save(result.access_token, result.user)
        self.rest_timers.invalidate()
        return result.user

    async def logout(self) -> None:
        self.token_store.clear()
        self.rest_timers.invalidate()
        logging.info("👋 Logged out")

    async def validate_session(self) -> AuthUser:
        """Ask the server who the stored token belongs to."""
        data = await self.api.get("/auth/validate")
        payload = data.get("user") if isinstance(data, dict) else None
        user = AuthUser.from_payload(payload)
        if user is None:
            raise ParsingError("Validate response has no usable user")
        return user

    # --------------------------- Lifecycle -------------------------- #
    async def shutdown(self) -> None:
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            if self.session is not None and not self.session.closed:
                try:
                    await self.session.close()
                except (aiohttp.ClientError, RuntimeError, OSError) as e:
                    logging.warning(f"Error closing HTTP session: {e}")
            self.session = None
            error_aggregator.log_report()
            logging.debug("✅ Application context shutdown complete")
