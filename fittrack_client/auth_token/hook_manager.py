"""Hook management for token updates and session termination."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

Hook = Callable[[], Coroutine[Any, Any, None]]


class SessionHooks:
    """Registry of coroutine hooks for session lifecycle events.

    Update hooks run after a refresh stored a new token. Session-expired hooks
    run once the stored credentials were dropped after an unrecoverable 401;
    this is where a UI would navigate back to its login screen.

    Hooks are awaited in registration order. A failing hook is logged and
    does not stop the remaining hooks.
    """

    def __init__(self) -> None:
        self._update_hooks: list[Hook] = []
        self._session_expired_hooks: list[Hook] = []

    def register_update_hook(self, hook: Hook) -> Callable[[], None]:
        """Register a hook invoked after a successful token refresh.

        Returns:
            A callable that unregisters the hook.
        """
        self._update_hooks.append(hook)
        return lambda: self._discard(self._update_hooks, hook)

    def register_session_expired_hook(self, hook: Hook) -> Callable[[], None]:
        """Register a hook invoked when the session is terminated.

        Returns:
            A callable that unregisters the hook.
        """
        self._session_expired_hooks.append(hook)
        return lambda: self._discard(self._session_expired_hooks, hook)

    async def fire_update_hooks(self) -> None:
        await self._fire(list(self._update_hooks), category="update_hook")

    async def fire_session_expired_hooks(self) -> None:
        await self._fire(
            list(self._session_expired_hooks), category="session_expired_hook"
        )

    @staticmethod
    def _discard(hooks: list[Hook], hook: Hook) -> None:
        if hook in hooks:
            hooks.remove(hook)

    @staticmethod
    async def _fire(hooks: list[Hook], *, category: str) -> None:
        for hook in hooks:
            try:
                await hook()
            except Exception as e:  # noqa: BLE001
                logging.warning(
                    f"⚠️ Hook error category={category} type={type(e).__name__} error={str(e)}"
                )
