"""Read-through cache with single-flight fetches and invalidation broadcast."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from ..constants import CACHE_FETCH_TIMEOUT_SECONDS
from ..errors.internal import NetworkError

T = TypeVar("T")

Listener = Callable[[], None]


class SingleFlightCache(Generic[T]):
    """Time-boxed cache for one value with de-duplicated fetches.

    * A value younger than ``ttl_seconds`` is returned without suspending.
    * Otherwise callers share a single in-flight fetch task; late arrivals
      attach to it instead of starting a second fetch.
    * A failed fetch falls back to the stale value when there is one.
    * ``invalidate()`` drops the value and the in-flight handle and notifies
      subscribers so they re-read. A fetch that was in flight when the cache
      was invalidated still answers its own callers but is not stored.

    Subscribers are plain callables notified synchronously from a snapshot of
    the subscriber set; they must not rely on notification order.
    """

    def __init__(
        self,
        fetcher: Callable[[], Awaitable[T]],
        *,
        ttl_seconds: float,
        timeout: float | None = CACHE_FETCH_TIMEOUT_SECONDS,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self.name = name
        self._clock = clock
        self._value: T | None = None
        self._fetched_at: float | None = None
        self._in_flight: asyncio.Task[T] | None = None
        self._generation = 0
        self._listeners: dict[int, Listener] = {}
        self._next_listener_id = 0

    @property
    def fetched_at(self) -> float | None:
        return self._fetched_at

    @property
    def is_fetching(self) -> bool:
        return self._in_flight is not None

    def is_fresh(self) -> bool:
        if self._value is None or self._fetched_at is None:
            return False
        return (self._clock() - self._fetched_at) < self.ttl_seconds

    def peek(self) -> T | None:
        """Cached value (fresh or stale) without fetching."""
        return self._value

    async def get(self, force_refresh: bool = False) -> T:
        if not force_refresh and self.is_fresh():
            return self._value  # type: ignore[return-value]
        task = self._in_flight
        if task is None:
            task = asyncio.create_task(self._load(self._generation))
            task.add_done_callback(self._consume_exception)
            self._in_flight = task
        else:
            logging.debug(f"🔗 Joining in-flight fetch cache={self.name}")
        return await self._await_shared(task)

    def invalidate(self) -> None:
        self._generation += 1
        self._value = None
        self._fetched_at = None
        self._in_flight = None
        logging.debug(f"🧹 Invalidated cache={self.name}")
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for change notifications.

        Returns:
            A callable that removes the registration; calling it twice is harmless.
        """
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    async def _load(self, generation: int) -> T:
        try:
            if self.timeout is None:
                value = await self._fetcher()
            else:
                value = await asyncio.wait_for(self._fetcher(), timeout=self.timeout)
        except TimeoutError as e:
            self._clear_in_flight(generation)
            raise NetworkError(
                f"Fetch timed out after {self.timeout}s", data={"cache": self.name}
            ) from e
        except BaseException:
            self._clear_in_flight(generation)
            raise
        self._clear_in_flight(generation)
        if generation != self._generation:
            logging.debug(f"⏭️ Discarding fetch result invalidated mid-flight cache={self.name}")
            return value
        self._value = value
        self._fetched_at = self._clock()
        self._notify()
        return value

    async def _await_shared(self, task: asyncio.Task[T]) -> T:
        try:
            # One caller being cancelled must not cancel the fetch for the others.
            return await asyncio.shield(task)
        except Exception as e:  # noqa: BLE001
            if self._value is not None:
                logging.warning(
                    f"⚠️ Fetch failed; serving stale value cache={self.name} type={type(e).__name__} error={str(e)}"
                )
                return self._value
            raise

    def _clear_in_flight(self, generation: int) -> None:
        if generation == self._generation:
            self._in_flight = None

    def _notify(self) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener()
            except Exception as e:  # noqa: BLE001
                logging.warning(
                    f"⚠️ Cache listener error cache={self.name} type={type(e).__name__} error={str(e)}"
                )

    @staticmethod
    def _consume_exception(task: asyncio.Task[T]) -> None:
        # Marks the exception retrieved when every waiter was cancelled.
        if not task.cancelled():
            task.exception()
