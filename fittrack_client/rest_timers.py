"""Rest-timer endpoints backed by a shared read-through cache."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .api.client import ApiClient
from .cache.single_flight import SingleFlightCache
from .constants import (
    CACHE_FETCH_TIMEOUT_SECONDS,
    FETCH_MAX_ATTEMPTS,
    REST_TIMER_CACHE_TTL_SECONDS,
)
from .errors.handling import handle_retryable_error, retry_budget_seconds
from .errors.internal import ParsingError


class RestTimer(BaseModel):
    """A named rest countdown, either a default one or user-defined."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    seconds: int
    is_default: bool = Field(default=False, alias="isDefault")
    user_id: str | None = Field(default=None, alias="userId")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


def _parse_timer(data: Any) -> RestTimer:
    try:
        return RestTimer.model_validate(data)
    except ValidationError as e:
        raise ParsingError(f"Malformed rest timer: {e.error_count()} validation error(s)") from e


def _parse_timer_list(data: Any) -> list[RestTimer]:
    if not isinstance(data, list):
        raise ParsingError("Rest timer list response is not a JSON array")
    return [_parse_timer(item) for item in data]


def _validate_timer_fields(name: str, seconds: int) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Timer name cannot be empty")
    if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
        raise ValueError("Timer seconds must be a positive integer")
    return name


class RestTimerService:
    """Lists and edits rest timers.

    ``list_timers`` is served from a ``SingleFlightCache`` shared by every
    consumer of this service; create, update and delete invalidate it so the
    next read goes to the server and subscribers are told to re-read.

    When ``request_timeout`` is known the cache fetch timeout is raised to
    cover every retry attempt, so the cache does not abandon a fetch that is
    still inside its retry schedule.
    """

    def __init__(
        self,
        api: ApiClient,
        *,
        ttl_seconds: float = REST_TIMER_CACHE_TTL_SECONDS,
        fetch_timeout: float | None = None,
        max_attempts: int = FETCH_MAX_ATTEMPTS,
        request_timeout: float | None = None,
    ) -> None:
        self.api = api
        self.max_attempts = max_attempts
        timeout = fetch_timeout if fetch_timeout is not None else CACHE_FETCH_TIMEOUT_SECONDS
        if request_timeout is not None:
            budget = retry_budget_seconds(max_attempts, request_timeout)
            if budget > timeout:
                logging.debug(
                    f"⏱️ Raising rest timer fetch timeout to retry budget timeout={timeout}s budget={budget}s"
                )
                timeout = budget
        self.cache: SingleFlightCache[list[RestTimer]] = SingleFlightCache(
            self._fetch_timers, ttl_seconds=ttl_seconds, timeout=timeout, name="rest_timers"
        )

    async def list_timers(self, force_refresh: bool = False) -> list[RestTimer]:
        return await self.cache.get(force_refresh=force_refresh)

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.cache.subscribe(listener)

    def invalidate(self) -> None:
        self.cache.invalidate()

    async def create_timer(self, name: str, seconds: int) -> RestTimer:
        name = _validate_timer_fields(name, seconds)
        data = await self.api.post("/rest-timers", {"name": name, "seconds": seconds})
        timer = _parse_timer(data)
        logging.info(f"⏱️ Created rest timer id={timer.id} name={timer.name} seconds={timer.seconds}")
        self.cache.invalidate()
        return timer

    async def update_timer(self, timer_id: str, name: str, seconds: int) -> RestTimer:
        if not timer_id:
            raise ValueError("timer_id cannot be empty")
        name = _validate_timer_fields(name, seconds)
        data = await self.api.patch(
            f"/rest-timers/{timer_id}", {"name": name, "seconds": seconds}
        )
        timer = _parse_timer(data)
        logging.info(f"✏️ Updated rest timer id={timer.id}")
        self.cache.invalidate()
        return timer

    async def delete_timer(self, timer_id: str) -> None:
        if not timer_id:
            raise ValueError("timer_id cannot be empty")
        await self.api.delete(f"/rest-timers/{timer_id}")
        logging.info(f"🗑️ Deleted rest timer id={timer_id}")
        self.cache.invalidate()

    async def _fetch_timers(self) -> list[RestTimer]:
        async def operation() -> list[RestTimer]:
            return _parse_timer_list(await self.api.get("/rest-timers"))

        timers = await handle_retryable_error(
            operation, "rest timer list", max_attempts=self.max_attempts
        )
        logging.debug(f"📥 Loaded rest timers count={len(timers)}")
        return timers
