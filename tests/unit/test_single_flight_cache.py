"""
Unit tests for SingleFlightCache.
"""

import asyncio
from unittest.mock import Mock

import pytest

from fittrack_client.cache.single_flight import SingleFlightCache
from fittrack_client.errors.internal import APIError, NetworkError
from tests.fixtures.async_helpers import drain_loop


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class ControlledFetcher:
    """Fetcher whose calls stay pending until the test resolves them."""

    def __init__(self):
        self.calls = 0
        self.pending: list[asyncio.Future] = []

    async def __call__(self):
        self.calls += 1
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def resolve(self, value, index: int = -1):
        self.pending[index].set_result(value)

    def fail(self, error: Exception, index: int = -1):
        self.pending[index].set_exception(error)


class TestSingleFlightCache:
    def setup_method(self):
        self.clock = FakeClock()
        self.fetcher = ControlledFetcher()

    def _cache(self, **kwargs) -> SingleFlightCache:
        kwargs.setdefault("ttl_seconds", 300)
        kwargs.setdefault("clock", self.clock)
        return SingleFlightCache(self.fetcher, name="test", **kwargs)

    @pytest.mark.asyncio
    async def test_sequential_gets_within_ttl_fetch_once(self):
        cache = self._cache()

        first = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.resolve(["a"])
        assert await first == ["a"]

        self.clock.now += 299
        assert await cache.get() == ["a"]
        assert self.fetcher.calls == 1

    @pytest.mark.asyncio
    async def test_expired_value_is_refetched(self):
        cache = self._cache()
        task = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.resolve(["a"])
        await task

        self.clock.now += 300
        second = asyncio.create_task(cache.get())
        await drain_loop()
        assert self.fetcher.calls == 2
        self.fetcher.resolve(["b"])

        assert await second == ["b"]

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_fetch(self):
        cache = self._cache()

        tasks = [asyncio.create_task(cache.get()) for _ in range(5)]
        await drain_loop()

        assert self.fetcher.calls == 1
        assert cache.is_fetching is True

        value = ["shared"]
        self.fetcher.resolve(value)
        results = await asyncio.gather(*tasks)

        assert all(result is value for result in results)
        assert cache.is_fetching is False

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_fresh_value(self):
        cache = self._cache()
        task = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.resolve(["a"])
        await task

        refreshed = asyncio.create_task(cache.get(force_refresh=True))
        await drain_loop()
        self.fetcher.resolve(["b"])

        assert await refreshed == ["b"]
        assert self.fetcher.calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_then_get_refetches(self):
        cache = self._cache()
        task = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.resolve(["a"])
        await task

        cache.invalidate()

        assert cache.peek() is None
        assert cache.fetched_at is None
        second = asyncio.create_task(cache.get())
        await drain_loop()
        assert self.fetcher.calls == 2
        self.fetcher.resolve(["b"])
        assert await second == ["b"]

    @pytest.mark.asyncio
    async def test_failed_fetch_serves_stale_value(self):
        cache = self._cache()
        task = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.resolve(["stale"])
        await task

        self.clock.now += 301
        second = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.fail(NetworkError("offline"))

        assert await second == ["stale"]
        assert cache.is_fetching is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [RuntimeError("boom"), KeyError("items"), TypeError("bad payload")])
    async def test_any_fetch_error_serves_stale_value_to_every_caller(self, error):
        cache = self._cache()
        task = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.resolve(["stale"])
        await task

        self.clock.now += 301
        tasks = [asyncio.create_task(cache.get()) for _ in range(3)]
        await drain_loop()
        self.fetcher.fail(error)

        assert await asyncio.gather(*tasks) == [["stale"]] * 3
        assert self.fetcher.calls == 2
        assert cache.is_fetching is False

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_without_value_propagates(self):
        cache = self._cache()
        task = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.fail(RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            await task
        assert cache.is_fetching is False

    @pytest.mark.asyncio
    async def test_failed_fetch_without_value_propagates(self):
        cache = self._cache()

        tasks = [asyncio.create_task(cache.get()) for _ in range(2)]
        await drain_loop()
        self.fetcher.fail(APIError("Internal server error", 500))
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, APIError) for r in results)
        assert self.fetcher.calls == 1
        assert cache.is_fetching is False

    @pytest.mark.asyncio
    async def test_failure_does_not_poison_later_gets(self):
        cache = self._cache()
        task = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.fail(NetworkError("offline"))
        with pytest.raises(NetworkError):
            await task

        retry = asyncio.create_task(cache.get())
        await drain_loop()
        self.fetcher.resolve(["ok"])

        assert await retry == ["ok"]

    @pytest.mark.asyncio
    async def test_hung_fetch_times_out(self):
        cache = self._cache(timeout=0.05)

        with pytest.raises(NetworkError, match="timed out"):
            await asyncio.wait_for(cache.get(), timeout=5)

        assert cache.is_fetching is False

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_fetch(self):
        cache = self._cache()
        first = asyncio.create_task(cache.get())
        second = asyncio.create_task(cache.get())
        await drain_loop()

        first.cancel()
        await drain_loop()
        self.fetcher.resolve(["a"])

        assert await second == ["a"]
        assert first.cancelled()
        assert cache.peek() == ["a"]

    @pytest.mark.asyncio
    async def test_invalidation_mid_flight_is_not_overwritten(self):
        cache = self._cache()
        old = asyncio.create_task(cache.get())
        await drain_loop()

        cache.invalidate()
        assert cache.is_fetching is False

        new = asyncio.create_task(cache.get())
        await drain_loop()
        assert self.fetcher.calls == 2

        self.fetcher.resolve(["before edit"], index=0)
        assert await old == ["before edit"]
        assert cache.peek() is None
        assert cache.is_fetching is True

        self.fetcher.resolve(["after edit"], index=1)
        assert await new == ["after edit"]
        assert cache.peek() == ["after edit"]


class TestSubscriptions:
    def setup_method(self):
        self.clock = FakeClock()

    @pytest.mark.asyncio
    async def test_subscribers_notified_on_store_and_invalidate(self):
        async def fetch():
            return ["a"]

        cache = SingleFlightCache(fetch, ttl_seconds=300, clock=self.clock)
        listener = Mock()
        cache.subscribe(listener)

        await cache.get()
        assert listener.call_count == 1

        cache.invalidate()
        assert listener.call_count == 2

    def test_unsubscribe_stops_notifications(self):
        cache = SingleFlightCache(Mock(), ttl_seconds=300)
        listener = Mock()
        unsubscribe = cache.subscribe(listener)

        unsubscribe()
        unsubscribe()
        cache.invalidate()

        listener.assert_not_called()
        assert cache.subscriber_count == 0

    def test_same_listener_can_subscribe_twice(self):
        cache = SingleFlightCache(Mock(), ttl_seconds=300)
        listener = Mock()
        first = cache.subscribe(listener)
        cache.subscribe(listener)

        first()
        cache.invalidate()

        assert listener.call_count == 1

    def test_unsubscribing_during_notification_is_safe(self):
        cache = SingleFlightCache(Mock(), ttl_seconds=300)
        calls = []
        unsubscribers = []

        def first():
            calls.append("first")
            for unsubscribe in unsubscribers:
                unsubscribe()

        def second():
            calls.append("second")

        unsubscribers.append(cache.subscribe(first))
        unsubscribers.append(cache.subscribe(second))

        cache.invalidate()
        cache.invalidate()

        assert sorted(calls) == ["first", "second"]

    def test_failing_listener_does_not_stop_others(self):
        cache = SingleFlightCache(Mock(), ttl_seconds=300)
        cache.subscribe(Mock(side_effect=RuntimeError("boom")))
        healthy = Mock()
        cache.subscribe(healthy)

        cache.invalidate()

        healthy.assert_called_once()

    def test_listener_key_error_does_not_stop_others(self):
        cache = SingleFlightCache(Mock(), ttl_seconds=300)
        cache.subscribe(Mock(side_effect=KeyError("timers")))
        healthy = Mock()
        cache.subscribe(healthy)

        cache.invalidate()

        healthy.assert_called_once()
