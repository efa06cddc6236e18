"""
Fixtures for API responses and a minimal stand-in for aiohttp.ClientSession.
"""

import json
from collections import defaultdict, deque
from typing import Any
from urllib.parse import urlparse

from .token_fixtures import MOCK_USER_PAYLOAD, make_token

MOCK_REST_TIMERS = [
    {
        "id": "t-1",
        "name": "Short",
        "seconds": 60,
        "isDefault": True,
        "createdAt": "2024-01-01T10:00:00.000Z",
        "updatedAt": "2024-01-01T10:00:00.000Z",
    },
    {
        "id": "t-2",
        "name": "Heavy sets",
        "seconds": 180,
        "isDefault": False,
        "userId": "user-1",
    },
]


def auth_response(token: str | None = None) -> dict[str, Any]:
    return {
        "access_token": token or make_token(),
        "user": {"id": MOCK_USER_PAYLOAD["sub"], "email": MOCK_USER_PAYLOAD["email"], "name": "Athlete"},
    }


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, text: str | None = None):
        self.status = status
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self._text = text

    async def text(self) -> str:
        return self._text

    async def json(self, content_type: str | None = None) -> Any:
        if not self._text:
            return None
        return json.loads(self._text)


class _FakeRequestContext:
    def __init__(self, outcome: Any):
        self._outcome = outcome

    async def __aenter__(self) -> FakeResponse:
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *exc_info: object) -> None:
        return None


class FakeSession:
    """Records requests and replays queued responses per (method, path)."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False
        self._queues: dict[tuple[str, str], deque[Any]] = defaultdict(deque)

    def queue(self, method: str, path: str, *outcomes: Any) -> None:
        self._queues[(method.upper(), path)].extend(outcomes)

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeRequestContext:
        path = urlparse(url).path
        self.calls.append((method.upper(), path, kwargs))
        queue = self._queues[(method.upper(), path)]
        if not queue:
            raise AssertionError(f"Unexpected request {method} {path}")
        return _FakeRequestContext(queue.popleft())

    def post(self, url: str, **kwargs: Any) -> _FakeRequestContext:
        return self.request("POST", url, **kwargs)

    def calls_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [kw for m, p, kw in self.calls if m == method.upper() and p == path]

    async def close(self) -> None:
        self.closed = True
