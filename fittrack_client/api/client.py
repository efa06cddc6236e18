"""Authenticated JSON client for the FitTrack REST API."""

from __future__ import annotations

import logging
import time
from typing import Any

import aiohttp

from ..constants import HTTP_REQUEST_TIMEOUT_SECONDS
from .interceptor import HttpResponse, RequestContext, RequestInterceptor


class ApiClient:
    """Sends JSON requests through the request interceptor.

    Every call returns the decoded JSON body (``None`` for empty bodies) or
    raises one of the ``InternalError`` subclasses documented on
    ``RequestInterceptor.execute``.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        base_url: str,
        interceptor: RequestInterceptor,
        *,
        timeout: float = HTTP_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        if http_session is None:
            raise TypeError("http_session cannot be None")
        self.session = http_session
        self.base_url = base_url.rstrip("/")
        self.interceptor = interceptor
        self.timeout = timeout

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        if not path.startswith("/"):
            path = f"/{path}"
        ctx = RequestContext(method=method.upper(), path=path, json=json, params=params)
        response = await self.interceptor.execute(ctx, self._send)
        return response.payload

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def _send(self, ctx: RequestContext) -> HttpResponse:
        url = f"{self.base_url}{ctx.path}"
        start_time = time.monotonic()
        async with self.session.request(
            ctx.method,
            url,
            json=ctx.json,
            params=ctx.params,
            headers=dict(ctx.headers),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            payload = await self._read_payload(resp)
            logging.debug(
                f"HTTP {ctx.method} {ctx.path} -> {resp.status} ({time.monotonic() - start_time:.3f}s)"
            )
            return HttpResponse(status=resp.status, payload=payload)

    @staticmethod
    async def _read_payload(resp: aiohttp.ClientResponse) -> Any:
        text = await resp.text()
        if not text:
            return None
        try:
            return await resp.json(content_type=None)
        except ValueError:
            # Non-JSON bodies (proxy error pages) surface as their raw text.
            return {"message": text[:200]} if resp.status >= 400 else text
