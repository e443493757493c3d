"""HTTP plumbing for a JSON-RPC node: retries, throttling and timeouts."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import RetryTransport

from greentrace.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from types import TracebackType

log = getLogger(__name__)


def _is_rate_limited(body: bytes, codes: frozenset[int]) -> bool:
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return False
    replies = payload if isinstance(payload, list) else [payload]
    for reply in replies:
        error = reply.get("error") if isinstance(reply, dict) else None
        if not isinstance(error, dict):
            continue
        if error.get("code") in codes:
            return True
        message = str(error.get("message", "")).lower()
        if "rate limit" in message or "too many requests" in message:
            return True
    return False


class RateLimitedPayloadTransport(httpx.AsyncBaseTransport):
    """Reports JSON-RPC throttling errors as HTTP 429 so the retry layer sees them.

    Many providers answer an over-quota call with status 200 and an ``error``
    object, which a status-based retry would pass straight through.
    """

    def __init__(self, inner: httpx.AsyncBaseTransport, *, codes: frozenset[int]) -> None:
        self._inner = inner
        self._codes = codes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        response = await self._inner.handle_async_request(request)
        if response.status_code != httpx.codes.OK:
            return response
        body = await response.aread()
        if not _is_rate_limited(body, self._codes):
            return response
        log.info("Node throttled %s, retrying", request.url)
        return httpx.Response(httpx.codes.TOO_MANY_REQUESTS, content=body, request=request)

    async def aclose(self) -> None:
        await self._inner.aclose()


class ResilientClient:
    """``httpx.AsyncClient`` with retries and an optional client-side rate limit."""

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        inner = transport if transport is not None else httpx.AsyncHTTPTransport()
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            transport=RetryTransport(
                transport=RateLimitedPayloadTransport(inner, codes=config.rate_limited_codes),
                retry=config.retry.build(),
            ),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post(self, url: str, *, json: object) -> httpx.Response:
        if self._limiter is None:
            return await self._client.post(url, json=json)
        async with self._limiter:
            return await self._client.post(url, json=json)


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


__all__ = [
    "RateLimit",
    "RateLimitedPayloadTransport",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "default_client_factory",
]
