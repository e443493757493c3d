"""Retry, rate-limit and timeout settings for the JSON-RPC connection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from httpx_retries import Retry

if TYPE_CHECKING:
    from collections.abc import Mapping

# error codes public providers use for "slow down" inside an HTTP 200 body
RATE_LIMITED_RPC_CODES = frozenset({-32005, -32029, 429})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retries for transient node failures. Every JSON-RPC read is an idempotent POST."""

    max_retries: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    jitter: float = 1.0
    retry_statuses: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    transient_errors: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )

    def build(self) -> Retry:
        return Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            backoff_jitter=self.jitter,
            respect_retry_after_header=True,
            allowed_methods=("POST",),
            status_forcelist=tuple(sorted(self.retry_statuses)),
            retry_on_exceptions=self.transient_errors,
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    rate_limited_codes: frozenset[int] = RATE_LIMITED_RPC_CODES
    default_headers: Mapping[str, str] | None = None


__all__ = ["RATE_LIMITED_RPC_CODES", "RateLimit", "ResilienceConfig", "RetryPolicy"]
