"""Batch contract reads over ``eth_call``."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from eth_abi.exceptions import DecodingError, EncodingError

from greentrace.domain.ports import ReadFailure, ReadSuccess

from .client import JsonRpcError
from .contracts import function

if TYPE_CHECKING:
    from collections.abc import Sequence

    from greentrace.domain.ports import ContractCall, ReadResult

    from .client import JsonRpcClient

log = getLogger(__name__)

_DEFAULT_CONCURRENCY = 8


class JsonRpcContractReader:
    """Fans a batch of calls out as concurrent ``eth_call`` requests.

    Every call yields its own result; a failing call never fails the batch.
    """

    def __init__(
        self, client: JsonRpcClient, *, max_concurrency: int = _DEFAULT_CONCURRENCY
    ) -> None:
        self._client = client
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def read(self, calls: Sequence[ContractCall]) -> list[ReadResult]:
        if not calls:
            return []
        return list(await asyncio.gather(*(self._read_one(call) for call in calls)))

    async def _read_one(self, call: ContractCall) -> ReadResult:
        try:
            spec = function(call.method)
            data = spec.encode_call(call.args)
            async with self._semaphore:
                raw = await self._client.eth_call(call.target, data)
            return ReadSuccess(spec.decode_output(raw))
        except (JsonRpcError, httpx.HTTPError, DecodingError, EncodingError, ValueError) as exc:
            log.debug("Contract read %s%s failed: %s", call.method, call.args, exc)
            return ReadFailure(error=str(exc) or type(exc).__name__, exception=exc)


__all__ = ["JsonRpcContractReader"]
