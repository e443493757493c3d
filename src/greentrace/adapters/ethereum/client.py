"""JSON-RPC client for an Ethereum node."""

from __future__ import annotations

import itertools
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from greentrace.adapters.http_resilience import ResilientClient, default_client_factory

from .schema import JsonRpcResponse, LogPayload

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from greentrace.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

# error code geth and most providers use for reverted calls
EXECUTION_REVERTED_CODE = 3


class JsonRpcError(RuntimeError):
    """Raised when the node answers with a JSON-RPC error object."""

    def __init__(self, message: str, *, code: int | None = None, data: object = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class ContractRevertError(JsonRpcError):
    """Raised when an ``eth_call`` reverts."""

    @property
    def revert_data(self) -> str | None:
        if isinstance(self.data, str) and self.data.startswith("0x"):
            return self.data
        if isinstance(self.data, dict):
            nested = self.data.get("data")
            if isinstance(nested, str) and nested.startswith("0x"):
                return nested
        return None


def _is_revert(code: int, message: str) -> bool:
    return code == EXECUTION_REVERTED_CODE or "execution reverted" in message.lower()


class JsonRpcClient:
    def __init__(
        self,
        resilience: ResilienceConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
    ) -> None:
        self.resilience = resilience
        self._client = client_factory(resilience)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> JsonRpcClient:
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

    async def call(self, method: str, params: Sequence[object] = ()) -> object:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        url = self.resilience.base_url or ""
        response = await self._client.post(url, json=payload)
        response.raise_for_status()

        try:
            body = JsonRpcResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise JsonRpcError(f"Malformed JSON-RPC response to {method}") from exc

        if body.error is not None:
            error = body.error
            log.debug("JSON-RPC %s failed with %s: %s", method, error.code, error.message)
            revert = _is_revert(error.code, error.message)
            error_type = ContractRevertError if revert else JsonRpcError
            raise error_type(error.message, code=error.code, data=error.data)
        return body.result

    async def eth_call(self, to: str, data: str, *, block: str = "latest") -> str:
        result = await self.call("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str):
            raise JsonRpcError(f"eth_call returned {type(result).__name__}, expected hex data")
        return result

    async def block_number(self) -> int:
        result = await self.call("eth_blockNumber")
        if not isinstance(result, str):
            raise JsonRpcError("eth_blockNumber returned no quantity")
        return int(result, 16)

    async def get_logs(
        self,
        *,
        address: str,
        topics: Sequence[str | None],
        from_block: int,
        to_block: int,
    ) -> list[LogPayload]:
        log_filter: dict[str, object] = {
            "address": address,
            "topics": list(topics),
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
        }
        result = await self.call("eth_getLogs", [log_filter])
        if result is None:
            return []
        if not isinstance(result, list):
            raise JsonRpcError("eth_getLogs returned a non-list result")
        return [LogPayload.model_validate(item) for item in result]


__all__ = ["EXECUTION_REVERTED_CODE", "ContractRevertError", "JsonRpcClient", "JsonRpcError"]
