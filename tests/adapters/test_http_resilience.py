from __future__ import annotations

import json

import httpx

from greentrace.adapters.http_resilience import ResilientClient
from greentrace.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

NO_WAIT = RetryPolicy(max_retries=2, backoff_factor=0.0, jitter=0.0)


def _config(**kwargs: object) -> ResilienceConfig:
    return ResilienceConfig(
        name="test-rpc",
        base_url="https://node.test",
        retry=NO_WAIT,
        **kwargs,  # type: ignore[arg-type]
    )


def _reply(result: object) -> dict[str, object]:
    return {"jsonrpc": "2.0", "id": 1, "result": result}


def _throttled(code: int = -32005, message: str = "limit exceeded") -> dict[str, object]:
    return {"jsonrpc": "2.0", "id": 1, "error": {"code": code, "message": message}}


class _Script:
    def __init__(self, *responses: httpx.Response) -> None:
        self._responses = list(responses)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return self._responses.pop(0)


async def _post(client: ResilientClient) -> httpx.Response:
    return await client.post("/", json={"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber"})


async def test_throttle_error_in_ok_body_is_retried() -> None:
    script = _Script(
        httpx.Response(200, json=_throttled()),
        httpx.Response(200, json=_reply("0x10")),
    )
    async with ResilientClient(_config(), transport=httpx.MockTransport(script)) as client:
        response = await _post(client)

    assert response.status_code == 200
    assert response.json()["result"] == "0x10"
    assert script.calls == 2


async def test_throttle_detected_by_message() -> None:
    script = _Script(
        httpx.Response(200, json=[_throttled(code=-32000, message="Too Many Requests")]),
        httpx.Response(200, json=[_reply("0x1")]),
    )
    async with ResilientClient(_config(), transport=httpx.MockTransport(script)) as client:
        response = await _post(client)

    assert response.json() == [_reply("0x1")]
    assert script.calls == 2


async def test_persistent_throttle_surfaces_as_429() -> None:
    script = _Script(*(httpx.Response(200, json=_throttled()) for _ in range(3)))
    async with ResilientClient(_config(), transport=httpx.MockTransport(script)) as client:
        response = await _post(client)

    assert response.status_code == 429
    assert script.calls == 3


async def test_other_rpc_errors_pass_through() -> None:
    revert = {"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted"}}
    script = _Script(httpx.Response(200, json=revert))
    async with ResilientClient(_config(), transport=httpx.MockTransport(script)) as client:
        response = await _post(client)

    assert response.json() == revert
    assert script.calls == 1


async def test_non_json_body_passes_through() -> None:
    script = _Script(httpx.Response(200, content=b"<html>gateway</html>"))
    async with ResilientClient(_config(), transport=httpx.MockTransport(script)) as client:
        response = await _post(client)

    assert response.content == b"<html>gateway</html>"
    assert script.calls == 1


async def test_server_error_status_is_retried() -> None:
    script = _Script(httpx.Response(503), httpx.Response(200, json=_reply("0x2")))
    async with ResilientClient(_config(), transport=httpx.MockTransport(script)) as client:
        response = await _post(client)

    assert response.json()["result"] == "0x2"
    assert script.calls == 2


async def test_default_headers_and_rate_limit_are_applied() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_reply(json.loads(request.content)["method"]))

    config = _config(
        default_headers={"X-Client": "greentrace"},
        ratelimit=RateLimit(max_calls=100, per_seconds=1.0),
    )
    async with ResilientClient(config, transport=httpx.MockTransport(handler)) as client:
        response = await _post(client)

    assert response.json()["result"] == "eth_blockNumber"
    assert seen[0].headers["X-Client"] == "greentrace"
    assert str(seen[0].url) == "https://node.test/"
