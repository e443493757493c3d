from __future__ import annotations

import httpx
import pytest
from eth_abi import encode

from greentrace.adapters.ethereum import ContractRevertError, JsonRpcClient, JsonRpcError
from greentrace.config import ResilienceConfig

from tests.support.rpc import CONTRACT, RPC_URL, FakeNode, make_client_factory


async def test_eth_call_posts_json_rpc_request(node: FakeNode, rpc_client: JsonRpcClient) -> None:
    node.answer(CONTRACT, "0x1234", encode(["uint256"], [9]))

    result = await rpc_client.eth_call(CONTRACT, "0x1234")

    assert result == "0x" + f"{9:064x}"
    [request] = node.requests
    assert request["method"] == "eth_call"
    assert request["params"] == [{"to": CONTRACT, "data": "0x1234"}, "latest"]


async def test_revert_raises_contract_revert_error(rpc_client: JsonRpcClient) -> None:
    with pytest.raises(ContractRevertError) as excinfo:
        await rpc_client.eth_call(CONTRACT, "0xdead")

    assert excinfo.value.code == 3
    assert excinfo.value.revert_data == "0x"


async def test_revert_is_recognised_by_message(node: FakeNode, rpc_client: JsonRpcClient) -> None:
    node.fail(CONTRACT, "0xbeef", code=-32000, message="Execution reverted: ERC721")

    with pytest.raises(ContractRevertError):
        await rpc_client.eth_call(CONTRACT, "0xbeef")


async def test_other_node_errors_are_not_reverts(node: FakeNode, rpc_client: JsonRpcClient) -> None:
    node.fail(CONTRACT, "0xbeef", code=-32000, message="header not found")

    with pytest.raises(JsonRpcError) as excinfo:
        await rpc_client.eth_call(CONTRACT, "0xbeef")

    assert not isinstance(excinfo.value, ContractRevertError)
    assert excinfo.value.code == -32000


async def test_http_failure_raises_status_error(node: FakeNode, rpc_client: JsonRpcClient) -> None:
    node.http_status = 503

    with pytest.raises(httpx.HTTPStatusError):
        await rpc_client.block_number()


async def test_malformed_body_raises_json_rpc_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    client = JsonRpcClient(
        ResilienceConfig(name="test-rpc", base_url=RPC_URL),
        client_factory=make_client_factory(handler),
    )
    async with client:
        with pytest.raises(JsonRpcError, match="Malformed"):
            await client.block_number()


async def test_block_number_parses_hex_quantity(node: FakeNode, rpc_client: JsonRpcClient) -> None:
    node.block = 0x1F4

    assert await rpc_client.block_number() == 500


async def test_get_logs_sends_filter_and_parses_payloads(
    node: FakeNode, rpc_client: JsonRpcClient
) -> None:
    node.logs = [
        {
            "address": CONTRACT,
            "topics": ["0xaa"],
            "data": "0x",
            "blockNumber": "0x65",
            "transactionHash": "0xfeed",
            "logIndex": "0x2",
            "removed": False,
        }
    ]

    [payload] = await rpc_client.get_logs(
        address=CONTRACT, topics=["0xaa", None], from_block=100, to_block=101
    )

    assert (payload.block_number, payload.log_index) == (101, 2)
    assert payload.transaction_hash == "0xfeed"
    assert node.requests[0]["params"] == [
        {"address": CONTRACT, "topics": ["0xaa", None], "fromBlock": "0x64", "toBlock": "0x65"}
    ]
