"""Shared fixtures for Ethereum adapter tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from greentrace.adapters.ethereum import JsonRpcClient
from greentrace.config import ResilienceConfig

from tests.support.rpc import RPC_URL, FakeNode, make_client_factory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture
async def rpc_client(node: FakeNode) -> AsyncIterator[JsonRpcClient]:
    client = JsonRpcClient(
        ResilienceConfig(name="test-rpc", base_url=RPC_URL),
        client_factory=make_client_factory(node.handle),
    )
    try:
        yield client
    finally:
        await client.aclose()
