"""Public interface for the Ethereum JSON-RPC adapter."""

from __future__ import annotations

from .client import ContractRevertError, JsonRpcClient, JsonRpcError
from .oracle import OwnerOfExistenceOracle
from .reader import JsonRpcContractReader
from .schema import LogPayload, RequestDetail
from .sources import ExchangeRequestSource, MintRequestSource
from .subscriber import LogPollingSubscriber
from .translator import parse_request

__all__ = [
    "ContractRevertError",
    "ExchangeRequestSource",
    "JsonRpcClient",
    "JsonRpcContractReader",
    "JsonRpcError",
    "LogPayload",
    "LogPollingSubscriber",
    "MintRequestSource",
    "OwnerOfExistenceOracle",
    "RequestDetail",
    "parse_request",
]
