"""Pydantic models describing JSON-RPC payloads and decoded request structs."""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _hex_to_int(value: object) -> object:
    if isinstance(value, str) and value.startswith(("0x", "0X")):
        return int(value, 16)
    return value


class RpcBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class JsonRpcErrorPayload(RpcBaseModel):
    code: int
    message: str
    data: object | None = None


class JsonRpcResponse(RpcBaseModel):
    jsonrpc: str = "2.0"
    id: int | str | None = None
    result: object | None = None
    error: JsonRpcErrorPayload | None = None


class LogPayload(RpcBaseModel):
    address: str
    topics: list[str] = Field(default_factory=list)
    data: str = "0x"
    block_number: int | None = Field(default=None, alias="blockNumber")
    transaction_hash: str | None = Field(default=None, alias="transactionHash")
    log_index: int | None = Field(default=None, alias="logIndex")
    removed: bool = False

    _parse_quantities = field_validator("block_number", "log_index", mode="before")(_hex_to_int)


class RequestData(RpcBaseModel):
    title: str = ""
    story_details: str = Field(default="", alias="storyDetails")
    carbon_reduction: int = Field(default=0, alias="carbonReduction")
    token_uri: str = Field(default="", alias="tokenURI")
    request_fee: int = Field(default=0, alias="requestFee")


_REQUEST_DATA_FIELDS = ("title", "storyDetails", "carbonReduction", "tokenURI", "requestFee")
_REQUEST_FIELDS = (
    "requester",
    "requestData",
    "status",
    "auditor",
    "carbonValue",
    "auditComment",
    "nftTokenId",
    "requestTimestamp",
    "auditTimestamp",
)


class RequestDetail(RpcBaseModel):
    """One ``getRequestById``/``getCashById`` struct."""

    requester: str
    request_data: RequestData = Field(default_factory=RequestData, alias="requestData")
    status: int
    auditor: str | None = None
    carbon_value: int = Field(default=0, alias="carbonValue")
    audit_comment: str = Field(default="", alias="auditComment")
    nft_token_id: int = Field(default=0, alias="nftTokenId")
    request_timestamp: int = Field(default=0, alias="requestTimestamp")
    audit_timestamp: int = Field(default=0, alias="auditTimestamp")

    @model_validator(mode="before")
    @classmethod
    def _from_abi_tuple(cls, value: object) -> object:
        # eth_abi hands structs back as positional tuples
        if isinstance(value, Sequence) and not isinstance(value, str | bytes):
            items = list(cast(Sequence[object], value))
            if len(items) != len(_REQUEST_FIELDS):
                raise ValueError(f"Expected {len(_REQUEST_FIELDS)} struct fields, got {len(items)}")
            data = dict(zip(_REQUEST_FIELDS, items, strict=True))
            nested = data["requestData"]
            if isinstance(nested, Sequence) and not isinstance(nested, str | bytes):
                data["requestData"] = dict(
                    zip(_REQUEST_DATA_FIELDS, cast(Sequence[object], nested), strict=True)
                )
            return data
        return value


__all__ = [
    "JsonRpcErrorPayload",
    "JsonRpcResponse",
    "LogPayload",
    "RequestData",
    "RequestDetail",
]
