"""Functions and events of the GreenTrace core contract and its NFT contract."""

from __future__ import annotations

from .abi import EventParam, EventSpec, FunctionSpec

# requester, requestData(title, storyDetails, carbonReduction, tokenURI, requestFee),
# status, auditor, carbonValue, auditComment, nftTokenId, requestTimestamp, auditTimestamp
REQUEST_STRUCT = (
    "(address,(string,string,uint256,string,uint256),uint8,address,uint256,string,"
    "uint256,uint256,uint256)"
)

GET_USER_MINT_REQUESTS = FunctionSpec("getUserMintRequests", ("address",), ("uint256[]",))
GET_REQUEST_BY_ID = FunctionSpec("getRequestById", ("uint256",), (REQUEST_STRUCT,))
GET_PENDING_CASH_AUDITS = FunctionSpec("getPendingCashAudits", (), ("uint256[]",))
GET_ALL_AUDITED_CASH_REQUESTS = FunctionSpec("getAllAuditedCashRequests", (), ("uint256[]",))
GET_CASH_BY_ID = FunctionSpec("getCashById", ("uint256",), (REQUEST_STRUCT,))
OWNER_OF = FunctionSpec("ownerOf", ("uint256",), ("address",))

FUNCTIONS: dict[str, FunctionSpec] = {
    spec.name: spec
    for spec in (
        GET_USER_MINT_REQUESTS,
        GET_REQUEST_BY_ID,
        GET_PENDING_CASH_AUDITS,
        GET_ALL_AUDITED_CASH_REQUESTS,
        GET_CASH_BY_ID,
        OWNER_OF,
    )
}

MINT_REQUESTED = EventSpec(
    "MintRequested",
    (
        EventParam("requestId", "uint256", indexed=True),
        EventParam("requester", "address", indexed=True),
        EventParam("title", "string"),
        EventParam("carbonReduction", "uint256"),
        EventParam("totalFee", "uint256"),
    ),
)
AUDIT_SUBMITTED = EventSpec(
    "AuditSubmitted",
    (
        EventParam("requestId", "uint256", indexed=True),
        EventParam("auditor", "address", indexed=True),
        EventParam("carbonValue", "uint256"),
        EventParam("auditType", "uint8"),
    ),
)
AUDIT_REJECTED = EventSpec(
    "AuditRejected",
    (
        EventParam("requestId", "uint256", indexed=True),
        EventParam("auditor", "address", indexed=True),
        EventParam("reason", "string"),
    ),
)
NFT_MINTED_AFTER_AUDIT = EventSpec(
    "NFTMintedAfterAudit",
    (
        EventParam("requestId", "uint256", indexed=True),
        EventParam("tokenId", "uint256", indexed=True),
        EventParam("owner", "address", indexed=True),
    ),
)
EXCHANGE_REQUESTED = EventSpec(
    "ExchangeRequested",
    (
        EventParam("cashId", "uint256", indexed=True),
        EventParam("requester", "address", indexed=True),
        EventParam("tokenId", "uint256", indexed=True),
        EventParam("basePrice", "uint256"),
    ),
)
NFT_EXCHANGED = EventSpec(
    "NFTExchanged",
    (
        EventParam("cashId", "uint256", indexed=True),
        EventParam("tokenId", "uint256", indexed=True),
        EventParam("requester", "address", indexed=True),
        EventParam("amount", "uint256"),
    ),
)

EVENTS: dict[str, EventSpec] = {
    spec.name: spec
    for spec in (
        MINT_REQUESTED,
        AUDIT_SUBMITTED,
        AUDIT_REJECTED,
        NFT_MINTED_AFTER_AUDIT,
        EXCHANGE_REQUESTED,
        NFT_EXCHANGED,
    )
}


def function(name: str) -> FunctionSpec:
    try:
        return FUNCTIONS[name]
    except KeyError:
        raise ValueError(f"Unknown contract function: {name}") from None


def event(name: str) -> EventSpec:
    try:
        return EVENTS[name]
    except KeyError:
        raise ValueError(f"Unknown contract event: {name}") from None


__all__ = [
    "EVENTS",
    "FUNCTIONS",
    "REQUEST_STRUCT",
    "event",
    "function",
]
