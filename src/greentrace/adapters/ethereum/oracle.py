"""NFT existence checks via ERC-721 ``ownerOf``."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from eth_abi import decode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import decode_hex, encode_hex, function_signature_to_4byte_selector

from greentrace.domain.ports import ProbeOutcome

from .abi import ZERO_ADDRESS
from .client import ContractRevertError, JsonRpcError
from .contracts import OWNER_OF

if TYPE_CHECKING:
    from .client import JsonRpcClient

log = getLogger(__name__)

NONEXISTENT_TOKEN_SELECTOR = encode_hex(
    function_signature_to_4byte_selector("ERC721NonexistentToken(uint256)")
)
ERROR_STRING_SELECTOR = encode_hex(function_signature_to_4byte_selector("Error(string)"))

_NONEXISTENT_REASON = re.compile(r"\b(invalid|nonexistent|non-existent) token", re.IGNORECASE)


def _revert_reason(revert_data: str) -> str | None:
    if not revert_data.lower().startswith(ERROR_STRING_SELECTOR):
        return None
    try:
        (reason,) = decode(["string"], decode_hex(revert_data)[4:])
    except (ValueError, DecodingError):
        return None
    return reason


def is_nonexistent_token_revert(error: ContractRevertError) -> bool:
    """Whether a revert says the token does not exist, as opposed to any other failure."""

    revert_data = error.revert_data
    if revert_data is not None:
        if revert_data.lower().startswith(NONEXISTENT_TOKEN_SELECTOR):
            return True
        reason = _revert_reason(revert_data)
        if reason is not None and _NONEXISTENT_REASON.search(reason):
            return True
    return _NONEXISTENT_REASON.search(str(error)) is not None


class OwnerOfExistenceOracle:
    """``ownerOf`` reverts for burned or never-minted tokens.

    Only a revert naming a nonexistent or invalid token, or a zero owner, is a
    definitive "not found". Any other revert, and every transport or node
    error, is ``UNKNOWN`` so the caller keeps what it showed before.
    """

    def __init__(self, client: JsonRpcClient, *, nft_address: str) -> None:
        self._client = client
        self._nft_address = nft_address

    async def probe(self, asset_id: str) -> ProbeOutcome:
        try:
            data = OWNER_OF.encode_call((int(asset_id),))
        except (ValueError, EncodingError):
            log.warning("Cannot probe malformed asset id %r", asset_id)
            return ProbeOutcome.UNKNOWN

        try:
            raw = await self._client.eth_call(self._nft_address, data)
        except ContractRevertError as exc:
            if is_nonexistent_token_revert(exc):
                log.info("ownerOf(%s) reverted, token gone: %s", asset_id, exc)
                return ProbeOutcome.NOT_FOUND
            log.warning("ownerOf(%s) reverted for another reason: %s", asset_id, exc)
            return ProbeOutcome.UNKNOWN
        except (JsonRpcError, httpx.HTTPError) as exc:
            log.warning("ownerOf(%s) failed, existence unknown: %s", asset_id, exc)
            return ProbeOutcome.UNKNOWN

        try:
            owner = OWNER_OF.decode_output(raw)
        except DecodingError as exc:
            log.warning("ownerOf(%s) returned undecodable data: %s", asset_id, exc)
            return ProbeOutcome.UNKNOWN

        if not isinstance(owner, str) or owner.lower() == ZERO_ADDRESS:
            return ProbeOutcome.NOT_FOUND
        return ProbeOutcome.EXISTS


__all__ = ["OwnerOfExistenceOracle", "is_nonexistent_token_revert"]
