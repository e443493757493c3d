"""Translate decoded request structs into domain records."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from greentrace.domain.lifecycle import derive_status, is_valid_asset_id
from greentrace.domain.model import Record, RecordKind, RecordSource, request_reference

from .abi import ZERO_ADDRESS
from .schema import RequestDetail

TOKEN_DECIMALS = 18
_EPOCH = datetime.fromtimestamp(0, tz=UTC)


def to_token_amount(raw: int) -> Decimal:
    return Decimal(raw) / (Decimal(10) ** TOKEN_DECIMALS)


def _timestamp(seconds: int) -> datetime | None:
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=UTC)


def _address(value: str | None) -> str | None:
    if not value or value.lower() == ZERO_ADDRESS:
        return None
    return value.lower()


def _title(detail: RequestDetail, kind: RecordKind) -> str:
    title = detail.request_data.title.strip()
    if title:
        return title
    if kind is RecordKind.EXCHANGE and is_valid_asset_id(detail.nft_token_id):
        return f"NFT #{detail.nft_token_id}"
    return "Untitled request"


def parse_request(record_id: str, value: object, *, kind: RecordKind) -> Record:
    """Build a contract-sourced record.

    Raises ``ValueError`` (including pydantic's ``ValidationError`` and
    ``UnknownStatusCodeError``) when the struct cannot be interpreted.
    """

    detail = value if isinstance(value, RequestDetail) else RequestDetail.model_validate(value)
    status = derive_status(detail.status, detail.nft_token_id, kind=kind)
    asset_id = str(detail.nft_token_id) if is_valid_asset_id(detail.nft_token_id) else None
    auditor = _address(detail.auditor)
    # exchange requests are priced by the audited carbon value
    quantity_raw = (
        detail.carbon_value if kind is RecordKind.EXCHANGE else detail.request_data.carbon_reduction
    )

    return Record(
        id=record_id,
        kind=kind,
        title=_title(detail, kind),
        details=detail.request_data.story_details,
        quantity=to_token_amount(quantity_raw),
        fee_paid=to_token_amount(detail.request_data.request_fee),
        status=status,
        created_at=_timestamp(detail.request_timestamp) or _EPOCH,
        source=RecordSource.CONTRACT,
        transaction_hash=request_reference(kind, record_id),
        requester=_address(detail.requester),
        token_uri=detail.request_data.token_uri or None,
        auditor=auditor,
        audited_value=to_token_amount(detail.carbon_value) if auditor else None,
        audit_comment=detail.audit_comment or None,
        audited_at=_timestamp(detail.audit_timestamp),
        secondary_asset_id=asset_id,
    )


__all__ = ["TOKEN_DECIMALS", "parse_request", "to_token_amount"]
