"""The tracked request record."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime  # noqa: TC003
from decimal import Decimal

from .enums import RecordKind, RecordSource, RecordStatus

_REFERENCE_PREFIX: dict[RecordKind, str] = {
    RecordKind.MINT: "request",
    RecordKind.EXCHANGE: "exchange_request",
}


def request_reference(kind: RecordKind, record_id: str | int) -> str:
    """Stable reference shared by contract reads and id-bearing event logs."""

    return f"{_REFERENCE_PREFIX[kind]}_{record_id}"


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    """One mint or exchange request tracked through review and redemption."""

    id: str
    kind: RecordKind
    title: str
    details: str
    quantity: Decimal = Decimal(0)
    fee_paid: Decimal = Decimal(0)
    status: RecordStatus = RecordStatus.PENDING
    created_at: datetime
    source: RecordSource = RecordSource.CONTRACT
    transaction_hash: str | None = None
    requester: str | None = None
    token_uri: str | None = None
    auditor: str | None = None
    audited_value: Decimal | None = None
    audit_comment: str | None = None
    audited_at: datetime | None = None
    secondary_asset_id: str | None = None

    @property
    def identity_key(self) -> str:
        if self.transaction_hash:
            return self.transaction_hash
        return f"{self.id}_{int(self.created_at.timestamp() * 1000)}"

    @property
    def is_provisional(self) -> bool:
        return self.source is RecordSource.EVENT

    def tagged(self, source: RecordSource) -> Record:
        if self.source is source:
            return self
        return replace(self, source=source)

    def displayed_as(self, status: RecordStatus) -> Record:
        if self.status is status:
            return self
        return replace(self, status=status)
