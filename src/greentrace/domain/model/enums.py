"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class RecordKind(StrEnum):
    MINT = "mint"
    EXCHANGE = "exchange"


class RecordStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    MINTED = "minted"
    # display-only; never produced by derive_status
    EXCHANGED = "exchanged"


class RecordSource(StrEnum):
    """Where a record was observed. Drives merge precedence only."""

    EVENT = "event"
    CONTRACT = "contract"


class RawStatusCode(IntEnum):
    """Audit status as stored by the GreenTrace contract."""

    PENDING = 0
    APPROVED = 1
    REJECTED = 2


class AuditType(IntEnum):
    MINT = 0
    EXCHANGE = 1
