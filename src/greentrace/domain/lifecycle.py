"""Lifecycle status derivation.

Stored contract state only distinguishes pending/approved/rejected. ``minted``
is inferred from the presence of a produced NFT id, and ``exchanged`` is never
stored at all: it is what a record is *displayed* as once the existence oracle
confirms the NFT it refers to is gone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from greentrace.domain.model import RawStatusCode, RecordKind, RecordStatus
from greentrace.domain.ports import ProbeOutcome

if TYPE_CHECKING:
    from greentrace.domain.model import Record

UNSET_ASSET_ID = 0


class UnknownStatusCodeError(ValueError):
    """Raised when the contract reports a status code outside 0..2."""

    def __init__(self, code: object) -> None:
        super().__init__(f"Unknown request status code: {code!r}")
        self.code = code


def is_valid_asset_id(value: object) -> bool:
    """Return ``True`` for a well-formed asset id above the unset sentinel."""

    if value is None or isinstance(value, bool):
        return False
    try:
        number = int(str(value).strip())
    except ValueError:
        return False
    return number > UNSET_ASSET_ID


def _status_code(raw_status: object) -> RawStatusCode:
    try:
        return RawStatusCode(int(str(raw_status).strip()))
    except (TypeError, ValueError):
        raise UnknownStatusCodeError(raw_status) from None


def derive_status(
    raw_status: object,
    secondary_asset_id: object,
    *,
    kind: RecordKind = RecordKind.MINT,
    asset_produced: bool | None = None,
) -> RecordStatus:
    """Map a raw status code plus the secondary asset id onto ``RecordStatus``.

    ``asset_produced`` takes precedence over the numeric sentinel check when a
    source exposes it explicitly. Exchange requests have no produced asset, so
    an approved exchange request stays ``approved``.
    """

    code = _status_code(raw_status)
    if code is RawStatusCode.PENDING:
        return RecordStatus.PENDING
    if code is RawStatusCode.REJECTED:
        return RecordStatus.REJECTED
    if kind is RecordKind.EXCHANGE:
        return RecordStatus.APPROVED
    produced = is_valid_asset_id(secondary_asset_id) if asset_produced is None else asset_produced
    return RecordStatus.MINTED if produced else RecordStatus.APPROVED


def needs_existence_probe(record: Record) -> bool:
    """Records whose displayed status depends on the NFT still existing."""

    if not is_valid_asset_id(record.secondary_asset_id):
        return False
    if record.kind is RecordKind.MINT:
        return record.status is RecordStatus.MINTED
    return record.status is RecordStatus.APPROVED


def display_status(
    record: Record,
    outcome: ProbeOutcome | None,
    previous: RecordStatus | None = None,
) -> RecordStatus:
    """Status to show for ``record`` given the latest existence probe outcome.

    Only a confirmed ``NOT_FOUND`` reclassifies to ``EXCHANGED``. An ``UNKNOWN``
    or missing outcome keeps whatever was displayed before.
    """

    if not needs_existence_probe(record):
        return record.status
    if outcome is ProbeOutcome.NOT_FOUND:
        return RecordStatus.EXCHANGED
    if outcome is not ProbeOutcome.EXISTS and previous is RecordStatus.EXCHANGED:
        return RecordStatus.EXCHANGED
    return record.status


__all__ = [
    "UNSET_ASSET_ID",
    "UnknownStatusCodeError",
    "derive_status",
    "display_status",
    "is_valid_asset_id",
    "needs_existence_probe",
]
