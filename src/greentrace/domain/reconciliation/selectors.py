"""Pure views over a merged record list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from greentrace.domain.model import RecordStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from greentrace.domain.model import Record

COMPLETED_STATUSES = frozenset({RecordStatus.APPROVED, RecordStatus.REJECTED})


@dataclass(frozen=True, slots=True)
class StatusCounts:
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    minted: int = 0
    exchanged: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.approved + self.rejected + self.minted + self.exchanged


def partition_by_status(records: Iterable[Record]) -> dict[RecordStatus, list[Record]]:
    """Group records by status, keeping their order. Every status has an entry."""

    groups: dict[RecordStatus, list[Record]] = {status: [] for status in RecordStatus}
    for record in records:
        groups[record.status].append(record)
    return groups


def count_by_status(records: Iterable[Record]) -> StatusCounts:
    groups = partition_by_status(records)
    return StatusCounts(
        pending=len(groups[RecordStatus.PENDING]),
        approved=len(groups[RecordStatus.APPROVED]),
        rejected=len(groups[RecordStatus.REJECTED]),
        minted=len(groups[RecordStatus.MINTED]),
        exchanged=len(groups[RecordStatus.EXCHANGED]),
    )


def pending_records(records: Sequence[Record]) -> list[Record]:
    return [record for record in records if record.status is RecordStatus.PENDING]


def completed_records(records: Sequence[Record]) -> list[Record]:
    """Records whose review has finished, approved or rejected."""

    return [record for record in records if record.status in COMPLETED_STATUSES]


__all__ = [
    "COMPLETED_STATUSES",
    "StatusCounts",
    "completed_records",
    "count_by_status",
    "partition_by_status",
    "pending_records",
]
