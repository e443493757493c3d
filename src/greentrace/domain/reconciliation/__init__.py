"""Reconciliation of provisional and authoritative records.

Two sources describe the same requests:
1) event logs, fast but partial, turned into provisional records
2) contract reads, slow but authoritative

``merge_records`` collapses both into one list keyed by identity key with the
contract copy always winning; ``selectors`` derives the views consumers need.
"""

from __future__ import annotations

from .merge import merge_records, sort_records
from .selectors import (
    COMPLETED_STATUSES,
    StatusCounts,
    completed_records,
    count_by_status,
    partition_by_status,
    pending_records,
)

__all__ = [
    "COMPLETED_STATUSES",
    "StatusCounts",
    "completed_records",
    "count_by_status",
    "merge_records",
    "partition_by_status",
    "pending_records",
    "sort_records",
]
