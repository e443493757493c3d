"""Merge event-sourced and contract-sourced records by identity key."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from greentrace.domain.model import RecordSource

if TYPE_CHECKING:
    from collections.abc import Iterable

    from greentrace.domain.model import Record

log = getLogger(__name__)


def _id_order(record: Record) -> tuple[int, int, str]:
    # numeric ids compare numerically, everything else lexically after them
    if record.id.isdigit():
        return (0, int(record.id), "")
    return (1, 0, record.id)


def sort_records(records: Iterable[Record]) -> list[Record]:
    """Newest first; records created at the same instant keep ascending id order."""

    by_id = sorted(records, key=_id_order)
    return sorted(by_id, key=lambda record: record.created_at, reverse=True)


def merge_records(
    event_records: Iterable[Record],
    contract_records: Iterable[Record],
) -> list[Record]:
    """Return one record per identity key, contract data winning over event data."""

    merged: dict[str, Record] = {}
    event_count = 0
    for record in event_records:
        merged[record.identity_key] = record.tagged(RecordSource.EVENT)
        event_count += 1
    contract_count = 0
    for record in contract_records:
        merged[record.identity_key] = record.tagged(RecordSource.CONTRACT)
        contract_count += 1

    result = sort_records(merged.values())
    log.debug(
        "Merged records: events=%s, contract=%s, final=%s",
        event_count,
        contract_count,
        len(result),
    )
    return result


__all__ = ["merge_records", "sort_records"]
