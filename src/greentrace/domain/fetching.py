"""Authoritative record fetching from contract state."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from greentrace.domain.ports import ReadFailure
from greentrace.domain.reconciliation import sort_records

if TYPE_CHECKING:
    from collections.abc import Sequence

    from greentrace.domain.model import Record, RecordKind
    from greentrace.domain.ports import BatchContractReader, ContractCall, ReadResult

log = getLogger(__name__)


class FetchError(RuntimeError):
    """Raised when the identifier list for an account cannot be resolved."""


class RecordSource(Protocol):
    """Describes how one kind of request is looked up and read from a contract."""

    @property
    def kind(self) -> RecordKind: ...

    def identifier_calls(self, account: str) -> Sequence[ContractCall]:
        """Calls whose results are lists of request ids relevant to ``account``."""
        ...

    def detail_call(self, record_id: str) -> ContractCall: ...

    def translate(self, record_id: str, value: object) -> Record:
        """Turn one decoded detail value into a contract-sourced record."""
        ...

    def belongs_to(self, record: Record, account: str) -> bool: ...


class AuthoritativeFetcher:
    """Resolve an account's request ids, then batch-read every request's detail.

    Individual detail reads that fail are skipped with a warning. Only failing to
    resolve the id list is fatal.
    """

    def __init__(self, *, reader: BatchContractReader, source: RecordSource) -> None:
        self._reader = reader
        self._source = source

    @property
    def kind(self) -> RecordKind:
        return self._source.kind

    async def fetch(self, account: str) -> list[Record]:
        record_ids = await self.resolve_ids(account)
        if not record_ids:
            log.info("No %s requests found for %s", self.kind, account)
            return []

        log.info("Reading %s %s requests for %s", len(record_ids), self.kind, account)
        calls = [self._source.detail_call(record_id) for record_id in record_ids]
        try:
            results = await self._reader.read(calls)
        except Exception as exc:  # noqa: BLE001
            raise FetchError(f"Failed to read {self.kind} request details: {exc}") from exc

        records: list[Record] = []
        for record_id, result in zip(record_ids, results, strict=True):
            record = self._translate(record_id, result)
            if record is None:
                continue
            if not self._source.belongs_to(record, account):
                continue
            records.append(record)

        log.info("Fetched %s %s records for %s", len(records), self.kind, account)
        return sort_records(records)

    async def resolve_ids(self, account: str) -> list[str]:
        """Return the de-duplicated request ids, in lookup order."""

        try:
            calls = list(self._source.identifier_calls(account))
        except ValueError as exc:
            msg = f"Cannot look up {self.kind} requests for {account!r}: {exc}"
            raise FetchError(msg) from exc
        try:
            results = await self._reader.read(calls)
        except Exception as exc:  # noqa: BLE001
            raise FetchError(f"Failed to resolve {self.kind} request ids: {exc}") from exc

        failures = [result for result in results if isinstance(result, ReadFailure)]
        if calls and len(failures) == len(calls):
            reasons = "; ".join(failure.error for failure in failures)
            raise FetchError(f"Failed to resolve {self.kind} request ids: {reasons}")

        seen: set[str] = set()
        record_ids: list[str] = []
        for call, result in zip(calls, results, strict=True):
            if isinstance(result, ReadFailure):
                log.warning("Id lookup %s failed, continuing: %s", call.method, result.error)
                continue
            for value in _as_id_list(result.value, method=call.method):
                if value in seen:
                    continue
                seen.add(value)
                record_ids.append(value)
        return record_ids

    def _translate(self, record_id: str, result: ReadResult) -> Record | None:
        if isinstance(result, ReadFailure):
            log.warning("Reading %s request %s failed: %s", self.kind, record_id, result.error)
            return None
        try:
            return self._source.translate(record_id, result.value)
        except ValueError as exc:
            log.warning("Skipping %s request %s: %s", self.kind, record_id, exc)
            return None


def _as_id_list(value: object, *, method: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list | tuple):
        raise FetchError(f"{method} returned {type(value).__name__}, expected a list of ids")
    return [str(item) for item in value]


__all__ = ["AuthoritativeFetcher", "FetchError", "RecordSource"]
