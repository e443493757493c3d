"""Per-account, TTL-bound cache of the last known-good record list.

The cache is an optimisation only: every storage or decoding failure is logged
and reported as a miss, never raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from greentrace.config.tracking import DEFAULT_CACHE_TTL
from greentrace.domain.clock import Clock, utcnow
from greentrace.domain.model import Record, RecordKind
from greentrace.domain.ports import StorageError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from greentrace.domain.ports import KeyValueStorage

log = getLogger(__name__)

CACHE_PREFIXES: dict[RecordKind, str] = {
    RecordKind.MINT: "mint_records_",
    RecordKind.EXCHANGE: "exchange_records_",
}

# failures that mean "no usable cache" rather than a bug in the caller
_CACHE_FAULTS = (StorageError, OSError, ValidationError, ValueError)


@dataclass(slots=True)
class CacheEntry:
    data: list[Record]
    timestamp: int  # epoch milliseconds


@dataclass(frozen=True, slots=True)
class CacheStatus:
    has_cache: bool
    cache_count: int
    cache_valid: bool
    written_at: datetime | None = None


_ENTRY_ADAPTER: TypeAdapter[CacheEntry] = TypeAdapter(CacheEntry)


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class RecordCache:
    """Stores ``{"data": [...], "timestamp": ms}`` per normalised account key."""

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        kind: RecordKind = RecordKind.MINT,
        ttl: timedelta = DEFAULT_CACHE_TTL,
        clock: Clock = utcnow,
    ) -> None:
        self._storage = storage
        self._prefix = CACHE_PREFIXES[kind]
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def key_for(self, account: str) -> str:
        return f"{self._prefix}{account.strip().lower()}"

    async def get(self, account: str) -> list[Record] | None:
        """Return the cached records, or ``None`` when absent, expired or unreadable."""

        entry = await self._load(account)
        if entry is None or not self._is_fresh(entry):
            return None
        return list(entry.data)

    async def put(self, account: str, records: Sequence[Record]) -> None:
        entry = CacheEntry(data=list(records), timestamp=_epoch_ms(self._clock()))
        key = self.key_for(account)
        try:
            payload = _ENTRY_ADAPTER.dump_json(entry).decode("utf-8")
            await self._storage.set(key, payload)
        except _CACHE_FAULTS as exc:
            log.warning("Failed to write record cache %s: %s", key, exc)
            return
        log.debug("Cached %s records under %s", len(entry.data), key)

    async def invalidate(self, account: str) -> None:
        """Drop the cached entry. Safe to call when nothing is cached."""

        key = self.key_for(account)
        try:
            await self._storage.remove(key)
        except _CACHE_FAULTS as exc:
            log.warning("Failed to clear record cache %s: %s", key, exc)

    async def status(self, account: str) -> CacheStatus:
        entry = await self._load(account)
        if entry is None:
            return CacheStatus(has_cache=False, cache_count=0, cache_valid=False)
        return CacheStatus(
            has_cache=True,
            cache_count=len(entry.data),
            cache_valid=self._is_fresh(entry),
            written_at=datetime.fromtimestamp(entry.timestamp / 1000, tz=self._clock().tzinfo),
        )

    async def _load(self, account: str) -> CacheEntry | None:
        key = self.key_for(account)
        try:
            raw = await self._storage.get(key)
            if raw is None:
                return None
            return _ENTRY_ADAPTER.validate_json(raw)
        except _CACHE_FAULTS as exc:
            log.warning("Failed to read record cache %s: %s", key, exc)
            return None

    def _is_fresh(self, entry: CacheEntry) -> bool:
        age_ms = _epoch_ms(self._clock()) - entry.timestamp
        return age_ms <= self._ttl / timedelta(milliseconds=1)


__all__ = ["CACHE_PREFIXES", "CacheEntry", "CacheStatus", "RecordCache"]
