"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from greentrace.adapters.ethereum import (
    ExchangeRequestSource,
    JsonRpcClient,
    JsonRpcContractReader,
    LogPollingSubscriber,
    MintRequestSource,
    OwnerOfExistenceOracle,
)
from greentrace.adapters.http_resilience import default_client_factory
from greentrace.adapters.sqlalchemy import SqlAlchemyKeyValueStorage
from greentrace.config import (
    get_cache_database_config,
    get_chain_config,
    get_tracker_settings,
)
from greentrace.domain.fetching import AuthoritativeFetcher
from greentrace.domain.model import RecordKind
from greentrace.domain.record_cache import RecordCache
from greentrace.domain.tracker import RecordTracker

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import timedelta

    from greentrace.adapters.http_resilience import ResilientClient
    from greentrace.config import ChainConfig, ResilienceConfig, TrackerSettings
    from greentrace.domain.fetching import RecordSource
    from greentrace.domain.model import Record
    from greentrace.domain.notifications import AssetRetiredBus
    from greentrace.domain.ports import KeyValueStorage
    from greentrace.domain.record_cache import CacheStatus

log = getLogger(__name__)


def build_record_source(kind: RecordKind, chain: ChainConfig) -> RecordSource:
    if kind is RecordKind.MINT:
        return MintRequestSource(chain.greentrace_address)
    return ExchangeRequestSource(chain.greentrace_address)


def build_key_value_storage(uri: str | None = None) -> SqlAlchemyKeyValueStorage:
    resolved = uri or get_cache_database_config().uri
    log.debug("Using record cache database %s", resolved)
    return SqlAlchemyKeyValueStorage.from_uri(resolved)


@dataclass(slots=True)
class TrackerRuntime:
    """A tracker together with the resources it owns."""

    tracker: RecordTracker
    client: JsonRpcClient
    storage: KeyValueStorage

    async def aclose(self) -> None:
        await self.tracker.aclose()
        await self.client.aclose()
        _dispose_owned(self.storage, owned=True)

    async def __aenter__(self) -> TrackerRuntime:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()


def build_record_tracker(
    *,
    kind: RecordKind = RecordKind.MINT,
    chain: ChainConfig | None = None,
    storage: KeyValueStorage | None = None,
    settings: TrackerSettings | None = None,
    bus: AssetRetiredBus | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
) -> TrackerRuntime:
    """Wire a ``RecordTracker`` for ``kind`` against the configured chain and cache."""

    chain_config = chain or get_chain_config()
    tracker_settings = settings or get_tracker_settings()
    kv_storage = storage if storage is not None else build_key_value_storage()

    client = JsonRpcClient(chain_config.resilience, client_factory=client_factory)
    fetcher = AuthoritativeFetcher(
        reader=JsonRpcContractReader(client),
        source=build_record_source(kind, chain_config),
    )
    tracker = RecordTracker(
        fetcher=fetcher,
        cache=RecordCache(kv_storage, kind=kind, ttl=tracker_settings.cache_ttl),
        oracle=OwnerOfExistenceOracle(client, nft_address=chain_config.nft_address),
        subscriber=LogPollingSubscriber(client, poll_interval=chain_config.poll_interval_seconds),
        target=chain_config.greentrace_address,
        bus=bus,
        settings=tracker_settings,
    )
    log.info(
        "Built %s tracker: rpc=%s, contract=%s",
        kind,
        chain_config.rpc_url,
        chain_config.greentrace_address,
    )
    return TrackerRuntime(tracker=tracker, client=client, storage=kv_storage)


async def load_records(
    account: str,
    *,
    kind: RecordKind = RecordKind.MINT,
    force: bool = False,
    listen: timedelta | None = None,
    runtime: TrackerRuntime | None = None,
) -> list[Record]:
    """Connect, refresh and optionally listen for chain events before returning records."""

    owned = runtime is None
    active = runtime if runtime is not None else build_record_tracker(kind=kind)
    try:
        tracker = active.tracker
        await tracker.connect(account, refresh=not force)
        if force:
            await tracker.refresh(force=True)
        if tracker.error:
            log.warning("Showing last known %s records: %s", kind, tracker.error)
        if listen is not None:
            tracker.enable_event_listening(listen)
            await asyncio.sleep(listen.total_seconds())
            tracker.disable_event_listening()
            await tracker.flush_refreshes()
        records = tracker.records
        log.info(
            "Loaded %s %s records for %s (%s from contract, %s provisional)",
            len(records),
            kind,
            account,
            tracker.contract_count,
            tracker.event_count,
        )
        return records
    finally:
        if owned:
            await active.aclose()


async def read_cache_status(
    account: str,
    *,
    kinds: Iterable[RecordKind] = tuple(RecordKind),
    storage: KeyValueStorage | None = None,
) -> dict[RecordKind, CacheStatus]:
    kv_storage = storage if storage is not None else build_key_value_storage()
    try:
        return {kind: await RecordCache(kv_storage, kind=kind).status(account) for kind in kinds}
    finally:
        _dispose_owned(kv_storage, owned=storage is None)


async def clear_record_cache(
    account: str,
    *,
    kinds: Iterable[RecordKind] = tuple(RecordKind),
    storage: KeyValueStorage | None = None,
) -> None:
    kv_storage = storage if storage is not None else build_key_value_storage()
    try:
        for kind in kinds:
            await RecordCache(kv_storage, kind=kind).invalidate(account)
            log.info("Cleared %s record cache for %s", kind, account)
    finally:
        _dispose_owned(kv_storage, owned=storage is None)


def _dispose_owned(storage: KeyValueStorage, *, owned: bool) -> None:
    if owned and isinstance(storage, SqlAlchemyKeyValueStorage):
        storage.dispose()


__all__ = [
    "TrackerRuntime",
    "build_key_value_storage",
    "build_record_source",
    "build_record_tracker",
    "clear_record_cache",
    "load_records",
    "read_cache_status",
]
