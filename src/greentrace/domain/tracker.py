"""Public read API: one account's reconciled view of its mint or exchange requests.

``RecordTracker`` owns the moving parts for a single record kind. It serves the
cached list on connect, re-reads contract state on demand, folds provisional
records from chain events into the view, and reclassifies records whose NFT no
longer exists.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from greentrace.config.tracking import TrackerSettings
from greentrace.domain.clock import Clock, utcnow
from greentrace.domain.fetching import FetchError
from greentrace.domain.lifecycle import derive_status, display_status, needs_existence_probe
from greentrace.domain.listening import BINDINGS_BY_KIND, EventListener, SignalKind
from greentrace.domain.model import (
    RawStatusCode,
    Record,
    RecordSource,
    RecordStatus,
    request_reference,
)
from greentrace.domain.notifications import AssetRetired, AssetRetiredBus
from greentrace.domain.ports import ProbeOutcome
from greentrace.domain.reconciliation import merge_records

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence
    from datetime import timedelta

    from greentrace.domain.fetching import AuthoritativeFetcher
    from greentrace.domain.listening import EventBinding, ListeningLease
    from greentrace.domain.model import RecordKind
    from greentrace.domain.ports import ChainLog, EventSubscriber, ExistenceOracle
    from greentrace.domain.record_cache import CacheStatus, RecordCache

log = getLogger(__name__)

PLACEHOLDER_TITLE = "New request is being processed..."
PLACEHOLDER_DETAILS = "Waiting for block confirmation, fetching details..."

_REQUEST_ID_ARGS = ("requestId", "cashId")


class TrackerStateError(RuntimeError):
    """Raised when an account-scoped operation runs before ``connect``."""


class RecordTracker:
    def __init__(
        self,
        *,
        fetcher: AuthoritativeFetcher,
        cache: RecordCache,
        oracle: ExistenceOracle,
        subscriber: EventSubscriber,
        target: str,
        bus: AssetRetiredBus | None = None,
        settings: TrackerSettings | None = None,
        bindings: Sequence[EventBinding] | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._oracle = oracle
        self._settings = settings or TrackerSettings()
        self._clock = clock
        self._kind: RecordKind = fetcher.kind
        self._bus = bus if bus is not None else AssetRetiredBus()
        self._listener = EventListener(
            subscriber=subscriber,
            target=target,
            bindings=bindings if bindings is not None else BINDINGS_BY_KIND[self._kind],
            handler=self._on_signal,
            default_duration=self._settings.listen_duration,
            clock=clock,
        )
        self._unsubscribe_bus: Callable[[], None] | None = self._bus.subscribe(
            self._on_asset_retired
        )

        self._account: str | None = None
        self._event_records: dict[str, Record] = {}
        self._contract_records: list[Record] = []
        self._existence: dict[str, ProbeOutcome] = {}
        # displayed status per asset from before the last forced refresh
        self._previous_display: dict[str, RecordStatus] = {}
        self._reprobe_attempts: dict[str, int] = {}
        self._loading = False
        self._error: str | None = None
        self._generation = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._pending_refresh: asyncio.Task[None] | None = None
        self._scheduled_refresh: asyncio.Task[None] | None = None

    # --- State ----------------------------------------------------------------

    @property
    def kind(self) -> RecordKind:
        return self._kind

    @property
    def account(self) -> str | None:
        return self._account

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def event_count(self) -> int:
        return len(self._event_records)

    @property
    def contract_count(self) -> int:
        return len(self._contract_records)

    @property
    def is_event_listening(self) -> bool:
        return self._listener.is_enabled

    @property
    def bus(self) -> AssetRetiredBus:
        return self._bus

    @property
    def records(self) -> list[Record]:
        """Merged view, with each record shown in its displayed status."""

        merged = merge_records(list(self._event_records.values()), self._contract_records)
        return [
            record.displayed_as(self._displayed_status(record))
            for record in merged
        ]

    def _displayed_status(self, record: Record) -> RecordStatus:
        asset_id = record.secondary_asset_id
        if asset_id is None:
            return record.status
        return display_status(
            record, self._existence.get(asset_id), self._previous_display.get(asset_id)
        )

    def _remember_display(self) -> None:
        for record in self.records:
            if record.secondary_asset_id is not None:
                self._previous_display[record.secondary_asset_id] = record.status

    # --- Lifecycle ------------------------------------------------------------

    async def connect(self, account: str, *, refresh: bool = True) -> None:
        """Switch to ``account``: serve its cached records, then re-read contract state."""

        normalized = account.strip()
        if not normalized:
            raise ValueError("Account must not be empty")

        self._reset()
        self._account = normalized
        self._listener.bind_account(normalized)
        generation = self._generation

        cached = await self._cache.get(normalized)
        if cached is not None and self._is_current(generation, normalized):
            log.info("Serving %s cached %s records for %s", len(cached), self._kind, normalized)
            self._contract_records = cached
            await self._probe_assets(cached, generation)

        if refresh:
            await self.refresh()

    async def disconnect(self) -> None:
        self._reset()
        self._account = None

    async def aclose(self) -> None:
        tasks = list(self._tasks)
        await self.disconnect()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._unsubscribe_bus is not None:
            self._unsubscribe_bus()
            self._unsubscribe_bus = None

    def _reset(self) -> None:
        self._generation += 1
        self._listener.bind_account(None)
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._pending_refresh = None
        self._scheduled_refresh = None
        self._event_records.clear()
        self._contract_records = []
        self._existence.clear()
        self._previous_display.clear()
        self._reprobe_attempts.clear()
        self._loading = False
        self._error = None

    def _require_account(self) -> str:
        if self._account is None:
            raise TrackerStateError("No account connected")
        return self._account

    def _is_current(self, generation: int, account: str) -> bool:
        return generation == self._generation and account == self._account

    # --- Refresh --------------------------------------------------------------

    async def refresh(self, *, force: bool = False) -> bool:
        """Re-read contract state. Returns ``False`` when failed or superseded.

        A forced refresh drops the cache entry, provisional records and probe
        outcomes before reading, whether or not the read succeeds.
        """

        account = self._require_account()
        self._generation += 1
        generation = self._generation

        if force:
            await self._cache.invalidate(account)
            self._remember_display()
            self._event_records.clear()
            self._existence.clear()
            self._reprobe_attempts.clear()

        self._loading = True
        self._error = None
        try:
            records = await self._fetcher.fetch(account)
        except FetchError as exc:
            log.warning("Refreshing %s records for %s failed: %s", self._kind, account, exc)
            if self._is_current(generation, account):
                self._error = str(exc)
                self._loading = False
            return False

        if not self._is_current(generation, account):
            log.debug("Discarding superseded refresh %s for %s", generation, account)
            return False

        await self._probe_assets(records, generation)
        if not self._is_current(generation, account):
            log.debug("Discarding superseded refresh %s for %s", generation, account)
            return False

        self._contract_records = records
        self._loading = False
        await self._cache.put(account, records)
        return True

    async def flush_refreshes(self) -> None:
        """Wait until refreshes scheduled by chain events have run."""

        while (task := self._scheduled_refresh) is not None and not task.done():
            await asyncio.wait([task])

    async def cache_status(self) -> CacheStatus:
        return await self._cache.status(self._require_account())

    async def clear_cache(self) -> None:
        await self._cache.invalidate(self._require_account())

    # --- Existence ------------------------------------------------------------

    async def _probe_assets(self, records: Sequence[Record], generation: int) -> None:
        asset_ids = sorted(
            {
                record.secondary_asset_id
                for record in records
                if record.secondary_asset_id is not None and needs_existence_probe(record)
            }
        )
        if asset_ids:
            await self._probe(asset_ids, generation)

    async def _probe(self, asset_ids: Sequence[str], generation: int) -> None:
        account = self._account
        outcomes = await asyncio.gather(*(self._probe_one(asset_id) for asset_id in asset_ids))
        if account is None or not self._is_current(generation, account):
            log.debug("Discarding existence outcomes of superseded generation %s", generation)
            return

        unresolved: list[str] = []
        for asset_id, outcome in zip(asset_ids, outcomes, strict=True):
            if outcome is ProbeOutcome.UNKNOWN:
                # an inconclusive probe keeps whatever was shown before
                self._existence.setdefault(asset_id, outcome)
                unresolved.append(asset_id)
                continue
            self._existence[asset_id] = outcome
            self._previous_display.pop(asset_id, None)
            self._reprobe_attempts.pop(asset_id, None)
        if unresolved:
            self._schedule_reprobe(unresolved, generation)

    async def _probe_one(self, asset_id: str) -> ProbeOutcome:
        try:
            return await self._oracle.probe(asset_id)
        except Exception as exc:  # noqa: BLE001
            log.warning("Existence probe for asset %s failed: %s", asset_id, exc)
            return ProbeOutcome.UNKNOWN

    def _schedule_reprobe(self, asset_ids: Sequence[str], generation: int) -> None:
        retry: list[str] = []
        for asset_id in asset_ids:
            attempts = self._reprobe_attempts.get(asset_id, 0) + 1
            if attempts > self._settings.max_reprobe_attempts:
                log.warning(
                    "Giving up on existence of asset %s after %s attempts", asset_id, attempts - 1
                )
                continue
            self._reprobe_attempts[asset_id] = attempts
            retry.append(asset_id)
        if not retry:
            return

        async def reprobe() -> None:
            await self._probe(retry, generation)

        self._schedule(self._settings.reprobe_delay, reprobe, name=f"reprobe-{self._kind}")

    # --- Events ---------------------------------------------------------------

    def enable_event_listening(self, duration: timedelta | None = None) -> ListeningLease:
        self._require_account()
        return self._listener.enable(duration)

    def disable_event_listening(self, lease: ListeningLease | None = None) -> None:
        self._listener.disable(lease)

    def _on_signal(self, signal: SignalKind, logs: Sequence[ChainLog]) -> None:
        if self._account is None:
            return

        if signal is SignalKind.ASSET_RETIRED:
            self._publish_retired(logs)
            return

        for chain_log in logs:
            record = self._provisional_record(signal, chain_log)
            if record is not None:
                self._event_records[record.identity_key] = record
        self._schedule_refresh(self._refresh_delay(signal))

    def _publish_retired(self, logs: Sequence[ChainLog]) -> None:
        published = False
        for chain_log in logs:
            asset_id = chain_log.args.get("tokenId")
            if asset_id is None:
                continue
            self._bus.publish(
                AssetRetired(
                    asset_id=str(asset_id),
                    request_id=_request_id(chain_log.args),
                    transaction_hash=chain_log.transaction_hash,
                )
            )
            published = True
        if not published:
            self._schedule_refresh(self._settings.refresh_delays.asset_retired)

    def _on_asset_retired(self, notice: AssetRetired) -> None:
        if self._account is None:
            return
        self._existence[notice.asset_id] = ProbeOutcome.NOT_FOUND
        self._schedule_refresh(self._settings.refresh_delays.asset_retired)

    def _refresh_delay(self, signal: SignalKind) -> timedelta:
        delays = self._settings.refresh_delays
        if signal is SignalKind.SUBMITTED:
            return delays.submitted
        if signal is SignalKind.ASSET_PRODUCED:
            return delays.asset_produced
        if signal is SignalKind.ASSET_RETIRED:
            return delays.asset_retired
        return delays.reviewed

    def _provisional_record(self, signal: SignalKind, chain_log: ChainLog) -> Record | None:
        request_id = _request_id(chain_log.args)
        if request_id is not None:
            reference = request_reference(self._kind, request_id)
        elif signal is SignalKind.SUBMITTED and chain_log.transaction_hash:
            reference = chain_log.transaction_hash
        else:
            return None

        known = self._event_records.get(reference) or next(
            (r for r in self._contract_records if r.identity_key == reference), None
        )
        if signal is not SignalKind.SUBMITTED and known is None:
            # review events are not requester-scoped; only track our own requests
            return None

        asset_id = chain_log.args.get("tokenId")
        secondary = str(asset_id) if asset_id is not None else None
        if known is not None and secondary is None:
            secondary = known.secondary_asset_id

        return Record(
            id=request_id if request_id is not None else reference,
            kind=self._kind,
            title=known.title if known is not None else PLACEHOLDER_TITLE,
            details=known.details if known is not None else PLACEHOLDER_DETAILS,
            status=self._provisional_status(signal, secondary),
            created_at=known.created_at if known is not None else self._clock(),
            source=RecordSource.EVENT,
            transaction_hash=reference,
            requester=_as_text(chain_log.args.get("requester")) or self._account,
            secondary_asset_id=secondary,
        )

    def _provisional_status(self, signal: SignalKind, secondary: str | None) -> RecordStatus:
        if signal is SignalKind.SUBMITTED:
            return RecordStatus.PENDING
        if signal is SignalKind.REJECTED:
            return RecordStatus.REJECTED
        if signal is SignalKind.ASSET_PRODUCED:
            return derive_status(RawStatusCode.APPROVED, secondary, kind=self._kind)
        return derive_status(RawStatusCode.APPROVED, None, kind=self._kind)

    # --- Scheduling -----------------------------------------------------------

    def _schedule_refresh(self, delay: timedelta) -> None:
        if self._pending_refresh is not None and not self._pending_refresh.done():
            log.debug("Refresh already scheduled, coalescing")
            return
        account = self._account

        async def forced_refresh() -> None:
            self._pending_refresh = None
            if account is None or account != self._account:
                return
            await self.refresh(force=True)

        self._pending_refresh = self._scheduled_refresh = self._schedule(
            delay, forced_refresh, name=f"refresh-{self._kind}"
        )

    def _schedule(
        self,
        delay: timedelta,
        action: Callable[[], Awaitable[None]],
        *,
        name: str,
    ) -> asyncio.Task[None]:
        async def run() -> None:
            await asyncio.sleep(delay.total_seconds())
            await action()

        task = asyncio.get_running_loop().create_task(run(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("Scheduled task %s failed", task.get_name(), exc_info=exc)


def _request_id(args: Mapping[str, object]) -> str | None:
    for name in _REQUEST_ID_ARGS:
        value = args.get(name)
        if value is not None:
            return str(value)
    return None


def _as_text(value: object) -> str | None:
    return str(value) if value is not None else None


__all__ = ["PLACEHOLDER_DETAILS", "PLACEHOLDER_TITLE", "RecordTracker", "TrackerStateError"]
