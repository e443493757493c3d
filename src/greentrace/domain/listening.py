"""Time-boxed chain event listening.

Log subscriptions are expensive and rate-limited, so they are only held while
at least one *lease* is live. Every ``enable`` call gets its own lease with its
own deadline; a lease expiring drops only itself, so overlapping callers do not
cut each other's listening window short.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from greentrace.config.tracking import LISTEN_DEFAULT
from greentrace.domain.clock import Clock, utcnow
from greentrace.domain.model import AuditType, RecordKind
from greentrace.domain.ports import ChainLog, EventFilter

if TYPE_CHECKING:
    from greentrace.domain.ports import EventSubscriber, Subscription

log = getLogger(__name__)


class SignalKind(StrEnum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    ASSET_PRODUCED = "asset_produced"
    ASSET_RETIRED = "asset_retired"


@dataclass(frozen=True, slots=True)
class EventBinding:
    """Which contract event stands for which lifecycle signal."""

    signal: SignalKind
    event: str
    by_requester: bool = False
    audit_type: AuditType | None = None

    def accepts(self, chain_log: ChainLog) -> bool:
        if self.audit_type is None:
            return True
        value = chain_log.args.get("auditType")
        # logs without a decoded auditType are kept
        if value is None:
            return True
        try:
            return int(str(value)) == self.audit_type
        except ValueError:
            return False


MINT_BINDINGS: tuple[EventBinding, ...] = (
    EventBinding(SignalKind.SUBMITTED, "MintRequested", by_requester=True),
    EventBinding(SignalKind.APPROVED, "AuditSubmitted", audit_type=AuditType.MINT),
    EventBinding(SignalKind.REJECTED, "AuditRejected"),
    EventBinding(SignalKind.ASSET_PRODUCED, "NFTMintedAfterAudit"),
    EventBinding(SignalKind.ASSET_RETIRED, "NFTExchanged"),
)

EXCHANGE_BINDINGS: tuple[EventBinding, ...] = (
    EventBinding(SignalKind.SUBMITTED, "ExchangeRequested", by_requester=True),
    EventBinding(SignalKind.APPROVED, "AuditSubmitted", audit_type=AuditType.EXCHANGE),
    EventBinding(SignalKind.REJECTED, "AuditRejected"),
    EventBinding(SignalKind.ASSET_RETIRED, "NFTExchanged"),
)

BINDINGS_BY_KIND: dict[RecordKind, tuple[EventBinding, ...]] = {
    RecordKind.MINT: MINT_BINDINGS,
    RecordKind.EXCHANGE: EXCHANGE_BINDINGS,
}

SignalHandler = Callable[[SignalKind, Sequence[ChainLog]], None]


@dataclass(frozen=True, slots=True)
class ListeningLease:
    token: UUID
    expires_at: datetime


class EventListener:
    def __init__(
        self,
        *,
        subscriber: EventSubscriber,
        target: str,
        bindings: Sequence[EventBinding],
        handler: SignalHandler,
        default_duration: timedelta = LISTEN_DEFAULT,
        clock: Clock = utcnow,
    ) -> None:
        self._subscriber = subscriber
        self._target = target
        self._bindings = tuple(bindings)
        self._handler = handler
        self._default_duration = default_duration
        self._clock = clock
        self._account: str | None = None
        self._leases: dict[UUID, ListeningLease] = {}
        self._timers: dict[UUID, asyncio.TimerHandle] = {}
        self._subscriptions: list[Subscription] = []

    @property
    def is_enabled(self) -> bool:
        return bool(self._subscriptions)

    @property
    def leases(self) -> tuple[ListeningLease, ...]:
        return tuple(self._leases.values())

    @property
    def bindings(self) -> tuple[EventBinding, ...]:
        return self._bindings

    def bind_account(self, account: str | None) -> None:
        """Scope requester-filtered bindings to ``account``. Drops all leases."""

        self.disable()
        self._account = account.lower() if account else None

    def enable(self, duration: timedelta | None = None) -> ListeningLease:
        """Listen for ``duration`` (default window when omitted). Needs a running loop."""

        window = duration if duration is not None else self._default_duration
        if window <= timedelta(0):
            raise ValueError("Listening duration must be positive")
        loop = asyncio.get_running_loop()

        lease = ListeningLease(token=uuid4(), expires_at=self._clock() + window)
        self._leases[lease.token] = lease
        self._timers[lease.token] = loop.call_later(
            window.total_seconds(), self._expire, lease.token
        )
        log.info("Event listening enabled for %ss (lease %s)", window.total_seconds(), lease.token)
        if not self._subscriptions:
            self._subscribe()
        return lease

    def disable(self, lease: ListeningLease | None = None) -> None:
        """Drop one lease, or every lease when ``lease`` is omitted."""

        tokens = [lease.token] if lease is not None else list(self._leases)
        for token in tokens:
            self._drop(token)
        if not self._leases:
            self._unsubscribe()

    def _expire(self, token: UUID) -> None:
        self._timers.pop(token, None)
        if token not in self._leases:
            return
        log.info("Event listening lease %s expired", token)
        self._drop(token)
        if not self._leases:
            self._unsubscribe()

    def _drop(self, token: UUID) -> None:
        self._leases.pop(token, None)
        timer = self._timers.pop(token, None)
        if timer is not None:
            timer.cancel()

    def _subscribe(self) -> None:
        for binding in self._bindings:
            requester = self._account if binding.by_requester else None
            event_filter = EventFilter(
                target=self._target, event=binding.event, requester=requester
            )
            subscription = self._subscriber.subscribe(event_filter, partial(self._on_logs, binding))
            self._subscriptions.append(subscription)

    def _unsubscribe(self) -> None:
        if not self._subscriptions:
            return
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        log.info("Event listening disabled")

    def _on_logs(self, binding: EventBinding, logs: Sequence[ChainLog]) -> None:
        if not self.is_enabled:
            return
        accepted = [chain_log for chain_log in logs if binding.accepts(chain_log)]
        if not accepted:
            return
        log.info("Observed %s %s log(s)", len(accepted), binding.event)
        self._handler(binding.signal, accepted)


__all__ = [
    "BINDINGS_BY_KIND",
    "EXCHANGE_BINDINGS",
    "MINT_BINDINGS",
    "EventBinding",
    "EventListener",
    "ListeningLease",
    "SignalHandler",
    "SignalKind",
]
