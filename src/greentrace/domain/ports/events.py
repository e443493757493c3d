"""Ports for subscribing to chain event logs."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ChainLog:
    """A decoded event log. ``args`` holds whatever the adapter could decode."""

    event: str
    address: str
    transaction_hash: str | None = None
    block_number: int | None = None
    log_index: int | None = None
    args: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EventFilter:
    target: str
    event: str
    # restrict to logs whose indexed requester equals this account
    requester: str | None = None


LogCallback = Callable[[Sequence[ChainLog]], None]


@runtime_checkable
class Subscription(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class EventSubscriber(Protocol):
    """Invokes ``callback`` for each batch of matching logs until cancelled."""

    def subscribe(self, event_filter: EventFilter, callback: LogCallback) -> Subscription: ...


__all__ = ["ChainLog", "EventFilter", "EventSubscriber", "LogCallback", "Subscription"]
