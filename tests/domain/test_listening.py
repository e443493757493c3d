from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from greentrace.domain.listening import (
    EXCHANGE_BINDINGS,
    MINT_BINDINGS,
    EventListener,
    SignalKind,
)
from greentrace.domain.model import AuditType

from tests.helpers.records import ACCOUNT
from tests.support.fakes import FakeEventSubscriber, chain_log

if TYPE_CHECKING:
    from collections.abc import Sequence

    from greentrace.domain.ports import ChainLog


class _Recorder:
    def __init__(self) -> None:
        self.signals: list[tuple[SignalKind, list[str | None]]] = []

    def __call__(self, signal: SignalKind, logs: Sequence[ChainLog]) -> None:
        self.signals.append((signal, [chain_log.transaction_hash for chain_log in logs]))


def _listener(
    subscriber: FakeEventSubscriber, recorder: _Recorder, *, exchange: bool = False
) -> EventListener:
    listener = EventListener(
        subscriber=subscriber,
        target="0xcontract",
        bindings=EXCHANGE_BINDINGS if exchange else MINT_BINDINGS,
        handler=recorder,
    )
    listener.bind_account(ACCOUNT)
    return listener


async def test_disabled_by_default() -> None:
    subscriber = FakeEventSubscriber()
    listener = _listener(subscriber, _Recorder())

    assert not listener.is_enabled
    assert subscriber.subscriptions == []


async def test_enable_subscribes_every_binding_once() -> None:
    subscriber = FakeEventSubscriber()
    listener = _listener(subscriber, _Recorder())

    listener.enable()
    listener.enable()

    assert listener.is_enabled
    assert len(listener.leases) == 2
    assert [sub.event_filter.event for sub in subscriber.active] == [
        binding.event for binding in MINT_BINDINGS
    ]


async def test_only_submission_filter_is_scoped_to_account() -> None:
    subscriber = FakeEventSubscriber()
    listener = _listener(subscriber, _Recorder())

    listener.enable()

    requesters = {sub.event_filter.event: sub.event_filter.requester for sub in subscriber.active}
    assert requesters["MintRequested"] == ACCOUNT
    assert requesters["AuditSubmitted"] is None
    assert requesters["NFTExchanged"] is None


async def test_non_positive_duration_is_rejected() -> None:
    listener = _listener(FakeEventSubscriber(), _Recorder())

    with pytest.raises(ValueError, match="positive"):
        listener.enable(timedelta(0))


async def test_overlapping_leases_expire_independently() -> None:
    subscriber = FakeEventSubscriber()
    listener = _listener(subscriber, _Recorder())

    listener.enable(timedelta(milliseconds=20))
    listener.enable(timedelta(milliseconds=200))
    await asyncio.sleep(0.06)

    assert listener.is_enabled
    assert len(listener.leases) == 1

    await asyncio.sleep(0.2)

    assert not listener.is_enabled
    assert subscriber.active == []


async def test_disable_one_lease_keeps_the_other() -> None:
    subscriber = FakeEventSubscriber()
    listener = _listener(subscriber, _Recorder())
    first = listener.enable()
    listener.enable()

    listener.disable(first)

    assert listener.is_enabled
    listener.disable()
    assert not listener.is_enabled
    assert all(sub.cancelled for sub in subscriber.subscriptions)


async def test_binding_a_new_account_drops_leases() -> None:
    subscriber = FakeEventSubscriber()
    listener = _listener(subscriber, _Recorder())
    listener.enable()

    listener.bind_account(None)

    assert not listener.is_enabled
    assert listener.leases == ()


async def test_logs_are_forwarded_as_signals() -> None:
    subscriber = FakeEventSubscriber()
    recorder = _Recorder()
    listener = _listener(subscriber, recorder)
    listener.enable()

    subscriber.emit("MintRequested", chain_log("MintRequested", tx="0xa", requestId=4))
    subscriber.emit("NFTMintedAfterAudit", chain_log("NFTMintedAfterAudit", tx="0xb"))

    assert recorder.signals == [
        (SignalKind.SUBMITTED, ["0xa"]),
        (SignalKind.ASSET_PRODUCED, ["0xb"]),
    ]


async def test_audit_logs_of_the_other_kind_are_ignored() -> None:
    subscriber = FakeEventSubscriber()
    recorder = _Recorder()
    listener = _listener(subscriber, recorder, exchange=True)
    listener.enable()

    subscriber.emit(
        "AuditSubmitted",
        chain_log("AuditSubmitted", tx="0xmint", auditType=int(AuditType.MINT)),
        chain_log("AuditSubmitted", tx="0xcash", auditType=int(AuditType.EXCHANGE)),
        chain_log("AuditSubmitted", tx="0xunknown"),
    )

    assert recorder.signals == [(SignalKind.APPROVED, ["0xcash", "0xunknown"])]


async def test_audit_logs_with_garbled_type_are_ignored() -> None:
    subscriber = FakeEventSubscriber()
    recorder = _Recorder()
    listener = _listener(subscriber, recorder, exchange=True)
    listener.enable()

    subscriber.emit(
        "AuditSubmitted",
        chain_log("AuditSubmitted", tx="0xbad", auditType="exchange"),
        chain_log("AuditSubmitted", tx="0xcash", auditType=int(AuditType.EXCHANGE)),
    )

    assert recorder.signals == [(SignalKind.APPROVED, ["0xcash"])]


async def test_logs_arriving_after_disable_are_dropped() -> None:
    subscriber = FakeEventSubscriber()
    recorder = _Recorder()
    listener = _listener(subscriber, recorder)
    listener.enable()
    callback = subscriber.subscriptions[0].callback

    listener.disable()
    callback([chain_log("MintRequested")])

    assert recorder.signals == []
