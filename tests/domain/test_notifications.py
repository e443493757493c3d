from __future__ import annotations

from greentrace.domain.notifications import AssetRetired, AssetRetiredBus


def test_publish_reaches_every_subscriber() -> None:
    bus = AssetRetiredBus()
    seen: list[tuple[str, str]] = []
    bus.subscribe(lambda notice: seen.append(("first", notice.asset_id)))
    bus.subscribe(lambda notice: seen.append(("second", notice.asset_id)))

    bus.publish(AssetRetired(asset_id="7", request_id="3"))

    assert seen == [("first", "7"), ("second", "7")]


def test_unsubscribe_is_idempotent() -> None:
    bus = AssetRetiredBus()
    seen: list[str] = []
    unsubscribe = bus.subscribe(lambda notice: seen.append(notice.asset_id))

    unsubscribe()
    unsubscribe()
    bus.publish(AssetRetired(asset_id="7"))

    assert seen == []
    assert bus.subscriber_count == 0


def test_failing_handler_does_not_block_others() -> None:
    bus = AssetRetiredBus()
    seen: list[str] = []

    def broken(_notice: AssetRetired) -> None:
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(lambda notice: seen.append(notice.asset_id))

    bus.publish(AssetRetired(asset_id="9"))

    assert seen == ["9"]
