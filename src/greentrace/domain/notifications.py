"""In-process observer for "secondary asset retired" notifications.

Any part of the application that learns an NFT was redeemed (a chain event, a
completed exchange flow) publishes here; every tracker sharing the bus reacts by
refreshing, including trackers that did not initiate the change.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AssetRetired:
    asset_id: str
    request_id: str | None = None
    transaction_hash: str | None = None


AssetRetiredHandler = Callable[[AssetRetired], None]


class AssetRetiredBus:
    def __init__(self) -> None:
        self._handlers: list[AssetRetiredHandler] = []

    def subscribe(self, handler: AssetRetiredHandler) -> Callable[[], None]:
        """Register ``handler`` and return a callable that unregisters it."""

        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, notice: AssetRetired) -> None:
        log.info("Asset %s retired", notice.asset_id)
        for handler in list(self._handlers):
            try:
                handler(notice)
            except Exception:
                # one broken subscriber must not starve the others
                log.exception("Asset retired handler %r failed", handler)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)


__all__ = ["AssetRetired", "AssetRetiredBus", "AssetRetiredHandler"]
