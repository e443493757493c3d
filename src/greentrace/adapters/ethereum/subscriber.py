"""Event subscriptions implemented by polling ``eth_getLogs``."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from eth_abi.exceptions import DecodingError
from pydantic import ValidationError

from greentrace.config.chain import DEFAULT_POLL_INTERVAL_SECONDS
from greentrace.domain.ports import ChainLog

from .abi import topic_for_address
from .client import JsonRpcError
from .contracts import event

if TYPE_CHECKING:
    from greentrace.domain.ports import EventFilter, LogCallback

    from .abi import EventSpec
    from .client import JsonRpcClient
    from .schema import LogPayload

log = getLogger(__name__)


def build_topics(spec: EventSpec, requester: str | None) -> list[str | None]:
    topics: list[str | None] = [spec.topic]
    if requester is None:
        return topics
    position = spec.indexed_position("requester")
    topics.extend([None] * (position - len(topics) + 1))
    topics[position] = topic_for_address(requester)
    return topics


class LogPollingSubscription:
    """Polls for new logs of one event from the block after the last one seen."""

    def __init__(
        self,
        *,
        client: JsonRpcClient,
        spec: EventSpec,
        address: str,
        topics: list[str | None],
        callback: LogCallback,
        poll_interval: float,
    ) -> None:
        self._client = client
        self._spec = spec
        self._address = address
        self._topics = topics
        self._callback = callback
        self._poll_interval = poll_interval
        self._next_block: int | None = None
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"logs-{self._spec.name}"
        )
        self._task.add_done_callback(self._task_done)

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()

    def _task_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("Polling %s logs stopped", self._spec.name, exc_info=exc)

    async def _run(self) -> None:
        while not self._cancelled:
            try:
                await self.poll_once()
            except (JsonRpcError, httpx.HTTPError, ValidationError) as exc:
                log.warning("Polling %s logs failed: %s", self._spec.name, exc)
            await asyncio.sleep(self._poll_interval)

    async def poll_once(self) -> None:
        latest = await self._client.block_number()
        if self._next_block is None:
            # only logs mined after the subscription started
            self._next_block = latest + 1
            return
        if latest < self._next_block:
            return

        payloads = await self._client.get_logs(
            address=self._address,
            topics=self._topics,
            from_block=self._next_block,
            to_block=latest,
        )
        self._next_block = latest + 1

        logs = [chain_log for payload in payloads if (chain_log := self._decode(payload))]
        if logs and not self._cancelled:
            self._deliver(logs)

    def _deliver(self, logs: list[ChainLog]) -> None:
        try:
            self._callback(logs)
        except Exception:
            log.exception("Handling %s %s logs failed", len(logs), self._spec.name)

    def _decode(self, payload: LogPayload) -> ChainLog | None:
        if payload.removed:
            return None
        try:
            args = self._spec.decode_log(payload.topics, payload.data)
        except (ValueError, DecodingError) as exc:
            log.warning("Skipping undecodable %s log: %s", self._spec.name, exc)
            return None
        return ChainLog(
            event=self._spec.name,
            address=payload.address,
            transaction_hash=payload.transaction_hash,
            block_number=payload.block_number,
            log_index=payload.log_index,
            args=dict(args),
        )


class LogPollingSubscriber:
    def __init__(
        self,
        client: JsonRpcClient,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval

    def subscribe(self, event_filter: EventFilter, callback: LogCallback) -> LogPollingSubscription:
        spec = event(event_filter.event)
        subscription = LogPollingSubscription(
            client=self._client,
            spec=spec,
            address=event_filter.target,
            topics=build_topics(spec, event_filter.requester),
            callback=callback,
            poll_interval=self._poll_interval,
        )
        subscription.start()
        log.debug("Subscribed to %s logs on %s", spec.name, event_filter.target)
        return subscription


__all__ = ["LogPollingSubscriber", "LogPollingSubscription", "build_topics"]
