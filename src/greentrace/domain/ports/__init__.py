"""Domain port definitions for adapters."""

from __future__ import annotations

from .contracts import (
    BatchContractReader,
    ContractCall,
    ExistenceOracle,
    ProbeOutcome,
    ReadFailure,
    ReadResult,
    ReadSuccess,
)
from .events import ChainLog, EventFilter, EventSubscriber, LogCallback, Subscription
from .storage import KeyValueStorage, StorageError

__all__ = [
    "BatchContractReader",
    "ChainLog",
    "ContractCall",
    "EventFilter",
    "EventSubscriber",
    "ExistenceOracle",
    "KeyValueStorage",
    "LogCallback",
    "ProbeOutcome",
    "ReadFailure",
    "ReadResult",
    "ReadSuccess",
    "StorageError",
    "Subscription",
]
