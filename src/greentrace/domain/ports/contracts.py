"""Ports for reading contract state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class ContractCall:
    """One read-only call descriptor: which contract, which function, which arguments."""

    target: str
    method: str
    args: tuple[object, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ReadSuccess:
    value: object

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class ReadFailure:
    error: str
    exception: BaseException | None = field(default=None, compare=False, repr=False)

    @property
    def ok(self) -> bool:
        return False


ReadResult: TypeAlias = ReadSuccess | ReadFailure


@runtime_checkable
class BatchContractReader(Protocol):
    """Executes call descriptors and returns one result per descriptor, in order."""

    async def read(self, calls: Sequence[ContractCall]) -> list[ReadResult]: ...


class ProbeOutcome(StrEnum):
    EXISTS = "exists"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


@runtime_checkable
class ExistenceOracle(Protocol):
    """Answers whether a secondary asset (NFT) still exists, owned by anyone."""

    async def probe(self, asset_id: str) -> ProbeOutcome: ...


__all__ = [
    "BatchContractReader",
    "ContractCall",
    "ExistenceOracle",
    "ProbeOutcome",
    "ReadFailure",
    "ReadResult",
    "ReadSuccess",
]
