"""Key-value storage port used by the record cache."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class StorageError(RuntimeError):
    """Raised by storage adapters when the underlying store fails."""


@runtime_checkable
class KeyValueStorage(Protocol):
    """Fallible string storage. Callers must treat every call as able to raise."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


__all__ = ["KeyValueStorage", "StorageError"]
