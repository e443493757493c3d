"""In-process key-value storage."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from greentrace.domain.ports import KeyValueStorage


class InMemoryKeyValueStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)


if TYPE_CHECKING:
    _storage_check: KeyValueStorage = InMemoryKeyValueStorage()


__all__ = ["InMemoryKeyValueStorage"]
