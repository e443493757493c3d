"""SQLAlchemy-backed key-value storage for the record cache."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.exc import SQLAlchemyError

from greentrace.domain.ports import StorageError

if TYPE_CHECKING:
    from greentrace.domain.ports import KeyValueStorage
    from sqlalchemy.engine import Engine

log = getLogger(__name__)

metadata = MetaData()

key_value_table = Table(
    "key_value_entries",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


class SqlAlchemyKeyValueStorage:
    """Stores string values in one table. Blocking calls run in a worker thread."""

    def __init__(self, engine: Engine, *, create_schema: bool = True) -> None:
        self._engine = engine
        if create_schema:
            try:
                metadata.create_all(engine, checkfirst=True)
            except SQLAlchemyError as exc:
                raise StorageError(f"Cannot prepare key-value table: {exc}") from exc

    @classmethod
    def from_uri(cls, uri: str) -> SqlAlchemyKeyValueStorage:
        return cls(create_engine(uri, future=True))

    @property
    def engine(self) -> Engine:
        return self._engine

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    def dispose(self) -> None:
        self._engine.dispose()

    def _get(self, key: str) -> str | None:
        statement = select(key_value_table.c.value).where(key_value_table.c.key == key)
        try:
            with self._engine.connect() as connection:
                return connection.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Reading {key!r} failed: {exc}") from exc

    def _set(self, key: str, value: str) -> None:
        now = datetime.now(tz=UTC)
        try:
            with self._engine.begin() as connection:
                connection.execute(delete(key_value_table).where(key_value_table.c.key == key))
                connection.execute(
                    key_value_table.insert().values(key=key, value=value, updated_at=now)
                )
        except SQLAlchemyError as exc:
            raise StorageError(f"Writing {key!r} failed: {exc}") from exc
        log.debug("Stored %s (%s chars)", key, len(value))

    def _remove(self, key: str) -> None:
        try:
            with self._engine.begin() as connection:
                connection.execute(delete(key_value_table).where(key_value_table.c.key == key))
        except SQLAlchemyError as exc:
            raise StorageError(f"Removing {key!r} failed: {exc}") from exc


if TYPE_CHECKING:
    _storage_check: KeyValueStorage = SqlAlchemyKeyValueStorage(create_engine("sqlite://"))


__all__ = ["SqlAlchemyKeyValueStorage", "key_value_table", "metadata"]
