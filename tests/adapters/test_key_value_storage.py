from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from greentrace.adapters.sqlalchemy import SqlAlchemyKeyValueStorage
from greentrace.domain.model import RecordKind
from greentrace.domain.ports import StorageError
from greentrace.domain.record_cache import RecordCache

from tests.helpers.records import ACCOUNT, make_record, minted
from tests.support.fakes import FakeClock

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from greentrace.adapters.memory import InMemoryKeyValueStorage
    from greentrace.domain.ports import KeyValueStorage


@pytest.fixture
def sqlalchemy_storage(sqlite_engine: Engine) -> SqlAlchemyKeyValueStorage:
    return SqlAlchemyKeyValueStorage(sqlite_engine)


@pytest.fixture(params=["memory", "sqlalchemy"])
def storage(
    request: pytest.FixtureRequest,
    memory_storage: InMemoryKeyValueStorage,
    sqlalchemy_storage: SqlAlchemyKeyValueStorage,
) -> KeyValueStorage:
    return memory_storage if request.param == "memory" else sqlalchemy_storage


async def test_missing_key_reads_as_none(storage: KeyValueStorage) -> None:
    assert await storage.get("absent") is None


async def test_set_overwrites_previous_value(storage: KeyValueStorage) -> None:
    await storage.set("key", "first")
    await storage.set("key", "second")

    assert await storage.get("key") == "second"


async def test_remove_is_idempotent(storage: KeyValueStorage) -> None:
    await storage.set("key", "value")

    await storage.remove("key")
    await storage.remove("key")

    assert await storage.get("key") is None


async def test_record_cache_survives_a_new_engine(sqlite_engine: Engine) -> None:
    clock = FakeClock()
    records = [minted("2", "9"), make_record("1", minutes_ago=3)]
    await RecordCache(SqlAlchemyKeyValueStorage(sqlite_engine), clock=clock).put(
        ACCOUNT, records
    )
    sqlite_engine.dispose()

    reopened = RecordCache(SqlAlchemyKeyValueStorage(sqlite_engine), clock=clock)

    assert await reopened.get(ACCOUNT) == records
    assert await RecordCache(
        SqlAlchemyKeyValueStorage(sqlite_engine), kind=RecordKind.EXCHANGE, clock=clock
    ).get(ACCOUNT) is None


async def test_missing_table_raises_storage_error(sqlite_engine: Engine) -> None:
    storage = SqlAlchemyKeyValueStorage(sqlite_engine, create_schema=False)

    with pytest.raises(StorageError, match="Reading"):
        await storage.get("key")


async def test_record_cache_treats_storage_errors_as_miss(sqlite_engine: Engine) -> None:
    cache = RecordCache(SqlAlchemyKeyValueStorage(sqlite_engine, create_schema=False))

    await cache.put(ACCOUNT, [make_record("1")])

    assert await cache.get(ACCOUNT) is None
