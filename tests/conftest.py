from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from greentrace.adapters.memory import InMemoryKeyValueStorage

os.environ.setdefault("CACHE_DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # a file database, so worker threads share one schema
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'cache.db'}", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def memory_storage() -> InMemoryKeyValueStorage:
    return InMemoryKeyValueStorage()
