"""SQLAlchemy storage adapter."""

from __future__ import annotations

from .key_value import SqlAlchemyKeyValueStorage, key_value_table, metadata

__all__ = ["SqlAlchemyKeyValueStorage", "key_value_table", "metadata"]
