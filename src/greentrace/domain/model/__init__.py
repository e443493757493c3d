"""Domain model for tracked requests."""

from __future__ import annotations

from .enums import AuditType, RawStatusCode, RecordKind, RecordSource, RecordStatus
from .record import Record, request_reference

__all__ = [
    "AuditType",
    "RawStatusCode",
    "Record",
    "RecordKind",
    "RecordSource",
    "RecordStatus",
    "request_reference",
]
