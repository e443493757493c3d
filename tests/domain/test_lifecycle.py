from __future__ import annotations

import pytest

from greentrace.domain.lifecycle import (
    UnknownStatusCodeError,
    derive_status,
    display_status,
    is_valid_asset_id,
    needs_existence_probe,
)
from greentrace.domain.model import RecordKind, RecordStatus
from greentrace.domain.ports import ProbeOutcome

from tests.helpers.records import make_record, minted


@pytest.mark.parametrize(
    ("raw_status", "asset_id", "expected"),
    [
        (0, None, RecordStatus.PENDING),
        (0, 7, RecordStatus.PENDING),
        (1, 7, RecordStatus.MINTED),
        (1, "12", RecordStatus.MINTED),
        (1, None, RecordStatus.APPROVED),
        (1, 0, RecordStatus.APPROVED),
        (1, "0", RecordStatus.APPROVED),
        (2, None, RecordStatus.REJECTED),
        (2, 7, RecordStatus.REJECTED),
        ("1", 3, RecordStatus.MINTED),
    ],
)
def test_derive_status_for_mint_requests(
    raw_status: object, asset_id: object, expected: RecordStatus
) -> None:
    assert derive_status(raw_status, asset_id) is expected


def test_derive_status_for_exchange_requests_never_mints() -> None:
    assert derive_status(1, 7, kind=RecordKind.EXCHANGE) is RecordStatus.APPROVED
    assert derive_status(0, 7, kind=RecordKind.EXCHANGE) is RecordStatus.PENDING
    assert derive_status(2, None, kind=RecordKind.EXCHANGE) is RecordStatus.REJECTED


def test_explicit_asset_flag_overrides_sentinel() -> None:
    assert derive_status(1, 0, asset_produced=True) is RecordStatus.MINTED
    assert derive_status(1, 9, asset_produced=False) is RecordStatus.APPROVED


@pytest.mark.parametrize("raw_status", [3, -1, "pending", None, 1.5])
def test_unknown_status_codes_are_rejected(raw_status: object) -> None:
    with pytest.raises(UnknownStatusCodeError) as excinfo:
        derive_status(raw_status, None)
    assert excinfo.value.code == raw_status
    assert isinstance(excinfo.value, ValueError)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, False), (0, False), ("0", False), (-4, False), ("abc", False), (True, False),
     (1, True), ("42", True), (" 8 ", True)],
)
def test_is_valid_asset_id(value: object, *, expected: bool) -> None:
    assert is_valid_asset_id(value) is expected


def test_only_minted_or_approved_exchange_records_are_probed() -> None:
    assert needs_existence_probe(minted("1", "7"))
    assert not needs_existence_probe(make_record("2", status=RecordStatus.APPROVED))
    assert not needs_existence_probe(make_record("3", status=RecordStatus.PENDING))
    assert needs_existence_probe(
        make_record(
            "4", kind=RecordKind.EXCHANGE, status=RecordStatus.APPROVED, secondary_asset_id="7"
        )
    )
    assert not needs_existence_probe(
        make_record(
            "5", kind=RecordKind.EXCHANGE, status=RecordStatus.PENDING, secondary_asset_id="7"
        )
    )


def test_not_found_reclassifies_minted_as_exchanged() -> None:
    record = minted("1", "7")

    assert display_status(record, ProbeOutcome.NOT_FOUND) is RecordStatus.EXCHANGED
    assert display_status(record, ProbeOutcome.EXISTS) is RecordStatus.MINTED
    assert display_status(record, None) is RecordStatus.MINTED


def test_unknown_outcome_keeps_previous_display() -> None:
    record = minted("1", "7")

    assert display_status(record, ProbeOutcome.UNKNOWN) is RecordStatus.MINTED
    assert (
        display_status(record, ProbeOutcome.UNKNOWN, previous=RecordStatus.EXCHANGED)
        is RecordStatus.EXCHANGED
    )
    assert display_status(record, None, previous=RecordStatus.EXCHANGED) is RecordStatus.EXCHANGED
    assert display_status(record, ProbeOutcome.EXISTS, previous=RecordStatus.EXCHANGED) is (
        RecordStatus.MINTED
    )


def test_probe_outcome_ignored_for_unprobed_records() -> None:
    record = make_record("1", status=RecordStatus.REJECTED, secondary_asset_id="7")

    assert display_status(record, ProbeOutcome.NOT_FOUND) is RecordStatus.REJECTED
