"""Where each record kind's ids and details live on the GreenTrace contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from greentrace.domain.model import RecordKind
from greentrace.domain.ports import ContractCall

from .abi import checksum
from .contracts import (
    GET_ALL_AUDITED_CASH_REQUESTS,
    GET_CASH_BY_ID,
    GET_PENDING_CASH_AUDITS,
    GET_REQUEST_BY_ID,
    GET_USER_MINT_REQUESTS,
)
from .translator import parse_request

if TYPE_CHECKING:
    from collections.abc import Sequence

    from greentrace.domain.fetching import RecordSource
    from greentrace.domain.model import Record


def _request_number(record_id: str) -> int:
    number = int(record_id)
    if number < 0:
        raise ValueError(f"Request id must not be negative: {record_id}")
    return number


@dataclass(frozen=True, slots=True)
class MintRequestSource:
    """Mint requests are indexed per requester on chain."""

    contract_address: str

    @property
    def kind(self) -> RecordKind:
        return RecordKind.MINT

    def identifier_calls(self, account: str) -> Sequence[ContractCall]:
        return [
            ContractCall(self.contract_address, GET_USER_MINT_REQUESTS.name, (checksum(account),))
        ]

    def detail_call(self, record_id: str) -> ContractCall:
        return ContractCall(
            self.contract_address, GET_REQUEST_BY_ID.name, (_request_number(record_id),)
        )

    def translate(self, record_id: str, value: object) -> Record:
        return parse_request(record_id, value, kind=RecordKind.MINT)

    def belongs_to(self, record: Record, account: str) -> bool:
        return record.requester is None or record.requester == account.strip().lower()


@dataclass(frozen=True, slots=True)
class ExchangeRequestSource:
    """Exchange requests are only listed globally, so ids are filtered by requester."""

    contract_address: str

    @property
    def kind(self) -> RecordKind:
        return RecordKind.EXCHANGE

    def identifier_calls(self, account: str) -> Sequence[ContractCall]:  # noqa: ARG002
        return [
            ContractCall(self.contract_address, GET_PENDING_CASH_AUDITS.name),
            ContractCall(self.contract_address, GET_ALL_AUDITED_CASH_REQUESTS.name),
        ]

    def detail_call(self, record_id: str) -> ContractCall:
        return ContractCall(
            self.contract_address, GET_CASH_BY_ID.name, (_request_number(record_id),)
        )

    def translate(self, record_id: str, value: object) -> Record:
        return parse_request(record_id, value, kind=RecordKind.EXCHANGE)

    def belongs_to(self, record: Record, account: str) -> bool:
        return record.requester == account.strip().lower()


if TYPE_CHECKING:
    _mint_check: RecordSource = MintRequestSource("0x0")
    _exchange_check: RecordSource = ExchangeRequestSource("0x0")


__all__ = ["ExchangeRequestSource", "MintRequestSource"]
