"""Minimal ABI descriptors for the contract functions and events we touch."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from eth_abi import decode, encode
from eth_utils import (
    decode_hex,
    encode_hex,
    event_signature_to_log_topic,
    function_signature_to_4byte_selector,
    is_address,
    to_checksum_address,
)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_address(value: str) -> str:
    candidate = value.strip()
    if not is_address(candidate):
        raise ValueError(f"Invalid address: {value!r}")
    return candidate.lower()


def checksum(value: str) -> str:
    return to_checksum_address(normalize_address(value))


def topic_for_address(value: str) -> str:
    return "0x" + "0" * 24 + normalize_address(value)[2:]


def address_from_topic(topic: str) -> str:
    raw = topic.lower().removeprefix("0x")
    return "0x" + raw[-40:]


@dataclass(frozen=True, slots=True)
class FunctionSpec:
    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, args: Sequence[object] = ()) -> str:
        if len(args) != len(self.inputs):
            msg = f"{self.signature} takes {len(self.inputs)} argument(s), got {len(args)}"
            raise ValueError(msg)
        return encode_hex(self.selector + encode(list(self.inputs), list(args)))

    def decode_output(self, data: str | bytes) -> object:
        """Decode return data; a single output is returned unwrapped."""

        raw = decode_hex(data) if isinstance(data, str) else data
        values = decode(list(self.outputs), raw)
        if len(values) == 1:
            return values[0]
        return values


@dataclass(frozen=True, slots=True)
class EventParam:
    name: str
    type: str
    indexed: bool = False


@dataclass(frozen=True, slots=True)
class EventSpec:
    name: str
    params: tuple[EventParam, ...] = field(default_factory=tuple)

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(param.type for param in self.params)})"

    @property
    def topic(self) -> str:
        return encode_hex(event_signature_to_log_topic(self.signature))

    def indexed_position(self, name: str) -> int:
        """Topic index (1-based, after the signature topic) of an indexed parameter."""

        position = 1
        for param in self.params:
            if not param.indexed:
                continue
            if param.name == name:
                return position
            position += 1
        raise KeyError(f"{self.name} has no indexed parameter {name!r}")

    def decode_log(self, topics: Sequence[str], data: str) -> Mapping[str, object]:
        if not topics or topics[0].lower() != self.topic.lower():
            raise ValueError(f"Log is not a {self.name} event")

        args: dict[str, object] = {}
        indexed_topics = list(topics[1:])
        for param in self.params:
            if not param.indexed:
                continue
            if not indexed_topics:
                raise ValueError(f"{self.name} log is missing indexed topic {param.name}")
            topic = indexed_topics.pop(0)
            if param.type == "address":
                args[param.name] = address_from_topic(topic)
            elif param.type.startswith(("uint", "int")):
                (args[param.name],) = decode([param.type], decode_hex(topic))
            else:
                # dynamic indexed values only carry their hash
                args[param.name] = topic

        plain = [param for param in self.params if not param.indexed]
        if plain:
            values = decode([param.type for param in plain], decode_hex(data))
            for param, value in zip(plain, values, strict=True):
                args[param.name] = value
        return args


__all__ = [
    "ZERO_ADDRESS",
    "EventParam",
    "EventSpec",
    "FunctionSpec",
    "address_from_topic",
    "checksum",
    "normalize_address",
    "topic_for_address",
]
