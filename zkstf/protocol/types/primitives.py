# MIT License
# Copyright (c) 2025 Hashborn

"""
Wire-level primitive types shared by all protocol models.

Fixed-width byte fields (addresses, digests) and bounded unsigned integers
are validated on construction so that a model instance always holds values
the canonical encoder can represent.
"""

import re
from typing import Annotated, Any
from pydantic import PlainSerializer, PlainValidator, WithJsonSchema

from ..config.params import ADDRESS_LENGTH, HASH_LENGTH, U64_MAX, U256_MAX


_HEX_BYTES = re.compile(r"(0[xX])?([0-9a-fA-F]{2})*")
_UINT_TEXT = re.compile(r"0[xX][0-9a-fA-F]+|[0-9]+")


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def parse_hex(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise ValueError(f"expected hex string, got {type(value).__name__}")
    if not _HEX_BYTES.fullmatch(value):
        raise ValueError(f"invalid hex string: {value!r}")
    digits = value[2:] if value[:2] in ("0x", "0X") else value
    return bytes.fromhex(digits)


def _fixed_width(length: int):
    def validate(value: Any) -> bytes:
        raw = parse_hex(value)
        if len(raw) != length:
            raise ValueError(f"expected {length} bytes, got {len(raw)}")
        return raw
    return validate


def _bounded_uint(max_value: int):
    def validate(value: Any) -> int:
        # bool is an int subclass; never a valid amount
        if isinstance(value, bool):
            raise ValueError("expected unsigned integer, got bool")
        if isinstance(value, str):
            # Plain digits or 0x-hex only: no sign, whitespace or underscores
            if not _UINT_TEXT.fullmatch(value):
                raise ValueError(f"invalid integer string: {value!r}")
            value = int(value, 16) if value[:2] in ("0x", "0X") else int(value, 10)
        if not isinstance(value, int):
            raise ValueError(f"expected unsigned integer, got {type(value).__name__}")
        if value < 0 or value > max_value:
            raise ValueError(f"integer {value} out of range [0, {max_value}]")
        return value
    return validate


def _uint256_to_wire(value: int) -> str:
    return hex(value)


Address = Annotated[
    bytes,
    PlainValidator(_fixed_width(ADDRESS_LENGTH)),
    PlainSerializer(to_hex, return_type=str),
    WithJsonSchema({"type": "string", "pattern": "^(0x)?[0-9a-fA-F]{40}$"}),
]

Hash32 = Annotated[
    bytes,
    PlainValidator(_fixed_width(HASH_LENGTH)),
    PlainSerializer(to_hex, return_type=str),
    WithJsonSchema({"type": "string", "pattern": "^(0x)?[0-9a-fA-F]{64}$"}),
]

HexBytes = Annotated[
    bytes,
    PlainValidator(parse_hex),
    PlainSerializer(to_hex, return_type=str),
    WithJsonSchema({"type": "string", "pattern": "^(0x)?([0-9a-fA-F]{2})*$"}),
]

Uint256 = Annotated[
    int,
    PlainValidator(_bounded_uint(U256_MAX)),
    PlainSerializer(_uint256_to_wire, return_type=str),
    WithJsonSchema({"type": "string", "description": "0x-prefixed hex or decimal"}),
]

Uint64 = Annotated[
    int,
    PlainValidator(_bounded_uint(U64_MAX)),
    WithJsonSchema({"type": "integer", "minimum": 0, "maximum": U64_MAX}),
]
