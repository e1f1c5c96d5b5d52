# MIT License
# Copyright (c) 2025 Hashborn

"""
Recursive Length Prefix (RLP) item codec.

Encoding rules:
- a single byte below 0x80 is its own encoding
- a byte string of 0..55 bytes is prefixed with 0x80 + length
- a longer byte string is prefixed with 0xb7 + len(length) and the big-endian length
- lists use the same scheme with 0xc0 / 0xf7 over the concatenated item encodings
- unsigned integers are big-endian with no leading zero bytes; zero is the empty string

The decoder only accepts the canonical form of each item. Any other
representation (long form for short payloads, length fields with leading
zeros, prefixed single bytes, integers with leading zeros) is rejected.
"""

from typing import Tuple

from ..types.common import DecodeError


SHORT_STRING = 0x80
LONG_STRING = 0xb7
SHORT_LIST = 0xc0
LONG_LIST = 0xf7


def _length_prefix(length: int, offset: int) -> bytes:
    if length < 56:
        return bytes([offset + length])
    length_bytes = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + 55 + len(length_bytes)]) + length_bytes


def encode_bytes(value: bytes) -> bytes:
    if len(value) == 1 and value[0] < SHORT_STRING:
        return bytes(value)
    return _length_prefix(len(value), SHORT_STRING) + bytes(value)


def encode_uint(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"cannot encode negative integer {value}")
    if value == 0:
        return encode_bytes(b"")
    return encode_bytes(value.to_bytes((value.bit_length() + 7) // 8, "big"))


def encode_list(payload: bytes) -> bytes:
    """Wraps already-encoded items (concatenated) in a list header."""
    return _length_prefix(len(payload), SHORT_LIST) + payload


def _read_length(data: bytes, start: int, size: int) -> int:
    if start + size > len(data):
        raise DecodeError("truncated length field")
    raw = data[start:start + size]
    if raw[0] == 0:
        raise DecodeError("non-canonical length: leading zero")
    length = int.from_bytes(raw, "big")
    if length < 56:
        raise DecodeError("non-canonical length: long form for short payload")
    return length


def decode_item(data: bytes, pos: int = 0) -> Tuple[bool, bytes, int]:
    """
    Decodes one item header at `pos`.

    Returns:
        (is_list, payload, next_pos)
    """
    if pos >= len(data):
        raise DecodeError("unexpected end of input")

    prefix = data[pos]
    if prefix < SHORT_STRING:
        return False, data[pos:pos + 1], pos + 1

    if prefix <= LONG_STRING:
        is_list = False
        length = prefix - SHORT_STRING
        start = pos + 1
    elif prefix < SHORT_LIST:
        is_list = False
        size = prefix - LONG_STRING
        length = _read_length(data, pos + 1, size)
        start = pos + 1 + size
    elif prefix <= LONG_LIST:
        is_list = True
        length = prefix - SHORT_LIST
        start = pos + 1
    else:
        is_list = True
        size = prefix - LONG_LIST
        length = _read_length(data, pos + 1, size)
        start = pos + 1 + size

    end = start + length
    if end > len(data):
        raise DecodeError(f"truncated item: need {length} bytes, have {len(data) - start}")

    payload = data[start:end]
    if not is_list and length == 1 and payload[0] < SHORT_STRING:
        raise DecodeError("non-canonical single byte encoding")
    return is_list, payload, end


def decode_string(data: bytes, pos: int = 0) -> Tuple[bytes, int]:
    is_list, payload, end = decode_item(data, pos)
    if is_list:
        raise DecodeError("expected byte string, found list")
    return payload, end


def decode_fixed(data: bytes, pos: int, width: int) -> Tuple[bytes, int]:
    payload, end = decode_string(data, pos)
    if len(payload) != width:
        raise DecodeError(f"expected {width}-byte field, got {len(payload)} bytes")
    return payload, end


def decode_uint(data: bytes, pos: int, max_value: int) -> Tuple[int, int]:
    payload, end = decode_string(data, pos)
    if payload[:1] == b"\x00":
        raise DecodeError("non-canonical integer: leading zero")
    value = int.from_bytes(payload, "big")
    if value > max_value:
        raise DecodeError(f"integer {value} exceeds maximum {max_value}")
    return value, end


def decode_list(data: bytes, pos: int = 0) -> Tuple[bytes, int]:
    is_list, payload, end = decode_item(data, pos)
    if not is_list:
        raise DecodeError("expected list, found byte string")
    return payload, end
