"""
Recursive Length Prefix encoding.

Input is a closed tagged variant: ``RLPInt``, ``RLPBytes`` or ``RLPList``.
Anything else is rejected with ``InvalidValue`` instead of being coerced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple, Union

from errors import InvalidValue

from .hexutil import int_to_big_endian

SHORT_STRING_OFFSET = 0x80
LONG_STRING_OFFSET = 0xB7
SHORT_LIST_OFFSET = 0xC0
LONG_LIST_OFFSET = 0xF7
MAX_SHORT_LENGTH = 55


@dataclass(frozen=True)
class RLPInt:
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidValue(f"RLPInt requires int, got {type(self.value).__name__}")
        if self.value < 0:
            raise InvalidValue(f"RLP cannot encode negative integer {self.value}")


@dataclass(frozen=True)
class RLPBytes:
    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray)):
            raise InvalidValue(f"RLPBytes requires bytes, got {type(self.value).__name__}")
        object.__setattr__(self, "value", bytes(self.value))


@dataclass(frozen=True)
class RLPList:
    items: Tuple["RLPValue", ...] = ()

    def __init__(self, items: Iterable["RLPValue"] = ()) -> None:
        object.__setattr__(self, "items", tuple(items))


RLPValue = Union[RLPInt, RLPBytes, RLPList]


def encode(value: RLPValue) -> bytes:
    if isinstance(value, RLPInt):
        return _encode_bytes(int_to_big_endian(value.value))
    if isinstance(value, RLPBytes):
        return _encode_bytes(value.value)
    if isinstance(value, RLPList):
        payload = b"".join(encode(item) for item in value.items)
        return _length_prefix(len(payload), SHORT_LIST_OFFSET, LONG_LIST_OFFSET) + payload
    raise InvalidValue(f"Cannot RLP-encode type {type(value).__name__}")


def _encode_bytes(data: bytes) -> bytes:
    if len(data) == 1 and data[0] < SHORT_STRING_OFFSET:
        return data
    return _length_prefix(len(data), SHORT_STRING_OFFSET, LONG_STRING_OFFSET) + data


def _length_prefix(length: int, short_offset: int, long_offset: int) -> bytes:
    if length <= MAX_SHORT_LENGTH:
        return bytes([short_offset + length])
    len_bytes = int_to_big_endian(length)
    return bytes([long_offset + len(len_bytes)]) + len_bytes
