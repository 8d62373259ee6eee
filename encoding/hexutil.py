from __future__ import annotations

from errors import InvalidHexString, InvalidValue

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def strip_0x(s: str) -> str:
    if s.startswith("0x"):
        return s[2:]
    return s


def is_hex_digits(s: str) -> bool:
    """
    Character-class check only: odd-length strings pass.
    """
    return all(c in _HEX_DIGITS for c in s)


def decode_hex(s: str, *, name: str = "value") -> bytes:
    body = strip_0x(s.strip())
    if not is_hex_digits(body):
        raise InvalidHexString(f"{name} contains non-hex characters", {"field": name})
    if len(body) % 2:
        raise InvalidHexString(f"{name} has an odd number of hex digits", {"field": name})
    return bytes.fromhex(body)


def encode_hex(b: bytes) -> str:
    return "0x" + bytes(b).hex()


def int_to_big_endian(value: int) -> bytes:
    """Minimal big-endian bytes; zero becomes b""."""
    if value < 0:
        raise InvalidValue(f"cannot encode negative integer {value}")
    if value == 0:
        return b""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")
