from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from eth_utils import keccak

from errors import InvalidAddress, InvalidPublicKey

from .hexutil import strip_0x

ADDRESS_LENGTH = 20
PUBLIC_KEY_LENGTH = 64

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BARE_ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


@dataclass(frozen=True)
class Address:
    """
    A 20-byte account address. Equality is by bytes; the checksummed string is
    derived on demand.
    """

    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray)) or len(self.raw) != ADDRESS_LENGTH:
            raise InvalidAddress(
                "address must be exactly 20 bytes",
                {"length": len(self.raw) if isinstance(self.raw, (bytes, bytearray)) else None},
            )
        object.__setattr__(self, "raw", bytes(self.raw))

    @property
    def checksum(self) -> str:
        return to_checksum_address(self)

    def __str__(self) -> str:
        return self.checksum


AddressLike = Union[Address, bytes, str]


def validate_address(s: str) -> Address:
    """
    Accept ``0x`` followed by exactly 40 hex digits, any case.
    """
    if not isinstance(s, str) or not _ADDRESS_RE.match(s):
        raise InvalidAddress(f"not a 0x-prefixed 40 hex digit address: {s!r}", {"address": str(s)})
    return Address(bytes.fromhex(s[2:]))


def to_address(value: AddressLike) -> Address:
    """Coerce an Address, raw bytes or hex string (``0x`` optional)."""
    if isinstance(value, Address):
        return value
    if isinstance(value, (bytes, bytearray)):
        return Address(bytes(value))
    if isinstance(value, str) and _BARE_ADDRESS_RE.match(value):
        return Address(bytes.fromhex(strip_0x(value)))
    raise InvalidAddress(f"not a 40 hex digit address: {value!r}", {"address": str(value)})


def to_checksum_address(address: Union[Address, bytes]) -> str:
    """
    EIP-55: uppercase each hex letter whose matching nibble of
    keccak256(lowercase hex) is >= 8.
    """
    raw = address.raw if isinstance(address, Address) else Address(address).raw
    lower = raw.hex()
    digest = keccak(lower.encode("ascii")).hex()
    out = []
    for i, ch in enumerate(lower):
        out.append(ch.upper() if int(digest[i], 16) >= 8 else ch)
    return "0x" + "".join(out)


def is_checksum_address(s: str) -> bool:
    try:
        address = validate_address(s)
    except InvalidAddress:
        return False
    return to_checksum_address(address) == s


def address_from_public_key(public_key: bytes) -> Address:
    """
    Last 20 bytes of keccak256 over the 64-byte X||Y public key. A 65-byte key
    with the 0x04 uncompressed prefix is accepted and stripped.
    """
    if len(public_key) == PUBLIC_KEY_LENGTH + 1 and public_key[0] == 0x04:
        public_key = public_key[1:]
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise InvalidPublicKey("public key must be 64 bytes (X||Y)", {"length": len(public_key)})
    return Address(keccak(bytes(public_key))[-ADDRESS_LENGTH:])
