from __future__ import annotations

from errors import InvalidValue, ValueOverflow

from .address import AddressLike, to_address

# keccak256("transfer(address,uint256)")[:4]
TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")

WORD_SIZE = 32
UINT256_MAX = 2**256 - 1


def encode_uint256(value: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValue(f"uint256 requires int, got {type(value).__name__}")
    if value < 0:
        raise InvalidValue(f"uint256 cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueOverflow("amount exceeds 256 bits", {"bits": value.bit_length()})
    return value.to_bytes(WORD_SIZE, "big")


def encode_transfer(to: AddressLike, amount: int) -> bytes:
    """
    Calldata for ERC-20 ``transfer(address,uint256)``: selector, then the
    recipient and the amount each as one left-padded 32-byte word.
    """
    recipient = to_address(to)
    return TRANSFER_SELECTOR + recipient.raw.rjust(WORD_SIZE, b"\x00") + encode_uint256(amount)
