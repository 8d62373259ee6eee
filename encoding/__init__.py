from .abi import TRANSFER_SELECTOR, encode_transfer, encode_uint256
from .address import (
    Address,
    address_from_public_key,
    is_checksum_address,
    to_address,
    to_checksum_address,
    validate_address,
)
from .hexutil import decode_hex, encode_hex, is_hex_digits, strip_0x
from .rlp import RLPBytes, RLPInt, RLPList, RLPValue, encode

__all__ = [
    "Address",
    "RLPBytes",
    "RLPInt",
    "RLPList",
    "RLPValue",
    "TRANSFER_SELECTOR",
    "address_from_public_key",
    "decode_hex",
    "encode",
    "encode_hex",
    "encode_transfer",
    "encode_uint256",
    "is_checksum_address",
    "is_hex_digits",
    "strip_0x",
    "to_address",
    "to_checksum_address",
    "validate_address",
]
