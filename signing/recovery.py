"""
Turn raw ECDSA output from a key store into Ethereum (recid, r, s).

Key stores return whatever their hardware produces: DER, 64-byte ``r||s`` or
65-byte ``r||s||v``. The recovery id is always confirmed by recovering the
public key and comparing it with the key store's own public key.
"""

from __future__ import annotations

from typing import Optional, Tuple

from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from errors import SignatureFailed

SECP256K1_N = int(
    "0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141",
    16,
)
SECP256K1_HALF_N = SECP256K1_N // 2


def parse_raw_signature(sig: bytes) -> Tuple[int, int, Optional[int]]:
    if len(sig) == 65:
        v = sig[64]
        if v >= 27:
            v -= 27
        if v not in (0, 1):
            raise SignatureFailed(f"unexpected recovery byte {sig[64]}")
        return int.from_bytes(sig[:32], "big"), int.from_bytes(sig[32:64], "big"), v
    if len(sig) == 64:
        return int.from_bytes(sig[:32], "big"), int.from_bytes(sig[32:], "big"), None
    if sig[:1] == b"\x30":
        try:
            r, s = decode_dss_signature(bytes(sig))
        except ValueError as exc:
            raise SignatureFailed(f"malformed DER signature: {exc}") from exc
        return int(r), int(s), None
    raise SignatureFailed("unrecognized signature encoding", {"length": len(sig)})


def normalize_sig(r: int, s: int, recid: Optional[int] = None) -> Tuple[int, int, Optional[int]]:
    """Force low-s (EIP-2). Negating s flips the recovery parity."""
    if r <= 0 or r >= SECP256K1_N:
        raise SignatureFailed("invalid r")
    if s <= 0 or s >= SECP256K1_N:
        raise SignatureFailed("invalid s")
    if s > SECP256K1_HALF_N:
        s = SECP256K1_N - s
        if recid is not None:
            recid ^= 1
    return r, s, recid


def _recovers_to(msg_hash_32: bytes, recid: int, r: int, s: int, public_key: bytes) -> bool:
    try:
        pub = keys.Signature(vrs=(recid, r, s)).recover_public_key_from_msg_hash(msg_hash_32)
    except (BadSignature, ValidationError):
        return False
    return pub.to_bytes() == public_key


def find_recovery_id(msg_hash_32: bytes, r: int, s: int, public_key: bytes, hint: Optional[int] = None) -> int:
    candidates = (0, 1) if hint is None else (hint, hint ^ 1)
    for recid in candidates:
        if _recovers_to(msg_hash_32, recid, r, s, public_key):
            return recid
    raise SignatureFailed("could not determine recovery id (public key mismatch)")


def recover_signature(msg_hash_32: bytes, raw_sig: bytes, public_key: bytes) -> Tuple[int, int, int]:
    """
    Returns ``(recid, r, s)`` with low-s, verified against ``public_key``.
    """
    r, s, hint = parse_raw_signature(raw_sig)
    r, s, hint = normalize_sig(r, s, hint)
    return find_recovery_id(msg_hash_32, r, s, public_key, hint), r, s
