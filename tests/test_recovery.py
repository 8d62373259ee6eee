import pytest
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature
from eth_keys import keys
from eth_utils import keccak

from errors import SignatureFailed
from signing.recovery import (
    SECP256K1_HALF_N,
    SECP256K1_N,
    find_recovery_id,
    normalize_sig,
    parse_raw_signature,
    recover_signature,
)

PRIVATE_KEY = keys.PrivateKey(b"\x46" * 32)
PUBLIC_KEY = PRIVATE_KEY.public_key.to_bytes()
DIGEST = keccak(b"recovery")


def _sig():
    sig = PRIVATE_KEY.sign_msg_hash(DIGEST)
    return sig.r, sig.s, sig.v


def test_parse_formats():
    r, s, v = _sig()
    rs = r.to_bytes(32, "big") + s.to_bytes(32, "big")
    assert parse_raw_signature(rs + bytes([v])) == (r, s, v)
    assert parse_raw_signature(rs + bytes([27 + v])) == (r, s, v)
    assert parse_raw_signature(rs) == (r, s, None)
    assert parse_raw_signature(encode_dss_signature(r, s)) == (r, s, None)


@pytest.mark.parametrize("raw", [b"", b"\x01" * 10, b"\x30\x01\x02", b"\x01" * 64 + b"\x05"])
def test_parse_rejects(raw):
    with pytest.raises(SignatureFailed):
        parse_raw_signature(raw)


def test_normalize_flips_high_s():
    r, s, v = _sig()
    assert s <= SECP256K1_HALF_N
    assert normalize_sig(r, SECP256K1_N - s, v ^ 1) == (r, s, v)
    assert normalize_sig(r, s, v) == (r, s, v)
    with pytest.raises(SignatureFailed):
        normalize_sig(0, s)
    with pytest.raises(SignatureFailed):
        normalize_sig(r, SECP256K1_N)


def test_recover_without_hint():
    r, s, v = _sig()
    raw = r.to_bytes(32, "big") + s.to_bytes(32, "big")
    assert recover_signature(DIGEST, raw, PUBLIC_KEY) == (v, r, s)
    assert recover_signature(DIGEST, encode_dss_signature(r, s), PUBLIC_KEY) == (v, r, s)


def test_recover_high_s_der():
    r, s, v = _sig()
    assert recover_signature(DIGEST, encode_dss_signature(r, SECP256K1_N - s), PUBLIC_KEY) == (v, r, s)


def test_wrong_hint_is_corrected():
    r, s, v = _sig()
    raw = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([v ^ 1])
    assert recover_signature(DIGEST, raw, PUBLIC_KEY) == (v, r, s)


def test_public_key_mismatch():
    r, s, _ = _sig()
    other = keys.PrivateKey(b"\x01" * 32).public_key.to_bytes()
    with pytest.raises(SignatureFailed):
        find_recovery_id(DIGEST, r, s, other)
