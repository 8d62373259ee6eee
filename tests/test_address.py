import pytest
from eth_keys import keys
from eth_utils import keccak
from eth_utils import to_checksum_address as reference_checksum

from encoding.address import (
    Address,
    address_from_public_key,
    is_checksum_address,
    to_address,
    to_checksum_address,
    validate_address,
)
from errors import InvalidAddress, InvalidPublicKey

EIP55_VECTORS = [
    "0x52908400098527886E0F7030069857D2E4169EE7",
    "0x8617E340B3D01FA5F11F306F4090FD50E238070D",
    "0xde709f2102306220921060314715629080e2fb77",
    "0x27b1fdb04752bbc536007a920d24acb045561c26",
    "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
    "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
    "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
    "0xD1220A0cf47c7B9Be7A2E6BA89F429762e7b9aDb",
]


def _recompute(lower_hex):
    digest = keccak(lower_hex.encode("ascii")).hex()
    return "0x" + "".join(c.upper() if int(digest[i], 16) >= 8 else c for i, c in enumerate(lower_hex))


@pytest.mark.parametrize("expected", EIP55_VECTORS)
def test_checksum_vectors(expected):
    raw = bytes.fromhex(expected[2:])
    assert to_checksum_address(raw) == expected
    assert to_checksum_address(Address(raw)) == reference_checksum(expected.lower())


def test_checksum_by_recomputation():
    lower = "5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
    assert to_checksum_address(bytes.fromhex(lower)) == _recompute(lower)


def test_checksum_requires_20_bytes():
    with pytest.raises(InvalidAddress):
        to_checksum_address(b"\x01" * 19)


def test_validate_accepts_any_case():
    for s in ("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed", "0x5AAEB6053F3E94C9B9A09F33669435E7EF1BEAED"):
        assert validate_address(s).raw == bytes.fromhex("5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")


@pytest.mark.parametrize(
    "bad",
    [
        "5aaeb6053f3e94c9b9a09f33669435e7ef1beaed",
        "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beae",
        "0x742d35Cc6634C0532925a3b844Bc454e4438f44ee",
        "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beazz",
        "0X5aaeb6053f3e94c9b9a09f33669435e7ef1beaed",
        "",
    ],
)
def test_validate_rejects(bad):
    with pytest.raises(InvalidAddress):
        validate_address(bad)


def test_addresses_compare_by_bytes():
    a = validate_address("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")
    b = validate_address("0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed")
    assert a == b
    assert str(a) == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_to_address_allows_missing_prefix():
    assert to_address("5aaeb6053f3e94c9b9a09f33669435e7ef1beaed") == to_address(
        "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
    )
    with pytest.raises(InvalidAddress):
        to_address("0x1234")


def test_is_checksum_address():
    assert is_checksum_address("0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed")
    assert not is_checksum_address("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")
    assert not is_checksum_address("0x1234")


def test_address_from_public_key():
    pk = keys.PrivateKey(b"\x00" * 31 + b"\x01")
    pub = pk.public_key.to_bytes()
    assert address_from_public_key(pub).checksum == "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
    assert address_from_public_key(b"\x04" + pub).checksum == pk.public_key.to_checksum_address()


def test_address_from_public_key_rejects_bad_length():
    with pytest.raises(InvalidPublicKey):
        address_from_public_key(b"\x01" * 33)
