import pytest
from eth_utils import keccak

from encoding.abi import TRANSFER_SELECTOR, encode_transfer
from errors import InvalidAddress, InvalidValue, ValueOverflow

RECIPIENT = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_selector_constant_matches_signature_hash():
    assert TRANSFER_SELECTOR == keccak(b"transfer(address,uint256)")[:4]


def test_layout():
    out = encode_transfer(RECIPIENT, 10**18)
    assert len(out) == 68
    assert out[:4] == bytes.fromhex("a9059cbb")
    assert out[4:16] == b"\x00" * 12
    assert out[16:36] == bytes.fromhex(RECIPIENT[2:])
    assert int.from_bytes(out[36:], "big") == 10**18


def test_zero_amount_is_all_zero_word():
    out = encode_transfer(RECIPIENT, 0)
    assert len(out) == 68
    assert out[36:68] == b"\x00" * 32


def test_max_amount():
    out = encode_transfer(RECIPIENT, 2**256 - 1)
    assert out[36:] == b"\xff" * 32


def test_known_calldata():
    out = encode_transfer("0x" + "11" * 20, 1)
    assert out.hex() == "a9059cbb" + "00" * 12 + "11" * 20 + "00" * 31 + "01"


def test_short_address_rejected():
    with pytest.raises(InvalidAddress):
        encode_transfer("0x5aaeb6053f3e94c9b9a09f33669435e7ef1bea", 1)
    with pytest.raises(InvalidAddress):
        encode_transfer(b"\x01" * 19, 1)


def test_overflow_and_negative():
    with pytest.raises(ValueOverflow):
        encode_transfer(RECIPIENT, 2**256)
    with pytest.raises(InvalidValue):
        encode_transfer(RECIPIENT, -1)
