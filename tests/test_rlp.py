import pytest
import rlp as pyrlp

from encoding.rlp import RLPBytes, RLPInt, RLPList, encode
from errors import InvalidValue


def test_zero_encodes_as_empty_string():
    assert encode(RLPInt(0)) == b"\x80"
    assert encode(RLPBytes(b"")) == b"\x80"


def test_empty_list():
    assert encode(RLPList([])) == b"\xc0"


def test_single_low_byte_passes_through():
    assert encode(RLPBytes(b"\x00")) == b"\x00"
    assert encode(RLPBytes(b"\x7f")) == b"\x7f"
    assert encode(RLPInt(15)) == b"\x0f"
    assert encode(RLPInt(127)) == b"\x7f"


def test_single_high_byte_gets_prefix():
    assert encode(RLPBytes(b"\x80")) == b"\x81\x80"
    assert encode(RLPInt(128)) == b"\x81\x80"


def test_integers_are_minimal_big_endian():
    assert encode(RLPInt(1024)) == b"\x82\x04\x00"
    assert encode(RLPInt(2**64)) == b"\x89\x01" + b"\x00" * 8


def test_short_strings():
    assert encode(RLPBytes(b"dog")) == b"\x83dog"
    assert encode(RLPList([RLPBytes(b"cat"), RLPBytes(b"dog")])) == b"\xc8\x83cat\x83dog"


def test_55_byte_string_uses_short_form():
    data = b"a" * 55
    assert encode(RLPBytes(data)) == bytes([0x80 + 55]) + data


def test_56_byte_string_switches_to_long_form():
    data = b"Lorem ipsum dolor sit amet, consectetur adipisicing elit"
    assert len(data) == 56
    assert encode(RLPBytes(data)) == b"\xb8\x38" + data


def test_long_length_of_length():
    data = b"\x01" * 1024
    assert encode(RLPBytes(data)) == b"\xb9\x04\x00" + data


def test_long_list():
    items = [RLPBytes(b"abc")] * 20
    out = encode(RLPList(items))
    assert out[:2] == b"\xf8\x50"
    assert out[2:] == b"\x83abc" * 20


def test_nested_lists():
    # [ [], [[]], [ [], [[]] ] ]
    empty = RLPList([])
    value = RLPList([empty, RLPList([empty]), RLPList([empty, RLPList([empty])])])
    assert encode(value) == bytes.fromhex("c7c0c1c0c3c0c1c0")


def test_matches_reference_encoder():
    value = RLPList(
        [
            RLPBytes(b"dog"),
            RLPList([RLPBytes(b""), RLPInt(1), RLPInt(0)]),
            RLPInt(1024),
            RLPBytes(b"x" * 70),
        ]
    )
    expected = pyrlp.encode([b"dog", [b"", 1, 0], 1024, b"x" * 70])
    assert encode(value) == expected


def test_negative_integer_rejected():
    with pytest.raises(InvalidValue):
        RLPInt(-1)


def test_non_variant_values_rejected():
    with pytest.raises(InvalidValue):
        RLPInt(True)
    with pytest.raises(InvalidValue):
        RLPBytes("dog")
    with pytest.raises(InvalidValue):
        encode(b"dog")
    with pytest.raises(InvalidValue):
        encode(RLPList([RLPInt(1), 2]))
