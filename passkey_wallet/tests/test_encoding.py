from __future__ import annotations

import os

import base58
import pytest

from passkey_wallet.encoding import (
    base58_to_binary,
    base58_to_binary_var,
    binary_to_base58,
    bytes_to_hex,
    compare_bytes,
    hex_to_bytes,
)
from passkey_wallet.errors import (
    InvalidBase58SymbolError,
    MalformedHexError,
    ValueOutOfRangeError,
)


def test_single_zero_byte_encodes_as_one():
    assert binary_to_base58(b"\x00") == "1"
    assert base58_to_binary_var("1") == b"\x00"


def test_empty_input():
    assert binary_to_base58(b"") == ""
    assert base58_to_binary_var("") == b""


@pytest.mark.parametrize(
    "data",
    [
        b"\x00\x00\x01",
        b"\xff" * 37,
        b"\x00" * 5 + b"\x7f\x80",
        bytes(range(256)),
    ],
)
def test_var_round_trip(data):
    assert base58_to_binary_var(binary_to_base58(data)) == data


def test_matches_reference_encoder():
    for size in (1, 20, 33, 37, 69):
        data = b"\x00" + os.urandom(size)
        encoded = binary_to_base58(data)
        assert encoded == base58.b58encode(data).decode("ascii")
        assert base58_to_binary_var(encoded) == data


def test_fixed_size_left_pads():
    assert base58_to_binary(4, "2") == b"\x00\x00\x00\x01"
    assert base58_to_binary(2, "5R") == (4 * 58 + 24).to_bytes(2, "big")


def test_fixed_size_overflow():
    with pytest.raises(ValueOutOfRangeError) as excinfo:
        base58_to_binary(1, binary_to_base58(b"\x01\x00"))
    assert excinfo.value.expected == 1
    assert excinfo.value.actual == 2


def test_fixed_size_zero_delegates_to_var():
    assert base58_to_binary(0, "11") == b"\x00\x00"


@pytest.mark.parametrize("text", ["0", "O", "I", "l", "abc+"])
def test_invalid_symbols(text):
    with pytest.raises(InvalidBase58SymbolError):
        base58_to_binary_var(text)
    with pytest.raises(InvalidBase58SymbolError):
        base58_to_binary(8, text)


def test_hex_helpers():
    assert hex_to_bytes("0aFF") == b"\x0a\xff"
    assert bytes_to_hex(b"\x0a\xff") == "0AFF"


@pytest.mark.parametrize("text", ["abc", "zz", "0x12"])
def test_malformed_hex(text):
    with pytest.raises(MalformedHexError):
        hex_to_bytes(text)


def test_compare_bytes_is_unsigned_and_prefix_first():
    assert compare_bytes(b"\x01\x02", b"\x01\x02") == 0
    assert compare_bytes(b"\x01", b"\x01\x00") < 0
    assert compare_bytes(b"\x01\x00", b"\x01") > 0
    assert compare_bytes(b"\x80", b"\x7f") > 0
    assert compare_bytes(b"", b"\x00") < 0
