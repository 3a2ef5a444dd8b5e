"""Base-58 and hex conversions for key material."""

from __future__ import annotations

import base64
import binascii
from types import MappingProxyType
from typing import Mapping

from .errors import InvalidBase58SymbolError, MalformedHexError, ValueOutOfRangeError

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_BASE58_MAP: Mapping[str, int] = MappingProxyType(
    {char: index for index, char in enumerate(BASE58_ALPHABET)}
)


def _base58_digit(char: str, position: int) -> int:
    digit = _BASE58_MAP.get(char)
    if digit is None:
        raise InvalidBase58SymbolError(
            f"Invalid base-58 symbol {char!r} at position {position}",
            field="base58",
            actual=char,
        )
    return digit


def _leading(data, zero) -> int:
    count = 0
    for item in data:
        if item != zero:
            break
        count += 1
    return count


def binary_to_base58(data: bytes) -> str:
    """Encode ``data`` as a big-endian base-58 number.

    Every leading zero byte becomes a literal ``'1'``.
    """
    value = int.from_bytes(data, "big")
    digits = []
    while value:
        value, remainder = divmod(value, 58)
        digits.append(BASE58_ALPHABET[remainder])
    digits.extend("1" * _leading(data, 0))
    return "".join(reversed(digits))


def base58_to_binary_var(text: str) -> bytes:
    """Decode base-58 ``text`` into as many bytes as the value needs."""
    value = 0
    for position, char in enumerate(text):
        value = value * 58 + _base58_digit(char, position)
    body = value.to_bytes((value.bit_length() + 7) // 8, "big") if value else b""
    return bytes(_leading(text, "1")) + body


def base58_to_binary(size: int, text: str) -> bytes:
    """Decode base-58 ``text`` into exactly ``size`` big-endian bytes.

    ``size == 0`` decodes to a variable-length result.
    """
    if not size:
        return base58_to_binary_var(text)
    limit = 1 << (8 * size)
    value = 0
    for position, char in enumerate(text):
        value = value * 58 + _base58_digit(char, position)
        if value >= limit:
            raise ValueOutOfRangeError(
                "base-58 value is out of range",
                field="base58",
                expected=size,
                actual=(value.bit_length() + 7) // 8,
            )
    return value.to_bytes(size, "big")


def hex_to_bytes(text: str) -> bytes:
    if not isinstance(text, str):
        raise MalformedHexError("Expected string containing hex digits", actual=type(text).__name__)
    if len(text) % 2:
        raise MalformedHexError("Odd number of hex digits", actual=len(text))
    try:
        return binascii.unhexlify(text)
    except (binascii.Error, ValueError) as exc:
        raise MalformedHexError("Expected hex string", actual=text[:16]) from exc


def bytes_to_hex(data: bytes) -> str:
    return data.hex().upper()


def compare_bytes(a: bytes, b: bytes) -> int:
    """Unsigned lexicographic comparison; a shorter prefix sorts first."""
    for left, right in zip(a, b):
        if left != right:
            return left - right
    return len(a) - len(b)


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")
