"""Typed, checksummed text form of public keys and signatures.

Text keys look like ``<prefix><base58(data ++ checksum)>`` where the
checksum is the first four bytes of ``RIPEMD160(data ++ suffix)``. The
legacy ``EOS`` form of K1 public keys hashes ``data`` alone.
"""

from __future__ import annotations

import enum
import functools
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from Crypto.Hash import RIPEMD160

from .encoding import base58_to_binary, binary_to_base58, compare_bytes
from .errors import (
    ChecksumMismatchError,
    UnrecognizedKeyFormatError,
    UnsupportedKeyFormatError,
)
from .models import KeyWeight

LOGGER = logging.getLogger(__name__)

PUBLIC_KEY_DATA_SIZE = 33
SIGNATURE_DATA_SIZE = 65
CHECKSUM_SIZE = 4
LEGACY_PUBLIC_KEY_PREFIX = "EOS"


class KeyType(enum.IntEnum):
    K1 = 0
    R1 = 1
    WA = 2

    @property
    def suffix(self) -> str:
        return self.name


@dataclass(frozen=True)
class Key:
    """Public key or signature in binary form."""

    type: KeyType
    data: bytes


# prefix -> (type, fixed data size or 0 for variable)
PUBLIC_KEY_PREFIXES: Dict[str, Tuple[KeyType, int]] = {
    "PUB_K1_": (KeyType.K1, PUBLIC_KEY_DATA_SIZE),
    "PUB_R1_": (KeyType.R1, PUBLIC_KEY_DATA_SIZE),
    "PUB_WA_": (KeyType.WA, 0),
}
SIGNATURE_PREFIXES: Dict[str, Tuple[KeyType, int]] = {
    "SIG_K1_": (KeyType.K1, SIGNATURE_DATA_SIZE),
    "SIG_R1_": (KeyType.R1, SIGNATURE_DATA_SIZE),
    "SIG_WA_": (KeyType.WA, 0),
}


def ripemd160(data: bytes) -> bytes:
    return RIPEMD160.new(data).digest()


def key_checksum(data: bytes, suffix: str = "") -> bytes:
    return ripemd160(data + suffix.encode("ascii"))[:CHECKSUM_SIZE]


def _key_to_string(key: Key, prefix: str) -> str:
    checksum = key_checksum(key.data, key.type.suffix)
    return prefix + binary_to_base58(key.data + checksum)


def _verify_checksum(whole: bytes, suffix: str) -> bytes:
    data, checksum = whole[:-CHECKSUM_SIZE], whole[-CHECKSUM_SIZE:]
    expected = key_checksum(data, suffix)
    if checksum != expected:
        raise ChecksumMismatchError(
            "checksum doesn't match",
            field="checksum",
            expected=expected.hex(),
            actual=checksum.hex(),
        )
    return data


def _string_to_key(text: str, key_type: KeyType, size: int) -> Key:
    whole = base58_to_binary(size + CHECKSUM_SIZE if size else 0, text)
    if len(whole) < CHECKSUM_SIZE:
        raise ChecksumMismatchError(
            "key is too short to carry a checksum",
            field="checksum",
            expected=CHECKSUM_SIZE,
            actual=len(whole),
        )
    return Key(type=key_type, data=_verify_checksum(whole, key_type.suffix))


def public_key_to_string(key: Key) -> str:
    if key.type in (KeyType.K1, KeyType.R1):
        if len(key.data) != PUBLIC_KEY_DATA_SIZE:
            raise UnsupportedKeyFormatError(
                f"{key.type.name} public key must be {PUBLIC_KEY_DATA_SIZE} bytes",
                field="data",
                expected=PUBLIC_KEY_DATA_SIZE,
                actual=len(key.data),
            )
    elif key.type is not KeyType.WA:
        raise UnsupportedKeyFormatError("unrecognized public key format", actual=key.type)
    return _key_to_string(key, f"PUB_{key.type.suffix}_")


def legacy_public_key_to_string(key: Key) -> str:
    """Encode a K1 public key in the legacy ``EOS`` form."""
    if key.type is not KeyType.K1 or len(key.data) != PUBLIC_KEY_DATA_SIZE:
        raise UnsupportedKeyFormatError(
            "legacy form only supports K1 public keys", actual=key.type
        )
    return LEGACY_PUBLIC_KEY_PREFIX + binary_to_base58(key.data + key_checksum(key.data))


def string_to_public_key(text: str) -> Key:
    if not isinstance(text, str):
        raise UnrecognizedKeyFormatError("expected string containing public key")
    if text.startswith(LEGACY_PUBLIC_KEY_PREFIX):
        whole = base58_to_binary(
            PUBLIC_KEY_DATA_SIZE + CHECKSUM_SIZE, text[len(LEGACY_PUBLIC_KEY_PREFIX) :]
        )
        # Legacy keys hash the data without a type suffix.
        return Key(type=KeyType.K1, data=_verify_checksum(whole, ""))
    for prefix, (key_type, size) in PUBLIC_KEY_PREFIXES.items():
        if text.startswith(prefix):
            return _string_to_key(text[len(prefix) :], key_type, size)
    raise UnrecognizedKeyFormatError("unrecognized public key format", actual=text[:7])


def signature_to_string(signature: Key) -> str:
    if signature.type not in (KeyType.K1, KeyType.R1, KeyType.WA):
        raise UnsupportedKeyFormatError("unrecognized signature format", actual=signature.type)
    return _key_to_string(signature, f"SIG_{signature.type.suffix}_")


def string_to_signature(text: str) -> Key:
    if not isinstance(text, str):
        raise UnrecognizedKeyFormatError("expected string containing signature")
    for prefix, (key_type, size) in SIGNATURE_PREFIXES.items():
        if text.startswith(prefix):
            return _string_to_key(text[len(prefix) :], key_type, size)
    raise UnrecognizedKeyFormatError("unrecognized signature format", actual=text[:7])


def get_public_key_format(text: str) -> KeyType:
    if text.startswith("PUB_K1_") or text.startswith(LEGACY_PUBLIC_KEY_PREFIX):
        return KeyType.K1
    if text.startswith("PUB_R1_"):
        return KeyType.R1
    if text.startswith("PUB_WA_"):
        return KeyType.WA
    raise UnrecognizedKeyFormatError("unrecognized public key format", actual=text[:7])


def sort_pub_keys(key_weights: Iterable[KeyWeight]) -> List[KeyWeight]:
    """Order keys of one authority: K1 < R1 < WA, then by raw key bytes."""

    def compare(a: KeyWeight, b: KeyWeight) -> int:
        format_compare = get_public_key_format(a.key) - get_public_key_format(b.key)
        if format_compare:
            return format_compare
        return compare_bytes(
            string_to_public_key(a.key).data, string_to_public_key(b.key).data
        )

    ordered = sorted(key_weights, key=functools.cmp_to_key(compare))
    LOGGER.debug("Sorted %d authority keys", len(ordered))
    return ordered
