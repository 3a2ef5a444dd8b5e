"""WebAuthn binary structures: attestation parsing and construction.

``decode_key`` turns an attestation object returned by a platform
authenticator into a ``PUB_WA_`` public key. The compact key binds the
authenticator's P-256 point, the user presence level it attested and the
relying-party id, so one passkey yields different keys per relying party.
"""

from __future__ import annotations

import hashlib
import logging
from io import BytesIO
from typing import Any, Mapping, Optional, Union

import cbor2
from fido2 import cbor

from .encoding import bytes_to_hex, hex_to_bytes
from .errors import (
    AttestedCredentialMissingError,
    CredentialIdMismatchError,
    InvalidCoordinateLengthError,
    UnsupportedCOSEAlgorithmError,
)
from .keys import Key, KeyType, public_key_to_string
from .models import COORDINATE_SIZE, CompactWebAuthnPublicKey, RegisteredKey, UserPresence
from .serial_buffer import SerialBuffer

LOGGER = logging.getLogger(__name__)

FLAG_UP = 0x01
FLAG_UV = 0x04
FLAG_AT = 0x40
AAGUID = bytes(16)

RP_ID_HASH_SIZE = 32
AAGUID_SIZE = 16

COSE_KTY = 1
COSE_ALG = 3
COSE_EC2_CRV = -1
COSE_EC2_X = -2
COSE_EC2_Y = -3
COSE_KTY_EC2 = 2
COSE_ALG_ES256 = -7
COSE_CRV_P256 = 1


def flags_to_presence(flags: int) -> UserPresence:
    if flags & FLAG_UV:
        return UserPresence.VERIFIED
    if flags & FLAG_UP:
        return UserPresence.PRESENT
    return UserPresence.NONE


def _check_cose(cose_key: Mapping[int, Any], label: int, expected: int, message: str) -> None:
    actual = cose_key.get(label)
    if actual != expected:
        raise UnsupportedCOSEAlgorithmError(
            message, field=f"cose[{label}]", expected=expected, actual=actual
        )


def _coordinate(cose_key: Mapping[int, Any], label: int, name: str) -> bytes:
    value = cose_key.get(label)
    if not isinstance(value, (bytes, bytearray)) or len(value) != COORDINATE_SIZE:
        raise InvalidCoordinateLengthError(
            "Public key has invalid X or Y size",
            field=name,
            expected=COORDINATE_SIZE,
            actual=len(value) if isinstance(value, (bytes, bytearray)) else None,
        )
    return bytes(value)


def parse_compact_public_key(
    attestation: Mapping[str, Any],
    rp_id: str,
    credential_id: str,
    header_length: int = 0,
) -> tuple[str, CompactWebAuthnPublicKey]:
    """Parse a decoded attestation map into ``(credential id hex, compact key)``."""
    auth_data = attestation.get("authData")
    if not isinstance(auth_data, (bytes, bytearray)):
        raise AttestedCredentialMissingError(
            "Attestation object has no authData", field="authData"
        )
    expected_id = bytes_to_hex(hex_to_bytes(credential_id))

    ser = SerialBuffer(bytes(auth_data))
    ser.get_array(header_length)
    ser.get_array(RP_ID_HASH_SIZE)
    flags = ser.get()
    sign_count = int.from_bytes(ser.get_array(4), "big")

    if not flags & FLAG_AT:
        raise AttestedCredentialMissingError(
            "attestedCredentialPresent flag not set", field="flags", actual=flags
        )

    aaguid = ser.get_array(AAGUID_SIZE)
    credential_id_length = int.from_bytes(ser.get_array(2), "big")
    credential_id_hex = bytes_to_hex(ser.get_array(credential_id_length))
    cose_key = cbor2.CBORDecoder(BytesIO(ser.get_array(ser.remaining()))).decode()
    LOGGER.debug(
        "Parsed authData: aaguid=%s sign_count=%d flags=0x%02x",
        aaguid.hex(),
        sign_count,
        flags,
    )

    if credential_id_hex != expected_id:
        raise CredentialIdMismatchError(
            "Credential ID does not match",
            field="credential_id",
            expected=expected_id,
            actual=credential_id_hex,
        )
    if not isinstance(cose_key, Mapping):
        raise UnsupportedCOSEAlgorithmError("Credential public key is not a COSE map")
    _check_cose(cose_key, COSE_KTY, COSE_KTY_EC2, "Public key is not EC2")
    _check_cose(cose_key, COSE_ALG, COSE_ALG_ES256, "Public key is not ES256")
    _check_cose(cose_key, COSE_EC2_CRV, COSE_CRV_P256, "Public key has unsupported curve")

    x = _coordinate(cose_key, COSE_EC2_X, "x")
    y = _coordinate(cose_key, COSE_EC2_Y, "y")

    compact = CompactWebAuthnPublicKey(
        point_prefix=3 if y[31] & 1 else 2,
        x=x,
        presence=flags_to_presence(flags),
        relying_party_id=rp_id,
    )
    return credential_id_hex, compact


def parse_attestation(
    attestation: Mapping[str, Any],
    rp_id: str,
    credential_id: str,
    header_length: int = 0,
) -> RegisteredKey:
    credential_id_hex, compact = parse_compact_public_key(
        attestation, rp_id, credential_id, header_length
    )
    key = public_key_to_string(Key(type=KeyType.WA, data=compact.to_bytes()))
    return RegisteredKey(credential_id=credential_id_hex, key=key)


def decode_key(
    rp_id: str,
    credential_id: str,
    attestation_object: Union[str, bytes],
    header_length: int = 0,
) -> RegisteredKey:
    """Decode a raw attestation object (hex string or bytes) into a WA key."""
    if isinstance(attestation_object, str):
        attestation_object = hex_to_bytes(attestation_object)
    attestation = cbor2.loads(attestation_object)
    if not isinstance(attestation, Mapping):
        raise AttestedCredentialMissingError("Attestation object is not a CBOR map")
    return parse_attestation(attestation, rp_id, credential_id, header_length)


# Construction ----------------------------------------------------------
def build_credential_public_key(
    x: bytes,
    y: bytes,
    algorithm: int = COSE_ALG_ES256,
    key_type: int = COSE_KTY_EC2,
    curve: int = COSE_CRV_P256,
) -> bytes:
    """Encode an EC2 public key as a COSE_Key structure."""
    cose_key = {
        COSE_KTY: key_type,
        COSE_ALG: algorithm,
        COSE_EC2_CRV: curve,
        COSE_EC2_X: x,
        COSE_EC2_Y: y,
    }
    return cbor.encode(cose_key)


def build_authenticator_data(
    rp_id: str,
    sign_count: int,
    credential_id: Optional[bytes] = None,
    credential_public_key: Optional[bytes] = None,
    user_present: bool = True,
    user_verified: bool = True,
) -> bytes:
    rp_hash = hashlib.sha256(rp_id.encode("idna")).digest()
    flags = 0
    if user_present:
        flags |= FLAG_UP
    if user_verified:
        flags |= FLAG_UV
    include_attestation = credential_id is not None and credential_public_key is not None
    if include_attestation:
        flags |= FLAG_AT

    data = bytearray()
    data.extend(rp_hash)
    data.append(flags)
    data.extend(sign_count.to_bytes(4, "big"))

    if include_attestation:
        data.extend(AAGUID)
        data.extend(len(credential_id).to_bytes(2, "big"))
        data.extend(credential_id)
        data.extend(credential_public_key)

    return bytes(data)


def build_attestation_object(auth_data: bytes) -> bytes:
    return cbor.encode({"fmt": "none", "authData": auth_data, "attStmt": {}})
