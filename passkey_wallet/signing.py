"""Turn WebAuthn assertions into recoverable WA signatures."""

from __future__ import annotations

import hashlib
import logging
from typing import Optional, Tuple

from .curves import CurveMath, EcdsaCurveMath
from .errors import (
    BadSignatureEncodingError,
    BadSignatureLengthError,
    RecoveryIdNotFoundError,
    SignatureComponentTooLargeError,
)
from .keys import PUBLIC_KEY_DATA_SIZE, Key, KeyType, signature_to_string, string_to_public_key
from .models import (
    COORDINATE_SIZE,
    RECOVERY_HEADER_OFFSET,
    AssertionResponse,
    RecoverableSignature,
)
from .serial_buffer import SerialBuffer

LOGGER = logging.getLogger(__name__)

DER_SEQUENCE = 0x30
DER_INTEGER = 0x02
CONTEXT_FREE_DATA_DIGEST = bytes(32)
RECOVERY_IDS = range(4)


def build_signing_digest(
    chain_id: bytes,
    serialized_transaction: bytes,
    context_free_data_digest: bytes = CONTEXT_FREE_DATA_DIGEST,
) -> bytes:
    """SHA-256 of ``chain_id ++ transaction ++ context free data digest``."""
    ser = SerialBuffer()
    ser.push_array(chain_id)
    ser.push_array(serialized_transaction)
    ser.push_array(context_free_data_digest)
    return hashlib.sha256(ser.as_bytes()).digest()


def _fixup(value: bytes, name: str) -> bytes:
    stripped = value.lstrip(b"\x00")
    if len(stripped) > COORDINATE_SIZE:
        raise SignatureComponentTooLargeError(
            f"Signature has an {name} that is too big",
            field=name,
            expected=COORDINATE_SIZE,
            actual=len(stripped),
        )
    return stripped.rjust(COORDINATE_SIZE, b"\x00")


def parse_der_signature(der: bytes) -> Tuple[bytes, bytes]:
    """Extract 32-byte ``r`` and ``s`` from a DER encoded ECDSA signature."""
    ser = SerialBuffer(der)
    if ser.get() != DER_SEQUENCE:
        raise BadSignatureEncodingError("Signature missing DER prefix", field="der")
    declared = ser.get()
    if declared != len(der) - 2:
        raise BadSignatureLengthError(
            "Signature has bad length",
            field="der",
            expected=len(der) - 2,
            actual=declared,
        )
    if ser.get() != DER_INTEGER:
        raise BadSignatureEncodingError("Signature has bad r marker", field="r")
    r = _fixup(ser.get_array(ser.get()), "r")
    if ser.get() != DER_INTEGER:
        raise BadSignatureEncodingError("Signature has bad s marker", field="s")
    s = _fixup(ser.get_array(ser.get()), "s")
    return r, s


def authenticator_signed_hash(authenticator_data: bytes, client_data_json: bytes) -> bytes:
    """Hash of what a WebAuthn authenticator actually signs."""
    ser = SerialBuffer()
    ser.push_array(authenticator_data)
    ser.push_array(hashlib.sha256(client_data_json).digest())
    return hashlib.sha256(ser.as_bytes()).digest()


def find_recovery_id(
    r: bytes,
    s: bytes,
    digest: bytes,
    public_key: bytes,
    curve: str = "r1",
    curve_math: Optional[CurveMath] = None,
) -> int:
    """Return the first recovery id whose recovered point is ``public_key``."""
    curve_math = curve_math or EcdsaCurveMath()
    point = bytes(public_key[:PUBLIC_KEY_DATA_SIZE])
    r_int = int.from_bytes(r, "big")
    s_int = int.from_bytes(s, "big")
    for recovery_id in RECOVERY_IDS:
        recovered = curve_math.recover_point(curve, r_int, s_int, digest, recovery_id)
        if recovered is not None and recovered == point:
            return recovery_id
    raise RecoveryIdNotFoundError(
        "Unable to find valid recovery factor", field="recovery_id", actual=point.hex()
    )


def pack_signature(
    recovery_id: int,
    r: bytes,
    s: bytes,
    authenticator_data: bytes,
    client_data_json: bytes,
) -> Key:
    signature = RecoverableSignature(
        recovery_header=recovery_id + RECOVERY_HEADER_OFFSET,
        r=r,
        s=s,
        authenticator_data=authenticator_data,
        client_data_json=client_data_json,
    )
    return Key(type=KeyType.WA, data=signature.to_bytes())


def assemble_signature(
    public_key: str,
    assertion: AssertionResponse,
    curve: str = "r1",
    curve_math: Optional[CurveMath] = None,
) -> str:
    """Build a ``SIG_WA_`` signature from an assertion and its bound public key."""
    key = string_to_public_key(public_key)
    r, s = parse_der_signature(assertion.signature)
    digest = authenticator_signed_hash(assertion.authenticatorData, assertion.clientDataJSON)
    recovery_id = find_recovery_id(r, s, digest, key.data, curve, curve_math)
    LOGGER.debug("Recovered signature with recovery id %d", recovery_id)
    return signature_to_string(
        pack_signature(
            recovery_id, r, s, assertion.authenticatorData, assertion.clientDataJSON
        )
    )
