from __future__ import annotations

import cbor2
import pytest
from ecdsa import NIST256p, SigningKey

from passkey_wallet.encoding import bytes_to_hex
from passkey_wallet.errors import (
    AttestedCredentialMissingError,
    BufferUnderrunError,
    CredentialIdMismatchError,
    InvalidCoordinateLengthError,
    MalformedHexError,
    UnsupportedCOSEAlgorithmError,
)
from passkey_wallet.keys import KeyType, string_to_public_key
from passkey_wallet.models import CompactWebAuthnPublicKey, UserPresence
from passkey_wallet.webauthn import (
    build_attestation_object,
    build_authenticator_data,
    build_credential_public_key,
    decode_key,
    flags_to_presence,
    parse_attestation,
    parse_compact_public_key,
)

CREDENTIAL_ID = b"\xca\xfe\xba\xbe"
CREDENTIAL_ID_HEX = "CAFEBABE"
X = bytes(range(32))
Y_EVEN = bytes(31) + b"\x10"
Y_ODD = bytes(31) + b"\x11"


def make_attestation(
    y: bytes = Y_EVEN,
    cose_key: bytes | None = None,
    credential_id: bytes | None = CREDENTIAL_ID,
    **flags,
) -> dict:
    if cose_key is None:
        cose_key = build_credential_public_key(X, y)
    auth_data = build_authenticator_data(
        rp_id="example.com",
        sign_count=7,
        credential_id=credential_id,
        credential_public_key=cose_key if credential_id is not None else None,
        **flags,
    )
    return cbor2.loads(build_attestation_object(auth_data))


def test_build_credential_public_key_encodes_cose():
    decoded = cbor2.loads(build_credential_public_key(X, Y_EVEN))
    assert decoded[1] == 2  # kty
    assert decoded[3] == -7  # alg
    assert decoded[-1] == 1  # crv
    assert decoded[-2] == X
    assert decoded[-3] == Y_EVEN


def test_build_authenticator_data_contains_attestation():
    auth_data = build_authenticator_data(
        rp_id="example.com",
        sign_count=5,
        credential_id=b"abc",
        credential_public_key=b"cose",
    )
    flags = auth_data[32]
    assert flags & 0x01
    assert flags & 0x04
    assert flags & 0x40
    assert int.from_bytes(auth_data[33:37], "big") == 5
    assert auth_data[53:55] == b"\x00\x03"


def test_compact_key_layout():
    registered = parse_attestation(make_attestation(), "example.com", CREDENTIAL_ID_HEX)
    assert registered.credential_id == CREDENTIAL_ID_HEX

    key = string_to_public_key(registered.key)
    assert key.type is KeyType.WA
    assert key.data == b"\x02" + X + b"\x02" + b"\x0bexample.com"


def test_odd_y_gives_prefix_three():
    _, compact = parse_compact_public_key(
        make_attestation(y=Y_ODD), "example.com", CREDENTIAL_ID_HEX
    )
    assert compact.point_prefix == 3
    assert compact.point == b"\x03" + X


@pytest.mark.parametrize(
    "flags, presence",
    [
        ({"user_present": True, "user_verified": True}, UserPresence.VERIFIED),
        ({"user_present": False, "user_verified": True}, UserPresence.VERIFIED),
        ({"user_present": True, "user_verified": False}, UserPresence.PRESENT),
        ({"user_present": False, "user_verified": False}, UserPresence.NONE),
    ],
)
def test_presence_from_flags(flags, presence):
    _, compact = parse_compact_public_key(
        make_attestation(**flags), "example.com", CREDENTIAL_ID_HEX
    )
    assert compact.presence is presence


def test_flags_to_presence():
    assert flags_to_presence(0x05) is UserPresence.VERIFIED
    assert flags_to_presence(0x41) is UserPresence.PRESENT
    assert flags_to_presence(0x40) is UserPresence.NONE


def test_relying_party_id_is_bound_verbatim():
    attestation = make_attestation()
    first = parse_attestation(attestation, "example.com", CREDENTIAL_ID_HEX)
    second = parse_attestation(attestation, "Example.com", CREDENTIAL_ID_HEX)
    assert first.key != second.key
    data = string_to_public_key(second.key).data
    assert CompactWebAuthnPublicKey.from_bytes(data).relying_party_id == "Example.com"


def test_credential_id_comparison_ignores_hex_case():
    registered = parse_attestation(make_attestation(), "example.com", "cafebabe")
    assert registered.credential_id == CREDENTIAL_ID_HEX


def test_missing_attested_credential():
    with pytest.raises(AttestedCredentialMissingError):
        parse_attestation(make_attestation(credential_id=None), "example.com", CREDENTIAL_ID_HEX)


def test_missing_auth_data():
    with pytest.raises(AttestedCredentialMissingError):
        parse_attestation({"fmt": "none"}, "example.com", CREDENTIAL_ID_HEX)


def test_credential_id_mismatch():
    with pytest.raises(CredentialIdMismatchError) as excinfo:
        parse_attestation(make_attestation(), "example.com", "DEADBEEF")
    assert excinfo.value.expected == "DEADBEEF"
    assert excinfo.value.actual == CREDENTIAL_ID_HEX


def test_malformed_expected_credential_id():
    with pytest.raises(MalformedHexError):
        parse_attestation(make_attestation(), "example.com", "XYZ")


@pytest.mark.parametrize(
    "overrides",
    [{"algorithm": -8}, {"key_type": 1}, {"curve": 2}],
)
def test_unsupported_cose_parameters(overrides):
    cose_key = build_credential_public_key(X, Y_EVEN, **overrides)
    with pytest.raises(UnsupportedCOSEAlgorithmError):
        parse_attestation(make_attestation(cose_key=cose_key), "example.com", CREDENTIAL_ID_HEX)


@pytest.mark.parametrize("x, y", [(X[:31], Y_EVEN), (X, Y_EVEN + b"\x00")])
def test_invalid_coordinate_length(x, y):
    cose_key = build_credential_public_key(x, y)
    with pytest.raises(InvalidCoordinateLengthError):
        parse_attestation(make_attestation(cose_key=cose_key), "example.com", CREDENTIAL_ID_HEX)


def test_truncated_auth_data():
    attestation = make_attestation()
    attestation["authData"] = attestation["authData"][:40]
    with pytest.raises(BufferUnderrunError):
        parse_attestation(attestation, "example.com", CREDENTIAL_ID_HEX)


def test_trailing_extension_data_is_ignored():
    attestation = make_attestation()
    attestation["authData"] = attestation["authData"] + cbor2.dumps({"credProtect": 1})
    registered = parse_attestation(attestation, "example.com", CREDENTIAL_ID_HEX)
    assert string_to_public_key(registered.key).data[:33] == b"\x02" + X


def test_header_region_is_skipped():
    attestation = make_attestation()
    attestation["authData"] = b"\xee" * 30 + attestation["authData"]
    registered = parse_attestation(
        attestation, "example.com", CREDENTIAL_ID_HEX, header_length=30
    )
    assert registered.credential_id == CREDENTIAL_ID_HEX


def test_decode_key_accepts_hex_attestation_object():
    signing_key = SigningKey.generate(curve=NIST256p)
    raw = signing_key.get_verifying_key().to_string()
    auth_data = build_authenticator_data(
        rp_id="example.com",
        sign_count=0,
        credential_id=CREDENTIAL_ID,
        credential_public_key=build_credential_public_key(raw[:32], raw[32:]),
    )
    attestation_hex = bytes_to_hex(build_attestation_object(auth_data))

    registered = decode_key("example.com", CREDENTIAL_ID_HEX, attestation_hex)
    data = string_to_public_key(registered.key).data
    compressed = signing_key.get_verifying_key().to_string("compressed")
    assert data[:33] == compressed


def test_decode_key_rejects_malformed_hex():
    with pytest.raises(MalformedHexError):
        decode_key("example.com", CREDENTIAL_ID_HEX, "a0b")
