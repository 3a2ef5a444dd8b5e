"""Passkey (WebAuthn) keys and signatures for Antelope-style chains."""

from .authenticator import PlatformAuthenticator, SoftwareAuthenticator
from .config import WalletSettings
from .keys import (
    Key,
    KeyType,
    public_key_to_string,
    signature_to_string,
    sort_pub_keys,
    string_to_public_key,
    string_to_signature,
)
from .signing import assemble_signature, build_signing_digest
from .wallet import PasskeyWallet, PermissionSource
from .webauthn import decode_key

__all__ = [
    "Key",
    "KeyType",
    "PasskeyWallet",
    "PermissionSource",
    "PlatformAuthenticator",
    "SoftwareAuthenticator",
    "WalletSettings",
    "assemble_signature",
    "build_signing_digest",
    "decode_key",
    "public_key_to_string",
    "signature_to_string",
    "sort_pub_keys",
    "string_to_public_key",
    "string_to_signature",
]
