"""Command-line entry point for inspecting and producing passkey keys."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import PasskeyWallet, SoftwareAuthenticator, WalletSettings
from .encoding import bytes_to_hex, hex_to_bytes
from .errors import PasskeyWalletError
from .keys import (
    Key,
    KeyType,
    public_key_to_string,
    signature_to_string,
    sort_pub_keys,
    string_to_public_key,
    string_to_signature,
)
from .models import KeyWeight
from .webauthn import decode_key

DEMO_CHAIN_ID = "aca376f206b8fc25a6ed44dbdc66547c36c6c33e3a119ffbeaef943642f0e906"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Passkey wallet key tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    decode = sub.add_parser("decode-key", help="Decode a text public key or signature")
    decode.add_argument("text")

    encode = sub.add_parser("encode-key", help="Encode hex key data as text")
    encode.add_argument("--type", choices=["k1", "r1", "wa"], required=True)
    encode.add_argument("--signature", action="store_true", help="Encode as a signature")
    encode.add_argument("data", help="Key data as hex")

    register = sub.add_parser("register", help="Derive a PUB_WA_ key from an attestation")
    register.add_argument("--rp-id", required=True)
    register.add_argument("--credential-id", required=True, help="Credential id as hex")
    register.add_argument("attestation", help="Attestation object as hex")

    sort = sub.add_parser("sort-keys", help="Sort authority keys deterministically")
    sort.add_argument("keys", nargs="+", help="KEY or KEY:WEIGHT")

    demo = sub.add_parser("demo", help="Register and sign with a software authenticator")
    demo.add_argument("--rp-id", default=None)
    demo.add_argument("--transaction", default="00", help="Serialized transaction as hex")
    return parser.parse_args(argv)


def _decode(text: str) -> str:
    if text.startswith("SIG_"):
        key = string_to_signature(text)
        kind = "signature"
    else:
        key = string_to_public_key(text)
        kind = "public key"
    return f"{key.type.name} {kind}: {bytes_to_hex(key.data)}"


def _encode(key_type: str, data: str, signature: bool) -> str:
    key = Key(type=KeyType[key_type.upper()], data=hex_to_bytes(data))
    return signature_to_string(key) if signature else public_key_to_string(key)


def _sort(entries: List[str]) -> str:
    weights = []
    for entry in entries:
        key, _, weight = entry.partition(":")
        weights.append(KeyWeight(key=key, weight=int(weight) if weight else 1))
    return "\n".join(f"{item.key} {item.weight}" for item in sort_pub_keys(weights))


def _demo(rp_id: Optional[str], transaction: str) -> str:
    settings = WalletSettings()
    authenticator = SoftwareAuthenticator(settings)
    attestation = authenticator.make_credential(rp_id or settings.rp_id)
    registered = decode_key(
        rp_id or settings.rp_id,
        bytes_to_hex(attestation.rawId),
        attestation.attestationObject,
        settings.attestation_header_length,
    )
    wallet = PasskeyWallet(
        "demo",
        "active",
        authenticator,
        passkey_id=registered.credential_id,
        public_key=registered.key,
        settings=settings,
    )
    signature = wallet.sign(DEMO_CHAIN_ID, hex_to_bytes(transaction))
    return f"public key: {registered.key}\nsignature: {signature}"


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING, format="%(message)s"
    )
    try:
        if args.command == "decode-key":
            output = _decode(args.text)
        elif args.command == "encode-key":
            output = _encode(args.type, args.data, args.signature)
        elif args.command == "register":
            output = decode_key(
                args.rp_id,
                args.credential_id,
                args.attestation,
                WalletSettings().attestation_header_length,
            ).key
        elif args.command == "sort-keys":
            output = _sort(args.keys)
        else:
            output = _demo(args.rp_id, args.transaction)
    except PasskeyWalletError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
