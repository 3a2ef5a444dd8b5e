from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from passkey_wallet.authenticator import SoftwareAuthenticator
from passkey_wallet.config import WalletSettings
from passkey_wallet.encoding import bytes_to_hex
from passkey_wallet.models import RegisteredKey
from passkey_wallet.webauthn import decode_key


@pytest.fixture
def settings() -> WalletSettings:
    return WalletSettings(rp_id="example.com", origin="https://example.com")


@pytest.fixture
def software_authenticator(settings) -> SoftwareAuthenticator:
    return SoftwareAuthenticator(settings)


@pytest.fixture
def registered(software_authenticator, settings) -> RegisteredKey:
    attestation = software_authenticator.make_credential(settings.rp_id, "alice")
    return decode_key(
        settings.rp_id,
        bytes_to_hex(attestation.rawId),
        attestation.attestationObject,
    )
