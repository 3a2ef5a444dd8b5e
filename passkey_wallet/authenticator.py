"""In-memory ES256 software authenticator.

Implements the same request/response surface as a platform passkey so the
registration and signing pipelines can run without a browser.
"""

from __future__ import annotations

import hashlib
import json
import logging
import secrets
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from ecdsa import NIST256p, SigningKey
from ecdsa.util import sigencode_der

from .config import WalletSettings
from .encoding import b64url_encode, bytes_to_hex
from .logs import StageLogger
from .models import AssertionResponse, AttestationResponse
from .webauthn import (
    build_attestation_object,
    build_authenticator_data,
    build_credential_public_key,
)

LOGGER = logging.getLogger(__name__)

_log = StageLogger(
    LOGGER,
    "Authenticator",
    {"register": "Register", "authn": "Authenticate"},
    {
        ("register", "start"): "Processing credential creation",
        ("register", "success"): "Credential creation completed",
        ("authn", "start"): "Processing assertion",
        ("authn", "no_credential"): "No credential available",
        ("authn", "success"): "Assertion completed",
    },
)


class PlatformAuthenticator(Protocol):
    def get_assertion(
        self,
        challenge: bytes,
        allow_credentials: Sequence[bytes],
        timeout_ms: int,
    ) -> Optional[AssertionResponse]:
        ...


@dataclass
class SoftwareCredential:
    credential_id: bytes
    rp_id: str
    signing_key: SigningKey
    sign_count: int = 0


class SoftwareAuthenticator:
    """Software authenticator that mimics navigator.credentials flows."""

    def __init__(
        self,
        settings: Optional[WalletSettings] = None,
        user_present: bool = True,
        user_verified: bool = True,
    ) -> None:
        self.settings = settings or WalletSettings()
        self.user_present = user_present
        self.user_verified = user_verified
        self._credentials: Dict[bytes, SoftwareCredential] = {}

    # ------------------------------------------------------------------
    def make_credential(
        self,
        rp_id: Optional[str] = None,
        user_name: str = "user",
        challenge: Optional[bytes] = None,
    ) -> AttestationResponse:
        rp_id = rp_id or self.settings.rp_id
        req_id = secrets.token_hex(4)
        _log("register", "start", req_id, rp_id=rp_id, user=user_name)

        credential = SoftwareCredential(
            credential_id=secrets.token_bytes(32),
            rp_id=rp_id,
            signing_key=SigningKey.generate(curve=NIST256p),
        )
        self._credentials[credential.credential_id] = credential

        raw_point = credential.signing_key.get_verifying_key().to_string()
        auth_data = build_authenticator_data(
            rp_id=rp_id,
            sign_count=credential.sign_count,
            credential_id=credential.credential_id,
            credential_public_key=build_credential_public_key(raw_point[:32], raw_point[32:]),
            user_present=self.user_present,
            user_verified=self.user_verified,
        )
        client_data = self._client_data("webauthn.create", challenge or secrets.token_bytes(32))

        _log(
            "register",
            "success",
            req_id,
            credential_id=bytes_to_hex(credential.credential_id),
        )
        return AttestationResponse(
            rawId=credential.credential_id,
            attestationObject=build_attestation_object(auth_data),
            clientDataJSON=client_data,
        )

    # ------------------------------------------------------------------
    def get_assertion(
        self,
        challenge: bytes,
        allow_credentials: Sequence[bytes] = (),
        timeout_ms: int = 60_000,
    ) -> Optional[AssertionResponse]:
        req_id = secrets.token_hex(4)
        _log(
            "authn",
            "start",
            req_id,
            allowed=len(allow_credentials),
            timeout_ms=timeout_ms,
        )
        credential = self._locate_credential(allow_credentials)
        if credential is None:
            _log("authn", "no_credential", req_id, level=logging.WARNING)
            return None

        client_data_json = self._client_data("webauthn.get", challenge)
        client_data_hash = hashlib.sha256(client_data_json).digest()
        credential.sign_count += 1
        auth_data = build_authenticator_data(
            rp_id=credential.rp_id,
            sign_count=credential.sign_count,
            user_present=self.user_present,
            user_verified=self.user_verified,
        )
        signature = credential.signing_key.sign_deterministic(
            auth_data + client_data_hash,
            hashfunc=hashlib.sha256,
            sigencode=sigencode_der,
        )

        _log(
            "authn",
            "success",
            req_id,
            credential_id=bytes_to_hex(credential.credential_id),
            sign_count=credential.sign_count,
        )
        return AssertionResponse(
            rawId=credential.credential_id,
            authenticatorData=auth_data,
            clientDataJSON=client_data_json,
            signature=signature,
        )

    # Helpers -----------------------------------------------------------
    def _client_data(self, kind: str, challenge: bytes) -> bytes:
        client_data = {
            "type": kind,
            "challenge": b64url_encode(challenge),
            "origin": self.settings.origin,
        }
        return json.dumps(client_data, separators=(",", ":")).encode("utf-8")

    def _locate_credential(
        self, allow_credentials: Sequence[bytes]
    ) -> Optional[SoftwareCredential]:
        for credential_id in allow_credentials:
            credential = self._credentials.get(bytes(credential_id))
            if credential is not None:
                return credential
        if allow_credentials:
            return None
        matches = self.credentials_for_rp(self.settings.rp_id)
        return matches[0] if matches else None

    def credentials_for_rp(self, rp_id: str) -> List[SoftwareCredential]:
        return [cred for cred in self._credentials.values() if cred.rp_id == rp_id]
