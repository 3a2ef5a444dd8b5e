"""Passkey-backed wallet: login and transaction signing."""

from __future__ import annotations

import logging
import secrets
from typing import List, Optional, Protocol

from .authenticator import PlatformAuthenticator
from .config import WalletSettings
from .curves import CurveMath
from .encoding import bytes_to_hex, hex_to_bytes
from .errors import WalletStateError
from .logs import StageLogger
from .models import KeyWeight, PermissionLevel
from .signing import assemble_signature, build_signing_digest

LOGGER = logging.getLogger(__name__)

_log = StageLogger(
    LOGGER,
    "Wallet",
    {"login": "Login", "sign": "Sign"},
    {
        ("login", "start"): "Starting login",
        ("login", "key.resolved"): "Resolved permission key",
        ("login", "success"): "Login completed",
        ("sign", "start"): "Signing transaction",
        ("sign", "digest"): "Requesting assertion for digest",
        ("sign", "success"): "Transaction signed",
    },
)


class PermissionSource(Protocol):
    """Looks up the keys required by an account permission."""

    def required_keys(self, chain_id: str, account: str, permission: str) -> List[KeyWeight]:
        ...


class PasskeyWallet:
    def __init__(
        self,
        account_name: str,
        permission: str,
        authenticator: PlatformAuthenticator,
        passkey_id: Optional[str] = None,
        public_key: Optional[str] = None,
        settings: Optional[WalletSettings] = None,
        curve_math: Optional[CurveMath] = None,
    ) -> None:
        self.account_name = account_name
        self.permission = permission
        self.authenticator = authenticator
        self.passkey_id = passkey_id
        self.public_key = public_key
        self.settings = settings or WalletSettings()
        self.curve_math = curve_math

    def login(
        self, chain_id: str, permission_source: Optional[PermissionSource] = None
    ) -> PermissionLevel:
        req_id = secrets.token_hex(4)
        _log("login", "start", req_id, actor=self.account_name, permission=self.permission)

        if not self.public_key:
            if permission_source is None:
                raise WalletStateError("No public key and no permission source to look it up")
            keys = permission_source.required_keys(chain_id, self.account_name, self.permission)
            if not keys:
                raise WalletStateError("No public keys found")
            # The first key of the permission is assumed to be the passkey.
            self.public_key = keys[0].key
            _log("login", "key.resolved", req_id, public_key=self.public_key)

        allow = [hex_to_bytes(self.passkey_id)] if self.passkey_id else []
        credential = self.authenticator.get_assertion(
            secrets.token_bytes(32), allow, self.settings.timeout_ms
        )
        if credential is None:
            raise WalletStateError("No credential found")
        self.passkey_id = bytes_to_hex(credential.rawId)

        _log("login", "success", req_id, passkey_id=self.passkey_id, public_key=self.public_key)
        return PermissionLevel(actor=self.account_name, permission=self.permission)

    def sign(self, chain_id: str, serialized_transaction: bytes) -> str:
        """Sign ``serialized_transaction`` for ``chain_id`` (hex) and return ``SIG_WA_`` text."""
        if not self.public_key or not self.passkey_id:
            raise WalletStateError("Haven't login yet!")
        req_id = secrets.token_hex(4)
        _log("sign", "start", req_id, chain_id=chain_id, size=len(serialized_transaction))

        digest = build_signing_digest(hex_to_bytes(chain_id), serialized_transaction)
        _log("sign", "digest", req_id, digest=digest.hex(), level=logging.DEBUG)
        assertion = self.authenticator.get_assertion(
            digest, [hex_to_bytes(self.passkey_id)], self.settings.timeout_ms
        )
        if assertion is None:
            raise WalletStateError("No assertion found")

        signature = assemble_signature(
            self.public_key, assertion, self.settings.curve, self.curve_math
        )
        _log("sign", "success", req_id, signature=signature)
        return signature
