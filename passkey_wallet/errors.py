"""Exception types raised by the passkey wallet codecs."""

from __future__ import annotations

from typing import Any, Optional


class PasskeyWalletError(ValueError):
    """Base class for deterministic validation failures.

    ``field``, ``expected`` and ``actual`` are optional hints for rendering a
    precise message to the user.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.expected = expected
        self.actual = actual


class MalformedHexError(PasskeyWalletError):
    pass


class InvalidBase58SymbolError(PasskeyWalletError):
    pass


class ValueOutOfRangeError(PasskeyWalletError):
    pass


class BufferUnderrunError(PasskeyWalletError):
    pass


class ChecksumMismatchError(PasskeyWalletError):
    pass


class UnrecognizedKeyFormatError(PasskeyWalletError):
    pass


class UnsupportedKeyFormatError(PasskeyWalletError):
    pass


class AttestedCredentialMissingError(PasskeyWalletError):
    pass


class CredentialIdMismatchError(PasskeyWalletError):
    pass


class UnsupportedCOSEAlgorithmError(PasskeyWalletError):
    pass


class InvalidCoordinateLengthError(PasskeyWalletError):
    pass


class BadSignatureEncodingError(PasskeyWalletError):
    pass


class BadSignatureLengthError(PasskeyWalletError):
    pass


class SignatureComponentTooLargeError(PasskeyWalletError):
    pass


class RecoveryIdNotFoundError(PasskeyWalletError):
    pass


class WalletStateError(RuntimeError):
    """Raised when the wallet is used out of order (e.g. signing before login)."""
