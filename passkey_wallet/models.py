"""Models shared across passkey wallet modules."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from .errors import InvalidCoordinateLengthError, UnsupportedKeyFormatError
from .serial_buffer import SerialBuffer

COORDINATE_SIZE = 32
RECOVERY_HEADER_OFFSET = 27 + 4


class UserPresence(enum.IntEnum):
    NONE = 0
    PRESENT = 1
    VERIFIED = 2


class KeyWeight(BaseModel):
    key: str
    weight: int = Field(default=1, ge=0)


class PermissionLevel(BaseModel):
    actor: str
    permission: str


class RegisteredKey(BaseModel):
    credential_id: str = Field(description="Upper-case hex credential id")
    key: str = Field(description="PUB_WA_ text public key")


class AttestationResponse(BaseModel):
    rawId: bytes
    attestationObject: bytes
    clientDataJSON: bytes


class AssertionResponse(BaseModel):
    rawId: bytes
    authenticatorData: bytes
    clientDataJSON: bytes
    signature: bytes
    userHandle: Optional[bytes] = None


@dataclass(frozen=True)
class CompactWebAuthnPublicKey:
    """Compressed P-256 point bound to a presence level and relying party."""

    point_prefix: int
    x: bytes
    presence: UserPresence
    relying_party_id: str

    @property
    def point(self) -> bytes:
        return bytes([self.point_prefix]) + self.x

    def to_bytes(self) -> bytes:
        if self.point_prefix not in (2, 3):
            raise UnsupportedKeyFormatError(
                "point prefix must be 2 or 3", field="point_prefix", actual=self.point_prefix
            )
        if len(self.x) != COORDINATE_SIZE:
            raise InvalidCoordinateLengthError(
                "X coordinate has invalid size",
                field="x",
                expected=COORDINATE_SIZE,
                actual=len(self.x),
            )
        ser = SerialBuffer()
        ser.push(self.point_prefix)
        ser.push_array(self.x)
        ser.push(int(self.presence))
        ser.push_string(self.relying_party_id)
        return ser.as_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "CompactWebAuthnPublicKey":
        ser = SerialBuffer(data)
        point_prefix = ser.get()
        if point_prefix not in (2, 3):
            raise UnsupportedKeyFormatError(
                "point prefix must be 2 or 3", field="point_prefix", actual=point_prefix
            )
        x = ser.get_array(COORDINATE_SIZE)
        presence_value = ser.get()
        try:
            presence = UserPresence(presence_value)
        except ValueError as exc:
            raise UnsupportedKeyFormatError(
                "unknown user presence level", field="presence", actual=presence_value
            ) from exc
        return cls(
            point_prefix=point_prefix,
            x=x,
            presence=presence,
            relying_party_id=ser.get_string(),
        )


@dataclass(frozen=True)
class RecoverableSignature:
    recovery_header: int
    r: bytes
    s: bytes
    authenticator_data: bytes
    client_data_json: bytes

    @property
    def recovery_id(self) -> int:
        return self.recovery_header - RECOVERY_HEADER_OFFSET

    def to_bytes(self) -> bytes:
        ser = SerialBuffer()
        ser.push(self.recovery_header)
        ser.push_array(self.r)
        ser.push_array(self.s)
        ser.push_bytes(self.authenticator_data)
        ser.push_bytes(self.client_data_json)
        return ser.as_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "RecoverableSignature":
        ser = SerialBuffer(data)
        return cls(
            recovery_header=ser.get(),
            r=ser.get_array(COORDINATE_SIZE),
            s=ser.get_array(COORDINATE_SIZE),
            authenticator_data=ser.get_bytes(),
            client_data_json=ser.get_bytes(),
        )
