"""Configuration for the passkey wallet."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WalletSettings(BaseSettings):
    """Runtime settings for registration and signing."""

    model_config = SettingsConfigDict(env_prefix="PASSKEY_WALLET_")

    rp_id: str = Field(default="localhost", description="Relying Party identifier")
    origin: str = Field(
        default="http://localhost:3000",
        description="Origin written into clientDataJSON by the software authenticator",
    )
    timeout_ms: int = Field(
        default=60_000, description="Timeout passed to the platform authenticator"
    )
    curve: Literal["k1", "r1"] = Field(
        default="r1", description="Curve used for signature recovery"
    )
    attestation_header_length: int = Field(
        default=0,
        ge=0,
        description="Bytes to skip before the rpIdHash when parsing authData",
    )
