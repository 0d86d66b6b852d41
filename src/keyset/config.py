"""Environment configuration for key set consumers.

Values are loaded from environment variables or a local ``.env`` file.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from keyset.policy import OrderingPolicy, policy_by_name


class KeySetSettings(BaseSettings):
    """Top-level configuration container for key set loading and storage."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        frozen=True,
        extra="ignore",
    )

    order: str = Field(alias="KEYSET_ORDER", default="by_inputs")
    # Re-validate order and uniqueness when decoding (slower; for untrusted bytes)
    strict_decode: bool = Field(alias="KEYSET_STRICT_DECODE", default=False)
    verify_policy: bool = Field(alias="KEYSET_VERIFY_POLICY", default=False)

    database_url: str | None = Field(alias="KEYSET_DATABASE_URL", default=None)
    archive_dir: str = Field(alias="KEYSET_ARCHIVE_DIR", default="./var/keyset")

    @field_validator("order")
    @classmethod
    def _known_order(cls, value: str) -> str:
        try:
            policy_by_name(value)
        except KeyError as exc:
            raise ValueError(str(exc.args[0])) from exc
        return value

    def ordering_policy(self) -> OrderingPolicy:
        return policy_by_name(self.order)


__all__ = ["KeySetSettings"]
