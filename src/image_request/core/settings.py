"""Environment-based configuration for the image request pipeline."""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

_TRUE_FLAGS = {"yes", "true", "1", "on", "y"}
_FALSE_FLAGS = {"no", "false", "0", "off", "n", ""}


class HandlerSettings(BaseSettings):
    """Handler options read from environment variables (case-insensitive).

    Flags use the deployment's ``Yes``/``No`` convention.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Comma-separated allow-list, e.g. "bucket-a, bucket-b"
    source_buckets: str = ""

    # Signing
    enable_signature: bool = False
    secrets_manager: Optional[str] = None
    secret_key: Optional[str] = None
    secret_timeout_seconds: float = Field(default=3.0, gt=0)

    # Fallback image
    enable_default_fallback_image: bool = False
    fallback_image_bucket: Optional[str] = None
    fallback_image_key: Optional[str] = None
    fallback_image_status_code: Optional[int] = Field(default=None, ge=100, le=599)
    fallback_cache_control: str = "no-store"

    # Output
    auto_webp: bool = False
    cache_control: str = "max-age=31536000,public"

    @field_validator(
        "enable_signature", "enable_default_fallback_image", "auto_webp", mode="before"
    )
    @classmethod
    def _parse_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in _TRUE_FLAGS:
                return True
            if normalized in _FALSE_FLAGS:
                return False
        return value

    @model_validator(mode="after")
    def _check_dependent_options(self) -> "HandlerSettings":
        if self.enable_signature and not self.secrets_manager:
            raise ValueError("ENABLE_SIGNATURE requires SECRETS_MANAGER to be set")
        if self.enable_default_fallback_image and not (
            self.fallback_image_bucket and self.fallback_image_key
        ):
            raise ValueError(
                "ENABLE_DEFAULT_FALLBACK_IMAGE requires FALLBACK_IMAGE_BUCKET and FALLBACK_IMAGE_KEY"
            )
        return self

    @property
    def allowed_buckets(self) -> Tuple[str, ...]:
        return tuple(b.strip() for b in self.source_buckets.split(",") if b.strip())

    def is_bucket_allowed(self, bucket: str) -> bool:
        return bucket in self.allowed_buckets


def load_settings(**overrides: Any) -> HandlerSettings:
    """
    Load settings from the environment, applying keyword overrides.

    Raises:
        ConfigurationError: If the options are invalid or inconsistent.
    """
    try:
        return HandlerSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid handler configuration: {e}") from e
