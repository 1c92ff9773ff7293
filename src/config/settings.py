"""Application settings using Pydantic BaseSettings."""

import ipaddress
import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.constants import DEFAULT_TIMEOUT_SECONDS, RECAPTCHA_VERIFY_URL, AddressPolicy

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "reCAPTCHA Verifier"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Demo server
    host: str = "127.0.0.1"
    port: int = 8100

    # reCAPTCHA
    recaptcha_site_key: str = ""
    recaptcha_secret: str = ""
    recaptcha_verify_url: str = RECAPTCHA_VERIFY_URL
    recaptcha_timeout: float = DEFAULT_TIMEOUT_SECONDS

    # Client address forwarding
    address_policy: AddressPolicy = AddressPolicy.NEVER
    trusted_proxies: list[str] = []

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}, got '{v}'")
        return upper

    @field_validator("trusted_proxies")
    @classmethod
    def validate_trusted_proxies(cls, v: list[str]) -> list[str]:
        for network in v:
            try:
                ipaddress.ip_network(network, strict=False)
            except ValueError as e:
                raise ValueError(f"trusted_proxies entry '{network}' is not a valid network") from e
        return v

    @model_validator(mode="after")
    def validate_timeout_positive(self) -> "Settings":
        if self.recaptcha_timeout <= 0:
            raise ValueError(f"recaptcha_timeout must be positive, got {self.recaptcha_timeout}")
        return self

    @model_validator(mode="after")
    def warn_untrusted_forwarded_for(self) -> "Settings":
        if (
            self.address_policy == AddressPolicy.TRUST_FORWARDED_FOR_LAST_HOP
            and not self.trusted_proxies
        ):
            logging.getLogger(__name__).warning(
                "X-Forwarded-For is trusted from any peer; consider setting trusted_proxies"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
