"""
Device Exchange Configuration

Centralized configuration management using Pydantic Settings.
Environment variables are loaded here and accessed through the global `settings` instance.
The per-handler `IssuerConfig` is an immutable value built once and shared by all requests.
"""

import logging

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_PROPERTY = "user"
DEFAULT_SCOPE_SEPARATOR = " "


class IssuerConfig(BaseModel):
    """Immutable configuration of a device code exchange handler."""

    model_config = ConfigDict(frozen=True)

    # Name of the `request.state` attribute holding the authenticated client
    user_property: str = DEFAULT_USER_PROPERTY

    # Candidate scope separators, in priority order
    separators: tuple[str, ...] = (DEFAULT_SCOPE_SEPARATOR,)

    @field_validator("user_property")
    @classmethod
    def validate_user_property(cls, v: str) -> str:
        if not v:
            raise ValueError("user_property must be a non-empty string")
        return v

    @field_validator("separators", mode="before")
    @classmethod
    def normalize_separators(cls, v):
        """Accept a single separator string or an ordered list of them."""
        if v is None:
            return (DEFAULT_SCOPE_SEPARATOR,)
        if isinstance(v, str):
            v = [v]
        separators = tuple(v)
        if not separators:
            raise ValueError("at least one scope separator is required")
        if any(not isinstance(sep, str) or not sep for sep in separators):
            raise ValueError("scope separators must be non-empty strings")
        return separators


class ExchangeSettings(BaseSettings):
    """Device exchange settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # ==================== Exchange Settings ====================
    user_property: str = DEFAULT_USER_PROPERTY
    scope_separators: list[str] = [DEFAULT_SCOPE_SEPARATOR]  # JSON list in env, e.g. '[" ", ","]'

    # ==================== Server Settings ====================
    token_endpoint_path: str = "/oauth2/token"

    # API Prefix (e.g., "/auth", or empty string for no prefix)
    api_prefix: str = ""

    # ==================== Logging Settings ====================
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_format: str = "%(asctime)s,p%(process)s,{%(filename)s:%(lineno)d},%(levelname)s,%(message)s"

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        """Strip trailing slashes and ensure a leading slash on non-empty prefixes."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = f"/{v}"
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got '{v}'")
        return v.upper()

    @property
    def token_url(self) -> str:
        """Full path of the token endpoint including the API prefix."""
        return f"{self.api_prefix}{self.token_endpoint_path}"

    def issuer_config(self) -> IssuerConfig:
        """Build the immutable handler configuration from these settings."""
        return IssuerConfig(user_property=self.user_property, separators=self.scope_separators)

    def configure_logging(self) -> None:
        """Configure application-wide logging with consistent format and level.

        This should be called once at application startup. Individual modules
        then use logging.getLogger(__name__) without calling basicConfig again.
        """
        numeric_level = getattr(logging, self.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=numeric_level,
            format=self.log_format,
            force=True,  # Override any existing configuration
        )


# Global settings instance
settings = ExchangeSettings()
