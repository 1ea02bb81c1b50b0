"""
Configuration module for the OAuth sample application.

Two sources feed the application:

- ``Settings``: Pydantic Settings loaded from environment variables (or a
  ``.env`` file) for the session secret, endpoints, timeouts and server
  binding.
- ``ClientCredentials``: the OIDC client registration read from a local JSON
  file (``config.json`` by default).

Both are loaded once at startup and passed explicitly into the application
factory.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class OAuthSampleError(Exception):
    """Base exception for startup failures"""
    pass


class ConfigurationError(OAuthSampleError):
    """Raised when required configuration is missing or malformed"""
    pass


# =============================================================================
# Environment Settings
# =============================================================================

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every value that used to be hard-coded in the sample (session secret,
    redirect URI, discovery and downstream URLs) is supplied here.
    """

    # =========================================================================
    # Session Cookie Configuration
    # =========================================================================

    SESSION_SECRET: str = Field(
        ...,
        description="Secret key used to sign the session cookie",
        min_length=16,
    )

    SESSION_COOKIE_NAME: str = Field(
        default="oauth_sample_session",
        description="Name of the session cookie",
        min_length=1,
    )

    SESSION_MAX_AGE_SECONDS: int = Field(
        default=14 * 24 * 60 * 60,
        description="Lifetime of the session cookie and of the server-side principal it points to",
        gt=0,
    )

    # =========================================================================
    # Local Files
    # =========================================================================

    CONFIG_FILE: str = Field(
        default="config.json",
        description="Path of the JSON file holding client_id, client_secret and identity_provider",
    )

    LOCAL_METADATA_FILE: str = Field(
        default="local-metadata.json",
        description="Path of the OpenID discovery document used with --local",
    )

    # =========================================================================
    # Identity Provider Configuration
    # =========================================================================

    DISCOVERY_URL: str = Field(
        default="https://dev-api.va.gov/oauth2/.well-known/openid-configuration",
        description="Well-known OpenID configuration URL of the identity provider",
    )

    REDIRECT_URI: str = Field(
        default="http://localhost:8080/auth/cb",
        description="Redirect URI registered for the client",
    )

    OIDC_SCOPES: str = Field(
        default="openid profile veteran_status.read",
        description="Space separated scopes requested at login",
    )

    # =========================================================================
    # Downstream Service Configuration
    # =========================================================================

    VETERAN_STATUS_URL: str = Field(
        default="https://dev-api.va.gov/services/veteran_verification/v0/status",
        description="Veteran status endpoint called with the user's access token",
    )

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=2.5,
        description="Timeout applied to every outbound HTTP call",
        gt=0,
        le=60,
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    HOST: str = Field(
        default="localhost",
        description="Host to bind the server",
    )

    PORT: int = Field(
        default=8080,
        description="Port to bind the server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate the logging level name.

        Raises:
            ValueError: If the level is not a standard logging level
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.upper()
        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )
        return level

    @field_validator("OIDC_SCOPES")
    @classmethod
    def validate_scopes(cls, v: str) -> str:
        """Require the openid scope so the provider issues identity claims."""
        scopes = v.split()
        if "openid" not in scopes:
            raise ValueError("OIDC_SCOPES must include 'openid'")
        return " ".join(scopes)


@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Raises:
        ConfigurationError: If required environment variables are missing
                            or invalid.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e


# =============================================================================
# Client Credentials File
# =============================================================================

class ClientCredentials(BaseModel):
    """OIDC client registration loaded from the local config file."""

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1)
    identity_provider: Optional[str] = Field(
        None,
        description="Optional idp hint forwarded to the authorization endpoint",
    )

    @field_validator("identity_provider")
    @classmethod
    def blank_identity_provider_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


def load_client_credentials(path: Union[str, Path]) -> ClientCredentials:
    """
    Read client credentials from a JSON file.

    Args:
        path: Location of the config file

    Returns:
        Validated ClientCredentials

    Raises:
        ConfigurationError: If the file is missing, not JSON, or lacks
                            client_id / client_secret
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {e}") from e

    try:
        credentials = ClientCredentials.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Config file {path} is invalid: {e}") from e

    logger.debug(f"Loaded client credentials from {path}")
    return credentials
