"""
Configuration module for the Telegram relay.

This module uses Pydantic Settings to load and validate environment variables
for the bot access token, the fixed destination chat, outbound HTTP behaviour,
and CORS settings.

Environment variables are loaded from .env file or system environment.
The resulting object is read-only for the lifetime of the process and is
handed explicitly to the forwarder and the file proxy.
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    TELEGRAM_TOKEN and TELEGRAM_CHAT_ID are required for the relay to do
    anything useful, but their absence does not prevent startup: it is
    reported by validate_configuration() and logged as critical.
    """

    # =========================================================================
    # Telegram Bot API
    # =========================================================================

    TELEGRAM_TOKEN: str = Field(
        default="",
        description="Bot access token issued by @BotFather",
    )

    TELEGRAM_CHAT_ID: str = Field(
        default="",
        description="Chat every outgoing message is delivered to",
    )

    TELEGRAM_API_URL: HttpUrl = Field(
        default="https://api.telegram.org",
        description="Bot API host (override for a self-hosted Bot API server)",
    )

    # =========================================================================
    # Relay Server Configuration
    # =========================================================================

    RELAY_PUBLIC_URL: Optional[str] = Field(
        default=None,
        description="Public base URL of this relay, used to build absolute file links",
    )

    RELAY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the relay server",
    )

    RELAY_PORT: int = Field(
        default=8080,
        description="Port to bind the relay server",
        ge=1,
        le=65535,
    )

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    # =========================================================================
    # Outbound HTTP
    # =========================================================================

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        description="Read timeout for calls to the Bot API (must exceed the long-poll timeout)",
        gt=0,
    )

    GET_UPDATES_TIMEOUT: int = Field(
        default=25,
        description="Default long-poll timeout passed to getUpdates",
        ge=0,
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
    # Computed Properties
    # =========================================================================

    @property
    def telegram_api_url_str(self) -> str:
        """Bot API host as string without trailing slash."""
        return str(self.TELEGRAM_API_URL).rstrip("/")

    @property
    def api_base(self) -> str:
        """
        Base URL for Bot API methods.

        Contains the access token, so it must never leave the process.
        """
        return f"{self.telegram_api_url_str}/bot{self.TELEGRAM_TOKEN}"

    @property
    def file_base(self) -> str:
        """Base URL for Bot API file downloads. Contains the access token."""
        return f"{self.telegram_api_url_str}/file/bot{self.TELEGRAM_TOKEN}"

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    def redact(self, text: str) -> str:
        """Replace every occurrence of the access token in text."""
        if not self.TELEGRAM_TOKEN or not text:
            return text
        return text.replace(self.TELEGRAM_TOKEN, "<redacted>")

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate LOG_LEVEL is a standard logging level name.

        Raises:
            ValueError: If the level is not recognised
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}, got: {v}")
        return v

    @field_validator("TELEGRAM_TOKEN", "TELEGRAM_CHAT_ID")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If an environment variable is present but invalid.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> Dict[str, Any]:
    """
    Validate critical configuration settings and return a status report.

    Called during application startup. Errors are logged as critical but do
    not stop the process; every relayed call will then fail at the Bot API.

    Returns:
        Dictionary with validation status, errors and warnings.

    Example:
        >>> report = validate_configuration(Settings(_env_file=None))
        >>> report["valid"]
        False
    """
    errors = []
    warnings = []

    if not settings.TELEGRAM_TOKEN:
        errors.append("TELEGRAM_TOKEN is not set")

    if not settings.TELEGRAM_CHAT_ID:
        errors.append("TELEGRAM_CHAT_ID is not set")

    if settings.HTTP_TIMEOUT_SECONDS <= settings.GET_UPDATES_TIMEOUT:
        warnings.append(
            "HTTP_TIMEOUT_SECONDS does not exceed GET_UPDATES_TIMEOUT; "
            "long polls will time out locally"
        )

    if "*" in settings.allowed_origins_list:
        warnings.append("CORS allows every origin")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }
