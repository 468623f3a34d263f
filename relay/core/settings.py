"""Application settings with Pydantic validation."""

from typing import Any, List, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import OTP, RateLimits, WhatsAppWeb
from .environment import Environment


class RelaySettings(BaseSettings):
    """Relay settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production",
        description="Environment (production, staging, development, dev, testing, test, local)",
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    # HTTP server
    host: str = Field(default="0.0.0.0", description="Interface the HTTP facade binds to")
    port: int = Field(default=3001, description="Port the HTTP facade listens on")

    # CORS Configuration
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # API Security
    api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("api_key", "vps_api_key"),
        description="Static API key required on every non-health endpoint",
    )

    # WhatsApp session
    session_path: str = Field(
        default=".wwebjs_auth",
        description="Directory where the browser profile holding the paired session lives",
    )
    client_id: str = Field(
        default=WhatsAppWeb.DEFAULT_CLIENT_ID,
        description="Session name; one browser profile per client id",
    )
    headless: bool = Field(default=True, description="Run Chromium headless")
    browser_launch_timeout_ms: int = Field(
        default=60000, ge=1000, description="Chromium launch and first navigation timeout"
    )
    auth_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds allowed between a scanned QR code and a usable chat pane",
    )

    # Phone normalization
    default_country_code: str = Field(
        default="62", description="Country calling code assumed when a number has no '+' prefix"
    )
    trunk_prefix: str = Field(
        default="0", description="National trunk prefix replaced by the default country code"
    )

    # OTP
    app_name: str = Field(default="Barlink", description="Application name shown in OTP messages")
    otp_length: int = Field(default=OTP.CODE_LENGTH, ge=4, le=10)
    otp_ttl_seconds: int = Field(default=OTP.TTL_SECONDS, ge=30)
    otp_consumed_retention_seconds: float = Field(
        default=OTP.CONSUMED_RETENTION_SECONDS,
        ge=0,
        description="Grace window a verified OTP is kept before deletion",
    )
    otp_cleanup_interval_seconds: int = Field(default=OTP.CLEANUP_INTERVAL_SECONDS, ge=1)

    # Message delivery
    send_max_retries: int = Field(
        default=2, ge=0, le=10, description="Retries after the first send attempt"
    )
    send_retry_delay: float = Field(
        default=2.0, ge=0, description="Initial delay between send attempts in seconds"
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")
    otp_send_rate_limit: str = Field(
        default=RateLimits.SEND_OTP, description="send-otp limit per client IP"
    )
    otp_verify_rate_limit: str = Field(
        default=RateLimits.VERIFY_OTP, description="verify-otp limit per client IP"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=True, description="Write the rotating log file as JSON lines")
    log_dir: str = Field(default="logs", description="Directory for log files")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        env = v.lower()
        if env not in Environment.VALID:
            raise ValueError(f'ENV must be one of: {", ".join(sorted(Environment.VALID))}')
        return env

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("default_country_code")
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        """Validate country calling code (digits only, optional leading '+')."""
        code = v.strip().lstrip("+")
        if not code.isdigit() or not 1 <= len(code) <= 3:
            raise ValueError("DEFAULT_COUNTRY_CODE must be 1-3 digits, e.g. 62")
        return code

    @field_validator("trunk_prefix")
    @classmethod
    def validate_trunk_prefix(cls, v: str) -> str:
        v = v.strip()
        if v and not v.isdigit():
            raise ValueError("TRUNK_PREFIX must contain digits only")
        return v

    @field_validator("api_key")
    @classmethod
    def blank_api_key_is_none(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Treat an empty API_KEY as not configured."""
        if v is not None and not v.get_secret_value().strip():
            return None
        return v

    @model_validator(mode="after")
    def ensure_api_key_in_production(self) -> "RelaySettings":
        """
        Refuse to start without an API key in production/staging.

        Development and testing fall back to an open API with a warning at request time.

        Raises:
            ValueError: If API_KEY is missing in production/staging
        """
        if self.env in ("production", "staging") and self.api_key is None:
            raise ValueError(
                "API_KEY is required in production/staging. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        return self

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS allowed origins as a list, with security validation.

        Returns:
            List of validated allowed origin URLs
        """
        from relay_web.cors import validate_cors_origins

        return validate_cors_origins(self.allowed_origins, env=self.env)

    def get_api_key(self) -> Optional[str]:
        """Plain API key value, or None when authentication is disabled."""
        return self.api_key.get_secret_value() if self.api_key else None

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return Environment.is_non_production(self.env)


# Singleton instance
_settings: Optional[RelaySettings] = None


def get_settings() -> RelaySettings:
    """
    Get application settings singleton.

    Returns:
        RelaySettings instance

    Raises:
        ValidationError: If required settings are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = RelaySettings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
