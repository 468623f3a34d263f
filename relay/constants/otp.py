"""OTP-related constants."""

from typing import Final


class OTP:
    """OTP service defaults (overridable through settings)."""

    CODE_LENGTH: Final[int] = 6
    TTL_SECONDS: Final[int] = 300
    CONSUMED_RETENTION_SECONDS: Final[int] = 60
    CLEANUP_INTERVAL_SECONDS: Final[int] = 300
    IDENTIFIER_BYTES: Final[int] = 16


class RateLimits:
    """Per-client-IP limits on the OTP endpoints (slowapi notation)."""

    SEND_OTP: Final[str] = "5/minute"
    VERIFY_OTP: Final[str] = "10/minute"
