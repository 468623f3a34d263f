"""CORS validation utilities for the relay HTTP facade."""

import re
from typing import List, Optional

from loguru import logger

from relay.core.environment import Environment

# Comprehensive localhost detection pattern
_LOCALHOST_PATTERN = re.compile(
    r"^https?://"
    r"(localhost(?=[.:/]|$)|127\.0\.0\.1|(\[::1\]|::1)|0\.0\.0\.0)"
    r"(:\d+)?"
    r"(/.*)?$",
    re.IGNORECASE,
)


def get_validated_environment(env: Optional[str] = None) -> str:
    """
    Get and validate environment name with whitelist check.

    Args:
        env: Explicit environment name (defaults to the ENV variable)

    Returns:
        Validated environment name (defaults to 'production' for unknown values)
    """
    name = (env or Environment.current_raw()).lower()
    if name not in Environment.VALID:
        logger.warning(f"Unknown environment '{name[:50]}', defaulting to 'production' for security")
        return Environment.PRODUCTION
    return name


def _is_localhost_origin(origin: str) -> bool:
    """Check if origin is a localhost variant (including IPv6)."""
    if "://" in origin:
        after_protocol = origin.split("://", 1)[1]
        hostname = after_protocol.split(":")[0].split("/")[0].lower()
        # localhost.evil.com style subdomain bypass
        if hostname.startswith("localhost.") or hostname.endswith(".localhost"):
            return True
    return bool(_LOCALHOST_PATTERN.match(origin))


def validate_cors_origins(origins_str: str, env: Optional[str] = None) -> List[str]:
    """
    Validate and parse CORS origins, blocking wildcard and localhost in production.

    Args:
        origins_str: Comma-separated list of allowed origins
        env: Environment name (defaults to the ENV variable)

    Returns:
        List of validated origin strings

    Raises:
        ValueError: If wildcard is used in production environment
    """
    env = get_validated_environment(env)

    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]

    # Fail-fast: Block wildcard in production BEFORE filtering
    if env == Environment.PRODUCTION and "*" in origins:
        raise ValueError("Wildcard CORS origin ('*') not allowed in production")

    if not Environment.is_non_production(env):
        invalid = [o for o in origins if o == "*" or _is_localhost_origin(o)]

        if invalid:
            logger.warning(f"Removing insecure CORS origins in {env}: {invalid}")
            origins = [o for o in origins if o not in invalid]

            if not origins:
                logger.error("All CORS origins were insecure and removed. Using empty list.")

    return origins
