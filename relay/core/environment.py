"""Centralized environment detection.

Single source of truth for environment-related logic across the relay.
"""

import os
from typing import FrozenSet


class Environment:
    """Centralized environment configuration."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    TESTING = "testing"
    LOCAL = "local"

    # All valid environment names (whitelist)
    VALID: FrozenSet[str] = frozenset(
        {"production", "staging", "development", "dev", "testing", "test", "local"}
    )

    # Non-production environments (used for relaxed security checks)
    _NON_PROD: FrozenSet[str] = frozenset({"development", "dev", "local", "testing", "test"})

    # Development-mode environments (for debug features like diagnose)
    _DEV_MODE: FrozenSet[str] = frozenset({"development", "dev", "local", "test", "testing"})

    @classmethod
    def current(cls) -> str:
        """Get the current environment name, validated and lowercased.

        Returns:
            Validated environment name. Defaults to 'production' for unknown values.
        """
        env = os.getenv("ENV", cls.PRODUCTION).lower()
        if env not in cls.VALID:
            return cls.PRODUCTION
        return env

    @classmethod
    def current_raw(cls) -> str:
        """Get the raw current environment name without validation fallback."""
        return os.getenv("ENV", cls.PRODUCTION).lower()

    @classmethod
    def is_development(cls) -> bool:
        """Check if the current environment is development mode."""
        return cls.current() in cls._DEV_MODE

    @classmethod
    def is_non_production(cls, env: str) -> bool:
        """Check whether an explicit environment name is a relaxed (non-production) one."""
        return env.lower() in cls._NON_PROD
