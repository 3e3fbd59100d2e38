"""
Kompo configuration: all environment variables in one place.

Read from environment at import time. Never hardcode secrets.
"""

from __future__ import annotations

import os


def _flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./kompo.db")

    # BootInfo signing
    KOMPO_SECRET: str = os.environ.get("KOMPO_SECRET", "")
    BOOT_INFO_ALGORITHM: str = "HS256"

    # Field behaviour
    SMART_READONLY_FIELDS: bool = _flag("KOMPO_SMART_READONLY_FIELDS", False)
    DEDUPLICATE_RULES: bool = _flag("KOMPO_DEDUPLICATE_RULES", False)

    # Dispatch
    ISOLATE_BATCH_FAILURES: bool = _flag("KOMPO_ISOLATE_BATCH_FAILURES", True)

    # Queries
    QUERY_PER_PAGE: int = int(os.environ.get("KOMPO_QUERY_PER_PAGE", "15"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def secret(self) -> str:
        if self.KOMPO_SECRET:
            return self.KOMPO_SECRET
        return "kompo-development-secret-not-for-production"


# Singleton instance
settings = Settings()

if settings.ENVIRONMENT != "development" and not settings.KOMPO_SECRET:
    raise RuntimeError("KOMPO_SECRET environment variable is required outside development")
