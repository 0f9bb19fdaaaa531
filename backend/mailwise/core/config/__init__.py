"""Configuration module for the Mailwise backend.

Provides centralized configuration management with type-safe enums.

Usage:
    from mailwise.core.config import settings, UsageStoreBackendType, Environment

    # Access settings
    if settings.USAGE_STORE_BACKEND == UsageStoreBackendType.MEMORY:
        ...

    # Use enums for type safety
    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from mailwise.core.config.enums import Environment, UsageStoreBackendType
from mailwise.core.config.settings import Settings

__all__ = [
    "Settings",
    "UsageStoreBackendType",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
