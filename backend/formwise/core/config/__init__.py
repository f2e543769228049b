"""Configuration module for Formwise backend.

Provides centralized configuration management with type-safe enums.

Usage:
    from formwise.core.config import settings, Environment

    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from formwise.core.config.enums import Environment
from formwise.core.config.settings import Settings

__all__ = [
    "Settings",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
