"""
Factory functions for application-scoped infrastructure services.
"""

from functools import lru_cache

from infrastructure.configuration import Settings


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    This is the single source of truth for settings across the entire process.
    The @lru_cache decorator ensures only ONE instance is created per process,
    even if called from multiple packages.

    Infrastructure packages should use this directly:
        from infrastructure.services.providers import get_settings
        settings = get_settings()

    Tests that need different values should build their own ``Settings``
    instance and pass it explicitly instead of mutating this one.

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()
