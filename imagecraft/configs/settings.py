"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from imagecraft.configs.base import BaseSettings
from imagecraft.configs.database import DatabaseSettings
from imagecraft.configs.generation import GenerationSettings
from imagecraft.configs.providers import ProviderSettings
from imagecraft.configs.s3_images import S3ImagesSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = DatabaseSettings()
    s3_images: S3ImagesSettings = S3ImagesSettings()
    providers: ProviderSettings = ProviderSettings()
    generation: GenerationSettings = GenerationSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from imagecraft.configs import get_settings
        settings = get_settings()
    """
    return Settings()
