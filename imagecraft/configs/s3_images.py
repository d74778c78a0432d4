"""
S3 images bucket configuration.

Settings for generated image storage and presigned download URLs.

Dependencies: pydantic_settings
System role: S3 images bucket configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class S3ImagesSettings(BaseSettings):
    """Settings for S3 generated-images bucket operations."""

    model_config = SettingsConfigDict(
        env_prefix="S3_IMAGES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Upload generated images to S3 (records are still created when disabled)",
    )
    bucket: str = Field(
        default="imagecraft-dev-images",
        description="S3 bucket for generated image storage",
    )
    region: str = Field(
        default="us-east-1",
        description="AWS region for S3 bucket",
    )
    presigned_url_expiry: int = Field(
        default=24 * 60 * 60,
        description="Presigned download URL expiry in seconds (default 24 hours)",
    )
