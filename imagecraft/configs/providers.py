"""
Provider configuration settings.

Credentials, default models and call timeouts for the image-generation
vendors (OpenAI, Google).

Dependencies: pydantic_settings
System role: Vendor adapter configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """Image provider credentials and call limits."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_default_model: str = Field(
        default="dall-e-2",
        description="Model used when a request names no OpenAI model",
    )

    google_api_key: str | None = Field(
        default=None,
        description="Gemini Developer API key (used when Vertex AI is not configured)",
    )
    google_cloud_project: str | None = Field(
        default=None,
        description="Google Cloud project for Vertex AI Imagen",
    )
    google_cloud_location: str = Field(
        default="us-central1",
        description="Vertex AI location",
    )
    google_default_model: str = Field(
        default="imagen-3.0-generate-002",
        description="Model used when a request names no Google model",
    )

    provider_timeout_seconds: float = Field(
        default=120.0,
        description="Upper bound for a single provider generate() call",
    )
