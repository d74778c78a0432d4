"""
Generation configuration settings.

Settings for the fan-out orchestrator, image retention policy,
credit costs and the polling read model.

Dependencies: pydantic_settings
System role: Generation pipeline configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GenerationSettings(BaseSettings):
    """Orchestrator, retention and polling configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GENERATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    image_width: int = Field(default=1024, description="Requested image width")
    image_height: int = Field(default=1024, description="Requested image height")

    free_ttl_minutes: int = Field(
        default=10,
        description="Auto-delete delay for images created by free-tier users",
    )
    paid_ttl_days: int = Field(
        default=30,
        description="Auto-delete delay for images created by paid-tier users",
    )

    credit_cost_per_image: int = Field(
        default=1,
        description="Credits consumed per requested image",
    )
    credits_enabled: bool = Field(
        default=True,
        description="Reserve credits before calling a provider",
    )

    poll_interval_seconds: float = Field(
        default=2.0,
        description="Interval between read-model polls (SSE stream and client poller)",
    )
    poll_timeout_seconds: float = Field(
        default=600.0,
        description="Give up polling a message after this many seconds",
    )
    shutdown_grace_seconds: float = Field(
        default=10.0,
        description="How long shutdown waits for in-flight generations before cancelling",
    )

    cron_secret: str | None = Field(
        default=None,
        description="Bearer token required by the expired-image cleanup endpoint",
    )
    cleanup_batch_size: int = Field(
        default=100,
        description="Maximum expired images processed per cleanup run",
    )
