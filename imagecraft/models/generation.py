"""
Generation request/response schemas.

Dependencies: pydantic
System role: Generation API contracts
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class GenerationRequest(BaseModel):
    """
    Request to fan one prompt out to several providers.

    Accepts snake_case or camelCase keys (sessionId, imageCount, ...).

    Attributes:
        session_id: Chat session the message belongs to
        prompt: Text prompt (non-empty after stripping)
        providers: Ordered, unique provider names
        models: Provider -> model id; missing providers use the adapter default
        image_count: Provider -> requested image count (default 1)
        model_options: Provider -> option bag, passed to the adapter untouched
        user_id: Requesting user (taken from the X-User-Id header by the API)
        message_id: Optional client-assigned message id (idempotency key)
        source_image: Edit-mode source image; not supported
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: UUID
    prompt: str
    providers: list[str] = Field(min_length=1)
    models: dict[str, str] = Field(default_factory=dict)
    image_count: dict[str, int] = Field(default_factory=dict)
    model_options: dict[str, dict[str, Any]] = Field(default_factory=dict)
    user_id: UUID | None = None
    message_id: UUID | None = None
    source_image: str | None = None

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Prompt is required")
        return value

    @field_validator("providers")
    @classmethod
    def providers_unique(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("Providers must be unique")
        return value

    @field_validator("image_count")
    @classmethod
    def counts_positive(cls, value: dict[str, int]) -> dict[str, int]:
        for provider, count in value.items():
            if count < 1:
                raise ValueError(f"Image count for {provider} must be at least 1")
        return value

    @model_validator(mode="after")
    def reject_edit_mode(self) -> "GenerationRequest":
        if self.source_image:
            raise ValueError("Image editing is not supported by this endpoint")
        return self

    def count_for(self, provider: str) -> int:
        return self.image_count.get(provider, 1)

    def model_for(self, provider: str) -> str | None:
        return self.models.get(provider)

    def options_for(self, provider: str) -> dict[str, Any]:
        return self.model_options.get(provider, {})

    def metadata_echo(self) -> dict[str, Any]:
        """Request fields stored on the message for reconnecting clients."""
        return {
            "prompt": self.prompt,
            "providers": list(self.providers),
            "models": dict(self.models),
            "imageCount": dict(self.image_count),
            "modelOptions": dict(self.model_options),
        }


class GenerationStartedResponse(BaseModel):
    """Response for an accepted generation."""

    message_id: UUID
