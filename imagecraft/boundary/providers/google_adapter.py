"""
Google image adapter.

Two model families share this adapter:
- Imagen (imagen-*): models.generate_images with a sample count, safety
  filter level, person generation policy and optional watermark / prompt
  enhancement / seed. Images removed by the responsible-AI filter are
  surfaced as a content-policy failure when nothing else came back.
- Gemini image models (gemini-*): models.generate_content with TEXT and
  IMAGE response modalities; token usage is reported in the result.

Vertex AI is used when a Google Cloud project is configured, otherwise
the Gemini Developer API key.

Dependencies: google-genai
System role: Google implementation of the provider adapter contract
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from imagecraft.boundary.providers.base import (
    GenerationResult,
    ProviderAdapter,
    ProviderOptions,
    RawImage,
)
from imagecraft.core.exceptions import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

IMAGEN_MAX_COUNT = 4
GEMINI_MAX_COUNT = 1
DEFAULT_SAFETY_SETTING = "BLOCK_MEDIUM_AND_ABOVE"
DEFAULT_PERSON_GENERATION = "ALLOW_ADULT"

# Options the Gemini Developer API rejects for generate_images
VERTEX_ONLY_OPTIONS = ("add_watermark", "enhance_prompt", "seed")


def is_gemini_model(model: str) -> bool:
    return model.startswith("gemini")


@dataclass
class GoogleImageOptions(ProviderOptions):
    """Options recognized by Imagen."""

    aspect_ratio: str | None = None
    safety_setting: str | None = None
    person_generation: str | None = None
    add_watermark: bool | None = None
    enhance_prompt: bool | None = None
    seed: int | None = None


class GoogleImageAdapter(ProviderAdapter):
    """Provider adapter for Google Imagen and Gemini image models."""

    name = "google"

    def __init__(
        self,
        api_key: str | None = None,
        project: str | None = None,
        location: str = "us-central1",
        default_model: str = "imagen-3.0-generate-002",
        timeout_seconds: float = 120.0,
        client: genai.Client | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            api_key: Gemini Developer API key
            project: Google Cloud project (selects Vertex AI)
            location: Vertex AI location
            default_model: Model used when the request names none
            timeout_seconds: Upper bound for one vendor call
            client: Optional pre-built genai client (tests)
        """
        super().__init__(default_model, timeout_seconds)
        self._vertex = project is not None
        if client is not None:
            self._client = client
        elif project:
            self._client = genai.Client(vertexai=True, project=project, location=location)
        elif api_key:
            self._client = genai.Client(api_key=api_key)
        else:
            self._client = None

    def max_count(self, model: str) -> int:
        return GEMINI_MAX_COUNT if is_gemini_model(model) else IMAGEN_MAX_COUNT

    def build_imagen_config(
        self,
        count: int,
        options: GoogleImageOptions,
    ) -> types.GenerateImagesConfig:
        """GenerateImagesConfig for an Imagen call."""
        config: dict[str, Any] = {
            "number_of_images": count,
            "safety_filter_level": (options.safety_setting or DEFAULT_SAFETY_SETTING).upper(),
            "person_generation": (
                options.person_generation or DEFAULT_PERSON_GENERATION
            ).upper(),
            "include_rai_reason": True,
        }
        if options.aspect_ratio:
            config["aspect_ratio"] = options.aspect_ratio
        for key in VERTEX_ONLY_OPTIONS:
            value = getattr(options, key)
            if value is not None and self._vertex:
                config[key] = value
        return types.GenerateImagesConfig(**config)

    async def _generate(
        self,
        prompt: str,
        model: str,
        count: int,
        options: Mapping[str, Any],
    ) -> GenerationResult:
        if self._client is None:
            raise ProviderError(
                "Google API credentials not configured", self.name, ProviderErrorKind.AUTH
            )
        if is_gemini_model(model):
            return await self._generate_gemini(prompt, model)
        return await self._generate_imagen(
            prompt, model, count, GoogleImageOptions.from_bag(options)
        )

    async def _generate_imagen(
        self,
        prompt: str,
        model: str,
        count: int,
        options: GoogleImageOptions,
    ) -> GenerationResult:
        response = await self._client.aio.models.generate_images(
            model=model,
            prompt=prompt,
            config=self.build_imagen_config(count, options),
        )

        images = []
        filtered_reasons = []
        for generated in response.generated_images or []:
            image = generated.image
            if image is not None and image.image_bytes:
                images.append(
                    RawImage(data=image.image_bytes, mime_type=image.mime_type or "image/png")
                )
            elif generated.rai_filtered_reason:
                filtered_reasons.append(generated.rai_filtered_reason)

        if not images and filtered_reasons:
            raise ProviderError(
                f"Image blocked by safety filter: {filtered_reasons[0]}",
                self.name,
                ProviderErrorKind.CONTENT_POLICY,
                {"rai_filtered_reasons": filtered_reasons},
            )
        return GenerationResult.ok(model, images, {"filtered": len(filtered_reasons)})

    async def _generate_gemini(self, prompt: str, model: str) -> GenerationResult:
        response = await self._client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )

        images = []
        for candidate in response.candidates or []:
            if candidate.content is None:
                continue
            for part in candidate.content.parts or []:
                inline = part.inline_data
                if inline is not None and inline.data:
                    images.append(
                        RawImage(data=inline.data, mime_type=inline.mime_type or "image/png")
                    )

        usage: dict[str, Any] = {}
        metadata = response.usage_metadata
        if metadata is not None:
            usage = {
                "prompt_tokens": metadata.prompt_token_count,
                "output_tokens": metadata.candidates_token_count,
                "total_tokens": metadata.total_token_count,
            }
        return GenerationResult.ok(model, images, usage)

    def classify_error(self, exc: Exception) -> ProviderError:
        if isinstance(exc, genai_errors.APIError):
            message = exc.message or str(exc)
            code = exc.code
            if code in (401, 403):
                kind = ProviderErrorKind.AUTH
            elif code == 429:
                kind = ProviderErrorKind.QUOTA
            elif code == 400 and ("safety" in message.lower() or "blocked" in message.lower()):
                kind = ProviderErrorKind.CONTENT_POLICY
            elif isinstance(exc, genai_errors.ClientError):
                kind = ProviderErrorKind.INVALID_REQUEST
            elif isinstance(exc, genai_errors.ServerError):
                kind = ProviderErrorKind.UNAVAILABLE
            else:
                kind = ProviderErrorKind.UNKNOWN
        elif isinstance(exc, ValueError):
            message = str(exc)
            kind = ProviderErrorKind.INVALID_REQUEST
        else:
            message = str(exc) or type(exc).__name__
            kind = ProviderErrorKind.UNKNOWN

        return ProviderError(f"Google error: {message}", self.name, kind)
