"""
OpenAI image adapter.

Wraps AsyncOpenAI images.generate for the DALL-E family and gpt-image-1.
DALL-E responses are requested as base64 so images never depend on
short-lived vendor URLs. A failed dall-e-3 call is retried once on
dall-e-2.

Dependencies: openai
System role: OpenAI implementation of the provider adapter contract
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import openai
from openai import AsyncOpenAI

from imagecraft.boundary.providers.base import (
    GenerationResult,
    ProviderAdapter,
    ProviderOptions,
    RawImage,
)
from imagecraft.core.exceptions import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

MODEL_MAX_COUNT = {
    "dall-e-3": 1,
    "dall-e-2": 10,
    "gpt-image-1": 10,
}
FALLBACK_MODELS = {"dall-e-3": "dall-e-2"}
NO_FALLBACK_KINDS = {ProviderErrorKind.AUTH, ProviderErrorKind.CONTENT_POLICY}


@dataclass
class OpenAIImageOptions(ProviderOptions):
    """Options recognized by the OpenAI images endpoint."""

    quality: str | None = None
    style: str | None = None
    size: str | None = None
    moderation: str | None = None


class OpenAIImageAdapter(ProviderAdapter):
    """Provider adapter for OpenAI image models."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str = "dall-e-2",
        timeout_seconds: float = 120.0,
        default_size: str = "1024x1024",
        client: AsyncOpenAI | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            api_key: OpenAI API key (calls fail with an auth error when absent)
            default_model: Model used when the request names none
            timeout_seconds: Upper bound for one vendor call
            default_size: Image size when options carry none
            client: Optional pre-built AsyncOpenAI client (tests)
        """
        super().__init__(default_model, timeout_seconds)
        self._default_size = default_size
        if client is not None:
            self._client = client
        elif api_key:
            self._client = AsyncOpenAI(api_key=api_key)
        else:
            self._client = None

    def max_count(self, model: str) -> int:
        return MODEL_MAX_COUNT.get(model, 1)

    def build_request(
        self,
        prompt: str,
        model: str,
        count: int,
        options: OpenAIImageOptions,
    ) -> dict[str, Any]:
        """Keyword arguments for images.generate, limited to what model accepts."""
        request: dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "n": count,
            "size": options.size or self._default_size,
        }
        if model.startswith("dall-e"):
            request["response_format"] = "b64_json"
        if options.quality and model != "dall-e-2":
            request["quality"] = options.quality
        if options.style and model == "dall-e-3":
            request["style"] = options.style
        if options.moderation and model.startswith("gpt-image"):
            request["moderation"] = options.moderation
        return request

    async def _call(
        self,
        prompt: str,
        model: str,
        count: int,
        options: OpenAIImageOptions,
    ) -> GenerationResult:
        request = self.build_request(prompt, model, count, options)
        response = await self._client.images.generate(**request)

        images = []
        for item in response.data or []:
            if item.b64_json:
                images.append(RawImage(data=item.b64_json, mime_type="image/png"))
            elif item.url:
                images.append(RawImage(url=item.url, mime_type="image/png"))

        usage: dict[str, Any] = {}
        if getattr(response, "usage", None) is not None:
            usage = response.usage.model_dump()
        return GenerationResult.ok(model, images, usage)

    async def _generate(
        self,
        prompt: str,
        model: str,
        count: int,
        options: Mapping[str, Any],
    ) -> GenerationResult:
        if self._client is None:
            raise ProviderError(
                "OpenAI API key not configured", self.name, ProviderErrorKind.AUTH
            )

        typed = OpenAIImageOptions.from_bag(options)
        try:
            return await self._call(prompt, model, count, typed)
        except Exception as e:
            fallback = FALLBACK_MODELS.get(model)
            if fallback is None or self.classify_error(e).kind in NO_FALLBACK_KINDS:
                raise
            logger.warning(
                f"{__name__}:_generate - {model} failed ({type(e).__name__}), "
                f"falling back to {fallback}"
            )
            return await self._call(
                prompt, fallback, min(count, self.max_count(fallback)), typed
            )

    def classify_error(self, exc: Exception) -> ProviderError:
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__

        if isinstance(exc, openai.APITimeoutError):
            kind = ProviderErrorKind.TIMEOUT
        elif isinstance(exc, openai.APIConnectionError):
            kind = ProviderErrorKind.UNAVAILABLE
        elif isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
            kind = ProviderErrorKind.AUTH
        elif isinstance(exc, openai.RateLimitError):
            kind = ProviderErrorKind.QUOTA
        elif isinstance(exc, openai.BadRequestError):
            if getattr(exc, "code", None) == "content_policy_violation":
                kind = ProviderErrorKind.CONTENT_POLICY
            else:
                kind = ProviderErrorKind.INVALID_REQUEST
        elif isinstance(exc, openai.InternalServerError):
            kind = ProviderErrorKind.UNAVAILABLE
        else:
            kind = ProviderErrorKind.UNKNOWN

        return ProviderError(f"OpenAI error: {message}", self.name, kind)
