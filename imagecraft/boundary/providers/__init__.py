"""
Image provider adapters.

Exports:
  - ProviderAdapter, GenerationResult, RawImage: Uniform generation contract
  - OpenAIImageAdapter, OpenAIImageOptions: OpenAI DALL-E / gpt-image
  - GoogleImageAdapter, GoogleImageOptions: Google Imagen / Gemini
  - ProviderRegistry: Provider name -> adapter lookup
"""

from imagecraft.boundary.providers.base import (
    NO_IMAGES_GENERATED,
    GenerationResult,
    ProviderAdapter,
    ProviderOptions,
    RawImage,
)
from imagecraft.boundary.providers.google_adapter import (
    GoogleImageAdapter,
    GoogleImageOptions,
)
from imagecraft.boundary.providers.openai_adapter import (
    OpenAIImageAdapter,
    OpenAIImageOptions,
)
from imagecraft.boundary.providers.registry import ProviderRegistry

__all__ = [
    "NO_IMAGES_GENERATED",
    "GenerationResult",
    "ProviderAdapter",
    "ProviderOptions",
    "RawImage",
    "GoogleImageAdapter",
    "GoogleImageOptions",
    "OpenAIImageAdapter",
    "OpenAIImageOptions",
    "ProviderRegistry",
]
