"""
Provider registry.

Maps provider names to adapters. This is the only place that knows which
vendors exist; the orchestrator looks adapters up by name and treats them
uniformly.

Dependencies: imagecraft.boundary.providers, imagecraft.configs
System role: Provider name -> adapter resolution
"""

from typing import Iterable, Iterator

from imagecraft.boundary.providers.base import ProviderAdapter
from imagecraft.boundary.providers.google_adapter import GoogleImageAdapter
from imagecraft.boundary.providers.openai_adapter import OpenAIImageAdapter
from imagecraft.configs.generation import GenerationSettings
from imagecraft.configs.providers import ProviderSettings


class ProviderRegistry:
    """Name -> ProviderAdapter lookup."""

    def __init__(self, adapters: Iterable[ProviderAdapter] = ()) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> None:
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> ProviderAdapter | None:
        return self._adapters.get(name)

    def names(self) -> list[str]:
        return list(self._adapters)

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __iter__(self) -> Iterator[ProviderAdapter]:
        return iter(self._adapters.values())

    @classmethod
    def from_settings(
        cls,
        providers: ProviderSettings,
        generation: GenerationSettings | None = None,
    ) -> "ProviderRegistry":
        """
        Build the registry of all supported vendors from settings.

        Adapters without credentials are still registered; their calls fail
        with an auth error that ends up in the message's provider errors.
        """
        size = "1024x1024"
        if generation is not None:
            size = f"{generation.image_width}x{generation.image_height}"
        return cls(
            [
                OpenAIImageAdapter(
                    api_key=providers.openai_api_key,
                    default_model=providers.openai_default_model,
                    timeout_seconds=providers.provider_timeout_seconds,
                    default_size=size,
                ),
                GoogleImageAdapter(
                    api_key=providers.google_api_key,
                    project=providers.google_cloud_project,
                    location=providers.google_cloud_location,
                    default_model=providers.google_default_model,
                    timeout_seconds=providers.provider_timeout_seconds,
                ),
            ]
        )
