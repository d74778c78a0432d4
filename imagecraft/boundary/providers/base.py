"""
Provider adapter contract.

Every image vendor is wrapped in a ProviderAdapter that exposes one
uniform coroutine:

    generate(prompt, model, count, options) -> GenerationResult

The adapter clamps the requested count to the model's documented maximum,
ignores option keys it does not recognize, runs the vendor call under a
timeout and converts every vendor exception into a classified failure.
Nothing raised by a vendor SDK escapes generate().

Dependencies: asyncio, imagecraft.core.exceptions
System role: Uniform generation contract consumed by the orchestrator
"""

import asyncio
import dataclasses
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, TypeVar

from imagecraft.core.exceptions import (
    ProviderError,
    ProviderErrorKind,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)

NO_IMAGES_GENERATED = "No images generated"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

OptionsT = TypeVar("OptionsT", bound="ProviderOptions")


def normalize_option_key(key: str) -> str:
    """aspectRatio -> aspect_ratio; snake_case keys pass through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


@dataclass
class ProviderOptions:
    """Base for per-provider typed option bags."""

    @classmethod
    def from_bag(cls: type[OptionsT], bag: Mapping[str, Any] | None) -> OptionsT:
        """
        Build typed options from an untyped request bag.

        Keys are accepted in snake_case or camelCase. Keys the provider does
        not recognize are dropped without error.

        Args:
            bag: Option mapping from the request (may be None)

        Returns:
            Options instance with unspecified fields left at their defaults
        """
        if not bag:
            return cls()
        known = {f.name for f in dataclasses.fields(cls)}
        values = {}
        for key, value in bag.items():
            name = normalize_option_key(str(key))
            if name in known:
                values[name] = value
        return cls(**values)

    def as_kwargs(self) -> dict[str, Any]:
        """Options that were actually set (None values dropped)."""
        return {k: v for k, v in dataclasses.asdict(self).items() if v is not None}


@dataclass
class RawImage:
    """
    One image as returned by a vendor.

    Exactly one of data or url is set. data may be raw bytes, bare base64
    text or a data URL; decoding is left to the persistence service.
    """

    data: bytes | str | None = None
    url: str | None = None
    mime_type: str | None = None


@dataclass
class GenerationResult:
    """Uniform outcome of a single adapter call."""

    success: bool
    model: str
    images: list[RawImage] = field(default_factory=list)
    usage: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_kind: ProviderErrorKind | None = None

    @classmethod
    def ok(
        cls,
        model: str,
        images: list[RawImage],
        usage: dict[str, Any] | None = None,
    ) -> "GenerationResult":
        return cls(success=True, model=model, images=images, usage=usage or {})

    @classmethod
    def failed(
        cls,
        model: str,
        error: str,
        kind: ProviderErrorKind = ProviderErrorKind.UNKNOWN,
    ) -> "GenerationResult":
        return cls(success=False, model=model, error=error, error_kind=kind)


class ProviderAdapter(ABC):
    """
    Base class for image vendor adapters.

    Subclasses implement _generate (free to raise) and classify_error;
    callers only ever use generate().

    Attributes:
        name: Provider name used in requests and provider maps
        default_model: Model used when the request names none
        timeout_seconds: Upper bound for one vendor call
    """

    name: str = ""

    def __init__(self, default_model: str, timeout_seconds: float = 120.0) -> None:
        self.default_model = default_model
        self.timeout_seconds = timeout_seconds

    @abstractmethod
    def max_count(self, model: str) -> int:
        """Documented maximum images per call for model."""

    def clamp_count(self, model: str, count: int | None) -> int:
        """Clamp a caller-supplied count into [1, max_count(model)]."""
        requested = count if count and count > 0 else 1
        return min(requested, self.max_count(model))

    @abstractmethod
    async def _generate(
        self,
        prompt: str,
        model: str,
        count: int,
        options: Mapping[str, Any],
    ) -> GenerationResult:
        """Vendor call. May raise; generate() contains the exception."""

    def classify_error(self, exc: Exception) -> ProviderError:
        """Map a vendor exception to a classified ProviderError."""
        return ProviderError(str(exc) or type(exc).__name__, self.name)

    async def generate(
        self,
        prompt: str,
        model: str | None = None,
        count: int | None = 1,
        options: Mapping[str, Any] | None = None,
    ) -> GenerationResult:
        """
        Generate images for prompt.

        Args:
            prompt: Text prompt
            model: Model id (adapter default when None)
            count: Requested image count, clamped to the model maximum
            options: Untyped option bag; unknown keys are ignored

        Returns:
            GenerationResult; failures are returned, never raised
        """
        model = model or self.default_model
        count = self.clamp_count(model, count)
        logger.info(
            f"{__name__}:generate - START provider={self.name}, model={model}, count={count}"
        )

        try:
            result = await asyncio.wait_for(
                self._generate(prompt, model, count, options or {}),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = ProviderTimeoutError(self.name, self.timeout_seconds)
            logger.warning(f"{__name__}:generate - {error.message}")
            return GenerationResult.failed(model, error.message, error.kind)
        except ProviderError as e:
            logger.warning(
                f"{__name__}:generate - provider={self.name} failed kind={e.kind.value}: {e.message}"
            )
            return GenerationResult.failed(model, e.message, e.kind)
        except Exception as e:
            error = self.classify_error(e)
            logger.error(
                f"{__name__}:generate - provider={self.name} raised {type(e).__name__} "
                f"classified as {error.kind.value}: {error.message}"
            )
            return GenerationResult.failed(model, error.message, error.kind)

        if result.success and not result.images:
            logger.warning(f"{__name__}:generate - provider={self.name} returned no images")
            return GenerationResult.failed(
                result.model, NO_IMAGES_GENERATED, ProviderErrorKind.EMPTY
            )

        logger.info(
            f"{__name__}:generate - END provider={self.name}, success={result.success}, "
            f"images={len(result.images)}"
        )
        return result
