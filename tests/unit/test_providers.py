"""
Test suite for provider adapters and the registry.

Vendor clients are replaced with mocks; no network calls are made.

System role: Verification of the uniform provider contract
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from google.genai import errors as genai_errors

from imagecraft.boundary.providers.base import (
    NO_IMAGES_GENERATED,
    normalize_option_key,
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
from imagecraft.configs.generation import GenerationSettings
from imagecraft.configs.providers import ProviderSettings
from imagecraft.core.exceptions import ProviderErrorKind
from tests.conftest import PNG_BASE64, PNG_BYTES, ScriptedAdapter

OPENAI_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/images/generations")


def openai_status_error(cls, status: int, code: str | None = None):
    body = {"message": "request failed", "code": code}
    return cls(
        "request failed",
        response=httpx.Response(status, request=OPENAI_REQUEST),
        body=body,
    )


def openai_response(*b64_images: str, url: str | None = None):
    data = [SimpleNamespace(b64_json=b64, url=None) for b64 in b64_images]
    if url:
        data.append(SimpleNamespace(b64_json=None, url=url))
    return SimpleNamespace(data=data, usage=None)


def openai_adapter(**kwargs) -> tuple[OpenAIImageAdapter, MagicMock]:
    client = MagicMock()
    client.images.generate = AsyncMock(**kwargs)
    return OpenAIImageAdapter(client=client, timeout_seconds=1.0), client


def genai_error(cls, code: int, message: str):
    return cls(code, {"error": {"code": code, "message": message, "status": "ERR"}})


def google_adapter(project: str | None = None) -> tuple[GoogleImageAdapter, MagicMock]:
    client = MagicMock()
    client.aio.models.generate_images = AsyncMock()
    client.aio.models.generate_content = AsyncMock()
    return GoogleImageAdapter(client=client, project=project, timeout_seconds=1.0), client


def imagen_response(*items):
    generated = []
    for item in items:
        if isinstance(item, bytes):
            generated.append(
                SimpleNamespace(
                    image=SimpleNamespace(image_bytes=item, mime_type="image/png"),
                    rai_filtered_reason=None,
                )
            )
        else:
            generated.append(SimpleNamespace(image=None, rai_filtered_reason=item))
    return SimpleNamespace(generated_images=generated)


class TestAdapterContract:
    """Test suite for behaviour shared by every adapter."""

    def test_clamp_count_should_bound_to_model_maximum(self) -> None:
        adapter = ScriptedAdapter("fake", max_images=4)

        assert adapter.clamp_count("m", 10) == 4
        assert adapter.clamp_count("m", 0) == 1
        assert adapter.clamp_count("m", None) == 1
        assert adapter.clamp_count("m", 3) == 3

    def test_option_keys_should_accept_camel_case_and_drop_unknown(self) -> None:
        """Test option bags are normalized and unknown keys ignored."""
        # Act
        options = GoogleImageOptions.from_bag(
            {"aspectRatio": "16:9", "seed": 7, "madeUpOption": True}
        )

        # Assert
        assert normalize_option_key("personGeneration") == "person_generation"
        assert options.aspect_ratio == "16:9"
        assert options.seed == 7
        assert options.as_kwargs() == {"aspect_ratio": "16:9", "seed": 7}

    @pytest.mark.asyncio
    async def test_timeout_should_become_failure(self) -> None:
        """Test a slow vendor call fails with a timeout result, never raising."""
        # Arrange
        adapter = ScriptedAdapter("slow", delay=1.0, timeout_seconds=0.01)

        # Act
        result = await adapter.generate("a cat")

        # Assert
        assert result.success is False
        assert result.error_kind == ProviderErrorKind.TIMEOUT
        assert result.error == "slow generation timed out after 0.01s"

    @pytest.mark.asyncio
    async def test_empty_success_should_become_failure(self) -> None:
        result = await ScriptedAdapter("fake", images=0).generate("a cat")

        assert result.success is False
        assert result.error == NO_IMAGES_GENERATED
        assert result.error_kind == ProviderErrorKind.EMPTY

    @pytest.mark.asyncio
    async def test_unexpected_exception_should_become_failure(self) -> None:
        result = await ScriptedAdapter("fake", error=KeyError("x")).generate("a cat")

        assert result.success is False
        assert result.error_kind == ProviderErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_default_model_should_be_used_when_none_given(self) -> None:
        adapter = ScriptedAdapter("fake")

        result = await adapter.generate("a cat", None, 1)

        assert result.model == "fake-default"
        assert adapter.calls[0]["model"] == "fake-default"


class TestOpenAIImageAdapter:
    """Test suite for OpenAIImageAdapter."""

    def test_build_request_should_filter_options_per_model(self) -> None:
        """Test quality, style and moderation only reach models that accept them."""
        # Arrange
        adapter = OpenAIImageAdapter(api_key="sk-test")
        options = OpenAIImageOptions(quality="hd", style="vivid", moderation="low")

        # Act
        dalle3 = adapter.build_request("p", "dall-e-3", 1, options)
        dalle2 = adapter.build_request("p", "dall-e-2", 2, options)
        gpt_image = adapter.build_request("p", "gpt-image-1", 2, options)

        # Assert
        assert dalle3 == {
            "model": "dall-e-3",
            "prompt": "p",
            "n": 1,
            "size": "1024x1024",
            "response_format": "b64_json",
            "quality": "hd",
            "style": "vivid",
        }
        assert "quality" not in dalle2 and "style" not in dalle2
        assert gpt_image["moderation"] == "low"
        assert "response_format" not in gpt_image
        assert "style" not in gpt_image

    def test_max_count_should_follow_model(self) -> None:
        adapter = OpenAIImageAdapter(api_key="sk-test")

        assert adapter.max_count("dall-e-3") == 1
        assert adapter.max_count("dall-e-2") == 10
        assert adapter.max_count("unknown-model") == 1

    @pytest.mark.asyncio
    async def test_generate_should_return_base64_and_url_images(self) -> None:
        """Test b64_json and url results both become raw images."""
        # Arrange
        adapter, client = openai_adapter(
            return_value=openai_response(PNG_BASE64, url="https://cdn/x.png")
        )

        # Act
        result = await adapter.generate(
            "a cat", "dall-e-2", 2, {"size": "512x512", "style": "vivid"}
        )

        # Assert
        assert result.success is True
        assert [image.data for image in result.images] == [PNG_BASE64, None]
        assert result.images[1].url == "https://cdn/x.png"
        kwargs = client.images.generate.await_args.kwargs
        assert kwargs["size"] == "512x512"
        assert kwargs["n"] == 2
        assert "style" not in kwargs

    @pytest.mark.asyncio
    async def test_dalle3_failure_should_fall_back_to_dalle2(self) -> None:
        """Test a failed dall-e-3 call is retried on dall-e-2."""
        # Arrange
        adapter, client = openai_adapter(
            side_effect=[
                openai_status_error(openai.InternalServerError, 500),
                openai_response(PNG_BASE64),
            ]
        )

        # Act
        result = await adapter.generate("a cat", "dall-e-3", 1)

        # Assert
        assert result.success is True
        assert result.model == "dall-e-2"
        models = [call.kwargs["model"] for call in client.images.generate.await_args_list]
        assert models == ["dall-e-3", "dall-e-2"]

    @pytest.mark.asyncio
    async def test_content_policy_should_not_fall_back(self) -> None:
        """Test a content policy rejection is reported without retrying."""
        # Arrange
        adapter, client = openai_adapter(
            side_effect=openai_status_error(
                openai.BadRequestError, 400, "content_policy_violation"
            )
        )

        # Act
        result = await adapter.generate("a cat", "dall-e-3", 1)

        # Assert
        assert result.success is False
        assert result.error_kind == ProviderErrorKind.CONTENT_POLICY
        assert result.error.startswith("OpenAI error:")
        assert client.images.generate.await_count == 1

    @pytest.mark.parametrize(
        "error,kind",
        [
            (openai_status_error(openai.RateLimitError, 429), ProviderErrorKind.QUOTA),
            (openai_status_error(openai.AuthenticationError, 401), ProviderErrorKind.AUTH),
            (openai_status_error(openai.BadRequestError, 400), ProviderErrorKind.INVALID_REQUEST),
            (openai.APITimeoutError(request=OPENAI_REQUEST), ProviderErrorKind.TIMEOUT),
            (openai.APIConnectionError(request=OPENAI_REQUEST), ProviderErrorKind.UNAVAILABLE),
            (RuntimeError("weird"), ProviderErrorKind.UNKNOWN),
        ],
    )
    def test_classify_error(self, error, kind) -> None:
        adapter = OpenAIImageAdapter(api_key="sk-test")

        assert adapter.classify_error(error).kind == kind

    @pytest.mark.asyncio
    async def test_missing_api_key_should_fail_with_auth(self) -> None:
        result = await OpenAIImageAdapter(api_key=None).generate("a cat")

        assert result.success is False
        assert result.error_kind == ProviderErrorKind.AUTH
        assert result.error == "OpenAI API key not configured"


class TestGoogleImageAdapter:
    """Test suite for GoogleImageAdapter."""

    def test_imagen_config_should_apply_defaults(self) -> None:
        """Test safety and person generation defaults and the RAI reason flag."""
        # Arrange
        adapter, _ = google_adapter()

        # Act
        config = adapter.build_imagen_config(3, GoogleImageOptions(aspect_ratio="16:9", seed=3))

        # Assert
        assert config.number_of_images == 3
        assert config.aspect_ratio == "16:9"
        assert config.include_rai_reason is True
        assert config.safety_filter_level == "BLOCK_MEDIUM_AND_ABOVE"
        assert config.person_generation == "ALLOW_ADULT"
        assert config.seed is None

    def test_vertex_should_accept_vertex_only_options(self) -> None:
        adapter, _ = google_adapter(project="my-project")

        config = adapter.build_imagen_config(
            1, GoogleImageOptions(add_watermark=False, enhance_prompt=True, seed=42)
        )

        assert config.seed == 42
        assert config.add_watermark is False
        assert config.enhance_prompt is True

    def test_max_count_should_depend_on_family(self) -> None:
        adapter, _ = google_adapter()

        assert adapter.max_count("imagen-3.0-generate-002") == 4
        assert adapter.max_count("gemini-2.0-flash-preview-image-generation") == 1

    @pytest.mark.asyncio
    async def test_imagen_should_return_images_and_filtered_count(self) -> None:
        """Test Imagen bytes are returned and filtered entries counted."""
        # Arrange
        adapter, client = google_adapter()
        client.aio.models.generate_images.return_value = imagen_response(
            PNG_BYTES, "Filtered: person", PNG_BYTES
        )

        # Act
        result = await adapter.generate("a fox", "imagen-3.0-generate-002", 10)

        # Assert
        assert result.success is True
        assert [image.data for image in result.images] == [PNG_BYTES, PNG_BYTES]
        assert result.usage == {"filtered": 1}
        config = client.aio.models.generate_images.await_args.kwargs["config"]
        assert config.number_of_images == 4

    @pytest.mark.asyncio
    async def test_fully_filtered_imagen_should_be_content_policy_failure(self) -> None:
        adapter, client = google_adapter()
        client.aio.models.generate_images.return_value = imagen_response("Blocked: violence")

        result = await adapter.generate("a fox", "imagen-3.0-generate-002", 1)

        assert result.success is False
        assert result.error_kind == ProviderErrorKind.CONTENT_POLICY
        assert result.error == "Image blocked by safety filter: Blocked: violence"

    @pytest.mark.asyncio
    async def test_gemini_should_read_inline_images_and_usage(self) -> None:
        """Test Gemini inline image parts and token usage are extracted."""
        # Arrange
        adapter, client = google_adapter()
        parts = [
            SimpleNamespace(inline_data=None, text="Here you go"),
            SimpleNamespace(inline_data=SimpleNamespace(data=PNG_BYTES, mime_type="image/png")),
        ]
        client.aio.models.generate_content.return_value = SimpleNamespace(
            candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))],
            usage_metadata=SimpleNamespace(
                prompt_token_count=5, candidates_token_count=1290, total_token_count=1295
            ),
        )

        # Act
        result = await adapter.generate("a fox", "gemini-2.0-flash-preview-image-generation", 3)

        # Assert
        assert result.success is True
        assert len(result.images) == 1
        assert result.usage == {"prompt_tokens": 5, "output_tokens": 1290, "total_tokens": 1295}
        client.aio.models.generate_images.assert_not_awaited()

    @pytest.mark.parametrize(
        "error,kind",
        [
            (genai_error(genai_errors.ClientError, 429, "Resource exhausted"), ProviderErrorKind.QUOTA),
            (genai_error(genai_errors.ClientError, 403, "Permission denied"), ProviderErrorKind.AUTH),
            (
                genai_error(genai_errors.ClientError, 400, "Prompt blocked by safety"),
                ProviderErrorKind.CONTENT_POLICY,
            ),
            (genai_error(genai_errors.ClientError, 404, "Model not found"), ProviderErrorKind.INVALID_REQUEST),
            (genai_error(genai_errors.ServerError, 503, "Unavailable"), ProviderErrorKind.UNAVAILABLE),
            (ValueError("bad aspect ratio"), ProviderErrorKind.INVALID_REQUEST),
        ],
    )
    def test_classify_error(self, error, kind) -> None:
        adapter, _ = google_adapter()

        classified = adapter.classify_error(error)

        assert classified.kind == kind
        assert classified.message.startswith("Google error:")

    @pytest.mark.asyncio
    async def test_missing_credentials_should_fail_with_auth(self) -> None:
        result = await GoogleImageAdapter().generate("a fox")

        assert result.success is False
        assert result.error_kind == ProviderErrorKind.AUTH


class TestProviderRegistry:
    """Test suite for ProviderRegistry."""

    def test_lookup_by_name(self) -> None:
        registry = ProviderRegistry([ScriptedAdapter("a"), ScriptedAdapter("b")])

        assert registry.names() == ["a", "b"]
        assert "a" in registry
        assert registry.get("missing") is None
        assert [adapter.name for adapter in registry] == ["a", "b"]

    def test_from_settings_should_register_every_vendor(self) -> None:
        """Test the settings-built registry carries both vendors and the image size."""
        # Act
        registry = ProviderRegistry.from_settings(
            ProviderSettings(openai_api_key=None, google_api_key=None, provider_timeout_seconds=30),
            GenerationSettings(image_width=512, image_height=512),
        )

        # Assert
        assert registry.names() == ["openai", "google"]
        openai_adapter_ = registry.get("openai")
        assert openai_adapter_.timeout_seconds == 30
        assert openai_adapter_.build_request("p", "dall-e-2", 1, OpenAIImageOptions())["size"] == "512x512"
