"""
Exception hierarchy for the imagecraft application.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from enum import Enum
from typing import Any


class ImageCraftException(Exception):
    """Base exception for all imagecraft application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(ImageCraftException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class MessageNotFoundError(ImageCraftException):
    """Raised when a chat message cannot be found."""

    def __init__(self, message_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["message_id"] = message_id
        super().__init__(f"Message not found: {message_id}", details)


class MessageAlreadyFinalizedError(ImageCraftException):
    """Raised when a generation is started against a message in a terminal state."""

    def __init__(
        self,
        message_id: str,
        status: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details.update({"message_id": message_id, "status": status})
        super().__init__(
            f"Message {message_id} is already {status}; start a new generation instead",
            details,
        )


class ProviderErrorKind(str, Enum):
    """
    Classification of provider-side failures.

    INVALID_REQUEST: Vendor rejected the request shape or prompt
    CONTENT_POLICY: Safety / responsible-AI filter blocked the output
    QUOTA: Rate limit, billing or quota exhaustion
    AUTH: Missing or rejected credentials
    TIMEOUT: Call exceeded the configured timeout
    EMPTY: Vendor reported success with no images
    UNAVAILABLE: Vendor or network unavailable
    INSUFFICIENT_CREDITS: User cannot pay for the request
    UNKNOWN: Anything else
    """

    INVALID_REQUEST = "invalid_request"
    CONTENT_POLICY = "content_policy"
    QUOTA = "quota"
    AUTH = "auth"
    TIMEOUT = "timeout"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    UNKNOWN = "unknown"


class ProviderError(ImageCraftException):
    """Raised inside an adapter when a vendor call fails."""

    def __init__(
        self,
        message: str,
        provider: str,
        kind: ProviderErrorKind = ProviderErrorKind.UNKNOWN,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize provider error.

        Args:
            message: Human-readable, user-visible error message
            provider: Provider name (openai, google, ...)
            kind: Classified failure kind
            details: Additional context
        """
        details = details or {}
        details.update({"provider": provider, "kind": kind.value})
        self.provider = provider
        self.kind = kind
        super().__init__(message, details)


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its timeout."""

    def __init__(self, provider: str, timeout_seconds: float) -> None:
        super().__init__(
            f"{provider} generation timed out after {timeout_seconds:g}s",
            provider,
            ProviderErrorKind.TIMEOUT,
            {"timeout_seconds": timeout_seconds},
        )


class InsufficientCreditsError(ImageCraftException):
    """Raised when a user lacks the credits required for a generation."""

    def __init__(self, user_id: str, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient credits. Required: {required}, Available: {available}",
            {"user_id": user_id, "required": required, "available": available},
        )


class StorageError(ImageCraftException):
    """Raised when blob storage operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class ImagePersistenceError(ImageCraftException):
    """Raised when decoding or recording a single generated image fails."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if provider:
            details["provider"] = provider
        super().__init__(message, details)


class SettlementError(ImageCraftException):
    """Raised when the final status of a message cannot be written."""

    pass


class PollingTimeoutError(ImageCraftException):
    """Raised when a message does not reach a terminal status in time."""

    def __init__(self, message_id: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Message {message_id} still generating after {timeout_seconds:g}s",
            {"message_id": message_id, "timeout_seconds": timeout_seconds},
        )


class ImageNotFoundError(ImageCraftException):
    """Raised when an image is absent, deleted or has no stored blob."""

    def __init__(self, image_id: str, reason: str = "not found") -> None:
        super().__init__(f"Image {reason}: {image_id}", {"image_id": image_id})


class ImageAccessDeniedError(ImageCraftException):
    """Raised when a private image is requested by someone other than its owner."""

    def __init__(self, image_id: str) -> None:
        super().__init__(f"Access denied to image: {image_id}", {"image_id": image_id})
