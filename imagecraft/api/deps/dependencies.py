"""
Dependency injection container.

Factory functions for FastAPI dependencies. Long-lived objects (S3 client,
provider registry, orchestrator) live in the ServiceCache; request-scoped
services are built per request on the injected database session.

Dependencies: imagecraft.configs, imagecraft.application, imagecraft.boundary, imagecraft.core
System role: DI container for service injection
"""

from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from imagecraft.application.services import (
    CreditService,
    ImageCleanupService,
    ImagePersistenceService,
    ImageService,
    MessageService,
    PollerConfig,
)
from imagecraft.boundary.aws.s3_client import S3ImageClient
from imagecraft.boundary.db import get_async_db, get_async_session_factory
from imagecraft.boundary.providers import ProviderRegistry
from imagecraft.configs import get_settings
from imagecraft.core.generation import GenerationOrchestrator


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._s3_client = None
        self._provider_registry = None
        self._orchestrator = None

    @property
    def s3_client(self) -> S3ImageClient | None:
        """Get cached S3 image client (None when uploads are disabled)."""
        settings = get_settings()
        if not settings.s3_images.enabled:
            return None
        if self._s3_client is None:
            self._s3_client = S3ImageClient(
                bucket=settings.s3_images.bucket,
                region=settings.s3_images.region,
            )
        return self._s3_client

    @property
    def provider_registry(self) -> ProviderRegistry:
        """Get cached provider registry."""
        if self._provider_registry is None:
            settings = get_settings()
            self._provider_registry = ProviderRegistry.from_settings(
                settings.providers, settings.generation
            )
        return self._provider_registry

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        """Get cached generation orchestrator."""
        if self._orchestrator is None:
            settings = get_settings()
            session_factory = get_async_session_factory()
            credits = None
            if settings.generation.credits_enabled:
                credits = CreditService(
                    session_factory,
                    cost_per_image=settings.generation.credit_cost_per_image,
                )
            self._orchestrator = GenerationOrchestrator(
                session_factory=session_factory,
                registry=self.provider_registry,
                persistence=ImagePersistenceService(
                    session_factory=session_factory,
                    s3_client=self.s3_client,
                    settings=settings.generation,
                ),
                credits=credits,
                shutdown_grace_seconds=settings.generation.shutdown_grace_seconds,
            )
        return self._orchestrator

    def active_generation_count(self) -> int:
        """In-flight generations (0 before the orchestrator is built)."""
        if self._orchestrator is None:
            return 0
        return len(self._orchestrator.active_message_ids)

    async def shutdown(self) -> None:
        """Let in-flight generations settle, then drop cached instances."""
        if self._orchestrator is not None:
            await self._orchestrator.shutdown()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._s3_client = None
        self._provider_registry = None
        self._orchestrator = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_user_id(x_user_id: UUID | None = Header(default=None)) -> UUID | None:
    """Caller identity from the X-User-Id header, if present."""
    return x_user_id


def get_orchestrator() -> GenerationOrchestrator:
    """Get the process-wide generation orchestrator."""
    return get_service_cache().orchestrator


def get_message_service() -> MessageService:
    """
    Get message read service.

    Uses the session factory rather than a request session so each poll
    reads fresh committed state.
    """
    return MessageService(get_async_session_factory())


def get_poller_config() -> PollerConfig:
    """Polling interval and timeout for the SSE progress stream."""
    return PollerConfig.from_settings(get_settings().generation)


def get_image_service(db: AsyncSession = Depends(get_async_db)) -> ImageService:
    """
    Get image access service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        ImageService: Image service with presigned URL support
    """
    settings = get_settings()
    return ImageService(
        db=db,
        s3_client=get_service_cache().s3_client,
        presigned_url_expiry=settings.s3_images.presigned_url_expiry,
    )


def get_image_cleanup_service(
    db: AsyncSession = Depends(get_async_db),
) -> ImageCleanupService:
    """
    Get expired image cleanup service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        ImageCleanupService: Cleanup service for one batch run
    """
    settings = get_settings()
    return ImageCleanupService(
        db=db,
        s3_client=get_service_cache().s3_client,
        batch_size=settings.generation.cleanup_batch_size,
    )


def verify_cron_secret(authorization: str | None = Header(default=None)) -> None:
    """
    Require the configured cron secret as a bearer token.

    Raises:
        HTTPException(503): No cron secret configured
        HTTPException(401): Missing or wrong token
    """
    secret = get_settings().generation.cron_secret
    if not secret:
        raise HTTPException(status_code=503, detail="Cleanup is not configured")
    if authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
