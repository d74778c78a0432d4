"""
Shared test fixtures and configuration for entire test suite.

Provides: SQLite async databases, scripted provider adapters, orchestrator factory
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import asyncio
import base64
import uuid
from typing import Any, Awaitable, Callable, Mapping

import pytest

from imagecraft.boundary.providers.base import GenerationResult, ProviderAdapter, RawImage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_BASE64 = base64.b64encode(PNG_BYTES).decode("ascii")


class ScriptedAdapter(ProviderAdapter):
    """
    Provider adapter with scripted behaviour for orchestrator tests.

    Args:
        name: Provider name
        images: Images returned per call (capped by the requested count)
        delay: Seconds to sleep before returning
        error: Exception raised instead of returning images
        payload: Image payload (defaults to base64 PNG)
        gate: Optional coroutine awaited before returning
        max_images: Documented maximum per call
        timeout_seconds: Adapter timeout
    """

    def __init__(
        self,
        name: str,
        images: int = 1,
        delay: float = 0.0,
        error: Exception | None = None,
        payload: bytes | str = PNG_BASE64,
        gate: Callable[[], Awaitable[Any]] | None = None,
        max_images: int = 10,
        timeout_seconds: float = 5.0,
    ) -> None:
        super().__init__(default_model=f"{name}-default", timeout_seconds=timeout_seconds)
        self.name = name
        self.images = images
        self.delay = delay
        self.error = error
        self.payload = payload
        self.gate = gate
        self.max_images = max_images
        self.calls: list[dict[str, Any]] = []

    def max_count(self, model: str) -> int:
        return self.max_images

    async def _generate(
        self,
        prompt: str,
        model: str,
        count: int,
        options: Mapping[str, Any],
    ) -> GenerationResult:
        self.calls.append(
            {"prompt": prompt, "model": model, "count": count, "options": dict(options)}
        )
        if self.gate is not None:
            await self.gate()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return GenerationResult.ok(
            model,
            [RawImage(data=self.payload) for _ in range(min(count, self.images))],
        )


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup (lazy imported to avoid settings issues)
    """
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
    from sqlalchemy.pool import StaticPool
    from imagecraft.boundary.db.base import Base
    import imagecraft.boundary.db.models  # noqa: F401

    # Use SQLite in-memory database for tests
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session factory
    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Create session for test
    async with async_session() as session:
        yield session
        await session.rollback()

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def session_factory(tmp_path):
    """
    File-backed SQLite session factory.

    The orchestrator opens many concurrent short-lived sessions, which need
    separate connections rather than one shared in-memory connection.

    Yields:
        async_sessionmaker: Factory bound to a fresh database
    """
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
    from imagecraft.boundary.db.base import Base
    import imagecraft.boundary.db.models  # noqa: F401

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'imagecraft.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )

    await engine.dispose()


@pytest.fixture
def generation_settings():
    """Generation settings with the default retention policy."""
    from imagecraft.configs.generation import GenerationSettings

    return GenerationSettings(free_ttl_minutes=10, paid_ttl_days=30)


@pytest.fixture
def make_orchestrator(session_factory, generation_settings):
    """
    Build an orchestrator over the test database and the given adapters.

    Returns:
        Callable: make(*adapters, credits=None) -> GenerationOrchestrator
    """
    from imagecraft.application.services.image_persistence_service import (
        ImagePersistenceService,
    )
    from imagecraft.boundary.providers.registry import ProviderRegistry
    from imagecraft.core.generation.orchestrator import GenerationOrchestrator

    def _make(*adapters, credits=None, s3_client=None):
        persistence = ImagePersistenceService(
            session_factory=session_factory,
            s3_client=s3_client,
            settings=generation_settings,
        )
        return GenerationOrchestrator(
            session_factory=session_factory,
            registry=ProviderRegistry(adapters),
            persistence=persistence,
            credits=credits,
            shutdown_grace_seconds=0.1,
        )

    return _make


@pytest.fixture
def user_id():
    """Generate a test user ID."""
    return uuid.uuid4()


@pytest.fixture
def session_id():
    """Generate a test chat session ID."""
    return uuid.uuid4()


@pytest.fixture
def message_id():
    """Generate a test message ID."""
    return uuid.uuid4()
