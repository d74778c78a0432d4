"""
Generation orchestrator.

Coordinates one prompt fanned out to several providers against a single
chat message:

1. start_generation creates or attaches the message (status generating)
   and launches the fan-out as a detached task, returning the message id
2. Each provider runs concurrently: reserve credits, call the adapter,
   persist every image, then merge the new references into the message
   under a per-message lock
3. Settlement waits for every provider (no short-circuit), reconciles the
   collected outcomes and writes the terminal status once
4. If settlement itself fails the message is forced to failed, so no
   message stays generating

The collected outcomes, not the incremental merges, decide the final
status. Merges only exist so pollers see images as soon as they land.

Dependencies: asyncio, sqlalchemy, imagecraft.boundary, imagecraft.application.services
System role: Multi-provider fan-out coordinator
"""

import asyncio
import logging
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imagecraft.boundary.db.CRUD.chat_message_crud import chat_message_crud
from imagecraft.boundary.db.CRUD.chat_session_crud import chat_session_crud
from imagecraft.boundary.db.retry import db_retry
from imagecraft.boundary.providers.base import ProviderAdapter
from imagecraft.boundary.providers.registry import ProviderRegistry
from imagecraft.core.exceptions import (
    InsufficientCreditsError,
    MessageAlreadyFinalizedError,
    SettlementError,
    ValidationError,
)
from imagecraft.core.generation.merge_locks import MergeLocks
from imagecraft.core.generation.outcomes import (
    NO_IMAGES_GENERATED,
    Failure,
    ProviderOutcome,
    Success,
)
from imagecraft.core.generation.reconciler import Reconciliation, reconcile
from imagecraft.models.generation import GenerationRequest
from imagecraft.observability.correlation import bind_branch
from imagecraft.observability.log_utils import log_exception_with_context

if TYPE_CHECKING:
    from imagecraft.application.services.credit_service import CreditService
    from imagecraft.application.services.image_persistence_service import (
        ImagePersistenceService,
    )

logger = logging.getLogger(__name__)

SETTLEMENT_ERROR_KEY = "_settlement"
MERGE_SKIPPED = "Message already settled, images not added"


class GenerationOrchestrator:
    """
    Fan-out coordinator for multi-provider image generation.

    One instance lives for the lifetime of the application. It owns the
    in-flight run tasks and the per-message merge locks.

    Attributes:
        session_factory: Factory for short-lived database sessions
        registry: Provider name -> adapter lookup
        persistence: Image persistence service
        credits: Credit service (None disables credit accounting)
        shutdown_grace_seconds: How long shutdown() waits before cancelling runs
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: ProviderRegistry,
        persistence: "ImagePersistenceService",
        credits: "CreditService | None" = None,
        shutdown_grace_seconds: float = 10.0,
    ) -> None:
        self.session_factory = session_factory
        self.registry = registry
        self.persistence = persistence
        self.credits = credits
        self.shutdown_grace_seconds = shutdown_grace_seconds
        self._runs: dict[UUID, asyncio.Task] = {}
        self._locks = MergeLocks()

    @property
    def active_message_ids(self) -> list[UUID]:
        return list(self._runs)

    def is_running(self, message_id: UUID) -> bool:
        return message_id in self._runs

    async def start_generation(self, request: GenerationRequest) -> UUID:
        """
        Create or attach the message and launch the fan-out.

        Returns as soon as the message row is committed; providers run in
        a detached task.

        Args:
            request: Validated generation request with user_id set

        Returns:
            UUID: Message id (the client-supplied one when given)

        Raises:
            ValidationError: If the request carries no user id
            MessageAlreadyFinalizedError: If the supplied message id is already settled
        """
        if request.user_id is None:
            raise ValidationError("User id is required", field="user_id")

        logger.info(
            f"{__name__}:start_generation - START session_id={request.session_id}, "
            f"providers={request.providers}, message_id={request.message_id}"
        )
        message_id = await self._attach(request)
        launched = self._launch(message_id, request)
        logger.info(
            f"{__name__}:start_generation - END message_id={message_id}, launched={launched}"
        )
        return message_id

    @db_retry
    async def _attach(self, request: GenerationRequest) -> UUID:
        """
        Upsert keyed by the optional client message id.

        - no id: new message
        - unknown id: new message with that id
        - generating with an active run: attached as is
        - generating without a run (orphaned): request echo refreshed, status kept
        - terminal: MessageAlreadyFinalizedError
        """
        metadata = self._request_echo(request)

        async with self.session_factory() as session:
            await chat_session_crud.ensure_session(
                session, request.session_id, request.user_id, request.prompt
            )

            if request.message_id is not None:
                existing = await chat_message_crud.get_for_update(session, request.message_id)
            else:
                existing = None

            if existing is None:
                try:
                    message = await chat_message_crud.create_generating(
                        session,
                        session_id=request.session_id,
                        prompt=request.prompt,
                        metadata=metadata,
                        message_id=request.message_id,
                    )
                    await session.commit()
                    return message.id
                except IntegrityError:
                    if request.message_id is None:
                        raise
                    # Lost a concurrent insert for the same id; attach to the winner
                    await session.rollback()
                    existing = await chat_message_crud.get_for_update(
                        session, request.message_id
                    )
                    if existing is None:
                        raise

            if existing.status.is_terminal:
                raise MessageAlreadyFinalizedError(str(existing.id), existing.status.value)

            if self.is_running(existing.id):
                # The active run keeps the echo of the request it is executing
                await session.commit()
                return existing.id

            await chat_message_crud.refresh_request(
                session, existing.id, request.prompt, metadata
            )
            await session.commit()
            return existing.id

    def _request_echo(self, request: GenerationRequest) -> dict:
        """Request echo plus each provider's count clamped to what its model delivers."""
        metadata = request.metadata_echo()
        counts: dict[str, int] = {}
        for provider in request.providers:
            count = request.count_for(provider)
            adapter = self.registry.get(provider)
            if adapter is not None:
                model = request.model_for(provider) or adapter.default_model
                count = adapter.clamp_count(model, count)
            counts[provider] = count
        metadata["expectedImageCount"] = counts
        return metadata

    def _launch(self, message_id: UUID, request: GenerationRequest) -> bool:
        if message_id in self._runs:
            logger.info(
                f"{__name__}:_launch - Run already active for message_id={message_id}, not relaunching"
            )
            return False

        task = asyncio.create_task(
            self._run(message_id, request), name=f"generation-{message_id}"
        )
        self._runs[message_id] = task

        def _forget(finished: asyncio.Task) -> None:
            if self._runs.get(message_id) is finished:
                del self._runs[message_id]

        task.add_done_callback(_forget)
        return True

    async def join(self, message_id: UUID) -> None:
        """Wait until the run for message_id (if any) has settled."""
        task = self._runs.get(message_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _run(self, message_id: UUID, request: GenerationRequest) -> None:
        logger.info(f"{__name__}:_run - START message_id={message_id}")
        try:
            outcomes = await self._fan_out(message_id, request)
            reconciliation = await self._settle(message_id, request, outcomes)
            logger.info(
                f"{__name__}:_run - END message_id={message_id}, "
                f"status={reconciliation.status.value}, images={reconciliation.image_count}"
            )
        except asyncio.CancelledError:
            logger.warning(f"{__name__}:_run - Cancelled message_id={message_id}")
            await self._force_failed(message_id, "Generation cancelled")
            raise
        except SettlementError as e:
            logger.exception(f"{__name__}:_run - {e.message}")
            await self._force_failed(message_id, e.message)
        except Exception as e:
            logger.exception(f"{__name__}:_run - Settlement failed message_id={message_id}")
            await self._force_failed(message_id, f"{type(e).__name__}: {e}")
        finally:
            self._locks.discard(message_id)

    async def _fan_out(
        self,
        message_id: UUID,
        request: GenerationRequest,
    ) -> dict[str, ProviderOutcome]:
        """Run every provider concurrently and collect one outcome per provider."""
        providers = list(request.providers)
        results = await asyncio.gather(
            *(self._run_provider(message_id, request, provider) for provider in providers),
            return_exceptions=True,
        )

        outcomes: dict[str, ProviderOutcome] = {}
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                log_exception_with_context(
                    logger,
                    f"{__name__}:_fan_out - provider={provider} raised",
                    result,
                    provider=provider,
                    message_id=message_id,
                )
                outcomes[provider] = Failure(f"{type(result).__name__}: {result}")
            else:
                outcomes[provider] = result
        return outcomes

    async def _run_provider(
        self,
        message_id: UUID,
        request: GenerationRequest,
        provider: str,
    ) -> ProviderOutcome:
        """
        One provider branch of the fan-out.

        Returns:
            Success with the display references merged into the message,
            or Failure with user-visible error text
        """
        bind_branch(provider)
        adapter = self.registry.get(provider)
        if adapter is None:
            return Failure(f"Unknown provider: {provider}")

        model = request.model_for(provider) or adapter.default_model
        count = adapter.clamp_count(model, request.count_for(provider))

        reserved = 0
        if self.credits is not None:
            try:
                reserved = await self.credits.reserve(request.user_id, count)
            except InsufficientCreditsError as e:
                return Failure(e.message)

        try:
            outcome = await self._deliver(message_id, request, adapter, model, count)
        except BaseException:
            # Raised errors and cancellation still return the reservation
            await self._refund(request.user_id, reserved)
            raise
        if isinstance(outcome, Failure):
            await self._refund(request.user_id, reserved)
        return outcome

    async def _deliver(
        self,
        message_id: UUID,
        request: GenerationRequest,
        adapter: ProviderAdapter,
        model: str,
        count: int,
    ) -> ProviderOutcome:
        provider = adapter.name
        result = await adapter.generate(
            request.prompt, model, count, request.options_for(provider)
        )
        if not result.success or not result.images:
            return Failure(result.error or NO_IMAGES_GENERATED)

        batch = await self.persistence.store_batch(
            result.images, request.user_id, provider, result.model, request.prompt
        )
        if not batch.refs:
            return Failure(f"Failed to persist {batch.failed_count} image(s)")

        refs = [ref.display_url for ref in batch.refs]
        if not await self._merge(message_id, provider, refs):
            return Failure(MERGE_SKIPPED)
        return Success(refs)

    async def _refund(self, user_id: UUID, amount: int) -> None:
        if self.credits is None or amount <= 0:
            return
        try:
            await self.credits.refund(user_id, amount)
        except Exception:
            logger.exception(f"{__name__}:_refund - Refund of {amount} failed user_id={user_id}")

    async def _merge(self, message_id: UUID, provider: str, refs: list[str]) -> bool:
        """Append refs under the message lock. False when the message refused them."""
        async with self._locks.lock_for(message_id):
            return await self._append_images(message_id, provider, refs)

    @db_retry
    async def _append_images(self, message_id: UUID, provider: str, refs: list[str]) -> bool:
        async with self.session_factory() as session:
            message = await chat_message_crud.append_images(session, message_id, refs, provider)
            await session.commit()

        if message is None:
            logger.warning(
                f"{__name__}:_append_images - Merge skipped message_id={message_id}, "
                f"provider={provider}"
            )
            return False

        logger.info(
            f"{__name__}:_append_images - Merged {len(refs)} image(s) from {provider}, "
            f"total={len(message.image_urls)} message_id={message_id}"
        )
        return True

    async def _settle(
        self,
        message_id: UUID,
        request: GenerationRequest,
        outcomes: dict[str, ProviderOutcome],
    ) -> Reconciliation:
        reconciliation = reconcile(outcomes)
        try:
            await self._finalize(message_id, reconciliation)
        except Exception as e:
            raise SettlementError(
                f"Failed to write final status: {e}", {"message_id": str(message_id)}
            ) from e
        await self._touch_session(request.session_id)
        return reconciliation

    @db_retry
    async def _finalize(self, message_id: UUID, reconciliation: Reconciliation) -> None:
        async with self.session_factory() as session:
            message = await chat_message_crud.finalize(
                session, message_id, reconciliation.status, reconciliation.errors
            )
            await session.commit()

        if message is None:
            logger.warning(
                f"{__name__}:_finalize - Message missing or already settled message_id={message_id}"
            )

    async def _touch_session(self, session_id: UUID) -> None:
        try:
            async with self.session_factory() as session:
                await chat_session_crud.touch(session, session_id)
                await session.commit()
        except Exception:
            logger.exception(f"{__name__}:_touch_session - Failed session_id={session_id}")

    async def _force_failed(self, message_id: UUID, error: str) -> None:
        try:
            async with self.session_factory() as session:
                await chat_message_crud.mark_failed(
                    session, message_id, error, SETTLEMENT_ERROR_KEY
                )
                await session.commit()
        except Exception:
            logger.exception(
                f"{__name__}:_force_failed - Could not mark message failed message_id={message_id}"
            )

    async def shutdown(self, timeout: float | None = None) -> None:
        """
        Wait for in-flight runs, cancelling those still running after timeout.

        Cancelled runs mark their message failed before exiting.
        """
        tasks = list(self._runs.values())
        if not tasks:
            return

        grace = self.shutdown_grace_seconds if timeout is None else timeout
        logger.info(f"{__name__}:shutdown - Waiting for {len(tasks)} run(s), grace={grace}s")
        _, pending = await asyncio.wait(tasks, timeout=grace)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"{__name__}:shutdown - Cancelled {len(pending)} run(s)")
