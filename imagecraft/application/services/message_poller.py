"""
Client-side message poller.

Consumes the polling read model the way a client does: fetch the message
at a fixed interval, hand every snapshot to the caller and stop once the
status is terminal. provider_slots derives per-provider placeholder state
from a snapshot so a UI can render one slot per requested provider.

Settings are passed explicitly through PollerConfig.

Dependencies: asyncio, imagecraft.models
System role: Reference consumer of the message read model
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable
from uuid import UUID

from imagecraft.configs.generation import GenerationSettings
from imagecraft.core.exceptions import PollingTimeoutError
from imagecraft.models.message import MessageSnapshot

logger = logging.getLogger(__name__)

FetchMessage = Callable[[UUID], Awaitable[MessageSnapshot]]


@dataclass(frozen=True)
class PollerConfig:
    """
    Poller settings.

    Attributes:
        interval_seconds: Delay between fetches
        timeout_seconds: Give up after this long (None waits forever)
    """

    interval_seconds: float = 2.0
    timeout_seconds: float | None = 600.0

    @classmethod
    def from_settings(cls, settings: GenerationSettings) -> "PollerConfig":
        return cls(
            interval_seconds=settings.poll_interval_seconds,
            timeout_seconds=settings.poll_timeout_seconds,
        )


def is_monotonic_successor(previous: MessageSnapshot, current: MessageSnapshot) -> bool:
    """
    Whether current can follow previous in a valid progress sequence.

    Images are never removed or reordered and a terminal status never changes.
    """
    if current.image_urls[: len(previous.image_urls)] != previous.image_urls:
        return False
    if previous.is_terminal and current.status != previous.status:
        return False
    return True


class MessagePoller:
    """Interval poller over a message fetch function."""

    def __init__(
        self,
        fetch: FetchMessage,
        config: PollerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize poller.

        Args:
            fetch: Coroutine returning the current snapshot of a message
            config: Interval and timeout
            clock: Monotonic time source
            sleep: Sleep coroutine
        """
        self.fetch = fetch
        self.config = config or PollerConfig()
        self.clock = clock
        self.sleep = sleep

    async def watch(self, message_id: UUID) -> AsyncIterator[MessageSnapshot]:
        """
        Yield snapshots until the message reaches a terminal status.

        Raises:
            PollingTimeoutError: If the timeout elapses first
        """
        timeout = self.config.timeout_seconds
        deadline = self.clock() + timeout if timeout is not None else None
        previous: MessageSnapshot | None = None

        while True:
            snapshot = await self.fetch(message_id)
            if previous is not None and not is_monotonic_successor(previous, snapshot):
                logger.warning(
                    f"{__name__}:watch - Non-monotonic update for message_id={message_id}"
                )
            previous = snapshot
            yield snapshot

            if snapshot.is_terminal:
                return
            if deadline is not None and self.clock() >= deadline:
                raise PollingTimeoutError(str(message_id), timeout)
            await self.sleep(self.config.interval_seconds)

    async def wait(self, message_id: UUID) -> MessageSnapshot:
        """Poll until terminal and return the final snapshot."""
        last = None
        async for snapshot in self.watch(message_id):
            last = snapshot
        return last


class SlotState(str, Enum):
    """UI state of one provider placeholder."""

    LOADING = "loading"
    READY = "ready"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ProviderSlot:
    provider: str
    state: SlotState
    expected: int
    image_urls: list[str] = field(default_factory=list)
    error: str | None = None


def provider_slots(snapshot: MessageSnapshot) -> dict[str, ProviderSlot]:
    """
    Per-provider placeholder state for a snapshot, in request order.

    Requested providers come from the request echo in the message
    metadata; providers seen only in the maps are appended. A slot expects
    the clamped count when one was recorded, else the requested count.
    """
    metadata = snapshot.metadata or {}
    providers = list(metadata.get("providers") or [])
    for provider in [*snapshot.image_provider_map.values(), *snapshot.provider_errors]:
        if provider not in providers and not provider.startswith("_"):
            providers.append(provider)
    counts = metadata.get("expectedImageCount") or metadata.get("imageCount") or {}

    slots: dict[str, ProviderSlot] = {}
    for provider in providers:
        images = [
            url for url in snapshot.image_urls
            if snapshot.image_provider_map.get(url) == provider
        ]
        expected = int(counts.get(provider, 1))
        error = snapshot.provider_errors.get(provider)

        if error is not None:
            state = SlotState.FAILED
        elif len(images) >= expected:
            state = SlotState.READY
        elif not snapshot.is_terminal:
            state = SlotState.LOADING
        elif images:
            state = SlotState.PARTIAL
        else:
            state = SlotState.FAILED

        slots[provider] = ProviderSlot(
            provider=provider,
            state=state,
            expected=expected,
            image_urls=images,
            error=error,
        )
    return slots
