"""
Per-message merge locks.

Incremental merges into the same message are serialized in-process by an
asyncio.Lock keyed by message id. Across processes the row lock taken by
ChatMessageCRUD.get_for_update provides the same exclusion.

Dependencies: asyncio
System role: Critical section for read-modify-write message merges
"""

import asyncio
from uuid import UUID


class MergeLocks:
    """Registry of asyncio locks keyed by message id."""

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}

    def lock_for(self, message_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(message_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[message_id] = lock
        return lock

    def discard(self, message_id: UUID) -> None:
        lock = self._locks.get(message_id)
        if lock is not None and not lock.locked():
            del self._locks[message_id]

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._locks

    def __len__(self) -> int:
        return len(self._locks)
