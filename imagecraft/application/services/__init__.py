"""Service orchestrators."""

from .credit_service import CreditService
from .image_cleanup_service import ImageCleanupService
from .image_persistence_service import BatchStoreResult, ImagePersistenceService
from .image_service import ImageService
from .message_poller import MessagePoller, PollerConfig, ProviderSlot, SlotState, provider_slots
from .message_service import MessageService

__all__ = [
    "CreditService",
    "ImageCleanupService",
    "BatchStoreResult",
    "ImagePersistenceService",
    "ImageService",
    "MessagePoller",
    "PollerConfig",
    "ProviderSlot",
    "SlotState",
    "provider_slots",
    "MessageService",
]
