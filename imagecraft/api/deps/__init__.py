"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_image_cleanup_service,
    get_image_service,
    get_message_service,
    get_orchestrator,
    get_poller_config,
    get_service_cache,
    get_user_id,
    verify_cron_secret,
)

__all__ = [
    "get_image_cleanup_service",
    "get_image_service",
    "get_message_service",
    "get_orchestrator",
    "get_poller_config",
    "get_service_cache",
    "get_user_id",
    "verify_cron_secret",
]
