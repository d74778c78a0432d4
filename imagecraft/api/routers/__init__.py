"""API routers."""

from .generation import router as generation_router
from .health import router as health_router
from .images import router as images_router
from .messages import router as messages_router

__all__ = [
    "generation_router",
    "health_router",
    "images_router",
    "messages_router",
]
