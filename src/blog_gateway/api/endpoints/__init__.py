"""API endpoint modules."""

from .admin import router as admin_router
from .media import router as media_router
from .posts import router as posts_router
from .system import router as system_router
from .walls import router as walls_router

__all__ = [
    "admin_router",
    "media_router",
    "posts_router",
    "system_router",
    "walls_router",
]
