"""HTTP surface of the blog gateway."""

from .endpoints import (
    admin_router,
    media_router,
    posts_router,
    system_router,
    walls_router,
)

__all__ = [
    "admin_router",
    "media_router",
    "posts_router",
    "system_router",
    "walls_router",
]
