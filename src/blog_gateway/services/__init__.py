"""Business logic services for the blog gateway."""

from .access import Policy, authorize
from .cache import ContentCache
from .comments import CommentService
from .content import ContentRepository
from .identity import sync_principal
from .moderation import ModerationService
from .sessions import SessionResolver
from .storage import StorageClient
from .uploads import UploadCoordinator

__all__ = [
    "Policy",
    "authorize",
    "ContentCache",
    "CommentService",
    "ContentRepository",
    "sync_principal",
    "ModerationService",
    "SessionResolver",
    "StorageClient",
    "UploadCoordinator"
]
