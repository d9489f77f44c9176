"""SQLAlchemy models for the blog gateway."""

from .comment import Comment
from .media import Media, UsageQuota
from .post import Post
from .user import User
from .wall import Wall

__all__ = [
    "Comment",
    "Media", "UsageQuota",
    "Post",
    "User",
    "Wall",
]
