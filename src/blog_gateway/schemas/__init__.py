"""Pydantic schemas for request and response payloads."""

from .comment import (
    CommentCreate,
    CommentResponse,
    ModerationComment,
    WallCreate,
    WallMessage,
    WallResponse,
)
from .media import UploadResponse
from .post import (
    AdminPostSummary,
    PostCreate,
    PostPage,
    PostResponse,
    PostSummary,
    PostUpdate,
)
from .principal import Principal

__all__ = [
    "AdminPostSummary",
    "CommentCreate",
    "CommentResponse",
    "ModerationComment",
    "PostCreate",
    "PostPage",
    "PostResponse",
    "PostSummary",
    "PostUpdate",
    "Principal",
    "UploadResponse",
    "WallCreate",
    "WallMessage",
    "WallResponse",
]
