"""Comment moderation workflow."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from blog_gateway.db.time import unix_now
from blog_gateway.models import Comment, Post
from blog_gateway.models.comment import (
    COMMENT_STATUS_APPROVED,
    COMMENT_STATUS_PENDING,
    COMMENT_STATUS_SPAM,
)
from blog_gateway.schemas.comment import ModerationComment
from blog_gateway.services.cache import ContentCache, post_key

logger = logging.getLogger(__name__)


class ModerationService:
    """Admin actions over the comment lifecycle.

    Comments move ``pending -> approved`` or ``pending -> spam``. Deletion is
    a hard delete, not a state; replies are removed by the database cascade.
    """

    def __init__(self, db: Session, cache: ContentCache) -> None:
        self.db = db
        self.cache = cache

    def list_pending(self) -> list[dict[str, Any]]:
        """Return the moderation queue, oldest first."""
        comments = self.db.scalars(
            select(Comment)
            .where(Comment.status == COMMENT_STATUS_PENDING)
            .order_by(Comment.created_at)
        ).all()
        return [ModerationComment.model_validate(c).model_dump() for c in comments]

    async def _invalidate_post_of(self, comment_id: str) -> None:
        slug = self.db.scalar(
            select(Post.slug)
            .join(Comment, Comment.post_id == Post.id)
            .where(Comment.id == comment_id)
        )
        if slug is not None:
            await self.cache.invalidate(post_key(slug))

    async def _set_status(self, comment_id: str, new_status: str) -> None:
        result = self.db.execute(
            update(Comment)
            .where(Comment.id == comment_id, Comment.status == COMMENT_STATUS_PENDING)
            .values(status=new_status, updated_at=unix_now())
        )
        self.db.commit()
        if result.rowcount:
            logger.info("Comment %s marked %s", comment_id, new_status)
            await self._invalidate_post_of(comment_id)

    async def approve(self, comment_id: str) -> None:
        """Approve a pending comment. Any other status or an unknown id is a no-op."""
        await self._set_status(comment_id, COMMENT_STATUS_APPROVED)

    async def mark_spam(self, comment_id: str) -> None:
        """Flag a pending comment as spam so it never appears in listings."""
        await self._set_status(comment_id, COMMENT_STATUS_SPAM)

    async def delete(self, comment_id: str) -> bool:
        """Hard-delete a comment and, through the cascade, its replies."""
        await self._invalidate_post_of(comment_id)
        result = self.db.execute(delete(Comment).where(Comment.id == comment_id))
        self.db.commit()
        return bool(result.rowcount)
