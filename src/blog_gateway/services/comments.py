"""Message walls and comment submission."""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, aliased

from blog_gateway.core.errors import NotFound, ValidationError
from blog_gateway.core.settings import settings
from blog_gateway.db.time import unix_now
from blog_gateway.models import Comment, Post, Wall
from blog_gateway.models.comment import COMMENT_STATUS_APPROVED, COMMENT_STATUS_PENDING
from blog_gateway.models.post import POST_STATUS_PUBLISHED
from blog_gateway.schemas.comment import CommentCreate, WallCreate, WallMessage, WallResponse
from blog_gateway.schemas.principal import Principal
from blog_gateway.services.cache import ContentCache, post_key

ANONYMOUS_AUTHOR = "Anonymous"


def initial_comment_status(principal: Principal | None) -> str:
    """Comments from the admin role skip the moderation queue."""
    if principal is not None and principal.role == settings.admin_role:
        return COMMENT_STATUS_APPROVED
    return COMMENT_STATUS_PENDING


class CommentService:
    """Walls, wall listings and comment creation for walls and posts."""

    def __init__(self, db: Session, cache: ContentCache) -> None:
        self.db = db
        self.cache = cache

    def list_walls(self) -> list[dict[str, Any]]:
        walls = self.db.scalars(
            select(Wall).where(Wall.is_active.is_(True)).order_by(desc(Wall.created_at))
        ).all()
        return [WallResponse.model_validate(w).model_dump() for w in walls]

    def create_wall(self, data: WallCreate) -> Wall:
        now = unix_now()
        wall = Wall(
            title=data.title,
            description=data.description,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self.db.add(wall)
        self.db.commit()
        self.db.refresh(wall)
        return wall

    def get_wall(self, wall_id: str) -> dict[str, Any]:
        """Return a wall with its approved top-level messages, newest first.

        Raises:
            NotFound: If the wall does not exist
        """
        wall = self.db.get(Wall, wall_id)
        if wall is None:
            raise NotFound("Wall not found")

        replies = aliased(Comment)
        reply_count = (
            select(func.count())
            .select_from(replies)
            .where(replies.parent_comment_id == Comment.id)
            .correlate(Comment)
            .scalar_subquery()
        )
        rows = self.db.execute(
            select(Comment, reply_count.label("reply_count"))
            .where(
                Comment.wall_id == wall_id,
                Comment.parent_comment_id.is_(None),
                Comment.status == COMMENT_STATUS_APPROVED,
            )
            .order_by(desc(Comment.created_at))
        ).all()

        messages = []
        for comment, count in rows:
            message = WallMessage.model_validate(comment)
            messages.append(message.model_copy(update={"reply_count": count or 0}).model_dump())

        return {
            "wall": {"id": wall.id, "title": wall.title, "description": wall.description},
            "messages": messages,
            "total_comments": len(messages),
        }

    def _check_parent(self, parent_id: str, *, post_id: str | None, wall_id: str | None) -> None:
        parent = self.db.get(Comment, parent_id)
        if parent is None or parent.post_id != post_id or parent.wall_id != wall_id:
            raise ValidationError("Invalid comment data")

    def _insert(
        self,
        data: CommentCreate,
        principal: Principal | None,
        *,
        post_id: str | None = None,
        wall_id: str | None = None,
    ) -> Comment:
        if data.parent_comment_id:
            self._check_parent(data.parent_comment_id, post_id=post_id, wall_id=wall_id)

        now = unix_now()
        comment = Comment(
            content=data.content,
            author_id=principal.id if principal else None,
            author_name=data.author_name or ANONYMOUS_AUTHOR,
            post_id=post_id,
            wall_id=wall_id,
            parent_comment_id=data.parent_comment_id or None,
            status=initial_comment_status(principal),
            created_at=now,
            updated_at=now,
        )
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def add_wall_comment(
        self,
        wall_id: str,
        data: CommentCreate,
        principal: Principal | None,
    ) -> Comment:
        """Submit a comment to a wall.

        Raises:
            NotFound: If the wall does not exist
            ValidationError: If the parent comment is not on the same wall
        """
        if self.db.get(Wall, wall_id) is None:
            raise NotFound("Wall not found")
        return self._insert(data, principal, wall_id=wall_id)

    async def add_post_comment(
        self,
        slug: str,
        data: CommentCreate,
        principal: Principal | None,
    ) -> Comment:
        """Submit a comment to a published post."""
        post = self.db.scalar(
            select(Post).where(Post.slug == slug, Post.status == POST_STATUS_PUBLISHED)
        )
        if post is None:
            raise NotFound("Post not found")
        comment = self._insert(data, principal, post_id=post.id)
        if comment.status == COMMENT_STATUS_APPROVED:
            await self.cache.invalidate(post_key(post.slug))
        return comment
