"""SQLAlchemy model for comments on posts and walls."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from blog_gateway.db.session import Base
from blog_gateway.db.time import unix_now
from blog_gateway.models.post import new_id

COMMENT_STATUS_PENDING = "pending"
COMMENT_STATUS_APPROVED = "approved"
COMMENT_STATUS_SPAM = "spam"


class Comment(Base):
    """Comment attached to exactly one post or wall.

    Replies point at their parent through ``parent_comment_id``; removing a
    parent removes the whole reply chain through the foreign key's cascade.
    """

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(
            "(post_id IS NULL) <> (wall_id IS NULL)",
            name="ck_comments_single_container",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    author_name: Mapped[str] = mapped_column(Text, nullable=False, default="Anonymous")
    post_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    wall_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("message_walls.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    parent_comment_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # pending | approved | spam
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=COMMENT_STATUS_PENDING,
    )
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
