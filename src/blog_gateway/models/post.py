"""SQLAlchemy model for blog posts."""

from __future__ import annotations

import uuid

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from blog_gateway.db.session import Base
from blog_gateway.db.time import unix_now

POST_STATUS_DRAFT = "draft"
POST_STATUS_PUBLISHED = "published"


def new_id() -> str:
    """Return a fresh random row identifier."""
    return str(uuid.uuid4())


class Post(Base):
    """Blog post authored by a privileged user.

    Posts start as drafts. ``published_at`` is stamped on the first publish
    and never moved afterwards.
    """

    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Lowercase alphanumerics and hyphens; unique across all posts.
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    featured_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Account id from the session store; the users mirror may lag, so no foreign key.
    author_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=POST_STATUS_DRAFT,
        index=True,
    )
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
    published_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
