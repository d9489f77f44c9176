"""SQLAlchemy models for uploaded media metadata and storage quotas."""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from blog_gateway.db.session import Base
from blog_gateway.db.time import unix_now
from blog_gateway.models.post import new_id

MEDIA_TYPE_IMAGE = "image"
MEDIA_TYPE_AUDIO = "audio"
MEDIA_TYPE_VIDEO = "video"


class Media(Base):
    """Metadata for an object held by the external storage service.

    Rows are immutable once written; only deletion is supported.
    """

    __tablename__ = "media"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # image | audio | video
    file_type: Mapped[str] = mapped_column(String(16), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    post_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("posts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    comment_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("comments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    uploaded_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)


class UsageQuota(Base):
    """Cumulative storage usage per account.

    Counters only grow; deleting media does not give bytes back.
    """

    __tablename__ = "usage_quota"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_bytes_used: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_files: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reset_date: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
