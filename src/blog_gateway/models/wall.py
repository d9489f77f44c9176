"""SQLAlchemy model for message walls."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from blog_gateway.db.session import Base
from blog_gateway.db.time import unix_now
from blog_gateway.models.post import new_id


class Wall(Base):
    """Freeform comment container not attached to a post."""

    __tablename__ = "message_walls"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
