"""SQLAlchemy model for the local mirror of account-service users."""

from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from blog_gateway.db.session import Base
from blog_gateway.db.time import unix_now


class User(Base):
    """Read-optimised copy of an identity owned by the account service.

    Rows are upserted from the resolved session on every authenticated
    request so author metadata can be joined locally. The copy may lag the
    session store by one request.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    github_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    username: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # user | admin | owner
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="user", index=True)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False, default=unix_now)
