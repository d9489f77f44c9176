"""Post storage, listing and cache maintenance."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_gateway.core.errors import ValidationError
from blog_gateway.core.settings import settings
from blog_gateway.db.time import unix_now
from blog_gateway.models import Comment, Post, User
from blog_gateway.models.comment import COMMENT_STATUS_APPROVED
from blog_gateway.models.post import POST_STATUS_DRAFT, POST_STATUS_PUBLISHED
from blog_gateway.schemas.comment import CommentResponse
from blog_gateway.schemas.post import (
    AdminPostSummary,
    PostCreate,
    PostResponse,
    PostSummary,
)
from blog_gateway.services.cache import ContentCache, page_key, post_key

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")
# Largest OFFSET a signed 64-bit SQL integer can hold.
_MAX_OFFSET = 2**63 - 1
_NULLABLE_POST_FIELDS = frozenset({"excerpt", "featured_image_url"})
UPDATABLE_POST_FIELDS = frozenset({"title", "slug", "content", "excerpt", "featured_image_url"})


@dataclass(frozen=True)
class Pagination:
    """Clamped page request."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def page_count(self, total: int) -> int:
        return math.ceil(total / self.limit) if total > 0 else 0


def _positive_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return max(value, 1)


def clamp_pagination(
    page: Any = None,
    limit: Any = None,
    *,
    default_limit: int | None = None,
    max_limit: int | None = None,
) -> Pagination:
    """Parse raw page/limit values into positive integers.

    Absent or non-numeric values fall back to page 1 and the default page
    size; values below one are raised to one. ``limit`` is capped and
    ``page`` is capped so the row offset stays representable.
    """
    default_limit = default_limit or settings.default_page_size
    max_limit = max_limit or settings.max_page_size
    size = min(_positive_int(limit, default_limit), max_limit)
    return Pagination(
        page=min(_positive_int(page, 1), _MAX_OFFSET // size),
        limit=size,
    )


def is_valid_slug(slug: str) -> bool:
    return bool(_SLUG_RE.match(slug))


class ContentRepository:
    """CRUD and listing operations over posts.

    Every post write drops the first listing page from the cache; other pages
    are left to expire with their TTL.
    """

    def __init__(self, db: Session, cache: ContentCache) -> None:
        self.db = db
        self.cache = cache

    # --- Reads --------------------------------------------------------------

    def _published_summaries(self, limit: int, offset: int = 0) -> list[dict[str, Any]]:
        rows = self.db.execute(
            select(
                Post.id,
                Post.title,
                Post.slug,
                Post.excerpt,
                Post.featured_image_url,
                Post.published_at,
                Post.author_id,
                User.username.label("author_name"),
                User.avatar_url.label("author_avatar"),
            )
            .outerjoin(User, User.id == Post.author_id)
            .where(Post.status == POST_STATUS_PUBLISHED)
            .order_by(desc(Post.published_at), desc(Post.created_at))
            .limit(limit)
            .offset(offset)
        ).all()
        return [PostSummary.model_validate(dict(row._mapping)).model_dump() for row in rows]

    def count_published(self) -> int:
        return self.db.scalar(
            select(func.count()).select_from(Post).where(Post.status == POST_STATUS_PUBLISHED)
        ) or 0

    async def list_published(self, pagination: Pagination) -> dict[str, Any]:
        """Return one page of published posts, newest first.

        Only default-sized pages go through the cache, since the cache key
        carries the page number alone.
        """
        cacheable = pagination.limit == settings.default_page_size
        key = page_key(pagination.page)
        if cacheable:
            cached = await self.cache.get_json(key)
            if cached is not None:
                return cached

        total = self.count_published()
        result = {
            "posts": self._published_summaries(pagination.limit, pagination.offset),
            "total": total,
            "page": pagination.page,
            "pages": pagination.page_count(total),
        }
        if cacheable:
            await self.cache.put_json(key, result)
        return result

    def recent_published(self, count: int = 5) -> list[dict[str, Any]]:
        return self._published_summaries(count)

    def approved_post_comments(self, post_id: str) -> list[dict[str, Any]]:
        comments = self.db.scalars(
            select(Comment)
            .where(Comment.post_id == post_id, Comment.status == COMMENT_STATUS_APPROVED)
            .order_by(desc(Comment.created_at))
        ).all()
        return [CommentResponse.model_validate(c).model_dump() for c in comments]

    async def get_by_slug(self, slug: str) -> dict[str, Any] | None:
        """Return a published post with author projection and approved comments."""
        key = post_key(slug)
        cached = await self.cache.get_json(key)
        if cached is not None:
            return cached

        row = self.db.execute(
            select(
                Post,
                User.username.label("author_name"),
                User.avatar_url.label("author_avatar"),
            )
            .outerjoin(User, User.id == Post.author_id)
            .where(Post.slug == slug, Post.status == POST_STATUS_PUBLISHED)
        ).first()
        if row is None:
            return None

        post, author_name, author_avatar = row
        payload = PostResponse.model_validate(post).model_dump()
        payload["author_name"] = author_name
        payload["author_avatar"] = author_avatar
        result = {"post": payload, "comments": self.approved_post_comments(post.id)}
        await self.cache.put_json(key, result)
        return result

    def get(self, post_id: str) -> Post | None:
        return self.db.get(Post, post_id)

    def get_published_by_slug(self, slug: str) -> Post | None:
        return self.db.scalar(
            select(Post).where(Post.slug == slug, Post.status == POST_STATUS_PUBLISHED)
        )

    def author_of(self, post_id: str) -> str | None:
        """Return the author id of ``post_id`` for ownership checks."""
        return self.db.scalar(select(Post.author_id).where(Post.id == post_id))

    def list_all(self) -> list[dict[str, Any]]:
        posts = self.db.scalars(select(Post).order_by(desc(Post.created_at))).all()
        return [AdminPostSummary.model_validate(p).model_dump() for p in posts]

    # --- Writes -------------------------------------------------------------

    def unique_slug(self, base: str, *, exclude_id: str | None = None) -> str:
        """Return ``base`` or the first free ``base-N`` (N >= 2)."""
        query = select(Post.slug).where(
            (Post.slug == base) | (Post.slug.like(f"{base}-%"))
        )
        if exclude_id is not None:
            query = query.where(Post.id != exclude_id)
        taken = set(self.db.scalars(query).all())
        if base not in taken:
            return base
        suffix = 2
        while f"{base}-{suffix}" in taken:
            suffix += 1
        return f"{base}-{suffix}"

    async def create(self, data: PostCreate, author_id: str) -> Post:
        """Insert a new draft authored by ``author_id``."""
        now = unix_now()
        post = Post(
            title=data.title,
            slug=self.unique_slug(data.slug),
            content=data.content,
            excerpt=data.excerpt or "",
            featured_image_url=data.featured_image_url,
            author_id=author_id,
            status=POST_STATUS_DRAFT,
            created_at=now,
            updated_at=now,
            published_at=None,
        )
        self.db.add(post)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # A concurrent writer took the slug between the check and the insert.
            self.db.rollback()
            raise ValidationError("Invalid post data") from exc
        self.db.refresh(post)
        await self.cache.invalidate(page_key(1))
        return post

    async def update(self, post_id: str, fields: Mapping[str, Any], requester_id: str) -> int:
        """Apply a partial update to a post owned by ``requester_id``.

        Only keys present in ``fields`` are written and ``updated_at`` always
        moves. Matching zero rows is not an error. Returns the matched row
        count.
        """
        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name not in UPDATABLE_POST_FIELDS:
                continue
            if value is None and name not in _NULLABLE_POST_FIELDS:
                raise ValidationError("Invalid update data")
            values[name] = value

        previous_slug = self.db.scalar(
            select(Post.slug).where(Post.id == post_id, Post.author_id == requester_id)
        )
        if previous_slug is None:
            return 0

        if "slug" in values:
            if not is_valid_slug(values["slug"]):
                raise ValidationError("Invalid update data")
            values["slug"] = self.unique_slug(values["slug"], exclude_id=post_id)
        values["updated_at"] = unix_now()

        try:
            result = self.db.execute(
                update(Post)
                .where(Post.id == post_id, Post.author_id == requester_id)
                .values(**values)
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ValidationError("Invalid update data") from exc

        stale = {page_key(1), post_key(previous_slug)}
        if "slug" in values:
            stale.add(post_key(values["slug"]))
        await self.cache.invalidate(*sorted(stale))
        return result.rowcount

    async def publish(self, post_id: str, requester_id: str) -> int:
        """Publish a post owned by ``requester_id``.

        ``published_at`` is only stamped when it is still empty, so repeated
        publishes keep the original time.
        """
        now = unix_now()
        result = self.db.execute(
            update(Post)
            .where(Post.id == post_id, Post.author_id == requester_id)
            .values(
                status=POST_STATUS_PUBLISHED,
                published_at=func.coalesce(Post.published_at, now),
                updated_at=now,
            )
        )
        self.db.commit()

        stale = [page_key(1)]
        slug = self.db.scalar(select(Post.slug).where(Post.id == post_id))
        if slug is not None:
            stale.append(post_key(slug))
        await self.cache.invalidate(*stale)
        return result.rowcount

    async def delete(self, post_id: str) -> bool:
        """Remove a post; its comments go with it through the cascade."""
        slug = self.db.scalar(select(Post.slug).where(Post.id == post_id))
        if slug is None:
            return False
        self.db.execute(delete(Post).where(Post.id == post_id))
        self.db.commit()
        await self.cache.invalidate(page_key(1), post_key(slug))
        return True
