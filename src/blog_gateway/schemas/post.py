"""Post-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

SLUG_PATTERN = r"^[a-z0-9-]+$"


class PostCreate(BaseModel):
    """Schema for creating a new draft post."""

    title: str = Field(..., min_length=3, max_length=200)
    slug: str = Field(..., min_length=1, max_length=200, pattern=SLUG_PATTERN)
    content: str = Field(..., min_length=10)
    excerpt: str | None = Field(None, max_length=300)
    featured_image_url: str | None = Field(None, max_length=2000)


class PostUpdate(BaseModel):
    """Partial update; only fields present in the payload are written."""

    title: str | None = Field(None, min_length=3, max_length=200)
    slug: str | None = Field(None, min_length=1, max_length=200, pattern=SLUG_PATTERN)
    content: str | None = Field(None, min_length=10)
    excerpt: str | None = Field(None, max_length=300)
    featured_image_url: str | None = Field(None, max_length=2000)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: str
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    featured_image_url: str | None = None
    author_id: str
    status: str
    created_at: int
    updated_at: int
    published_at: int | None = None

    model_config = ConfigDict(from_attributes=True)


class PostSummary(BaseModel):
    """Listing projection of a published post."""

    id: str
    title: str
    slug: str
    excerpt: str | None = None
    featured_image_url: str | None = None
    published_at: int | None = None
    author_id: str
    author_name: str | None = None
    author_avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AdminPostSummary(BaseModel):
    """Row shown in the admin post table."""

    id: str
    title: str
    slug: str
    status: str
    created_at: int
    updated_at: int

    model_config = ConfigDict(from_attributes=True)


class PostPage(BaseModel):
    """One page of published posts."""

    posts: list[PostSummary]
    total: int
    page: int
    pages: int
