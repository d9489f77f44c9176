"""Comment and wall Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for submitting a comment to a wall or post."""

    content: str = Field(..., min_length=1, max_length=5000)
    author_name: str | None = Field(None, max_length=100)
    parent_comment_id: str | None = None


class CommentResponse(BaseModel):
    """Publicly visible comment."""

    id: str
    content: str
    author_name: str
    image_url: str | None = None
    audio_url: str | None = None
    created_at: int
    status: str

    model_config = ConfigDict(from_attributes=True)


class WallMessage(CommentResponse):
    """Top-level wall comment annotated with its reply count."""

    reply_count: int = 0


class ModerationComment(BaseModel):
    """Full comment row shown in the moderation queue."""

    id: str
    content: str
    author_id: str | None = None
    author_name: str
    post_id: str | None = None
    wall_id: str | None = None
    parent_comment_id: str | None = None
    status: str
    created_at: int
    updated_at: int

    model_config = ConfigDict(from_attributes=True)


class WallCreate(BaseModel):
    """Schema for opening a new message wall."""

    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = Field(None, max_length=500)


class WallResponse(BaseModel):
    """Message wall header."""

    id: str
    title: str
    description: str | None = None
    created_at: int

    model_config = ConfigDict(from_attributes=True)
