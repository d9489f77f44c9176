"""Administration endpoints: post overview and the comment moderation queue."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from blog_gateway.api.dependencies import (
    ContentRepositoryDep,
    ModerationServiceDep,
    enforce_route_policy,
)
from blog_gateway.core.errors import NotFound
from blog_gateway.models.comment import COMMENT_STATUS_APPROVED, COMMENT_STATUS_SPAM

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(enforce_route_policy)],
)


@router.get("/posts")
async def list_all_posts(repo: ContentRepositoryDep) -> dict[str, list[dict[str, Any]]]:
    """Every post regardless of status, newest first."""
    return {"posts": repo.list_all()}


@router.get("/comments")
async def list_pending_comments(
    moderation: ModerationServiceDep,
) -> dict[str, list[dict[str, Any]]]:
    """The moderation queue, oldest first."""
    return {"comments": moderation.list_pending()}


@router.post("/comments/{comment_id}/approve")
async def approve_comment(comment_id: str, moderation: ModerationServiceDep) -> dict[str, str]:
    await moderation.approve(comment_id)
    return {"id": comment_id, "status": COMMENT_STATUS_APPROVED}


@router.post("/comments/{comment_id}/spam")
async def mark_comment_spam(comment_id: str, moderation: ModerationServiceDep) -> dict[str, str]:
    await moderation.mark_spam(comment_id)
    return {"id": comment_id, "status": COMMENT_STATUS_SPAM}


@router.delete("/comments/{comment_id}")
async def delete_comment(comment_id: str, moderation: ModerationServiceDep) -> dict[str, bool]:
    """Remove a comment and its replies.

    Raises:
        NotFound: If the comment does not exist
    """
    if not await moderation.delete(comment_id):
        raise NotFound("Comment not found")
    return {"deleted": True}
