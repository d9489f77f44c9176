"""Message wall endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from blog_gateway.api.dependencies import CommentServiceDep, PrincipalDep, enforce_route_policy
from blog_gateway.schemas.comment import CommentCreate, WallCreate, WallResponse

router = APIRouter(
    prefix="/walls",
    tags=["walls"],
    dependencies=[Depends(enforce_route_policy)],
)


@router.get("")
async def list_walls(comments: CommentServiceDep) -> dict[str, list[dict[str, Any]]]:
    """List active walls, newest first."""
    return {"walls": comments.list_walls()}


@router.post("", response_model=WallResponse, status_code=status.HTTP_201_CREATED)
async def create_wall(data: WallCreate, comments: CommentServiceDep) -> WallResponse:
    wall = comments.create_wall(data)
    return WallResponse.model_validate(wall)


@router.get("/{wall_id}")
async def get_wall(wall_id: str, comments: CommentServiceDep) -> dict[str, Any]:
    """Return a wall with its approved top-level messages and their reply counts.

    Raises:
        NotFound: If the wall does not exist
    """
    return comments.get_wall(wall_id)


@router.post("/{wall_id}/comments", status_code=status.HTTP_201_CREATED)
async def comment_on_wall(
    wall_id: str,
    data: CommentCreate,
    principal: PrincipalDep,
    comments: CommentServiceDep,
) -> dict[str, Any]:
    """Submit a comment to a wall.

    Anyone may post. Comments from the admin role are approved immediately,
    everything else lands in the moderation queue as ``pending``.

    Args:
        wall_id: Target wall
        data: Comment content, optional display name and parent comment
        principal: Caller, when a session was presented
        comments: Comment service

    Returns:
        The new comment's id, content and moderation status
    """
    comment = comments.add_wall_comment(wall_id, data, principal)
    return {
        "id": comment.id,
        "content": comment.content,
        "author_name": comment.author_name,
        "parent_comment_id": comment.parent_comment_id,
        "status": comment.status,
    }
