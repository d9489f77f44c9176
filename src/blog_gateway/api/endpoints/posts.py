"""Post endpoints: public listing and reading, author writes, post comments."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse

from blog_gateway.api.dependencies import (
    CommentServiceDep,
    ContentRepositoryDep,
    CurrentPrincipalDep,
    PrincipalDep,
    enforce_route_policy,
)
from blog_gateway.api.negotiation import wants_html
from blog_gateway.core.errors import NotFound
from blog_gateway.schemas.comment import CommentCreate
from blog_gateway.schemas.post import PostCreate, PostResponse, PostUpdate
from blog_gateway.services.content import clamp_pagination
from blog_gateway.web.render import render_not_found, render_post, render_post_list

router = APIRouter(
    prefix="/posts",
    tags=["posts"],
    dependencies=[Depends(enforce_route_policy)],
)


@router.get("", response_model=None)
async def list_posts(
    request: Request,
    repo: ContentRepositoryDep,
    page: str | None = Query(None),
    limit: str | None = Query(None),
    fmt: str | None = Query(None, alias="format"),
) -> dict[str, Any] | HTMLResponse:
    """List published posts, newest first.

    ``page`` and ``limit`` are accepted as raw strings so that junk values
    fall back to defaults instead of failing validation.
    """
    result = await repo.list_published(clamp_pagination(page, limit))
    if wants_html(request, fmt):
        return HTMLResponse(render_post_list(result))
    return result


@router.get("/{slug}", response_model=None)
async def get_post(
    slug: str,
    request: Request,
    repo: ContentRepositoryDep,
    fmt: str | None = Query(None, alias="format"),
) -> dict[str, Any] | HTMLResponse:
    """Return a published post and its approved comments.

    Raises:
        NotFound: If no published post has this slug
    """
    detail = await repo.get_by_slug(slug)
    html = wants_html(request, fmt)
    if detail is None:
        if html:
            return HTMLResponse(
                render_not_found("Post not found"),
                status_code=status.HTTP_404_NOT_FOUND,
            )
        raise NotFound("Post not found")
    if html:
        return HTMLResponse(render_post(detail))
    return detail


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    principal: CurrentPrincipalDep,
    repo: ContentRepositoryDep,
) -> PostResponse:
    """Create a draft post authored by the caller.

    Args:
        data: Title, slug, content and optional excerpt/image
        principal: Caller; the route policy has already required admin or owner
        repo: Post repository

    Returns:
        The stored draft, with its slug de-duplicated if needed
    """
    post = await repo.create(data, principal.id)
    return PostResponse.model_validate(post)


@router.put("/{post_id}")
async def update_post(
    post_id: str,
    data: PostUpdate,
    principal: CurrentPrincipalDep,
    repo: ContentRepositoryDep,
) -> dict[str, Any]:
    """Partially update a post the caller authored.

    Writes are scoped to the caller's own posts, so a privileged caller
    editing someone else's post matches nothing and gets ``updated: false``.
    """
    fields = data.model_dump(exclude_unset=True)
    matched = await repo.update(post_id, fields, principal.id)
    return {"id": post_id, **fields, "updated": matched > 0}


@router.post("/{post_id}/publish")
async def publish_post(
    post_id: str,
    principal: CurrentPrincipalDep,
    repo: ContentRepositoryDep,
) -> dict[str, Any]:
    """Publish a post; publishing twice keeps the first publish time."""
    matched = await repo.publish(post_id, principal.id)
    return {"id": post_id, "status": "published", "updated": matched > 0}


@router.delete("/{post_id}")
async def delete_post(post_id: str, repo: ContentRepositoryDep) -> dict[str, bool]:
    """Delete a post and its comments. Restricted to the owner role."""
    if not await repo.delete(post_id):
        raise NotFound("Post not found")
    return {"deleted": True}


@router.post("/{slug}/comments", status_code=status.HTTP_201_CREATED)
async def comment_on_post(
    slug: str,
    data: CommentCreate,
    principal: PrincipalDep,
    comments: CommentServiceDep,
) -> dict[str, Any]:
    """Submit a comment to a published post; it waits for moderation."""
    comment = await comments.add_post_comment(slug, data, principal)
    return {
        "id": comment.id,
        "content": comment.content,
        "author_name": comment.author_name,
        "parent_comment_id": comment.parent_comment_id,
        "status": comment.status,
    }
