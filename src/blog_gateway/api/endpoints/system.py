"""Health check and landing page."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from blog_gateway.api.dependencies import ContentRepositoryDep, PrincipalDep, enforce_route_policy
from blog_gateway.api.negotiation import wants_html
from blog_gateway.core.settings import settings
from blog_gateway.schemas.principal import Principal
from blog_gateway.web.render import render_home

RECENT_POSTS_ON_HOME = 5

router = APIRouter(tags=["system"], dependencies=[Depends(enforce_route_policy)])


def _viewer(principal: Principal | None) -> dict[str, Any] | None:
    if principal is None:
        return None
    return {
        "id": principal.id,
        "username": principal.username,
        "role": principal.role,
        "avatar_url": principal.avatar_url,
        "can_write": principal.role in settings.privileged_roles,
    }


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness probe; never touches the session store or the database."""
    return {"status": "ok", "service": "blog"}


@router.get("/", response_model=None)
async def home(
    request: Request,
    principal: PrincipalDep,
    repo: ContentRepositoryDep,
    fmt: str | None = Query(None, alias="format"),
) -> dict[str, Any] | HTMLResponse:
    """Landing page with the most recent published posts."""
    posts = repo.recent_published(RECENT_POSTS_ON_HOME)
    viewer = _viewer(principal)
    if wants_html(request, fmt):
        return HTMLResponse(render_home(posts, viewer))
    return {"posts": posts, "viewer": viewer}
