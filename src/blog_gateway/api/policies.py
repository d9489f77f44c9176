"""Route policy table.

Every route served by the gateway is listed here by HTTP method and route
template. Routes missing from the table are refused.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Final

from sqlalchemy import select
from sqlalchemy.orm import Session

from blog_gateway.models import Post
from blog_gateway.services.access import Policy

OwnerResolver = Callable[[Session, Mapping[str, str]], str | None]


def post_author(db: Session, path_params: Mapping[str, str]) -> str | None:
    """Author of the post named by ``{post_id}``."""
    return db.scalar(select(Post.author_id).where(Post.id == path_params.get("post_id")))


def media_key_owner(db: Session, path_params: Mapping[str, str]) -> str | None:
    """Owner encoded in a storage key of the form ``<user_id>/<name>``."""
    key = path_params.get("key") or ""
    owner, sep, rest = key.partition("/")
    if not sep or not owner or not rest:
        return None
    return owner


@dataclass(frozen=True)
class RoutePolicy:
    """Policy plus, for ownership policies, how to find the resource owner."""

    policy: Policy
    owner: OwnerResolver | None = None


ROUTE_POLICIES: Final[dict[tuple[str, str], RoutePolicy]] = {
    ("GET", "/"): RoutePolicy(Policy.PUBLIC),
    ("GET", "/health"): RoutePolicy(Policy.PUBLIC),
    # Posts
    ("GET", "/posts"): RoutePolicy(Policy.PUBLIC),
    ("GET", "/posts/{slug}"): RoutePolicy(Policy.PUBLIC),
    ("POST", "/posts"): RoutePolicy(Policy.ADMIN_OR_OWNER),
    ("PUT", "/posts/{post_id}"): RoutePolicy(Policy.SELF_OR_PRIVILEGED, post_author),
    ("POST", "/posts/{post_id}/publish"): RoutePolicy(Policy.SELF_OR_PRIVILEGED, post_author),
    ("DELETE", "/posts/{post_id}"): RoutePolicy(Policy.OWNER_ONLY),
    ("POST", "/posts/{slug}/comments"): RoutePolicy(Policy.PUBLIC),
    # Walls
    ("GET", "/walls"): RoutePolicy(Policy.PUBLIC),
    ("POST", "/walls"): RoutePolicy(Policy.ADMIN_OR_OWNER),
    ("GET", "/walls/{wall_id}"): RoutePolicy(Policy.PUBLIC),
    ("POST", "/walls/{wall_id}/comments"): RoutePolicy(Policy.PUBLIC),
    # Media
    ("POST", "/upload"): RoutePolicy(Policy.AUTHENTICATED),
    ("POST", "/media/upload"): RoutePolicy(Policy.AUTHENTICATED),
    ("GET", "/media/quota"): RoutePolicy(Policy.AUTHENTICATED),
    ("GET", "/media/list"): RoutePolicy(Policy.AUTHENTICATED),
    ("DELETE", "/media/{key:path}"): RoutePolicy(Policy.SELF_ONLY, media_key_owner),
    # Administration
    ("GET", "/admin/posts"): RoutePolicy(Policy.ADMIN_ONLY),
    ("GET", "/admin/comments"): RoutePolicy(Policy.ADMIN_ONLY),
    ("POST", "/admin/comments/{comment_id}/approve"): RoutePolicy(Policy.ADMIN_ONLY),
    ("POST", "/admin/comments/{comment_id}/spam"): RoutePolicy(Policy.ADMIN_ONLY),
    ("DELETE", "/admin/comments/{comment_id}"): RoutePolicy(Policy.ADMIN_ONLY),
}


def lookup_policy(method: str, route_path: str) -> RoutePolicy | None:
    return ROUTE_POLICIES.get((method.upper(), route_path))
