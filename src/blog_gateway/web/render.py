"""HTML rendering for the public pages.

Render functions take plain dictionaries only; they never see the request,
the session or the database.
"""

from __future__ import annotations

from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

DEFAULT_AVATAR = "/api/data/assets/XAOSTECH_LOGO.png"


def _format_date(timestamp: int | None) -> str:
    if not timestamp:
        return ""
    return datetime.fromtimestamp(int(timestamp), UTC).strftime("%Y-%m-%d")


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    env = Environment(
        loader=PackageLoader("blog_gateway", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["date"] = _format_date
    env.globals["default_avatar"] = DEFAULT_AVATAR
    return env


def _render(template: str, **context: Any) -> str:
    return get_environment().get_template(template).render(**context)


def render_home(posts: list[dict[str, Any]], viewer: dict[str, Any] | None) -> str:
    """Landing page with the most recent posts and the viewer's badge."""
    return _render("home.html", posts=posts, viewer=viewer)


def render_post_list(page: dict[str, Any]) -> str:
    """One page of the published post listing."""
    return _render("post_list.html", **page)


def render_post(detail: dict[str, Any]) -> str:
    """A single post with its approved comments."""
    return _render("post_detail.html", post=detail["post"], comments=detail["comments"])


def render_not_found(message: str) -> str:
    return _render("not_found.html", message=message)
