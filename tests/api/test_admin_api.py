# mypy: ignore-errors
"""Tests for administration endpoints."""

import pytest
from fastapi import status

from blog_gateway.models import Comment
from blog_gateway.models.comment import COMMENT_STATUS_APPROVED, COMMENT_STATUS_SPAM
from blog_gateway.services.cache import post_key

ADMIN_ROUTES = [
    ("get", "/admin/posts"),
    ("get", "/admin/comments"),
    ("post", "/admin/comments/c1/approve"),
    ("post", "/admin/comments/c1/spam"),
    ("delete", "/admin/comments/c1"),
]


@pytest.mark.parametrize(("method", "path"), ADMIN_ROUTES)
def test_admin_routes_require_authentication(client, method, path) -> None:
    response = client.request(method.upper(), path)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.parametrize(("method", "path"), ADMIN_ROUTES)
@pytest.mark.parametrize("role", ["user", "owner"])
def test_admin_routes_require_admin_role(client, login, method, path, role) -> None:
    response = client.request(method.upper(), path, headers=login("someone", role=role))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_lists_all_posts(client, login, make_post) -> None:
    make_post("draft")
    make_post("live", published_at=100)

    response = client.get("/admin/posts", headers=login("ada", role="admin"))
    assert response.status_code == status.HTTP_200_OK
    assert {p["slug"]: p["status"] for p in response.json()["posts"]} == {
        "draft": "draft",
        "live": "published",
    }


def test_moderation_queue_oldest_first(client, login, make_wall, make_comment) -> None:
    wall = make_wall()
    make_comment("later", wall_id=wall.id, created_at=200)
    make_comment("earlier", wall_id=wall.id, created_at=100)
    make_comment("done", wall_id=wall.id, status=COMMENT_STATUS_APPROVED)

    response = client.get("/admin/comments", headers=login("ada", role="admin"))
    assert [c["content"] for c in response.json()["comments"]] == ["earlier", "later"]


def test_approve_comment_is_idempotent(client, login, make_post, make_comment, db_session) -> None:
    post = make_post("moderated", published_at=100)
    comment = make_comment("please approve", post_id=post.id)
    headers = login("ada", role="admin")

    first = client.post(f"/admin/comments/{comment.id}/approve", headers=headers)
    second = client.post(f"/admin/comments/{comment.id}/approve", headers=headers)
    assert first.status_code == second.status_code == status.HTTP_200_OK
    assert second.json() == {"id": comment.id, "status": "approved"}

    db_session.expire_all()
    assert db_session.get(Comment, comment.id).status == COMMENT_STATUS_APPROVED
    assert [c["content"] for c in client.get("/posts/moderated").json()["comments"]] == [
        "please approve"
    ]


def test_approve_unknown_comment_is_noop(client, login) -> None:
    response = client.post("/admin/comments/missing/approve", headers=login("ada", role="admin"))
    assert response.status_code == status.HTTP_200_OK


def test_approve_invalidates_post_cache(client, cache_store, login, make_post, make_comment) -> None:
    post = make_post("cached-discussion", published_at=100)
    comment = make_comment("hold on", post_id=post.id)
    client.get("/posts/cached-discussion")
    assert post_key("cached-discussion") in cache_store.data

    client.post(f"/admin/comments/{comment.id}/approve", headers=login("ada", role="admin"))
    assert post_key("cached-discussion") not in cache_store.data


def test_mark_spam(client, login, make_wall, make_comment, db_session) -> None:
    wall = make_wall()
    comment = make_comment("buy now", wall_id=wall.id)

    response = client.post(f"/admin/comments/{comment.id}/spam", headers=login("ada", role="admin"))
    assert response.json() == {"id": comment.id, "status": "spam"}

    db_session.expire_all()
    assert db_session.get(Comment, comment.id).status == COMMENT_STATUS_SPAM
    queue = client.get("/admin/comments", headers=login("ada", role="admin")).json()["comments"]
    assert queue == []


def test_moderation_only_moves_pending_comments(client, login, make_wall, make_comment, db_session) -> None:
    wall = make_wall()
    spam = make_comment("buy now", wall_id=wall.id, status=COMMENT_STATUS_SPAM)
    approved = make_comment("lovely", wall_id=wall.id, status=COMMENT_STATUS_APPROVED)
    headers = login("ada", role="admin")

    assert client.post(f"/admin/comments/{spam.id}/approve", headers=headers).status_code == status.HTTP_200_OK
    assert client.post(f"/admin/comments/{approved.id}/spam", headers=headers).status_code == status.HTTP_200_OK

    db_session.expire_all()
    assert db_session.get(Comment, spam.id).status == COMMENT_STATUS_SPAM
    assert db_session.get(Comment, approved.id).status == COMMENT_STATUS_APPROVED


def test_delete_comment_cascades_to_replies(
    client, login, make_wall, make_comment, db_session
) -> None:
    wall = make_wall()
    parent = make_comment("parent", wall_id=wall.id, status=COMMENT_STATUS_APPROVED)
    child = make_comment("child", wall_id=wall.id, parent_comment_id=parent.id)
    make_comment("grandchild", wall_id=wall.id, parent_comment_id=child.id)
    make_comment("unrelated", wall_id=wall.id)

    response = client.delete(f"/admin/comments/{parent.id}", headers=login("ada", role="admin"))
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"deleted": True}

    db_session.expire_all()
    assert [c.content for c in db_session.query(Comment)] == ["unrelated"]


def test_delete_missing_comment(client, login) -> None:
    response = client.delete("/admin/comments/missing", headers=login("ada", role="admin"))
    assert response.status_code == status.HTTP_404_NOT_FOUND
