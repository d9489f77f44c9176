"""Tests for the local user mirror."""

from blog_gateway.models import User
from blog_gateway.schemas.principal import Principal
from blog_gateway.services.identity import sync_principal


def test_sync_inserts_then_updates(db_session):
    principal = Principal(id="gh-1", username="octo", email="o@example.com", role="user", external_id="1")
    assert sync_principal(db_session, principal) is True

    user = db_session.get(User, "gh-1")
    assert user.username == "octo"
    assert user.github_id == "1"
    created_at = user.created_at

    promoted = principal.model_copy(update={"role": "owner", "username": "octocat"})
    assert sync_principal(db_session, promoted) is True

    db_session.expire_all()
    user = db_session.get(User, "gh-1")
    assert user.role == "owner"
    assert user.username == "octocat"
    assert user.created_at == created_at


def test_sync_failure_is_swallowed(db_session, engine):
    User.__table__.drop(bind=engine)
    try:
        assert sync_principal(db_session, Principal(id="u1")) is False
    finally:
        User.__table__.create(bind=engine)
