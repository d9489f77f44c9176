"""Shared API dependencies for identity, authorization and services."""

from __future__ import annotations

import logging
from functools import lru_cache, partial
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from blog_gateway.api.policies import lookup_policy
from blog_gateway.core.errors import InternalError
from blog_gateway.core.settings import settings
from blog_gateway.db.session import get_db
from blog_gateway.schemas.principal import Principal
from blog_gateway.services.access import authorize
from blog_gateway.services.cache import CacheStore, ContentCache, RedisCacheStore
from blog_gateway.services.comments import CommentService
from blog_gateway.services.content import ContentRepository
from blog_gateway.services.identity import sync_principal
from blog_gateway.services.moderation import ModerationService
from blog_gateway.services.sessions import (
    RedisSessionStore,
    SessionResolver,
    SessionStore,
    should_resolve,
)
from blog_gateway.services.storage import BlobService, StorageClient
from blog_gateway.services.uploads import UploadCoordinator

logger = logging.getLogger(__name__)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    """Return the shared session store client."""
    return RedisSessionStore()


@lru_cache(maxsize=1)
def get_cache_store() -> CacheStore | None:
    """Return the cache backend, or None when caching is switched off."""
    if not settings.cache_enabled:
        return None
    return RedisCacheStore()


@lru_cache(maxsize=1)
def get_blob_service() -> BlobService:
    """Return the storage service client."""
    return StorageClient()


def get_content_cache(
    store: Annotated[CacheStore | None, Depends(get_cache_store)],
) -> ContentCache:
    return ContentCache(store)


def get_session_resolver(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionResolver:
    return SessionResolver(store)


async def get_principal(
    request: Request,
    resolver: Annotated[SessionResolver, Depends(get_session_resolver)],
    db: SessionDep,
) -> Principal | None:
    """Resolve the caller and refresh their mirror row.

    The mirror write is best effort; the principal returned here comes from
    the session record, not from the mirror.
    """
    if not should_resolve(request.url.path, request.method):
        return None
    principal = await resolver.resolve(request.headers.get("cookie"))
    if principal is not None:
        sync_principal(db, principal)
    return principal


PrincipalDep = Annotated[Principal | None, Depends(get_principal)]


async def enforce_route_policy(
    request: Request,
    principal: PrincipalDep,
    db: SessionDep,
) -> None:
    """Apply the route's policy before the handler runs.

    Raises:
        AuthenticationRequired: No principal on a protected route
        AuthorizationDenied: Principal fails the role or ownership check
        InternalError: The matched route has no registered policy
    """
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    rule = lookup_policy(request.method, route_path) if route_path else None
    if rule is None:
        logger.error("No access policy registered for %s %s", request.method, route_path)
        raise InternalError()

    path_params = dict(request.path_params)
    owner_lookup = partial(rule.owner, db, path_params) if rule.owner is not None else None

    authorize(principal, rule.policy, owner_lookup)


def require_principal(principal: PrincipalDep) -> Principal:
    """Narrow the principal for handlers behind an authenticated policy."""
    if principal is None:  # pragma: no cover - the route policy rejects first
        raise InternalError()
    return principal


# Type alias for current user dependency
CurrentPrincipalDep = Annotated[Principal, Depends(require_principal)]
CacheDep = Annotated[ContentCache, Depends(get_content_cache)]
BlobServiceDep = Annotated[BlobService, Depends(get_blob_service)]


def get_content_repository(db: SessionDep, cache: CacheDep) -> ContentRepository:
    return ContentRepository(db, cache)


def get_comment_service(db: SessionDep, cache: CacheDep) -> CommentService:
    return CommentService(db, cache)


def get_moderation_service(db: SessionDep, cache: CacheDep) -> ModerationService:
    return ModerationService(db, cache)


def get_upload_coordinator(db: SessionDep, storage: BlobServiceDep) -> UploadCoordinator:
    return UploadCoordinator(db, storage)


ContentRepositoryDep = Annotated[ContentRepository, Depends(get_content_repository)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
ModerationServiceDep = Annotated[ModerationService, Depends(get_moderation_service)]
UploadCoordinatorDep = Annotated[UploadCoordinator, Depends(get_upload_coordinator)]
