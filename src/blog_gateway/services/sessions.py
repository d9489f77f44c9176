"""Session resolution against the shared account session store.

The account service writes one JSON record per session id into a key-value
store. This module only reads those records: it never creates, renews or
deletes them. Every failure path degrades to an anonymous request.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Final, Protocol

import redis.asyncio as aioredis
from starlette.requests import cookie_parser

from blog_gateway.core.settings import settings
from blog_gateway.db.time import unix_now_ms
from blog_gateway.schemas.principal import Principal

logger = logging.getLogger(__name__)

HEALTH_PATH: Final[str] = "/health"
UPSTREAM_AUTHENTICATED_PREFIX: Final[str] = "/api/"
ASSET_METHODS: Final[frozenset[str]] = frozenset({"GET", "HEAD"})


class SessionStore(Protocol):
    """Read-only view of the session key-value store."""

    async def get(self, session_id: str) -> str | bytes | None:
        """Return the raw session record, or None on a miss."""


class RedisSessionStore:
    """Session store backed by the shared Redis instance."""

    def __init__(self, url: str | None = None) -> None:
        self._redis = aioredis.from_url(url or settings.redis_url)

    async def get(self, session_id: str) -> str | bytes | None:
        return await self._redis.get(session_id)

    async def close(self) -> None:
        await self._redis.aclose()


def should_resolve(path: str, method: str = "GET") -> bool:
    """Return False for requests that never need a principal.

    Health checks, asset fetches (GET/HEAD of a path containing a dot) and
    the ``/api/`` proxy, which is authenticated upstream, skip the store
    lookup. Writes to dotted paths, such as deleting ``<user>/photo.png``,
    still resolve.
    """
    if path == HEALTH_PATH:
        return False
    if "." in path and method.upper() in ASSET_METHODS:
        return False
    return not path.startswith(UPSTREAM_AUTHENTICATED_PREFIX)


def extract_session_id(cookie_header: str | None, cookie_name: str) -> str | None:
    """Pull the session token named ``cookie_name`` out of a Cookie header."""
    if not cookie_header:
        return None
    return cookie_parser(cookie_header).get(cookie_name) or None


def _is_expired(expires: Any, now_ms: int) -> bool:
    if expires in (None, "", 0):
        return False
    return float(expires) <= now_ms


def principal_from_record(record: Mapping[str, Any], now_ms: int | None = None) -> Principal | None:
    """Normalise a session record into a :class:`Principal`.

    Returns None when the record has expired or carries no user id.
    ``expires`` is compared in epoch milliseconds, the unit the account
    service writes.
    """
    if _is_expired(record.get("expires"), unix_now_ms() if now_ms is None else now_ms):
        return None

    user_id = record.get("userId") or record.get("id")
    if not user_id:
        return None

    external_id = record.get("github_id")
    account_id = record.get("account_id")
    return Principal(
        id=str(user_id),
        username=record.get("username"),
        email=record.get("email") or "",
        role=record.get("role") or "user",
        avatar_url=record.get("avatar_url"),
        external_id=str(external_id) if external_id is not None else None,
        account_id=str(account_id) if account_id is not None else None,
    )


class SessionResolver:
    """Turns a Cookie header into a principal, or None for anonymous callers."""

    def __init__(self, store: SessionStore, cookie_name: str | None = None) -> None:
        self.store = store
        self.cookie_name = cookie_name or settings.session_cookie_name

    async def resolve(self, cookie_header: str | None) -> Principal | None:
        """Resolve the caller's principal.

        Never raises: store outages and malformed records are logged and the
        request proceeds anonymously.
        """
        session_id = extract_session_id(cookie_header, self.cookie_name)
        if session_id is None:
            return None

        try:
            raw = await self.store.get(session_id)
            if raw is None:
                return None
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            record = json.loads(raw)
            if not isinstance(record, Mapping):
                logger.warning("Ignoring session record that is not an object")
                return None
            return principal_from_record(record)
        except Exception:
            logger.exception("Session verification failed")
            return None
