"""Client for the external media storage service.

Bytes never live in this service: uploads, deletes and quota lookups are
forwarded to the storage API with the caller's identity in ``X-User-*``
headers and, when configured, service credentials proving the call comes
from the blog.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from jose import jwt

from blog_gateway.core.settings import settings
from blog_gateway.schemas.principal import Principal

logger = logging.getLogger(__name__)

HTTP_INTERNAL_SERVER_ERROR = 500


class StorageError(RuntimeError):
    """Raised when the storage service fails or answers with an error status."""

    def __init__(
        self,
        message: str,
        status_code: int = HTTP_INTERNAL_SERVER_ERROR,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass(frozen=True)
class StorageConfig:
    """Immutable configuration for storage service calls."""

    base_url: str
    bucket: str
    timeout_seconds: float
    client_id: str | None
    client_secret: str | None
    token_secret: str | None
    token_audience: str
    token_ttl_seconds: int
    instance_id: str


@dataclass(frozen=True)
class StoredObject:
    """Result returned after the storage service accepted an upload."""

    key: str
    url: str | None
    media_id: str | None


@dataclass(frozen=True)
class StorageResult:
    """Status and JSON body of a forwarded call."""

    status_code: int
    payload: Any


class BlobService(Protocol):
    """Operations the gateway needs from the storage service."""

    async def upload(
        self,
        principal: Principal,
        *,
        file_name: str,
        content: bytes,
        content_type: str,
        target_type: str | None = None,
        target_id: str | None = None,
    ) -> StoredObject:
        """Store bytes and return the object's key and URL."""

    async def delete(self, principal: Principal, key: str) -> StorageResult:
        """Delete an object by key."""

    async def quota(self, principal: Principal) -> StorageResult:
        """Return the storage service's quota/listing view for the caller."""


def load_storage_config() -> StorageConfig:
    """Build configuration object from global settings."""

    return StorageConfig(
        base_url=settings.storage_base_url,
        bucket=settings.storage_bucket,
        timeout_seconds=float(settings.storage_http_timeout_seconds),
        client_id=settings.access_client_id,
        client_secret=settings.access_client_secret,
        token_secret=settings.service_token_secret,
        token_audience=settings.service_token_audience,
        token_ttl_seconds=settings.service_token_ttl_seconds,
        instance_id=settings.service_instance_id,
    )


def identity_headers(principal: Principal) -> dict[str, str]:
    """Headers propagating the caller's identity to the storage service."""
    return {
        "X-User-ID": principal.id,
        "X-User-Role": principal.role,
        "X-User-Email": principal.email,
        "X-Account-ID": principal.account_id or "",
    }


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class StorageClient:
    """HTTP client wrapper for the storage service."""

    def __init__(
        self,
        config: StorageConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or load_storage_config()
        self._client = client

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}

        if self.config.client_id and self.config.client_secret:
            headers["CF-Access-Client-Id"] = self.config.client_id
            headers["CF-Access-Client-Secret"] = self.config.client_secret

        if self.config.token_secret:
            now = int(time.time())
            payload = {
                "iss": self.config.instance_id,
                "aud": self.config.token_audience,
                "iat": now,
                "exp": now + max(1, self.config.token_ttl_seconds),
                "jti": secrets.token_hex(8),
            }
            token = jwt.encode(payload, self.config.token_secret, algorithm="HS256")
            headers["Authorization"] = f"Bearer {token}"

        return headers

    @dataclass
    class RequestParams:
        """Parameters for HTTP requests."""
        method: str
        path: str
        principal: Principal
        data: Mapping[str, Any] | None = None
        files: Mapping[str, Any] | None = None

    async def _request(self, params: RequestParams) -> httpx.Response:
        client = self._ensure_client()
        headers = self._build_auth_headers()
        headers.update(identity_headers(params.principal))

        started = time.monotonic()
        try:
            response = await client.request(
                params.method,
                params.path,
                data=params.data,
                files=params.files,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error("Storage request %s %s failed: %s", params.method, params.path, exc)
            raise StorageError(
                f"Storage request failed: {exc}",
                status_code=HTTP_INTERNAL_SERVER_ERROR,
            ) from exc

        logger.debug(
            "Storage %s %s -> %s in %.3fs",
            params.method,
            params.path,
            response.status_code,
            time.monotonic() - started,
        )
        return response

    async def upload(
        self,
        principal: Principal,
        *,
        file_name: str,
        content: bytes,
        content_type: str,
        target_type: str | None = None,
        target_id: str | None = None,
    ) -> StoredObject:
        """Upload bytes on behalf of ``principal``.

        Raises:
            StorageError: If the service is unreachable or rejects the upload
        """
        form = {
            "userId": principal.id,
            "bucket": self.config.bucket,
            "targetId": target_id or "",
            "targetType": target_type or "",
        }
        response = await self._request(
            self.RequestParams(
                method="POST",
                path=f"/data/{self.config.bucket}/upload",
                principal=principal,
                data=form,
                files={"file": (file_name, content, content_type)},
            )
        )
        payload = _json_or_none(response)
        if not response.is_success:
            raise StorageError(
                f"Storage responded with {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        payload = payload if isinstance(payload, Mapping) else {}
        key = payload.get("key") or payload.get("r2_key")
        if not key:
            raise StorageError("Storage response did not include an object key")
        return StoredObject(key=str(key), url=payload.get("url"), media_id=payload.get("mediaId"))

    async def delete(self, principal: Principal, key: str) -> StorageResult:
        response = await self._request(
            self.RequestParams(
                method="DELETE",
                path=f"/data/{self.config.bucket}/{quote(key, safe='')}",
                principal=principal,
            )
        )
        return StorageResult(status_code=response.status_code, payload=_json_or_none(response))

    async def quota(self, principal: Principal) -> StorageResult:
        response = await self._request(
            self.RequestParams(
                method="GET",
                path=f"/data/{self.config.bucket}/quota/{quote(principal.id, safe='')}",
                principal=principal,
            )
        )
        return StorageResult(status_code=response.status_code, payload=_json_or_none(response))
