"""Tests for the storage service HTTP client."""

import httpx
import pytest
from jose import jwt

from blog_gateway.schemas.principal import Principal
from blog_gateway.services.storage import (
    StorageClient,
    StorageConfig,
    StorageError,
    identity_headers,
)

BASE_URL = "https://storage.test/api"


def _config(**overrides) -> StorageConfig:
    values = {
        "base_url": BASE_URL,
        "bucket": "blog-media",
        "timeout_seconds": 5.0,
        "client_id": "client-id",
        "client_secret": "client-secret",
        "token_secret": "token-secret",
        "token_audience": "blog-media",
        "token_ttl_seconds": 60,
        "instance_id": "blog-test",
    }
    values.update(overrides)
    return StorageConfig(**values)


def _client(handler, **overrides) -> StorageClient:
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(base_url=BASE_URL, transport=transport)
    return StorageClient(config=_config(**overrides), client=http)


PRINCIPAL = Principal(id="u1", email="u1@example.com", role="user", account_id="acct-9")


def test_identity_headers() -> None:
    assert identity_headers(PRINCIPAL) == {
        "X-User-ID": "u1",
        "X-User-Role": "user",
        "X-User-Email": "u1@example.com",
        "X-Account-ID": "acct-9",
    }


def test_auth_headers_include_service_token() -> None:
    headers = _client(lambda request: httpx.Response(200))._build_auth_headers()
    assert headers["CF-Access-Client-Id"] == "client-id"
    token = headers["Authorization"].removeprefix("Bearer ")
    claims = jwt.decode(token, "token-secret", algorithms=["HS256"], audience="blog-media")
    assert claims["iss"] == "blog-test"


def test_auth_headers_empty_without_credentials() -> None:
    client = _client(
        lambda request: httpx.Response(200),
        client_id=None,
        client_secret=None,
        token_secret=None,
    )
    assert client._build_auth_headers() == {}


@pytest.mark.asyncio
async def test_upload_posts_multipart_with_identity() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["user"] = request.headers["X-User-ID"]
        seen["body"] = request.content
        return httpx.Response(200, json={"r2_key": "u1/a.png", "url": "https://cdn/u1/a.png"})

    stored = await _client(handler).upload(
        PRINCIPAL,
        file_name="a.png",
        content=b"png-bytes",
        content_type="image/png",
        target_type="post",
        target_id="p1",
    )
    assert stored.key == "u1/a.png"
    assert stored.url == "https://cdn/u1/a.png"
    assert seen["path"] == "/api/data/blog-media/upload"
    assert seen["user"] == "u1"
    assert b"png-bytes" in seen["body"]


@pytest.mark.asyncio
async def test_upload_error_status_raises() -> None:
    client = _client(lambda request: httpx.Response(507, json={"error": "full"}))
    with pytest.raises(StorageError) as exc_info:
        await client.upload(PRINCIPAL, file_name="a.png", content=b"x", content_type="image/png")
    assert exc_info.value.status_code == 507


@pytest.mark.asyncio
async def test_upload_without_key_raises() -> None:
    client = _client(lambda request: httpx.Response(200, json={"url": "https://cdn/x"}))
    with pytest.raises(StorageError):
        await client.upload(PRINCIPAL, file_name="a.png", content=b"x", content_type="image/png")


@pytest.mark.asyncio
async def test_transport_failure_raises_storage_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(StorageError) as exc_info:
        await _client(handler).quota(PRINCIPAL)
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_delete_quotes_key_and_relays_status() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["raw_path"] = request.url.raw_path
        return httpx.Response(404, json={"error": "missing"})

    result = await _client(handler).delete(PRINCIPAL, "u1/photo one.png")
    assert result.status_code == 404
    assert result.payload == {"error": "missing"}
    assert seen["raw_path"] == b"/api/data/blog-media/u1%2Fphoto%20one.png"


@pytest.mark.asyncio
async def test_quota_path_uses_principal() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        return httpx.Response(200, json={"used": 1})

    result = await _client(handler).quota(PRINCIPAL)
    assert result.payload == {"used": 1}
    assert seen["path"] == "/api/data/blog-media/quota/u1"
