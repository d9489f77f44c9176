"""Tests for the upload coordinator outside the HTTP layer."""

import io
from unittest.mock import AsyncMock

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from blog_gateway.core.errors import PayloadTooLarge, QuotaExceeded, UpstreamFailure, ValidationError
from blog_gateway.models import Media, UsageQuota
from blog_gateway.schemas.principal import Principal
from blog_gateway.services.storage import StorageClient, StorageError, StoredObject
from blog_gateway.services.uploads import UploadCoordinator, UploadLimits, classify_file_type

PRINCIPAL = Principal(id="u1", role="user")


def _upload_file(data: bytes, name: str = "clip.ogg", content_type: str = "audio/ogg") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        size=len(data),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture()
def blob_service():
    service = AsyncMock(spec=StorageClient)
    service.upload.return_value = StoredObject(key="u1/clip.ogg", url="https://cdn/u1/clip.ogg", media_id="m-1")
    return service


@pytest.fixture()
def coordinator(db_session, make_user, blob_service):
    make_user("u1")
    return UploadCoordinator(
        db_session,
        blob_service,
        limits=UploadLimits(max_file_size=100, quota_bytes=150),
    )


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("image/png", "image"),
        ("IMAGE/JPEG", "image"),
        ("audio/mpeg", "audio"),
        ("video/mp4", "video"),
        ("application/pdf", "video"),
        (None, "video"),
    ],
)
def test_classify_file_type(content_type, expected):
    assert classify_file_type(content_type) == expected


@pytest.mark.asyncio
async def test_upload_records_media_and_quota(coordinator, blob_service, db_session):
    result = await coordinator.upload(PRINCIPAL, _upload_file(b"x" * 40), target_type="post")

    assert result == {
        "mediaId": "m-1",
        "url": "https://cdn/u1/clip.ogg",
        "key": "u1/clip.ogg",
        "file_type": "audio",
        "file_size": 40,
    }
    upload_kwargs = blob_service.upload.await_args.kwargs
    assert upload_kwargs["content"] == b"x" * 40
    assert upload_kwargs["content_type"] == "audio/ogg"
    assert db_session.get(Media, "m-1").file_size == 40
    assert coordinator.bytes_used("u1") == 40


@pytest.mark.asyncio
async def test_quota_accumulates_then_refuses(coordinator, blob_service, db_session):
    blob_service.upload.side_effect = [
        StoredObject(key="u1/a", url=None, media_id=None),
        StoredObject(key="u1/b", url=None, media_id=None),
    ]
    await coordinator.upload(PRINCIPAL, _upload_file(b"a" * 100))
    await coordinator.upload(PRINCIPAL, _upload_file(b"b" * 50))
    assert coordinator.bytes_used("u1") == 150

    with pytest.raises(QuotaExceeded):
        await coordinator.upload(PRINCIPAL, _upload_file(b"c"))
    assert blob_service.upload.await_count == 2

    quota = db_session.get(UsageQuota, "u1")
    db_session.refresh(quota)
    assert quota.total_files == 2


@pytest.mark.asyncio
async def test_missing_file_rejected(coordinator, blob_service):
    with pytest.raises(ValidationError):
        await coordinator.upload(PRINCIPAL, None)
    blob_service.upload.assert_not_called()


@pytest.mark.asyncio
async def test_oversized_file_rejected(coordinator, blob_service):
    with pytest.raises(PayloadTooLarge):
        await coordinator.upload(PRINCIPAL, _upload_file(b"x" * 101))
    blob_service.upload.assert_not_called()


@pytest.mark.asyncio
async def test_storage_rejection_keeps_status(coordinator, blob_service, db_session):
    blob_service.upload.side_effect = StorageError("bad gateway", status_code=502)
    with pytest.raises(UpstreamFailure) as exc_info:
        await coordinator.upload(PRINCIPAL, _upload_file(b"x"))
    assert exc_info.value.status_code == 502
    assert db_session.query(Media).count() == 0
    assert coordinator.bytes_used("u1") == 0
