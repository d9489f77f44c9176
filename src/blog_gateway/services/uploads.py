"""Upload coordination: size and quota gates around the storage service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.orm import Session

from blog_gateway.core.errors import (
    InternalError,
    PayloadTooLarge,
    QuotaExceeded,
    UpstreamFailure,
    ValidationError,
)
from blog_gateway.core.settings import settings
from blog_gateway.db.time import unix_now
from blog_gateway.models import Comment, Media, Post, UsageQuota
from blog_gateway.models.media import MEDIA_TYPE_AUDIO, MEDIA_TYPE_IMAGE, MEDIA_TYPE_VIDEO
from blog_gateway.models.post import new_id
from blog_gateway.schemas.principal import Principal
from blog_gateway.services.identity import dialect_insert
from blog_gateway.services.storage import BlobService, StorageError

logger = logging.getLogger(__name__)

TARGET_POST = "post"
TARGET_COMMENT = "comment"


def classify_file_type(content_type: str | None) -> str:
    """Map a declared content type onto image, audio or video (the fallback)."""
    content_type = (content_type or "").lower()
    if content_type.startswith("image"):
        return MEDIA_TYPE_IMAGE
    if content_type.startswith("audio"):
        return MEDIA_TYPE_AUDIO
    return MEDIA_TYPE_VIDEO


@dataclass(frozen=True)
class UploadLimits:
    """Per-file and per-account ceilings in bytes."""

    max_file_size: int
    quota_bytes: int

    @classmethod
    def from_settings(cls) -> UploadLimits:
        return cls(max_file_size=settings.max_file_size, quota_bytes=settings.quota_limit_bytes)


async def _file_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    data = await file.read()
    await file.seek(0)
    return len(data)


class UploadCoordinator:
    """Runs the upload pipeline; each step is a hard gate.

    1. a file part must be present (400)
    2. the file must fit the size ceiling (413)
    3. the account must have quota left (429)
    4. a post or comment target must exist (400)
    5. the storage service must accept the bytes (its status is relayed)
    6. media metadata and the quota increment are committed together

    If step 6 fails after step 5 succeeded the stored object is orphaned.
    That is logged with the key for cleanup; nothing is rolled back remotely.
    """

    def __init__(
        self,
        db: Session,
        storage: BlobService,
        limits: UploadLimits | None = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.limits = limits or UploadLimits.from_settings()

    def _target_exists(self, target_type: str | None, target_id: str | None) -> bool:
        if not target_id:
            return True
        if target_type == TARGET_POST:
            return self.db.get(Post, target_id) is not None
        if target_type == TARGET_COMMENT:
            return self.db.get(Comment, target_id) is not None
        return True

    def bytes_used(self, user_id: str) -> int:
        used = self.db.scalar(
            select(UsageQuota.total_bytes_used).where(UsageQuota.user_id == user_id)
        )
        return int(used or 0)

    def _record(
        self,
        principal: Principal,
        *,
        media_id: str,
        file_name: str,
        file_size: int,
        file_type: str,
        storage_key: str,
        target_type: str | None,
        target_id: str | None,
    ) -> None:
        now = unix_now()
        self.db.add(
            Media(
                id=media_id,
                file_name=file_name,
                file_size=file_size,
                file_type=file_type,
                storage_key=storage_key,
                post_id=target_id if target_type == TARGET_POST else None,
                comment_id=target_id if target_type == TARGET_COMMENT else None,
                uploaded_by=principal.id,
                created_at=now,
            )
        )
        self.db.flush()

        table = UsageQuota.__table__
        stmt = dialect_insert(self.db, table).values(
            user_id=principal.id,
            total_bytes_used=file_size,
            total_files=1,
            reset_date=now,
        )
        # Increment in the database so concurrent uploads cannot lose updates.
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.user_id],
            set_={
                "total_bytes_used": table.c.total_bytes_used + stmt.excluded.total_bytes_used,
                "total_files": table.c.total_files + 1,
            },
        )
        self.db.execute(stmt)
        self.db.commit()

    async def upload(
        self,
        principal: Principal,
        file: UploadFile | None,
        *,
        target_type: str | None = None,
        target_id: str | None = None,
    ) -> dict[str, Any]:
        """Validate, store and account for one uploaded file.

        Raises:
            ValidationError: No file part was sent, or the target post or comment
                does not exist
            PayloadTooLarge: The file exceeds the size ceiling
            QuotaExceeded: The account has no room for the file
            UpstreamFailure: The storage service rejected the upload
            InternalError: Metadata could not be recorded after storing
        """
        if file is None or not file.filename:
            raise ValidationError("No file provided")

        size = await _file_size(file)
        if size > self.limits.max_file_size:
            raise PayloadTooLarge("File too large")

        if self.bytes_used(principal.id) + size > self.limits.quota_bytes:
            raise QuotaExceeded("Quota exceeded")

        if not self._target_exists(target_type, target_id):
            raise ValidationError("Upload target not found")

        content = await file.read()
        content_type = file.content_type or "application/octet-stream"
        try:
            stored = await self.storage.upload(
                principal,
                file_name=file.filename,
                content=content,
                content_type=content_type,
                target_type=target_type,
                target_id=target_id,
            )
        except StorageError as exc:
            logger.warning("Upload for %s rejected by storage: %s", principal.id, exc)
            raise UpstreamFailure("Upload failed", status_code=exc.status_code) from exc

        file_type = classify_file_type(content_type)
        media_id = stored.media_id or new_id()
        try:
            self._record(
                principal,
                media_id=media_id,
                file_name=file.filename,
                file_size=size,
                file_type=file_type,
                storage_key=stored.key,
                target_type=target_type,
                target_id=target_id,
            )
        except Exception as exc:
            self.db.rollback()
            logger.error(
                "Orphaned storage object %s: metadata write failed for %s",
                stored.key,
                principal.id,
                exc_info=True,
            )
            raise InternalError("Upload failed") from exc

        return {
            "mediaId": media_id,
            "url": stored.url,
            "key": stored.key,
            "file_type": file_type,
            "file_size": size,
        }
