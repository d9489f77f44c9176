"""Media endpoints: uploads, quota views and deletion via the storage service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from blog_gateway.api.dependencies import (
    BlobServiceDep,
    CurrentPrincipalDep,
    UploadCoordinatorDep,
    enforce_route_policy,
)
from blog_gateway.core.errors import UpstreamFailure
from blog_gateway.schemas.media import UploadResponse
from blog_gateway.schemas.principal import Principal
from blog_gateway.services.storage import StorageError, StorageResult
from blog_gateway.services.uploads import UploadCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"], dependencies=[Depends(enforce_route_policy)])


def _relay(result: StorageResult) -> JSONResponse:
    """Pass the storage service's status and body through unchanged."""
    return JSONResponse(status_code=result.status_code, content=result.payload)


async def _upload(
    principal: Principal,
    coordinator: UploadCoordinator,
    file: UploadFile | None,
    target_id: str | None,
    target_type: str | None,
) -> UploadResponse:
    result = await coordinator.upload(
        principal,
        file,
        target_type=target_type,
        target_id=target_id,
    )
    return UploadResponse(**result)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload(
    principal: CurrentPrincipalDep,
    coordinator: UploadCoordinatorDep,
    file: UploadFile | None = File(None),
    target_id: str | None = Form(None),
    target_type: str | None = Form(None),
) -> UploadResponse:
    """Store one file for the caller.

    The size ceiling and the caller's quota are checked before the storage
    service sees any bytes.

    Raises:
        ValidationError: No file part was sent
        PayloadTooLarge: The file exceeds the size ceiling
        QuotaExceeded: The upload would exceed the caller's quota
        UpstreamFailure: The storage service rejected the upload
    """
    return await _upload(principal, coordinator, file, target_id, target_type)


@router.post(
    "/media/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_media(
    principal: CurrentPrincipalDep,
    coordinator: UploadCoordinatorDep,
    file: UploadFile | None = File(None),
    target_id: str | None = Form(None),
    target_type: str | None = Form(None),
) -> UploadResponse:
    """Same pipeline as ``/upload``, mounted under the media prefix."""
    return await _upload(principal, coordinator, file, target_id, target_type)


@router.get("/media/quota")
async def media_quota(principal: CurrentPrincipalDep, storage: BlobServiceDep) -> JSONResponse:
    """Relay the storage service's quota view for the caller."""
    try:
        return _relay(await storage.quota(principal))
    except StorageError as exc:
        raise UpstreamFailure("Failed to fetch quota", status_code=exc.status_code) from exc


@router.get("/media/list")
async def media_list(principal: CurrentPrincipalDep, storage: BlobServiceDep) -> JSONResponse:
    """Relay the caller's stored objects as reported by the storage service."""
    try:
        return _relay(await storage.quota(principal))
    except StorageError as exc:
        raise UpstreamFailure("Failed to list media", status_code=exc.status_code) from exc


@router.delete("/media/{key:path}")
async def delete_media(
    key: str,
    principal: CurrentPrincipalDep,
    storage: BlobServiceDep,
) -> JSONResponse:
    """Delete a stored object under the caller's own key prefix."""
    try:
        result = await storage.delete(principal, key)
    except StorageError as exc:
        raise UpstreamFailure("Delete failed", status_code=exc.status_code) from exc
    logger.info("Media %s deleted by %s -> %s", key, principal.id, result.status_code)
    return _relay(result)
