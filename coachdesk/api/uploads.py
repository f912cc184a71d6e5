"""
Shared handling for multipart media uploads.
"""

import logging

from fastapi import HTTPException, UploadFile, status

from ..infrastructure.storage.client import StorageError

logger = logging.getLogger(__name__)


async def read_upload(file: UploadFile, max_bytes: int, expected_type: str) -> bytes:
    """
    Read an uploaded file, enforcing size and a content type family.

    `expected_type` is a prefix like "image/" or "video/". Files without a
    declared content type are accepted; browsers omit it for some formats.
    """
    if file.content_type and not file.content_type.startswith(expected_type):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Expected a {expected_type.rstrip('/')} file, got {file.content_type}",
        )

    data = await file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )
    if len(data) > max_bytes:
        logger.warning(
            "Upload too large",
            extra={"upload_name": file.filename, "size_bytes": len(data), "max_bytes": max_bytes}
        )
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {max_bytes // (1024 * 1024)} MB limit",
        )
    return data


def storage_failure(error: StorageError, action: str) -> HTTPException:
    logger.error(f"Storage failure during {action}", extra={"error": str(error)})
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Failed to {action}",
    )
