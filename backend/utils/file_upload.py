"""
Multipart upload reading for the sessions router.

The declared name and media type are checked before the body is read, and
reading stops as soon as the size cap is crossed, so an oversized file never
reaches the blob store.
"""

import logging

from fastapi import HTTPException, UploadFile, status

from core.constants import FILE_CHUNK_SIZE_BYTES
from .validation import ValidationError, sanitize_filename, validate_content_type

logger = logging.getLogger(__name__)


async def read_upload(file: UploadFile, max_size_mb: int) -> bytes:
    """
    Raises:
        HTTPException: 400 for a missing, misnamed or disallowed file,
            413 once the body exceeds ``max_size_mb``
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    try:
        sanitize_filename(file.filename)
        validate_content_type(file.content_type or "")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    limit = max_size_mb * 1024 * 1024
    body = bytearray()
    while True:
        chunk = await file.read(FILE_CHUNK_SIZE_BYTES)
        if not chunk:
            break
        body.extend(chunk)
        if len(body) > limit:
            logger.warning(f"Upload {file.filename!r} rejected above {max_size_mb}MB")
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"{file.filename} is larger than {max_size_mb}MB",
            )

    logger.info(f"Received upload {file.filename} ({len(body)} bytes)")
    return bytes(body)
