"""
Input validation utilities for uploads and identifiers.

Centralized checks for user-supplied filenames, media types, sizes, upload
categories and ids. Functions raise ValidationError with the offending field
so callers can turn the failure into a structured rejection.
"""

import os
import re
import logging
from typing import Dict, Iterable, Optional

from core.constants import (
    ALLOWED_UPLOAD_TYPES,
    MAX_FILENAME_LENGTH,
    PATENT_UPLOAD_CATEGORIES,
    TRADEMARK_UPLOAD_CATEGORIES,
)

logger = logging.getLogger(__name__)

MAX_ID_LENGTH = 255

UPLOAD_CATEGORIES: Dict[str, Dict[str, str]] = {
    "patent": PATENT_UPLOAD_CATEGORIES,
    "trademark": TRADEMARK_UPLOAD_CATEGORIES,
}


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def sanitize_filename(filename: str) -> str:
    """
    Reduce an uploaded filename to a safe basename for the blob store.

    Directory parts are dropped, characters outside ``[\\w.-]`` become ``_``
    and over-long names are cut while keeping the extension. A name that
    climbs out of its directory (``../``) is rejected rather than repaired.
    """
    if not filename:
        raise ValidationError("Filename cannot be empty", field="name")

    if ".." in filename and "..." not in filename:
        logger.warning(f"Rejected upload name with parent traversal: {filename[:50]}")
        raise ValidationError("Invalid filename: path traversal detected", field="name")

    base = os.path.basename(filename.replace("\\", "/"))
    safe = re.sub(r"[^\w\.-]", "_", base).lstrip(".-")

    if len(safe) > MAX_FILENAME_LENGTH:
        stem, ext = os.path.splitext(safe)
        safe = stem[: MAX_FILENAME_LENGTH - len(ext)] + ext

    if safe in ("", "_"):
        raise ValidationError("Filename is empty after sanitization", field="name")
    return safe


def validate_content_type(content_type: str, allowed: Optional[Iterable[str]] = None) -> str:
    """
    Validate that a media type is in the upload allow-list.

    Returns:
        The normalized media type (lowercase, without parameters)

    Raises:
        ValidationError: If the media type is not allowed
    """
    allowed = set(allowed) if allowed is not None else ALLOWED_UPLOAD_TYPES

    base_type = content_type.split(";")[0].strip().lower() if content_type else ""

    if base_type not in allowed:
        raise ValidationError(
            f"File type '{base_type or 'unknown'}' is not supported. "
            "Upload PDF, JPEG, PNG, TIFF or Word documents.",
            field="mediaType",
        )

    return base_type


def validate_upload_size(size: int, max_size_mb: int) -> int:
    """Reject empty files and files larger than max_size_mb."""
    if size is None or size < 0:
        raise ValidationError("File size must be a non-negative number of bytes", field="size")
    if size > max_size_mb * 1024 * 1024:
        raise ValidationError(f"File exceeds the {max_size_mb}MB limit", field="size")
    return size


def validate_category(filing_type: str, category: str) -> str:
    """
    Validate an upload category against the filing type's vocabulary.

    Raises:
        ValidationError: If the filing type has no categories or the tag is unknown
    """
    categories = UPLOAD_CATEGORIES.get(filing_type)
    if not categories:
        raise ValidationError("Select a filing type before uploading documents", field="category")
    if category not in categories:
        raise ValidationError(
            f"Unknown {filing_type} upload category '{category}'. "
            f"Allowed: {', '.join(categories)}",
            field="category",
        )
    return category


def validate_identifier(value: str, field: str = "id") -> str:
    """
    Validate a session, application or upload id.

    Ids may only contain alphanumeric characters, hyphens and underscores.
    """
    if not value:
        raise ValidationError(f"{field} cannot be empty", field=field)

    if not re.match(r"^[a-zA-Z0-9_-]+$", value):
        logger.warning(f"Invalid {field} format: {value[:50]}...")
        raise ValidationError(
            f"{field} contains invalid characters. Only alphanumeric, hyphens, and underscores allowed.",
            field=field,
        )

    if len(value) > MAX_ID_LENGTH:
        raise ValidationError(f"{field} exceeds maximum length of {MAX_ID_LENGTH} characters", field=field)

    return value
