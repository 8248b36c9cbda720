"""
Upload set: the files attached to a filing session.

The set owns its UploadedFile entries. ``blob_reference`` only points at bytes
held by the blob store; the session never keeps file content.
"""

import uuid
from collections import OrderedDict
from typing import Dict, Iterator, List, Optional

from pydantic import Field

import core.config as config
from utils.validation import (
    ValidationError,
    sanitize_filename,
    validate_category,
    validate_content_type,
    validate_upload_size,
)
from .records import FilingType, RecordModel


class UploadedFile(RecordModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = Field(min_length=1)
    media_type: str
    size: int = Field(ge=0)
    category: str
    blob_reference: Optional[str] = None


def check_upload(filing_type: FilingType, upload: UploadedFile) -> Dict[str, str]:
    """
    Validate an upload for a filing type.

    Returns a mapping of field alias to message; empty when the upload is acceptable.
    """
    errors: Dict[str, str] = {}
    checks = (
        lambda: validate_category(FilingType(filing_type).value, upload.category),
        lambda: sanitize_filename(upload.name),
        lambda: validate_upload_size(upload.size, config.MAX_UPLOAD_SIZE_MB),
        lambda: validate_content_type(upload.media_type),
    )
    for check in checks:
        try:
            check()
        except ValidationError as e:
            errors.setdefault(e.field or "file", e.message)
    return errors


class UploadSet:
    """Ordered collection of uploads keyed by id."""

    def __init__(self, files: Optional[List[UploadedFile]] = None):
        self._files: "OrderedDict[str, UploadedFile]" = OrderedDict()
        for upload in files or []:
            self.add(upload)

    def add(self, upload: UploadedFile) -> None:
        if upload.id in self._files:
            raise ValueError(f"Upload {upload.id} is already attached")
        self._files[upload.id] = upload

    def remove(self, upload_id: str) -> Optional[UploadedFile]:
        return self._files.pop(upload_id, None)

    def get(self, upload_id: str) -> Optional[UploadedFile]:
        return self._files.get(upload_id)

    def clear(self) -> None:
        self._files.clear()

    def by_category(self, category: str) -> List[UploadedFile]:
        return [upload for upload in self._files.values() if upload.category == category]

    def to_list(self) -> List[dict]:
        return [upload.model_dump(by_alias=True, mode="json") for upload in self._files.values()]

    def __contains__(self, upload_id: object) -> bool:
        return upload_id in self._files

    def __iter__(self) -> Iterator[UploadedFile]:
        return iter(list(self._files.values()))

    def __len__(self) -> int:
        return len(self._files)
