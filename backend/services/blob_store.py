"""
Local filesystem blob store for uploaded specimens and drawings.

Files are written under UPLOAD_DIR with a random prefix; the returned
reference is the public URL the frontend links to.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional

import core.config as config
from core.errors import BlobStoreError
from filing.collaborators import BlobMetadata, BlobStore
from utils.validation import ValidationError, sanitize_filename

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    def __init__(self, root: Optional[Path] = None, base_url: Optional[str] = None):
        self.root = Path(root or config.UPLOAD_DIR)
        self.base_url = (base_url or config.PUBLIC_BLOB_BASE_URL).rstrip("/")

    def path_for(self, reference: str) -> Path:
        """Resolve a reference returned by upload() back to its file."""
        relative = reference[len(self.base_url):].lstrip("/") if reference.startswith(self.base_url) else reference
        path = (self.root / relative).resolve()
        if self.root.resolve() not in path.parents:
            raise BlobStoreError("Blob reference points outside the upload directory")
        return path

    def _write(self, data: bytes, metadata: BlobMetadata) -> str:
        try:
            safe_name = sanitize_filename(metadata.name)
        except ValidationError as e:
            raise BlobStoreError(e.message, details={"name": metadata.name[:100]})

        folder = metadata.category or "misc"
        key = f"{folder}/{uuid.uuid4().hex[:12]}_{safe_name}"
        target = self.root / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Error saving uploaded file: {e}")
            raise BlobStoreError("Failed to store uploaded file") from e

        logger.info(f"Stored blob {key} ({len(data)} bytes)")
        return f"{self.base_url}/{key}"

    async def upload(self, data: bytes, metadata: BlobMetadata) -> str:
        return await asyncio.to_thread(self._write, data, metadata)
