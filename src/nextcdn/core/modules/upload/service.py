from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode
from uuid import uuid4

import structlog

from nextcdn.core.core import Service
from nextcdn.core.modules.file.models import FileRecord, UploadResult
from nextcdn.core.modules.signature.codec import generate_signature
from nextcdn.errors import PayloadTooLargeError, StorageError, StoreError, ValidationError

if TYPE_CHECKING:
    from nextcdn.core.interfaces import FileStore, MalwareScanner, ObjectStore
    from nextcdn.core.modules.session.models import SubjectId

logger = structlog.get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def build_serve_url(file_id: str, signature: str, timestamp: int) -> str:
    """Relative retrieval URL carrying the capability token."""
    return f"/files/{file_id}?{urlencode({'signature': signature, 'timestamp': timestamp})}"


class UploadService(Service):
    """Scans, stores and registers uploaded files."""

    def __init__(self, files: FileStore, objects: ObjectStore, scanner: MalwareScanner, max_file_size: int) -> None:
        super().__init__()
        self._files = files
        self._objects = objects
        self._scanner = scanner
        self._max_file_size = max_file_size

    async def upload(self, user_id: SubjectId, filename: str | None, content: bytes, content_type: str | None) -> UploadResult:
        """Store a new file and return a signed retrieval URL for it.

        The object is written before its record; if the record cannot be
        written the object is removed again.

        Raises:
            PayloadTooLargeError: If content exceeds the size limit
            ValidationError: If the file is infected
            ScanError: If the malware scan fails
            StorageError: If the object cannot be stored
            StoreError: If the record cannot be stored
        """
        size = len(content)
        if size > self._max_file_size:
            logger.warning("upload_too_large", size=size, limit=self._max_file_size)
            limit_mb = self._max_file_size // (1024 * 1024)
            raise PayloadTooLargeError(
                f"File size exceeds maximum allowed size of {limit_mb}MB (received {size} bytes)"
            )

        if not await self._scanner.scan(content):
            logger.error("upload_infected", user_id=user_id, filename=filename)
            raise ValidationError("File is infected with malware")

        content_type = content_type or DEFAULT_CONTENT_TYPE
        record = FileRecord(id=uuid4().hex, name=filename, content_type=content_type, size=size, user_id=user_id)

        await self._objects.put(record.id, content, content_type)
        logger.info("upload_stored", file_id=record.id, size=size)

        try:
            await self._files.insert(record)
        except StoreError:
            logger.exception("upload_record_insert_failed", file_id=record.id)
            try:
                await self._objects.delete(record.id)
            except StorageError:
                # Left for manual cleanup: object without a record
                logger.exception("upload_orphan_object", file_id=record.id)
            raise

        signature, timestamp = generate_signature(record.id, record.signing_key)
        return UploadResult(
            id=record.id,
            size=size,
            content_type=content_type,
            signature=signature,
            timestamp=timestamp,
            serve_url=build_serve_url(record.id, signature, timestamp),
        )
