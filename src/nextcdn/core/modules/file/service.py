from collections.abc import AsyncIterator
from datetime import datetime, timedelta
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from nextcdn.core.core import Service
from nextcdn.core.modules.file.models import FileRecord, expired_files_filter
from nextcdn.errors import StoreError

logger = structlog.get_logger(__name__)


class FileService(Service):
    """Repository of file metadata records."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]], timeout: timedelta) -> None:
        super().__init__()
        self._collection = database.get_collection("files")
        self._timeout = timeout

    async def on_start(self) -> None:
        """Create indexes for id lookup and the expiry scan."""
        await self._collection.create_index([("id", 1)], unique=True)
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("linked", 1), ("uploaded_at", 1)])

    async def insert(self, record: FileRecord) -> None:
        try:
            await self._collection.insert_one(record.to_mongo())
        except PyMongoError as e:
            raise StoreError(f"Failed to insert file {record.id}: {e}") from e
        logger.debug("file_record_inserted", file_id=record.id, user_id=record.user_id, size=record.size)

    async def find_by_id(self, file_id: str) -> FileRecord | None:
        """Get file record by ID, or None if there is none.

        Raises:
            StoreError: If the query fails
        """
        try:
            doc = await self._collection.find_one({"id": file_id})
        except PyMongoError as e:
            raise StoreError(f"Failed to load file {file_id}: {e}") from e
        if doc is None:
            return None
        try:
            return FileRecord.model_validate(doc)
        except PydanticValidationError as e:
            raise StoreError(f"Malformed record for file {file_id}: {e}") from e

    async def iter_expired(self, current: datetime) -> AsyncIterator[FileRecord]:
        """Stream records matching the expiry predicate.

        Malformed documents are logged and skipped.

        Raises:
            StoreError: If the query or cursor iteration fails
        """
        cursor = self._collection.find(expired_files_filter(current, self._timeout))
        try:
            async for record in FileRecord.iter_cursor(cursor):
                yield record
        except PyMongoError as e:
            raise StoreError(f"Failed to enumerate expired files: {e}") from e

    async def delete(self, file_id: str) -> None:
        """Delete the record; deleting a missing record is not an error."""
        try:
            result = await self._collection.delete_one({"id": file_id})
        except PyMongoError as e:
            raise StoreError(f"Failed to delete file {file_id}: {e}") from e
        logger.debug("file_record_deleted", file_id=file_id, deleted=result.deleted_count)
