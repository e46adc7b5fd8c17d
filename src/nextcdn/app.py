from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from nextcdn.config import Config
from nextcdn.core.core import Core, Stores
from nextcdn.core.modules.file.models import FileRecord, UploadResult
from nextcdn.core.modules.preview.models import LinkPreview
from nextcdn.core.modules.session.models import SubjectId


class App:
    """Facade for all application operations, checks access before delegating to Core."""

    def __init__(self, config: Config, stores: Stores | None = None) -> None:
        self._core = Core(config, stores)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def authenticate(self, authorization: str | None) -> SubjectId:
        """Resolve an Authorization header value to the subject it belongs to."""
        return await self._core.services.access.authenticate(authorization)

    async def upload_file(
        self, subject_id: SubjectId, filename: str | None, content: bytes, content_type: str | None
    ) -> UploadResult:
        """Store an uploaded file for the authenticated subject."""
        return await self._core.services.upload.upload(subject_id, filename, content, content_type)

    async def get_file(self, file_id: str, signature: str, timestamp: int) -> tuple[FileRecord, bytes]:
        """Fetch a file's record and contents after checking its retrieval signature."""
        record = await self._core.services.access.authorize_retrieval(file_id, signature, timestamp)
        content = await self._core.services.stores.objects.get(record.id)
        return record, content

    async def get_link_preview(self, url: str) -> LinkPreview:
        """Get preview metadata for a web page."""
        return await self._core.services.preview.get_link_preview(url)

    async def get_resized_image(self, url: str, width: int | None, height: int | None) -> bytes:
        """Fetch and resize a remote image."""
        return await self._core.services.preview.get_resized_image(url, width, height)
