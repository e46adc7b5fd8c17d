from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient

from nextcdn.config import Config

if TYPE_CHECKING:
    from nextcdn.core.interfaces import FileStore, MalwareScanner, ObjectStore, SessionStore
    from nextcdn.core.modules.access.service import AccessService
    from nextcdn.core.modules.cleanup.service import CleanupService
    from nextcdn.core.modules.preview.service import PreviewService
    from nextcdn.core.modules.upload.service import UploadService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for components with startup and shutdown hooks."""

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""


@dataclass(frozen=True)
class Stores:
    """Handles to the external collaborators."""

    files: FileStore
    sessions: SessionStore
    objects: ObjectStore
    scanner: MalwareScanner


class Services:
    """Service registry; starts components in order and stops them in reverse."""

    access: AccessService
    upload: UploadService
    preview: PreviewService
    cleanup: CleanupService

    def __init__(self, config: Config, stores: Stores) -> None:
        from nextcdn.core.modules.access.service import AccessService  # noqa: PLC0415
        from nextcdn.core.modules.cleanup.service import CleanupService  # noqa: PLC0415
        from nextcdn.core.modules.preview.service import PreviewService  # noqa: PLC0415
        from nextcdn.core.modules.upload.service import UploadService  # noqa: PLC0415

        self.stores = stores
        self.access = AccessService(stores.sessions, stores.files, config.signature_expiry_seconds)
        self.upload = UploadService(stores.files, stores.objects, stores.scanner, config.max_file_size)
        self.preview = PreviewService(config.preview_timeout_seconds)
        # Started last so that indexes and the bucket check are done before the first cycle
        self.cleanup = CleanupService(stores.files, stores.objects, config.cleanup_interval_seconds)

        self._services: list[Any] = [
            stores.files,
            stores.sessions,
            stores.objects,
            stores.scanner,
            self.access,
            self.upload,
            self.preview,
            self.cleanup,
        ]

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            if hasattr(service, "on_start"):
                await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in reversed(self._services):
            if hasattr(service, "on_stop"):
                await service.on_stop()


class Core:
    """Container providing config, store handles, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    services: Services

    def __init__(self, config: Config, stores: Stores | None = None) -> None:
        """Initialize core; connects to MongoDB, S3 and ClamAV unless stores are supplied."""
        self.config = config
        self.mongo_client = None
        if stores is None:
            stores = self._connect(config)
        self.services = Services(config, stores)

    def _connect(self, config: Config) -> Stores:
        from nextcdn.core.modules.file.service import FileService  # noqa: PLC0415
        from nextcdn.core.modules.scanner.service import ScannerService  # noqa: PLC0415
        from nextcdn.core.modules.session.service import SessionService  # noqa: PLC0415
        from nextcdn.core.modules.storage.service import StorageService  # noqa: PLC0415

        self.mongo_client = AsyncMongoClient(
            config.database_url,
            tz_aware=True,
            timeoutMS=int(config.store_timeout_seconds * 1000),
        )
        files_database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        sessions_database = self.mongo_client.get_database(config.sessions_database)

        return Stores(
            files=FileService(files_database, timedelta(hours=config.file_timeout_hours)),
            sessions=SessionService(sessions_database),
            objects=StorageService.from_config(config),
            scanner=ScannerService(
                config.clamav_host, config.clamav_port, config.store_timeout_seconds, enabled=config.clamav_enabled
            ),
        )

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
