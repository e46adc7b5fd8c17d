"""Capability sets of the external stores, so in-memory doubles can stand in for them."""

from collections.abc import AsyncIterator
from datetime import datetime
from typing import Protocol

from nextcdn.core.modules.file.models import FileRecord
from nextcdn.core.modules.session.models import Session


class FileStore(Protocol):
    async def insert(self, record: FileRecord) -> None: ...

    async def find_by_id(self, file_id: str) -> FileRecord | None: ...

    def iter_expired(self, current: datetime) -> AsyncIterator[FileRecord]: ...

    async def delete(self, file_id: str) -> None: ...


class SessionStore(Protocol):
    async def find_by_token(self, token: str) -> Session | None: ...


class ObjectStore(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> None: ...

    async def get(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...


class MalwareScanner(Protocol):
    async def scan(self, data: bytes) -> bool: ...
