"""Shared pytest fixtures: in-memory stand-ins for MongoDB, S3 and ClamAV."""

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta

import pytest

from nextcdn.config import Config
from nextcdn.core.core import Stores
from nextcdn.core.modules.file.models import FileRecord
from nextcdn.core.modules.session.models import AuthToken, Session
from nextcdn.errors import ObjectNotFoundError, ScanError, StorageError, StoreError
from nextcdn.utils import now, now_millis

FILE_TIMEOUT = timedelta(hours=3)


class InMemoryFileStore:
    def __init__(self) -> None:
        self.records: dict[str, FileRecord] = {}
        self.fail_insert = False
        self.fail_find = False
        self.fail_enumeration = False
        self.fail_delete: set[str] = set()

    async def insert(self, record: FileRecord) -> None:
        if self.fail_insert:
            raise StoreError("insert failed")
        self.records[record.id] = record

    async def find_by_id(self, file_id: str) -> FileRecord | None:
        if self.fail_find:
            raise StoreError("find failed")
        return self.records.get(file_id)

    async def iter_expired(self, current: datetime) -> AsyncIterator[FileRecord]:
        if self.fail_enumeration:
            raise StoreError("enumeration failed")
        for record in list(self.records.values()):
            if record.is_expiry_eligible(current, FILE_TIMEOUT):
                yield record

    async def delete(self, file_id: str) -> None:
        if file_id in self.fail_delete:
            raise StoreError("delete failed")
        self.records.pop(file_id, None)


class InMemorySessionStore:
    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}
        self.fail = False
        self.lookups = 0

    async def find_by_token(self, token: AuthToken) -> Session | None:
        self.lookups += 1
        if self.fail:
            raise StoreError("connection refused")
        return self.sessions.get(token)

    def add(self, token: str, user_id: str, expires_in_ms: int = 3_600_000) -> Session:
        session = Session(
            id=f"session-{token}",
            token=token,
            friendly_name="Test device",
            user_id=user_id,
            expires_at=now_millis() + expires_in_ms,
        )
        self.sessions[token] = session
        return session


class InMemoryObjectStore:
    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_put = False
        self.fail_delete: set[str] = set()
        self.delete_calls: list[str] = []

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail_put:
            raise StorageError("put failed", key=key, operation="put")
        self.objects[key] = (data, content_type)

    async def get(self, key: str) -> bytes:
        if key not in self.objects:
            raise ObjectNotFoundError(f"Object does not exist: {key}", key=key, operation="get")
        return self.objects[key][0]

    async def delete(self, key: str) -> None:
        self.delete_calls.append(key)
        if key in self.fail_delete:
            raise StorageError("delete failed", key=key, operation="delete")
        self.objects.pop(key, None)


class StubScanner:
    def __init__(self) -> None:
        self.infected = False
        self.fail = False

    async def scan(self, data: bytes) -> bool:
        if self.fail:
            raise ScanError("clamd unreachable")
        return not self.infected


@pytest.fixture
def config(tmp_path):
    """Configuration pointing at nothing real; stores are always substituted."""
    return Config(
        database_url="mongodb://localhost:27017/cdn_test",
        sessions_database="accounts_test",
        s3_endpoint="http://localhost:9000",
        s3_bucket_name="cdn-test",
        s3_access_key="test",
        s3_secret_key="test",  # noqa: S106
        clamav_enabled=False,
        signature_expiry_seconds=3600,
        file_timeout_hours=3,
        max_file_size=1024,
        assets_path=str(tmp_path / "no-assets"),
    )


@pytest.fixture
def file_store():
    return InMemoryFileStore()


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def scanner():
    return StubScanner()


@pytest.fixture
def stores(file_store, session_store, object_store, scanner):
    return Stores(files=file_store, sessions=session_store, objects=object_store, scanner=scanner)


@pytest.fixture
def make_record() -> Callable[..., FileRecord]:
    """Factory for file records uploaded `age` ago."""

    def _make(file_id: str = "file-1", age: timedelta = timedelta(0), **kwargs) -> FileRecord:
        defaults = {"size": 5, "user_id": "user-1", "content_type": "text/plain", "name": "hello.txt"}
        defaults.update(kwargs)
        return FileRecord(id=file_id, uploaded_at=now() - age, **defaults)

    return _make
