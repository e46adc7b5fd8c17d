"""Tests for the MongoDB-backed file repository."""

from datetime import timedelta
from types import SimpleNamespace

import pytest
from pymongo.errors import PyMongoError

from nextcdn.core.modules.file.service import FileService
from nextcdn.errors import StoreError
from nextcdn.utils import now


class FakeCursor:
    def __init__(self, docs, fail_after=None):
        self._docs = list(docs)
        self._fail_after = fail_after

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for index, doc in enumerate(self._docs):
            if self._fail_after is not None and index == self._fail_after:
                raise PyMongoError("cursor died")
            yield doc


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.last_filter = None
        self.fail = False
        self.cursor_fail_after = None

    async def insert_one(self, doc):
        if self.fail:
            raise PyMongoError("insert failed")
        self.docs.append(doc)

    async def find_one(self, query):
        if self.fail:
            raise PyMongoError("find failed")
        return next((d for d in self.docs if all(d.get(k) == v for k, v in query.items())), None)

    def find(self, query):
        self.last_filter = query
        return FakeCursor(self.docs, self.cursor_fail_after)

    async def delete_one(self, query):
        if self.fail:
            raise PyMongoError("delete failed")
        before = len(self.docs)
        self.docs = [d for d in self.docs if d.get("id") != query["id"]]
        return SimpleNamespace(deleted_count=before - len(self.docs))


class FakeDatabase:
    def __init__(self):
        self.collection = FakeCollection()

    def get_collection(self, name):
        assert name == "files"
        return self.collection


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def service(database):
    return FileService(database, timedelta(hours=3))


def _doc(file_id, **overrides):
    doc = {
        "_id": object(),
        "id": file_id,
        "name": "a.txt",
        "content_type": "text/plain",
        "size": 3,
        "uploaded_at": now() - timedelta(hours=5),
        "user_id": "user-1",
        "signing_key": "k" * 32,
        "linked": False,
        "linked_at": None,
        "hidden": False,
    }
    doc.update(overrides)
    return doc


class TestFindById:
    """Tests for FileService.find_by_id."""

    @pytest.mark.asyncio
    async def test_found(self, service, database):
        database.collection.docs.append(_doc("file-1"))
        record = await service.find_by_id("file-1")
        assert record is not None
        assert record.id == "file-1"
        assert record.signing_key == "k" * 32

    @pytest.mark.asyncio
    async def test_not_found(self, service):
        assert await service.find_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, service, database):
        database.collection.fail = True
        with pytest.raises(StoreError):
            await service.find_by_id("file-1")


class TestInsert:
    """Tests for FileService.insert."""

    @pytest.mark.asyncio
    async def test_stores_id_field(self, service, database, make_record):
        await service.insert(make_record("file-9"))
        assert database.collection.docs[0]["id"] == "file-9"
        assert "signing_key" in database.collection.docs[0]

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, service, database, make_record):
        database.collection.fail = True
        with pytest.raises(StoreError):
            await service.insert(make_record())


class TestIterExpired:
    """Tests for FileService.iter_expired."""

    @pytest.mark.asyncio
    async def test_uses_expiry_filter(self, service, database):
        current = now()
        _ = [record async for record in service.iter_expired(current)]
        cutoff = current - timedelta(hours=3)
        assert database.collection.last_filter["$or"][0] == {"linked": False, "uploaded_at": {"$lt": cutoff}}

    @pytest.mark.asyncio
    async def test_malformed_document_skipped(self, service, database):
        database.collection.docs.extend([_doc("file-1"), _doc("broken", size="not a number"), _doc("file-3")])
        ids = [record.id async for record in service.iter_expired(now())]
        assert ids == ["file-1", "file-3"]

    @pytest.mark.asyncio
    async def test_cursor_failure_raises_store_error(self, service, database):
        database.collection.docs.extend([_doc("file-1"), _doc("file-2")])
        database.collection.cursor_fail_after = 1
        seen = []
        with pytest.raises(StoreError):
            async for record in service.iter_expired(now()):
                seen.append(record.id)
        assert seen == ["file-1"]


class TestDelete:
    """Tests for FileService.delete."""

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, service, database):
        database.collection.docs.append(_doc("file-1"))
        await service.delete("file-1")
        await service.delete("file-1")
        assert database.collection.docs == []

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, service, database):
        database.collection.fail = True
        with pytest.raises(StoreError):
            await service.delete("file-1")
