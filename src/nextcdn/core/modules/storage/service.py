"""S3-compatible object store holding the uploaded file contents.

Objects are keyed by file id. boto3 is synchronous, so every call is pushed
to a worker thread; botocore's connect/read timeouts bound each call.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import boto3
import structlog
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from nextcdn.core.core import Service
from nextcdn.errors import ObjectNotFoundError, StorageError

if TYPE_CHECKING:
    from nextcdn.config import Config

logger = structlog.get_logger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class StorageService(Service):
    """Object store client for a single bucket."""

    def __init__(self, client: Any, bucket: str) -> None:
        super().__init__()
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_config(cls, config: Config) -> StorageService:
        """Create a client for the configured endpoint and bucket."""
        boto_config = BotoConfig(
            connect_timeout=config.store_timeout_seconds,
            read_timeout=config.store_timeout_seconds,
            retries={"max_attempts": 3, "mode": "standard"},
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        )
        client = boto3.client(
            "s3",
            endpoint_url=config.s3_endpoint,
            aws_access_key_id=config.s3_access_key,
            aws_secret_access_key=config.s3_secret_key,
            region_name=config.s3_region or "us-east-1",
            config=boto_config,
        )
        return cls(client, config.s3_bucket_name)

    @property
    def bucket(self) -> str:
        return self._bucket

    async def on_start(self) -> None:
        """Check the bucket is reachable; a missing bucket is logged, not fatal."""
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self._bucket)
        except (ClientError, BotoCoreError) as e:
            logger.warning("bucket_unavailable", bucket=self._bucket, error=str(e))
        else:
            logger.info("bucket_ready", bucket=self._bucket)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload data under key.

        Raises:
            StorageError: If the upload fails
        """
        try:
            await asyncio.to_thread(
                self._client.put_object, Bucket=self._bucket, Key=key, Body=data, ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload failed: {e}", key=key, operation="put") from e
        logger.debug("object_stored", key=key, size=len(data), content_type=content_type)

    async def get(self, key: str) -> bytes:
        """Download the object stored under key.

        Raises:
            ObjectNotFoundError: If there is no such object
            StorageError: If the download fails
        """
        try:
            return await asyncio.to_thread(self._read, key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"Object does not exist: {key}", key=key, operation="get") from e
            raise StorageError(f"Download failed: {e}", key=key, operation="get") from e
        except BotoCoreError as e:
            raise StorageError(f"Download failed: {e}", key=key, operation="get") from e

    async def delete(self, key: str) -> None:
        """Delete the object; deleting a missing object is not an error.

        Raises:
            StorageError: If the delete fails
        """
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return
            raise StorageError(f"Delete failed: {e}", key=key, operation="delete") from e
        except BotoCoreError as e:
            raise StorageError(f"Delete failed: {e}", key=key, operation="delete") from e
        logger.debug("object_deleted", key=key)

    def _read(self, key: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()
