import secrets
import string
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

from nextcdn.core.db import MongoModel
from nextcdn.utils import now

SIGNING_KEY_LENGTH = 32
_SIGNING_KEY_ALPHABET = string.ascii_letters + string.digits


def generate_signing_key() -> str:
    return "".join(secrets.choice(_SIGNING_KEY_ALPHABET) for _ in range(SIGNING_KEY_LENGTH))


class FileRecord(MongoModel):
    """Metadata for an uploaded object. The id doubles as the object store key.

    Indexed on id - unique, user_id, and (linked, uploaded_at) for the expiry scan.
    """

    name: str | None = None  # Original filename from the client
    content_type: str = "application/octet-stream"
    size: int
    uploaded_at: datetime = Field(default_factory=now)
    user_id: str
    signing_key: str = Field(default_factory=generate_signing_key, repr=False)  # Never sent to clients

    # Set by other applications once the file is referenced; unlinked files expire
    linked: bool = False
    linked_at: datetime | None = None

    # Taken down: kept in both stores but never served
    hidden: bool = False

    def is_expiry_eligible(self, current: datetime, timeout: timedelta) -> bool:
        """Evaluate the expiry predicate in memory; mirrors expired_files_filter()."""
        if self.linked:
            return False
        cutoff = current - timeout
        if self.uploaded_at < cutoff:
            return True
        return self.linked_at is not None and self.linked_at < cutoff


def expired_files_filter(current: datetime, timeout: timedelta) -> dict[str, Any]:
    """MongoDB filter selecting unlinked records whose upload or link time is older than timeout."""
    cutoff = current - timeout
    return {
        "$or": [
            {"linked": False, "uploaded_at": {"$lt": cutoff}},
            {"linked": False, "linked_at": {"$lt": cutoff}},
        ]
    }


class UploadResult(BaseModel):
    """Upload response with a ready-to-use signed retrieval URL."""

    id: str = Field(..., description="File ID")
    size: int = Field(..., description="File size in bytes")
    content_type: str = Field(..., description="Content type of the stored object")
    signature: str = Field(..., description="Hex HMAC signature authorizing retrieval")
    timestamp: int = Field(..., description="Unix time (seconds) the signature was issued")
    serve_url: str = Field(..., description="Relative URL embedding signature and timestamp")
