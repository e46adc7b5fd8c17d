from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from nextcdn.core.core import Service
from nextcdn.core.modules.session.models import AuthToken, SubjectId
from nextcdn.core.modules.signature.codec import verify_signature
from nextcdn.errors import AccessDeniedError, AuthenticationError, NotFoundError, StoreError

if TYPE_CHECKING:
    from nextcdn.core.interfaces import FileStore, SessionStore
    from nextcdn.core.modules.file.models import FileRecord

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_token(authorization: str | None) -> AuthToken | None:
    """Pull the credential out of an Authorization header value.

    A "Bearer" scheme prefix is optional; without it the whole value is the token.
    """
    if authorization is None:
        return None
    value = authorization.strip()
    if value[: len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        value = value[len(BEARER_PREFIX) :].strip()
    return AuthToken(value) if value else None


class AccessService(Service):
    """Gatekeeper for both session-authenticated and signature-authorized requests."""

    def __init__(self, sessions: SessionStore, files: FileStore, signature_expiry_seconds: int) -> None:
        super().__init__()
        self._sessions = sessions
        self._files = files
        self._signature_expiry_seconds = signature_expiry_seconds

    async def authenticate(self, authorization: str | None) -> SubjectId:
        """Resolve the Authorization header to the owning subject.

        Resolved on every request, never cached. Unknown, expired and
        malformed tokens are reported identically.

        Raises:
            AuthenticationError: If the header is missing or the token does not resolve
        """
        token = extract_token(authorization)
        if token is None:
            raise AuthenticationError("Authorization header required")

        try:
            session = await self._sessions.find_by_token(token)
        except StoreError as e:
            logger.error("token_validation_failed", error=str(e))
            raise AuthenticationError from e

        if session is None:
            logger.info("token_rejected", reason="unknown")
            raise AuthenticationError
        if session.is_expired():
            logger.info("token_rejected", reason="expired", session_id=session.id)
            raise AuthenticationError

        return SubjectId(session.user_id)

    async def authorize_retrieval(self, file_id: str, signature: str, timestamp: int) -> FileRecord:
        """Check a signed retrieval request and return the record to serve.

        Hidden records are reported as missing so takedowns are not confirmed.

        Raises:
            NotFoundError: If the file is unknown or hidden
            AccessDeniedError: If the signature is invalid, expired or future-dated
            StoreError: If the record lookup fails
        """
        record = await self._files.find_by_id(file_id)
        if record is None:
            logger.info("file_not_found", file_id=file_id)
            raise NotFoundError
        if record.hidden:
            logger.info("hidden_file_requested", file_id=file_id)
            raise NotFoundError

        if not verify_signature(file_id, record.signing_key, signature, timestamp, self._signature_expiry_seconds):
            logger.warning("invalid_signature", file_id=file_id)
            raise AccessDeniedError
        return record
