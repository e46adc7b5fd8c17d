from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from nextcdn.core.core import Service
from nextcdn.core.modules.session.models import AuthToken, Session
from nextcdn.errors import StoreError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Read-only adapter over the account service's sessions collection."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__()
        self._collection = database.get_collection("sessions")

    async def find_by_token(self, token: AuthToken) -> Session | None:
        """Find the session holding exactly this token.

        Raises:
            StoreError: If the lookup itself fails
        """
        try:
            doc = await self._collection.find_one({"token": token})
        except PyMongoError as e:
            raise StoreError(f"Session lookup failed: {e}") from e
        if doc is None:
            return None
        try:
            return Session.model_validate(doc)
        except PydanticValidationError:
            logger.exception("invalid_session_document", document_id=str(doc.get("_id")))
            return None
