from collections.abc import AsyncIterator
from typing import Any, Self

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

logger = structlog.get_logger(__name__)


class MongoModel(BaseModel):
    """Document stored with an application-level string id; Mongo's own _id is ignored."""

    id: str

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage."""
        return self.model_dump()

    @classmethod
    async def iter_cursor(cls, cursor: AsyncIterator[dict[str, Any]]) -> AsyncIterator[Self]:
        """Validate cursor documents one by one, skipping any that fail validation."""
        async for item in cursor:
            try:
                yield cls.model_validate(item)
            except PydanticValidationError as e:
                logger.exception("invalid_document_skipped", model=cls.__name__, document_id=str(item.get("_id")), error=str(e))
