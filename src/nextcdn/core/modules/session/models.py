"""Session models. Sessions are owned by the account service; this service only reads them."""

from typing import NewType

from nextcdn.core.db import MongoModel
from nextcdn.utils import now_millis

AuthToken = NewType("AuthToken", str)
SubjectId = NewType("SubjectId", str)


class Session(MongoModel):
    """User authentication session.

    Looked up by exact token match; expires_at is Unix epoch milliseconds.
    """

    token: str
    friendly_name: str
    user_id: str
    expires_at: int

    def is_expired(self, current_millis: int | None = None) -> bool:
        current = now_millis() if current_millis is None else current_millis
        return self.expires_at <= current
