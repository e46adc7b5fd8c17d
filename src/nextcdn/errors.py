from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "File not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when the session credential is missing, unknown or expired."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a retrieval signature does not authorize access."""

    def __init__(self, message: str = "Invalid or expired signature") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class PayloadTooLargeError(UserError):
    """Raised when an upload exceeds the configured size limit."""


class UpstreamError(UserError):
    """Raised when a remote resource requested by the user cannot be fetched or decoded."""


class StoreError(Exception):
    """Raised when the document store fails. Never shown to the user."""


class StorageError(Exception):
    """Raised when an object store operation fails.

    Attributes:
        key: The object key involved (if applicable).
        operation: The operation that failed.
    """

    def __init__(self, message: str, *, key: str | None = None, operation: str | None = None) -> None:
        self.key = key
        self.operation = operation
        super().__init__(message)


class ObjectNotFoundError(StorageError):
    """Raised when an object does not exist."""


class ScanError(Exception):
    """Raised when the malware scanner cannot produce a verdict."""
