"""Custom exception classes for the persistence layer."""

from typing import Any

from image_persistence.utils.constants import (
    ERROR_CODE_BLOB_TRANSPORT,
    ERROR_CODE_CONFLICT,
    ERROR_CODE_DUPLICATE_IDENTIFIER,
    ERROR_CODE_INTERNAL_ERROR,
    ERROR_CODE_INVALID_FILTER,
    ERROR_CODE_PERSISTENCE,
    ERROR_CODE_RESOURCE_NOT_FOUND,
)


class ImageStoreError(Exception):
    """
    Base exception for all persistence layer errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class NotFoundError(ImageStoreError):
    """Raised when a record or blob is absent where presence was required."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_RESOURCE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DuplicateIdentifierError(ImageStoreError):
    """Raised when an image insert violates the (owner, identifier) key.

    Callers typically react by generating a new identifier and retrying.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DUPLICATE_IDENTIFIER,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class PersistenceError(ImageStoreError):
    """Raised when a store operation fails (connectivity, bad response)."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_PERSISTENCE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ConflictError(PersistenceError):
    """Raised when a write fails because the record it creates already exists."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_CONFLICT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class BlobTransportError(PersistenceError):
    """Raised when moving bytes to or from the blob store fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_BLOB_TRANSPORT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class InternalError(ImageStoreError):
    """Raised when stored data is found but shaped unexpectedly."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class FilterError(ImageStoreError):
    """Raised when search or paging parameters are invalid."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_INVALID_FILTER,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
