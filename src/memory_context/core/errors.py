"""Specific error types for the memory context package."""

from .base import (
    AIServiceErrorDetails,
    ApplicationError,
    ErrorCode,
    ErrorLevel,
    ServiceErrorDetails,
    StorageErrorDetails,
    ValidationErrorDetails,
)


class AuthenticationError(ApplicationError):
    """Authentication-related errors."""

    def __init__(self, message: str, details: ServiceErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHENTICATION_FAILED,
            level=ErrorLevel.ERROR,
            details=details,
        )


class EmbeddingError(ApplicationError):
    """The embedding provider could not produce a vector.

    Raised instead of ever falling back to a synthetic vector.
    """

    def __init__(self, message: str, details: AIServiceErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.EMBEDDING_FAILED,
            level=ErrorLevel.ERROR,
            details=details,
        )


class StoreError(ApplicationError):
    """Memory store read or write failure."""

    error_code: ErrorCode = ErrorCode.STORAGE_OPERATION

    def __init__(self, message: str, details: StorageErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=self.error_code,
            level=ErrorLevel.ERROR,
            details=details,
        )


class StoreConnectionError(StoreError):
    """The memory store backend could not be reached."""

    error_code = ErrorCode.STORAGE_CONNECTION


class InvalidInputError(ApplicationError):
    """Caller supplied arguments outside the accepted range."""

    def __init__(self, message: str, details: ValidationErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            level=ErrorLevel.WARNING,
            details=details,
        )
