from .base import ApplicationError, ErrorCode, ErrorLevel, ServiceErrorDetails, StorageErrorDetails
from .errors import (
    AuthenticationError,
    EmbeddingError,
    InvalidInputError,
    StoreConnectionError,
    StoreError,
)
