# Base exception class
from .base import DynamoCrudError

from .domain_exceptions import (
    ValidationError,
    ItemNotFoundError,
    NotFoundError,
    ConflictError,
    DuplicateKeyError,
    ConcurrencyConflictError,
    ConfigurationError,
    StorageUnavailableError,
)

__all__ = [
    # Base exception
    "DynamoCrudError",

    # Domain exceptions (alphabetically ordered)
    "ConcurrencyConflictError",
    "ConfigurationError",
    "ConflictError",
    "DuplicateKeyError",
    "ItemNotFoundError",
    "NotFoundError",
    "StorageUnavailableError",
    "ValidationError",
]
