"""
Domain-Specific Exceptions for the table store

Every failure raised by this package extends DynamoCrudError. The classes
follow the error taxonomy of the CRUD engine:

1. Data Validation Errors
2. Not Found Errors
3. Conflict Errors (duplicate keys, stale ETags)
4. Infrastructure Errors (configuration, unavailable store)
"""

from typing import Any, Dict, Optional

from .base import DynamoCrudError


# =============================================================================
# Data Validation Errors
# =============================================================================

class ValidationError(DynamoCrudError):
    """Raised when a value cannot be coerced into the store's entity shape.

    Used for:
    - Integers outside the 32-bit range
    - Unsupported field types on typed entities
    - Strict-mode record fields that would otherwise be dropped
    - Operations missing a required row key
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize validation error.

        Args:
            message: Human-readable error message
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.errors = errors or {}
        context = {
            'validation_errors': self.errors
        } if self.errors else {}
        super().__init__(message, original_error, context)


# =============================================================================
# Not Found Errors
# =============================================================================

class NotFoundError(DynamoCrudError):
    """Raised when a store resource (table, row, container, blob) is not found."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize not found error.

        Args:
            message: Human-readable error message
            resource_type: Type of resource not found (e.g., 'table', 'bucket')
            resource_name: Name of the resource not found
            original_error: The original exception that caused this error
        """
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)


class ItemNotFoundError(NotFoundError):
    """Raised when an entity is absent from its partition.

    Used for:
    - Update/Delete operations on non-existent rows
    - Record reads that require the row to exist
    """

    def __init__(self, table_name: str, key: dict, message: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize item not found error.

        Args:
            table_name: Name of the table
            key: The key that was not found
            message: Optional override of the default message
            original_error: The original exception that caused this error
        """
        self.table_name = table_name
        self.key = key
        message = message or f"Item not found in table '{table_name}' with key: {key}"
        super().__init__(message, 'item', table_name, original_error)
        self.context = {
            'table_name': table_name,
            'key': key
        }


# =============================================================================
# Conflict Errors
# =============================================================================

class ConflictError(DynamoCrudError):
    """Raised when a conditional write fails because of existing data."""

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize conflict error.

        Args:
            message: Human-readable error message
            resource_id: ID of the conflicting resource (row key)
            original_error: The original exception that caused this error
        """
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


class DuplicateKeyError(ConflictError):
    """Raised when an insert collides with an existing (PartitionKey, RowKey)."""


class ConcurrencyConflictError(ConflictError):
    """Raised when a replace or delete presents a stale ETag.

    The caller may re-read the entity and retry the write.
    """


# =============================================================================
# Infrastructure Errors
# =============================================================================

class ConfigurationError(DynamoCrudError):
    """Raised when the connection target is missing or invalid.

    Used for:
    - Missing region or credentials
    - Invalid endpoint URLs
    - Authentication/authorization failures
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class StorageUnavailableError(DynamoCrudError):
    """Raised on transient remote failures.

    Nothing in this package retries these; botocore's own retry policy has
    already been exhausted by the time one is raised.
    """

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        """Initialize storage unavailable error.

        Args:
            message: Human-readable error message
            retry_after_seconds: Suggested retry delay in seconds
            original_error: The original exception that caused this error
        """
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)
