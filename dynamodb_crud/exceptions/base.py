from typing import Any, Dict, Optional


class DynamoCrudError(Exception):
    """Root of every error raised by the CRUD engine and the blob store.

    Callers that do not care about the failure kind catch this; the
    subclasses in ``domain_exceptions`` tell a missing row from a stale ETag
    from an unreachable store.

    Attributes:
        message: What went wrong, phrased for the operation that failed
        original_error: The boto3/botocore/pydantic error being wrapped, if any
        context: Table, key or resource details identifying the failed target
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} (Context: {details})"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"original_error={self.original_error!r}, context={self.context!r})"
        )
