"""Exception hierarchy for the Friends directory service."""

from __future__ import annotations

from fastapi import status


class ApplicationError(Exception):
    """Base application error with HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "application_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message


class MissingParameter(ApplicationError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "missing_parameter"


class ValidationFailure(ApplicationError):
    """A patch or request value could not be parsed."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_failure"


class NotFound(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class StoreError(ApplicationError):
    """Base class for faults raised on the store side of a request."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "store_error"


class SerializationFailure(StoreError):
    """A record could not be encoded to, or decoded from, the store's wire format."""

    code = "serialization_failure"


class CommitFailure(StoreError):
    """The store rejected a mutation or could not complete the commit.

    The driver error is chained as ``__cause__``.
    """

    code = "commit_failure"


class QueryFailure(StoreError):
    code = "query_failure"


class StoreTimeout(StoreError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    code = "store_timeout"

    def __init__(self, timeout_seconds: float, operation: str) -> None:
        super().__init__(f"Store {operation} timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds
        self.operation = operation
