"""
Custom exceptions for repository-related operations.

Every failure that leaves the repository layer is one of these, so callers can
branch on the type (or on `error_code`) without knowing anything about
SQLAlchemy or the database driver.
"""

from typing import Iterable, Mapping


class RepositoryError(Exception):
    """
    Base exception for repository errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['email'])
    - constraint: optional DB constraint name (for logs only)
    - error_code: canonical short code (e.g., 'not_found', 'edit_conflict') used by clients
    """

    # canonical error_code -> default HTTP status
    ERROR_CODE_TO_STATUS = {
        "validation_failed": 422,
        "not_found": 404,
        "edit_conflict": 409,
        "duplicate": 409,
        "store_error": 500,
        "query_timeout": 500,
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for HTTP responses.

            {
                "detail": "A human-friendly message",
                "code": "not_found",          # optional canonical code
                "fields": ["email"],          # optional list for client usage
            }

        `constraint` is never included; it may leak schema details.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        """HTTP status for this error; 400 when the code is unknown or missing."""
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class ValidationError(RepositoryError):
    """
    Input failed one or more field rules.

    `errors` maps field name -> message, exactly as accumulated by the Validator.
    """

    def __init__(self, errors: Mapping[str, str], message: str = "Input failed validation"):
        self.errors = dict(errors)
        super().__init__(message, fields=sorted(self.errors), error_code="validation_failed")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["errors"] = dict(self.errors)
        return payload


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "The requested record could not be found", *,
                 fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class EditConflictError(RepositoryError):
    """
    The version precondition of an update did not hold.

    Either another writer bumped the version first or the record is gone; the
    caller should re-fetch and retry with the latest version.
    """

    def __init__(self, message: str = "Unable to update the record due to an edit conflict, please try again"):
        super().__init__(message, error_code="edit_conflict")


class StoreError(RepositoryError):
    """
    The store failed: connectivity, constraint violation, driver error.

    The original exception is kept as `__cause__` (raise ... from exc) for diagnostics.
    """

    def __init__(self, message: str = "The store could not complete the operation", *,
                 fields: Iterable[str] | None = None, constraint: str | None = None,
                 error_code: str = "store_error"):
        super().__init__(message, fields=fields, constraint=constraint, error_code=error_code)


class DuplicateError(StoreError):
    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="duplicate")


class QueryTimeoutError(StoreError):
    """The statement did not finish inside the repository's timeout budget."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(
            f"{operation} did not complete within {timeout:g}s",
            error_code="query_timeout",
        )


__all__ = [
    "RepositoryError",
    "ValidationError",
    "NotFoundError",
    "EditConflictError",
    "StoreError",
    "DuplicateError",
    "QueryTimeoutError",
]
