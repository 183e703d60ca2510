"""
Custom exceptions for repository-related operations.

Every failure a repository surfaces to its caller is one of:

    - NotFoundError: no row matched a single-record read or a delete.
    - DuplicateError: a create violated a uniqueness constraint.
    - InvalidFieldError: the caller referenced attributes the model does not have,
      or a filter value could not be coerced to the column type.

Anything else coming from SQLAlchemy or the DB driver is re-raised unchanged.
"""

from typing import Iterable

# canonical repository-level exception

class RepositoryError(Exception):
    """
    Base exception for repository errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names / identifier tokens related to the error
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'duplicate', 'invalid_field') used by clients
    """

    # Map canonical error_code -> default HTTP status.
    ERROR_CODE_TO_STATUS = {
        "duplicate": 409,
        "invalid_field": 422,
        "not_found": 404,
        # fallback: default to 400 for general repository errors
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
        Standard shape:
            {
                "detail": "A human-friendly message",
                "code": "duplicate",           # optional canonical code
                "fields": ["users", "5"],      # optional list for client usage
            }
        The constraint name is never part of the payload.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        """
        Return the HTTP status code that should accompany this error.
        Unknown or missing error codes map to 400 (Bad Request).
        """
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class DuplicateError(RepositoryError):
    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="duplicate")


class InvalidFieldError(RepositoryError):
    """Raised when the caller passes unknown fields or unusable filter values."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


__all__ = [
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError"
]
