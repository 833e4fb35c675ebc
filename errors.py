"""Errors raised by the catalog repositories.

Each error carries the HTTP status code the API layer answers with.
"""


class CatalogError(Exception):
    """Base exception for catalog errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Raised for a malformed identifier, a missing field or a bad enum value."""
    status_code = 400


class Conflict(CatalogError):
    """Raised when a record with the same identity already exists."""
    status_code = 409


class NotFound(CatalogError):
    """Raised when the referenced record does not exist."""
    status_code = 404


class InvalidState(CatalogError):
    """Raised when an operation is not allowed for the record's current state."""
    status_code = 400
