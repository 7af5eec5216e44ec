"""
Error taxonomy for the Book Catalog API.

Every error raised by the service layer derives from CatalogError and carries
the HTTP status it maps to. The exception handlers in catalog_api.main turn
them into ErrorResponse bodies.
"""

from http import HTTPStatus
from typing import Any, Mapping, Optional


class CatalogError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, context: Optional[Mapping[str, Any]] = None):
        self.message = message or self.default_message
        self.context = dict(context) if context else None
        super().__init__(self.message)


class ValidationError(CatalogError):
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Validation failed"


class NotFoundError(CatalogError):
    status_code = HTTPStatus.NOT_FOUND
    default_message = "Not found"


class UserNotFoundError(NotFoundError):
    default_message = "User not found"

    def __init__(self, username: str):
        super().__init__(context={"username": username})


class BookNotFoundError(NotFoundError):
    default_message = "Book not found"

    def __init__(self, book_id: str):
        super().__init__(context={"book_id": book_id})


class UnauthenticatedError(CatalogError):
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(CatalogError):
    status_code = HTTPStatus.FORBIDDEN
    default_message = "Forbidden"


class ConflictError(CatalogError):
    status_code = HTTPStatus.CONFLICT
    default_message = "Conflict"


class DuplicateUsernameError(ConflictError):
    default_message = "Username already exists"

    def __init__(self, username: str):
        super().__init__(context={"username": username})


class InternalError(CatalogError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


class PasswordHashingError(InternalError):
    default_message = "Failed to hash password"


class InvalidTokenError(Exception):
    """Token signature, structure or claims did not verify."""


class ExpiredTokenError(InvalidTokenError):
    """Token signature is valid but its expiry has passed."""
