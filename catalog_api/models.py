"""
API models and schemas for the Book Catalog API.

Wire field names follow the public protocol (``publicationYear``, ``token``,
``_id``); Python attribute names are snake_case with aliases.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

MAX_PASSWORD_BYTES = 72

# MongoDB stores integers as signed 64-bit values
MIN_PUBLICATION_YEAR = -(2 ** 63)
MAX_PUBLICATION_YEAR = 2 ** 63 - 1


def _reject_bool_year(value):
    if isinstance(value, bool):
        raise ValueError("Publication year must be a valid number")
    return value


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class UserRecord(BaseModel):
    """Stored user account."""
    id: str = Field(..., description="Store-assigned user identifier")
    username: str = Field(..., description="Unique username")
    password_hash: str = Field(..., description="bcrypt digest of the password")


class Book(BaseModel):
    """Book record as stored and returned by the API."""
    id: str = Field(..., alias="_id", description="Store-assigned book identifier")
    title: str = Field(..., description="The title of the book")
    author: str = Field(..., description="The author of the book")
    publication_year: int = Field(..., alias="publicationYear", description="The year the book was published")

    model_config = {"populate_by_name": True}


class Identity(BaseModel):
    """Verified caller identity attached by the auth gate."""
    user_id: str


class TokenClaims(BaseModel):
    """Verified contents of a bearer token."""
    user_id: str = Field(..., alias="userId")
    issued_at: datetime
    expires_at: datetime

    model_config = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Body of POST /api/register."""
    username: str = Field(..., min_length=3, description="The username of the new user")
    password: str = Field(..., min_length=6, description="The password of the new user")

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v):
        """bcrypt only uses the first 72 bytes of a password."""
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    """Body of POST /api/login."""
    username: str = Field(..., min_length=1, description="The username of the user")
    password: str = Field(..., min_length=1, description="The password of the user")


class TokenRequest(BaseModel):
    """Body carrying only the bearer token."""
    token: Optional[str] = Field(None, description="JWT token for authenticated requests")


class BookFields(TokenRequest):
    """
    Shared validation for book bodies.

    Titles and authors are stored as sent but may not be blank. JSON booleans
    are not accepted as a publication year.
    """

    model_config = {"populate_by_name": True}

    @field_validator("title", "author", check_fields=False)
    @classmethod
    def validate_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("publication_year", mode="before", check_fields=False)
    @classmethod
    def validate_year_not_bool(cls, v):
        return _reject_bool_year(v)


class BookCreateRequest(BookFields):
    """Body of POST /api/books."""
    title: str = Field(..., min_length=1, description="The title of the book")
    author: str = Field(..., min_length=1, description="The author of the book")
    publication_year: int = Field(
        ...,
        alias="publicationYear",
        ge=MIN_PUBLICATION_YEAR,
        le=MAX_PUBLICATION_YEAR,
        description="The year the book was published",
    )


class BookUpdateRequest(BookFields):
    """Body of PATCH /api/books/{id}; omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, description="The updated title of the book")
    author: Optional[str] = Field(None, min_length=1, description="The updated author of the book")
    publication_year: Optional[int] = Field(
        None,
        alias="publicationYear",
        ge=MIN_PUBLICATION_YEAR,
        le=MAX_PUBLICATION_YEAR,
        description="The updated publication year of the book",
    )

    def changes(self) -> Dict[str, Any]:
        """Return the provided book fields keyed by their stored names."""
        return self.model_dump(exclude={"token"}, exclude_none=True, by_alias=True)


class BookFilterRequest(TokenRequest):
    """Body of POST /api/books/filter."""
    author: Optional[str] = Field(None, description="Filter books by author substring")
    publication_year: Optional[Union[int, str]] = Field(
        None, alias="publicationYear", description="Filter books by publication year"
    )

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}

    @field_validator("publication_year", mode="before")
    @classmethod
    def validate_year_not_bool(cls, v):
        return _reject_bool_year(v)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Plain confirmation message."""
    message: str


class TokenResponse(BaseModel):
    """Successful login response."""
    token: str = Field(..., description="JWT token for authenticated requests")


class BookMutationResponse(BaseModel):
    """Response for create, update and delete operations."""
    message: str
    book: Book


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Field validation errors")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
