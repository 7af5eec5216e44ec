"""
Business logic for accounts and books.

Services know nothing about HTTP; they take typed requests, talk to the
repositories and raise CatalogError subclasses on failure.
"""

from typing import List

import structlog

from catalog_api.errors import BookNotFoundError, UnauthenticatedError, UserNotFoundError
from catalog_api.models import (
    Book,
    BookCreateRequest,
    BookFilterRequest,
    BookUpdateRequest,
    LoginRequest,
    RegisterRequest,
    UserRecord,
)
from catalog_api.passwords import BcryptPasswordHasher
from catalog_api.queries import BookFilter, build_book_query
from catalog_api.repositories import BookRepository, UserRepository
from catalog_api.tokens import TokenService

logger = structlog.get_logger(__name__)


class AccountService:
    """Registration and login."""

    def __init__(self, users: UserRepository, hasher: BcryptPasswordHasher, tokens: TokenService):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens

    async def register(self, request: RegisterRequest) -> UserRecord:
        """
        Register a new user.

        Raises:
            DuplicateUsernameError: If the username is taken
            PasswordHashingError: If the password could not be hashed
        """
        password_hash = await self.hasher.hash_async(request.password)
        user = await self.users.create(request.username, password_hash)
        logger.info("User registered", user_id=user.id, username=user.username)
        return user

    async def login(self, request: LoginRequest) -> str:
        """
        Check credentials and issue a bearer token.

        Returns:
            Encoded token for the user

        Raises:
            UserNotFoundError: If no user has this username
            UnauthenticatedError: If the password does not match
        """
        try:
            user = await self.users.find_by_username(request.username)
        except UserNotFoundError:
            await self.hasher.burn_async(request.password)
            logger.info("Login failed", username=request.username, reason="user_not_found")
            raise

        if not await self.hasher.verify_async(request.password, user.password_hash):
            logger.info("Login failed", username=request.username, reason="invalid_password")
            raise UnauthenticatedError("Invalid password")

        logger.info("User logged in", user_id=user.id)
        return self.tokens.issue(user.id)


class BookService:
    """Book catalog operations. Any authenticated caller may change any book."""

    def __init__(self, books: BookRepository):
        self.books = books

    async def create(self, request: BookCreateRequest) -> Book:
        book = await self.books.create(request.title, request.author, request.publication_year)
        logger.info("Book created", book_id=book.id)
        return book

    async def update(self, book_id: str, request: BookUpdateRequest) -> Book:
        book = await self.books.update(book_id, request.changes())
        if book is None:
            raise BookNotFoundError(book_id)
        logger.info("Book updated", book_id=book_id)
        return book

    async def delete(self, book_id: str) -> Book:
        book = await self.books.delete(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        logger.info("Book deleted", book_id=book_id)
        return book

    async def list_all(self) -> List[Book]:
        return await self.books.find({})

    async def filter(self, request: BookFilterRequest) -> List[Book]:
        """Return books matching the optional author and publication year filters."""
        book_filter = BookFilter.from_input(request.author, request.publication_year)
        return await self.books.find(build_book_query(book_filter))
