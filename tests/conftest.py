"""
Pytest configuration and shared fixtures.

SECRET_KEY must be set before catalog_api is imported: the settings object is
built at import time and refuses to start without a secret outside debug mode.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-book-catalog-suite-0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import re
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from catalog_api.errors import DuplicateUsernameError, UserNotFoundError
from catalog_api.main import app, configure_services
from catalog_api.models import Book, UserRecord
from catalog_api.passwords import BcryptPasswordHasher
from catalog_api.tokens import TokenService


class InMemoryUserRepository:
    """UserRepository keeping users in a dict."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}

    async def create(self, username: str, password_hash: str) -> UserRecord:
        if username in self.users:
            raise DuplicateUsernameError(username)
        user = UserRecord(id=str(ObjectId()), username=username, password_hash=password_hash)
        self.users[username] = user
        return user

    async def find_by_username(self, username: str) -> UserRecord:
        if username not in self.users:
            raise UserNotFoundError(username)
        return self.users[username]


def _matches(book: Book, query: Dict[str, Any]) -> bool:
    """Evaluate the subset of MongoDB filter syntax the query builder emits."""
    document = book.model_dump(by_alias=True)
    for field, condition in query.items():
        value = document[field]
        if isinstance(condition, dict) and "$regex" in condition:
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if not re.search(condition["$regex"], str(value), flags):
                return False
        elif value != condition:
            return False
    return True


class InMemoryBookRepository:
    """BookRepository keeping books in insertion order."""

    def __init__(self):
        self.books: Dict[str, Book] = {}

    async def create(self, title: str, author: str, publication_year: int) -> Book:
        book = Book(id=str(ObjectId()), title=title, author=author, publication_year=publication_year)
        self.books[book.id] = book
        return book

    async def get(self, book_id: str) -> Optional[Book]:
        return self.books.get(book_id)

    async def update(self, book_id: str, changes: Dict[str, Any]) -> Optional[Book]:
        book = self.books.get(book_id)
        if book is None:
            return None
        document = book.model_dump(by_alias=True)
        document.update(changes)
        updated = Book.model_validate(document)
        self.books[book_id] = updated
        return updated

    async def delete(self, book_id: str) -> Optional[Book]:
        return self.books.pop(book_id, None)

    async def find(self, query: Dict[str, Any]) -> List[Book]:
        return [book for book in self.books.values() if _matches(book, query)]


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def book_repository():
    return InMemoryBookRepository()


@pytest.fixture
def hasher():
    """Hasher with the minimum bcrypt cost to keep the suite fast."""
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def token_service():
    return TokenService("unit-test-secret-key-with-enough-length-0123")


def _serve(user_repository, book_repository, **client_kwargs):
    """Run the real app against in-memory repositories and yield a TestClient."""

    @asynccontextmanager
    async def test_lifespan(app):
        configure_services(app, user_repository, book_repository)
        yield

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = test_lifespan
    try:
        with TestClient(app, **client_kwargs) as test_client:
            yield test_client
    finally:
        app.router.lifespan_context = original_lifespan


@pytest.fixture
def client(user_repository, book_repository):
    yield from _serve(user_repository, book_repository)


@pytest.fixture
def lenient_client(user_repository, book_repository):
    """Client that returns 500 responses instead of re-raising server errors."""
    yield from _serve(user_repository, book_repository, raise_server_exceptions=False)


@pytest.fixture
def auth_token(client):
    """Register a user through the API and return a fresh login token."""
    response = client.post("/api/register", json={"username": "alice", "password": "secret1"})
    assert response.status_code == 201
    response = client.post("/api/login", json={"username": "alice", "password": "secret1"})
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def sample_books():
    """Book fields used across tests."""
    return [
        {"title": "Dune", "author": "Frank Herbert", "publicationYear": 1965},
        {"title": "Nineteen Eighty-Four", "author": "George Orwell", "publicationYear": 1949},
        {"title": "Brave New World", "author": "Aldous Huxley", "publicationYear": 1932},
        {"title": "The Hobbit", "author": "J.R.R. Tolkien", "publicationYear": 1937},
    ]
