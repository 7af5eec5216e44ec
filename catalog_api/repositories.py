"""
Repository interfaces for the Book Catalog.

Services depend on these protocols only; catalog_api.database provides the
MongoDB implementations.
"""

from typing import Any, Dict, List, Optional, Protocol

from catalog_api.models import Book, UserRecord


class UserRepository(Protocol):
    """Credential store: usernames and password digests."""

    async def create(self, username: str, password_hash: str) -> UserRecord:
        """Store a new user. Raises DuplicateUsernameError if the username is taken."""
        ...

    async def find_by_username(self, username: str) -> UserRecord:
        """Look up a user. Raises UserNotFoundError if absent."""
        ...


class BookRepository(Protocol):
    """Book persistence."""

    async def create(self, title: str, author: str, publication_year: int) -> Book: ...

    async def get(self, book_id: str) -> Optional[Book]: ...

    async def update(self, book_id: str, changes: Dict[str, Any]) -> Optional[Book]:
        """Apply a partial update and return the updated book, None if absent."""
        ...

    async def delete(self, book_id: str) -> Optional[Book]:
        """Remove a book and return it, None if absent."""
        ...

    async def find(self, query: Dict[str, Any]) -> List[Book]:
        """Return every book matching a MongoDB filter document."""
        ...
