"""
MongoDB persistence for the Book Catalog.

Handles connection management, index creation and the motor-backed
implementations of the user and book repositories.
"""

from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from catalog_api.errors import DuplicateUsernameError, UserNotFoundError
from catalog_api.models import Book, UserRecord

logger = structlog.get_logger(__name__)

USERS_COLLECTION = "users"
BOOKS_COLLECTION = "books"


def _parse_object_id(value: str) -> Optional[ObjectId]:
    """Return an ObjectId for a valid id string, None otherwise."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _document_to_user(doc: Dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(doc["_id"]),
        username=doc["username"],
        password_hash=doc["password"],
    )


def _document_to_book(doc: Dict[str, Any]) -> Book:
    return Book(
        id=str(doc["_id"]),
        title=doc["title"],
        author=doc["author"],
        publication_year=doc["publicationYear"],
    )


class MongoUserRepository:
    """Credential store backed by the ``users`` collection."""

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[USERS_COLLECTION]

    async def ensure_indexes(self) -> None:
        """Usernames are unique at the store boundary."""
        await self.collection.create_index([("username", ASCENDING)], unique=True)

    async def create(self, username: str, password_hash: str) -> UserRecord:
        """
        Insert a new user.

        Args:
            username: Unique username
            password_hash: bcrypt digest

        Returns:
            The stored UserRecord

        Raises:
            DuplicateUsernameError: If the username already exists
        """
        try:
            result = await self.collection.insert_one({"username": username, "password": password_hash})
        except DuplicateKeyError as e:
            logger.info("Duplicate username rejected", username=username)
            raise DuplicateUsernameError(username) from e

        return UserRecord(id=str(result.inserted_id), username=username, password_hash=password_hash)

    async def find_by_username(self, username: str) -> UserRecord:
        doc = await self.collection.find_one({"username": username})
        if doc is None:
            raise UserNotFoundError(username)
        return _document_to_user(doc)


class MongoBookRepository:
    """Book persistence backed by the ``books`` collection."""

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[BOOKS_COLLECTION]

    async def ensure_indexes(self) -> None:
        """Indexes for the author and publication year filters."""
        await self.collection.create_index("author")
        await self.collection.create_index("publicationYear")

    async def create(self, title: str, author: str, publication_year: int) -> Book:
        doc = {"title": title, "author": author, "publicationYear": publication_year}
        result = await self.collection.insert_one(doc)
        logger.debug("Book inserted", book_id=str(result.inserted_id))
        return Book(id=str(result.inserted_id), title=title, author=author, publication_year=publication_year)

    async def get(self, book_id: str) -> Optional[Book]:
        object_id = _parse_object_id(book_id)
        if object_id is None:
            return None
        doc = await self.collection.find_one({"_id": object_id})
        return _document_to_book(doc) if doc else None

    async def update(self, book_id: str, changes: Dict[str, Any]) -> Optional[Book]:
        """
        Apply a partial update.

        Args:
            book_id: Book identifier
            changes: Stored field names mapped to new values

        Returns:
            The updated Book, None if no book has this id
        """
        object_id = _parse_object_id(book_id)
        if object_id is None:
            return None
        if not changes:
            return await self.get(book_id)

        doc = await self.collection.find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        return _document_to_book(doc) if doc else None

    async def delete(self, book_id: str) -> Optional[Book]:
        object_id = _parse_object_id(book_id)
        if object_id is None:
            return None
        doc = await self.collection.find_one_and_delete({"_id": object_id})
        return _document_to_book(doc) if doc else None

    async def find(self, query: Dict[str, Any]) -> List[Book]:
        cursor = self.collection.find(query)
        docs = await cursor.to_list(length=None)
        return [_document_to_book(doc) for doc in docs]


class DatabaseManager:
    """
    Owns the motor client and the repositories built on it.
    """

    def __init__(self, connection_url: str, database_name: str):
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.users: Optional[MongoUserRepository] = None
        self.books: Optional[MongoBookRepository] = None

    async def connect(self) -> None:
        """Connect, verify with a ping and create indexes."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            await self.database.command("ping")
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            self.users = MongoUserRepository(self.database)
            self.books = MongoBookRepository(self.database)
            await self.users.ensure_indexes()
            await self.books.ensure_indexes()
            logger.info("Successfully created MongoDB indexes")

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        if self.database is None:
            return {"status": "unavailable"}
        try:
            await self.database.command("ping")
            books_count = await self.database[BOOKS_COLLECTION].count_documents({})
            return {
                "status": "healthy",
                "books_count": books_count,
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }
