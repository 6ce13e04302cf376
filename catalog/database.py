"""
MongoDB record store for book documents.
Handles connection, indexing, and CRUD operations through Motor.
"""

from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument, TEXT
from pymongo.errors import ConnectionFailure, DuplicateKeyError

logger = structlog.get_logger(__name__)


class BookStore:
    """
    Async MongoDB store for book documents.
    Owns the unique ISBN index and the title/author/genre text index.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str = "books"):
        """
        Initialize the store.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the books collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and make sure indexes exist."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url, tz_aware=True)
            self.database = self.client[self.database_name]
            self.collection = self.database[self.collection_name]

            await self.client.admin.command("ping")
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        collection=self.collection_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the uniqueness, text, and lookup indexes."""
        try:
            await self.collection.create_index("isbn", unique=True)

            # Text index backing the first search stage
            await self.collection.create_index(
                [("title", TEXT), ("author", TEXT), ("genre", TEXT)],
                name="book_text_search",
            )

            await self.collection.create_index([("genre", ASCENDING)])
            await self.collection.create_index([("author", ASCENDING)])
            await self.collection.create_index([("published_year", ASCENDING)])

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a book document.

        Returns:
            The stored document including its generated `_id`

        Raises:
            DuplicateKeyError: if the ISBN already exists
        """
        document = dict(document)
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.warning("Book already exists", isbn=document.get("isbn"))
            raise
        except Exception as e:
            logger.error("Failed to insert book", isbn=document.get("isbn"), error=str(e))
            raise

        document["_id"] = result.inserted_id
        logger.debug("Successfully inserted book", book_id=str(result.inserted_id))
        return document

    async def find_by_id(self, book_id: ObjectId) -> Optional[Dict[str, Any]]:
        """Get a book document by `_id`, or None."""
        try:
            return await self.collection.find_one({"_id": book_id})
        except Exception as e:
            logger.error("Failed to get book by ID", book_id=str(book_id), error=str(e))
            raise

    async def find_many(self, skip: int, limit: int) -> List[Dict[str, Any]]:
        """Get a window of book documents in insertion order."""
        try:
            cursor = self.collection.find({}).sort("_id", ASCENDING).skip(skip).limit(limit)
            return await cursor.to_list(length=limit)
        except Exception as e:
            logger.error("Failed to get books", skip=skip, limit=limit, error=str(e))
            raise

    async def find_all(self) -> List[Dict[str, Any]]:
        """Get every book document in insertion order."""
        try:
            cursor = self.collection.find({}).sort("_id", ASCENDING)
            return await cursor.to_list(length=None)
        except Exception as e:
            logger.error("Failed to get all books", error=str(e))
            raise

    async def count(self) -> int:
        """Get total number of books in the collection."""
        try:
            return await self.collection.count_documents({})
        except Exception as e:
            logger.error("Failed to get books count", error=str(e))
            raise

    async def update_by_id(self, book_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Set the given fields on a book.

        Returns:
            The updated document, or None if not found

        Raises:
            DuplicateKeyError: if the update would duplicate an ISBN
        """
        try:
            document = await self.collection.find_one_and_update(
                {"_id": book_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            logger.warning("Update would duplicate ISBN", book_id=str(book_id), isbn=fields.get("isbn"))
            raise
        except Exception as e:
            logger.error("Failed to update book by ID", book_id=str(book_id), error=str(e))
            raise

        if document is None:
            logger.warning("Book not found for update", book_id=str(book_id))
        return document

    async def delete_by_id(self, book_id: ObjectId) -> bool:
        """
        Delete a book by `_id`.

        Returns:
            bool: True if deleted, False if not found
        """
        try:
            result = await self.collection.delete_one({"_id": book_id})
        except Exception as e:
            logger.error("Failed to delete book", book_id=str(book_id), error=str(e))
            raise

        if result.deleted_count > 0:
            logger.debug("Successfully deleted book", book_id=str(book_id))
            return True
        logger.warning("Book not found for deletion", book_id=str(book_id))
        return False

    async def text_search(self, query: str) -> List[Dict[str, Any]]:
        """
        Run a `$text` query over the text index.

        Returns:
            Matching documents ordered by descending text score
        """
        try:
            cursor = self.collection.find(
                {"$text": {"$search": query}},
                {"score": {"$meta": "textScore"}},
            ).sort([("score", {"$meta": "textScore"})])
            return await cursor.to_list(length=None)
        except Exception as e:
            logger.error("Text search failed", query=query, error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.collection.count_documents({})
            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count,
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }
