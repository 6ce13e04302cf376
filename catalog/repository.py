"""
Book repository: CRUD operations over the record store.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from catalog.database import BookStore
from catalog.exceptions import ConflictError, InternalError, InvalidIdError, NotFoundError
from catalog.models import Book, BookPage
from catalog.validation import validate_create, validate_update

logger = structlog.get_logger(__name__)


def parse_object_id(book_id: str) -> ObjectId:
    """
    Convert a path identifier to an ObjectId.

    Raises:
        InvalidIdError: if the string is not a 24-character hex ObjectId
    """
    if not isinstance(book_id, str) or not ObjectId.is_valid(book_id):
        raise InvalidIdError(str(book_id))
    return ObjectId(book_id)


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def _utcnow() -> datetime:
    # MongoDB keeps millisecond precision
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class BookRepository:
    """
    CRUD operations on books.

    Every call goes straight to the store; nothing is cached between calls.
    """

    def __init__(self, store: BookStore):
        self.store = store

    async def create(self, payload: Any) -> Book:
        """
        Validate and insert a new book.

        Raises:
            ValidationError: on schema violations
            ConflictError: if the ISBN already exists
        """
        book_in = validate_create(payload)
        now = _utcnow()
        document = book_in.to_document()
        document["created_at"] = now
        document["updated_at"] = now

        try:
            stored = await self.store.insert(document)
        except DuplicateKeyError as e:
            raise ConflictError(f"Book with ISBN '{book_in.isbn}' already exists") from e
        except PyMongoError as e:
            logger.error("Failed to create book", isbn=book_in.isbn, error=str(e))
            raise InternalError("Failed to create book", detail=str(e)) from e

        logger.info("Book created", book_id=str(stored["_id"]), isbn=book_in.isbn)
        return Book.from_document(stored)

    async def list(self, page: int = 1, limit: int = 10) -> BookPage:
        """
        Get one page of books in insertion order.
        A page past the end yields an empty window.
        """
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be >= 1")

        skip = (page - 1) * limit
        try:
            total = await self.store.count()
            documents = await self.store.find_many(skip=skip, limit=limit)
        except PyMongoError as e:
            logger.error("Failed to list books", page=page, limit=limit, error=str(e))
            raise InternalError("Failed to retrieve books", detail=str(e)) from e

        return BookPage(
            total=total,
            page=page,
            pages=page_count(total, limit),
            books=[Book.from_document(doc) for doc in documents],
        )

    async def get_by_id(self, book_id: str) -> Book:
        """
        Get a single book.

        Raises:
            InvalidIdError: if the identifier is malformed
            NotFoundError: if no such book exists
        """
        object_id = parse_object_id(book_id)
        try:
            document = await self.store.find_by_id(object_id)
        except PyMongoError as e:
            raise InternalError("Failed to retrieve book", detail=str(e)) from e

        if document is None:
            raise NotFoundError(book_id)
        return Book.from_document(document)

    async def update(self, book_id: str, payload: Any) -> Book:
        """
        Apply the supplied fields to a book.

        Raises:
            InvalidIdError: if the identifier is malformed
            ValidationError: on schema violations
            NotFoundError: if no such book exists
            ConflictError: if the new ISBN belongs to another book
        """
        object_id = parse_object_id(book_id)
        changes = validate_update(payload)
        fields: Dict[str, Any] = changes.to_document()
        fields["updated_at"] = _utcnow()

        try:
            document = await self.store.update_by_id(object_id, fields)
        except DuplicateKeyError as e:
            raise ConflictError(f"Book with ISBN '{fields.get('isbn')}' already exists") from e
        except PyMongoError as e:
            logger.error("Failed to update book", book_id=book_id, error=str(e))
            raise InternalError("Failed to update book", detail=str(e)) from e

        if document is None:
            raise NotFoundError(book_id)

        logger.info("Book updated", book_id=book_id, fields=sorted(fields))
        return Book.from_document(document)

    async def delete(self, book_id: str) -> Dict[str, str]:
        """
        Permanently remove a book.

        Raises:
            InvalidIdError: if the identifier is malformed
            NotFoundError: if no such book exists
        """
        object_id = parse_object_id(book_id)
        try:
            deleted = await self.store.delete_by_id(object_id)
        except PyMongoError as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise InternalError("Failed to delete book", detail=str(e)) from e

        if not deleted:
            raise NotFoundError(book_id)

        logger.info("Book deleted", book_id=book_id)
        return {"message": "Book deleted successfully"}
