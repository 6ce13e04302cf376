"""
Tests for BookRepository CRUD operations.
"""

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from catalog.exceptions import (
    ConflictError, InternalError, InvalidIdError, NotFoundError, ValidationError
)


class TestCreate:
    """Test cases for creating books."""

    @pytest.mark.asyncio
    async def test_create_then_get_returns_same_record(self, repository, book_payload):
        created = await repository.create(book_payload)
        fetched = await repository.get_by_id(created.id)

        assert fetched == created
        assert ObjectId.is_valid(created.id)
        assert created.created_at is not None
        assert created.created_at == created.updated_at

    @pytest.mark.asyncio
    async def test_duplicate_isbn_conflicts(self, repository, book_payload):
        await repository.create(book_payload)

        duplicate = dict(book_payload, title="Another Title", author="Someone Else")
        with pytest.raises(ConflictError) as exc_info:
            await repository.create(duplicate)

        assert "9780747532699" in exc_info.value.message
        assert (await repository.list()).total == 1

    @pytest.mark.asyncio
    async def test_invalid_payload_not_stored(self, repository, store):
        with pytest.raises(ValidationError) as exc_info:
            await repository.create({"title": "", "stockCount": "lots"})

        assert len(exc_info.value.details) == 6
        assert store.documents == {}

    @pytest.mark.asyncio
    async def test_store_failure_is_internal_error(self, repository, store, book_payload):
        store.fail_with = ServerSelectionTimeoutError("no servers available")

        with pytest.raises(InternalError):
            await repository.create(book_payload)


class TestList:
    """Test cases for paginated listing."""

    @pytest.mark.asyncio
    async def test_pages_partition_collection(self, repository, library_payloads):
        created = [await repository.create(payload) for payload in library_payloads]

        first = await repository.list(page=1, limit=3)
        second = await repository.list(page=2, limit=3)

        assert len(first.books) == 3
        assert len(second.books) == 1
        assert first.total == second.total == 4
        assert first.pages == 2

        seen = [book.id for book in first.books + second.books]
        assert seen == [book.id for book in created]

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, repository, library_payloads):
        for payload in library_payloads:
            await repository.create(payload)

        result = await repository.list(page=10, limit=3)

        assert result.books == []
        assert result.total == 4
        assert result.pages == 2
        assert result.page == 10

    @pytest.mark.asyncio
    async def test_empty_collection(self, repository):
        result = await repository.list()

        assert result.total == 0
        assert result.pages == 0
        assert result.books == []


class TestGetById:
    """Test cases for fetching a single book."""

    @pytest.mark.asyncio
    async def test_malformed_id(self, repository):
        with pytest.raises(InvalidIdError):
            await repository.get_by_id("not-an-object-id")

    @pytest.mark.asyncio
    async def test_missing_book(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get_by_id(str(ObjectId()))


class TestUpdate:
    """Test cases for updating books."""

    @pytest.mark.asyncio
    async def test_stock_update_round_trip(self, repository, book_payload):
        created = await repository.create(book_payload)

        await repository.update(created.id, {"stockCount": 42})
        fetched = await repository.get_by_id(created.id)

        assert fetched.stock_count == 42
        assert fetched.title == created.title
        assert fetched.author == created.author
        assert fetched.genre == created.genre
        assert fetched.published_year == created.published_year
        assert fetched.isbn == created.isbn
        assert fetched.created_at == created.created_at
        assert fetched.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_update_to_existing_isbn_conflicts(self, repository, library_payloads):
        first = await repository.create(library_payloads[0])
        second = await repository.create(library_payloads[1])

        with pytest.raises(ConflictError):
            await repository.update(second.id, {"isbn": first.isbn})

        assert (await repository.get_by_id(second.id)).isbn == library_payloads[1]["isbn"]

    @pytest.mark.asyncio
    async def test_update_keeping_own_isbn(self, repository, book_payload):
        created = await repository.create(book_payload)

        updated = await repository.update(created.id, {"isbn": created.isbn, "genre": "Fiction"})

        assert updated.genre == "Fiction"

    @pytest.mark.asyncio
    async def test_update_validation_error(self, repository, book_payload):
        created = await repository.create(book_payload)

        with pytest.raises(ValidationError):
            await repository.update(created.id, {"title": ""})

    @pytest.mark.asyncio
    async def test_update_missing_book(self, repository):
        with pytest.raises(NotFoundError):
            await repository.update(str(ObjectId()), {"stockCount": 1})

    @pytest.mark.asyncio
    async def test_update_malformed_id(self, repository):
        with pytest.raises(InvalidIdError):
            await repository.update("123", {"stockCount": 1})


class TestDelete:
    """Test cases for deleting books."""

    @pytest.mark.asyncio
    async def test_delete_twice(self, repository, book_payload):
        created = await repository.create(book_payload)

        result = await repository.delete(created.id)
        assert result == {"message": "Book deleted successfully"}

        with pytest.raises(NotFoundError):
            await repository.delete(created.id)
        with pytest.raises(NotFoundError):
            await repository.get_by_id(created.id)

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, repository):
        with pytest.raises(InvalidIdError):
            await repository.delete("xyz")
