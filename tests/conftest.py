"""
Pytest configuration and shared fixtures.
"""

import re
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from api.config import APIConfig
from api.main import create_app
from catalog.repository import BookRepository
from catalog.search import SearchPipeline


# Terms MongoDB's English text index never matches on
STOP_WORDS = frozenset({"a", "an", "and", "in", "of", "on", "or", "the", "to"})


class InMemoryBookStore:
    """
    Dict-backed stand-in for BookStore.
    Enforces unique ISBNs and approximates `$text` with whole-word matching,
    ignoring stop words.
    """

    def __init__(self):
        self.documents: Dict[ObjectId, Dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def _check_isbn(self, isbn: Optional[str], exclude: Optional[ObjectId] = None):
        for oid, doc in self.documents.items():
            if oid != exclude and isbn is not None and doc.get("isbn") == isbn:
                raise DuplicateKeyError("E11000 duplicate key error collection: books index: isbn_1", code=11000)

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        self._maybe_fail()
        self._check_isbn(document.get("isbn"))
        stored = dict(document)
        stored["_id"] = ObjectId()
        self.documents[stored["_id"]] = stored
        return dict(stored)

    async def find_by_id(self, book_id: ObjectId) -> Optional[Dict[str, Any]]:
        self._maybe_fail()
        doc = self.documents.get(book_id)
        return dict(doc) if doc else None

    async def find_many(self, skip: int, limit: int) -> List[Dict[str, Any]]:
        self._maybe_fail()
        return [dict(doc) for doc in list(self.documents.values())[skip:skip + limit]]

    async def find_all(self) -> List[Dict[str, Any]]:
        self._maybe_fail()
        return [dict(doc) for doc in self.documents.values()]

    async def count(self) -> int:
        self._maybe_fail()
        return len(self.documents)

    async def update_by_id(self, book_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self._maybe_fail()
        if book_id not in self.documents:
            return None
        if "isbn" in fields:
            self._check_isbn(fields["isbn"], exclude=book_id)
        self.documents[book_id].update(fields)
        return dict(self.documents[book_id])

    async def delete_by_id(self, book_id: ObjectId) -> bool:
        self._maybe_fail()
        return self.documents.pop(book_id, None) is not None

    async def text_search(self, query: str) -> List[Dict[str, Any]]:
        self._maybe_fail()
        terms = set(re.findall(r"\w+", query.lower())) - STOP_WORDS
        hits = []
        for doc in self.documents.values():
            words = set(re.findall(r"\w+", " ".join(
                str(doc.get(field, "")) for field in ("title", "author", "genre")
            ).lower()))
            score = len(terms & words)
            if score:
                hits.append(dict(doc, score=float(score)))
        hits.sort(key=lambda doc: doc["score"], reverse=True)
        return hits

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "books_count": len(self.documents)}


@pytest.fixture
def store():
    """Empty in-memory record store."""
    return InMemoryBookStore()


@pytest.fixture
def repository(store):
    return BookRepository(store)


@pytest.fixture
def search_pipeline(store):
    return SearchPipeline(store)


@pytest.fixture
def book_payload():
    """Valid create payload."""
    return {
        "title": "Harry Potter",
        "author": "J.K. Rowling",
        "genre": "Fantasy",
        "publishedYear": 1997,
        "isbn": "9780747532699",
        "stockCount": 5,
    }


@pytest.fixture
def library_payloads(book_payload):
    """A small catalog with distinct ISBNs."""
    return [
        book_payload,
        {
            "title": "The Hobbit",
            "author": "J.R.R. Tolkien",
            "genre": "Fantasy",
            "publishedYear": 1937,
            "isbn": "9780261102217",
            "stockCount": 3,
        },
        {
            "title": "Dune",
            "author": "Frank Herbert",
            "genre": "Science Fiction",
            "publishedYear": 1965,
            "isbn": "9780441013593",
            "stockCount": 7,
        },
        {
            "title": "Pride and Prejudice",
            "author": "Jane Austen",
            "genre": "Romance",
            "publishedYear": 1813,
            "isbn": "9780141439518",
            "stockCount": 2,
        },
    ]


@pytest.fixture
def api_config():
    """Settings for tests: no .env, no rate limiting."""
    return APIConfig(_env_file=None, rate_limit_enabled=False, log_format="console")


@pytest.fixture
def client(api_config, store):
    """Test client wired to the in-memory store."""
    app = create_app(api_config, store=store)
    with TestClient(app) as test_client:
        yield test_client
