"""
Pydantic models for book records and their create/update payloads.
JSON uses camelCase names; MongoDB documents use snake_case field names.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


BOOK_FIELDS = ("title", "author", "genre", "published_year", "isbn", "stock_count")


def _reject_bool(v):
    # true/false are not numbers
    if isinstance(v, bool):
        raise ValueError("Input should be a valid number")
    return v


class BookCreate(BaseModel):
    """
    Payload for creating a book. All business fields are required.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "title": "Harry Potter",
                "author": "J.K. Rowling",
                "genre": "Fantasy",
                "publishedYear": 1997,
                "isbn": "9780747532699",
                "stockCount": 5,
            }
        },
    )

    title: str = Field(..., min_length=1, description="Title of the book")
    author: str = Field(..., min_length=1, description="Author of the book")
    genre: str = Field(..., min_length=1, description="Genre of the book")
    published_year: int = Field(..., description="Year the book was published")
    isbn: str = Field(..., min_length=1, description="Unique ISBN number")
    stock_count: int = Field(..., description="Number of copies available")

    @field_validator("published_year", "stock_count", mode="before")
    @classmethod
    def reject_bool(cls, v):
        return _reject_bool(v)

    def to_document(self) -> Dict[str, Any]:
        """Convert to a MongoDB document body."""
        return self.model_dump(by_alias=False)


class BookUpdate(BaseModel):
    """
    Payload for a partial or full update.
    Fields left out are unchanged; an explicit null is rejected.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        json_schema_extra={"example": {"stockCount": 12}},
    )

    title: Optional[str] = Field(None, min_length=1, description="Title of the book")
    author: Optional[str] = Field(None, min_length=1, description="Author of the book")
    genre: Optional[str] = Field(None, min_length=1, description="Genre of the book")
    published_year: Optional[int] = Field(None, description="Year the book was published")
    isbn: Optional[str] = Field(None, min_length=1, description="Unique ISBN number")
    stock_count: Optional[int] = Field(None, description="Number of copies available")

    @field_validator("published_year", "stock_count", mode="before")
    @classmethod
    def reject_bool(cls, v):
        return _reject_bool(v)

    @field_validator(*BOOK_FIELDS)
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field may be omitted but not null")
        return v

    def to_document(self) -> Dict[str, Any]:
        """Only the fields the caller supplied."""
        return self.model_dump(by_alias=False, exclude_unset=True)


class Book(BaseModel):
    """A stored book record."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Auto-generated MongoDB ObjectId")
    title: str = Field(..., description="Title of the book")
    author: str = Field(..., description="Author of the book")
    genre: str = Field(..., description="Genre of the book")
    published_year: int = Field(..., description="Year the book was published")
    isbn: str = Field(..., description="Unique ISBN number")
    stock_count: int = Field(..., description="Number of copies available")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, v: Optional[datetime]) -> Optional[str]:
        return v.isoformat() if v else None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Book":
        """
        Build a Book from a MongoDB document.

        The `_id` is exposed as a string `id`; the text-search `score`
        projection and any other extra keys are dropped.
        """
        data = {key: document.get(key) for key in BOOK_FIELDS}
        data["id"] = str(document["_id"])
        data["created_at"] = document.get("created_at")
        data["updated_at"] = document.get("updated_at")
        return cls(**data)


class BookPage(BaseModel):
    """One page of books plus pagination totals."""
    total: int = Field(..., description="Total number of matching books")
    page: int = Field(..., description="Current page number")
    pages: int = Field(..., description="Total number of pages")
    books: List[Book] = Field(..., description="Books on this page")
