"""
Book endpoints.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from api.config import APIConfig
from api.models import DeleteResponse, ErrorResponse
from catalog.database import BookStore
from catalog.models import Book, BookCreate, BookPage, BookUpdate
from catalog.repository import BookRepository
from catalog.search import SearchPipeline

router = APIRouter(prefix="/books", tags=["Books"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or identifier"},
    404: {"model": ErrorResponse, "description": "Book not found"},
    409: {"model": ErrorResponse, "description": "Duplicate ISBN"},
}


class Pagination:
    """Page window requested by the caller."""

    def __init__(self, page: int, limit: int):
        self.page = page
        self.limit = limit


def _positive_int(value: Optional[str], default: int) -> int:
    try:
        parsed = int(value) if value is not None else default
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


def get_config(request: Request) -> APIConfig:
    return request.app.state.config


def get_store(request: Request) -> BookStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return store


def get_pagination(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    config: APIConfig = Depends(get_config),
) -> Pagination:
    """
    Parse `page` and `limit` leniently.
    Unparsable or non-positive values fall back to the defaults and
    `limit` is capped at the configured maximum.
    """
    return Pagination(
        page=_positive_int(page, 1),
        limit=min(_positive_int(limit, config.default_page_limit), config.max_page_limit),
    )


def get_repository(store: BookStore = Depends(get_store)) -> BookRepository:
    return BookRepository(store)


def get_search_pipeline(
    store: BookStore = Depends(get_store),
    config: APIConfig = Depends(get_config),
) -> SearchPipeline:
    return SearchPipeline(store, threshold=config.fuzzy_threshold)


@router.post(
    "",
    response_model=Book,
    status_code=status.HTTP_201_CREATED,
    responses={400: ERROR_RESPONSES[400], 409: ERROR_RESPONSES[409]},
    summary="Create a new book",
)
async def create_book(
    payload: Any = Body(..., examples=[BookCreate.model_config["json_schema_extra"]["example"]]),
    repository: BookRepository = Depends(get_repository),
):
    """
    Create a book. All fields are required and the ISBN must be unique.
    """
    return await repository.create(payload)


@router.get("", response_model=BookPage, summary="List books")
async def list_books(
    pagination: Pagination = Depends(get_pagination),
    repository: BookRepository = Depends(get_repository),
):
    """
    Get a paginated list of all books.

    - **page**: Page number (starts from 1, default 1)
    - **limit**: Books per page (default 10)
    """
    return await repository.list(page=pagination.page, limit=pagination.limit)


@router.get(
    "/search",
    response_model=BookPage,
    responses={400: ERROR_RESPONSES[400]},
    summary="Fuzzy search books",
)
async def search_books(
    q: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    search: SearchPipeline = Depends(get_search_pipeline),
):
    """
    Search books by title, author, or genre, tolerating typos.

    - **q**: Search query (required)
    - **page**: Page number (starts from 1, default 1)
    - **limit**: Books per page (default 10)
    """
    return await search.search(q, page=pagination.page, limit=pagination.limit)


@router.get(
    "/{book_id}",
    response_model=Book,
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    summary="Get a book by ID",
)
async def get_book(book_id: str, repository: BookRepository = Depends(get_repository)):
    """
    Get a single book by its MongoDB ObjectId.
    """
    return await repository.get_by_id(book_id)


@router.put(
    "/{book_id}",
    response_model=Book,
    responses=ERROR_RESPONSES,
    summary="Update a book",
)
async def update_book(
    book_id: str,
    payload: Any = Body(..., examples=[BookUpdate.model_config["json_schema_extra"]["example"]]),
    repository: BookRepository = Depends(get_repository),
):
    """
    Update some or all fields of a book. Omitted fields are left unchanged.
    """
    return await repository.update(book_id, payload)


@router.delete(
    "/{book_id}",
    response_model=DeleteResponse,
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    summary="Delete a book",
)
async def delete_book(book_id: str, repository: BookRepository = Depends(get_repository)):
    """
    Permanently delete a book.
    """
    return await repository.delete(book_id)
