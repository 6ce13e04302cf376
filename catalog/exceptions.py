"""
Error kinds raised by the book catalog.
Each error carries the HTTP status the API layer reports it with.
"""

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base class for catalog errors."""

    status_code: int = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(CatalogError):
    """Malformed or missing input; lists every violated field."""

    status_code = 400

    def __init__(self, message: str = "Validation Error", details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.details = details or []


class InvalidIdError(CatalogError):
    """Identifier is not a valid ObjectId string."""

    status_code = 400

    def __init__(self, book_id: str):
        super().__init__("Invalid book ID format", detail=f"'{book_id}' is not a valid identifier")
        self.book_id = book_id


class NotFoundError(CatalogError):
    """No book with the given identifier."""

    status_code = 404

    def __init__(self, book_id: str):
        super().__init__("Book not found", detail=f"Book with ID '{book_id}' not found")
        self.book_id = book_id


class ConflictError(CatalogError):
    """Write would duplicate a unique field."""

    status_code = 409


class InternalError(CatalogError):
    """Unexpected store or infrastructure failure."""

    status_code = 500
