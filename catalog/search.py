"""
Two-stage book search.

Stage A asks the store's text index for relevance-ranked candidates and
falls back to the whole collection when the index finds nothing. Stage B
scores every candidate's title, author and genre with a fuzzy matcher,
keeps the ones within the threshold and orders them best match first.
The filtered list is then paginated.
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from pymongo.errors import PyMongoError

from catalog.database import BookStore
from catalog.exceptions import InternalError, ValidationError
from catalog.fuzzy import FuzzyMatcher, RapidFuzzMatcher
from catalog.models import Book, BookPage
from catalog.repository import page_count

logger = structlog.get_logger(__name__)

SEARCH_FIELDS = ("title", "author", "genre")
DEFAULT_THRESHOLD = 0.4


class SearchPipeline:
    """Fuzzy search over books."""

    def __init__(
        self,
        store: BookStore,
        matcher: Optional[FuzzyMatcher] = None,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        self.store = store
        self.matcher = matcher or RapidFuzzMatcher()
        self.threshold = threshold

    async def search(self, query: Optional[str], page: int = 1, limit: int = 10) -> BookPage:
        """
        Search books by title, author or genre.

        Args:
            query: Free-text query, typos allowed
            page: Page number (starts from 1)
            limit: Books per page

        Raises:
            ValidationError: if the query is missing or blank
            InternalError: if the store cannot be read
        """
        if query is None or not query.strip():
            raise ValidationError('Query string "q" is required', details=[{
                "field": "q",
                "message": "query required",
                "type": "missing",
            }])
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be >= 1")

        try:
            candidates = await self._candidates(query)
        except PyMongoError as e:
            logger.error("Search failed", query=query, error=str(e))
            raise InternalError("Failed to search books", detail=str(e)) from e

        matches = self.rank(candidates, query)

        start = (page - 1) * limit
        window = matches[start:start + limit]
        total = len(matches)

        logger.debug("Search completed",
                     query=query,
                     candidates=len(candidates),
                     matches=total,
                     page=page)

        return BookPage(
            total=total,
            page=page,
            pages=page_count(total, limit),
            books=[Book.from_document(doc) for doc in window],
        )

    async def _candidates(self, query: str) -> List[Dict[str, Any]]:
        """Stage A: indexed hits, or every book when the index finds none."""
        hits = await self.store.text_search(query)
        if hits:
            return hits
        # Full scan catches typos and partial words the text index cannot resolve
        return await self.store.find_all()

    def rank(self, candidates: List[Dict[str, Any]], query: str) -> List[Dict[str, Any]]:
        """
        Stage B: drop candidates above the threshold and sort by score.

        The sort is stable, so equal scores keep the candidate order.
        """
        scored: List[Tuple[float, Dict[str, Any]]] = []
        for document in candidates:
            best = self.score_document(document, query)
            if best <= self.threshold:
                scored.append((best, document))

        scored.sort(key=lambda item: item[0])
        return [document for _, document in scored]

    def score_document(self, document: Dict[str, Any], query: str) -> float:
        """Best (lowest) score across the searchable fields."""
        scores = [
            self.matcher.score(str(document.get(field) or ""), query)
            for field in SEARCH_FIELDS
        ]
        return min(scores)
