"""
Approximate string matching for book search.
"""

from typing import Protocol

from rapidfuzz import fuzz, utils
from rapidfuzz.distance import Levenshtein


class FuzzyMatcher(Protocol):
    """Scores how well a query matches a piece of text."""

    def score(self, candidate_text: str, query: str) -> float:
        """Return 0.0 for an exact match up to 1.0 for no match."""
        ...


class RapidFuzzMatcher:
    """
    Matcher backed by rapidfuzz.

    A query no longer than the candidate is aligned against the
    best-matching substring (partial ratio), so where the match sits inside
    the field does not matter. A longer query is scored by its edit
    distance to the whole candidate, normalized by the query length, so a
    short field contained in a long query is not a match.
    Text is lower-cased and stripped of punctuation before comparison.
    """

    def score(self, candidate_text: str, query: str) -> float:
        text = utils.default_process(candidate_text or "")
        needle = utils.default_process(query or "")
        if not text or not needle:
            return 1.0
        if len(needle) <= len(text):
            return 1.0 - fuzz.partial_ratio(needle, text) / 100.0
        return min(1.0, Levenshtein.distance(needle, text) / len(needle))
