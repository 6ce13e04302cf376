"""
Unit tests for the rapidfuzz-backed matcher.
"""

import pytest

from catalog.fuzzy import RapidFuzzMatcher
from catalog.search import DEFAULT_THRESHOLD


@pytest.fixture
def matcher():
    return RapidFuzzMatcher()


def test_exact_match_scores_zero(matcher):
    assert matcher.score("Harry Potter", "Harry Potter") == 0.0


def test_case_and_punctuation_ignored(matcher):
    assert matcher.score("J.K. Rowling", "j k rowling") < 0.2


def test_misspelling_within_threshold(matcher):
    assert matcher.score("Harry Potter", "hary poter") <= DEFAULT_THRESHOLD


def test_match_position_ignored(matcher):
    assert matcher.score("The Complete Harry Potter Collection", "potter") == 0.0


def test_short_field_inside_longer_query_does_not_match(matcher):
    assert matcher.score("Art", "the martian") > DEFAULT_THRESHOLD
    assert matcher.score("Art", "martian") > DEFAULT_THRESHOLD
    assert matcher.score("Li", "ralph ellison") > DEFAULT_THRESHOLD
    assert matcher.score("Dune", "dunes of arrakis novel") > DEFAULT_THRESHOLD


def test_slightly_longer_query_still_matches(matcher):
    assert matcher.score("Dune", "dunee") == pytest.approx(0.2)


def test_unrelated_text_outside_threshold(matcher):
    assert matcher.score("Pride and Prejudice", "zzzzzzzz") > DEFAULT_THRESHOLD


def test_empty_inputs_never_match(matcher):
    assert matcher.score("", "potter") == 1.0
    assert matcher.score("Harry Potter", "") == 1.0
