"""
Tests for book filter query construction.
"""

import re

import pytest

from catalog_api.errors import ValidationError
from catalog_api.queries import BookFilter, build_book_query


def _author_matches(query, author):
    """Evaluate an author condition the way MongoDB's $regex with the i option does."""
    condition = query["author"]
    flags = re.IGNORECASE if "i" in condition["$options"] else 0
    return re.search(condition["$regex"], author, flags) is not None


class TestBookFilter:
    """Test cases for BookFilter.from_input."""

    def test_empty_input(self):
        assert BookFilter.from_input() == BookFilter()

    @pytest.mark.parametrize("year", [1984, "1984", " 1984 "])
    def test_year_coerced_to_int(self, year):
        assert BookFilter.from_input(publication_year=year).publication_year == 1984

    def test_negative_year_allowed(self):
        assert BookFilter.from_input(publication_year="-300").publication_year == -300

    @pytest.mark.parametrize("year", ["", "   "])
    def test_blank_year_is_absent(self, year):
        assert BookFilter.from_input(publication_year=year).publication_year is None

    @pytest.mark.parametrize("year", ["nineteen", "19.84", True])
    def test_non_integer_year_rejected(self, year):
        with pytest.raises(ValidationError) as exc_info:
            BookFilter.from_input(publication_year=year)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("author", ["", "   "])
    def test_blank_author_is_absent(self, author):
        assert BookFilter.from_input(author=author).author is None

    @pytest.mark.parametrize("year", [2 ** 63, -(2 ** 63) - 1, str(2 ** 63)])
    def test_year_outside_int64_rejected(self, year):
        with pytest.raises(ValidationError):
            BookFilter.from_input(publication_year=year)

    def test_year_at_int64_bounds_allowed(self):
        assert BookFilter.from_input(publication_year=2 ** 63 - 1).publication_year == 2 ** 63 - 1
        assert BookFilter.from_input(publication_year=-(2 ** 63)).publication_year == -(2 ** 63)

    def test_author_with_nul_rejected(self):
        with pytest.raises(ValidationError):
            BookFilter.from_input(author="Her\x00bert")


class TestBuildBookQuery:
    """Test cases for build_book_query."""

    def test_no_filters_matches_everything(self):
        assert build_book_query(BookFilter()) == {}

    def test_author_is_case_insensitive_regex(self):
        query = build_book_query(BookFilter(author="Orwell"))
        assert query == {"author": {"$regex": "Orwell", "$options": "i"}}

    def test_author_substring_match(self):
        query = build_book_query(BookFilter(author="Orwell"))
        assert _author_matches(query, "George Orwell")
        assert not _author_matches(query, "Aldous Huxley")

    def test_author_match_is_unanchored_and_case_insensitive(self):
        query = build_book_query(BookFilter(author="tolk"))
        assert _author_matches(query, "J.R.R. Tolkien")
        assert _author_matches(query, "TOLKIEN")

    def test_author_metacharacters_are_literal(self):
        query = build_book_query(BookFilter(author="a.c"))
        assert query["author"]["$regex"] == re.escape("a.c")
        assert _author_matches(query, "xa.cx")
        assert not _author_matches(query, "abc")

    def test_year_is_exact_integer_match(self):
        query = build_book_query(BookFilter.from_input(publication_year="1984"))
        assert query == {"publicationYear": 1984}

    def test_year_zero_is_kept(self):
        assert build_book_query(BookFilter(publication_year=0)) == {"publicationYear": 0}

    def test_both_filters_are_combined(self):
        query = build_book_query(BookFilter.from_input(author="herb", publication_year=1965))
        assert query == {
            "author": {"$regex": "herb", "$options": "i"},
            "publicationYear": 1965,
        }
