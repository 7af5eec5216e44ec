"""
Query construction for book filtering.

Translates the optional filter fields of a request into a MongoDB filter
document for the books collection.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from catalog_api.errors import ValidationError
from catalog_api.models import MAX_PUBLICATION_YEAR, MIN_PUBLICATION_YEAR


@dataclass(frozen=True)
class BookFilter:
    """Normalised book filter; None fields do not constrain the result."""
    author: Optional[str] = None
    publication_year: Optional[int] = None

    @classmethod
    def from_input(
        cls,
        author: Optional[str] = None,
        publication_year: Optional[Union[int, str]] = None,
    ) -> "BookFilter":
        """
        Build a filter from raw request values.

        Blank strings are treated as absent. The publication year may arrive
        as a number or a numeric string and is compared as an integer.

        Raises:
            ValidationError: If the publication year is not an integer that
                fits the store, or the author contains a NUL character
        """
        if isinstance(author, str):
            author = author.strip() or None
        if author and "\x00" in author:
            raise ValidationError("Author must not contain NUL characters", context={"author": author})

        year = None
        if publication_year is not None:
            year = _coerce_year(publication_year)

        return cls(author=author, publication_year=year)


def _coerce_year(value: Union[int, str]) -> Optional[int]:
    if isinstance(value, bool):
        raise ValidationError("Publication year must be a valid number", context={"publicationYear": value})
    if isinstance(value, int):
        year = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            year = int(text)
        except ValueError:
            raise ValidationError(
                "Publication year must be a valid number", context={"publicationYear": text}
            ) from None
    if not MIN_PUBLICATION_YEAR <= year <= MAX_PUBLICATION_YEAR:
        raise ValidationError("Publication year is out of range", context={"publicationYear": year})
    return year


def build_book_query(book_filter: BookFilter) -> Dict[str, Any]:
    """
    Build a MongoDB filter document for books.

    - author: case-insensitive substring match; the value is matched
      literally, regex metacharacters in it have no special meaning
    - publication_year: exact integer match
    - both: both conditions must hold
    - neither: matches every book
    """
    query: Dict[str, Any] = {}

    if book_filter.author:
        query["author"] = {"$regex": re.escape(book_filter.author), "$options": "i"}

    if book_filter.publication_year is not None:
        query["publicationYear"] = book_filter.publication_year

    return query
