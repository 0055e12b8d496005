"""
Best-effort enrichment of locally entered books with Open Library metadata.

Enrichment is a convenience: Open Library being slow, down or clueless must
never stop a user from adding or editing a book, so catalog failures are
logged and absorbed here. The only error a caller can see is InvalidInput.
"""
from typing import Any, Optional

from aiohttp import ClientSession
from pydantic import BaseModel, ConfigDict

from app.internal.catalog.open_library import (
    CatalogUnavailable,
    OpenLibraryProvider,
    open_library,
)
from app.util.exceptions import handle_external_api_error
from app.util.log import logger

MIN_ISBN_LENGTH = 10


class InvalidInput(ValueError):
    pass


class LocalBook(BaseModel):
    """A book as entered by the user. Any extra field is carried through untouched."""

    model_config = ConfigDict(extra="allow")  # pyright: ignore[reportUnannotatedClassAttribute]

    title: str = ""
    author: Optional[str] = None
    isbn: Optional[str] = None
    publisher: Optional[str] = None


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


async def enrich_book(
    client_session: ClientSession,
    book: LocalBook,
    provider: OpenLibraryProvider = open_library,
) -> LocalBook:
    """
    Fill the gaps of `book` with catalog data.

    Fields the caller already set are never replaced; the returned record is at
    worst equal to the input.
    """
    if _is_empty(book.title):
        raise InvalidInput("A title is required to enrich a book")

    original = book.model_dump()
    enriched = book.model_dump()

    try:
        matches = await provider.search_by_title(client_session, book.title)
    except CatalogUnavailable as e:
        handle_external_api_error(e, "Open Library", "enrichment search", title=book.title)
        matches = []

    if matches:
        match = matches[0]
        catalog_fields = {
            "work_key": match.work_key,
            "cover_url": match.cover_url,
            "first_publish_year": match.first_publish_year,
            "edition_count": match.edition_count,
            "subjects": list(match.subjects),
        }
        enriched.update({k: v for k, v in catalog_fields.items() if not _is_empty(v)})

        if _is_empty(original.get("isbn")) and match.isbns:
            enriched["isbn"] = match.isbns[0]
        if _is_empty(original.get("publisher")) and match.publishers:
            enriched["publisher"] = match.publishers[0]
    else:
        logger.info("No catalog match for book", title=book.title)

    isbn = enriched.get("isbn")
    if isinstance(isbn, str) and len(isbn.strip()) >= MIN_ISBN_LENGTH:
        try:
            detail = await provider.get_book_by_identifier(client_session, "isbn", isbn)
        except CatalogUnavailable as e:
            handle_external_api_error(e, "Open Library", "enrichment lookup", isbn=isbn)
            detail = None

        if detail is not None:
            for key, value in detail.model_dump(exclude_none=True).items():
                if _is_empty(original.get(key)):
                    enriched[key] = value

            # the user's own title and author always win over the edition record
            enriched["title"] = book.title
            if not _is_empty(book.author):
                enriched["authors"] = [book.author]
            elif not _is_empty(original.get("authors")):
                enriched["authors"] = original["authors"]

    if enriched == original:
        return book

    logger.info(
        "Enriched book",
        title=book.title,
        fields=sorted(k for k in enriched if enriched[k] != original.get(k)),
    )
    return LocalBook.model_validate(enriched)
