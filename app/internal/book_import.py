"""
Seeding the book list from a Goodreads export converted to JSON.

Goodreads columns arrive with their CSV header names ("Number of Pages",
"My Review", ...) and loose types: ISBNs and years may be numbers, strings or
null depending on the converter that produced the file.
"""
import pathlib
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

from app.internal.book_store import BookStore
from app.internal.catalog.open_library import open_library
from app.internal.models import BookCreate
from app.util.exceptions import handle_validation_error
from app.util.log import logger


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


LooseStr = Annotated[str, BeforeValidator(_to_str)]
LooseInt = Annotated[int, BeforeValidator(_to_int)]


class GoodreadsBook(BaseModel):
    """One row of a Goodreads export."""

    model_config = ConfigDict(extra="ignore")  # pyright: ignore[reportUnannotatedClassAttribute]

    title: LooseStr = Field(default="", alias="Title")
    author: LooseStr = Field(default="", alias="Author")
    additional_authors: LooseStr = Field(default="", alias="Additional Authors")
    isbn: LooseStr = Field(default="", alias="ISBN")
    isbn13: LooseStr = Field(default="", alias="ISBN13")
    publisher: LooseStr = Field(default="", alias="Publisher")
    pages: LooseInt = Field(default=0, alias="Number of Pages")
    year_published: LooseInt = Field(default=0, alias="Year Published")
    original_publication_year: LooseInt = Field(default=0, alias="Original Publication Year")
    date_read: LooseStr = Field(default="", alias="Date Read")
    date_added: LooseStr = Field(default="", alias="Date Added")
    shelf: LooseStr = Field(default="read", alias="Shelf")
    review: LooseStr = Field(default="", alias="My Review")

    def to_book(self) -> BookCreate:
        return BookCreate(
            title=self.title,
            author=self.author,
            additional_authors=self.additional_authors,
            isbn=self.isbn,
            isbn13=self.isbn13,
            publisher=self.publisher,
            pages=self.pages,
            year_published=self.year_published,
            original_publication_year=self.original_publication_year,
            date_read=self.date_read,
            date_added=self.date_added,
            shelf=self.shelf or "read",
            review=self.review,
            cover_url=cover_url_for_isbn(self.isbn, self.isbn13),
        )


goodreads_books = TypeAdapter(list[GoodreadsBook])


def cover_url_for_isbn(isbn: str, isbn13: str) -> str:
    """Medium Open Library cover for the book, preferring ISBN-13. Empty without an ISBN."""
    for value in (isbn13, isbn):
        if value and value != "0":
            return open_library.cover_image_url("isbn", value, "M")
    return ""


def load_goodreads_json(path: pathlib.Path) -> list[BookCreate]:
    """
    Read a Goodreads JSON export. Rows without a title or an author are skipped.

    Raises ValidationError when the file is not a JSON list of objects.
    """
    rows = goodreads_books.validate_json(path.read_bytes())
    books = [row.to_book() for row in rows if row.title and row.author]
    if len(books) < len(rows):
        logger.info("Skipped rows without title or author", skipped=len(rows) - len(books))
    return books


def seed_from_json(store: BookStore, path: pathlib.Path) -> int:
    """
    Import `path` into an empty library. Returns the number of books imported.

    Does nothing when the library already has books or the file does not
    exist; an unreadable file is logged and skipped.
    """
    existing = store.book_count()
    if existing > 0:
        logger.info("Library already populated, skipping import", book_count=existing)
        return 0
    if not path.is_file():
        logger.info("No seed file found, starting with an empty library", path=str(path))
        return 0

    try:
        books = load_goodreads_json(path)
    except ValidationError as e:
        handle_validation_error(e, "Goodreads export", path=str(path))
        return 0

    imported = store.replace_all(books)
    logger.info("Imported books from seed file", path=str(path), count=imported)
    return imported
