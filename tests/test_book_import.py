"""
Tests for seeding the library from a Goodreads JSON export.
"""
import json

import pytest
from sqlmodel import Session, select

from app import main
from app.internal.book_import import (
    GoodreadsBook,
    cover_url_for_isbn,
    load_goodreads_json,
    seed_from_json,
)
from app.internal.book_store import BookStore
from app.internal.env_settings import ApplicationSettings, Settings
from app.internal.models import Book, BookCreate


@pytest.fixture
def goodreads_rows():
    """Rows as produced by a CSV-to-JSON converter: numbers where Goodreads had digits."""
    return [
        {
            "Title": "Dune",
            "Author": "Frank Herbert",
            "Additional Authors": None,
            "ISBN": 441172717,
            "ISBN13": 9780441172719,
            "Publisher": "Ace",
            "Number of Pages": 604.0,
            "Year Published": 1990,
            "Original Publication Year": "1965",
            "Date Read": "2024/01/15",
            "Date Added": "2023/12/30",
            "Bookshelves": "",
            "Shelf": "read",
            "My Review": None,
        },
        {
            "Title": 1984,
            "Author": "George Orwell",
            "ISBN": "",
            "ISBN13": "",
            "Number of Pages": "328",
            "Date Read": "",
            "Shelf": "to-read",
        },
        {"Title": "Anonymous pamphlet", "Author": ""},
        {"Title": "", "Author": "Nobody"},
    ]


@pytest.fixture
def seed_file(tmp_path, goodreads_rows):
    path = tmp_path / "books.json"
    path.write_text(json.dumps(goodreads_rows))
    return path


class TestGoodreadsBook:

    def test_loose_types_are_normalized(self, goodreads_rows):
        book = GoodreadsBook.model_validate(goodreads_rows[0]).to_book()

        assert book.title == "Dune"
        assert book.isbn == "441172717"
        assert book.isbn13 == "9780441172719"
        assert book.pages == 604
        assert book.original_publication_year == 1965
        assert book.additional_authors == ""
        assert book.review == ""

    def test_numeric_title(self, goodreads_rows):
        book = GoodreadsBook.model_validate(goodreads_rows[1]).to_book()

        assert book.title == "1984"
        assert book.pages == 328
        assert book.shelf == "to-read"

    def test_unparseable_numbers_become_zero(self):
        book = GoodreadsBook.model_validate(
            {"Title": "X", "Author": "Y", "Number of Pages": "n/a", "Year Published": None}
        )

        assert book.pages == 0
        assert book.year_published == 0


class TestCoverUrl:

    def test_prefers_isbn13(self):
        assert (
            cover_url_for_isbn("0441172717", "9780441172719")
            == "https://covers.openlibrary.org/b/isbn/9780441172719-M.jpg"
        )

    def test_falls_back_to_isbn10(self):
        assert cover_url_for_isbn("0441172717", "0").endswith("/b/isbn/0441172717-M.jpg")

    def test_no_isbn(self):
        assert cover_url_for_isbn("", "") == ""


class TestLoadGoodreadsJson:

    def test_skips_rows_without_title_or_author(self, seed_file):
        books = load_goodreads_json(seed_file)

        assert [b.title for b in books] == ["Dune", "1984"]
        assert books[0].cover_url == "https://covers.openlibrary.org/b/isbn/9780441172719-M.jpg"
        assert books[1].cover_url == ""


class TestSeedFromJson:

    def test_imports_into_empty_library(self, db_session, seed_file):
        imported = seed_from_json(BookStore(db_session), seed_file)

        assert imported == 2
        titles = sorted(b.title for b in db_session.exec(select(Book)).all())
        assert titles == ["1984", "Dune"]

    def test_populated_library_is_left_alone(self, db_session, seed_file):
        store = BookStore(db_session)
        store.add_book(BookCreate(title="Solaris", author="Stanisław Lem"))

        assert seed_from_json(store, seed_file) == 0
        assert store.book_count() == 1

    def test_missing_file(self, db_session, tmp_path):
        store = BookStore(db_session)

        assert seed_from_json(store, tmp_path / "missing.json") == 0
        assert store.book_count() == 0

    def test_invalid_file_is_skipped(self, db_session, tmp_path):
        path = tmp_path / "books.json"
        path.write_text('{"not": "a list"')
        store = BookStore(db_session)

        assert seed_from_json(store, path) == 0
        assert store.book_count() == 0


class TestStartupSeed:

    def test_seed_library_uses_configured_file(self, monkeypatch, db_engine, seed_file):
        monkeypatch.setattr(main, "engine", db_engine)
        monkeypatch.setattr(
            main, "settings", Settings(app=ApplicationSettings(seed_file=str(seed_file)))
        )

        main.seed_library()

        with Session(db_engine) as session:
            assert BookStore(session).book_count() == 2

    def test_empty_seed_file_setting_disables_import(self, monkeypatch, db_engine):
        monkeypatch.setattr(main, "engine", db_engine)
        monkeypatch.setattr(main, "settings", Settings(app=ApplicationSettings(seed_file="")))

        main.seed_library()

        with Session(db_engine) as session:
            assert BookStore(session).book_count() == 0
