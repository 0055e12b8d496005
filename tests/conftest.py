"""
Pytest configuration and fixtures for the reading tracker test suite.
"""
from typing import AsyncGenerator, Generator

import pytest
from aiohttp import ClientSession
from aioresponses import aioresponses
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.internal.catalog.open_library import open_library
from app.internal.models import Book

OPEN_LIBRARY = "https://openlibrary.org"
DUNE_ISBN = "9780441172719"


# Database fixtures
@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite shared by every thread (the TestClient runs handlers elsewhere)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    with Session(db_engine) as session:
        yield session
        session.rollback()


# Async HTTP mocking fixtures
@pytest.fixture(scope="function")
def aioresponses_mocker() -> Generator[aioresponses, None, None]:
    """Every aiohttp request made while this is active is answered from the registered mocks."""
    with aioresponses() as mocked:
        yield mocked


@pytest.fixture(scope="function")
async def client_session(aioresponses_mocker) -> AsyncGenerator[ClientSession, None]:
    async with ClientSession() as session:
        yield session


@pytest.fixture(autouse=True)
def flush_search_cache():
    open_library.search_cache.flush()
    yield
    open_library.search_cache.flush()


# Sample data fixtures
@pytest.fixture
def dune_search_response():
    """/search.json?title=Dune, trimmed to what the client reads."""
    return {
        "numFound": 2,
        "start": 0,
        "docs": [
            {
                "key": "/works/OL893415W",
                "title": "Dune",
                "author_name": ["Frank Herbert"],
                "first_publish_year": 1965,
                "edition_count": 287,
                "cover_i": 11481354,
                "isbn": [DUNE_ISBN, "0441172717", "9780340960196", "9780593099322"],
                "publisher": ["Ace", "Chilton Books", "Hodder", "Penguin"],
                "language": ["eng", "spa"],
                "subject": [
                    "Science fiction",
                    "Dune (Imaginary place)",
                    "Fiction",
                    "Desert",
                    "Ecology",
                    "Messiahs",
                    "Space warfare",
                ],
            },
            {
                "key": "/works/OL15311498W",
                "title": "Dune Messiah",
                "author_name": ["Frank Herbert"],
                "first_publish_year": 1969,
            },
        ],
    }


@pytest.fixture
def dune_brief_response():
    """/api/volumes/brief/isbn/9780441172719.json"""
    return {
        "records": {
            "/books/OL26242482M": {
                "isbns": [DUNE_ISBN, "0441172717"],
                "olids": ["OL26242482M"],
                "recordURL": "https://openlibrary.org/books/OL26242482M/Dune",
                "data": {
                    "url": "https://openlibrary.org/books/OL26242482M/Dune",
                    "key": "/books/OL26242482M",
                    "title": "Dune",
                    "authors": [
                        {"url": "https://openlibrary.org/authors/OL79034A/Frank_Herbert", "name": "Frank Herbert"}
                    ],
                    "number_of_pages": 604,
                    "identifiers": {
                        "isbn_10": ["0441172717"],
                        "isbn_13": [DUNE_ISBN],
                        "openlibrary": ["OL26242482M"],
                    },
                    "publishers": [{"name": "Ace"}],
                    "publish_date": "1990",
                    "cover": {
                        "small": "https://covers.openlibrary.org/b/id/11481354-S.jpg",
                        "medium": "https://covers.openlibrary.org/b/id/11481354-M.jpg",
                        "large": "https://covers.openlibrary.org/b/id/11481354-L.jpg",
                    },
                    "ebooks": [
                        {"preview_url": "https://archive.org/details/dune00herb", "availability": "borrow"}
                    ],
                },
            }
        },
        "items": [],
    }


@pytest.fixture
def author_search_response():
    return {
        "numFound": 1,
        "docs": [
            {
                "key": "OL79034A",
                "name": "Frank Herbert",
                "alternate_names": ["Frank Patrick Herbert"],
                "birth_date": "8 October 1920",
                "death_date": "11 February 1986",
                "top_work": "Dune",
                "work_count": 152,
                "top_subjects": ["Science fiction", "Fiction"],
            }
        ],
    }


@pytest.fixture
def author_response():
    return {
        "key": "/authors/OL79034A",
        "name": "Frank Herbert",
        "personal_name": "Frank Herbert",
        "birth_date": "8 October 1920",
        "death_date": "11 February 1986",
        "bio": {"type": "/type/text", "value": "American science fiction author."},
        "photos": [6257000, -1],
        "remote_ids": {"wikidata": "Q7934", "viaf": "59083383"},
        "links": [{"title": "Wikipedia", "url": "https://en.wikipedia.org/wiki/Frank_Herbert"}],
    }


@pytest.fixture
def sample_books() -> list[Book]:
    return [
        Book(id=1, title="Dune", author="Frank Herbert", pages=604, date_read="2024/01/15", shelf="read"),
        Book(id=2, title="Piranesi", author="Susanna Clarke", pages=272, date_read="2024/03/02", shelf="read"),
        Book(id=3, title="Hyperion", author="Dan Simmons", pages=482, date_read="2023/11/20", shelf="read"),
        Book(id=4, title="The Hobbit", author="J. R. R. Tolkien", pages=0, date_read="2024/03", shelf="read"),
        Book(id=5, title="Middlemarch", author="George Eliot", pages=880, date_read="2024/05/01", shelf="currently-reading"),
        Book(id=6, title="Undated", author="Nobody", pages=100, date_read="", shelf="read"),
        Book(id=7, title="Broken Date", author="Nobody", pages=100, date_read="sometime", shelf="read"),
    ]
