"""
Tests for the persistent book list.
"""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from app.internal.book_store import BookStore
from app.internal.models import Book, BookCreate, Goal


@pytest.fixture
def store(db_session):
    return BookStore(db_session)


@pytest.fixture
def stored_books(db_session, sample_books):
    db_session.add_all(sample_books)
    db_session.commit()
    return sample_books


class TestBookStore:

    def test_add_and_get(self, store):
        book = store.add_book(BookCreate(title="Dune", author="Frank Herbert", pages=604))

        assert book.id is not None
        fetched = store.get_book(book.id)
        assert fetched is not None
        assert fetched.title == "Dune"
        assert fetched.shelf == "read"
        assert fetched.created_at is not None

    def test_get_missing(self, store):
        assert store.get_book(999) is None

    def test_list_newest_read_first(self, store, stored_books):
        titles = [b.title for b in store.list_books()]

        # plain string ordering: junk dates sort above real ones, undated last
        assert titles == [
            "Broken Date",
            "Middlemarch",
            "Piranesi",
            "The Hobbit",
            "Dune",
            "Hyperion",
            "Undated",
        ]

    def test_update(self, store, stored_books):
        book = store.update_book(1, BookCreate(title="Dune", author="Frank Herbert", shelf="to-read"))

        assert book is not None
        assert book.shelf == "to-read"
        assert book.pages == 0

    def test_update_missing(self, store):
        assert store.update_book(999, BookCreate(title="Nothing")) is None

    def test_delete(self, store, stored_books, db_session):
        assert store.delete_book(2) is True
        assert db_session.get(Book, 2) is None
        assert store.delete_book(2) is False

    def test_replace_all(self, store, stored_books, db_session):
        count = store.replace_all([BookCreate(title="Solaris"), BookCreate(title="Roadside Picnic")])

        assert count == 2
        titles = sorted(b.title for b in db_session.exec(select(Book)).all())
        assert titles == ["Roadside Picnic", "Solaris"]

    def test_replace_all_with_empty_list(self, store, stored_books):
        assert store.replace_all([]) == 0
        assert store.list_books() == []

    def test_database_error_rolls_back(self, store, db_session):
        error = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with (
            patch.object(db_session, "commit", side_effect=error),
            patch.object(db_session, "rollback") as rollback,
        ):
            with pytest.raises(OperationalError):
                store.add_book(BookCreate(title="Dune"))

        rollback.assert_called_once()

    def test_book_count(self, store, stored_books):
        assert store.book_count() == 7

    def test_book_count_empty(self, store):
        assert store.book_count() == 0


class TestGoals:

    def test_missing_goal(self, store):
        assert store.get_goal(2099) is None

    def test_set_and_get_goal(self, store):
        store.set_goal(2025, 50)

        goal = store.get_goal(2025)
        assert goal is not None
        assert goal.target == 50

    def test_set_goal_replaces_existing(self, store, db_session):
        store.set_goal(2025, 50)
        goal = store.set_goal(2025, 24)

        assert goal.target == 24
        assert len(db_session.exec(select(Goal)).all()) == 1

    def test_goals_are_per_year(self, store):
        store.set_goal(2024, 30)
        store.set_goal(2025, 40)

        assert store.get_goal(2024).target == 30
        assert store.get_goal(2025).target == 40
