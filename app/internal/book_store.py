from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, delete, select

from app.internal.models import Book, BookCreate, Goal
from app.util.exceptions import handle_database_error
from app.util.log import logger


class BookStore:
    """
    The user's book list.

    Request handlers get one per request through `get_book_store`; nothing
    outside this class touches the Book table directly.
    """

    session: Session

    def __init__(self, session: Session):
        self.session = session

    def list_books(self) -> Sequence[Book]:
        return self.session.exec(
            select(Book).order_by(col(Book.date_read).desc(), col(Book.id))
        ).all()

    def get_book(self, book_id: int) -> Book | None:
        return self.session.get(Book, book_id)

    def add_book(self, data: BookCreate) -> Book:
        book = Book.model_validate(data)
        try:
            self.session.add(book)
            self.session.commit()
        except SQLAlchemyError as e:
            handle_database_error(e, "add book", rollback_session=self.session, title=data.title)
            raise
        self.session.refresh(book)
        logger.info("Added book", book_id=book.id, title=book.title)
        return book

    def update_book(self, book_id: int, data: BookCreate) -> Book | None:
        book = self.session.get(Book, book_id)
        if book is None:
            return None
        book.sqlmodel_update(data.model_dump())
        book.updated_at = datetime.now(timezone.utc)
        try:
            self.session.add(book)
            self.session.commit()
        except SQLAlchemyError as e:
            handle_database_error(e, "update book", rollback_session=self.session, book_id=book_id)
            raise
        self.session.refresh(book)
        return book

    def delete_book(self, book_id: int) -> bool:
        book = self.session.get(Book, book_id)
        if book is None:
            return False
        try:
            self.session.delete(book)
            self.session.commit()
        except SQLAlchemyError as e:
            handle_database_error(e, "delete book", rollback_session=self.session, book_id=book_id)
            raise
        logger.info("Deleted book", book_id=book_id)
        return True

    def replace_all(self, books: Sequence[BookCreate]) -> int:
        """Swap the whole list for `books` in one transaction. Returns the new count."""
        try:
            self.session.execute(delete(Book))
            self.session.add_all(Book.model_validate(b) for b in books)
            self.session.commit()
        except SQLAlchemyError as e:
            handle_database_error(e, "replace books", rollback_session=self.session, count=len(books))
            raise
        logger.info("Replaced book list", count=len(books))
        return len(books)

    def book_count(self) -> int:
        return self.session.exec(select(func.count()).select_from(Book)).one()

    def get_goal(self, year: int) -> Goal | None:
        return self.session.get(Goal, year)

    def set_goal(self, year: int, target: int) -> Goal:
        """Create or replace the goal for `year`."""
        goal = self.session.get(Goal, year)
        if goal is None:
            goal = Goal(year=year, target=target)
        else:
            goal.target = target
            goal.updated_at = datetime.now(timezone.utc)
        try:
            self.session.add(goal)
            self.session.commit()
        except SQLAlchemyError as e:
            handle_database_error(e, "set goal", rollback_session=self.session, year=year)
            raise
        self.session.refresh(goal)
        logger.info("Set reading goal", year=year, target=target)
        return goal
