from datetime import datetime, timezone

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookBase(SQLModel):
    title: str
    author: str = ""
    additional_authors: str = ""
    isbn: str = ""
    isbn13: str = ""
    publisher: str = ""
    pages: int = 0
    year_published: int = 0
    original_publication_year: int = 0
    date_read: str = Field(default="", index=True)
    """Goodreads style date, YYYY/MM/DD (month and day optional)"""
    date_added: str = ""
    shelf: str = Field(default="read", index=True)
    review: str = ""
    cover_url: str = ""


class Book(BookBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class BookCreate(BookBase):
    pass


class BookRead(BookBase):
    id: int
    created_at: datetime
    updated_at: datetime


class BookCount(BaseModel):
    success: bool = True
    count: int


class Goal(SQLModel, table=True):
    """Target number of books for one calendar year."""

    year: int = Field(primary_key=True)
    target: int = Field(ge=0)
    updated_at: datetime = Field(default_factory=_utcnow)


class GoalUpdate(SQLModel):
    year: int = Field(ge=2000, le=2100)
    target: int = Field(ge=0)


class GoalRead(SQLModel):
    year: int
    target: int | None = None
    """None when no goal has been set for the year"""
