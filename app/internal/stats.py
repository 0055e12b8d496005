import re
from collections import Counter
from typing import Iterable

from pydantic import BaseModel

from app.internal.models import Book

MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


class ReadDate(BaseModel):
    year: int
    month: int = 0
    """0 when the date only has a year"""
    day: int = 0


class MonthlyCount(BaseModel):
    month: int
    month_name: str
    count: int = 0


class YearStatistics(BaseModel):
    year: int
    total_books: int
    total_pages: int
    average_per_month: float


class YearCount(BaseModel):
    year: int
    count: int


def parse_read_date(value: str) -> ReadDate:
    """
    Parse a reading date such as "2024/03/15", "2024-03" or "2024".

    Raises ValueError for anything else, including years before 1900.
    """
    value = value.strip()
    if not value:
        raise ValueError("empty date string")

    parts = re.split(r"[/-]", value)
    if len(parts) > 3:
        raise ValueError(f"invalid date: {value}")

    try:
        numbers = [int(part) if part else 0 for part in parts]
    except ValueError:
        raise ValueError(f"invalid date: {value}")

    year = numbers[0]
    month = numbers[1] if len(numbers) > 1 else 0
    day = numbers[2] if len(numbers) > 2 else 0

    if year < 1900:
        raise ValueError("year must be >= 1900")
    if len(parts) > 1 and parts[1] and not 1 <= month <= 12:
        raise ValueError("month must be 1-12")
    if len(parts) > 2 and parts[2] and not 1 <= day <= 31:
        raise ValueError("day must be 1-31")

    return ReadDate(year=year, month=month, day=day)


def _read_date_or_none(book: Book) -> ReadDate | None:
    if not book.date_read:
        return None
    try:
        return parse_read_date(book.date_read)
    except ValueError:
        return None


def filter_by_year(books: Iterable[Book], year: int) -> list[Book]:
    """Books whose date_read falls in `year`. Unparseable dates are skipped."""
    filtered = []
    for book in books:
        date = _read_date_or_none(book)
        if date is not None and date.year == year:
            filtered.append(book)
    return filtered


def filter_by_shelf(books: Iterable[Book], shelf: str) -> list[Book]:
    return [book for book in books if book.shelf == shelf]


def filter_by_month(books: Iterable[Book], month: int) -> list[Book]:
    filtered = []
    for book in books:
        date = _read_date_or_none(book)
        if date is not None and date.month == month:
            filtered.append(book)
    return filtered


def calculate_statistics(books: list[Book], year: int) -> YearStatistics:
    total_books = len(books)
    return YearStatistics(
        year=year,
        total_books=total_books,
        total_pages=sum(book.pages for book in books if book.pages > 0),
        average_per_month=total_books / 12 if total_books else 0.0,
    )


def monthly_breakdown(books: Iterable[Book]) -> list[MonthlyCount]:
    """Books read per month. Always returns all twelve months."""
    breakdown = [
        MonthlyCount(month=i + 1, month_name=name) for i, name in enumerate(MONTH_NAMES)
    ]
    for book in books:
        date = _read_date_or_none(book)
        if date is None or date.month == 0:
            continue
        breakdown[date.month - 1].count += 1
    return breakdown


def year_counts(books: Iterable[Book]) -> list[YearCount]:
    """Number of books on the "read" shelf per year, newest year first."""
    counts: Counter[int] = Counter()
    for book in books:
        if book.shelf != "read":
            continue
        date = _read_date_or_none(book)
        if date is not None:
            counts[date.year] += 1
    return [YearCount(year=year, count=count) for year, count in sorted(counts.items(), reverse=True)]
