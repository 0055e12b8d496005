from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.internal.book_store import BookStore
from app.internal.stats import (
    MonthlyCount,
    YearCount,
    calculate_statistics,
    filter_by_shelf,
    filter_by_year,
    monthly_breakdown,
    year_counts,
)
from app.routers.api.books import get_book_store

router = APIRouter(tags=["Statistics"])


class YearsResponse(BaseModel):
    years: list[YearCount]


class StatsResponse(BaseModel):
    year: int
    total_books: int
    total_pages: int
    average_per_month: float
    monthly_breakdown: list[MonthlyCount]


@router.get("/years", response_model=YearsResponse)
async def list_years(store: Annotated[BookStore, Depends(get_book_store)]):
    return YearsResponse(years=year_counts(store.list_books()))


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    store: Annotated[BookStore, Depends(get_book_store)],
    year: int,
):
    read_books = filter_by_shelf(filter_by_year(store.list_books(), year), "read")
    stats = calculate_statistics(read_books, year)
    return StatsResponse(
        **stats.model_dump(),
        monthly_breakdown=monthly_breakdown(read_books),
    )
