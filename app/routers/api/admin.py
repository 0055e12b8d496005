from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, TypeAdapter

from app.internal.book_store import BookStore
from app.internal.models import BookRead
from app.routers.api.books import get_book_store

router = APIRouter(tags=["Admin"])

book_list = TypeAdapter(list[BookRead])


class HealthResponse(BaseModel):
    status: str = "ok"


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse()


@router.get("/export", response_model=list[BookRead])
async def export_books(store: Annotated[BookStore, Depends(get_book_store)]):
    """Every book as a downloadable books.json."""
    books = book_list.validate_python(store.list_books(), from_attributes=True)
    return JSONResponse(
        content=book_list.dump_python(books, mode="json"),
        headers={"Content-Disposition": "attachment; filename=books.json"},
    )
