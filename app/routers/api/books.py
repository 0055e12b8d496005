from datetime import datetime, timezone
from typing import Annotated, Any

from aiohttp import ClientSession
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.internal.book_store import BookStore
from app.internal.catalog import InvalidInput, LocalBook, enrich_book
from app.internal.chat import (
    ChatMisconfigured,
    ChatProviderError,
    build_system_prompt,
    get_chat_provider,
)
from app.internal.env_settings import Settings
from app.internal.models import BookCount, BookCreate, BookRead
from app.internal.stats import filter_by_month, filter_by_shelf, filter_by_year
from app.util.connection import get_connection
from app.util.db import get_session
from app.util.log import logger

router = APIRouter(prefix="/books", tags=["Books"])


def get_book_store(session: Annotated[Session, Depends(get_session)]) -> BookStore:
    return BookStore(session)


class EnrichedBookResponse(BaseModel):
    book: dict[str, Any]


class SyncResponse(BaseModel):
    success: bool = True
    last_sync: datetime
    book_count: int


class ChatBody(BaseModel):
    message: str
    books: list[dict[str, Any]] | None = None


class ChatResponse(BaseModel):
    response: str


async def _apply_enrichment(client_session: ClientSession, data: BookCreate) -> BookCreate:
    """Copy enrichment results that have a column on Book into `data`."""
    enriched = await enrich_book(
        client_session,
        LocalBook(
            title=data.title,
            author=data.author or None,
            isbn=data.isbn or data.isbn13 or None,
            publisher=data.publisher or None,
        ),
    )
    updates: dict[str, Any] = {}
    if not data.isbn and not data.isbn13 and enriched.isbn:
        updates["isbn"] = enriched.isbn
    if not data.publisher and enriched.publisher:
        updates["publisher"] = enriched.publisher
    extra = enriched.model_extra or {}
    if not data.cover_url and extra.get("cover_url"):
        updates["cover_url"] = extra["cover_url"]
    if not data.pages and extra.get("number_of_pages"):
        updates["pages"] = extra["number_of_pages"]
    if not data.original_publication_year and extra.get("first_publish_year"):
        updates["original_publication_year"] = extra["first_publish_year"]
    if not data.author and extra.get("authors"):
        updates["author"] = extra["authors"][0]
    return data.model_copy(update=updates)


@router.get("", response_model=list[BookRead])
async def list_books(
    store: Annotated[BookStore, Depends(get_book_store)],
    year: int | None = None,
    shelf: str | None = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
):
    books = list(store.list_books())
    if year is not None:
        books = filter_by_year(books, year)
    if shelf:
        books = filter_by_shelf(books, shelf)
    if month is not None:
        books = filter_by_month(books, month)
    return books


@router.put("", response_model=BookCount)
async def replace_books(
    store: Annotated[BookStore, Depends(get_book_store)],
    books: list[BookCreate],
):
    try:
        count = store.replace_all(books)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to save books")
    return BookCount(count=count)


@router.post("", status_code=201, response_model=BookRead)
async def create_book(
    store: Annotated[BookStore, Depends(get_book_store)],
    client_session: Annotated[ClientSession, Depends(get_connection)],
    body: BookCreate,
    enrich: bool = False,
):
    if not body.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if enrich:
        body = await _apply_enrichment(client_session, body)
    try:
        return store.add_book(body)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to create book")


@router.post("/enrich", response_model=EnrichedBookResponse)
async def enrich(
    client_session: Annotated[ClientSession, Depends(get_connection)],
    body: LocalBook,
):
    try:
        book = await enrich_book(client_session, body)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EnrichedBookResponse(book=book.model_dump())


@router.post("/sync", response_model=SyncResponse)
async def sync_books(store: Annotated[BookStore, Depends(get_book_store)]):
    return SyncResponse(
        last_sync=datetime.now(timezone.utc),
        book_count=len(store.list_books()),
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    store: Annotated[BookStore, Depends(get_book_store)],
    client_session: Annotated[ClientSession, Depends(get_connection)],
    body: ChatBody,
):
    try:
        provider = get_chat_provider(Settings().chat)
    except ChatMisconfigured as e:
        raise HTTPException(status_code=400, detail=str(e))

    book_count = len(body.books) if body.books is not None else len(store.list_books())
    try:
        reply = await provider.complete(
            client_session, build_system_prompt(book_count), body.message
        )
    except ChatProviderError as e:
        logger.warning("Chat request failed", error=str(e))
        raise HTTPException(status_code=502, detail="Failed to process chat request")
    return ChatResponse(response=reply)


@router.get("/{book_id}", response_model=BookRead)
async def get_book(
    store: Annotated[BookStore, Depends(get_book_store)],
    book_id: int,
):
    book = store.get_book(book_id)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.put("/{book_id}", response_model=BookRead)
async def update_book(
    store: Annotated[BookStore, Depends(get_book_store)],
    book_id: int,
    body: BookCreate,
):
    try:
        book = store.update_book(book_id, body)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update book")
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.delete("/{book_id}")
async def delete_book(
    store: Annotated[BookStore, Depends(get_book_store)],
    book_id: int,
):
    try:
        deleted = store.delete_book(book_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete book")
    if not deleted:
        raise HTTPException(status_code=404, detail="Book not found")
    return Response(status_code=204)
