import re
from typing import Annotated

from aiohttp import ClientSession
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from app.internal.catalog.open_library import (
    CatalogAuthorDetail,
    CatalogAuthorSummary,
    CatalogBookDetail,
    CatalogBookSummary,
    CatalogUnavailable,
    open_library,
)
from app.util.connection import get_connection

router = APIRouter(prefix="/catalog", tags=["Catalog"])

AUTHOR_KEY_PATTERN = re.compile(r"^OL\d+A$")


class UrlResponse(BaseModel):
    url: str


def _validate_author_key(author_key: str):
    if not AUTHOR_KEY_PATTERN.match(author_key):
        raise HTTPException(
            status_code=400, detail="Author key must be in the format OL<number>A"
        )


def _unavailable(e: CatalogUnavailable) -> HTTPException:
    # nothing to fall back to here, the caller gets the upstream failure
    return HTTPException(status_code=502, detail=str(e))


@router.get("/search", response_model=list[CatalogBookSummary])
async def search_titles(
    client_session: Annotated[ClientSession, Depends(get_connection)],
    title: Annotated[str, Query(min_length=1)],
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
):
    try:
        return await open_library.search_by_title(client_session, title, limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogUnavailable as e:
        raise _unavailable(e)


@router.get("/authors", response_model=list[CatalogAuthorSummary])
async def search_authors(
    client_session: Annotated[ClientSession, Depends(get_connection)],
    name: Annotated[str, Query(alias="q", min_length=1)],
):
    try:
        return await open_library.search_authors_by_name(client_session, name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogUnavailable as e:
        raise _unavailable(e)


@router.get("/books/{id_type}/{id_value}", response_model=CatalogBookDetail)
async def get_book_by_identifier(
    client_session: Annotated[ClientSession, Depends(get_connection)],
    id_type: str,
    id_value: str,
):
    try:
        book = await open_library.get_book_by_identifier(client_session, id_type, id_value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogUnavailable as e:
        raise _unavailable(e)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.get("/authors/{author_key}", response_model=CatalogAuthorDetail)
async def get_author(
    client_session: Annotated[ClientSession, Depends(get_connection)],
    author_key: str,
):
    _validate_author_key(author_key)
    try:
        author = await open_library.get_author_detail(client_session, author_key)
    except CatalogUnavailable as e:
        raise _unavailable(e)
    if author is None:
        raise HTTPException(status_code=404, detail="Author not found")
    return author


@router.get("/authors/{author_key}/photo", response_model=UrlResponse)
async def get_author_photo(author_key: str):
    _validate_author_key(author_key)
    return UrlResponse(url=open_library.author_photo_url(author_key))


@router.get("/covers/{id_kind}/{id_value}", response_model=UrlResponse)
async def get_cover(
    id_kind: str,
    id_value: str,
    size: str = "L",
):
    try:
        return UrlResponse(url=open_library.cover_image_url(id_kind, id_value, size))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
