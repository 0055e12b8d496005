"""
Open Library catalog client.

All knowledge of Open Library's response shapes lives in this module: raw
responses are parsed with lenient pydantic models and normalized into the
Catalog* models the rest of the application works with.
"""
import json
from typing import Annotated, Any, Optional
from urllib.parse import quote

from aiohttp import ClientError, ClientSession, ClientTimeout
from pydantic import BaseModel, BeforeValidator, Field, ValidationError

from app.internal.env_settings import CatalogSettings, Settings
from app.util.cache import TTLCache
from app.util.exceptions import handle_external_api_error, handle_validation_error
from app.util.log import logger

ID_TYPES: frozenset[str] = frozenset(["isbn", "lccn", "oclc", "olid"])
COVER_ID_KINDS: frozenset[str] = frozenset(["isbn", "oclc", "lccn", "olid", "id"])
COVER_SIZES: frozenset[str] = frozenset(["S", "M", "L"])

MAX_ISBNS = 3
MAX_PUBLISHERS = 3
MAX_SUBJECTS = 5


class CatalogUnavailable(Exception):
    """Open Library could not be reached or answered with something unusable."""

    operation: str
    detail: str

    def __init__(self, operation: str, detail: str):
        super().__init__(f"Open Library {operation} failed: {detail}")
        self.operation = operation
        self.detail = detail


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


def _none_to_dict(value: Any) -> Any:
    return {} if value is None else value


# Open Library sends explicit nulls for some list fields
NullAsEmpty = BeforeValidator(_none_to_list)
StrList = Annotated[list[str], NullAsEmpty]
AnyDict = Annotated[dict[str, Any], BeforeValidator(_none_to_dict)]


# Raw Open Library response models


class OpenLibrarySearchDoc(BaseModel):
    """One hit of /search.json."""
    title: str = ""
    author_name: StrList = Field(default_factory=list)
    first_publish_year: Optional[int] = None
    key: str = ""
    edition_count: Optional[int] = 0
    cover_i: Optional[int] = None
    isbn: StrList = Field(default_factory=list)
    publisher: StrList = Field(default_factory=list)
    language: StrList = Field(default_factory=list)
    subject: StrList = Field(default_factory=list)


class OpenLibrarySearchResponse(BaseModel):
    docs: Annotated[list[OpenLibrarySearchDoc], NullAsEmpty] = Field(default_factory=list)


class OpenLibraryAuthorDoc(BaseModel):
    """One hit of /search/authors.json."""
    key: str = ""
    name: str = ""
    alternate_names: StrList = Field(default_factory=list)
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    top_work: Optional[str] = None
    work_count: Optional[int] = 0
    top_subjects: StrList = Field(default_factory=list)


class OpenLibraryAuthorSearchResponse(BaseModel):
    docs: Annotated[list[OpenLibraryAuthorDoc], NullAsEmpty] = Field(default_factory=list)


class NamedEntry(BaseModel):
    name: str = ""


class BriefIdentifiers(BaseModel):
    isbn_10: StrList = Field(default_factory=list)
    isbn_13: StrList = Field(default_factory=list)
    lccn: StrList = Field(default_factory=list)
    oclc: StrList = Field(default_factory=list)
    openlibrary: StrList = Field(default_factory=list)


class BriefData(BaseModel):
    """The `data` block of an /api/volumes/brief record."""
    title: str = ""
    authors: Annotated[list[NamedEntry], NullAsEmpty] = Field(default_factory=list)
    publishers: Annotated[list[NamedEntry], NullAsEmpty] = Field(default_factory=list)
    publish_date: Optional[str] = None
    number_of_pages: Optional[int] = None
    identifiers: Annotated[BriefIdentifiers, BeforeValidator(_none_to_dict)] = Field(default_factory=BriefIdentifiers)
    key: str = ""
    cover: Optional[dict[str, str]] = None
    url: Optional[str] = None
    ebooks: Annotated[list[dict[str, Any]], NullAsEmpty] = Field(default_factory=list)


class BriefRecord(BaseModel):
    data: BriefData = Field(default_factory=BriefData)


class TextValue(BaseModel):
    """Open Library's typed text wrapper, e.g. {"type": "/type/text", "value": "..."}."""
    type: Optional[str] = None
    value: str = ""


class OpenLibraryAuthor(BaseModel):
    """/authors/<key>.json"""
    name: str = ""
    personal_name: Optional[str] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    bio: str | TextValue | None = None
    alternate_names: StrList = Field(default_factory=list)
    photos: Annotated[list[int], NullAsEmpty] = Field(default_factory=list)
    key: str = ""
    remote_ids: AnyDict = Field(default_factory=dict)
    links: Annotated[list[dict[str, Any]], NullAsEmpty] = Field(default_factory=list)


# Normalized catalog models


class CatalogBookSummary(BaseModel):
    """A title search hit."""
    title: str
    authors: list[str] = Field(default_factory=list)
    first_publish_year: Optional[int] = None
    work_key: str = ""
    edition_count: int = Field(default=0, ge=0)
    cover_url: Optional[str] = None
    isbns: list[str] = Field(default_factory=list, max_length=MAX_ISBNS)
    publishers: list[str] = Field(default_factory=list, max_length=MAX_PUBLISHERS)
    languages: list[str] = Field(default_factory=list)
    subjects: list[str] = Field(default_factory=list, max_length=MAX_SUBJECTS)


class CatalogAuthorSummary(BaseModel):
    """An author search hit."""
    key: str
    name: str
    alternate_names: list[str] = Field(default_factory=list)
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    top_work: Optional[str] = None
    work_count: int = Field(default=0, ge=0)
    top_subjects: list[str] = Field(default_factory=list)


class CatalogBookDetail(BaseModel):
    """A single edition fetched by identifier."""
    title: str
    authors: list[str] = Field(default_factory=list)
    publishers: list[str] = Field(default_factory=list)
    publish_date: Optional[str] = None
    number_of_pages: Optional[int] = None
    isbn_10: list[str] = Field(default_factory=list)
    isbn_13: list[str] = Field(default_factory=list)
    lccn: list[str] = Field(default_factory=list)
    oclc: list[str] = Field(default_factory=list)
    olid: list[str] = Field(default_factory=list)
    edition_key: str = ""
    cover_url: Optional[str] = None
    info_url: Optional[str] = None
    preview_url: Optional[str] = None


class CatalogAuthorDetail(BaseModel):
    name: str
    personal_name: Optional[str] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    bio: Optional[str] = None
    alternate_names: list[str] = Field(default_factory=list)
    photos: list[int] = Field(default_factory=list)
    key: str = ""
    remote_ids: dict[str, str] = Field(default_factory=dict)
    links: list[dict[str, Any]] = Field(default_factory=list)


class OpenLibraryProvider:
    """Client for the Open Library search, volumes and authors APIs."""

    base_url: str
    covers_url: str
    timeout: ClientTimeout
    headers: dict[str, str]
    search_cache: TTLCache[list[CatalogBookSummary], str, int]

    def __init__(self, settings: CatalogSettings | None = None):
        if settings is None:
            settings = Settings().catalog
        self.base_url = settings.base_url.rstrip("/")
        self.covers_url = settings.covers_url.rstrip("/")
        self.timeout = ClientTimeout(total=settings.timeout)
        self.headers = {"User-Agent": settings.user_agent}
        self.search_cache = TTLCache[list[CatalogBookSummary], str, int](
            settings.search_cache_ttl, settings.search_cache_size
        )

    async def _get_json(
        self,
        client_session: ClientSession,
        path: str,
        operation: str,
        params: dict[str, str | int] | None = None,
        not_found_ok: bool = False,
        **context: Any,
    ) -> Any:
        """
        GET a JSON document from Open Library.

        Returns None only when `not_found_ok` is set and the server answered 404.
        Everything else that is not a successful JSON response raises
        CatalogUnavailable.
        """
        url = f"{self.base_url}{path}"
        try:
            async with client_session.get(
                url, params=params, headers=self.headers, timeout=self.timeout
            ) as response:
                if response.status == 404 and not_found_ok:
                    logger.debug(f"Open Library {operation}: not found", url=url, **context)
                    return None
                if not response.ok:
                    logger.warning(
                        f"Open Library returned {response.status}",
                        operation=operation,
                        url=url,
                        **context,
                    )
                    raise CatalogUnavailable(operation, f"HTTP {response.status}")
                return await response.json()

        except (ClientError, TimeoutError, json.JSONDecodeError) as e:
            handle_external_api_error(e, "Open Library", operation, **context)
            raise CatalogUnavailable(operation, str(e) or type(e).__name__) from e

    def _summary_from_doc(self, doc: OpenLibrarySearchDoc) -> CatalogBookSummary:
        return CatalogBookSummary(
            title=doc.title,
            authors=doc.author_name,
            first_publish_year=doc.first_publish_year,
            work_key=doc.key,
            edition_count=max(doc.edition_count or 0, 0),
            cover_url=(
                self.cover_image_url("id", str(doc.cover_i), "M")
                if doc.cover_i
                else None
            ),
            isbns=doc.isbn[:MAX_ISBNS],
            publishers=doc.publisher[:MAX_PUBLISHERS],
            languages=doc.language,
            subjects=doc.subject[:MAX_SUBJECTS],
        )

    async def search_by_title(
        self,
        client_session: ClientSession,
        title: str,
        limit: int = 10,
    ) -> list[CatalogBookSummary]:
        """Search works by title, most relevant first. No hits is an empty list."""
        if not title.strip():
            raise ValueError("title must not be empty")

        cache_key = title.strip().lower()
        cached = self.search_cache.get(cache_key, limit)
        if cached is not None:
            logger.debug("Using cached title search", title=title, limit=limit)
            return [summary.model_copy(deep=True) for summary in cached]

        data = await self._get_json(
            client_session,
            "/search.json",
            "title search",
            params={"title": title, "limit": limit},
            title=title,
        )
        try:
            parsed = OpenLibrarySearchResponse.model_validate(data)
        except ValidationError as e:
            handle_validation_error(e, "Open Library search response", title=title)
            raise CatalogUnavailable("title search", "invalid response") from e

        results = [self._summary_from_doc(doc) for doc in parsed.docs]
        # callers get copies; the cached summaries are never handed out
        self.search_cache.set(results, cache_key, limit)
        logger.debug("Title search finished", title=title, results=len(results))
        return [summary.model_copy(deep=True) for summary in results]

    async def search_authors_by_name(
        self,
        client_session: ClientSession,
        name: str,
    ) -> list[CatalogAuthorSummary]:
        if not name.strip():
            raise ValueError("author name must not be empty")

        data = await self._get_json(
            client_session,
            "/search/authors.json",
            "author search",
            params={"q": name},
            name=name,
        )
        try:
            parsed = OpenLibraryAuthorSearchResponse.model_validate(data)
        except ValidationError as e:
            handle_validation_error(e, "Open Library author search response", name=name)
            raise CatalogUnavailable("author search", "invalid response") from e

        return [
            CatalogAuthorSummary(
                key=doc.key,
                name=doc.name,
                alternate_names=doc.alternate_names,
                birth_date=doc.birth_date,
                death_date=doc.death_date,
                top_work=doc.top_work,
                work_count=max(doc.work_count or 0, 0),
                top_subjects=doc.top_subjects,
            )
            for doc in parsed.docs
        ]

    async def get_book_by_identifier(
        self,
        client_session: ClientSession,
        id_type: str,
        id_value: str,
    ) -> Optional[CatalogBookDetail]:
        """
        Fetch one edition by ISBN, LCCN, OCLC number or Open Library id.

        Returns None when Open Library has no record for the identifier.
        """
        id_type = id_type.lower()
        if id_type not in ID_TYPES:
            raise ValueError(f"id_type must be one of: {', '.join(sorted(ID_TYPES))}")
        id_value = id_value.strip()
        if not id_value:
            raise ValueError("id_value must not be empty")

        data = await self._get_json(
            client_session,
            f"/api/volumes/brief/{id_type}/{quote(id_value, safe='')}.json",
            "identifier lookup",
            not_found_ok=True,
            id_type=id_type,
            id_value=id_value,
        )
        # unknown identifiers come back as an empty JSON list
        if not isinstance(data, dict) or not data.get("records"):
            return None

        records = data["records"]
        if not isinstance(records, dict):
            return None
        try:
            record = BriefRecord.model_validate(next(iter(records.values())))
        except ValidationError as e:
            handle_validation_error(
                e, "Open Library volume record", id_type=id_type, id_value=id_value
            )
            raise CatalogUnavailable("identifier lookup", "invalid response") from e

        book = record.data
        cover_url = None
        if book.cover:
            cover_url = book.cover.get("medium")

        return CatalogBookDetail(
            title=book.title,
            authors=[a.name for a in book.authors if a.name],
            publishers=[p.name for p in book.publishers if p.name],
            publish_date=book.publish_date,
            number_of_pages=book.number_of_pages,
            isbn_10=book.identifiers.isbn_10,
            isbn_13=book.identifiers.isbn_13,
            lccn=book.identifiers.lccn,
            oclc=book.identifiers.oclc,
            olid=book.identifiers.openlibrary,
            edition_key=book.key,
            cover_url=cover_url,
            info_url=book.url,
            preview_url=book.ebooks[0].get("preview_url") if book.ebooks else None,
        )

    async def get_author_detail(
        self,
        client_session: ClientSession,
        author_key: str,
    ) -> Optional[CatalogAuthorDetail]:
        """Fetch an author record, e.g. "OL23919A". Returns None for unknown keys."""
        data = await self._get_json(
            client_session,
            f"/authors/{quote(author_key, safe='')}.json",
            "author lookup",
            not_found_ok=True,
            author_key=author_key,
        )
        if not data or not isinstance(data, dict):
            return None

        try:
            author = OpenLibraryAuthor.model_validate(data)
        except ValidationError as e:
            handle_validation_error(e, "Open Library author record", author_key=author_key)
            raise CatalogUnavailable("author lookup", "invalid response") from e

        bio = author.bio
        if isinstance(bio, TextValue):
            bio = bio.value or None

        return CatalogAuthorDetail(
            name=author.name,
            personal_name=author.personal_name,
            birth_date=author.birth_date,
            death_date=author.death_date,
            bio=bio or None,
            alternate_names=author.alternate_names,
            photos=author.photos,
            key=author.key,
            remote_ids={k: str(v) for k, v in author.remote_ids.items()},
            links=author.links,
        )

    def cover_image_url(self, id_kind: str, id_value: str, size: str = "L") -> str:
        """Cover image URL for a book. Pure string building, no request is made."""
        kind = id_kind.lower()
        if kind not in COVER_ID_KINDS:
            raise ValueError(
                f"id_kind must be one of: {', '.join(sorted(COVER_ID_KINDS))}"
            )
        size = size.upper()
        if size not in COVER_SIZES:
            raise ValueError("size must be one of: S, M, L")
        return f"{self.covers_url}/b/{kind}/{id_value}-{size}.jpg"

    def author_photo_url(self, author_key: str) -> str:
        return f"{self.covers_url}/a/olid/{author_key}-L.jpg"


# Global provider instance
open_library = OpenLibraryProvider()
