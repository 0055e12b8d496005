"""
Open Library catalog access and book enrichment.

Normalizes Open Library search, edition and author records and fills the gaps
of locally entered books without overwriting what the user typed.
"""

from .enrichment import InvalidInput, LocalBook, enrich_book
from .open_library import CatalogUnavailable, OpenLibraryProvider, open_library

__all__ = [
    "CatalogUnavailable",
    "InvalidInput",
    "LocalBook",
    "OpenLibraryProvider",
    "enrich_book",
    "open_library",
]
