"""
Shared failure logging for the reading tracker.

Every place that talks to something outside the process (Open Library, a chat
provider, the database) logs its failures through one of these helpers so the
log lines carry the same keys regardless of where they came from.
"""
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.util.log import logger


def handle_external_api_error(
    error: Exception,
    service: str,
    operation: str,
    **context: Any
) -> None:
    """
    Standard logging for external API failures.

    Args:
        error: The caught exception
        service: Name of the external service (e.g., "Open Library", "OpenAI")
        operation: What operation was being attempted (e.g., "title search")
        **context: Additional context to log (e.g., title=..., isbn=...)

    Example:
        try:
            results = await open_library.search_by_title(client_session, title)
        except CatalogUnavailable as e:
            handle_external_api_error(e, "Open Library", "title search", title=title)
            return book
    """
    logger.error(
        f"{service} {operation} failed",
        error=str(error),
        error_type=type(error).__name__,
        service=service,
        operation=operation,
        **context
    )


def handle_database_error(
    error: SQLAlchemyError,
    operation: str,
    rollback_session: Any = None,
    **context: Any
) -> None:
    """
    Standard logging and handling for database errors.

    Args:
        error: The caught SQLAlchemy exception
        operation: What database operation was being attempted
        rollback_session: Optional SQLModel Session to rollback
        **context: Additional context to log

    Example:
        try:
            session.add(book)
            session.commit()
        except SQLAlchemyError as e:
            handle_database_error(e, "add book", rollback_session=session, title=book.title)
            raise
    """
    logger.error(
        f"Database {operation} failed",
        error=str(error),
        error_type=type(error).__name__,
        operation=operation,
        **context
    )

    if rollback_session is not None:
        try:
            rollback_session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.warning(
                "Failed to rollback session after database error",
                error=str(rollback_error)
            )


def handle_validation_error(
    error: ValidationError,
    data_source: str,
    **context: Any
) -> None:
    """
    Standard logging for data validation failures.

    Args:
        error: The caught ValidationError
        data_source: Where the invalid data came from (e.g., "Open Library search response")
        **context: Additional context to log
    """
    logger.error(
        f"{data_source} validation failed",
        error=str(error),
        error_type=type(error).__name__,
        data_source=data_source,
        **context
    )
