import logging
import logging.handlers
import pathlib

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

APP_NAME = "reading-tracker"

# uvicorn installs its own handlers; these are reset to propagate to the root
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _app_context(version: str) -> Processor:
    def add_app_context(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", APP_NAME)
        event_dict.setdefault("version", version)
        return event_dict

    return add_app_context


def _formatter(renderers: list[Processor], shared: list[Processor]) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    config_dir: str = "config",
    version: str = "local",
) -> None:
    """
    Route structlog and stdlib logging (uvicorn, sqlalchemy) through one pipeline.

    Every record carries the app name and version. The console uses the
    renderer picked by `log_format`; the optional rotating file under
    <config_dir>/logs is always JSON lines.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "text" for the console renderer, "json" for one JSON object per line
        log_file: Optional file name, written under <config_dir>/logs with rotation
        config_dir: Base configuration directory
        version: Application version stamped on every record
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _app_context(version),
    ]

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    json_renderers: list[Processor] = [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]
    console_renderers: list[Processor] = [structlog.dev.ConsoleRenderer()]
    if log_format.lower() == "json":
        console_renderers = json_renderers

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(_formatter(console_renderers, shared))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = pathlib.Path(config_dir) / "logs"
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path / log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(_formatter(json_renderers, shared))
        root_logger.addHandler(file_handler)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True


def get_logger() -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.stdlib.get_logger()


logger = get_logger()
