from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from app.internal.book_import import seed_from_json
from app.internal.book_store import BookStore
from app.internal.catalog import open_library
from app.internal.env_settings import Settings
from app.routers import api
from app.util.connection import close_connection
from app.util.db import engine, init_db
from app.util.log import logger, setup_logging

settings = Settings()
setup_logging(
    log_level=settings.app.log_level,
    log_format=settings.app.log_format,
    log_file=settings.app.log_file,
    config_dir=settings.app.config_dir,
    version=settings.app.version,
)


def seed_library():
    seed_path = settings.get_seed_path()
    if seed_path is None:
        return
    with Session(engine) as session:
        seed_from_json(BookStore(session), seed_path)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    seed_library()
    logger.info(
        "Reading tracker started",
        catalog=settings.catalog.base_url,
        chat_provider=settings.chat.provider,
    )
    yield
    open_library.search_cache.log_metrics("title search")
    await close_connection()


app = FastAPI(
    title="Reading Tracker",
    version=settings.app.version,
    debug=settings.app.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api.router)
