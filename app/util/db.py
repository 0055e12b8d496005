import pathlib

from sqlalchemy import create_engine
from sqlmodel import Session, SQLModel

from app.internal.env_settings import Settings
from app.util.log import logger

sqlite_path = Settings().get_sqlite_path()
engine = create_engine(
    f"sqlite+pysqlite:///{sqlite_path}",
    connect_args={"check_same_thread": False},
    echo=Settings().db.echo,
)


def init_db():
    """Create the config directory and any missing tables."""
    # registers the table metadata
    import app.internal.models  # noqa: F401  # pyright: ignore[reportUnusedImport]

    pathlib.Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized", sqlite_path=sqlite_path)


def get_session():
    with Session(engine) as session:
        yield session
