import pathlib
from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class DBSettings(BaseModel):
    sqlite_path: str = "books.sqlite"
    """Relative path to the sqlite database given the config directory. If absolute, it ignores the config dir location."""
    echo: bool = False
    """Log every SQL statement (very noisy)"""


class ApplicationSettings(BaseModel):
    debug: bool = False
    config_dir: str = "config"
    port: int = 8000
    version: str = "local"
    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)"""
    log_format: str = "text"
    """Log format: 'text' for human-readable, 'json' for machine-readable"""
    log_file: str | None = None
    """Optional log file path (relative to config_dir/logs/). If not set, logs to stdout only"""

    cors_origins: list[str] = ["*"]
    """Origins allowed to call the API from a browser"""

    seed_file: str = "books.json"
    """Goodreads JSON export imported into an empty library on startup. Relative to config_dir unless absolute; empty disables the import"""


class CatalogSettings(BaseModel):
    base_url: str = "https://openlibrary.org"
    covers_url: str = "https://covers.openlibrary.org"
    timeout: float = 10.0
    """Per-request timeout (seconds) for catalog lookups"""
    user_agent: str = "ReadingTracker/1.0"
    """Open Library asks clients to identify themselves"""

    search_cache_ttl: int = 3600
    """TTL for cached title searches in seconds (0 disables the cache)"""
    search_cache_size: int = 256
    """Maximum number of cached title searches"""


class ChatSettings(BaseModel):
    provider: Literal["openai", "anthropic", "gemini"] = "openai"
    api_key: str = ""
    model: str = ""
    """Model name. Empty selects the provider's default"""
    max_tokens: int = 500
    temperature: float = 0.7
    timeout: float = 30.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(  # pyright: ignore[reportUnannotatedClassAttribute]
        env_prefix="RT_",
        env_nested_delimiter="__",
        nested_model_default_partial_update=True,
        env_file=(".env.local", ".env"),
        extra="ignore",
    )

    db: DBSettings = DBSettings()
    app: ApplicationSettings = ApplicationSettings()
    catalog: CatalogSettings = CatalogSettings()
    chat: ChatSettings = ChatSettings()

    def get_sqlite_path(self):
        if self.db.sqlite_path.startswith("/"):
            return self.db.sqlite_path
        return str(pathlib.Path(self.app.config_dir) / self.db.sqlite_path)

    def get_seed_path(self) -> pathlib.Path | None:
        if not self.app.seed_file:
            return None
        path = pathlib.Path(self.app.seed_file)
        if path.is_absolute():
            return path
        return pathlib.Path(self.app.config_dir) / path
