"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.
"""

from pathlib import Path
from urllib.parse import quote

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

# Bear stores its Core Data SQLite file inside the app group container
DEFAULT_BEAR_DATABASE = (
    Path.home()
    / "Library"
    / "Group Containers"
    / "9K33E3U3T4.net.shinyfrog.bear"
    / "Application Data"
    / "database.sqlite"
)


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Optional env vars:
        BEAR_DATABASE_PATH (Bear's group container database),
        INDEX_DIR (~/.bear-notes-retrieval), EMBEDDING_MODEL (all-MiniLM-L6-v2),
        BUILD_INDEX_IF_MISSING (False), LOG_LEVEL (INFO)
    """

    PROJECT_NAME: str = "Bear Notes Retrieval"

    # Note store (opened read-only)
    BEAR_DATABASE_PATH: Path = DEFAULT_BEAR_DATABASE

    # Vector index
    INDEX_DIR: Path = Path.home() / ".bear-notes-retrieval"
    INDEX_FILENAME: str = "note_vectors.json"
    EMBEDDING_MODEL: str = "all-MiniLM-L6-v2"
    BUILD_INDEX_IF_MISSING: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )

    @property
    def DATABASE_URL(self) -> URL:
        """Read-only async SQLite URL using the aiosqlite driver."""
        return database_url(self.BEAR_DATABASE_PATH)

    @property
    def INDEX_PATH(self) -> Path:
        """Location of the persisted vector index."""
        return self.INDEX_DIR.expanduser() / self.INDEX_FILENAME


def database_url(path: Path) -> URL:
    """
    Build a SQLAlchemy URL that opens ``path`` in SQLite read-only mode.

    ``uri=true`` makes the driver treat the database part as a ``file:`` URI,
    which is what allows the ``mode=ro`` flag. The path is percent-encoded
    because SQLite decodes ``%XX`` in URIs and stops the path at ``?`` or ``#``.
    """
    return URL.create(
        "sqlite+aiosqlite",
        database=f"file:{quote(str(path.expanduser()))}",
        query={"mode": "ro", "uri": "true"},
    )


settings = Settings()
