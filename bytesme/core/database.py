from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from .config import settings


def _normalized_database_url(raw_url: str) -> str:
    """Empty DATABASE_URL falls back to the local SQLite file."""
    if not raw_url or not raw_url.strip():
        return "sqlite:///./bytesme.db"
    return raw_url.strip()


DATABASE_URL = _normalized_database_url(settings.database_url)

# In-memory SQLite: one shared connection so tables created by init_db stay visible (tests)
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
_use_static_pool = DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL
engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    poolclass=StaticPool if _use_static_pool else None,
)


def init_db():
    # Registers the table models on SQLModel.metadata
    import bytesme.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
