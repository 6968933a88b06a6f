"""Database setup and session management."""

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from slemon.config import settings


def make_engine(url: str | None = None) -> Engine:
    """Build the SQLite engine, creating the parent directory on demand."""
    if url is None:
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{settings.db_path}"
    return create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False},
    )


def init_db(engine: Engine) -> None:
    """Create all tables."""
    # Import models to register them with SQLModel before create_all()
    import slemon.storage.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
