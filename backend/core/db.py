"""
PrintVault — Core database layer.

Provides the SQLAlchemy engine, session factory, declarative base,
and the FastAPI get_db dependency.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from core.config import settings
from core.base import Base  # Single Base instance shared across all models

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    poolclass=NullPool,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)
if _is_sqlite:
    # Bulk runs write from worker threads while the UI polls; WAL keeps readers unblocked
    with engine.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL"))
        conn.execute(text("PRAGMA busy_timeout=5000"))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency for database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables owned by loaded modules. Idempotent."""
    # Import model modules so their tables register on Base.metadata
    import modules.library.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
