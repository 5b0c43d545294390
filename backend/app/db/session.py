"""
Database engine and per-request sessions.
"""
import logging
from typing import List
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, Session
from app.core.config import settings
from app.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(url: str, echo: bool = False):
    """Engine for ``url``; SQLite connections may be shared across worker threads."""
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=3600)


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency yielding a session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> List[str]:
    """Create any missing tables and return the table names now present."""
    # Models must be imported so their tables are registered on the metadata
    import app.models  # noqa: F401
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    tables = sorted(inspect(bind).get_table_names())
    logger.info(f"Database ready with tables: {', '.join(tables)}")
    return tables
