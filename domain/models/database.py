"""
Database configuration and session management.
"""

import logging
from datetime import datetime, timezone
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from app.config import settings

logger = logging.getLogger("fitmeal.database")

# Create SQLAlchemy Base
Base = declarative_base()


def _create_engine(url: str):
    if url.startswith("sqlite"):
        # In-memory SQLite is shared across threads (TestClient runs the app in a worker thread)
        sqlite_engine = create_engine(
            url,
            echo=settings.db_echo,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        url,
        echo=settings.db_echo,
        future=True,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


# Create engine
engine = _create_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, future=True)


def init_database():
    """Initialize database schema"""
    # Import models so every table is registered on Base.metadata
    import domain.models  # noqa: F401

    with engine.begin() as conn:
        Base.metadata.create_all(bind=conn)
    logger.info("Database tables created successfully")


def get_db_session():
    """Get database session (for FastAPI dependency injection)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow():
    """Naive UTC timestamp; all DateTime columns hold naive UTC values."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
