"""
Database connection and session management.
"""
from contextlib import contextmanager
from typing import Generator, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from core.config import settings


class DatabaseManager:
    """Manager for database connections and sessions."""

    def __init__(self):
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

    def initialize(self, database_url: Optional[str] = None):
        """Initialize database engine and session factory."""
        if self.engine is not None:
            return

        url = database_url or settings.database_url
        if url.startswith("sqlite"):
            # SQLite is shared between the event loop and worker threads
            self.engine = create_engine(
                url,
                connect_args={
                    "check_same_thread": False,
                    "timeout": 20,
                },
                poolclass=StaticPool,
                echo=settings.debug,
            )
        else:
            self.engine = create_engine(
                url,
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                echo=settings.debug,
            )

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine
        )

    def create_tables(self):
        """Create all database tables."""
        if self.engine is None:
            self.initialize()

        from .models import Base
        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        """Drop the engine so the next use reconnects."""
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.SessionLocal = None

    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session."""
        if self.engine is None:
            self.initialize()

        session = self.SessionLocal()  # type: ignore
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        if self.engine is None:
            self.initialize()

        session = self.SessionLocal()  # type: ignore
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Global database manager instance
db_manager = DatabaseManager()


def get_db_session() -> Generator[Session, None, None]:
    """Dependency function to get database session."""
    yield from db_manager.get_session()


def initialize_database(database_url: Optional[str] = None):
    """Initialize database and create tables."""
    db_manager.initialize(database_url)
    db_manager.create_tables()
