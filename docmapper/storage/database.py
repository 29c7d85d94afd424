"""Database connection and configuration management."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from docmapper.config import get_settings
from docmapper.models.base import Base


class Database:
    """Database connection manager with connection pooling and transaction handling."""

    def __init__(self, database_url: str | None = None, pool_size: int | None = None, max_overflow: int | None = None):
        """
        Initialize database connection.

        Args:
            database_url: Database connection URL. If None, reads from settings.
                         Supports PostgreSQL and SQLite.
            pool_size: Number of connections to maintain in the pool. If None, uses settings.
            max_overflow: Maximum number of connections to allow beyond pool_size. If None, uses settings.
        """
        settings = get_settings()

        if database_url is None:
            database_url = settings.get_database_url()

        if pool_size is None:
            pool_size = settings.db_pool_size

        if max_overflow is None:
            max_overflow = settings.db_max_overflow

        engine_args = {}
        if database_url.startswith("sqlite"):
            # SQLite connections are shared across threads by the pool
            engine_args["connect_args"] = {"check_same_thread": False}
        else:
            engine_args.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=settings.db_pool_timeout,
            )

        self.engine = create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before using
            echo=settings.sql_echo,
            **engine_args,
        )

        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions with automatic transaction handling.

        Usage:
            with db.session() as session:
                # Use session here; committed on exit, rolled back on error
                ...
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Session:
        """
        Get a database session. Caller is responsible for closing.

        Returns:
            Database session
        """
        return self.SessionLocal()


# Global database instance
_db: Database | None = None


def get_db(database_url: str | None = None) -> Database:
    """
    Get or create the global database instance.

    Args:
        database_url: Database connection URL. Only used on first call.

    Returns:
        Database instance
    """
    global _db
    if _db is None:
        _db = Database(database_url)
    return _db


def reset_db() -> None:
    """Reset the global database instance (useful for testing)."""
    global _db
    _db = None
