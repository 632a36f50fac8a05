# tutorbill/core/db.py - SQLAlchemy database setup with connection pooling
from sqlalchemy import create_engine, text, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool, QueuePool
from typing import Generator, Optional
import logging
import time
import threading

from tutorbill.core.config import settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Database manager with connection pooling and health monitoring"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def initialize(self):
        """Initialize database engine and session maker"""
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            try:
                self.engine = self._create_engine()
                self.SessionLocal = sessionmaker(
                    autocommit=False,
                    autoflush=False,
                    expire_on_commit=False,
                    bind=self.engine
                )
                self._setup_event_listeners()
                self._initialized = True
                logger.info("Database initialized successfully")

            except Exception as e:
                logger.error(f"Failed to initialize database: {e}")
                raise

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine for SQLite (dev/tests) or PostgreSQL"""
        engine_args = {
            "url": self.database_url,
            "echo": settings.DATABASE_ECHO,
        }

        if self.is_sqlite:
            engine_args.update({
                "poolclass": StaticPool,
                "connect_args": {
                    "check_same_thread": False,
                    "timeout": 30,
                },
            })
        else:
            engine_args.update({
                "poolclass": QueuePool,
                "pool_size": settings.DATABASE_POOL_SIZE,
                "max_overflow": settings.DATABASE_MAX_OVERFLOW,
                "pool_timeout": settings.DATABASE_POOL_TIMEOUT,
                "pool_recycle": settings.DATABASE_POOL_RECYCLE,
                "pool_pre_ping": True,
                "connect_args": {
                    "connect_timeout": 10,
                    "application_name": f"tutorbill_{settings.ENV}",
                    "options": "-c timezone=UTC"
                }
            })

        return create_engine(**engine_args)

    def _setup_event_listeners(self):
        """Set up SQLAlchemy event listeners for monitoring"""
        is_sqlite = self.is_sqlite

        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            if is_sqlite:
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.execute("PRAGMA temp_store=memory")
                cursor.close()

        @event.listens_for(self.engine, "before_cursor_execute")
        def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            if settings.is_development:
                context._query_start_time = time.time()

        @event.listens_for(self.engine, "after_cursor_execute")
        def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            if settings.is_development and hasattr(context, '_query_start_time'):
                total = time.time() - context._query_start_time
                if total > 0.1:
                    logger.warning(f"Slow query ({total:.3f}s): {statement[:100]}...")

    def get_session(self) -> Generator[Session, None, None]:
        """
        Get database session with automatic cleanup and error handling.

        Yields:
            Session: SQLAlchemy database session
        """
        if not self._initialized:
            self.initialize()

        session = self.SessionLocal()
        try:
            yield session
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def health_check(self) -> dict:
        """
        Perform database health check.

        Returns:
            Dict with health status information
        """
        if not self._initialized:
            self.initialize()

        try:
            start_time = time.time()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            response_time = (time.time() - start_time) * 1000
            return {
                "status": "healthy",
                "response_time_ms": round(response_time, 2),
                "database": "sqlite" if self.is_sqlite else "postgresql",
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    def close(self):
        """Close database connections and cleanup"""
        if self.engine:
            self.engine.dispose()
            logger.info("Database connections closed")


db_manager = DatabaseManager()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency to get database session.

    Usage in FastAPI:
        @router.get("/students")
        def list_students(db: Session = Depends(get_db)):
            ...
    """
    yield from db_manager.get_session()


def get_engine() -> Engine:
    """Get SQLAlchemy engine instance"""
    if not db_manager._initialized:
        db_manager.initialize()
    return db_manager.engine


def health_check() -> dict:
    """Get database health status (convenience function)"""
    return db_manager.health_check()


__all__ = [
    "DatabaseManager",
    "get_db",
    "get_engine",
    "health_check",
    "db_manager"
]
