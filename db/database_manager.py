"""
Database Connection Manager for a11y-intelligence
SQLAlchemy-based connection manager for the audit database
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base
from runner.logging_setup import get_logger

# Load environment
load_dotenv()

logger = get_logger("database_manager")


class DatabaseManager:
    """Manages the audit database connection with connection pooling"""

    def __init__(self, database_url: Optional[str] = None):
        """
        Args:
            database_url: SQLAlchemy URL (default: DATABASE_URL env var)
        """
        self.database_url = database_url or os.getenv("DATABASE_URL")
        self.engine = None
        self.SessionLocal = None

        self._initialize_engine()

    def _initialize_engine(self):
        """Initialize the SQLAlchemy engine"""
        if not self.database_url:
            raise RuntimeError("DATABASE_URL not set in environment")

        try:
            if self.database_url.startswith("sqlite"):
                # In-memory SQLite must share one connection across threads
                self.engine = create_engine(
                    self.database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                    echo=False
                )
            else:
                self.engine = create_engine(
                    self.database_url,
                    pool_size=10,
                    max_overflow=20,
                    pool_pre_ping=True,  # Verify connections before using
                    pool_recycle=3600,  # Recycle connections after 1 hour
                    echo=False
                )

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
                bind=self.engine
            )
            logger.info("Audit database engine initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database engine: {e}")
            raise

    def create_tables(self):
        """Create all tables that do not exist yet"""
        Base.metadata.create_all(self.engine)
        logger.info("Audit tables created")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions

        Usage:
            with db_manager.get_session() as session:
                audit = session.get(AccessibilityAudit, audit_id)

        Yields:
            Database session (committed on success, rolled back on error)
        """
        session = self.SessionLocal()

        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def get_connection_health(self) -> dict:
        """
        Check database connection health with latency measurement

        Returns:
            dict with keys: connected (bool), latency_ms (float), error (str)
        """
        import time

        result = {
            'connected': False,
            'latency_ms': None,
            'error': None
        }

        try:
            start_time = time.time()
            with self.get_session() as session:
                session.execute(text("SELECT 1"))

            latency = (time.time() - start_time) * 1000  # Convert to ms
            result['connected'] = True
            result['latency_ms'] = round(latency, 2)

        except Exception as e:
            result['connected'] = False
            result['error'] = str(e)
            logger.error(f"Connection health check failed: {e}")

        return result

    def close(self):
        """Close all database connections"""
        if self.engine:
            self.engine.dispose()
            logger.info("Audit database engine closed")


# Global instance
_db_manager = None


def get_db_manager() -> DatabaseManager:
    """Get the global DatabaseManager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
