"""
Database session management with connection pooling.

Provides a shared FastAPI dependency for database sessions across all routes,
and the session factory used by background ingestion jobs.

Usage:
    from docflow.database.session import get_db_session

    @router.get("/documents")
    async def list_documents(db: Session = Depends(get_db_session)):
        return db.query(Document).all()
"""

import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool
from fastapi import HTTPException, status

from docflow.config.settings import get_settings

logger = logging.getLogger(__name__)

# Module-level engine singleton
_engine = None
_SessionLocal = None


def _get_database_url() -> str:
    database_url = get_settings().database_url
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")
    return database_url


def get_engine():
    """
    Get or create the database engine singleton.

    PostgreSQL uses a QueuePool (5 connections, 10 overflow, pre-ping);
    other backends (SQLite for local runs) use SQLAlchemy defaults.
    """
    global _engine
    if _engine is None:
        try:
            database_url = _get_database_url()
            if database_url.startswith("postgresql"):
                _engine = create_engine(
                    database_url,
                    poolclass=QueuePool,
                    pool_size=5,
                    max_overflow=10,
                    pool_pre_ping=True,
                    pool_recycle=1800,
                )
            else:
                _engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                )
            logger.info("Database engine created", extra={"dialect": _engine.dialect.name})
        except ValueError as e:
            logger.error("Failed to create database engine", extra={"error": str(e)})
            raise
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory singleton."""
    global _SessionLocal
    if _SessionLocal is None:
        engine = get_engine()
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=engine
        )
    return _SessionLocal


async def get_db_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Creates a new session for each request and ensures proper cleanup.
    Raises HTTP 503 if database is not configured.
    """
    try:
        SessionLocal = get_session_factory()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured"
        )

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
