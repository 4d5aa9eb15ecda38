"""
Root test configuration and fixtures.

Provides database fixtures, user/document factories and a deferred job
executor so tests decide when background ingestion work runs.
"""

import asyncio
import os
import random
from typing import Generator, List

import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Set test environment before settings are loaded
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-0123456789")


def _get_test_database_url() -> str:
    """Get database URL for tests."""
    database_url = os.getenv("TEST_DATABASE_URL")

    if database_url:
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)
        return database_url

    # Default to SQLite for unit tests
    return "sqlite:///:memory:"


def _is_postgres() -> bool:
    return _get_test_database_url().startswith("postgresql")


@pytest.fixture(scope="session")
def db_engine():
    """
    Create database engine for tests.

    Uses PostgreSQL if TEST_DATABASE_URL is set, otherwise SQLite in-memory.
    """
    database_url = _get_test_database_url()

    if _is_postgres():
        try:
            engine = create_engine(database_url, pool_pre_ping=True)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            pytest.skip(f"PostgreSQL not available. Error: {e}")
    else:
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    from docflow.models.registry import Base

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Create database session with transaction rollback for test isolation.

    Services commit freely; everything is rolled back after the test.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=connection)
    session = SessionLocal()

    if _is_postgres():
        nested = connection.begin_nested()

        @event.listens_for(session, "after_transaction_end")
        def restart_savepoint(session, transaction):
            nonlocal nested
            if transaction.nested and not transaction._parent.nested:
                nested = connection.begin_nested()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "security: mark test as security-focused")
    config.addinivalue_line("markers", "slow: mark test as slow-running")


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_user(db_session):
    """
    Factory fixture that creates users.

    Usage:
        owner = make_user("owner@example.com", roles=["editor"])
    """
    from docflow.models.user import User

    counter = {"n": 0}

    def _make(email: str = None, roles: List[str] = None) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash="not-a-real-hash",
            roles=roles or ["editor"],
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_document(db_session):
    """Factory fixture that creates documents owned by a user."""
    from docflow.models.document import Document

    def _make(owner, title: str = "Quarterly invoice", **kwargs) -> Document:
        document = Document(
            title=title,
            created_by_id=owner.id,
            file_name=kwargs.pop("file_name", "stored.pdf"),
            original_file_name=kwargs.pop("original_file_name", "invoice.pdf"),
            file_path=kwargs.pop("file_path", "/tmp/docflow/stored.pdf"),
            mime_type=kwargs.pop("mime_type", "application/pdf"),
            **kwargs,
        )
        db_session.add(document)
        db_session.commit()
        return document

    return _make


# =============================================================================
# Ingestion execution
# =============================================================================


class DeferredExecutor:
    """JobExecutor stand-in that holds submitted coroutines until run."""

    def __init__(self):
        self.pending = []
        self.names = []

    def submit(self, coro, name=None):
        self.pending.append(coro)
        self.names.append(name)

    async def run_pending(self):
        while self.pending:
            coro = self.pending.pop(0)
            await coro

    def run_all(self):
        asyncio.run(self.run_pending())

    def discard(self):
        for coro in self.pending:
            coro.close()
        self.pending.clear()


@pytest.fixture
def deferred_executor():
    executor = DeferredExecutor()
    yield executor
    executor.discard()


@pytest.fixture
def processing_service():
    """Simulated processing without delays and with a fixed random seed."""
    from docflow.processing.service import ProcessingService

    return ProcessingService(rng=random.Random(42), simulate_delays=False)


@pytest.fixture
def orchestrator(db_session, processing_service, deferred_executor):
    from docflow.ingestion.jobs.orchestrator import JobOrchestrator

    return JobOrchestrator(
        db_session,
        processing_service=processing_service,
        executor=deferred_executor,
        step_delay_seconds=0,
    )

