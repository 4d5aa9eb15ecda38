"""
Fixtures for route tests.

Routes run against the per-test database session with real tokens signed
by a test TokenService.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docflow.auth.context import get_token_service
from docflow.auth.token_service import TokenBlacklist, TokenConfig, TokenService
from docflow.database.session import get_db_session

TEST_JWT_SECRET = "route-test-secret-0123456789abcdef0123456789"


@pytest.fixture
def token_service():
    return TokenService(
        config=TokenConfig(jwt_secret=TEST_JWT_SECRET),
        blacklist=TokenBlacklist(),
    )


@pytest.fixture
def auth_headers(token_service):
    """Build Authorization headers for a user."""

    def _headers(user):
        issued = token_service.issue(user.id, user.email, user.role_names)
        return {"Authorization": f"Bearer {issued.access_token}"}

    return _headers


@pytest.fixture
def make_client(db_session, token_service):
    """Create a TestClient for the given routers with database and auth overridden."""

    def _make(*routers, overrides=None):
        app = FastAPI()
        for router in routers:
            app.include_router(router)
        app.dependency_overrides[get_db_session] = lambda: db_session
        app.dependency_overrides[get_token_service] = lambda: token_service
        for dependency, override in (overrides or {}).items():
            app.dependency_overrides[dependency] = override
        return TestClient(app)

    return _make
