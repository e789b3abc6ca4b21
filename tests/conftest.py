"""
Shared fixtures.

Every test gets its own SQLite file under `tmp_path` and an application
built from explicit settings, so nothing leaks between tests.
"""

from contextlib import ExitStack

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from jobmarket.auth.jwt import TokenCodec
from jobmarket.auth.password import PasswordHasher
from jobmarket.core.config import Settings
from jobmarket.core.database import Database
from jobmarket.main import create_app

PASSWORD = "Passw0rd"


@pytest.fixture
def settings(tmp_path):
    """Test settings with cheap Argon2 parameters."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_access_secret="test-access-secret",
        jwt_refresh_secret="test-refresh-secret",
        trusted_hosts="*",
        argon2_time_cost=1,
        argon2_memory_cost=8,
        argon2_parallelism=1,
        upload_dir=tmp_path / "uploads",
    )


@pytest.fixture
def make_client(settings):
    """Build a client for an app with some settings overridden."""
    with ExitStack() as stack:

        def _make(**overrides):
            app = create_app(settings.model_copy(update=overrides))
            return stack.enter_context(TestClient(app))

        yield _make


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register(client):
    """Register a user through the API and return the response data."""

    def _register(email, role="applicant", password=PASSWORD, api=None, **extra):
        body = {
            "first_name": "Test",
            "last_name": "User",
            "email": email,
            "password": password,
            "role": role,
            **extra,
        }
        response = (api or client).post("/v1/auth/register", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register


# =============================================================================
# Component fixtures for async unit tests
# =============================================================================

@pytest.fixture
def codec(settings):
    return TokenCodec.from_settings(settings)


@pytest.fixture
def hasher(settings):
    return PasswordHasher.from_settings(settings)


@pytest_asyncio.fixture
async def db(settings):
    """A session on a freshly created database."""
    database = Database(settings.database_url)
    await database.init()
    async with database.session_maker() as session:
        yield session
    await database.close()
