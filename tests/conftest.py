"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path

import jwt
import pytest
from flask.testing import FlaskClient

from app.adapters.database import Database, run_migrations
from app.adapters.sqlite_repository import SqliteTaskRepository
from app.core.config.settings import AppConfig, AppState
from app.ui.web.server import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
TEST_AUDIENCE = "service-template"


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        database_url=f"sqlite:///{tmp_path / 'tasks.db'}",
        jwt_secret=TEST_SECRET,
        jwt_audience=TEST_AUDIENCE,
    )


@pytest.fixture
def database(app_config: AppConfig) -> Iterator[Database]:
    db = Database(app_config.database_url, app_config.database)
    run_migrations(db)
    yield db
    db.close()


@pytest.fixture
def repo(database: Database) -> SqliteTaskRepository:
    return SqliteTaskRepository(database)


@pytest.fixture
def app_state(app_config: AppConfig, repo: SqliteTaskRepository) -> AppState:
    return AppState(config=app_config, task_repository=repo)


@pytest.fixture
def client(app_state: AppState) -> FlaskClient:
    """Create a Flask test client."""
    app = create_app(app_state)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build signed bearer tokens; ``sub=None`` gives a service token."""

    def _make(
        sub: uuid.UUID | str | None = None,
        *,
        audience: str = TEST_AUDIENCE,
        secret: str = TEST_SECRET,
        expires_in: int = 3600,
    ) -> str:
        claims: dict = {"aud": audience, "exp": int(time.time()) + expires_in}
        if sub is not None:
            claims["sub"] = str(sub)
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token: Callable[..., str], user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}
