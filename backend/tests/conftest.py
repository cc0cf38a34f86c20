import os
import tempfile

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine
from starlette.testclient import TestClient

# Set up test config before any app imports
_tmpdir = tempfile.mkdtemp()

_test_config_content = f"""\
database:
  url: "sqlite:///:memory:"
logging:
  level: "WARNING"
  file: "{_tmpdir}/test.log"
security:
  secret_key: "test-secret-key-that-is-long-enough-for-hs256"
  bcrypt_rounds: 4
  login_rate_limit: "1000/minute"
  cors_origins:
    - "http://localhost"
"""

from pathlib import Path

_test_config_path = Path(_tmpdir) / "config.yaml"
_test_config_path.write_text(_test_config_content)
os.environ["APP_CONFIG_PATH"] = str(_test_config_path)

from tramdoc.core.config import get_config

get_config.cache_clear()

from tramdoc.core.db import get_session
from tramdoc.main import app

# Ensure all models are registered
from tramdoc.models.book import *  # noqa: F401, F403
from tramdoc.models.note import *  # noqa: F401, F403
from tramdoc.models.user import *  # noqa: F401, F403


@pytest.fixture(name="engine")
def engine_fixture():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(engine):
    def override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def register_and_login(client, email="reader@test.com", username="reader", password="secret123"):
    client.post("/api/auth/register", json={"email": email, "username": username, "password": password})
    response = client.post("/api/auth/login", data={"username": email, "password": password})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(client):
    return register_and_login(client)


@pytest.fixture(name="other_headers")
def other_headers_fixture(client):
    return register_and_login(client, email="other@test.com", username="other")
