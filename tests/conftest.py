import os
from datetime import date

import pytest
from fastapi.testclient import TestClient

# Memory backend and cheap hashing for tests; must be set before the app is imported
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from task_tracker.main import app  # noqa: E402
from task_tracker.repositories import (  # noqa: E402
    InMemoryTaskRepository,
    InMemoryUserRepository,
    get_task_repository,
    get_user_repository,
)
from task_tracker.services import get_today  # noqa: E402

TODAY = date(2024, 1, 10)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def task_repo():
    return InMemoryTaskRepository()


@pytest.fixture
def client(user_repo, task_repo, today):
    """TestClient over fresh in-memory storage with a fixed current date."""
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_task_repository] = lambda: task_repo
    app.dependency_overrides[get_today] = lambda: today
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def signup(client, email, password="password123"):
    """Register a user and return (user dict, auth headers)."""
    res = client.post("/api/v1/auth/signup", json={"email": email, "password": password})
    assert res.status_code == 201, res.text
    body = res.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture
def register(client):
    def _register(email, password="password123"):
        return signup(client, email, password)

    return _register


@pytest.fixture
def alice(client):
    return signup(client, "alice@example.com")


@pytest.fixture
def bob(client):
    return signup(client, "bob@example.com")


@pytest.fixture
def carol(client):
    return signup(client, "carol@example.com")
