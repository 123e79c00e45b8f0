"""Pytest configuration and shared fixtures."""

import time
from typing import Callable, Dict

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from policy_assistant.core.config import (
    AuthSettings,
    DatabaseSettings,
    PipelineSettings,
    Settings,
    StorageSettings,
)
from policy_assistant.core.database import DatabaseClient
from policy_assistant.main import create_app

TERMINAL_QUERY_STATUSES = {"completed", "error"}
TERMINAL_DOCUMENT_STATUSES = {"ready", "error"}


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite database and upload dir.

    Simulated pipeline latencies are disabled so background runs finish
    quickly.
    """
    return Settings(
        environment="test",
        db=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
        auth=AuthSettings(jwt_secret="test-secret", bcrypt_rounds=4),
        storage=StorageSettings(upload_dir=str(tmp_path / "uploads"), max_file_size=64 * 1024),
        pipeline=PipelineSettings(parse_latency_seconds=0.0, decision_latency_seconds=0.0),
    )


@pytest_asyncio.fixture
async def db_client(test_settings):
    """Database client with a freshly created schema."""
    client = DatabaseClient.from_settings(test_settings.db)
    await client.create_tables()
    yield client
    await client.disconnect()


@pytest.fixture
def test_client(test_settings):
    """FastAPI test client running the application lifespan."""
    app = create_app(test_settings)
    with TestClient(app) as client:
        yield client


def register_user(
    client: TestClient,
    email: str = "alice@example.com",
    password: str = "secret123",
    name: str = "Alice",
) -> Dict[str, str]:
    """Register an account and return its bearer auth headers."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, response.text
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_client) -> Dict[str, str]:
    return register_user(test_client)


def poll_until(
    fetch: Callable[[], dict],
    terminal_statuses: set,
    timeout: float = 5.0,
    interval: float = 0.05,
) -> dict:
    """Call ``fetch`` until the returned record leaves its transient status."""
    deadline = time.monotonic() + timeout
    record = fetch()
    while record["status"] not in terminal_statuses and time.monotonic() < deadline:
        time.sleep(interval)
        record = fetch()
    return record


@pytest.fixture
def wait_for_query(test_client, auth_headers):
    """Return a helper that polls a query until its run has finished."""

    def _wait(query_id: str, headers: Dict[str, str] = None) -> dict:
        def fetch() -> dict:
            response = test_client.get(
                f"/api/v1/queries/{query_id}", headers=headers or auth_headers
            )
            assert response.status_code == 200, response.text
            return response.json()["data"]["query"]

        return poll_until(fetch, TERMINAL_QUERY_STATUSES)

    return _wait


@pytest.fixture
def upload_document(test_client, auth_headers):
    """Return a helper that uploads a text policy and waits until it is processed."""

    def _upload(content: str, name: str = "policy.txt", headers: Dict[str, str] = None) -> dict:
        headers = headers or auth_headers
        response = test_client.post(
            "/api/v1/documents/upload",
            files={"document": (name, content.encode("utf-8"), "text/plain")},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        document_id = response.json()["data"]["document"]["id"]

        def fetch() -> dict:
            detail = test_client.get(f"/api/v1/documents/{document_id}", headers=headers)
            assert detail.status_code == 200, detail.text
            return detail.json()["data"]["document"]

        return poll_until(fetch, TERMINAL_DOCUMENT_STATUSES)

    return _upload


@pytest.fixture
def register():
    return register_user


@pytest.fixture
def poll():
    return poll_until
