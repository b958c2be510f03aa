# tests/conftest.py
from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from claims_portal.api.client import ApiClient
from claims_portal.mock_api.main import create_app
from claims_portal.mock_api.store import DEFAULT_PASSWORD, seeded_store


@pytest.fixture
def mock_session():
    """A requests-compatible session whose responses are set per test."""
    return MagicMock()


@pytest.fixture
def api_client(mock_session):
    return ApiClient(base_url="http://api.test", session=mock_session, timeout=5)


@pytest.fixture
def store():
    return seeded_store()


@pytest.fixture
def app(store):
    return create_app(store)


@pytest.fixture
def test_client(app):
    return TestClient(app)


@pytest.fixture
def backend(test_client):
    """Factory: an ApiClient logged in as ``email`` against the mock backend."""
    def login(email: Optional[str] = None) -> ApiClient:
        client = ApiClient(base_url="http://testserver", session=test_client)
        if email is not None:
            result = client.auth.login(email, DEFAULT_PASSWORD)
            client.token = result.token
        return client

    return login


@pytest.fixture
def auth_headers(test_client):
    """Factory: bearer headers for a seeded user."""
    def headers(email: str) -> dict:
        response = test_client.post("/auth/login", json={"email": email, "password": DEFAULT_PASSWORD})
        assert response.status_code == 200
        return {"Authorization": f"Bearer {response.json()['data']['token']}"}

    return headers
