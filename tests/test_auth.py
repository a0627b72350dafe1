# tests/test_auth.py

"""
Tests for bearer-token authentication (Supabase Auth → Principal).
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch, Mock

from dependencies.auth import get_current_user


@pytest.fixture
def real_auth_client(app):
    """Client that goes through get_current_user instead of the test override."""
    app.dependency_overrides.pop(get_current_user, None)
    with TestClient(app) as test_client:
        yield test_client


def mock_auth(user_id="pm-1"):
    mock_client = Mock()
    mock_client.auth.get_user.return_value = Mock(user=Mock(id=user_id))
    return mock_client


def test_missing_bearer_token(real_auth_client: TestClient):
    response = real_auth_client.get("/requests")
    assert response.status_code in (401, 403)


def test_valid_token_loads_principal(real_auth_client: TestClient):
    with patch("dependencies.auth.get_supabase_client", return_value=mock_auth("pm-1")):
        response = real_auth_client.get(
            "/access/properties/prop-1",
            headers={"Authorization": "Bearer good-token"},
        )
    assert response.status_code == 200
    assert response.json()["role"] == "propertymanager"
    assert response.json()["has_access"] is True


def test_invalid_token(real_auth_client: TestClient):
    mock_client = Mock()
    mock_client.auth.get_user.side_effect = Exception("JWT expired")
    with patch("dependencies.auth.get_supabase_client", return_value=mock_client):
        response = real_auth_client.get("/requests", headers={"Authorization": "Bearer stale"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired authentication token"


def test_token_for_user_without_profile(real_auth_client: TestClient):
    with patch("dependencies.auth.get_supabase_client", return_value=mock_auth("nobody")):
        response = real_auth_client.get("/requests", headers={"Authorization": "Bearer ok"})
    assert response.status_code == 401


def test_auth_not_configured(real_auth_client: TestClient):
    with patch("dependencies.auth.get_supabase_client", return_value=None):
        response = real_auth_client.get("/requests", headers={"Authorization": "Bearer ok"})
    assert response.status_code == 500
