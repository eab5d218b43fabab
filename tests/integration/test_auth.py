"""Integration tests for JWT authentication and per-action permissions.

Validates:
  - /health is public (plain Django view, no DRF).
  - Protected DRF endpoints return 401 without a valid token.
  - A token issued by SimpleJWT is accepted.
  - An authenticated user without the action's permission gets 403.
"""

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

pytestmark = pytest.mark.integration

User = get_user_model()


class TestPublicEndpoints:
    """Health check must remain accessible without credentials."""

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestProtectedEndpoints:
    """All DRF endpoints require a valid JWT by default (Fail Closed)."""

    def test_no_token_returns_401(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")

    def test_valid_token_returns_caller(self, api_client):
        user = User.objects.create_user(username="clerk", password="clerk-pass")
        token = RefreshToken.for_user(user).access_token
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        assert response.json()["username"] == "clerk"
        assert response.json()["permissions"] == []


class TestActionPermissions:
    def test_missing_permission_returns_403(self, plain_client):
        response = plain_client.get("/api/v1/orders/")
        assert response.status_code == 403

    def test_granted_permission_allows_action(self):
        user = User.objects.create_user(username="viewer", password="viewer-pass")
        user.user_permissions.add(
            Permission.objects.get(codename="view_order", content_type__app_label="orders")
        )
        client = APIClient()
        client.force_authenticate(user=user)

        response = client.get("/api/v1/orders/")

        assert response.status_code == 200

    def test_permission_is_checked_per_action(self):
        user = User.objects.create_user(username="viewer2", password="viewer-pass")
        user.user_permissions.add(
            Permission.objects.get(codename="view_order", content_type__app_label="orders")
        )
        client = APIClient()
        client.force_authenticate(user=user)

        response = client.post("/api/v1/orders/", {}, format="json")

        assert response.status_code == 403

    def test_superuser_lists_every_permission(self, auth_client):
        response = auth_client.get("/api/v1/me")
        assert response.status_code == 200
        assert response.json()["is_superuser"] is True
