"""Tests for the application object and settings."""

import pytest
from fastapi.testclient import TestClient
from fleetgate.entrypoints.api.app import app
from fleetgate.entrypoints.api.deps import Settings


def test_health_check() -> None:
    """Should report healthy without touching the database."""
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_routes_mounted_under_api_prefix() -> None:
    """Should serve the auth, users and companies routers under /api/v1."""
    paths = {route.path for route in app.routes}

    assert "/api/v1/auth/signin" in paths
    assert "/api/v1/users/{user_id}/role" in paths
    assert "/api/v1/companies/switch" in paths


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should fall back to local defaults."""
        monkeypatch.delenv("FLEETGATE_STATE_PATH", raising=False)
        monkeypatch.delenv("FLEETGATE_MAX_VERIFY_ATTEMPTS", raising=False)

        settings = Settings()

        assert settings.state_path == ".fleetgate/state"
        assert settings.max_verify_attempts == 3

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should read overrides from the environment."""
        monkeypatch.setenv("DATABASE_URL", "postgresql://db:5432/fleet")
        monkeypatch.setenv("FLEETGATE_MAX_VERIFY_ATTEMPTS", "5")

        settings = Settings()

        assert settings.database_url == "postgresql://db:5432/fleet"
        assert settings.max_verify_attempts == 5
