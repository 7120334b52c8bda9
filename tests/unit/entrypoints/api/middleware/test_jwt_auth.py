"""Tests for JWT authentication middleware."""

from typing import Annotated

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from fleetgate.core.auth.jwt import create_access_token
from fleetgate.entrypoints.api.middleware.jwt_auth import JwtContext, optional_jwt, verify_jwt

from tests.fixtures.domain_objects import NOW, make_identity


@pytest.fixture
def jwt_client() -> TestClient:
    """Create an app with one required and one optional JWT route."""
    app = FastAPI()

    @app.get("/me")
    async def me(auth: Annotated[JwtContext, Depends(verify_jwt)]) -> dict[str, str | bool]:
        return {
            "user_id": auth.user_id,
            "email": auth.email,
            "verified": auth.identity.is_email_verified,
        }

    @app.get("/maybe")
    async def maybe(auth: Annotated[JwtContext | None, Depends(optional_jwt)]) -> dict[str, bool]:
        return {"signed_in": auth is not None}

    return TestClient(app)


def test_valid_token(jwt_client: TestClient) -> None:
    """Should expose the token identity."""
    token = create_access_token(make_identity())

    response = jwt_client.get("/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == {"user_id": "user-1", "email": "user@example.com", "verified": True}


def test_missing_token(jwt_client: TestClient) -> None:
    """Should reject requests without a token."""
    response = jwt_client.get("/me")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_garbage_token(jwt_client: TestClient) -> None:
    """Should reject an undecodable token."""
    response = jwt_client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_optional_jwt(jwt_client: TestClient) -> None:
    """Should treat missing and invalid tokens as anonymous."""
    assert jwt_client.get("/maybe").json() == {"signed_in": False}
    assert jwt_client.get(
        "/maybe", headers={"Authorization": "Bearer not-a-jwt"}
    ).json() == {"signed_in": False}


def test_context_identity_round_trips_confirmation() -> None:
    """Should rebuild the confirmation timestamp."""
    context = JwtContext(
        user_id="user-1", email="a@example.com", email_confirmed_at=NOW.isoformat()
    )

    assert context.identity.email_confirmed_at == NOW
