"""Fixtures for API tests."""

from collections.abc import AsyncIterator
from typing import Annotated

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from fleetgate.adapters.state import InMemoryStateStore
from fleetgate.core.auth.jwt import create_access_token
from fleetgate.core.context import AccessSession, Platform
from fleetgate.entrypoints.api.middleware.guard import (
    ClientEffects,
    get_access_session,
    get_client_effects,
)
from fleetgate.entrypoints.api.routes import api_router

from tests.fixtures.domain_objects import make_identity


@pytest.fixture
def app(mock_platform: Platform, local_state: InMemoryStateStore) -> FastAPI:
    """Create test app whose access sessions run over the mock platform."""
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")

    async def access_session_override(
        effects: Annotated[ClientEffects, Depends(get_client_effects)],
    ) -> AsyncIterator[AccessSession]:
        session = AccessSession(mock_platform, local_state, effects, effects, effects)
        await session.start()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_access_session] = access_session_override
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Bearer headers for the sample identity."""
    return {"Authorization": f"Bearer {create_access_token(make_identity())}"}
