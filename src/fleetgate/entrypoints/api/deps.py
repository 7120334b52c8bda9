"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Request

from fleetgate.adapters.db.app_db import AppDatabase
from fleetgate.core.guard import DEFAULT_MAX_VERIFY_ATTEMPTS

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/fleetgate")
        self.frontend_url = os.getenv("FRONTEND_URL", "http://localhost:3000")

        # Per-user local state (active company, onboarding flags)
        self.state_path = os.getenv("FLEETGATE_STATE_PATH", ".fleetgate/state")

        self.max_verify_attempts = int(
            os.getenv("FLEETGATE_MAX_VERIFY_ATTEMPTS", str(DEFAULT_MAX_VERIFY_ATTEMPTS))
        )


settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - open and close the platform database."""
    app_db = AppDatabase(settings.database_url)
    await app_db.connect()

    app.state.app_db = app_db
    app.state.settings = settings
    logger.info("fleetgate_started", frontend_url=settings.frontend_url)

    yield

    await app_db.close()
    logger.info("fleetgate_stopped")


def get_app_db(request: Request) -> AppDatabase:
    """Get the platform database from app state."""
    app_db: AppDatabase = request.app.state.app_db
    return app_db


def get_settings(request: Request) -> Settings:
    """Get settings from app state, falling back to the module settings."""
    return getattr(request.app.state, "settings", settings)
