"""Database adapters."""

from .app_db import AppDatabase

__all__ = ["AppDatabase"]
