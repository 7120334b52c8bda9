"""Client-local state stores."""

from .json_file import JsonFileStateStore
from .memory import InMemoryStateStore

__all__ = ["InMemoryStateStore", "JsonFileStateStore"]
