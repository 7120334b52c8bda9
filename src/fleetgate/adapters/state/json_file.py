"""Local state persisted as a single JSON document."""

from __future__ import annotations

import json
import os
from pathlib import Path

import structlog

logger = structlog.get_logger()


class JsonFileStateStore:
    """Key/value state kept in one JSON file.

    Every write is a read-modify-write of the whole document, replaced
    atomically on disk. There is one writer per file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return str(value) if value is not None else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("local_state_corrupt", path=str(self.path))
            return {}
        if not isinstance(data, dict):
            logger.warning("local_state_corrupt", path=str(self.path))
            return {}
        return data

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self.path)
