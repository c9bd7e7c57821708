from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
GUEST_KEY = "guest"
TASKS_KEY = "tasks"
PROJECTS_KEY = "projects"


class LocalStorage:
    """
    String key/value map persisted as a single JSON file.

    Every write rewrites the whole file. Write failures (disk full, permissions)
    propagate to the caller.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._items: dict[str, str] = {}
        if self._path.exists():
            raw = self._path.read_text(encoding="utf-8")
            self._items = {str(k): str(v) for k, v in json.loads(raw or "{}").items()}
        logger.debug("LocalStorage ready path=%s keys=%s", self._path, sorted(self._items))

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self._items.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(self._items, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self._path)
