"""Persisted per-plugin properties (the host page's local storage analogue)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class PropertyStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryPropertyStore:
    """Dict-backed store; contents live as long as the object."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[str(key)] = str(value)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)


class JsonFilePropertyStore:
    """Flat JSON object on disk, rewritten on every ``set``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._values: Dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Property store %s unreadable; starting empty", self._path, exc_info=True)
            return {}
        if not isinstance(data, dict):
            logger.warning("Property store %s is not a JSON object; starting empty", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[str(key)] = str(value)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)


def property_key(tag: str, name: str) -> str:
    return f"{tag}.{name}"


__all__ = ["PropertyStore", "MemoryPropertyStore", "JsonFilePropertyStore", "property_key"]
