"""
Save Storage Backends

Key-value stores holding serialized save documents:
- In-memory: process-local, lost on exit
- File: one JSON file per key inside a directory
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from ..config.settings import PersistenceSettings, SaveBackendType

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Abstract interface for save storage.

    Implementations may raise OSError (or subclasses) on I/O failure;
    callers at the save boundary are responsible for catching it.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Stored text for key, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key; missing keys are ignored."""
        pass

    def exists(self, key: str) -> bool:
        return self.get(key) is not None


class InMemoryStore(KeyValueStore):
    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._data


class FileStore(KeyValueStore):
    """Stores each key as ``<directory>/<key>.json``."""

    _SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not self._SAFE_KEY.match(key):
            raise ValueError(f"Invalid save key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # Atomic replace
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def exists(self, key: str) -> bool:
        return self._path(key).exists()


def create_store(settings: PersistenceSettings) -> KeyValueStore:
    """Build the backend selected in settings."""
    if settings.backend == SaveBackendType.FILE:
        logger.info("Using file save storage at %s", settings.directory)
        return FileStore(settings.directory)
    return InMemoryStore()
