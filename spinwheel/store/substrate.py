"""
Persistence substrates - Where the store's snapshot actually lives.

A substrate is a dumb key/value space of JSON-compatible mappings:
- get(namespace) returns the mapping or None
- set(namespace, data) returns True on success

Substrates raise PersistenceError when the backing medium fails.
The EntityStore catches it; nothing above the store sees it.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any
import json
import os

from ..engine_core.errors import PersistenceError


class Substrate(ABC):
    """Interface for namespaced snapshot storage."""

    @abstractmethod
    def get(self, namespace: str) -> dict[str, Any] | None:
        """Return the stored mapping for namespace, or None if absent."""
        pass

    @abstractmethod
    def set(self, namespace: str, data: dict[str, Any]) -> bool:
        """Replace the stored mapping for namespace."""
        pass

    @abstractmethod
    def remove(self, namespace: str):
        """Forget namespace entirely."""
        pass


class MemorySubstrate(Substrate):
    """
    In-process substrate.

    Stores deep copies so callers can't mutate the stored snapshot
    through a reference they still hold.
    """

    def __init__(self, initial: dict[str, dict[str, Any]] | None = None):
        self._data: dict[str, dict[str, Any]] = deepcopy(initial) if initial else {}

    def get(self, namespace: str) -> dict[str, Any] | None:
        data = self._data.get(namespace)
        return deepcopy(data) if data is not None else None

    def set(self, namespace: str, data: dict[str, Any]) -> bool:
        self._data[namespace] = deepcopy(data)
        return True

    def remove(self, namespace: str):
        self._data.pop(namespace, None)


class JsonFileSubstrate(Substrate):
    """
    One JSON file per namespace under a data directory.

    Usage:
        substrate = JsonFileSubstrate("~/.spinwheel")
        store = EntityStore(substrate)

    Writes go to a temporary file first and are moved into place, so a
    crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, data_dir: str | Path | None = None):
        if data_dir is None:
            data_dir = Path.home() / ".spinwheel"
        self.data_dir = Path(data_dir).expanduser()

    def get(self, namespace: str) -> dict[str, Any] | None:
        path = self._path(namespace)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read {path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{path} does not hold a JSON object")
        return data

    def set(self, namespace: str, data: dict[str, Any]) -> bool:
        path = self._path(namespace)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Could not write {path}: {e}") from e
        return True

    def remove(self, namespace: str):
        try:
            self._path(namespace).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not remove namespace {namespace}: {e}") from e

    def _path(self, namespace: str) -> Path:
        return self.data_dir / f"{namespace}.json"
