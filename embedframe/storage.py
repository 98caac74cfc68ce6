"""Persisted key-value storage used by the embedded widget.

Provides the KeyValueStore ABC (the ``localStorage`` contract: string keys,
string values, survives reloads) plus in-memory and JSON-file backends, and
the two storage requests the widget application issues.
"""

from __future__ import annotations

import json

from abc import ABC, abstractmethod
from pathlib import Path

from .log import debug, describe_storage_write


SESSION_TOKEN_KEY = "sessionToken"
ANONYMOUS_USERNAME_KEY = "anonymousUsername"


def _check_str(name: str, value: object) -> None:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")


class KeyValueStore(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``. Removing an absent key is not an error."""


class MemoryStore(KeyValueStore):
    """In-memory store for tests and single-page sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_str("key", key)
        _check_str("value", value)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        """Return the stored keys in insertion order."""
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """Store backed by a JSON object file, rewritten on every change.

    Values survive a reload of the process, which is what ``localStorage``
    guarantees across page reloads.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the store.

        Parameters
        ----------
        path : str or Path
            JSON file holding the stored object. Created on first write.
        """
        self._path = Path(path)
        self._data: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        """Backing file path."""
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self._path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_str("key", key)
        _check_str("value", value)
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()


class StoragePorts:
    """Handlers for the widget application's outbound storage requests."""

    def __init__(
        self,
        store: KeyValueStore,
        session_token_key: str = SESSION_TOKEN_KEY,
        anonymous_username_key: str = ANONYMOUS_USERNAME_KEY,
    ) -> None:
        self._store = store
        self._session_token_key = session_token_key
        # Values under these keys identify the reader and stay out of logs
        self._sensitive_keys = frozenset({session_token_key, anonymous_username_key})

    @property
    def store(self) -> KeyValueStore:
        """The backing store."""
        return self._store

    def write_to_local_storage(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``."""
        self._store.set(key, value)
        debug(f"Stored {describe_storage_write(key, value, self._sensitive_keys)}")

    def remove_token(self) -> None:
        """Forget the session token."""
        self._store.remove(self._session_token_key)
        debug(f"Removed '{self._session_token_key}' from storage")
