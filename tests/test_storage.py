"""Tests for widget key-value storage."""

from __future__ import annotations

import json
import logging

from pathlib import Path

import pytest

from embedframe.storage import (
    ANONYMOUS_USERNAME_KEY,
    SESSION_TOKEN_KEY,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    StoragePorts,
)


# =============================================================================
# Store Tests
# =============================================================================


class TestMemoryStore:
    """Test the in-memory store."""

    def test_get_set_remove(self) -> None:
        """Values can be stored, read and removed."""
        store = MemoryStore()
        assert store.get("a") is None
        store.set("a", "1")
        assert store.get("a") == "1"
        store.remove("a")
        assert store.get("a") is None

    def test_remove_absent_key(self) -> None:
        """Removing an absent key is not an error."""
        MemoryStore().remove("missing")

    def test_initial_values_are_copied(self) -> None:
        """The initial mapping is not shared."""
        initial = {"a": "1"}
        store = MemoryStore(initial)
        store.set("b", "2")
        assert initial == {"a": "1"}
        assert store.keys() == ["a", "b"]

    @pytest.mark.parametrize(("key", "value"), [("a", 1), (1, "a"), ("a", None)])
    def test_rejects_non_strings(self, key: object, value: object) -> None:
        """Keys and values must be strings."""
        with pytest.raises(TypeError):
            MemoryStore().set(key, value)  # type: ignore[arg-type]

    def test_is_key_value_store(self) -> None:
        """MemoryStore implements the store interface."""
        assert isinstance(MemoryStore(), KeyValueStore)


class TestJsonFileStore:
    """Test the file-backed store."""

    def test_survives_reload(self, tmp_path: Path) -> None:
        """Values written by one instance are read by the next."""
        path = tmp_path / "storage.json"
        JsonFileStore(path).set(SESSION_TOKEN_KEY, "tok")

        assert JsonFileStore(path).get(SESSION_TOKEN_KEY) == "tok"

    def test_remove_persists(self, tmp_path: Path) -> None:
        """Removals are written to disk."""
        path = tmp_path / "storage.json"
        store = JsonFileStore(path)
        store.set("a", "1")
        store.set("b", "2")
        store.remove("a")

        assert json.loads(path.read_text(encoding="utf-8")) == {"b": "2"}

    def test_no_file_until_first_write(self, tmp_path: Path) -> None:
        """Reading alone does not create the file."""
        path = tmp_path / "nested" / "storage.json"
        store = JsonFileStore(path)
        assert store.get("a") is None
        assert not path.exists()

        store.set("a", "1")
        assert path.exists()
        assert not path.with_name("storage.json.tmp").exists()

    def test_rejects_non_object_file(self, tmp_path: Path) -> None:
        """A file that does not hold an object is an error."""
        path = tmp_path / "storage.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            JsonFileStore(path)


# =============================================================================
# StoragePorts Tests
# =============================================================================


class TestStoragePorts:
    """Test the application's storage requests."""

    def test_write_to_local_storage(self) -> None:
        """Arbitrary keys are written as given."""
        store = MemoryStore()
        ports = StoragePorts(store)
        ports.write_to_local_storage(ANONYMOUS_USERNAME_KEY, "guest-3")
        assert store.get(ANONYMOUS_USERNAME_KEY) == "guest-3"
        assert ports.store is store

    def test_remove_token_only_removes_token(self) -> None:
        """remove_token() forgets the session token and nothing else."""
        store = MemoryStore({SESSION_TOKEN_KEY: "tok", ANONYMOUS_USERNAME_KEY: "guest"})
        StoragePorts(store).remove_token()
        assert store.keys() == [ANONYMOUS_USERNAME_KEY]

    def test_remove_token_without_token(self) -> None:
        """Removing an absent token is harmless."""
        StoragePorts(MemoryStore()).remove_token()

    def test_sensitive_values_not_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Token and username values stay out of debug output."""
        ports = StoragePorts(MemoryStore(), session_token_key="tk", anonymous_username_key="anon")
        with caplog.at_level(logging.DEBUG, logger="embedframe"):
            ports.write_to_local_storage("tk", "tok-secret")
            ports.write_to_local_storage("anon", "guest-secret")
            ports.write_to_local_storage("theme", "dark")

        assert "tok-secret" not in caplog.text
        assert "guest-secret" not in caplog.text
        assert "theme='dark'" in caplog.text
