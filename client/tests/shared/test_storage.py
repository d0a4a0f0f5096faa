"""Tests for shared/storage.py."""

import json
import logging

import pytest

from shared.storage import LocalStore


class TestLocalStore:
    def test_in_memory_store(self):
        """A store without a path keeps values in memory only."""
        store = LocalStore()
        store.set("direct_signin", True)
        assert store.get("direct_signin") is True
        assert store.path is None

    def test_values_survive_reload(self, tmp_path):
        """Values written to the file are visible to a new store."""
        path = tmp_path / "local_storage.json"
        LocalStore(path).set("auth_debug", True)

        assert LocalStore(path).get_flag("auth_debug") is True

    def test_get_flag_only_true_for_true(self, tmp_path):
        store = LocalStore(tmp_path / "store.json")
        store.set("a", "true")
        store.set("b", 1)
        store.set("c", True)

        assert store.get_flag("a") is False
        assert store.get_flag("b") is False
        assert store.get_flag("c") is True
        assert store.get_flag("missing") is False

    def test_remove_several_keys(self, tmp_path):
        path = tmp_path / "store.json"
        store = LocalStore(path)
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)

        store.remove("a", "b", "missing")

        assert store.keys() == ["c"]
        assert json.loads(path.read_text()) == {"c": 3}

    def test_clear_removes_everything(self, tmp_path):
        path = tmp_path / "store.json"
        store = LocalStore(path)
        store.set("a", 1)
        store.set("theme", "dark")

        store.clear()

        assert store.keys() == []
        assert LocalStore(path).keys() == []

    def test_corrupt_file_is_discarded(self, tmp_path):
        """An unreadable store starts empty instead of failing."""
        path = tmp_path / "store.json"
        path.write_text("{not json")

        store = LocalStore(path)

        assert store.keys() == []
        store.set("a", 1)
        assert json.loads(path.read_text()) == {"a": 1}

    def test_non_object_file_is_discarded(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2, 3]")

        assert LocalStore(path).keys() == []

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "store.json"
        LocalStore(path).set("a", 1)
        assert path.exists()
        assert not path.with_suffix(".json.tmp").exists()


class TestUnwritableStore:
    """A store whose file cannot be written keeps working in memory."""

    @pytest.fixture
    def blocked_path(self, tmp_path):
        # The parent "directory" is a regular file, so every write fails
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        return blocker / "store.json"

    def test_set_keeps_value_in_memory(self, blocked_path):
        store = LocalStore(blocked_path)

        store.set("direct_signin", True)

        assert store.get_flag("direct_signin") is True
        assert not blocked_path.exists()

    def test_remove_and_clear_do_not_raise(self, blocked_path):
        store = LocalStore(blocked_path)
        store.set("a", 1)
        store.set("b", 2)

        store.remove("a")
        assert store.keys() == ["b"]
        store.clear()
        assert store.keys() == []

    def test_write_failure_logged(self, blocked_path, caplog):
        with caplog.at_level(logging.WARNING, logger="shared.storage"):
            LocalStore(blocked_path).set("auth_debug", True)

        assert "Could not write local store" in caplog.text
