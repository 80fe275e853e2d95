"""
Tests for SQLite node store.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import sqlite3
import threading

import pytest

from nested_set.core.constants import NODES_TABLE
from nested_set.core.exceptions import (
    LockTimeoutError,
    StoreConnectionError,
    StoreError,
)
from nested_set.core.node import IntervalNode
from nested_set.core.store.sqlite import SQLiteNodeStore


@pytest.fixture
def temp_db_path(tmp_path):
    """Create temporary database path."""
    return tmp_path / "test.db"


class TestSQLiteStoreConnection:
    """Test SQLite store connection."""

    def test_connect_success(self, temp_db_path):
        """Test successful connection."""
        store = SQLiteNodeStore()
        store.connect({"path": str(temp_db_path)})
        assert store.db_path == temp_db_path.resolve()
        assert temp_db_path.exists()
        store.disconnect()

    def test_connect_missing_path(self):
        """Test connection without path."""
        store = SQLiteNodeStore()
        with pytest.raises(StoreConnectionError, match="path"):
            store.connect({})

    def test_connect_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "tree.db"
        store = SQLiteNodeStore()
        store.connect({"path": str(db_path)})
        assert db_path.exists()
        store.disconnect()

    def test_lock_timeout_from_config(self, temp_db_path):
        store = SQLiteNodeStore()
        store.connect({"path": str(temp_db_path), "lock_timeout": 0.5})
        assert store.lock_timeout == 0.5
        store.disconnect()

    def test_schema_created(self, sqlite_store):
        conn = sqlite3.connect(str(sqlite_store.db_path))
        try:
            tables = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        finally:
            conn.close()
        assert NODES_TABLE in tables

    def test_data_survives_reconnect(self, temp_db_path):
        store = SQLiteNodeStore()
        store.connect({"path": str(temp_db_path)})
        node = store.insert(IntervalNode(id=None, left=1, right=2, payload={"name": "kept"}))
        store.disconnect()

        reopened = SQLiteNodeStore()
        reopened.connect({"path": str(temp_db_path)})
        try:
            assert reopened.get(node.id).payload == {"name": "kept"}
        finally:
            reopened.disconnect()


class TestSQLiteStorePayload:
    """Test payload serialization."""

    def test_nested_payload(self, sqlite_store):
        payload = {"name": "Books", "tags": ["a", "b"], "meta": {"rank": 3}}
        node = sqlite_store.insert(IntervalNode(id=None, left=1, right=2, payload=payload))
        assert sqlite_store.get(node.id).payload == payload

    def test_empty_payload(self, sqlite_store):
        node = sqlite_store.insert(IntervalNode(id=None, left=1, right=2))
        assert sqlite_store.get(node.id).payload == {}

    def test_save_all_keeps_payload(self, sqlite_store):
        node = sqlite_store.insert(IntervalNode(id=None, left=1, right=2, payload={"x": 1}))
        node.left, node.right = 3, 4
        node.payload = {"x": 2}
        sqlite_store.save_all([node])
        stored = sqlite_store.get(node.id)
        assert (stored.left, stored.right) == (3, 4)
        assert stored.payload == {"x": 1}


class TestSQLiteStoreErrors:
    """Test error mapping."""

    def test_missing_parent_reference_fails_on_commit(self, sqlite_store):
        with pytest.raises(StoreError):
            with sqlite_store.transaction():
                sqlite_store.insert(IntervalNode(id=None, left=1, right=2, parent_id=404))
        assert sqlite_store.count() == 0

    def test_write_lock_timeout(self, temp_db_path):
        first = SQLiteNodeStore()
        first.connect({"path": str(temp_db_path), "lock_timeout": 0.2})
        second = SQLiteNodeStore()
        second.connect({"path": str(temp_db_path), "lock_timeout": 0.2})
        holding = threading.Event()
        release = threading.Event()

        def holder():
            with first.transaction():
                holding.set()
                release.wait(10)

        thread = threading.Thread(target=holder)
        thread.start()
        try:
            assert holding.wait(5)
            with pytest.raises(LockTimeoutError) as exc_info:
                with second.transaction():
                    pass
            assert exc_info.value.timeout == 0.2
            assert not second.in_transaction()
        finally:
            release.set()
            thread.join()
            first.disconnect()
            second.disconnect()
