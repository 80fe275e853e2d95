"""
Pytest fixtures for nested set engine testing.

Provides both store backends and a small sample forest:

    Electronics [1, 8]
        Phones [2, 5]
            Smartphones [3, 4]
        Laptops [6, 7]
    Books [9, 10]

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import pytest

from nested_set.core.service import NestedSetService
from nested_set.core.store.memory import InMemoryNodeStore
from nested_set.core.store.sqlite import SQLiteNodeStore


@pytest.fixture
def memory_store():
    """Create connected in-memory store."""
    store = InMemoryNodeStore()
    store.connect({"lock_timeout": 2.0})
    yield store
    store.disconnect()


@pytest.fixture
def sqlite_store(tmp_path):
    """Create connected SQLite store in a temporary directory."""
    store = SQLiteNodeStore()
    store.connect({"path": str(tmp_path / "tree.db"), "lock_timeout": 2.0})
    yield store
    store.disconnect()


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """Each test using this fixture runs once per store backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def service(store):
    """Engine that verifies every invariant before each commit."""
    return NestedSetService(store, check_invariants=True)


@pytest.fixture
def sample_forest(service):
    """Create the sample forest; returns name -> node id."""
    electronics = service.create_node(None, {"name": "Electronics"})
    phones = service.create_node(electronics, {"name": "Phones"})
    smartphones = service.create_node(phones, {"name": "Smartphones"})
    laptops = service.create_node(electronics, {"name": "Laptops"})
    books = service.create_node(None, {"name": "Books"})
    return {
        "Electronics": electronics.id,
        "Phones": phones.id,
        "Smartphones": smartphones.id,
        "Laptops": laptops.id,
        "Books": books.id,
    }


@pytest.fixture
def intervals(service):
    """Return a callable giving name -> (left, right) for the stored forest."""

    def _intervals():
        return {
            node.payload["name"]: (node.left, node.right)
            for node in service.store.find_all_ordered_by_left()
        }

    return _intervals
