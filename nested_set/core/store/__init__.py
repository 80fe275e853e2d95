"""
Node store factory and registry.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import logging
from typing import Any, Dict

from .base import BaseNodeStore
from .memory import InMemoryNodeStore
from .sqlite import SQLiteNodeStore

logger = logging.getLogger(__name__)

# Store registry
_STORES: Dict[str, type[BaseNodeStore]] = {
    "memory": InMemoryNodeStore,
    "sqlite": SQLiteNodeStore,
}


def register_store(name: str, store_class: type[BaseNodeStore]) -> None:
    """
    Register a new store backend.

    Args:
        name: Store type name
        store_class: Store class (subclass of BaseNodeStore)
    """
    if not issubclass(store_class, BaseNodeStore):
        raise TypeError("Store class must be a subclass of BaseNodeStore")
    _STORES[name] = store_class
    logger.info(f"Registered node store: {name}")


def create_store(store_type: str, config: Dict[str, Any]) -> BaseNodeStore:
    """
    Create and connect a node store.

    Args:
        store_type: Registered store name (e.g., 'memory', 'sqlite')
        config: Store-specific configuration

    Returns:
        Connected store instance

    Raises:
        ValueError: If store type is not registered
    """
    if store_type not in _STORES:
        available = ", ".join(_STORES.keys())
        raise ValueError(
            f"Unknown node store: {store_type}. Available stores: {available}"
        )

    store = _STORES[store_type]()
    store.connect(config)
    logger.info(f"Node store '{store_type}' initialized")
    return store


def get_available_stores() -> list[str]:
    """
    Get list of available store names.

    Returns:
        List of store names
    """
    return list(_STORES.keys())


__all__ = [
    "BaseNodeStore",
    "InMemoryNodeStore",
    "SQLiteNodeStore",
    "create_store",
    "get_available_stores",
    "register_store",
]
