"""
Nested Set Engine

Maintains hierarchical data stored as flat interval-encoded records
(nested set model) and rebuilds nested trees from flat query results.

Can be used as a library or via the ``nested-set`` CLI.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

__version__ = "1.0.0"
__author__ = "Vasiliy Zdanovskiy"
__email__ = "vasilyvz@gmail.com"

from .core import (
    ConcurrencyConflict,
    ConsistencyViolation,
    InMemoryNodeStore,
    IntervalNode,
    MoveDirection,
    NestedSetError,
    NestedSetService,
    PreconditionViolation,
    ReconstructedNode,
    SQLiteNodeStore,
    build,
    create_store,
)

__all__ = [
    "ConcurrencyConflict",
    "ConsistencyViolation",
    "InMemoryNodeStore",
    "IntervalNode",
    "MoveDirection",
    "NestedSetError",
    "NestedSetService",
    "PreconditionViolation",
    "ReconstructedNode",
    "SQLiteNodeStore",
    "build",
    "create_store",
]
