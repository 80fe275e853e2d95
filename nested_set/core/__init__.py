"""
Core functionality for nested set trees.

This module contains the interval-maintenance engine, the reconstructor,
the store backends and the error taxonomy.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from .exceptions import (
    ConcurrencyConflict,
    ConsistencyViolation,
    InvalidMoveError,
    LockTimeoutError,
    MalformedIntervalError,
    NestedSetError,
    NodeNotFoundError,
    PreconditionViolation,
    StoreConnectionError,
    StoreError,
    TransactionError,
)
from .node import Gap, IntervalNode, MoveDirection, ReconstructedNode
from .reconstructor import build
from .service import NestedSetService
from .store import InMemoryNodeStore, SQLiteNodeStore, create_store

__all__ = [
    "ConcurrencyConflict",
    "ConsistencyViolation",
    "Gap",
    "InMemoryNodeStore",
    "IntervalNode",
    "InvalidMoveError",
    "LockTimeoutError",
    "MalformedIntervalError",
    "MoveDirection",
    "NestedSetError",
    "NestedSetService",
    "NodeNotFoundError",
    "PreconditionViolation",
    "ReconstructedNode",
    "SQLiteNodeStore",
    "StoreConnectionError",
    "StoreError",
    "TransactionError",
    "build",
    "create_store",
]
