"""
In-memory node store.

Reference implementation of the store contract. Writers are serialized by
a forest-wide lock taken when a transaction starts; record locks from
``lock_node`` are held on top of it until the transaction ends. A
transaction restores the pre-transaction records if its block raises.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ..exceptions import LockTimeoutError, StoreError, TransactionError
from ..node import IntervalNode, NodeId
from .base import BaseNodeStore

logger = logging.getLogger(__name__)


def _same_parent(node: IntervalNode, parent_id: Optional[NodeId]) -> bool:
    if parent_id is None:
        return node.parent_id is None
    return node.parent_id is not None and node.parent_id == parent_id


class InMemoryNodeStore(BaseNodeStore):
    """Thread-safe dictionary-backed store."""

    def __init__(self) -> None:
        super().__init__()
        self._records: Dict[NodeId, IntervalNode] = {}
        self._next_id = 1
        # Guards individual reads and writes of _records
        self._data_lock = threading.Lock()
        # Serializes units of work
        self._write_lock = threading.RLock()
        # Entries vanish once no transaction holds or awaits the lock
        self._record_locks: "weakref.WeakValueDictionary[NodeId, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )
        self._record_locks_guard = threading.Lock()
        self._local = threading.local()

    def connect(self, config: Dict[str, Any]) -> None:
        """
        Initialize the store.

        Args:
            config: Optional 'lock_timeout' in seconds
        """
        self.lock_timeout = float(config.get("lock_timeout", self.lock_timeout))

    def disconnect(self) -> None:
        with self._data_lock:
            self._records.clear()

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def _state(self) -> threading.local:
        state = self._local
        if not hasattr(state, "depth"):
            state.depth = 0
            state.snapshot = None
            state.held = []
        return state

    def in_transaction(self) -> bool:
        return self._state().depth > 0

    @contextmanager
    def transaction(self) -> Iterator["InMemoryNodeStore"]:
        state = self._state()
        if state.depth:
            state.depth += 1
            try:
                yield self
            finally:
                state.depth -= 1
            return

        if not self._write_lock.acquire(timeout=self.lock_timeout):
            raise LockTimeoutError(
                f"Timed out after {self.lock_timeout}s waiting for the forest write lock",
                timeout=self.lock_timeout,
            )
        state.depth = 1
        with self._data_lock:
            # Stored records are replaced, never mutated, so a shallow copy suffices
            state.snapshot = (dict(self._records), self._next_id)
        try:
            yield self
        except BaseException:
            with self._data_lock:
                self._records, self._next_id = state.snapshot
            logger.debug("In-memory transaction rolled back")
            raise
        finally:
            for lock in reversed(state.held):
                lock.release()
            state.held = []
            state.snapshot = None
            state.depth = 0
            self._write_lock.release()

    def lock_node(
        self, node_id: NodeId, timeout: Optional[float] = None
    ) -> Optional[IntervalNode]:
        state = self._state()
        if not state.depth:
            raise TransactionError("lock_node requires an active transaction")
        timeout = self.lock_timeout if timeout is None else timeout

        with self._record_locks_guard:
            lock = self._record_locks.setdefault(node_id, threading.Lock())
        if lock not in state.held:
            if not lock.acquire(timeout=timeout):
                raise LockTimeoutError(
                    f"Timed out after {timeout}s waiting for lock on node {node_id!r}",
                    node_id=node_id,
                    timeout=timeout,
                )
            state.held.append(lock)
        return self.get(node_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, node: IntervalNode) -> IntervalNode:
        with self._data_lock:
            stored = node.copy()
            if stored.id is None:
                while self._next_id in self._records:
                    self._next_id += 1
                stored.id = self._next_id
                self._next_id += 1
            elif stored.id in self._records:
                raise StoreError(
                    f"Node {stored.id!r} already exists", operation="insert"
                )
            self._records[stored.id] = stored
            return stored.copy()

    def save_all(self, nodes: Iterable[IntervalNode]) -> List[IntervalNode]:
        saved = []
        with self._data_lock:
            for node in nodes:
                if node.id not in self._records:
                    raise StoreError(
                        f"Cannot save unknown node {node.id!r}", operation="save_all"
                    )
                stored = node.copy()
                self._records[node.id] = stored
                saved.append(stored.copy())
        return saved

    def delete_all(self, nodes: Iterable[IntervalNode]) -> int:
        removed = 0
        with self._data_lock:
            for node in nodes:
                if self._records.pop(node.id, None) is not None:
                    removed += 1
        return removed

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _select(
        self,
        predicate: Callable[[IntervalNode], bool],
        reverse: bool = False,
    ) -> List[IntervalNode]:
        with self._data_lock:
            matched = [n.copy() for n in self._records.values() if predicate(n)]
        matched.sort(key=lambda n: n.left, reverse=reverse)
        return matched

    def _first(
        self, predicate: Callable[[IntervalNode], bool], reverse: bool = False
    ) -> Optional[IntervalNode]:
        matched = self._select(predicate, reverse=reverse)
        return matched[0] if matched else None

    def get(self, node_id: NodeId) -> Optional[IntervalNode]:
        with self._data_lock:
            node = self._records.get(node_id)
            return node.copy() if node is not None else None

    def count(self) -> int:
        with self._data_lock:
            return len(self._records)

    def find_all_ordered_by_left(self) -> List[IntervalNode]:
        return self._select(lambda n: True)

    def find_root_nodes(self) -> List[IntervalNode]:
        return self._select(lambda n: n.parent_id is None)

    def find_leaf_nodes(self) -> List[IntervalNode]:
        return self._select(lambda n: n.left + 1 == n.right)

    def find_prev_sibling(
        self, parent_id: Optional[NodeId], left: int
    ) -> Optional[IntervalNode]:
        return self._first(
            lambda n: n.right < left and _same_parent(n, parent_id), reverse=True
        )

    def find_next_sibling(
        self, parent_id: Optional[NodeId], right: int
    ) -> Optional[IntervalNode]:
        return self._first(lambda n: n.left > right and _same_parent(n, parent_id))

    def find_children(self, parent_id: Optional[NodeId]) -> List[IntervalNode]:
        return self._select(lambda n: _same_parent(n, parent_id))

    def find_siblings(
        self, parent_id: Optional[NodeId], self_id: NodeId
    ) -> List[IntervalNode]:
        return self._select(lambda n: _same_parent(n, parent_id) and n.id != self_id)

    def find_ancestors(self, left: int, right: int) -> List[IntervalNode]:
        return self._select(lambda n: n.left < left and n.right > right, reverse=True)

    def find_descendants(self, left: int, right: int) -> List[IntervalNode]:
        return self._select(lambda n: n.left > left and n.right < right)

    def find_subtree(self, left: int, right: int) -> List[IntervalNode]:
        return self._select(lambda n: n.left >= left and n.right <= right)

    def find_containing(self, left: int, right: int) -> List[IntervalNode]:
        return self._select(lambda n: n.left <= left and n.right >= right)

    def find_exact(self, left: int, right: int) -> List[IntervalNode]:
        return self._select(lambda n: n.left == left and n.right == right)

    def find_nodes_to_shift(self, right: int) -> List[IntervalNode]:
        return self._select(lambda n: n.right > right)

    def find_by_left_between(self, left: int, right: int) -> List[IntervalNode]:
        return self._select(lambda n: left <= n.left <= right)
