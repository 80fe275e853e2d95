"""
Base node store interface.

The engine never talks to a database directly; it consumes the range and
lookup queries defined here. Every read returns detached copies, so the
engine can mutate them freely and persist the result with ``save_all``.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Dict, Iterable, List, Optional

from ..constants import DEFAULT_LOCK_TIMEOUT
from ..node import IntervalNode, NodeId


class BaseNodeStore(ABC):
    """Base class for interval-encoded record stores."""

    def __init__(self) -> None:
        self.lock_timeout: float = DEFAULT_LOCK_TIMEOUT

    @abstractmethod
    def connect(self, config: Dict[str, Any]) -> None:
        """
        Open the store.

        Args:
            config: Store-specific configuration

        Raises:
            StoreConnectionError: If the store cannot be opened
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> None:
        """Release all resources held by the store."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """
        Atomic unit of work.

        All writes inside the block become visible together or not at all.
        Nested calls on the same thread join the outer unit.

        Raises:
            LockTimeoutError: If the unit cannot start within the lock timeout
        """
        raise NotImplementedError

    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether the calling thread is inside ``transaction()``."""
        raise NotImplementedError

    @abstractmethod
    def lock_node(
        self, node_id: NodeId, timeout: Optional[float] = None
    ) -> Optional[IntervalNode]:
        """
        Read a record fresh while holding an exclusive lock on it.

        The lock is held until the enclosing transaction ends.

        Args:
            node_id: Record identifier
            timeout: Seconds to wait, defaults to ``lock_timeout``

        Returns:
            Fresh copy of the record, or None if it does not exist

        Raises:
            TransactionError: If called outside a transaction
            LockTimeoutError: If the lock cannot be acquired in time
        """
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @abstractmethod
    def insert(self, node: IntervalNode) -> IntervalNode:
        """
        Persist a new record.

        Args:
            node: Record to insert; ``id`` may be None to let the store assign one

        Returns:
            Copy of the stored record with its identifier set
        """
        raise NotImplementedError

    @abstractmethod
    def save_all(self, nodes: Iterable[IntervalNode]) -> List[IntervalNode]:
        """
        Write interval and parent fields of existing records, then flush.

        Writes are visible to subsequent reads in the same unit of work.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_all(self, nodes: Iterable[IntervalNode]) -> int:
        """Delete records; returns the number removed."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @abstractmethod
    def get(self, node_id: NodeId) -> Optional[IntervalNode]:
        """Read one record by identifier without locking."""
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def find_all_ordered_by_left(self) -> List[IntervalNode]:
        raise NotImplementedError

    @abstractmethod
    def find_root_nodes(self) -> List[IntervalNode]:
        raise NotImplementedError

    @abstractmethod
    def find_leaf_nodes(self) -> List[IntervalNode]:
        """Records with ``right == left + 1``, ordered by left."""
        raise NotImplementedError

    @abstractmethod
    def find_prev_sibling(
        self, parent_id: Optional[NodeId], left: int
    ) -> Optional[IntervalNode]:
        """Same-parent record with the greatest left whose right < ``left``."""
        raise NotImplementedError

    @abstractmethod
    def find_next_sibling(
        self, parent_id: Optional[NodeId], right: int
    ) -> Optional[IntervalNode]:
        """Same-parent record with the least left whose left > ``right``."""
        raise NotImplementedError

    @abstractmethod
    def find_children(self, parent_id: Optional[NodeId]) -> List[IntervalNode]:
        """Direct children of ``parent_id`` (roots when None), ordered by left."""
        raise NotImplementedError

    @abstractmethod
    def find_siblings(
        self, parent_id: Optional[NodeId], self_id: NodeId
    ) -> List[IntervalNode]:
        raise NotImplementedError

    @abstractmethod
    def find_ancestors(self, left: int, right: int) -> List[IntervalNode]:
        """Records strictly containing the interval, nearest first."""
        raise NotImplementedError

    @abstractmethod
    def find_descendants(self, left: int, right: int) -> List[IntervalNode]:
        """Records strictly inside the interval, ordered by left."""
        raise NotImplementedError

    @abstractmethod
    def find_subtree(self, left: int, right: int) -> List[IntervalNode]:
        """Records inside the interval, bounds included, ordered by left."""
        raise NotImplementedError

    @abstractmethod
    def find_containing(self, left: int, right: int) -> List[IntervalNode]:
        """Records containing the interval, bounds included, ordered by left."""
        raise NotImplementedError

    @abstractmethod
    def find_exact(self, left: int, right: int) -> List[IntervalNode]:
        raise NotImplementedError

    @abstractmethod
    def find_nodes_to_shift(self, right: int) -> List[IntervalNode]:
        """Records with ``right`` greater than the insertion point."""
        raise NotImplementedError

    @abstractmethod
    def find_by_left_between(self, left: int, right: int) -> List[IntervalNode]:
        raise NotImplementedError

    def __enter__(self) -> "BaseNodeStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.disconnect()
