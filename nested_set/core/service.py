"""
Nested set engine facade.

Every structural mutation runs as one unit of work against the store:
either all of its writes take effect or none do. Queries take no locks
and may observe an in-flight mutation when run concurrently with one.

Nodes can be passed either as ``IntervalNode`` objects or as bare
identifiers. Mutations always re-read and lock the stored record before
acting, so a stale caller copy never feeds the interval arithmetic.
Queries re-read the record by id as well.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Union

from .config import NestedSetConfig
from .constants import FOREST_BOUNDARY
from .exceptions import (
    ConsistencyViolation,
    InvalidMoveError,
    MalformedIntervalError,
    NestedSetError,
    NodeNotFoundError,
)
from .forest_rebuilder import ForestRebuilder
from .gap_allocator import GapAllocator, root_gap, shift_for_insert
from .gap_closer import close_gap
from .invariants import check_forest, find_violations
from .node import Gap, IntervalNode, MoveDirection, NodeId
from .reconstructor import Converter, build
from .sibling_mover import SiblingMover
from .store import create_store
from .store.base import BaseNodeStore

logger = logging.getLogger(__name__)

NodeRef = Union[IntervalNode, NodeId]


def _id_of(ref: Optional[NodeRef]) -> Optional[NodeId]:
    if isinstance(ref, IntervalNode):
        return ref.id
    return ref


def _parent_id_of(parent: Optional[NodeRef]) -> Optional[NodeId]:
    """Parent identifier; None only when no parent was given at all."""
    if isinstance(parent, IntervalNode) and parent.id is None:
        raise NodeNotFoundError(
            "Parent node has no id; it was never stored", node_id=None
        )
    return _id_of(parent)


class NestedSetService:
    """Maintains interval invariants for one forest."""

    def __init__(self, store: BaseNodeStore, check_invariants: bool = False) -> None:
        """
        Args:
            store: Connected node store
            check_invariants: Verify the whole forest before every commit
        """
        self.store = store
        self.check_invariants = check_invariants
        self.allocator = GapAllocator(store)
        self.mover = SiblingMover(store)

    @classmethod
    def from_config(cls, config: NestedSetConfig) -> "NestedSetService":
        store = create_store(config.store.type, config.store.driver_config())
        return cls(store, check_invariants=config.engine.check_invariants)

    def close(self) -> None:
        self.store.disconnect()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[None]:
        try:
            with self.store.transaction():
                yield
                if self.check_invariants:
                    check_forest(self.store.find_all_ordered_by_left())
        except NestedSetError as e:
            importance = 9 if isinstance(e, ConsistencyViolation) else 8
            logger.error(
                f"{operation} rolled back: {e.message}",
                extra={"importance": importance},
            )
            raise

    @staticmethod
    def _validate(node: IntervalNode) -> IntervalNode:
        if node.left >= node.right or (node.right - node.left) % 2 == 0:
            raise MalformedIntervalError(
                f"Node {node.id!r} has malformed interval [{node.left}, {node.right}]",
                node_id=node.id,
            )
        return node

    def _lock(self, ref: NodeRef) -> IntervalNode:
        node_id = _id_of(ref)
        node = self.store.lock_node(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node not found with id: {node_id!r}", node_id=node_id)
        return self._validate(node)

    def _fresh(self, ref: NodeRef) -> Optional[IntervalNode]:
        return self.store.get(_id_of(ref))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_node(self, node_id: NodeId) -> Optional[IntervalNode]:
        return self.store.get(node_id)

    def get_ancestors(self, node: NodeRef) -> List[IntervalNode]:
        """Ancestors of ``node``, nearest first; empty if it does not exist."""
        node = self._fresh(node)
        if node is None:
            return []
        return self.store.find_ancestors(node.left, node.right)

    def get_descendants(self, node: NodeRef) -> List[IntervalNode]:
        """Descendants of ``node`` in pre-order; empty if it does not exist."""
        node = self._fresh(node)
        if node is None:
            return []
        return self.store.find_descendants(node.left, node.right)

    def get_subtree(self, node: NodeRef) -> List[IntervalNode]:
        node = self._fresh(node)
        if node is None:
            return []
        return self.store.find_subtree(node.left, node.right)

    def get_children(self, parent: Optional[NodeRef]) -> List[IntervalNode]:
        return self.store.find_children(_id_of(parent))

    def get_siblings(self, node: NodeRef) -> List[IntervalNode]:
        node = self._fresh(node)
        if node is None:
            return []
        return self.store.find_siblings(node.parent_id, node.id)

    def get_roots(self) -> List[IntervalNode]:
        return self.store.find_root_nodes()

    def get_leaves(self) -> List[IntervalNode]:
        return self.store.find_leaf_nodes()

    def get_tree(
        self, root: Optional[NodeRef] = None, convert: Optional[Converter] = None
    ) -> List[Any]:
        """
        Nested view of the forest, or of the subtree under ``root``.

        Args:
            root: Subtree root; the whole forest when None
            convert: Response factory passed to the reconstructor

        Returns:
            Reconstructed root objects
        """
        nodes = (
            self.store.find_all_ordered_by_left()
            if root is None
            else self.get_subtree(root)
        )
        return build(nodes, convert)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_node(
        self,
        parent: Optional[NodeRef] = None,
        payload: Optional[Dict[str, Any]] = None,
        node_id: Optional[NodeId] = None,
    ) -> IntervalNode:
        """
        Insert a node as the last child of ``parent`` (or as the last root).

        Args:
            parent: Parent node or id; None creates a root
            payload: Opaque domain fields stored with the node
            node_id: Explicit identifier; the store assigns one when None

        Returns:
            The stored node

        Raises:
            NodeNotFoundError: If the parent does not exist
            LockTimeoutError: If the parent lock cannot be acquired
        """
        parent_id = _parent_id_of(parent)
        with self._unit_of_work("create_node"):
            gap = self.allocator.allocate(parent_id)
            node = self.store.insert(
                IntervalNode(
                    id=node_id,
                    left=gap.left,
                    right=gap.right,
                    parent_id=parent_id,
                    payload=dict(payload or {}),
                )
            )
        logger.info(
            f"Created node {node.id!r} at [{node.left}, {node.right}] under {parent_id!r}"
        )
        return node

    def move_up(self, node: NodeRef) -> IntervalNode:
        return self._move(node, MoveDirection.UP)

    def move_down(self, node: NodeRef) -> IntervalNode:
        return self._move(node, MoveDirection.DOWN)

    def _move(self, node: NodeRef, direction: MoveDirection) -> IntervalNode:
        with self._unit_of_work(f"move_{direction.value.lower()}"):
            fresh = self._lock(node)
            moved = self.mover.move(fresh, direction)
        if moved is fresh:
            logger.warning(f"Node {fresh.id!r} has no sibling to move {direction}")
        else:
            logger.info(
                f"Moved node {fresh.id!r} {direction}: "
                f"[{fresh.left}, {fresh.right}] -> [{moved.left}, {moved.right}]"
            )
        return moved

    def update_node(
        self, node: NodeRef, new_parent: Optional[NodeRef]
    ) -> IntervalNode:
        """
        Move ``node`` with its whole subtree under ``new_parent``.

        The subtree becomes the last child of the new parent (or the last
        root when ``new_parent`` is None). The old gap is closed and the new
        one opened in memory, then everything is written in one batch.

        Raises:
            NodeNotFoundError: If the node or the new parent does not exist
            InvalidMoveError: If the new parent is the node or one of its descendants
        """
        new_parent_id = _parent_id_of(new_parent)
        with self._unit_of_work("update_node"):
            fresh = self._lock(node)
            if new_parent_id is not None:
                target = self.store.lock_node(new_parent_id)
                if target is None:
                    raise NodeNotFoundError(
                        f"Parent node not found with id: {new_parent_id!r}",
                        node_id=new_parent_id,
                    )
                if target.id == fresh.id or fresh.contains(target):
                    raise InvalidMoveError(
                        f"Cannot move node {fresh.id!r} under its own descendant {target.id!r}",
                        node_id=fresh.id,
                        target_id=target.id,
                    )

            width = fresh.width
            subtree = self.store.find_subtree(fresh.left, fresh.right)
            subtree_ids = {n.id for n in subtree}
            rest = [
                n
                for n in self.store.find_all_ordered_by_left()
                if n.id not in subtree_ids
            ]

            changed = {n.id: n for n in close_gap(fresh, width, rest)}
            rest = [changed.get(n.id, n) for n in rest]

            if new_parent_id is None:
                gap = root_gap(rest, width)
            else:
                insert_at = next(n.right for n in rest if n.id == new_parent_id)
                affected = [n for n in rest if n.right >= insert_at]
                for shifted in shift_for_insert(affected, insert_at, width):
                    changed[shifted.id] = shifted
                gap = Gap(insert_at, insert_at + width - 1)

            offset = gap.left - fresh.left
            moved_subtree = [n.shifted(offset) for n in subtree]
            result = next(n for n in moved_subtree if n.id == fresh.id)
            result.parent_id = new_parent_id
            self.store.save_all(list(changed.values()) + moved_subtree)

        logger.info(
            f"Moved subtree of node {result.id!r} ({len(subtree)} node(s)) "
            f"under {new_parent_id!r} at [{result.left}, {result.right}]"
        )
        return result

    def delete_node(self, node: NodeRef) -> int:
        """
        Delete ``node`` together with its whole subtree and close the gap.

        Returns:
            Number of deleted nodes

        Raises:
            NodeNotFoundError: If the node does not exist
        """
        with self._unit_of_work("delete_node"):
            fresh = self._lock(node)
            if fresh.parent_id is not None:
                self.store.lock_node(fresh.parent_id)
            subtree = self.store.find_subtree(fresh.left, fresh.right)
            removed = self.store.delete_all(subtree)
            changed = close_gap(fresh, fresh.width, self.store.find_all_ordered_by_left())
            self.store.save_all(changed)

        logger.info(
            f"Deleted node {fresh.id!r} with {removed - 1} descendant(s), "
            f"shifted {len(changed)} node(s)"
        )
        return removed

    def rebuild(self, root: Optional[NodeRef] = None) -> int:
        """
        Recompute intervals from parent pointers alone.

        With a root, only its descendants are renumbered inside the root's
        current bounds. Each node is written as soon as its subtree is
        numbered; the store transaction still makes the whole pass atomic.

        Returns:
            The root's right bound, or one past the last root's right bound

        Raises:
            MalformedIntervalError: If parent pointers form a cycle
            ConsistencyViolation: If some node is not reachable from any root,
                or the root's descendants by parent pointer differ from its
                descendants by interval (rebuild the whole forest)
        """
        root_id = _id_of(root)
        with self._unit_of_work("rebuild"):
            current_left = FOREST_BOUNDARY
            fresh = None
            expected_ids = None
            if root_id is not None:
                fresh = self._lock(root_id)
                current_left = fresh.left
                expected_ids = {
                    n.id for n in self.store.find_descendants(fresh.left, fresh.right)
                }
            nodes = self.store.find_all_ordered_by_left()
            rebuilder = ForestRebuilder(lambda n: self.store.save_all([n]))
            closing = rebuilder.rebuild(root_id, nodes, current_left, expected_ids)
            if fresh is not None and closing != fresh.right:
                raise ConsistencyViolation(
                    f"Subtree of node {root_id!r} renumbers to right={closing}, "
                    f"stored right={fresh.right}; rebuild the whole forest",
                    node_ids=[root_id],
                )
        return closing

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def check_integrity(self, raise_on_error: bool = True) -> List[Dict[str, Any]]:
        """
        Verify the stored forest against every interval invariant.

        Args:
            raise_on_error: Raise instead of returning violations

        Returns:
            List of violations (empty if consistent)

        Raises:
            ConsistencyViolation: If violations exist and ``raise_on_error``
        """
        nodes = self.store.find_all_ordered_by_left()
        if raise_on_error:
            check_forest(nodes)
            return []
        return find_violations(nodes)
