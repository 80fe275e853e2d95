"""
Interval allocation for newly placed nodes.

A new node always becomes the last child of its parent (or the last root).
Placing it under a parent opens a gap at the parent's current ``right``:
every record to the right of that point, and every ancestor enclosing it,
moves up by the gap width.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .constants import FOREST_BOUNDARY, NODE_WIDTH
from .exceptions import NodeNotFoundError
from .node import Gap, IntervalNode, NodeId
from .store.base import BaseNodeStore

logger = logging.getLogger(__name__)


def root_gap(nodes: Iterable[IntervalNode], width: int = NODE_WIDTH) -> Gap:
    """Gap after the last root: (max(right) + 1, max(right) + width)."""
    max_right = max((n.right for n in nodes), default=FOREST_BOUNDARY)
    return Gap(max_right + 1, max_right + width)


def shift_for_insert(
    nodes: Iterable[IntervalNode], insert_at: int, width: int = NODE_WIDTH
) -> List[IntervalNode]:
    """
    Open a gap of ``width`` at ``insert_at``.

    ``nodes`` may be any superset of the affected records; left and right
    are tested independently, so an enclosing ancestor only grows its
    right bound. Nodes are updated in place.

    Returns:
        The nodes whose bounds changed
    """
    changed = []
    for node in nodes:
        moved = False
        if node.left >= insert_at:
            node.left += width
            moved = True
        if node.right >= insert_at:
            node.right += width
            moved = True
        if moved:
            changed.append(node)
    return changed


class GapAllocator:
    """Reserves intervals for new nodes against a store."""

    def __init__(self, store: BaseNodeStore) -> None:
        self.store = store

    def allocate(
        self,
        parent_id: Optional[NodeId],
        nodes: Optional[Sequence[IntervalNode]] = None,
        width: int = NODE_WIDTH,
    ) -> Gap:
        """
        Compute the interval for a new last child of ``parent_id``.

        For a child, the parent is locked and re-read, the shift is applied
        and persisted before returning. Must run inside a store transaction
        so that the shift and the new node are committed together.

        Args:
            parent_id: Parent identifier, or None for a new root
            nodes: Forest snapshot for the root case; read from the store if omitted
            width: Gap width, 2 for a single node

        Returns:
            Gap for the new node

        Raises:
            NodeNotFoundError: If the parent does not exist
            LockTimeoutError: If the parent lock cannot be acquired
        """
        if parent_id is None:
            if nodes is None:
                nodes = self.store.find_all_ordered_by_left()
            gap = root_gap(nodes, width)
            logger.debug("Allocated root gap %s", tuple(gap))
            return gap

        parent = self.store.lock_node(parent_id)
        if parent is None:
            raise NodeNotFoundError(
                f"Parent node not found with id: {parent_id!r}", node_id=parent_id
            )

        insert_at = parent.right
        # right > insert_at excludes the parent itself, which is shifted explicitly
        shifted = shift_for_insert(
            self.store.find_nodes_to_shift(insert_at), insert_at, width
        )
        parent.right += width
        self.store.save_all([parent] + shifted)

        logger.debug(
            "Allocated gap at %d under parent %r, shifted %d node(s)",
            insert_at,
            parent_id,
            len(shifted),
        )
        return Gap(insert_at, insert_at + width - 1)
