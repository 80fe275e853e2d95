"""
Reordering of adjacent siblings.

Moving a node up or down swaps its subtree with the subtree of the
adjacent sibling in that direction. Final bounds for both subtrees are
computed in memory and written in a single batch, so no intermediate
state with colliding intervals is ever persisted.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from .node import IntervalNode, MoveDirection
from .store.base import BaseNodeStore

logger = logging.getLogger(__name__)


def swap_offsets(
    node: IntervalNode, sibling: IntervalNode, direction: MoveDirection
) -> Tuple[int, int]:
    """
    Offsets that exchange the positions of two adjacent subtrees.

    The moving node lands where the sibling started (UP) or ends where the
    sibling ended (DOWN); the sibling takes the opposite end of the combined
    range. Any gap between the two subtrees stays between them. With
    contiguous numbering the offsets are the two subtree widths.

    Returns:
        (node_offset, sibling_offset)
    """
    if direction is MoveDirection.UP:
        return sibling.left - node.left, node.right - sibling.right
    return sibling.right - node.right, node.left - sibling.left


class SiblingMover:
    """Swaps a node with its previous or next sibling."""

    def __init__(self, store: BaseNodeStore) -> None:
        self.store = store

    def find_sibling(self, node: IntervalNode, direction: MoveDirection):
        if direction is MoveDirection.UP:
            return self.store.find_prev_sibling(node.parent_id, node.left)
        return self.store.find_next_sibling(node.parent_id, node.right)

    def move(self, node: IntervalNode, direction: MoveDirection) -> IntervalNode:
        """
        Swap ``node`` with its adjacent sibling in ``direction``.

        Parentage never changes. Must run inside a store transaction.

        Args:
            node: Fresh copy of the node to move
            direction: UP towards lower values, DOWN towards higher values

        Returns:
            The node with its new bounds, or ``node`` unchanged if there is no
            sibling in that direction
        """
        sibling = self.find_sibling(node, direction)
        if sibling is None:
            logger.debug("Node %r has no sibling %s; nothing to move", node.id, direction)
            return node

        node_subtree = self.store.find_subtree(node.left, node.right)
        sibling_subtree = self.store.find_subtree(sibling.left, sibling.right)
        node_offset, sibling_offset = swap_offsets(node, sibling, direction)

        updated: List[IntervalNode] = [n.shifted(node_offset) for n in node_subtree]
        updated.extend(n.shifted(sibling_offset) for n in sibling_subtree)
        self.store.save_all(updated)

        moved = next((n for n in updated if n.id == node.id), node.shifted(node_offset))
        logger.debug(
            "Swapped node %r with sibling %r (%s): [%d, %d] -> [%d, %d]",
            node.id,
            sibling.id,
            direction,
            node.left,
            node.right,
            moved.left,
            moved.right,
        )
        return moved
