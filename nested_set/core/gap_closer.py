"""
Interval compaction after a subtree leaves its position.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from .node import IntervalNode

logger = logging.getLogger(__name__)


def close_gap(
    removed: IntervalNode, width: int, nodes: Iterable[IntervalNode]
) -> List[IntervalNode]:
    """
    Pull every record after ``removed`` back by ``width``.

    Records entirely to the right move both bounds; ancestors enclosing the
    removed interval move only their right bound. Both adjustments are
    computed from the values passed in, so no record is shifted twice.
    Records inside the removed interval are skipped; normally they are
    already deleted or detached by the caller.

    Args:
        removed: The node whose subtree left the interval space (pre-removal bounds)
        width: ``removed.right - removed.left + 1``
        nodes: Snapshot of the remaining records

    Returns:
        Updated copies of the records that changed, in snapshot order
    """
    changed = []
    for node in nodes:
        if node.left >= removed.left and node.right <= removed.right:
            continue
        new_left = node.left - width if node.left > removed.right else node.left
        new_right = node.right - width if node.right > removed.right else node.right
        if (new_left, new_right) != (node.left, node.right):
            updated = node.copy()
            updated.left = new_left
            updated.right = new_right
            changed.append(updated)

    logger.debug(
        "Closing gap of width %d after [%d, %d]: %d node(s) shifted",
        width,
        removed.left,
        removed.right,
        len(changed),
    )
    return changed
