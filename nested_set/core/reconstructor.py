"""
Flat-to-hierarchical reconstruction of interval-encoded records.

Turns an unordered list of records (typically the result of one range
query) into nested response objects in a single pass ordered by ``left``.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .node import IntervalNode, ReconstructedNode

logger = logging.getLogger(__name__)

Converter = Callable[[IntervalNode], Any]


def build(
    nodes: Sequence[IntervalNode],
    convert: Optional[Converter] = None,
) -> List[Any]:
    """
    Build a forest of response objects from flat records.

    Response objects must provide ``with_children(children)`` returning a new
    object; ``ReconstructedNode`` is used when ``convert`` is omitted.

    Records whose parent is missing from ``nodes`` become roots of the
    result, so a partial subtree reconstructs cleanly. Roots keep the input
    order. Cyclic parent references are not supported.

    Args:
        nodes: Records in any order
        convert: Called exactly once per record

    Returns:
        Top-level response objects carrying their nested children
    """
    if not nodes:
        return []
    if convert is None:
        convert = ReconstructedNode.from_node

    present = {node.id for node in nodes}
    responses: Dict[Any, Any] = {node.id: convert(node) for node in nodes}

    children_by_parent: Dict[Any, List[Any]] = {}
    for node in nodes:
        if node.parent_id is not None and node.parent_id in present:
            children_by_parent.setdefault(node.parent_id, []).append(node.id)

    # Descending left: every child is finished before its parent is visited.
    for node in sorted(nodes, key=lambda n: n.left, reverse=True):
        child_ids = children_by_parent.get(node.id, [])
        children = [responses[cid] for cid in child_ids if cid in responses]
        responses[node.id] = responses[node.id].with_children(children)

    roots = [
        responses[node.id]
        for node in nodes
        if node.parent_id is None or node.parent_id not in present
    ]
    logger.debug(
        "Reconstructed %d records into %d root(s)", len(nodes), len(roots)
    )
    return roots
