"""
Interval invariant verification.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import bisect
import logging
from typing import Any, Dict, List, Sequence

from .exceptions import ConsistencyViolation
from .node import IntervalNode

logger = logging.getLogger(__name__)


def find_violations(nodes: Sequence[IntervalNode]) -> List[Dict[str, Any]]:
    """
    Check a forest snapshot against the nested set invariants.

    Checks, per node: left < right; odd interval length; width equal to
    twice the subtree size; no partial overlap with any other node; no
    shared boundary values; parent_id equal to the immediately enclosing
    node (None for roots).

    Returns:
        One dict per violation with 'node_id' and 'problem' keys; empty if
        the forest is consistent
    """
    violations: List[Dict[str, Any]] = []
    ordered = sorted(nodes, key=lambda n: (n.left, -n.right))

    seen: Dict[int, Any] = {}
    for node in ordered:
        if node.left >= node.right:
            violations.append(
                {"node_id": node.id, "problem": f"left {node.left} >= right {node.right}"}
            )
            continue
        if (node.right - node.left) % 2 == 0:
            violations.append({"node_id": node.id, "problem": "even interval length"})
        for value in (node.left, node.right):
            if value in seen:
                violations.append(
                    {
                        "node_id": node.id,
                        "problem": f"bound {value} shared with node {seen[value]!r}",
                    }
                )
            seen[value] = node.id

    valid = [n for n in ordered if n.left < n.right]
    lefts = [n.left for n in valid]
    stack: List[IntervalNode] = []
    for node in valid:
        while stack and stack[-1].right < node.left:
            stack.pop()
        enclosing = stack[-1] if stack else None
        if enclosing is not None and node.right > enclosing.right:
            violations.append(
                {
                    "node_id": node.id,
                    "problem": f"partially overlaps node {enclosing.id!r}",
                }
            )
            continue
        expected_parent = enclosing.id if enclosing is not None else None
        if node.parent_id != expected_parent:
            violations.append(
                {
                    "node_id": node.id,
                    "problem": (
                        f"parent_id {node.parent_id!r} but enclosed by {expected_parent!r}"
                    ),
                }
            )
        descendants = bisect.bisect_left(lefts, node.right) - bisect.bisect_right(
            lefts, node.left
        )
        if node.width != 2 * (descendants + 1):
            violations.append(
                {
                    "node_id": node.id,
                    "problem": (
                        f"width {node.width} does not match {descendants} descendant(s)"
                    ),
                }
            )
        stack.append(node)

    return violations


def check_forest(nodes: Sequence[IntervalNode]) -> None:
    """
    Raise if the snapshot breaks any invariant.

    Raises:
        ConsistencyViolation: With every violation listed in ``details``
    """
    violations = find_violations(nodes)
    if not violations:
        return
    logger.error(
        "Forest consistency check failed: %d violation(s), first: %s",
        len(violations),
        violations[0],
    )
    raise ConsistencyViolation(
        f"Interval invariants violated ({len(violations)} problem(s)): "
        f"{violations[0]['problem']} at node {violations[0]['node_id']!r}",
        node_ids=[v["node_id"] for v in violations],
        details={"violations": violations},
    )
