"""
Full renumbering of intervals from parent pointers.

Used as a maintenance action after bulk or out-of-band edits. Existing
interval values are only an ordering hint for siblings; everything else
is derived from ``parent_id``.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    AbstractSet,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
)

from .constants import FOREST_BOUNDARY
from .exceptions import ConsistencyViolation, MalformedIntervalError
from .node import IntervalNode, NodeId

logger = logging.getLogger(__name__)

Persist = Callable[[IntervalNode], None]


@dataclass
class _Frame:
    node: Optional[IntervalNode]
    children: Iterator[IntervalNode]
    running: int
    left: int = 0


def group_children(
    nodes: Sequence[IntervalNode],
) -> Dict[Optional[NodeId], List[IntervalNode]]:
    """Children per parent id, sorted by current left (stable for ties)."""
    children: Dict[Optional[NodeId], List[IntervalNode]] = {}
    for node in nodes:
        children.setdefault(node.parent_id, []).append(node)
    for group in children.values():
        group.sort(key=lambda n: n.left)
    return children


def reachable_ids(
    root_id: Optional[NodeId],
    children: Dict[Optional[NodeId], List[IntervalNode]],
) -> List[NodeId]:
    """
    Ids below ``root_id`` (every root's subtree when None), in pre-order.

    Raises:
        MalformedIntervalError: If parent pointers loop back to a visited node
    """
    seen = set() if root_id is None else {root_id}
    order: List[NodeId] = []
    stack = list(reversed(children.get(root_id, [])))
    while stack:
        node = stack.pop()
        if node.id in seen:
            raise MalformedIntervalError(
                f"Parent pointers form a cycle through node {node.id!r}",
                node_id=node.id,
            )
        seen.add(node.id)
        order.append(node.id)
        stack.extend(reversed(children.get(node.id, [])))
    return order


class ForestRebuilder:
    """Assigns pre-order intervals to a forest or to one subtree."""

    def __init__(self, persist: Persist) -> None:
        """
        Args:
            persist: Called once per node right after its subtree is numbered
        """
        self.persist = persist

    def rebuild(
        self,
        root_id: Optional[NodeId],
        nodes: Sequence[IntervalNode],
        current_left: int = FOREST_BOUNDARY,
        expected_ids: Optional[AbstractSet[NodeId]] = None,
    ) -> int:
        """
        Renumber the descendants of ``root_id`` (all roots when None).

        The first child gets ``current_left + 1``. Nodes are updated in place
        and handed to ``persist`` in post-order. Membership is verified before
        anything is numbered, so a rejected pass never calls ``persist``.

        Args:
            root_id: Subtree root, or None for the whole forest
            nodes: Every record that may belong to the renumbered range
            current_left: Left bound of the root (0 for the implicit forest)
            expected_ids: Descendants the subtree must consist of; checked
                only for a subtree rebuild

        Returns:
            Closing value: the root's right bound, or one past the last
            root's right bound for the forest

        Raises:
            MalformedIntervalError: If parent pointers form a cycle
            ConsistencyViolation: If the forest has nodes no root reaches, or
                the subtree members differ from ``expected_ids``
        """
        children = group_children(nodes)
        reached = reachable_ids(root_id, children)
        self._check_members(root_id, nodes, reached, expected_ids)

        frames = [_Frame(node=None, children=iter(children.get(root_id, [])), running=current_left)]
        while True:
            frame = frames[-1]
            child = next(frame.children, None)
            if child is not None:
                child_left = frame.running + 1
                frames.append(
                    _Frame(
                        node=child,
                        children=iter(children.get(child.id, [])),
                        running=child_left,
                        left=child_left,
                    )
                )
                continue

            closing = frame.running + 1
            frames.pop()
            if frame.node is None:
                break
            frame.node.left = frame.left
            frame.node.right = closing
            self.persist(frame.node)
            frames[-1].running = closing

        logger.info(
            "Rebuilt %d node(s) under %s, closing value %d",
            len(reached),
            "forest" if root_id is None else f"node {root_id!r}",
            closing,
        )
        return closing

    @staticmethod
    def _check_members(
        root_id: Optional[NodeId],
        nodes: Sequence[IntervalNode],
        reached: List[NodeId],
        expected_ids: Optional[AbstractSet[NodeId]],
    ) -> None:
        reached_set = set(reached)
        if root_id is None:
            stray = [n.id for n in nodes if n.id not in reached_set]
            if stray:
                raise ConsistencyViolation(
                    f"{len(stray)} node(s) are not reachable from any root "
                    "(missing parent or parent cycle)",
                    node_ids=stray,
                )
            return
        if expected_ids is None or reached_set == set(expected_ids):
            return
        differing = sorted(
            reached_set.symmetric_difference(expected_ids), key=repr
        )
        raise ConsistencyViolation(
            f"Subtree of node {root_id!r} changed members: "
            f"{len(differing)} node(s) differ between parent pointers and "
            "intervals; rebuild the whole forest",
            node_ids=differing,
        )
