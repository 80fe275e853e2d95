"""
In-memory representation of interval-encoded tree records.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Hashable, NamedTuple, Optional, Tuple

NodeId = Hashable


class MoveDirection(str, Enum):
    """Direction of a sibling swap."""

    UP = "UP"
    DOWN = "DOWN"

    def __str__(self) -> str:
        return self.value


class Gap(NamedTuple):
    """Interval reserved for a node being placed."""

    left: int
    right: int


@dataclass
class IntervalNode:
    """One tree record.

    ``left``, ``right`` and ``parent_id`` are owned by the engine. ``payload``
    carries the caller's domain fields and is never read by the engine.
    The parent is referenced by identifier only, never by object.
    """

    id: Optional[NodeId]
    left: int
    right: int
    parent_id: Optional[NodeId] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def width(self) -> int:
        """Subtree width: right - left + 1 (twice the subtree node count)."""
        return self.right - self.left + 1

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        return self.right == self.left + 1

    def contains(self, other: "IntervalNode") -> bool:
        """True if ``other`` lies strictly inside this node's interval."""
        return self.left < other.left and other.right < self.right

    def shifted(self, offset: int) -> "IntervalNode":
        """Copy of this node with both bounds moved by ``offset``."""
        return replace(self, left=self.left + offset, right=self.right + offset)

    def copy(self) -> "IntervalNode":
        """Detached copy, payload included."""
        return replace(self, payload=copy.deepcopy(self.payload))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "left": self.left,
            "right": self.right,
            "parent_id": self.parent_id,
            "payload": copy.deepcopy(self.payload),
        }


@dataclass(frozen=True)
class ReconstructedNode:
    """Read-only tree view produced by the reconstructor.

    ``children`` is always a tuple, empty for leaves.
    """

    id: NodeId
    left: int
    right: int
    payload: Dict[str, Any] = field(default_factory=dict)
    children: Tuple["ReconstructedNode", ...] = ()

    @classmethod
    def from_node(cls, node: IntervalNode) -> "ReconstructedNode":
        return cls(
            id=node.id,
            left=node.left,
            right=node.right,
            payload=copy.deepcopy(node.payload),
        )

    def with_children(self, children) -> "ReconstructedNode":
        return replace(self, children=tuple(children))

    def to_dict(self) -> Dict[str, Any]:
        """Nested plain-dict form, suitable for JSON output."""
        return {
            "id": self.id,
            "left": self.left,
            "right": self.right,
            "payload": copy.deepcopy(self.payload),
            "children": [child.to_dict() for child in self.children],
        }
