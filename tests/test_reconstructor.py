"""
Tests for flat-to-hierarchical reconstruction.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from dataclasses import dataclass, field, replace
from typing import Tuple

from nested_set.core.node import IntervalNode, ReconstructedNode
from nested_set.core.reconstructor import build


@dataclass(frozen=True)
class CategoryResponse:
    """Minimal caller-defined response type."""

    name: str
    children: Tuple["CategoryResponse", ...] = field(default_factory=tuple)

    def with_children(self, children):
        return replace(self, children=tuple(children))


def _sample():
    root = IntervalNode(id=1, left=1, right=6)
    child1 = IntervalNode(id=2, left=2, right=3, parent_id=1)
    child2 = IntervalNode(id=3, left=4, right=5, parent_id=1)
    return root, child1, child2


class TestBuild:
    """Test build()."""

    def test_empty_input(self):
        assert build([]) == []

    def test_single_node(self):
        result = build([IntervalNode(id=1, left=1, right=2)])
        assert len(result) == 1
        assert result[0].id == 1
        assert result[0].children == ()

    def test_builds_correct_hierarchy(self):
        """One root with two leaf children in input order."""
        result = build(list(_sample()))

        assert len(result) == 1
        root = result[0]
        assert root.id == 1
        assert [child.id for child in root.children] == [2, 3]
        assert all(child.children == () for child in root.children)

    def test_unsorted_input(self):
        root, child1, child2 = _sample()
        grandchild = IntervalNode(id=4, left=5, right=6, parent_id=3)
        child2 = replace(child2, right=7)
        root = replace(root, right=8)

        result = build([grandchild, child1, root, child2])

        assert [r.id for r in result] == [1]
        assert [c.id for c in result[0].children] == [2, 3]
        assert [g.id for g in result[0].children[1].children] == [4]

    def test_missing_parent_becomes_root(self):
        """A partial subtree reconstructs with its top node as root."""
        child = IntervalNode(id=2, left=2, right=5, parent_id=1)
        grandchild = IntervalNode(id=3, left=3, right=4, parent_id=2)

        result = build([child, grandchild])

        assert [r.id for r in result] == [2]
        assert [c.id for c in result[0].children] == [3]

    def test_roots_keep_input_order(self):
        first = IntervalNode(id=1, left=5, right=6)
        second = IntervalNode(id=2, left=1, right=2)
        result = build([first, second])
        assert [r.id for r in result] == [1, 2]

    def test_convert_called_once_per_node(self):
        calls = []

        def convert(node):
            calls.append(node.id)
            return ReconstructedNode.from_node(node)

        build(list(_sample()), convert)
        assert sorted(calls) == [1, 2, 3]

    def test_custom_response_type(self):
        nodes = [
            IntervalNode(id=1, left=1, right=4, payload={"name": "Books"}),
            IntervalNode(id=2, left=2, right=3, parent_id=1, payload={"name": "Poetry"}),
        ]
        result = build(nodes, lambda n: CategoryResponse(name=n.payload["name"]))
        assert result == [
            CategoryResponse(name="Books", children=(CategoryResponse(name="Poetry"),))
        ]

    def test_every_node_appears_once(self):
        nodes = [
            IntervalNode(id=1, left=1, right=8),
            IntervalNode(id=2, left=2, right=5, parent_id=1),
            IntervalNode(id=3, left=3, right=4, parent_id=2),
            IntervalNode(id=4, left=6, right=7, parent_id=1),
            IntervalNode(id=5, left=9, right=10),
        ]

        def collect(views):
            for view in views:
                yield view.id
                yield from collect(view.children)

        assert sorted(collect(build(nodes))) == [1, 2, 3, 4, 5]
