"""
Tests for sibling reordering.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from nested_set.core.node import IntervalNode, MoveDirection
from nested_set.core.sibling_mover import SiblingMover, swap_offsets


class TestSwapOffsets:
    """Test swap_offsets()."""

    def test_contiguous_up(self):
        """Node of width 2 after sibling of width 4."""
        sibling = IntervalNode(id=1, left=2, right=5)
        node = IntervalNode(id=2, left=6, right=7)
        assert swap_offsets(node, sibling, MoveDirection.UP) == (-4, 2)

    def test_contiguous_down(self):
        node = IntervalNode(id=1, left=2, right=5)
        sibling = IntervalNode(id=2, left=6, right=7)
        assert swap_offsets(node, sibling, MoveDirection.DOWN) == (2, -4)

    def test_gap_between_subtrees_preserved(self):
        sibling = IntervalNode(id=1, left=1, right=2)
        node = IntervalNode(id=2, left=5, right=6)
        node_offset, sibling_offset = swap_offsets(node, sibling, MoveDirection.UP)
        assert (node.left + node_offset, node.right + node_offset) == (1, 2)
        assert (sibling.left + sibling_offset, sibling.right + sibling_offset) == (5, 6)


class TestSiblingMover:
    """Test SiblingMover against both stores."""

    def _seed(self, store):
        """Root [1,10]: A [2,5] with child [3,4], B [6,7], C [8,9]."""
        root = store.insert(IntervalNode(id=None, left=1, right=10))
        a = store.insert(IntervalNode(id=None, left=2, right=5, parent_id=root.id))
        a1 = store.insert(IntervalNode(id=None, left=3, right=4, parent_id=a.id))
        b = store.insert(IntervalNode(id=None, left=6, right=7, parent_id=root.id))
        c = store.insert(IntervalNode(id=None, left=8, right=9, parent_id=root.id))
        return root, a, a1, b, c

    def test_find_sibling(self, store):
        _, a, _, b, c = self._seed(store)
        mover = SiblingMover(store)
        assert mover.find_sibling(b, MoveDirection.UP).id == a.id
        assert mover.find_sibling(b, MoveDirection.DOWN).id == c.id
        assert mover.find_sibling(a, MoveDirection.UP) is None
        assert mover.find_sibling(c, MoveDirection.DOWN) is None

    def test_move_up_swaps_subtrees(self, store):
        _, a, a1, b, _ = self._seed(store)
        with store.transaction():
            moved = SiblingMover(store).move(b, MoveDirection.UP)

        assert (moved.left, moved.right) == (2, 3)
        assert (store.get(b.id).left, store.get(b.id).right) == (2, 3)
        assert (store.get(a.id).left, store.get(a.id).right) == (4, 7)
        assert (store.get(a1.id).left, store.get(a1.id).right) == (5, 6)

    def test_move_down_swaps_subtrees(self, store):
        _, a, a1, b, c = self._seed(store)
        with store.transaction():
            moved = SiblingMover(store).move(a, MoveDirection.DOWN)

        assert (moved.left, moved.right) == (4, 7)
        assert (store.get(b.id).left, store.get(b.id).right) == (2, 3)
        assert (store.get(a1.id).left, store.get(a1.id).right) == (5, 6)
        assert (store.get(c.id).left, store.get(c.id).right) == (8, 9)

    def test_no_sibling_is_noop(self, store):
        _, a, _, _, _ = self._seed(store)
        before = [(n.id, n.left, n.right) for n in store.find_all_ordered_by_left()]
        with store.transaction():
            result = SiblingMover(store).move(a, MoveDirection.UP)
        assert result is a
        after = [(n.id, n.left, n.right) for n in store.find_all_ordered_by_left()]
        assert after == before

    def test_parentage_unchanged(self, store):
        root, a, a1, b, _ = self._seed(store)
        with store.transaction():
            SiblingMover(store).move(b, MoveDirection.UP)
        assert store.get(a.id).parent_id == root.id
        assert store.get(b.id).parent_id == root.id
        assert store.get(a1.id).parent_id == a.id
