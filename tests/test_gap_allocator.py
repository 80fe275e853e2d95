"""
Tests for gap allocation.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import pytest

from nested_set.core.exceptions import NodeNotFoundError, TransactionError
from nested_set.core.gap_allocator import GapAllocator, root_gap, shift_for_insert
from nested_set.core.node import Gap, IntervalNode


class TestRootGap:
    """Test root_gap()."""

    def test_empty_forest(self):
        assert root_gap([]) == Gap(1, 2)

    def test_after_last_root(self):
        nodes = [
            IntervalNode(id=1, left=1, right=4),
            IntervalNode(id=2, left=2, right=3, parent_id=1),
            IntervalNode(id=3, left=5, right=6),
        ]
        assert root_gap(nodes) == Gap(7, 8)

    def test_custom_width(self):
        assert root_gap([IntervalNode(id=1, left=1, right=2)], width=6) == Gap(3, 8)


class TestShiftForInsert:
    """Test shift_for_insert()."""

    def test_ancestor_grows_right_only(self):
        ancestor = IntervalNode(id=1, left=1, right=6)
        changed = shift_for_insert([ancestor], insert_at=4, width=2)
        assert changed == [ancestor]
        assert (ancestor.left, ancestor.right) == (1, 8)

    def test_following_node_moves_both_bounds(self):
        following = IntervalNode(id=2, left=7, right=8)
        shift_for_insert([following], insert_at=4, width=2)
        assert (following.left, following.right) == (9, 10)

    def test_preceding_node_untouched(self):
        preceding = IntervalNode(id=3, left=1, right=2)
        assert shift_for_insert([preceding], insert_at=4, width=2) == []
        assert (preceding.left, preceding.right) == (1, 2)


class TestGapAllocator:
    """Test GapAllocator against both stores."""

    def test_first_root(self, store):
        with store.transaction():
            gap = GapAllocator(store).allocate(None)
        assert gap == Gap(1, 2)

    def test_root_from_snapshot(self, store):
        allocator = GapAllocator(store)
        snapshot = [IntervalNode(id=1, left=1, right=10)]
        assert allocator.allocate(None, nodes=snapshot) == Gap(11, 12)

    def test_child_of_leaf(self, store):
        root = store.insert(IntervalNode(id=None, left=1, right=2))
        with store.transaction():
            gap = GapAllocator(store).allocate(root.id)
        assert gap == Gap(2, 3)
        stored = store.get(root.id)
        assert (stored.left, stored.right) == (1, 4)

    def test_child_shifts_following_nodes(self, store):
        """Parent [1,4] with child [2,3], next root [5,6]."""
        parent = store.insert(IntervalNode(id=None, left=1, right=4))
        child = store.insert(IntervalNode(id=None, left=2, right=3, parent_id=parent.id))
        other = store.insert(IntervalNode(id=None, left=5, right=6))

        with store.transaction():
            gap = GapAllocator(store).allocate(parent.id)

        assert gap == Gap(4, 5)
        assert (store.get(parent.id).left, store.get(parent.id).right) == (1, 6)
        assert (store.get(child.id).left, store.get(child.id).right) == (2, 3)
        assert (store.get(other.id).left, store.get(other.id).right) == (7, 8)

    def test_missing_parent(self, store):
        with pytest.raises(NodeNotFoundError) as exc_info:
            with store.transaction():
                GapAllocator(store).allocate(999)
        assert exc_info.value.node_id == 999

    def test_child_requires_transaction(self, store):
        root = store.insert(IntervalNode(id=None, left=1, right=2))
        with pytest.raises(TransactionError):
            GapAllocator(store).allocate(root.id)
