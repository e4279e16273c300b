"""Tests for the category tree index."""

import pytest
from datetime import datetime, UTC

from propledger.domain.category_tree import CategoryTreeIndex
from propledger.domain.entities import Category, CategoryKind
from propledger.domain.errors import ValidationError

NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _cat(category_id, name, parent_id=None, kind=CategoryKind.EXPENSE):
    return Category(id=category_id, name=name, kind=kind, parent_id=parent_id, active=True, created_at=NOW)


@pytest.fixture
def tree():
    """Expenses(1) > Utilities(2) > Electric(3), Water(4); Expenses > Tax(5); Income(6) > Rent(7)."""
    return CategoryTreeIndex(
        [
            _cat(1, "Expenses"),
            _cat(2, "Utilities", 1),
            _cat(3, "Electric", 2),
            _cat(4, "Water", 2),
            _cat(5, "Tax", 1),
            _cat(6, "Income", kind=CategoryKind.INCOME),
            _cat(7, "Rent", 6, kind=CategoryKind.INCOME),
        ]
    )


class TestCategoryTreeIndex:
    """Tests for CategoryTreeIndex."""

    def test_roots_and_children_sorted_by_name(self, tree):
        assert tree.root_ids == [1, 6]
        assert tree.children(1) == [5, 2]
        assert tree.children(2) == [3, 4]
        assert tree.children(3) == []

    def test_parent_and_root_of(self, tree):
        assert tree.parent(3) == 2
        assert tree.parent(1) is None
        assert tree.root_of(4) == 1
        assert tree.root_of(99) is None

    def test_descendant_ids(self, tree):
        assert tree.descendant_ids(1) == {1, 2, 3, 4, 5}
        assert tree.descendant_ids(3) == {3}
        assert tree.descendant_ids(99) == set()

    def test_is_within(self, tree):
        assert tree.is_within(3, 1)
        assert tree.is_within(3, 3)
        assert not tree.is_within(1, 3)
        assert not tree.is_within(7, 1)

    def test_rollup_sums_children(self, tree):
        totals = tree.rollup({1: -100, 3: -1000, 4: -500, 7: 5000})
        assert totals[2] == -1500
        assert totals[1] == -1600
        assert totals[5] == 0
        assert totals[6] == 5000

    def test_aggregate_uses_memo(self, tree):
        memo = {}
        assert tree.aggregate(2, {3: -10, 4: -20}, memo) == -30
        assert memo[3] == -10
        # A cached value wins over the direct amounts
        assert tree.aggregate(2, {3: -999}, memo) == -30

    def test_rows_depth_first_and_omit_zero_subtrees(self, tree):
        rows = tree.rows({3: -1000, 4: -500, 7: 5000})
        assert [(r.name, r.depth, r.amount_cents) for r in rows] == [
            ("Expenses", 0, -1500),
            ("Utilities", 1, -1500),
            ("Electric", 2, -1000),
            ("Water", 2, -500),
            ("Income", 0, 5000),
            ("Rent", 1, 5000),
        ]

    def test_parent_outside_the_set_becomes_root(self):
        index = CategoryTreeIndex([_cat(3, "Electric", 2), _cat(4, "Water", 2)])
        assert index.root_ids == [3, 4]
        assert index.parent(3) is None

    def test_cycle_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            CategoryTreeIndex([_cat(1, "A", 2), _cat(2, "B", 1), _cat(3, "C")])
        assert exc_info.value.reason == "category_cycle"

    def test_contains_and_len(self, tree):
        assert 3 in tree
        assert 99 not in tree
        assert len(tree) == 7
        assert tree.get(7).name == "Rent"
