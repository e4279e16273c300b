"""Parent/child index over a flat category set."""

from typing import Iterable, Mapping, Optional

from propledger.domain.entities import Category, CategoryTotalRow
from propledger.domain.errors import ValidationError


class CategoryTreeIndex:
    """Children map and rollups over a forest of categories.

    The index is built from whatever categories the caller passes in. A
    category whose parent is not part of that set is treated as a root, so
    filtering by kind (or dropping inactive rows) never orphans a subtree.
    Sibling order is by name; it only affects presentation.
    """

    def __init__(self, categories: Iterable[Category]):
        """Build the index.

        Args:
            categories: Flat category list

        Raises:
            ValidationError: If the parent links contain a cycle
        """
        self.categories: dict[int, Category] = {c.id: c for c in categories}
        self.children_map: dict[int, list[int]] = {cid: [] for cid in self.categories}
        roots: list[int] = []

        for category in self.categories.values():
            parent_id = category.parent_id
            if parent_id is None or parent_id not in self.categories:
                roots.append(category.id)
            else:
                self.children_map[parent_id].append(category.id)

        self.root_ids = self._sort_by_name(roots)
        for parent_id, child_ids in self.children_map.items():
            self.children_map[parent_id] = self._sort_by_name(child_ids)

        self._check_acyclic()

    def _sort_by_name(self, category_ids: list[int]) -> list[int]:
        return sorted(category_ids, key=lambda cid: (self.categories[cid].name.lower(), cid))

    def _check_acyclic(self) -> None:
        reachable: set[int] = set()
        stack = list(self.root_ids)
        while stack:
            current = stack.pop()
            reachable.add(current)
            stack.extend(self.children_map[current])
        stranded = set(self.categories) - reachable
        if stranded:
            raise ValidationError(
                f"Category parent links form a cycle: {sorted(stranded)}", reason="category_cycle"
            )

    def __contains__(self, category_id: object) -> bool:
        return category_id in self.categories

    def __len__(self) -> int:
        return len(self.categories)

    def get(self, category_id: int) -> Optional[Category]:
        return self.categories.get(category_id)

    def children(self, category_id: int) -> list[int]:
        return list(self.children_map.get(category_id, []))

    def parent(self, category_id: int) -> Optional[int]:
        category = self.categories.get(category_id)
        if category is None or category.parent_id not in self.categories:
            return None
        return category.parent_id

    def root_of(self, category_id: int) -> Optional[int]:
        """Top-level ancestor of a category, or None if it is not indexed."""
        if category_id not in self.categories:
            return None
        current = category_id
        while (parent_id := self.parent(current)) is not None:
            current = parent_id
        return current

    def descendant_ids(self, category_id: int) -> set[int]:
        """The category and everything below it."""
        if category_id not in self.categories:
            return set()
        result = {category_id}
        stack = list(self.children_map[category_id])
        while stack:
            current = stack.pop()
            result.add(current)
            stack.extend(self.children_map[current])
        return result

    def is_within(self, category_id: int, ancestor_id: int) -> bool:
        """True when ``category_id`` is ``ancestor_id`` or one of its descendants."""
        current: Optional[int] = category_id
        while current is not None:
            if current == ancestor_id:
                return True
            current = self.parent(current)
        return False

    def aggregate(
        self,
        category_id: int,
        direct_amounts: Mapping[int, int],
        memo: dict[int, int],
    ) -> int:
        """Direct amount of a category plus the rollup of every child.

        ``memo`` belongs to a single aggregation pass; callers allocate a fresh
        dict per report and pass it through.
        """
        cached = memo.get(category_id)
        if cached is not None:
            return cached
        total = direct_amounts.get(category_id, 0)
        for child_id in self.children_map.get(category_id, []):
            total += self.aggregate(child_id, direct_amounts, memo)
        memo[category_id] = total
        return total

    def rollup(self, direct_amounts: Mapping[int, int]) -> dict[int, int]:
        """Rolled-up totals for every indexed category."""
        memo: dict[int, int] = {}
        for root_id in self.root_ids:
            self.aggregate(root_id, direct_amounts, memo)
        return memo

    def rows(self, direct_amounts: Mapping[int, int]) -> list[CategoryTotalRow]:
        """Depth-first rows with rolled-up totals; zero-total subtrees are omitted."""
        totals = self.rollup(direct_amounts)
        rows: list[CategoryTotalRow] = []

        def visit(category_id: int, depth: int) -> None:
            total = totals[category_id]
            if total == 0:
                return
            category = self.categories[category_id]
            rows.append(
                CategoryTotalRow(
                    category_id=category_id,
                    name=category.name,
                    kind=category.kind,
                    depth=depth,
                    amount_cents=total,
                )
            )
            for child_id in self.children_map[category_id]:
                visit(child_id, depth + 1)

        for root_id in self.root_ids:
            visit(root_id, 0)
        return rows
