"""Category domain service."""

from typing import Optional

from propledger.database.base import Database
from propledger.domain.category_tree import CategoryTreeIndex
from propledger.domain.entities import Category, CategoryKind
from propledger.domain.errors import (
    NotFoundError,
    ValidationError,
    category_not_found,
    category_path_not_found,
)


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self,
        name: str,
        kind: CategoryKind = CategoryKind.EXPENSE,
        parent_path: Optional[str] = None,
    ) -> int:
        """Create a category.

        Args:
            name: Category name
            kind: Category kind
            parent_path: Optional parent category path (e.g., "Expenses > Utilities")

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If parent category doesn't exist
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required", reason="missing_name")
        kind = CategoryKind(kind)

        parent_id = None
        if parent_path is not None:
            parent = self.db.get_category_by_path(parent_path)
            if parent is None:
                raise NotFoundError(category_path_not_found(parent_path), reason="category_not_found")
            parent_id = parent.id

        return self.db.create_category(name=name, kind=kind, parent_id=parent_id)

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.db.get_category(category_id)

    def require_category_by_path(self, path: str) -> Category:
        """Resolve a category path.

        Raises:
            NotFoundError: If no category has that path
        """
        category = self.db.get_category_by_path(path)
        if category is None:
            raise NotFoundError(category_path_not_found(path), reason="category_not_found")
        return category

    def list_categories(self, kinds: Optional[list[CategoryKind]] = None) -> list[Category]:
        return self.db.list_categories(kinds=kinds)

    def get_tree(self, kinds: Optional[list[CategoryKind]] = None) -> CategoryTreeIndex:
        """Category tree index over all (or some kinds of) categories."""
        return CategoryTreeIndex(self.db.list_categories(kinds=kinds))

    def set_active(self, category_id: int, active: bool) -> None:
        """Activate or deactivate a category; history in it still counts in reports."""
        if self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id), reason="category_not_found")
        self.db.set_category_active(category_id, active)

    def format_category_path(self, category_id: int) -> str:
        """Get full path for a category.

        Args:
            category_id: Category ID

        Returns:
            Full category path (e.g., "Expenses > Utilities")
        """
        cat = self.get_category(category_id)
        if cat is None:
            return ""

        path_parts = [cat.name]
        current_parent_id = cat.parent_id

        while current_parent_id is not None:
            parent = self.get_category(current_parent_id)
            if parent is None:
                break
            path_parts.append(parent.name)
            current_parent_id = parent.parent_id

        return " > ".join(reversed(path_parts))
