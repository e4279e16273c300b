"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from datetime import date

# Import entities directly to avoid circular import through domain/__init__.py
from propledger.domain.entities import (
    AnnualCategoryAmount,
    Category,
    CategoryKind,
    Property,
    PropertyStatus,
    RecurringDefinition,
    RecurringPosting,
    Transaction,
    TransactionSource,
)
from propledger.utils.periods import YearMonth


class Database(ABC):
    """Abstract database interface for propledger.

    Implementations return domain entities only. Two guarantees matter to the
    engine: soft-deleted transactions are excluded from range reads unless
    asked for, and ``post_recurring_transaction`` is atomic and unique per
    (definition, month).
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Property operations
    @abstractmethod
    def create_property(
        self,
        name: str,
        status: PropertyStatus = PropertyStatus.ACTIVE,
        purchase_price_cents: Optional[int] = None,
    ) -> int:
        """Create a property. Returns property ID."""
        pass

    @abstractmethod
    def get_property(self, property_id: int) -> Optional[Property]:
        """Get property by ID."""
        pass

    @abstractmethod
    def list_properties(self, status: Optional[PropertyStatus] = None) -> list[Property]:
        """List properties ordered by name, optionally filtered by status."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        name: str,
        kind: CategoryKind = CategoryKind.EXPENSE,
        parent_id: Optional[int] = None,
        active: bool = True,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_path(self, path: str) -> Optional[Category]:
        """Get category by path (e.g., 'Expenses > Utilities')."""
        pass

    @abstractmethod
    def list_categories(self, kinds: Optional[Iterable[CategoryKind]] = None) -> list[Category]:
        """List all categories (flat), optionally restricted to some kinds."""
        pass

    @abstractmethod
    def set_category_active(self, category_id: int, active: bool) -> None:
        """Activate or deactivate a category."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        property_id: int,
        category_id: int,
        date: date,
        amount_cents: int,
        memo: Optional[str] = None,
        source: TransactionSource = TransactionSource.MANUAL,
        statement_month: Optional[YearMonth] = None,
    ) -> int:
        """Create a ledger transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID, including soft-deleted rows."""
        pass

    @abstractmethod
    def get_transactions(self, transaction_ids: Iterable[int]) -> dict[int, Transaction]:
        """Get several transactions by ID, including soft-deleted rows."""
        pass

    @abstractmethod
    def soft_delete_transaction(self, transaction_id: int) -> None:
        """Mark a transaction deleted."""
        pass

    @abstractmethod
    def restore_transaction(self, transaction_id: int) -> None:
        """Clear a transaction's soft-delete marker."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        property_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_ids: Optional[Iterable[int]] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first.

        Args:
            property_id: Optional property filter
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            category_ids: Optional set of allowed category IDs
            include_deleted: If True, soft-deleted rows are returned too
        """
        pass

    @abstractmethod
    def list_accrual_transactions(
        self,
        statement_months: Iterable[YearMonth],
        start_date: date,
        end_date: date,
        property_id: Optional[int] = None,
        category_ids: Optional[Iterable[int]] = None,
    ) -> list[Transaction]:
        """List live transactions attributed to some statement months.

        A transaction qualifies when its statement month is one of
        ``statement_months``, or when it has no statement month and its date
        lies in ``start_date..end_date``.
        """
        pass

    # Annual amount operations
    @abstractmethod
    def upsert_annual_amount(
        self,
        property_id: int,
        year: int,
        category_id: int,
        amount_cents: int,
        ownership_ref: Optional[str] = None,
        note: Optional[str] = None,
    ) -> int:
        """Create or replace the amount for (property, year, category, ownership). Returns row ID."""
        pass

    @abstractmethod
    def list_annual_amounts(
        self,
        property_id: Optional[int] = None,
        years: Optional[Iterable[int]] = None,
        category_ids: Optional[Iterable[int]] = None,
    ) -> list[AnnualCategoryAmount]:
        """List annual amounts with optional filters."""
        pass

    # Recurring definition operations
    @abstractmethod
    def create_recurring_definition(
        self,
        property_id: int,
        category_id: int,
        amount_cents: int,
        day_of_month: int,
        start_month: YearMonth,
        end_month: Optional[YearMonth] = None,
        memo: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        """Create a recurring definition. Returns definition ID."""
        pass

    @abstractmethod
    def get_recurring_definition(self, definition_id: int) -> Optional[RecurringDefinition]:
        """Get recurring definition by ID."""
        pass

    @abstractmethod
    def update_recurring_definition(
        self,
        definition_id: int,
        category_id: int,
        amount_cents: int,
        day_of_month: int,
        start_month: YearMonth,
        end_month: Optional[YearMonth],
        memo: Optional[str],
        is_active: bool,
    ) -> None:
        """Replace every editable field of a recurring definition."""
        pass

    @abstractmethod
    def delete_recurring_definition(self, definition_id: int) -> None:
        """Delete a definition and its posting records; ledger rows are kept."""
        pass

    @abstractmethod
    def list_recurring_definitions(
        self,
        property_id: Optional[int] = None,
        active_only: bool = False,
    ) -> list[RecurringDefinition]:
        """List definitions ordered by day of month, then creation."""
        pass

    # Recurring posting operations
    @abstractmethod
    def get_recurring_posting(self, definition_id: int, month: YearMonth) -> Optional[RecurringPosting]:
        """Get the posting record for (definition, month)."""
        pass

    @abstractmethod
    def list_recurring_postings(
        self,
        definition_ids: Iterable[int],
        months: Optional[Iterable[YearMonth]] = None,
    ) -> list[RecurringPosting]:
        """List posting records for some definitions, optionally restricted to months."""
        pass

    @abstractmethod
    def post_recurring_transaction(
        self,
        definition_id: int,
        month: YearMonth,
        property_id: int,
        category_id: int,
        date: date,
        amount_cents: int,
        memo: Optional[str],
        replaces_transaction_id: Optional[int] = None,
    ) -> int:
        """Atomically create a ledger transaction and its posting record.

        With ``replaces_transaction_id`` unset, a new posting row is inserted.
        When set, the existing posting row for (definition, month) is rebound
        from that (deleted or missing) transaction to the new one, but only if
        it still points at it.

        Returns:
            New ledger transaction ID

        Raises:
            ConflictError: If another writer already posted this (definition, month);
                nothing is written in that case
        """
        pass
